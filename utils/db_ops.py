"""
Storage primitives the scheduling core relies on.

upsert_ignore       INSERT, no-op when the unique key already exists
conditional_update  UPDATE ... WHERE <key> AND <expected>, returns affected rows

Both run on the current db.session and leave commit/rollback to the caller.
"""

from sqlalchemy import insert, update

from models import db


def _dialect_name() -> str:
    return db.session.get_bind().dialect.name


def upsert_ignore(model, unique_key: list[str], row: dict) -> int:
    """
    Insert one row unless a row with the same unique_key exists.

    Returns 1 if inserted, 0 if the key was already taken. Never raises on
    the key conflict itself, so concurrent callers cannot trip over each other.
    """
    dialect = _dialect_name()

    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert as pg_insert
        stmt = pg_insert(model).values(**row).on_conflict_do_nothing(index_elements=unique_key)
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert as sqlite_insert
        stmt = sqlite_insert(model).values(**row).on_conflict_do_nothing(index_elements=unique_key)
    elif dialect in ("mysql", "mariadb"):
        stmt = insert(model).values(**row).prefix_with("IGNORE")
    else:
        raise NotImplementedError(f"upsert_ignore is not supported on {dialect}")

    result = db.session.execute(stmt)
    return result.rowcount or 0


def conditional_update(model, key: dict, expected: dict, new_fields: dict) -> int:
    """
    Compare-and-swap style update.

    Only rows matching both key and expected are changed. 0 affected rows
    means the precondition failed (or the row does not exist).
    """
    clauses = [getattr(model, col) == value for col, value in key.items()]
    clauses += [getattr(model, col) == value for col, value in expected.items()]

    stmt = (
        update(model)
        .where(*clauses)
        .values(**new_fields)
        .execution_options(synchronize_session=False)
    )
    result = db.session.execute(stmt)
    return result.rowcount
