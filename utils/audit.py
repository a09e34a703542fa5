import json
from flask import current_app, has_request_context, request
from sqlalchemy.exc import SQLAlchemyError
from models import db
from models.audit_log import AuditLog

def log_event(action: str, entity=None, entity_id=None, location_id=None, metadata=None, commit=True):
    """
    Add an AuditLog row to the current session.

    With commit=False the row rides on the caller's transaction: it is saved
    together with the change it describes, or not at all.
    """
    ip = None
    user_agent = None
    if has_request_context():
        ip = request.headers.get("X-Forwarded-For", request.remote_addr)
        user_agent = request.headers.get("User-Agent", "")

    row = AuditLog(
        location_id=location_id,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip=ip,
        user_agent=user_agent[:255] if user_agent else None,
        metadata_json=json.dumps(metadata, default=str) if metadata else None
    )
    db.session.add(row)
    if commit:
        db.session.commit()


def log_outcome(action: str, **kwargs) -> bool:
    """
    Record an event about something that already happened (or was refused).

    The outcome is decided by then, so a failed audit write must not replace
    it: the write is rolled back and reported in the app log instead.
    """
    try:
        log_event(action, **kwargs)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error("Audit row %s not saved: %s", action, exc)
        return False
    return True
