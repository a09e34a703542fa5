from datetime import date, time

from scheduling.time_grid import parse_hhmm


def parse_date(value) -> date:
    # Expect ISO format like "2026-01-20"
    if not isinstance(value, str) or not value.strip():
        raise ValueError("date required (YYYY-MM-DD)")
    return date.fromisoformat(value.strip())


def parse_time(value) -> time:
    # Expect "HH:MM"
    return parse_hhmm(value)


def parse_optional_time(value) -> time | None:
    if value in (None, ""):
        return None
    return parse_hhmm(value)


def parse_optional_str(value, field: str) -> str | None:
    # Missing or blank -> None; anything that is not a JSON string is rejected
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{field} must be a string")
    return value.strip() or None
