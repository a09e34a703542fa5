"""
Working-hours resolution.

Maps (location, date) to the schedule the time grid is built from.

Policy, in order:
  1. a WorkingHours row exists and is open  -> use it
  2. a WorkingHours row exists and is closed -> closed day, no slots
  3. no row at all                           -> DEFAULT_WEEK

Closed and unconfigured are different answers and stay different.
"""

from dataclasses import dataclass
from datetime import date, time

from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.location import Location
from models.working_hours import WorkingHours
from scheduling.errors import InvalidConfig, LocationNotFound, translate_storage_error
from scheduling.time_grid import format_hhmm, generate_time_grid
from utils.audit import log_event

SOURCE_CONFIGURED = "configured"
SOURCE_CLOSED = "closed"
SOURCE_DEFAULT = "default"

DAY_NAMES = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]


@dataclass(frozen=True)
class DaySchedule:
    """
    Inputs of the time grid for one day.

    Attributes:
        open_time / close_time: opening hours, same day
        slot_duration_minutes: grid step, > 0
        break_start / break_end: optional pause, both or neither
    """
    open_time: time
    close_time: time
    slot_duration_minutes: int
    break_start: time | None = None
    break_end: time | None = None

    def validate(self) -> "DaySchedule":
        if self.open_time is None or self.close_time is None:
            raise InvalidConfig("open_time and close_time are required")
        if not isinstance(self.slot_duration_minutes, int) or self.slot_duration_minutes <= 0:
            raise InvalidConfig("slot_duration_minutes must be a positive integer")
        if self.open_time >= self.close_time:
            raise InvalidConfig("open_time must be before close_time")
        if (self.break_start is None) != (self.break_end is None):
            raise InvalidConfig("break_start and break_end must be set together")
        if self.break_start is not None:
            if not (self.open_time <= self.break_start < self.break_end <= self.close_time):
                raise InvalidConfig("break must satisfy open_time <= break_start < break_end <= close_time")
        return self

    def time_grid(self) -> list[time]:
        return generate_time_grid(
            self.open_time,
            self.close_time,
            self.slot_duration_minutes,
            self.break_start,
            self.break_end,
        )

    def to_dict(self) -> dict:
        return {
            "open_time": format_hhmm(self.open_time),
            "close_time": format_hhmm(self.close_time),
            "slot_duration_minutes": self.slot_duration_minutes,
            "break_start": format_hhmm(self.break_start) if self.break_start else None,
            "break_end": format_hhmm(self.break_end) if self.break_end else None,
        }


@dataclass(frozen=True)
class ResolvedDay:
    day_of_week: int
    source: str                      # configured / closed / default
    schedule: DaySchedule | None     # None = closed

    @property
    def is_open(self) -> bool:
        return self.schedule is not None

    def time_grid(self) -> list[time]:
        return self.schedule.time_grid() if self.schedule else []


_WEEKDAY_DEFAULT = DaySchedule(
    open_time=time(8, 0),
    close_time=time(18, 0),
    slot_duration_minutes=30,
    break_start=time(12, 0),
    break_end=time(13, 0),
)

# Used only for days that have no WorkingHours row. Sunday closed.
DEFAULT_WEEK: dict[int, DaySchedule | None] = {
    0: None,
    1: _WEEKDAY_DEFAULT,
    2: _WEEKDAY_DEFAULT,
    3: _WEEKDAY_DEFAULT,
    4: _WEEKDAY_DEFAULT,
    5: _WEEKDAY_DEFAULT,
    6: _WEEKDAY_DEFAULT,
}


def day_of_week(target_date: date) -> int:
    """0 = Sunday .. 6 = Saturday."""
    return target_date.isoweekday() % 7


def schedule_from_row(row: WorkingHours) -> DaySchedule:
    return DaySchedule(
        open_time=row.open_time,
        close_time=row.close_time,
        slot_duration_minutes=row.slot_duration_minutes,
        break_start=row.break_start,
        break_end=row.break_end,
    )


def get_location_or_raise(location_id: int) -> Location:
    try:
        location = db.session.get(Location, location_id)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise translate_storage_error(exc) from exc
    if not location or not location.is_active:
        raise LocationNotFound(f"Location {location_id} not found")
    return location


def resolve_day(location_id: int, dow: int, row: WorkingHours | None = None, lookup: bool = True) -> ResolvedDay:
    if row is None and lookup:
        try:
            row = WorkingHours.query.filter_by(location_id=location_id, day_of_week=dow).first()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise translate_storage_error(exc) from exc

    if row is None:
        return ResolvedDay(day_of_week=dow, source=SOURCE_DEFAULT, schedule=DEFAULT_WEEK[dow])
    if not row.is_open:
        return ResolvedDay(day_of_week=dow, source=SOURCE_CLOSED, schedule=None)
    return ResolvedDay(day_of_week=dow, source=SOURCE_CONFIGURED, schedule=schedule_from_row(row).validate())


def resolve_working_hours(location_id: int, target_date: date) -> ResolvedDay:
    return resolve_day(location_id, day_of_week(target_date))


def load_week(location_id: int) -> dict[int, ResolvedDay]:
    """Resolve all seven days with a single query."""
    try:
        rows = WorkingHours.query.filter_by(location_id=location_id).all()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise translate_storage_error(exc) from exc
    by_day = {r.day_of_week: r for r in rows}
    return {dow: resolve_day(location_id, dow, by_day.get(dow), lookup=False) for dow in range(7)}


def describe_week(location_id: int) -> list[dict]:
    get_location_or_raise(location_id)
    out = []
    for dow, resolved in load_week(location_id).items():
        out.append({
            "day_of_week": dow,
            "day_name": DAY_NAMES[dow],
            "source": resolved.source,
            "is_open": resolved.is_open,
            "schedule": resolved.schedule.to_dict() if resolved.schedule else None,
        })
    return out


def set_working_hours(location_id: int, dow: int, is_open: bool, schedule: DaySchedule | None = None) -> WorkingHours:
    """Create or replace the WorkingHours row for one day of the week."""
    if dow not in range(7):
        raise InvalidConfig("day_of_week must be between 0 (Sunday) and 6 (Saturday)")
    if is_open:
        if schedule is None:
            raise InvalidConfig("An open day needs open_time, close_time and slot_duration_minutes")
        schedule.validate()

    get_location_or_raise(location_id)

    try:
        row = WorkingHours.query.filter_by(location_id=location_id, day_of_week=dow).first()
        if not row:
            row = WorkingHours(location_id=location_id, day_of_week=dow)
            db.session.add(row)

        row.is_open = bool(is_open)
        if is_open:
            row.open_time = schedule.open_time
            row.close_time = schedule.close_time
            row.slot_duration_minutes = schedule.slot_duration_minutes
            row.break_start = schedule.break_start
            row.break_end = schedule.break_end
        else:
            row.open_time = None
            row.close_time = None
            row.break_start = None
            row.break_end = None

        log_event(
            "WORKING_HOURS_UPDATE",
            entity="working_hours",
            entity_id=dow,
            location_id=location_id,
            metadata={"is_open": bool(is_open), "schedule": schedule.to_dict() if is_open else None},
            commit=False,
        )
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise translate_storage_error(exc) from exc
    return row


def clear_working_hours(location_id: int, dow: int) -> bool:
    """Delete the row for one day; the day falls back to DEFAULT_WEEK. Returns whether a row existed."""
    if dow not in range(7):
        raise InvalidConfig("day_of_week must be between 0 (Sunday) and 6 (Saturday)")
    get_location_or_raise(location_id)
    try:
        deleted = WorkingHours.query.filter_by(location_id=location_id, day_of_week=dow).delete()
        if deleted:
            log_event("WORKING_HOURS_UPDATE", entity="working_hours", entity_id=dow,
                      location_id=location_id, metadata={"cleared": True}, commit=False)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise translate_storage_error(exc) from exc
    return deleted > 0
