"""
Slot provisioning.

Materializes the time grid into Slot rows for a date range. Each row is an
insert-or-ignore on (location_id, slot_date, slot_time), so re-running over
an overlapping range never duplicates a row and never touches an existing
one: blocked and booked slots stay as they are.
"""

from dataclasses import dataclass
from datetime import date, timedelta

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.slot import Slot
from scheduling.errors import InvalidConfig, translate_storage_error
from scheduling.working_hours import DaySchedule, get_location_or_raise, load_week, day_of_week
from utils.audit import log_event
from utils.db_ops import upsert_ignore

SLOT_KEY = ["location_id", "slot_date", "slot_time"]


@dataclass
class ProvisionResult:
    days: int = 0
    slots_created: int = 0
    slots_existing: int = 0

    def to_dict(self) -> dict:
        return {
            "days": self.days,
            "slots_created": self.slots_created,
            "slots_existing": self.slots_existing,
        }


def _date_range(start_date: date, end_date: date):
    current = start_date
    while current <= end_date:
        yield current
        current += timedelta(days=1)


def _check_range(start_date: date, end_date: date):
    if start_date > end_date:
        raise InvalidConfig("start_date must not be after end_date")
    max_days = current_app.config.get("PROVISION_MAX_DAYS", 366)
    span = (end_date - start_date).days + 1
    if span > max_days:
        raise InvalidConfig(f"Date range spans {span} days, the limit is {max_days}")


def provision(location_id: int, start_date: date, end_date: date, schedule_override: DaySchedule | None = None) -> ProvisionResult:
    """
    Create missing available slots for every day in [start_date, end_date].

    schedule_override, when given, is applied uniformly to every day (closed
    days included). Otherwise each day is resolved from working hours.
    """
    _check_range(start_date, end_date)
    if schedule_override is not None:
        schedule_override.validate()
        override_grid = schedule_override.time_grid()

    get_location_or_raise(location_id)
    week = None if schedule_override is not None else load_week(location_id)

    result = ProvisionResult()
    try:
        for current in _date_range(start_date, end_date):
            result.days += 1
            if schedule_override is not None:
                grid = override_grid
            else:
                grid = week[day_of_week(current)].time_grid()

            for slot_time in grid:
                inserted = upsert_ignore(Slot, SLOT_KEY, {
                    "location_id": location_id,
                    "slot_date": current,
                    "slot_time": slot_time,
                    "status": "available",
                })
                if inserted:
                    result.slots_created += 1
                else:
                    result.slots_existing += 1

        log_event(
            "SLOTS_PROVISION",
            entity="location",
            entity_id=location_id,
            location_id=location_id,
            metadata={
                "start_date": start_date.isoformat(),
                "end_date": end_date.isoformat(),
                "override": schedule_override.to_dict() if schedule_override else None,
                **result.to_dict(),
            },
            commit=False,
        )
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise translate_storage_error(exc) from exc

    current_app.logger.info(
        "Provisioned location=%s %s..%s: %d created, %d already present",
        location_id, start_date, end_date, result.slots_created, result.slots_existing,
    )
    return result
