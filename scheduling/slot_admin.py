"""
Administrative slot transitions and the day view.

block:   available -> blocked   (sets blocked_reason)
unblock: blocked   -> available (clears blocked_reason)

Both are a single conditional UPDATE keyed on the current status, so
conflicting concurrent calls (or a booking racing a block) resolve to one
winner without any extra locking.
"""

from datetime import date, time

from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.booking import Booking
from models.slot import Slot, SLOT_STATUSES
from scheduling.errors import InvalidConfig, SlotNotAvailable, SlotNotBlocked, translate_storage_error
from scheduling.time_grid import format_hhmm
from scheduling.working_hours import get_location_or_raise
from utils.audit import log_event
from utils.db_ops import conditional_update

DEFAULT_BLOCK_REASON = "Blocked manually"


def _slot_key(location_id: int, slot_date: date, slot_time: time) -> dict:
    return {"location_id": location_id, "slot_date": slot_date, "slot_time": slot_time}


def _transition(location_id, slot_date, slot_time, expected: str, new_fields: dict, action: str, metadata=None) -> int:
    """Conditional update plus its audit row, committed together. Returns affected rows."""
    try:
        affected = conditional_update(
            Slot,
            key=_slot_key(location_id, slot_date, slot_time),
            expected={"status": expected},
            new_fields=new_fields,
        )
        if affected == 0:
            db.session.rollback()
            return 0
        log_event(
            action,
            entity="slot",
            entity_id=f"{slot_date.isoformat()} {format_hhmm(slot_time)}",
            location_id=location_id,
            metadata=metadata,
            commit=False,
        )
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise translate_storage_error(exc) from exc
    return affected


def block_slot(location_id: int, slot_date: date, slot_time: time, reason: str | None = None):
    if reason is not None and not isinstance(reason, str):
        raise InvalidConfig("reason must be a string")
    get_location_or_raise(location_id)
    reason = (reason or "").strip()[:255] or DEFAULT_BLOCK_REASON

    affected = _transition(location_id, slot_date, slot_time, "available", {
        "status": "blocked",
        "blocked_reason": reason,
        "booking_id": None,
    }, "SLOT_BLOCK", metadata={"reason": reason})
    if affected == 0:
        raise SlotNotAvailable()


def unblock_slot(location_id: int, slot_date: date, slot_time: time):
    get_location_or_raise(location_id)

    affected = _transition(location_id, slot_date, slot_time, "blocked", {
        "status": "available",
        "blocked_reason": None,
        "booking_id": None,
    }, "SLOT_UNBLOCK")
    if affected == 0:
        raise SlotNotBlocked()


def list_slots(location_id: int, slot_date: date, status: str | None = None) -> list[dict]:
    get_location_or_raise(location_id)
    if status is not None and status not in SLOT_STATUSES:
        raise InvalidConfig(f"status must be one of {SLOT_STATUSES}")

    try:
        q = Slot.query.filter_by(location_id=location_id, slot_date=slot_date)
        if status:
            q = q.filter_by(status=status)
        slots = q.order_by(Slot.slot_time.asc()).all()

        # Fetch booking + customer info for booked slots
        booking_ids = [s.booking_id for s in slots if s.booking_id]
        bookings = {}
        if booking_ids:
            bookings = {b.id: b for b in Booking.query.filter(Booking.id.in_(booking_ids)).all()}

        out = []
        for s in slots:
            b = bookings.get(s.booking_id)
            out.append({
                "id": s.id,
                "date": s.slot_date.isoformat(),
                "time": format_hhmm(s.slot_time),
                "status": s.status,
                "blocked_reason": s.blocked_reason,
                "booking_id": s.booking_id,
                "customer": {
                    "name": b.customer.name,
                    "phone": b.customer.phone,
                } if b else None,
            })
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise translate_storage_error(exc) from exc
    return out
