"""
Booking transaction.

book() reserves one slot for one customer and records the booked services.

Steps:
  1. load the slot; it must exist and be available
  2. find the customer by phone, create when absent
  3. insert the booking
  4. insert one line item per service, price copied from the request
  5. flip the slot to booked (compare-and-swap on status='available')

Two strategies, chosen by BOOKING_TRANSACTION_MODE:

  atomic        steps 2-5 in one database transaction. Any failure,
                including losing the race in step 5, rolls everything back.
  compensating  every step commits on its own. A failed step 4 deletes the
                booking from step 3. Losing the race in step 5 deletes the
                booking and its line items. A storage error in step 5 keeps
                the booking and reports a warning for manual reconciliation.

In both modes the status CAS in step 5 is what prevents double booking:
concurrent calls for the same slot end with exactly one success.
"""

from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.booking import Booking, BookingLineItem
from models.customer import Customer
from models.service import Service
from models.slot import Slot
from scheduling.errors import (
    BookingError,
    CustomerError,
    InvalidBookingRequest,
    InvalidConfig,
    SchedulingError,
    ServicesError,
    SlotNotFound,
    SlotUnavailable,
    translate_storage_error,
)
from scheduling.working_hours import get_location_or_raise
from utils.audit import log_event, log_outcome
from utils.db_ops import conditional_update, upsert_ignore
from utils.phone import is_valid_phone, normalize_phone

INITIAL_STATUSES = ("pending", "confirmed")
TRANSACTION_MODES = ("atomic", "compensating")


@dataclass
class CustomerInfo:
    name: str
    phone: str
    email: str | None = None
    notes: str | None = None


@dataclass
class LineItem:
    service_id: int
    price: Decimal


@dataclass
class BookingResult:
    booking_id: int
    status: str
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"id": self.booking_id, "status": self.status, "warnings": self.warnings}


def booking_policy() -> tuple[str, str]:
    """(initial booking status, transaction mode) from app config."""
    status = current_app.config.get("BOOKING_INITIAL_STATUS", "confirmed")
    mode = current_app.config.get("BOOKING_TRANSACTION_MODE", "atomic")
    if status not in INITIAL_STATUSES:
        raise InvalidConfig(f"BOOKING_INITIAL_STATUS must be one of {INITIAL_STATUSES}, got {status!r}")
    if mode not in TRANSACTION_MODES:
        raise InvalidConfig(f"BOOKING_TRANSACTION_MODE must be one of {TRANSACTION_MODES}, got {mode!r}")
    return status, mode


def _validate_request(customer: CustomerInfo, line_items: list[LineItem]) -> list[LineItem]:
    if not customer or not (customer.name or "").strip():
        raise InvalidBookingRequest("customer name is required")
    if not is_valid_phone(customer.phone):
        raise InvalidBookingRequest("customer phone is invalid")
    if not line_items:
        raise InvalidBookingRequest("at least one service is required")

    seen = set()
    cleaned = []
    for item in line_items:
        try:
            price = Decimal(str(item.price))
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidBookingRequest(f"invalid price for service {item.service_id}")
        if not price.is_finite() or price < 0:
            raise InvalidBookingRequest(f"invalid price for service {item.service_id}")
        if item.service_id in seen:
            raise InvalidBookingRequest(f"service {item.service_id} listed twice")
        seen.add(item.service_id)
        cleaned.append(LineItem(service_id=item.service_id, price=price))
    return cleaned


# ---------- steps ----------
def _load_slot(location_id: int, slot_date: date, slot_time: time) -> Slot:
    try:
        slot = Slot.query.filter_by(location_id=location_id, slot_date=slot_date, slot_time=slot_time).first()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise translate_storage_error(exc) from exc

    if not slot:
        raise SlotNotFound(f"No slot at {slot_date.isoformat()} {slot_time.strftime('%H:%M')}")
    if slot.status != "available":
        raise SlotUnavailable()
    return slot


def _find_or_create_customer(customer: CustomerInfo) -> Customer:
    phone = normalize_phone(customer.phone)
    upsert_ignore(Customer, ["phone"], {
        "phone": phone,
        "name": customer.name.strip(),
        "email": (customer.email or "").strip() or None,
        "notes": customer.notes,
    })
    # Existing customers are reused as-is; their fields are not updated
    return Customer.query.filter_by(phone=phone).one()


def _service_durations(location_id: int, line_items: list[LineItem]) -> dict[int, int]:
    ids = [item.service_id for item in line_items]
    rows = Service.query.filter(
        Service.id.in_(ids),
        Service.location_id == location_id,
        Service.is_active.is_(True),
    ).all()
    durations = {s.id: s.duration_minutes for s in rows}
    missing = [i for i in ids if i not in durations]
    if missing:
        raise ServicesError(f"Unknown service(s): {sorted(missing)}")
    return durations


def _insert_booking(location_id, slot_date, slot_time, customer_id, status, line_items, durations, notes) -> Booking:
    booking = Booking(
        location_id=location_id,
        customer_id=customer_id,
        booking_date=slot_date,
        booking_time=slot_time,
        status=status,
        total_price=sum((item.price for item in line_items), Decimal("0")),
        total_duration_minutes=sum(durations[item.service_id] for item in line_items),
        notes=notes,
    )
    db.session.add(booking)
    db.session.flush()
    return booking


def _insert_line_items(booking_id: int, line_items: list[LineItem]):
    for item in line_items:
        db.session.add(BookingLineItem(booking_id=booking_id, service_id=item.service_id, price=item.price))
    db.session.flush()


def _claim_slot(slot_id: int, booking_id: int) -> int:
    return conditional_update(
        Slot,
        key={"id": slot_id},
        expected={"status": "available"},
        new_fields={"status": "booked", "booking_id": booking_id, "blocked_reason": None},
    )


def _delete_booking(booking_id: int):
    BookingLineItem.query.filter_by(booking_id=booking_id).delete()
    Booking.query.filter_by(id=booking_id).delete()


# ---------- entry point ----------
def book(
    location_id: int,
    slot_date: date,
    slot_time: time,
    customer: CustomerInfo,
    line_items: list[LineItem],
    notes: str | None = None,
) -> BookingResult:
    status, mode = booking_policy()
    line_items = _validate_request(customer, line_items)
    get_location_or_raise(location_id)

    slot = _load_slot(location_id, slot_date, slot_time)
    slot_id = slot.id

    # Unknown services fail before anything is written
    try:
        durations = _service_durations(location_id, line_items)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise translate_storage_error(exc, ServicesError) from exc

    args = (location_id, slot_id, slot_date, slot_time, status, customer, line_items, durations, notes)
    if mode == "atomic":
        return _book_atomic(*args)
    return _book_compensating(*args)


def _audit_created(location_id: int, slot_id: int, booking_id: int, mode: str):
    # Same transaction as the slot claim
    log_event(
        "BOOKING_CREATE",
        entity="booking",
        entity_id=booking_id,
        location_id=location_id,
        metadata={"slot_id": slot_id, "mode": mode},
        commit=False,
    )


def _race_lost(location_id: int, slot_id: int) -> SlotUnavailable:
    current_app.logger.info("Slot %s already taken, booking refused", slot_id)
    log_outcome("BOOKING_FAIL_SLOT_UNAVAILABLE", entity="slot", entity_id=slot_id, location_id=location_id)
    return SlotUnavailable()


def _book_atomic(location_id, slot_id, slot_date, slot_time, status, customer, line_items, durations, notes) -> BookingResult:
    step_error = CustomerError
    try:
        cust = _find_or_create_customer(customer)

        step_error = BookingError
        booking = _insert_booking(location_id, slot_date, slot_time, cust.id, status, line_items, durations, notes)
        booking_id = booking.id

        step_error = ServicesError
        _insert_line_items(booking_id, line_items)

        step_error = BookingError
        claimed = _claim_slot(slot_id, booking_id)
        if claimed != 1:
            db.session.rollback()
            raise _race_lost(location_id, slot_id)

        _audit_created(location_id, slot_id, booking_id, "atomic")
        db.session.commit()
    except SchedulingError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise translate_storage_error(exc, step_error) from exc

    return BookingResult(booking_id=booking_id, status=status)


def _book_compensating(location_id, slot_id, slot_date, slot_time, status, customer, line_items, durations, notes) -> BookingResult:
    try:
        cust = _find_or_create_customer(customer)
        customer_id = cust.id
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise translate_storage_error(exc, CustomerError) from exc

    try:
        booking = _insert_booking(location_id, slot_date, slot_time, customer_id, status, line_items, durations, notes)
        booking_id = booking.id
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise translate_storage_error(exc, BookingError) from exc

    # The booking row must not outlive a failed line-item insert
    try:
        _insert_line_items(booking_id, line_items)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        _compensate(booking_id)
        raise translate_storage_error(exc, ServicesError) from exc

    try:
        claimed = _claim_slot(slot_id, booking_id)
        if claimed == 1:
            _audit_created(location_id, slot_id, booking_id, "compensating")
            db.session.commit()
    except SQLAlchemyError as exc:
        # Booking is committed; leave it for manual reconciliation
        db.session.rollback()
        warning = f"Booking {booking_id} saved but slot {slot_id} could not be marked booked"
        current_app.logger.warning("%s: %s", warning, exc)
        log_outcome(
            "BOOKING_SLOT_FLIP_FAILED",
            entity="booking",
            entity_id=booking_id,
            location_id=location_id,
            metadata={"slot_id": slot_id, "error": str(exc)[:200]},
        )
        return BookingResult(booking_id=booking_id, status=status, warnings=[warning])

    if claimed != 1:
        db.session.rollback()
        _compensate(booking_id)
        raise _race_lost(location_id, slot_id)

    return BookingResult(booking_id=booking_id, status=status)


def _compensate(booking_id: int):
    try:
        _delete_booking(booking_id)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error("Compensating delete of booking %s failed: %s", booking_id, exc)
        raise BookingError(f"Booking {booking_id} could not be rolled back") from exc
    current_app.logger.info("Booking %s removed after failed booking step", booking_id)
