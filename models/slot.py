from datetime import datetime
from models.db import db

SLOT_STATUSES = ("available", "blocked", "booked")

class Slot(db.Model):
    __tablename__ = "slots"

    id = db.Column(db.Integer, primary_key=True)

    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False, index=True)
    slot_date = db.Column(db.Date, nullable=False, index=True)
    slot_time = db.Column(db.Time, nullable=False)

    status = db.Column(db.String(20), nullable=False, default="available")
    blocked_reason = db.Column(db.String(255), nullable=True)  # only while blocked
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=True)  # set iff booked

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    booking = db.relationship("Booking")

    __table_args__ = (
        # One row per (location, date, time); provisioning relies on it for insert-or-ignore
        db.UniqueConstraint("location_id", "slot_date", "slot_time", name="uq_slot_location_date_time"),
        # A booking occupies at most one slot
        db.UniqueConstraint("booking_id", name="uq_slot_booking_once"),
    )
