from datetime import datetime
from models.db import db

BOOKING_STATUSES = ("pending", "confirmed", "cancelled", "completed", "no_show")

class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)

    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    booking_date = db.Column(db.Date, nullable=False, index=True)
    booking_time = db.Column(db.Time, nullable=False)

    status = db.Column(db.String(20), nullable=False, default="confirmed")
    # status values: pending, confirmed, cancelled, completed, no_show

    total_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    total_duration_minutes = db.Column(db.Integer, nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    customer = db.relationship("Customer")
    line_items = db.relationship("BookingLineItem", back_populates="booking")


class BookingLineItem(db.Model):
    __tablename__ = "booking_line_items"

    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), primary_key=True)
    service_id = db.Column(db.Integer, db.ForeignKey("services.id"), primary_key=True)

    # Price copied at booking time; later catalog changes do not touch it
    price = db.Column(db.Numeric(10, 2), nullable=False)

    booking = db.relationship("Booking", back_populates="line_items")
