from datetime import datetime
from models.db import db

class WorkingHours(db.Model):
    __tablename__ = "working_hours"

    id = db.Column(db.Integer, primary_key=True)
    location_id = db.Column(db.Integer, db.ForeignKey("locations.id"), nullable=False, index=True)
    day_of_week = db.Column(db.Integer, nullable=False)  # 0 = Sunday .. 6 = Saturday

    is_open = db.Column(db.Boolean, default=True, nullable=False)
    open_time = db.Column(db.Time, nullable=True)
    close_time = db.Column(db.Time, nullable=True)
    break_start = db.Column(db.Time, nullable=True)
    break_end = db.Column(db.Time, nullable=True)
    slot_duration_minutes = db.Column(db.Integer, nullable=False, default=30)

    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.UniqueConstraint("location_id", "day_of_week", name="uq_working_hours_location_day"),
    )
