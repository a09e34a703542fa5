from .db import db
from .location import Location
from .working_hours import WorkingHours
from .service import Service
from .customer import Customer
from .booking import Booking, BookingLineItem
from .slot import Slot
from .audit_log import AuditLog
