"""
Slot scheduling core.

time_grid      day schedule -> slot start times (pure)
working_hours  (location, date) -> day schedule, with the default policy
provisioning   materialize slots for a date range, insert-or-ignore
booking        atomic slot reservation
slot_admin     block / unblock / day view
"""

from .errors import SchedulingError
from .time_grid import generate_time_grid
from .working_hours import DaySchedule, resolve_working_hours
from .provisioning import provision
from .booking import CustomerInfo, LineItem, book
from .slot_admin import block_slot, unblock_slot, list_slots

__all__ = [
    "SchedulingError",
    "generate_time_grid",
    "DaySchedule",
    "resolve_working_hours",
    "provision",
    "CustomerInfo",
    "LineItem",
    "book",
    "block_slot",
    "unblock_slot",
    "list_slots",
]
