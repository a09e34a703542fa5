"""
Error taxonomy for slot scheduling and booking.

Every failure an operation can report is a SchedulingError subclass with a
stable ``code`` (rendered to API clients) and the HTTP status the blueprints
answer with. State-precondition failures (409) are expected under contention
and are safe for the caller to retry after refreshing state.
"""

from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError


class SchedulingError(Exception):
    code = "SchedulingError"
    http_status = 500
    default_message = "Scheduling operation failed"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


# ---------- configuration / input ----------
class InvalidConfig(SchedulingError):
    code = "InvalidConfig"
    http_status = 400
    default_message = "Invalid schedule configuration"


class InvalidBookingRequest(SchedulingError):
    code = "InvalidBookingRequest"
    http_status = 400
    default_message = "Invalid booking request"


class LocationNotFound(SchedulingError):
    code = "LocationNotFound"
    http_status = 404
    default_message = "Location not found"


# ---------- slot state preconditions ----------
class SlotNotFound(SchedulingError):
    code = "SlotNotFound"
    http_status = 404
    default_message = "Slot not found"


class SlotUnavailable(SchedulingError):
    code = "SlotUnavailable"
    http_status = 409
    default_message = "Slot is not available for booking"


class SlotNotAvailable(SchedulingError):
    code = "SlotNotAvailable"
    http_status = 409
    default_message = "Slot not found or not available for blocking"


class SlotNotBlocked(SchedulingError):
    code = "SlotNotBlocked"
    http_status = 409
    default_message = "Slot not found or not blocked"


# ---------- storage failures inside the booking transaction ----------
class CustomerError(SchedulingError):
    code = "CustomerError"
    default_message = "Could not find or create customer"


class ServicesError(SchedulingError):
    code = "ServicesError"
    default_message = "Could not record booked services"


class BookingError(SchedulingError):
    code = "BookingError"
    default_message = "Could not create booking"


# ---------- collaborator failures ----------
class Timeout(SchedulingError):
    code = "Timeout"
    http_status = 504
    default_message = "Storage operation timed out"


class StorageUnavailable(SchedulingError):
    code = "StorageUnavailable"
    http_status = 503
    default_message = "Storage is unavailable"


_TIMEOUT_MARKERS = ("timeout", "timed out", "canceling statement", "database is locked")
_CONNECTION_MARKERS = ("could not connect", "connection refused", "server closed the connection", "unable to open database")


def translate_storage_error(exc: SQLAlchemyError, fallback=StorageUnavailable, message: str = None) -> SchedulingError:
    """Map a SQLAlchemy exception onto the taxonomy.

    Timeouts and lost connections keep their own kinds; everything else becomes
    ``fallback`` (the step-specific error of the caller).
    """
    if isinstance(exc, PoolTimeoutError):
        return Timeout()
    if isinstance(exc, OperationalError):
        text = str(exc.orig if exc.orig is not None else exc).lower()
        if any(marker in text for marker in _TIMEOUT_MARKERS):
            return Timeout()
        if exc.connection_invalidated or any(marker in text for marker in _CONNECTION_MARKERS):
            return StorageUnavailable()
    if isinstance(exc, (DisconnectionError, InterfaceError)):
        return StorageUnavailable()
    return fallback(message)
