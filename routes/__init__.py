from .health import health_bp
from .slots import slots_bp
from .booking import booking_bp
from .working_hours import working_hours_bp
from .audit_logs import audit_bp
