import os

BASE_DIR = os.path.abspath(os.path.dirname(__file__))

class Config:
    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-only-change-me")

    # SQLite database file stored beside the code as salonslot.db
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(BASE_DIR, "salonslot.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Storage timeout (seconds). Pool checkout and sqlite lock waits both use it.
    DB_TIMEOUT_SECONDS = int(os.getenv("DB_TIMEOUT_SECONDS", "30"))
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_timeout": DB_TIMEOUT_SECONDS,
    }
    if SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
        SQLALCHEMY_ENGINE_OPTIONS = {
            "connect_args": {"timeout": DB_TIMEOUT_SECONDS, "check_same_thread": False},
        }

    # Single-tenant default, seeded at startup
    DEFAULT_LOCATION_ID = int(os.getenv("DEFAULT_LOCATION_ID", "1"))
    DEFAULT_LOCATION_NAME = os.getenv("DEFAULT_LOCATION_NAME", "Main salon")

    # Booking policy
    BOOKING_INITIAL_STATUS = os.getenv("BOOKING_INITIAL_STATUS", "confirmed")   # pending / confirmed
    BOOKING_TRANSACTION_MODE = os.getenv("BOOKING_TRANSACTION_MODE", "atomic")  # atomic / compensating

    # Largest date range one provisioning call may cover
    PROVISION_MAX_DAYS = int(os.getenv("PROVISION_MAX_DAYS", "366"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Basic app settings
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_ENGINE_OPTIONS = {
        "connect_args": {"timeout": 30, "check_same_thread": False},
    }
    LOG_LEVEL = "DEBUG"
