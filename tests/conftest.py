"""Shared fixtures: an app on a throwaway SQLite file, a seeded catalog, helpers."""

from datetime import date, time
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from app import create_app
from config import TestConfig
from models import db
from models.service import Service
from models.slot import Slot
from scheduling.booking import CustomerInfo, LineItem
from scheduling.working_hours import DaySchedule
from utils.seed import seed_default_location

LOCATION_ID = 1
MONDAY = date(2026, 10, 19)
SUNDAY = date(2026, 10, 18)


@pytest.fixture
def app(tmp_path):
    app = create_app(TestConfig, SQLALCHEMY_DATABASE_URI=f"sqlite:///{tmp_path / 'test.db'}")
    with app.app_context():
        db.create_all()
        seed_default_location()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    haircut = Service(location_id=LOCATION_ID, name="Haircut", price=Decimal("50.00"), duration_minutes=30)
    beard = Service(location_id=LOCATION_ID, name="Beard trim", price=Decimal("20.00"), duration_minutes=15)
    db.session.add_all([haircut, beard])
    db.session.commit()
    return {"haircut": haircut.id, "beard": beard.id}


@pytest.fixture
def morning_schedule():
    return DaySchedule(open_time=time(8, 0), close_time=time(10, 0), slot_duration_minutes=30)


def make_customer(name="Ana Souza", phone="+55 11 99999-0000", email=None) -> CustomerInfo:
    return CustomerInfo(name=name, phone=phone, email=email)


def make_items(services, *names, price=None) -> list[LineItem]:
    prices = {"haircut": Decimal("50.00"), "beard": Decimal("20.00")}
    return [LineItem(service_id=services[n], price=price if price is not None else prices[n]) for n in names]


def get_slot(day: date, at: time, location_id: int = LOCATION_ID) -> Slot:
    db.session.expire_all()
    return Slot.query.filter_by(location_id=location_id, slot_date=day, slot_time=at).first()


def failing_audit(*args, **kwargs):
    """Stand-in for log_event when the audit insert hits a locked database."""
    raise OperationalError("INSERT INTO audit_logs", {}, Exception("database is locked"))
