"""Slot provisioning: idempotent insert-or-ignore over date ranges."""

import threading
from datetime import date, time, timedelta

import pytest

from models import db
from models.audit_log import AuditLog
from models.slot import Slot
from scheduling import provisioning as provisioning_module
from scheduling.booking import book
from scheduling.errors import InvalidConfig, LocationNotFound, Timeout
from scheduling.provisioning import provision
from scheduling.slot_admin import block_slot
from scheduling.working_hours import DaySchedule, set_working_hours
from tests.conftest import LOCATION_ID, MONDAY, SUNDAY, failing_audit, get_slot, make_customer, make_items


def slot_keys():
    return sorted((s.slot_date, s.slot_time, s.status) for s in Slot.query.all())


class TestFromWorkingHours:

    def test_default_weekday(self, app):
        result = provision(LOCATION_ID, MONDAY, MONDAY)
        assert result.days == 1
        assert result.slots_created == 18
        slots = Slot.query.filter_by(slot_date=MONDAY).all()
        assert len(slots) == 18
        assert {s.status for s in slots} == {"available"}
        assert all(s.booking_id is None and s.blocked_reason is None for s in slots)

    def test_full_week_skips_default_sunday(self, app):
        result = provision(LOCATION_ID, SUNDAY, SUNDAY + timedelta(days=6))
        assert result.days == 7
        assert result.slots_created == 6 * 18
        assert Slot.query.filter_by(slot_date=SUNDAY).count() == 0

    def test_closed_day_gets_no_slots(self, app):
        set_working_hours(LOCATION_ID, 1, is_open=False)
        result = provision(LOCATION_ID, MONDAY, MONDAY)
        assert result.slots_created == 0
        assert Slot.query.count() == 0

    def test_configured_day(self, app):
        set_working_hours(LOCATION_ID, 1, is_open=True, schedule=DaySchedule(
            open_time=time(9, 0), close_time=time(11, 0), slot_duration_minutes=60,
        ))
        provision(LOCATION_ID, MONDAY, MONDAY)
        assert [s.slot_time for s in Slot.query.order_by(Slot.slot_time).all()] == [time(9, 0), time(10, 0)]


class TestOverride:

    def test_override_applies_to_every_day(self, app, morning_schedule):
        result = provision(LOCATION_ID, SUNDAY, MONDAY, schedule_override=morning_schedule)
        assert result.slots_created == 8
        assert Slot.query.filter_by(slot_date=SUNDAY).count() == 4

    def test_invalid_override_writes_nothing(self, app):
        bad = DaySchedule(open_time=time(10, 0), close_time=time(9, 0), slot_duration_minutes=30)
        with pytest.raises(InvalidConfig):
            provision(LOCATION_ID, MONDAY, MONDAY, schedule_override=bad)
        assert Slot.query.count() == 0

    def test_zero_duration_override(self, app):
        bad = DaySchedule(open_time=time(8, 0), close_time=time(9, 0), slot_duration_minutes=0)
        with pytest.raises(InvalidConfig):
            provision(LOCATION_ID, MONDAY, MONDAY, schedule_override=bad)


class TestIdempotence:

    def test_second_run_creates_nothing(self, app, morning_schedule):
        provision(LOCATION_ID, MONDAY, MONDAY + timedelta(days=2), schedule_override=morning_schedule)
        before = slot_keys()
        again = provision(LOCATION_ID, MONDAY, MONDAY + timedelta(days=2), schedule_override=morning_schedule)
        assert again.slots_created == 0
        assert again.slots_existing == 12
        assert slot_keys() == before

    def test_overlapping_ranges(self, app, morning_schedule):
        provision(LOCATION_ID, MONDAY, MONDAY + timedelta(days=1), schedule_override=morning_schedule)
        provision(LOCATION_ID, MONDAY + timedelta(days=1), MONDAY + timedelta(days=2), schedule_override=morning_schedule)
        assert Slot.query.count() == 12

    def test_blocked_and_booked_slots_survive(self, app, services, morning_schedule):
        provision(LOCATION_ID, MONDAY, MONDAY, schedule_override=morning_schedule)
        block_slot(LOCATION_ID, MONDAY, time(8, 0), "Staff meeting")
        booked = book(LOCATION_ID, MONDAY, time(8, 30), make_customer(), make_items(services, "haircut"))

        provision(LOCATION_ID, MONDAY, MONDAY, schedule_override=morning_schedule)
        provision(LOCATION_ID, MONDAY, MONDAY)

        blocked = get_slot(MONDAY, time(8, 0))
        assert blocked.status == "blocked" and blocked.blocked_reason == "Staff meeting"
        taken = get_slot(MONDAY, time(8, 30))
        assert taken.status == "booked" and taken.booking_id == booked.booking_id

    def test_different_grid_adds_only_new_times(self, app, morning_schedule):
        provision(LOCATION_ID, MONDAY, MONDAY, schedule_override=morning_schedule)
        hourly = DaySchedule(open_time=time(8, 0), close_time=time(11, 0), slot_duration_minutes=60)
        result = provision(LOCATION_ID, MONDAY, MONDAY, schedule_override=hourly)
        assert result.slots_created == 1  # 10:00
        assert result.slots_existing == 2
        assert Slot.query.count() == 5


class TestRangeChecks:

    def test_reversed_range(self, app):
        with pytest.raises(InvalidConfig):
            provision(LOCATION_ID, MONDAY, SUNDAY)

    def test_range_limit(self, app):
        app.config["PROVISION_MAX_DAYS"] = 5
        with pytest.raises(InvalidConfig):
            provision(LOCATION_ID, MONDAY, MONDAY + timedelta(days=5))
        assert provision(LOCATION_ID, MONDAY, MONDAY + timedelta(days=4)).days == 5

    def test_unknown_location(self, app):
        with pytest.raises(LocationNotFound):
            provision(42, MONDAY, MONDAY)


def test_provisioning_is_audited(app, morning_schedule):
    provision(LOCATION_ID, MONDAY, MONDAY, schedule_override=morning_schedule)
    row = AuditLog.query.filter_by(action="SLOTS_PROVISION").one()
    assert row.location_id == LOCATION_ID
    assert '"slots_created": 4' in row.metadata_json


def test_slots_and_audit_saved_together(app, morning_schedule, monkeypatch):
    monkeypatch.setattr(provisioning_module, "log_event", failing_audit)
    with pytest.raises(Timeout):
        provision(LOCATION_ID, MONDAY, MONDAY, schedule_override=morning_schedule)
    assert Slot.query.count() == 0


def test_location_isolation(app, morning_schedule):
    from models.location import Location
    db.session.add(Location(id=2, name="Second"))
    db.session.commit()
    provision(LOCATION_ID, MONDAY, MONDAY, schedule_override=morning_schedule)
    provision(2, MONDAY, MONDAY, schedule_override=morning_schedule)
    assert Slot.query.filter_by(location_id=2).count() == 4
    assert Slot.query.count() == 8


class TestConcurrentProvisioning:

    @pytest.mark.parametrize("workers", [2, 6])
    def test_parallel_calls_commute(self, app, morning_schedule, workers):
        barrier = threading.Barrier(workers)
        outcomes = []
        lock = threading.Lock()

        def run():
            with app.app_context():
                barrier.wait()
                try:
                    result = provision(
                        LOCATION_ID, MONDAY, MONDAY + timedelta(days=1), schedule_override=morning_schedule
                    )
                    outcome = ("ok", result.slots_created, result.slots_existing)
                except Exception as exc:  # surfaced in the assertion below
                    outcome = ("error", repr(exc), None)
            with lock:
                outcomes.append(outcome)

        threads = [threading.Thread(target=run) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert [o for o in outcomes if o[0] == "error"] == []
        assert sum(created for _, created, _ in outcomes) == 8
        assert all(created + existing == 8 for _, created, existing in outcomes)

        db.session.expire_all()
        assert Slot.query.count() == 8
        keys = {(s.slot_date, s.slot_time) for s in Slot.query.all()}
        assert len(keys) == 8
        assert AuditLog.query.filter_by(action="SLOTS_PROVISION").count() == workers
