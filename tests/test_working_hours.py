"""Working-hours resolution: configured, closed and default are three different answers."""

from datetime import date, time, timedelta

import pytest

from models import db
from models.audit_log import AuditLog
from models.working_hours import WorkingHours
from scheduling import working_hours as working_hours_module
from scheduling.errors import InvalidConfig, LocationNotFound, Timeout
from scheduling.working_hours import (
    DEFAULT_WEEK,
    DaySchedule,
    SOURCE_CLOSED,
    SOURCE_CONFIGURED,
    SOURCE_DEFAULT,
    clear_working_hours,
    day_of_week,
    describe_week,
    resolve_working_hours,
    set_working_hours,
)
from tests.conftest import LOCATION_ID, MONDAY, SUNDAY, failing_audit


class TestDayOfWeek:

    @pytest.mark.parametrize("day, expected", [
        (date(2026, 10, 18), 0),  # Sunday
        (date(2026, 10, 19), 1),
        (date(2026, 10, 23), 5),
        (date(2026, 10, 24), 6),  # Saturday
    ])
    def test_sunday_is_zero(self, day, expected):
        assert day_of_week(day) == expected


class TestResolutionPolicy:

    def test_unconfigured_weekday_uses_default(self, app):
        resolved = resolve_working_hours(LOCATION_ID, MONDAY)
        assert resolved.source == SOURCE_DEFAULT
        assert resolved.schedule == DEFAULT_WEEK[1]
        grid = resolved.time_grid()
        assert len(grid) == 18
        assert time(12, 0) not in grid and time(12, 30) not in grid
        assert grid[0] == time(8, 0) and grid[-1] == time(17, 30)

    def test_unconfigured_sunday_is_closed_by_default(self, app):
        resolved = resolve_working_hours(LOCATION_ID, SUNDAY)
        assert resolved.source == SOURCE_DEFAULT
        assert not resolved.is_open
        assert resolved.time_grid() == []

    def test_configured_closed_day_does_not_fall_back(self, app):
        set_working_hours(LOCATION_ID, 1, is_open=False)
        resolved = resolve_working_hours(LOCATION_ID, MONDAY)
        assert resolved.source == SOURCE_CLOSED
        assert resolved.time_grid() == []

    def test_configured_open_day_is_used(self, app):
        schedule = DaySchedule(open_time=time(10, 0), close_time=time(14, 0), slot_duration_minutes=60)
        set_working_hours(LOCATION_ID, 0, is_open=True, schedule=schedule)
        resolved = resolve_working_hours(LOCATION_ID, SUNDAY)
        assert resolved.source == SOURCE_CONFIGURED
        assert resolved.time_grid() == [time(10, 0), time(11, 0), time(12, 0), time(13, 0)]

    def test_other_location_config_is_not_shared(self, app):
        from models.location import Location
        db.session.add(Location(id=2, name="Second"))
        db.session.commit()
        set_working_hours(2, 1, is_open=False)

        assert resolve_working_hours(2, MONDAY).source == SOURCE_CLOSED
        assert resolve_working_hours(LOCATION_ID, MONDAY).source == SOURCE_DEFAULT


class TestAdministration:

    def test_set_replaces_existing_row(self, app):
        set_working_hours(LOCATION_ID, 2, is_open=False)
        schedule = DaySchedule(open_time=time(9, 0), close_time=time(12, 0), slot_duration_minutes=30)
        set_working_hours(LOCATION_ID, 2, is_open=True, schedule=schedule)
        rows = WorkingHours.query.filter_by(location_id=LOCATION_ID, day_of_week=2).all()
        assert len(rows) == 1
        assert rows[0].is_open and rows[0].open_time == time(9, 0)

    def test_clear_reverts_to_default(self, app):
        set_working_hours(LOCATION_ID, 1, is_open=False)
        assert clear_working_hours(LOCATION_ID, 1) is True
        assert resolve_working_hours(LOCATION_ID, MONDAY).source == SOURCE_DEFAULT
        assert clear_working_hours(LOCATION_ID, 1) is False

    def test_describe_week(self, app):
        set_working_hours(LOCATION_ID, 6, is_open=False)
        week = describe_week(LOCATION_ID)
        assert [d["day_of_week"] for d in week] == list(range(7))
        assert week[0]["source"] == SOURCE_DEFAULT and week[0]["is_open"] is False
        assert week[1]["schedule"]["open_time"] == "08:00"
        assert week[1]["schedule"]["break_start"] == "12:00"
        assert week[6]["source"] == SOURCE_CLOSED

    @pytest.mark.parametrize("kwargs", [
        dict(open_time=time(18, 0), close_time=time(8, 0), slot_duration_minutes=30),
        dict(open_time=time(8, 0), close_time=time(8, 0), slot_duration_minutes=30),
        dict(open_time=time(8, 0), close_time=time(18, 0), slot_duration_minutes=0),
        dict(open_time=time(8, 0), close_time=time(18, 0), slot_duration_minutes=30, break_start=time(12, 0)),
        dict(open_time=time(8, 0), close_time=time(18, 0), slot_duration_minutes=30,
             break_start=time(13, 0), break_end=time(12, 0)),
        dict(open_time=time(8, 0), close_time=time(18, 0), slot_duration_minutes=30,
             break_start=time(7, 0), break_end=time(9, 0)),
        dict(open_time=time(8, 0), close_time=time(18, 0), slot_duration_minutes=30,
             break_start=time(17, 0), break_end=time(19, 0)),
    ])
    def test_invalid_schedule_rejected(self, app, kwargs):
        with pytest.raises(InvalidConfig):
            set_working_hours(LOCATION_ID, 1, is_open=True, schedule=DaySchedule(**kwargs))
        assert WorkingHours.query.count() == 0

    def test_open_day_needs_schedule(self, app):
        with pytest.raises(InvalidConfig):
            set_working_hours(LOCATION_ID, 1, is_open=True)

    @pytest.mark.parametrize("dow", [-1, 7])
    def test_day_of_week_range(self, app, dow):
        with pytest.raises(InvalidConfig):
            set_working_hours(LOCATION_ID, dow, is_open=False)

    def test_unknown_location(self, app):
        with pytest.raises(LocationNotFound):
            set_working_hours(99, 1, is_open=False)
        with pytest.raises(LocationNotFound):
            describe_week(99)


class TestAuditTrail:

    def test_change_is_audited(self, app):
        set_working_hours(LOCATION_ID, 6, is_open=False)
        assert clear_working_hours(LOCATION_ID, 6) is True
        rows = AuditLog.query.filter_by(action="WORKING_HOURS_UPDATE").order_by(AuditLog.id).all()
        assert [r.entity_id for r in rows] == ["6", "6"]
        assert '"cleared": true' in rows[1].metadata_json

    def test_change_and_audit_saved_together(self, app, monkeypatch):
        monkeypatch.setattr(working_hours_module, "log_event", failing_audit)
        with pytest.raises(Timeout):
            set_working_hours(LOCATION_ID, 6, is_open=False)
        assert WorkingHours.query.count() == 0
        assert resolve_working_hours(LOCATION_ID, MONDAY + timedelta(days=5)).source == SOURCE_DEFAULT
