from datetime import date, datetime, timezone

import pytest

from src.timeclock.timeclock.core.enums import WorkStatus
from src.timeclock.timeclock.core.exceptions import AuthorizationError, BlockedAttempt
from src.timeclock.timeclock.employees.model import Employee
from src.timeclock.timeclock.geo.model import GeoReading


@pytest.fixture
def roster(employees_repo):
    employees_repo.add(Employee("e-3", "c-1", "u-3", "Carla Souza", "carla@example.com"))
    employees_repo.add(Employee("e-4", "c-1", "u-4", "Davi Nunes", "davi@example.com", is_active=False))
    employees_repo.add(Employee("e-5", "c-2", "u-5", "Elisa Prado", "elisa@example.com"))
    return employees_repo


def _blocked_browser_punch(container, employee_actor, clock):
    outside = GeoReading(lat=0.002, lng=0.0, accuracy_meters=10, captured_at=clock.now())
    with pytest.raises(BlockedAttempt):
        container.punch_service.punch(employee_actor, reading=outside)


def test_summary_counts_employees_by_last_event(container, roster, kiosk_actor, admin_actor, employee_actor, clock):
    container.kiosk_punch_service.punch(kiosk_actor, "e-1")
    container.kiosk_punch_service.punch(kiosk_actor, "e-2")
    container.kiosk_punch_service.punch(kiosk_actor, "e-2")
    _blocked_browser_punch(container, employee_actor, clock)

    summary = container.dashboard_service.get_summary(admin_actor)

    assert summary.to_dict() == {
        "date": "2026-03-10",
        "totalActiveEmployees": 3,
        "workingNow": 1,
        "onBreakNow": 1,
        "outNow": 0,
        "notStartedYet": 1,
        "blockedAttemptsToday": 1,
        "lastUpdatedAt": "2026-03-10T12:00:00+00:00",
    }


def test_closed_day_counts_as_out(container, kiosk_actor, admin_actor):
    for _ in range(4):
        container.kiosk_punch_service.punch(kiosk_actor, "e-1")

    summary = container.dashboard_service.get_summary(admin_actor)

    assert (summary.out_now, summary.not_started_yet) == (1, 1)


def test_summary_for_another_day_ignores_todays_events(container, kiosk_actor, admin_actor):
    container.kiosk_punch_service.punch(kiosk_actor, "e-1")

    summary = container.dashboard_service.get_summary(admin_actor, date(2026, 3, 9))

    assert summary.date == "2026-03-09"
    assert summary.working_now == 0
    assert summary.not_started_yet == 2


def test_live_lists_active_employees_by_name(container, roster, kiosk_actor, admin_actor, employee_actor, clock):
    container.kiosk_punch_service.punch(kiosk_actor, "e-1")
    _blocked_browser_punch(container, employee_actor, clock)
    _blocked_browser_punch(container, employee_actor, clock)

    rows = container.dashboard_service.get_live(admin_actor)

    assert [r.full_name for r in rows] == ["Ana Lima", "Bruno Reis", "Carla Souza"]
    assert rows[0].to_dict() == {
        "employeeId": "e-1",
        "fullName": "Ana Lima",
        "email": "ana@example.com",
        "isActive": True,
        "statusNow": "WORKING",
        "lastEventType": "IN",
        "lastEventTime": "2026-03-10T12:00:00+00:00",
        "geoStatus": "MISSING",
        "lastDistanceMeters": None,
        "blockedAttemptsToday": 2,
    }
    assert rows[1].status_now == WorkStatus.NOT_STARTED
    assert rows[1].last_event_time is None
    assert rows[1].blocked_attempts_today == 0


def test_live_reports_geo_of_browser_punch(container, admin_actor, employee_actor, clock):
    inside = GeoReading(lat=0.001, lng=0.0, accuracy_meters=10, captured_at=clock.now())
    container.punch_service.punch(employee_actor, reading=inside)
    clock.advance(minutes=10)
    container.punch_service.punch(employee_actor, reading=inside)

    ana = container.dashboard_service.get_live(admin_actor)[0]

    assert ana.status_now == WorkStatus.ON_BREAK
    assert ana.last_event_time == datetime(2026, 3, 10, 12, 10, tzinfo=timezone.utc)
    assert ana.geo_status.value == "OK"
    assert ana.last_distance_meters == 111


def test_dashboard_is_admin_only(container, employee_actor, kiosk_actor):
    for actor in (employee_actor, kiosk_actor):
        with pytest.raises(AuthorizationError):
            container.dashboard_service.get_summary(actor)
        with pytest.raises(AuthorizationError):
            container.dashboard_service.get_live(actor)
