from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest
from werkzeug.security import generate_password_hash

from src.timeclock.timeclock.container import wire
from src.timeclock.timeclock.core.context import Actor
from src.timeclock.timeclock.core.enums import AuditAction, FallbackMode, Role
from src.timeclock.timeclock.employees.model import Employee
from src.timeclock.timeclock.events.model import TimeClockEvent
from src.timeclock.timeclock.geo.model import GeoPolicy
from src.timeclock.timeclock.settings.model import CompanySettings

FAST_HASH = "pbkdf2:sha256:1000"
COMPANY = "c-1"
SECRET = "test-qr-secret"


def hash_pin(pin: str) -> str:
    return generate_password_hash(pin, method=FAST_HASH)


class FixedClock:
    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current = self.current + timedelta(**kwargs)


class FakeAuditTrail:
    def __init__(self):
        self.entries = []

    def record(self, entry) -> None:
        self.entries.append(entry)

    def actions(self) -> list[str]:
        return [e.action.value for e in self.entries]

    @property
    def last(self):
        return self.entries[-1]


class FakeSettingsRepo:
    def __init__(self):
        self.rows: dict[str, CompanySettings] = {}
        self.saves = 0

    def get_for_company(self, company_id):
        return self.rows.get(company_id)

    def save(self, settings):
        self.rows[settings.company_id] = settings
        self.saves += 1


class FakeEmployeeRepo:
    def __init__(self):
        self.rows: dict[str, Employee] = {}
        self.lock_resets: list[str] = []

    def add(self, employee: Employee) -> Employee:
        self.rows[employee.employee_id] = employee
        return employee

    def get_by_id(self, company_id, employee_id):
        e = self.rows.get(employee_id)
        return e if e and e.company_id == company_id else None

    def get_by_user_id(self, company_id, user_id):
        for e in self.rows.values():
            if e.company_id == company_id and e.user_id == user_id:
                return e
        return None

    def list_pin_candidates(self, company_id):
        return [e for e in self.rows.values() if e.company_id == company_id and e.is_active and e.pin_hash]

    def reset_pin_lock(self, employee_id):
        self.lock_resets.append(employee_id)
        self.rows[employee_id] = replace(self.rows[employee_id], pin_failed_attempts=0, pin_locked_until=None)

    def set_pin_hash(self, employee_id, *, pin_hash, updated_at):
        self.rows[employee_id] = replace(
            self.rows[employee_id], pin_hash=pin_hash, pin_failed_attempts=0, pin_locked_until=None
        )


class FakeEventRepo:
    """Keeps events in a list; success audits go to the same trail as the event."""

    def __init__(self, audit: FakeAuditTrail):
        self.events: list[TimeClockEvent] = []
        self._audit = audit

    def _between(self, company_id, employee_id, start, end):
        return sorted(
            (
                e
                for e in self.events
                if e.company_id == company_id and e.employee_id == employee_id and start <= e.occurred_at < end
            ),
            key=lambda e: (e.occurred_at, e.event_id),
        )

    def get_last_between(self, company_id, employee_id, start, end):
        events = self._between(company_id, employee_id, start, end)
        return events[-1] if events else None

    def list_between(self, company_id, employee_id, start, end):
        return self._between(company_id, employee_id, start, end)

    def create_with_audit(self, event, audit):
        created = TimeClockEvent(
            event_id=len(self.events) + 1,
            company_id=event.company_id,
            employee_id=event.employee_id,
            event_type=event.event_type,
            occurred_at=event.occurred_at,
            source=event.source,
            punch_method=event.punch_method,
            geo_status=event.geo_status,
            geo_distance_meters=event.geo_distance_meters,
            qr_date=event.qr_date,
        )
        self.events.append(created)
        self._audit.record(audit.with_entity_id(str(created.event_id)))
        return created


class FakeDashboardRepo:
    """Reads the other fakes. Blocked attempts are counted regardless of time."""

    def __init__(self, employees: FakeEmployeeRepo, events: FakeEventRepo, audit: FakeAuditTrail):
        self._employees = employees
        self._events = events
        self._audit = audit

    def list_active_employees(self, company_id):
        rows = [e for e in self._employees.rows.values() if e.company_id == company_id and e.is_active]
        return sorted(rows, key=lambda e: (e.full_name, e.employee_id))

    def last_events_between(self, company_id, start, end):
        latest = {}
        for e in sorted(self._events.events, key=lambda e: (e.occurred_at, e.event_id)):
            if e.company_id == company_id and start <= e.occurred_at < end:
                latest[e.employee_id] = e
        return latest

    def _blocked(self, company_id):
        return [
            e for e in self._audit.entries if e.company_id == company_id and e.action == AuditAction.TIMECLOCK_PUNCH_BLOCKED
        ]

    def count_blocked_punches(self, company_id, start, end):
        return len(self._blocked(company_id))

    def count_blocked_punches_by_user(self, company_id, start, end):
        counts = {}
        for e in self._blocked(company_id):
            if e.user_id:
                counts[e.user_id] = counts.get(e.user_id, 0) + 1
        return counts


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now) -> FixedClock:
    return FixedClock(fixed_now)


@pytest.fixture
def audit() -> FakeAuditTrail:
    return FakeAuditTrail()


@pytest.fixture
def settings_repo() -> FakeSettingsRepo:
    repo = FakeSettingsRepo()
    repo.save(CompanySettings(company_id=COMPANY, qr_secret=SECRET))
    repo.saves = 0
    return repo


@pytest.fixture
def employees_repo() -> FakeEmployeeRepo:
    repo = FakeEmployeeRepo()
    repo.add(Employee("e-1", COMPANY, "u-1", "Ana Lima", "ana@example.com", pin_hash=hash_pin("1234")))
    repo.add(Employee("e-2", COMPANY, "u-2", "Bruno Reis", "bruno@example.com", pin_hash=hash_pin("5678")))
    return repo


@pytest.fixture
def events_repo(audit) -> FakeEventRepo:
    return FakeEventRepo(audit)


@pytest.fixture
def dashboard_repo(employees_repo, events_repo, audit) -> FakeDashboardRepo:
    return FakeDashboardRepo(employees_repo, events_repo, audit)


@pytest.fixture
def container(settings_repo, employees_repo, events_repo, audit, dashboard_repo, clock):
    return wire(
        settings_repo=settings_repo,
        employees_repo=employees_repo,
        events_repo=events_repo,
        audit=audit,
        dashboard_repo=dashboard_repo,
        clock=clock,
        default_timezone=timezone.utc,
        pin_hash_method=FAST_HASH,
    )


@pytest.fixture
def employee_actor() -> Actor:
    return Actor(company_id=COMPANY, user_id="u-1", role=Role.EMPLOYEE)


@pytest.fixture
def kiosk_actor() -> Actor:
    return Actor(company_id=COMPANY, user_id="kiosk-1", role=Role.KIOSK)


@pytest.fixture
def admin_actor() -> Actor:
    return Actor(company_id=COMPANY, user_id="admin-1", role=Role.ADMIN)


@pytest.fixture
def make_policy():
    def _make(**overrides) -> GeoPolicy:
        values = dict(
            geofence_enabled=True,
            geo_required=True,
            center_lat=0.0,
            center_lng=0.0,
            radius_meters=200,
            max_accuracy_meters=100,
            qr_enabled=True,
            fallback_mode=FallbackMode.GEO_OR_QR,
            qr_signing_secret=SECRET,
        )
        values.update(overrides)
        return GeoPolicy(**values)

    return _make


@pytest.fixture
def company_id() -> str:
    return COMPANY


@pytest.fixture
def qr_secret() -> str:
    return SECRET


@pytest.fixture(name="hash_pin")
def hash_pin_fixture():
    return hash_pin
