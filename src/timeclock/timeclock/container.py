from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo
from typing import Optional

from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.trail import AuditTrail, LoggingAuditTrail
from .common.datetime_utils import Clock, SystemClock, resolve_timezone
from .core import constants as C
from .dashboard.mysql_dashboard_repository import MySQLDashboardRepository
from .dashboard.repository import DashboardRepository
from .dashboard.service import DashboardService
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .employees.service import EmployeeCredentialService
from .events.mysql_event_repository import MySQLEventRepository
from .events.repository import EventRepository
from .kiosk.lockout import DeviceLockStore, InMemoryDeviceLockStore, PinLockoutGuard
from .kiosk.service import KioskAuthService, KioskPunchService, KioskService
from .punch.policy import FallbackPolicyResolver
from .punch.service import PunchService
from .settings.mysql_settings_repository import MySQLSettingsRepository
from .settings.repository import SettingsRepository
from .settings.service import SettingsService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    clock: Clock

    settings_repo: SettingsRepository
    employees_repo: EmployeeRepository
    events_repo: EventRepository
    audit: AuditTrail
    dashboard_repo: DashboardRepository
    device_locks: DeviceLockStore

    settings_service: SettingsService
    punch_service: PunchService
    kiosk_service: KioskService
    kiosk_auth_service: KioskAuthService
    kiosk_punch_service: KioskPunchService
    credential_service: EmployeeCredentialService
    dashboard_service: DashboardService


def wire(
    *,
    settings_repo: SettingsRepository,
    employees_repo: EmployeeRepository,
    events_repo: EventRepository,
    audit: AuditTrail,
    dashboard_repo: DashboardRepository,
    clock: Clock | None = None,
    device_locks: DeviceLockStore | None = None,
    conn: DatabaseConnection | None = None,
    default_timezone: tzinfo | None = None,
    pin_hash_method: str = C.DEFAULT_PIN_HASH_METHOD,
    pin_full_scan: bool = False,
    device_max_attempts: int = C.DEVICE_MAX_ATTEMPTS,
    device_lock_seconds: int = C.DEVICE_LOCK_SECONDS,
    device_state_ttl_seconds: int = C.DEVICE_STATE_TTL_SECONDS,
) -> Container:
    """Build the services on top of any repository implementations."""
    clock = clock or SystemClock()
    device_locks = device_locks or InMemoryDeviceLockStore(ttl_seconds=device_state_ttl_seconds)

    settings_service = SettingsService(settings_repo, audit, default_timezone=default_timezone)
    resolver = FallbackPolicyResolver(audit)
    guard = PinLockoutGuard(
        device_locks,
        employees_repo,
        max_attempts=device_max_attempts,
        lock_seconds=device_lock_seconds,
        full_scan=pin_full_scan,
        clock=clock,
    )

    return Container(
        conn=conn,
        clock=clock,
        settings_repo=settings_repo,
        employees_repo=employees_repo,
        events_repo=events_repo,
        audit=audit,
        dashboard_repo=dashboard_repo,
        device_locks=device_locks,
        settings_service=settings_service,
        punch_service=PunchService(settings_service, employees_repo, events_repo, resolver, audit, clock=clock),
        kiosk_service=KioskService(settings_service, clock=clock),
        kiosk_auth_service=KioskAuthService(settings_service, employees_repo, events_repo, guard, audit, clock=clock),
        kiosk_punch_service=KioskPunchService(settings_service, employees_repo, events_repo, audit, clock=clock),
        credential_service=EmployeeCredentialService(
            employees_repo, settings_service, audit, hash_method=pin_hash_method, clock=clock
        ),
        dashboard_service=DashboardService(settings_service, dashboard_repo, clock=clock),
    )


def build_container(*, db_config: dict, settings: object | None = None) -> Container:
    """MySQL-backed container. ``settings`` is a loaded ``config.*`` module."""
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return wire(
        settings_repo=MySQLSettingsRepository(conn),
        employees_repo=MySQLEmployeeRepository(conn),
        events_repo=MySQLEventRepository(conn),
        audit=LoggingAuditTrail(MySQLAuditRepository(conn)),
        dashboard_repo=MySQLDashboardRepository(conn),
        conn=conn,
        default_timezone=resolve_timezone(getattr(settings, "DEFAULT_TIMEZONE", None)),
        pin_hash_method=getattr(settings, "PIN_HASH_METHOD", C.DEFAULT_PIN_HASH_METHOD),
        pin_full_scan=bool(getattr(settings, "PIN_FULL_SCAN", False)),
        device_max_attempts=int(getattr(settings, "DEVICE_MAX_ATTEMPTS", C.DEVICE_MAX_ATTEMPTS)),
        device_lock_seconds=int(getattr(settings, "DEVICE_LOCK_SECONDS", C.DEVICE_LOCK_SECONDS)),
        device_state_ttl_seconds=int(getattr(settings, "DEVICE_STATE_TTL_SECONDS", C.DEVICE_STATE_TTL_SECONDS)),
    )
