from __future__ import annotations

import logging
from typing import Iterator, Optional

from ..audit.model import AuditEntry
from ..audit.trail import AuditTrail
from ..common.datetime_utils import (
    Clock,
    SystemClock,
    format_iso_date,
    local_date,
    local_day_bounds,
    next_local_midnight,
)
from ..common.validators import clean_device_label, require_pin
from ..core.context import Actor, RequestMetadata
from ..core.enums import AuditAction, GeoStatus, KioskAuthMethod, PunchMethod, PunchSource, ReasonCode
from ..core.exceptions import BlockedAttempt, NotFoundError, QrTokenError, ValidationError, WorkdayClosedError
from ..core.messages import BLOCK_MESSAGES
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..events.model import NewTimeClockEvent
from ..events.repository import EventRepository
from ..punch.sequencer import STATUS_SUGGESTIONS, day_status, next_event_type, work_status
from ..qr.codec import build_daily_qr_token, verify_employee_qr_token
from ..qr.image import render_qr_png
from ..settings.service import SettingsService
from .lockout import DeviceKey, PinLockedError, PinLockoutGuard
from .model import DailyQr, KioskAuthResult, KioskPunchResult

logger = logging.getLogger(__name__)


def _last_event_type_today(settings: SettingsService, events: EventRepository, company_id: str, employee_id: str, now):
    tz = settings.get_timezone(settings.get_settings(company_id))
    start, end = local_day_bounds(local_date(now, tz), tz)
    last = events.get_last_between(company_id, employee_id, start, end)
    return last.event_type if last else None


class KioskService:
    """Use case: the daily company QR shown on the kiosk screen."""

    def __init__(self, settings: SettingsService, *, clock: Clock | None = None):
        self._settings = settings
        self._clock = clock or SystemClock()

    def get_today_qr(self, actor: Actor) -> DailyQr:
        settings = self._settings.get_settings(actor.company_id)
        tz = self._settings.get_timezone(settings)
        now = self._clock.now()
        today = format_iso_date(local_date(now, tz))

        return DailyQr(
            date=today,
            qr_token=build_daily_qr_token(actor.company_id, today, settings.qr_secret),
            expires_at=next_local_midnight(now, tz),
            device_label=settings.kiosk_device_label,
        )

    def get_today_qr_png(self, actor: Actor) -> bytes:
        return render_qr_png(self.get_today_qr(actor).qr_token)


class KioskAuthService:
    """Use case: resolve an anonymous kiosk session into one employee."""

    def __init__(
        self,
        settings: SettingsService,
        employees: EmployeeRepository,
        events: EventRepository,
        guard: PinLockoutGuard,
        audit: AuditTrail,
        *,
        clock: Clock | None = None,
    ):
        self._settings = settings
        self._employees = employees
        self._events = events
        self._guard = guard
        self._audit = audit
        self._clock = clock or SystemClock()

    def _pin_candidates(self, company_id: str) -> Iterator[Employee]:
        # Lazy: a locked device never reaches the roster query.
        yield from self._employees.list_pin_candidates(company_id)

    def auth_by_pin(
        self,
        actor: Actor,
        pin: str,
        *,
        device_label: Optional[str] = None,
        metadata: Optional[RequestMetadata] = None,
    ) -> KioskAuthResult:
        pin = require_pin(pin)
        label = clean_device_label(device_label)
        now = self._clock.now()

        try:
            employee = self._guard.authenticate(
                self._pin_candidates(actor.company_id),
                pin,
                DeviceKey.for_actor(actor, label),
                now,
            )
        except PinLockedError as exc:
            self._log_failed(actor, metadata, KioskAuthMethod.PIN, exc.code, label, employee_id=exc.employee_id)
            raise
        except BlockedAttempt as exc:
            self._log_failed(actor, metadata, KioskAuthMethod.PIN, exc.code, label)
            raise

        return self._succeed(actor, metadata, KioskAuthMethod.PIN, employee, label, now)

    def auth_by_qr(
        self,
        actor: Actor,
        token: Optional[str],
        *,
        device_label: Optional[str] = None,
        metadata: Optional[RequestMetadata] = None,
    ) -> KioskAuthResult:
        label = clean_device_label(device_label)
        if not isinstance(token, str) or not token.strip():
            self._reject_qr(actor, metadata, label)
        token = token.strip()

        settings = self._settings.get_settings(actor.company_id)
        try:
            payload = verify_employee_qr_token(token, settings.qr_secret, company_id=actor.company_id)
        except QrTokenError:
            self._reject_qr(actor, metadata, label)

        employee = self._employees.get_by_id(actor.company_id, payload.employee_id)
        if employee is None or not employee.is_active:
            self._log_failed(
                actor,
                metadata,
                KioskAuthMethod.EMPLOYEE_QR,
                ReasonCode.EMPLOYEE_NOT_FOUND,
                label,
                employee_id=payload.employee_id,
            )
            raise NotFoundError("Employee not found")

        return self._succeed(actor, metadata, KioskAuthMethod.EMPLOYEE_QR, employee, label, self._clock.now())

    def _reject_qr(self, actor: Actor, metadata: Optional[RequestMetadata], label: Optional[str]):
        code = ReasonCode.INVALID_EMPLOYEE_QR
        self._log_failed(actor, metadata, KioskAuthMethod.EMPLOYEE_QR, code, label)
        raise BlockedAttempt(code, BLOCK_MESSAGES[code])

    def _succeed(
        self,
        actor: Actor,
        metadata: Optional[RequestMetadata],
        method: KioskAuthMethod,
        employee: Employee,
        label: Optional[str],
        now,
    ) -> KioskAuthResult:
        self._audit.record(
            AuditEntry.for_actor(
                actor,
                AuditAction.KIOSK_AUTH_SUCCESS,
                "Employee",
                entity_id=employee.employee_id,
                metadata=metadata,
                payload={"method": method.value, "deviceLabel": label, "employeeId": employee.employee_id},
            )
        )
        logger.info("kiosk auth company=%s employee=%s method=%s", actor.company_id, employee.employee_id, method.value)

        last = _last_event_type_today(self._settings, self._events, actor.company_id, employee.employee_id, now)
        status = day_status(last)
        return KioskAuthResult(
            employee_id=employee.employee_id,
            full_name=employee.full_name,
            user_id=employee.user_id,
            email=employee.email,
            next_event_type=status.next_type,
            status_suggestion=STATUS_SUGGESTIONS[status.next_type] if status.next_type else None,
        )

    def _log_failed(
        self,
        actor: Actor,
        metadata: Optional[RequestMetadata],
        method: KioskAuthMethod,
        reason: ReasonCode,
        label: Optional[str],
        *,
        employee_id: Optional[str] = None,
    ) -> None:
        self._audit.record(
            AuditEntry.for_actor(
                actor,
                AuditAction.KIOSK_AUTH_FAILED,
                "Employee",
                entity_id=employee_id,
                metadata=metadata,
                payload={
                    "method": method.value,
                    "reason": reason.value,
                    "deviceLabel": label,
                    "employeeId": employee_id,
                },
            )
        )
        logger.info("kiosk auth failed company=%s method=%s reason=%s", actor.company_id, method.value, reason.value)


class KioskPunchService:
    """Use case: record the next event for an employee resolved at the kiosk."""

    def __init__(
        self,
        settings: SettingsService,
        employees: EmployeeRepository,
        events: EventRepository,
        audit: AuditTrail,
        *,
        clock: Clock | None = None,
    ):
        self._settings = settings
        self._employees = employees
        self._events = events
        self._audit = audit
        self._clock = clock or SystemClock()

    def punch(
        self,
        actor: Actor,
        employee_id: str,
        *,
        method: KioskAuthMethod = KioskAuthMethod.PIN,
        device_label: Optional[str] = None,
        metadata: Optional[RequestMetadata] = None,
    ) -> KioskPunchResult:
        label = clean_device_label(device_label)
        try:
            method = KioskAuthMethod(method)
        except ValueError:
            raise ValidationError("method must be PIN or EMPLOYEE_QR")

        employee = self._employees.get_by_id(actor.company_id, employee_id)
        if employee is None or not employee.is_active:
            self._log_blocked(actor, metadata, ReasonCode.EMPLOYEE_NOT_FOUND, employee_id, method, label)
            raise NotFoundError("Employee not found")

        now = self._clock.now()
        last = _last_event_type_today(self._settings, self._events, actor.company_id, employee.employee_id, now)
        try:
            event_type = next_event_type(last)
        except WorkdayClosedError as exc:
            self._log_blocked(actor, metadata, exc.code, employee.employee_id, method, label)
            raise

        event = self._events.create_with_audit(
            NewTimeClockEvent(
                company_id=actor.company_id,
                employee_id=employee.employee_id,
                event_type=event_type,
                occurred_at=now,
                source=PunchSource.KIOSK,
                punch_method=PunchMethod.KIOSK,
                geo_status=GeoStatus.MISSING,
                device_id=label,
                ip=metadata.ip if metadata else None,
                user_agent=metadata.user_agent if metadata else None,
            ),
            AuditEntry.for_actor(
                actor,
                AuditAction.KIOSK_PUNCH,
                "TimeClockEvent",
                metadata=metadata,
                payload={
                    "employeeId": employee.employee_id,
                    "eventType": event_type.value,
                    "method": method.value,
                    "deviceLabel": label,
                },
            ),
        )
        logger.info(
            "kiosk punch company=%s employee=%s type=%s",
            actor.company_id,
            employee.employee_id,
            event.event_type.value,
        )
        return KioskPunchResult(
            event_type=event.event_type,
            timestamp=event.occurred_at,
            employee_id=employee.employee_id,
            full_name=employee.full_name,
            status_now=work_status(event.event_type),
        )

    def _log_blocked(
        self,
        actor: Actor,
        metadata: Optional[RequestMetadata],
        reason: ReasonCode,
        employee_id: str,
        method: KioskAuthMethod,
        label: Optional[str],
    ) -> None:
        self._audit.record(
            AuditEntry.for_actor(
                actor,
                AuditAction.KIOSK_PUNCH_BLOCKED,
                "Employee",
                entity_id=employee_id,
                metadata=metadata,
                payload={
                    "reason": reason.value,
                    "method": method.value,
                    "deviceLabel": label,
                    "employeeId": employee_id,
                },
            )
        )
        logger.info("kiosk punch blocked company=%s employee=%s reason=%s", actor.company_id, employee_id, reason.value)
