from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..audit.model import AuditEntry
from ..audit.trail import AuditTrail
from ..common.datetime_utils import Clock, SystemClock, local_date, local_day_bounds
from ..core.context import Actor, RequestMetadata
from ..core.enums import AuditAction, PunchSource
from ..core.exceptions import NotFoundError, ValidationError, WorkdayClosedError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..events.model import NewTimeClockEvent
from ..events.repository import EventRepository
from ..geo.model import GeoReading
from ..settings.service import SettingsService
from .policy import FallbackPolicyResolver
from .sequencer import day_status, next_event_type

logger = logging.getLogger(__name__)


class PunchService:
    """Use case: an employee punches from their own browser."""

    def __init__(
        self,
        settings: SettingsService,
        employees: EmployeeRepository,
        events: EventRepository,
        resolver: FallbackPolicyResolver,
        audit: AuditTrail,
        *,
        clock: Clock | None = None,
    ):
        self._settings = settings
        self._employees = employees
        self._events = events
        self._resolver = resolver
        self._audit = audit
        self._clock = clock or SystemClock()

    def _employee_for(self, actor: Actor) -> Employee:
        employee = self._employees.get_by_user_id(actor.company_id, actor.user_id)
        if employee is None or not employee.is_active:
            raise NotFoundError("Employee profile not found")
        return employee

    def punch(
        self,
        actor: Actor,
        *,
        reading: Optional[GeoReading] = None,
        qr_token: Optional[str] = None,
        device_id: Optional[str] = None,
        metadata: Optional[RequestMetadata] = None,
    ) -> dict:
        employee = self._employee_for(actor)
        settings = self._settings.get_settings(actor.company_id)
        tz = self._settings.get_timezone(settings)
        now = self._clock.now()
        today = local_date(now, tz)

        resolution = self._resolver.resolve_punch(
            settings.to_policy(),
            reading,
            qr_token,
            today,
            actor=actor,
            metadata=metadata,
        )

        start, end = local_day_bounds(today, tz)
        last = self._events.get_last_between(actor.company_id, employee.employee_id, start, end)
        try:
            event_type = next_event_type(last.event_type if last else None)
        except WorkdayClosedError as exc:
            self._audit.record(
                AuditEntry.for_actor(
                    actor,
                    AuditAction.TIMECLOCK_PUNCH_BLOCKED,
                    "TimeClockEvent",
                    metadata=metadata,
                    payload={"reason": exc.code.value, "methodAttempted": resolution.method.value},
                )
            )
            logger.info("punch blocked company=%s user=%s reason=%s", actor.company_id, actor.user_id, exc.code.value)
            raise

        geo = resolution.geo_decision.reading
        event = self._events.create_with_audit(
            NewTimeClockEvent(
                company_id=actor.company_id,
                employee_id=employee.employee_id,
                event_type=event_type,
                occurred_at=now,
                source=PunchSource.PWA,
                punch_method=resolution.method,
                geo_status=resolution.geo_status,
                device_id=(device_id.strip() or None) if isinstance(device_id, str) else None,
                ip=metadata.ip if metadata else None,
                user_agent=metadata.user_agent if metadata else None,
                latitude=geo.lat if geo else None,
                longitude=geo.lng if geo else None,
                accuracy=geo.accuracy_meters if geo else None,
                geo_captured_at=geo.captured_at if geo else None,
                geo_distance_meters=resolution.distance_meters,
                qr_date=resolution.qr_date,
            ),
            AuditEntry.for_actor(
                actor,
                AuditAction.TIMECLOCK_PUNCH,
                "TimeClockEvent",
                metadata=metadata,
                payload={
                    "method": resolution.method.value,
                    "geoStatus": resolution.geo_status.value,
                    "qrDate": resolution.qr_date,
                },
            ),
        )
        logger.info(
            "punch recorded company=%s employee=%s type=%s method=%s",
            actor.company_id,
            employee.employee_id,
            event.event_type.value,
            event.punch_method.value,
        )
        return {
            "type": event.event_type.value,
            "timestamp": event.occurred_at.isoformat(),
            "method": event.punch_method.value,
        }

    def get_today(self, actor: Actor) -> dict:
        employee = self._employee_for(actor)
        settings = self._settings.get_settings(actor.company_id)
        tz = self._settings.get_timezone(settings)
        start, end = local_day_bounds(local_date(self._clock.now(), tz), tz)

        events = self._events.list_between(actor.company_id, employee.employee_id, start, end)
        last = events[-1] if events else None
        return {
            "status": day_status(last.event_type if last else None).to_dict(),
            "events": [e.summary() for e in events],
        }

    def get_history(self, actor: Actor, start: date, end: date) -> list[dict]:
        """Events between two local calendar days, both inclusive."""
        if start > end:
            raise ValidationError("from must be before to")

        employee = self._employee_for(actor)
        settings = self._settings.get_settings(actor.company_id)
        tz = self._settings.get_timezone(settings)
        range_start, _ = local_day_bounds(start, tz)
        _, range_end = local_day_bounds(end, tz)

        events = self._events.list_between(actor.company_id, employee.employee_id, range_start, range_end)
        return [e.summary() for e in events]
