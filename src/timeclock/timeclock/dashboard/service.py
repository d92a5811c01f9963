from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from ..common.datetime_utils import Clock, SystemClock, format_iso_date, local_date, local_day_bounds
from ..core.context import Actor
from ..core.enums import Role, WorkStatus
from ..core.exceptions import AuthorizationError
from ..punch.sequencer import work_status
from ..settings.service import SettingsService
from .model import DashboardSummary, LiveEmployeeStatus
from .repository import DashboardRepository

logger = logging.getLogger(__name__)


class DashboardService:
    """Use case: who is working right now, and how many punches were blocked.

    Status comes from each employee's last event of the local day. Blocked
    attempts are counted from ``TIMECLOCK_PUNCH_BLOCKED`` audit rows.
    """

    def __init__(self, settings: SettingsService, dashboard: DashboardRepository, *, clock: Clock | None = None):
        self._settings = settings
        self._dashboard = dashboard
        self._clock = clock or SystemClock()

    def _day_range(self, actor: Actor, day: Optional[date]):
        if actor.role != Role.ADMIN:
            raise AuthorizationError("Only administrators can view the dashboard")

        tz = self._settings.get_timezone(self._settings.get_settings(actor.company_id))
        day = day or local_date(self._clock.now(), tz)
        start, end = local_day_bounds(day, tz)
        return day, start, end

    def get_summary(self, actor: Actor, day: Optional[date] = None) -> DashboardSummary:
        day, start, end = self._day_range(actor, day)
        employees = self._dashboard.list_active_employees(actor.company_id)
        last_events = self._dashboard.last_events_between(actor.company_id, start, end)

        counts = {status: 0 for status in WorkStatus}
        for employee in employees:
            last = last_events.get(employee.employee_id)
            counts[work_status(last.event_type) if last else WorkStatus.NOT_STARTED] += 1

        summary = DashboardSummary(
            date=format_iso_date(day),
            total_active_employees=len(employees),
            working_now=counts[WorkStatus.WORKING],
            on_break_now=counts[WorkStatus.ON_BREAK],
            out_now=counts[WorkStatus.OFF],
            not_started_yet=counts[WorkStatus.NOT_STARTED],
            blocked_attempts_today=self._dashboard.count_blocked_punches(actor.company_id, start, end),
            last_updated_at=self._clock.now(),
        )
        logger.debug("dashboard summary company=%s date=%s", actor.company_id, summary.date)
        return summary

    def get_live(self, actor: Actor, day: Optional[date] = None) -> list[LiveEmployeeStatus]:
        _, start, end = self._day_range(actor, day)
        employees = self._dashboard.list_active_employees(actor.company_id)
        last_events = self._dashboard.last_events_between(actor.company_id, start, end)
        blocked = self._dashboard.count_blocked_punches_by_user(actor.company_id, start, end)

        rows = []
        for employee in employees:
            last = last_events.get(employee.employee_id)
            rows.append(
                LiveEmployeeStatus(
                    employee_id=employee.employee_id,
                    full_name=employee.full_name,
                    email=employee.email,
                    is_active=employee.is_active,
                    status_now=work_status(last.event_type) if last else WorkStatus.NOT_STARTED,
                    last_event_type=last.event_type if last else None,
                    last_event_time=last.occurred_at if last else None,
                    geo_status=last.geo_status if last else None,
                    last_distance_meters=last.geo_distance_meters if last else None,
                    blocked_attempts_today=blocked.get(employee.user_id, 0),
                )
            )
        return rows
