from __future__ import annotations

from datetime import datetime
from typing import Mapping, Protocol, Sequence

from ..employees.model import Employee
from ..events.model import TimeClockEvent


class DashboardRepository(Protocol):
    """Tenant-wide read queries behind the admin dashboard.

    Ranges are half-open: start <= t < end.
    """

    def list_active_employees(self, company_id: str) -> Sequence[Employee]:
        """Active employees ordered by full name."""

        raise NotImplementedError

    def last_events_between(self, company_id: str, start: datetime, end: datetime) -> Mapping[str, TimeClockEvent]:
        """Latest event per employee id within the range."""

        raise NotImplementedError

    def count_blocked_punches(self, company_id: str, start: datetime, end: datetime) -> int:
        raise NotImplementedError

    def count_blocked_punches_by_user(self, company_id: str, start: datetime, end: datetime) -> Mapping[str, int]:
        raise NotImplementedError
