from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..audit.model import AuditEntry
from .model import NewTimeClockEvent, TimeClockEvent


class EventRepository(Protocol):
    def get_last_between(self, company_id: str, employee_id: str, start: datetime, end: datetime) -> Optional[TimeClockEvent]:
        """Latest event with start <= occurred_at < end."""

        raise NotImplementedError

    def list_between(self, company_id: str, employee_id: str, start: datetime, end: datetime) -> Sequence[TimeClockEvent]:
        """Events with start <= occurred_at < end, oldest first."""

        raise NotImplementedError

    def create_with_audit(self, event: NewTimeClockEvent, audit: AuditEntry) -> TimeClockEvent:
        """Insert the event and its audit entry in one transaction.

        The audit entry's ``entity_id`` is set to the new event id.
        """

        raise NotImplementedError
