from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import EventType, WorkStatus


@dataclass(frozen=True)
class DailyQr:
    date: str
    qr_token: str
    expires_at: datetime
    device_label: str

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "qrToken": self.qr_token,
            "expiresAt": self.expires_at.isoformat(),
            "deviceLabel": self.device_label,
        }


@dataclass(frozen=True)
class KioskAuthResult:
    """Employee resolved from an anonymous kiosk session.

    ``next_event_type`` is None when the employee already closed the day.
    """

    employee_id: str
    full_name: str
    user_id: str
    email: str
    next_event_type: Optional[EventType]
    status_suggestion: Optional[str]

    def to_dict(self) -> dict:
        return {
            "employeeId": self.employee_id,
            "fullName": self.full_name,
            "user": {"id": self.user_id, "email": self.email},
            "nextEventType": self.next_event_type.value if self.next_event_type else None,
            "statusSuggestion": self.status_suggestion,
        }


@dataclass(frozen=True)
class KioskPunchResult:
    event_type: EventType
    timestamp: datetime
    employee_id: str
    full_name: str
    status_now: WorkStatus

    def to_dict(self) -> dict:
        return {
            "eventType": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "employee": {"id": self.employee_id, "fullName": self.full_name},
            "statusNow": self.status_now.value,
        }
