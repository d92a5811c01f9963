from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import EventType, GeoStatus, WorkStatus


@dataclass(frozen=True)
class DashboardSummary:
    """Headcount by current status for one local day."""

    date: str
    total_active_employees: int
    working_now: int
    on_break_now: int
    out_now: int
    not_started_yet: int
    blocked_attempts_today: int
    last_updated_at: datetime

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "totalActiveEmployees": self.total_active_employees,
            "workingNow": self.working_now,
            "onBreakNow": self.on_break_now,
            "outNow": self.out_now,
            "notStartedYet": self.not_started_yet,
            "blockedAttemptsToday": self.blocked_attempts_today,
            "lastUpdatedAt": self.last_updated_at.isoformat(),
        }


@dataclass(frozen=True)
class LiveEmployeeStatus:
    employee_id: str
    full_name: str
    email: str
    is_active: bool
    status_now: WorkStatus
    last_event_type: Optional[EventType]
    last_event_time: Optional[datetime]
    geo_status: Optional[GeoStatus]
    last_distance_meters: Optional[int]
    blocked_attempts_today: int

    def to_dict(self) -> dict:
        return {
            "employeeId": self.employee_id,
            "fullName": self.full_name,
            "email": self.email,
            "isActive": self.is_active,
            "statusNow": self.status_now.value,
            "lastEventType": self.last_event_type.value if self.last_event_type else None,
            "lastEventTime": self.last_event_time.isoformat() if self.last_event_time else None,
            "geoStatus": self.geo_status.value if self.geo_status else None,
            "lastDistanceMeters": self.last_distance_meters,
            "blockedAttemptsToday": self.blocked_attempts_today,
        }
