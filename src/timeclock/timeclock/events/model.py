from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import EventType, GeoStatus, PunchMethod, PunchSource


@dataclass(frozen=True)
class NewTimeClockEvent:
    company_id: str
    employee_id: str
    event_type: EventType
    occurred_at: datetime
    source: PunchSource
    punch_method: PunchMethod
    geo_status: GeoStatus
    device_id: Optional[str] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    accuracy: Optional[float] = None
    geo_captured_at: Optional[datetime] = None
    geo_distance_meters: Optional[int] = None
    qr_date: Optional[str] = None


@dataclass(frozen=True)
class TimeClockEvent:
    """Domain entity: one recorded punch."""

    event_id: int
    company_id: str
    employee_id: str
    event_type: EventType
    occurred_at: datetime
    source: PunchSource
    punch_method: PunchMethod
    geo_status: GeoStatus
    geo_distance_meters: Optional[int] = None
    qr_date: Optional[str] = None

    def summary(self) -> dict:
        return {
            "id": self.event_id,
            "type": self.event_type.value,
            "timestamp": self.occurred_at.isoformat(),
        }
