from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..common.validators import require_number
from ..core.enums import FallbackMode, GeoStatus, ReasonCode


@dataclass(frozen=True)
class GeoPolicy:
    """Per-tenant punch policy snapshot.

    ``qr_signing_secret`` must be non-empty before any token is signed or
    verified; ``SettingsService`` generates it lazily.
    """

    geofence_enabled: bool
    geo_required: bool
    center_lat: float
    center_lng: float
    radius_meters: int
    max_accuracy_meters: float
    qr_enabled: bool
    fallback_mode: FallbackMode
    qr_signing_secret: str


@dataclass(frozen=True)
class GeoReading:
    lat: float
    lng: float
    accuracy_meters: float
    captured_at: datetime

    @classmethod
    def create(cls, *, lat: Any, lng: Any, accuracy_meters: Any, captured_at: datetime) -> "GeoReading":
        return cls(
            lat=require_number(lat, "lat", minimum=-90, maximum=90),
            lng=require_number(lng, "lng", minimum=-180, maximum=180),
            accuracy_meters=require_number(accuracy_meters, "accuracy", minimum=0),
            captured_at=captured_at,
        )


@dataclass(frozen=True)
class GeoDecision:
    """Outcome of geofence evaluation.

    Unblocked decisions have ``code`` None and status OK or MISSING.
    Blocked ones carry GEO_REQUIRED, LOW_ACCURACY or OUTSIDE_GEOFENCE.
    """

    blocked: bool
    geo_status: GeoStatus
    distance_meters: Optional[int] = None
    reading: Optional[GeoReading] = None
    code: Optional[ReasonCode] = None
    message: Optional[str] = None
    details: Optional[dict[str, Any]] = None

    @classmethod
    def accepted(cls, *, geo_status: GeoStatus, distance_meters: Optional[int], reading: Optional[GeoReading]) -> "GeoDecision":
        return cls(blocked=False, geo_status=geo_status, distance_meters=distance_meters, reading=reading)

    @classmethod
    def rejected(
        cls,
        code: ReasonCode,
        message: str,
        *,
        geo_status: GeoStatus,
        distance_meters: Optional[int] = None,
        reading: Optional[GeoReading] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> "GeoDecision":
        return cls(
            blocked=True,
            geo_status=geo_status,
            distance_meters=distance_meters,
            reading=reading,
            code=code,
            message=message,
            details=details,
        )


EMPTY_GEO_DECISION = GeoDecision.accepted(geo_status=GeoStatus.MISSING, distance_meters=None, reading=None)
