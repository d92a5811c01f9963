from __future__ import annotations

import math
from typing import Optional

from ..core.constants import EARTH_RADIUS_METERS
from ..core.enums import GeoStatus, ReasonCode
from ..core.messages import BLOCK_MESSAGES
from .model import GeoDecision, GeoPolicy, GeoReading


def haversine_meters(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance between two points in meters."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def evaluate_geo(policy: GeoPolicy, reading: Optional[GeoReading]) -> GeoDecision:
    """Decide whether a reading satisfies the tenant geofence.

    Accuracy is checked before distance: a coarse fix is rejected even when
    its reported position sits on the center point.
    """
    if reading is None:
        if policy.geo_required:
            return GeoDecision.rejected(
                ReasonCode.GEO_REQUIRED,
                BLOCK_MESSAGES[ReasonCode.GEO_REQUIRED],
                geo_status=GeoStatus.MISSING,
            )
        return GeoDecision.accepted(geo_status=GeoStatus.MISSING, distance_meters=None, reading=None)

    if reading.accuracy_meters > policy.max_accuracy_meters:
        return GeoDecision.rejected(
            ReasonCode.LOW_ACCURACY,
            BLOCK_MESSAGES[ReasonCode.LOW_ACCURACY],
            geo_status=GeoStatus.LOW_ACCURACY,
            reading=reading,
            details={"accuracy": _round_half_up(reading.accuracy_meters)},
        )

    distance_meters = _round_half_up(
        haversine_meters(reading.lat, reading.lng, policy.center_lat, policy.center_lng)
    )

    if policy.geofence_enabled and distance_meters > policy.radius_meters:
        return GeoDecision.rejected(
            ReasonCode.OUTSIDE_GEOFENCE,
            BLOCK_MESSAGES[ReasonCode.OUTSIDE_GEOFENCE],
            geo_status=GeoStatus.OUTSIDE,
            distance_meters=distance_meters,
            reading=reading,
            details={"distanceMeters": distance_meters, "radiusMeters": policy.radius_meters},
        )

    return GeoDecision.accepted(geo_status=GeoStatus.OK, distance_meters=distance_meters, reading=reading)
