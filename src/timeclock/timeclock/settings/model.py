from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional

from ..core import constants as C
from ..core.enums import FallbackMode
from ..geo.model import GeoPolicy


@dataclass(frozen=True)
class CompanySettings:
    """Tenant settings row. ``qr_secret`` never leaves the service layer."""

    company_id: str
    geofence_enabled: bool = C.DEFAULT_GEOFENCE_ENABLED
    geo_required: bool = C.DEFAULT_GEO_REQUIRED
    geofence_lat: float = C.DEFAULT_CENTER_LAT
    geofence_lng: float = C.DEFAULT_CENTER_LNG
    geofence_radius_meters: int = C.DEFAULT_RADIUS_METERS
    max_accuracy_meters: float = C.DEFAULT_MAX_ACCURACY_METERS
    qr_enabled: bool = C.DEFAULT_QR_ENABLED
    fallback_mode: FallbackMode = FallbackMode.GEO_OR_QR
    qr_secret: str = ""
    kiosk_device_label: str = ""
    default_timezone: Optional[str] = None

    def with_changes(self, **changes: Any) -> "CompanySettings":
        return replace(self, **changes)

    def to_policy(self) -> GeoPolicy:
        return GeoPolicy(
            geofence_enabled=self.geofence_enabled,
            geo_required=self.geo_required,
            center_lat=self.geofence_lat,
            center_lng=self.geofence_lng,
            radius_meters=self.geofence_radius_meters,
            max_accuracy_meters=self.max_accuracy_meters,
            qr_enabled=self.qr_enabled,
            fallback_mode=self.fallback_mode,
            qr_signing_secret=self.qr_secret,
        )

    def public_view(self) -> dict[str, Any]:
        return {
            "geofenceEnabled": self.geofence_enabled,
            "geoRequired": self.geo_required,
            "geofenceLat": self.geofence_lat,
            "geofenceLng": self.geofence_lng,
            "geofenceRadiusMeters": self.geofence_radius_meters,
            "maxAccuracyMeters": self.max_accuracy_meters,
            "qrEnabled": self.qr_enabled,
            "punchFallbackMode": self.fallback_mode.value,
            "kioskDeviceLabel": self.kiosk_device_label,
            "defaultTimezone": self.default_timezone,
        }
