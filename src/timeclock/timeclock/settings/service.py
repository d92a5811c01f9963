from __future__ import annotations

import logging
from datetime import tzinfo
from typing import Any, Optional

from ..audit.model import AuditEntry
from ..audit.trail import AuditTrail
from ..common.datetime_utils import resolve_timezone
from ..common.validators import clean_device_label, require_number
from ..core.context import Actor
from ..core.enums import AuditAction, FallbackMode, Role
from ..core.exceptions import AuthorizationError, ValidationError
from ..qr.codec import generate_qr_secret
from .model import CompanySettings
from .repository import SettingsRepository

logger = logging.getLogger(__name__)

_UPDATABLE = {
    "geofence_enabled",
    "geo_required",
    "geofence_lat",
    "geofence_lng",
    "geofence_radius_meters",
    "max_accuracy_meters",
    "qr_enabled",
    "fallback_mode",
    "kiosk_device_label",
    "default_timezone",
}


class SettingsService:
    """Use case: read/update tenant punch policy and its QR signing secret."""

    def __init__(self, settings: SettingsRepository, audit: AuditTrail, *, default_timezone: Optional[tzinfo] = None):
        self._settings = settings
        self._audit = audit
        self._default_tz = default_timezone

    def get_settings(self, company_id: str) -> CompanySettings:
        """Return tenant settings, creating defaults and a secret lazily."""
        current = self._settings.get_for_company(company_id)
        if current is None:
            current = CompanySettings(company_id=company_id, qr_secret=generate_qr_secret())
            self._settings.save(current)
            logger.info("created default settings for company=%s", company_id)
        elif not current.qr_secret or not current.qr_secret.strip():
            current = current.with_changes(qr_secret=generate_qr_secret())
            self._settings.save(current)
            logger.info("generated missing QR secret for company=%s", company_id)
        return current

    def get_timezone(self, settings: CompanySettings) -> Optional[tzinfo]:
        return resolve_timezone(settings.default_timezone) or self._default_tz

    def update_settings(self, actor: Actor, **changes: Any) -> CompanySettings:
        if actor.role != Role.ADMIN:
            raise AuthorizationError("Only administrators can change settings")

        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise ValidationError(f"Unknown settings: {', '.join(sorted(unknown))}")

        current = self.get_settings(actor.company_id)
        updated = current.with_changes(**self._validate(changes))
        self._settings.save(updated)
        return updated

    def rotate_qr_secret(self, actor: Actor) -> None:
        """Replace the secret. Every outstanding daily and employee QR stops verifying."""
        if actor.role != Role.ADMIN:
            raise AuthorizationError("Only administrators can rotate the QR secret")

        current = self.get_settings(actor.company_id)
        self._settings.save(current.with_changes(qr_secret=generate_qr_secret()))
        self._audit.record(
            AuditEntry.for_actor(actor, AuditAction.QR_SECRET_ROTATED, "CompanySettings", entity_id=actor.company_id)
        )
        logger.info("QR secret rotated for company=%s", actor.company_id)

    @staticmethod
    def _validate(changes: dict[str, Any]) -> dict[str, Any]:
        clean: dict[str, Any] = {}
        for key, value in changes.items():
            if value is None and key != "default_timezone":
                continue
            if key in {"geofence_enabled", "geo_required", "qr_enabled"}:
                if not isinstance(value, bool):
                    raise ValidationError(f"{key} must be a boolean")
                clean[key] = value
            elif key == "geofence_lat":
                clean[key] = require_number(value, key, minimum=-90, maximum=90)
            elif key == "geofence_lng":
                clean[key] = require_number(value, key, minimum=-180, maximum=180)
            elif key == "geofence_radius_meters":
                clean[key] = int(require_number(value, key, minimum=1))
            elif key == "max_accuracy_meters":
                clean[key] = require_number(value, key, minimum=1)
            elif key == "fallback_mode":
                try:
                    clean[key] = FallbackMode(value)
                except ValueError:
                    raise ValidationError("punchFallbackMode must be GEO_ONLY, GEO_OR_QR or QR_ONLY")
            elif key == "kiosk_device_label":
                clean[key] = clean_device_label(value) or ""
            elif key == "default_timezone":
                if value is not None and str(value).strip() and resolve_timezone(str(value)) is None:
                    raise ValidationError(f"Unknown timezone: {value}")
                clean[key] = str(value).strip() if value else None
        return clean
