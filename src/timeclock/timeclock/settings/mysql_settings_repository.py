from __future__ import annotations

from typing import Optional

from ..core.enums import FallbackMode
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import CompanySettings
from .repository import SettingsRepository


class MySQLSettingsRepository(SettingsRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_for_company(self, company_id: str) -> Optional[CompanySettings]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT company_id, geofence_enabled, geo_required, geofence_lat, geofence_lng,
                       geofence_radius_meters, max_accuracy_meters, qr_enabled, punch_fallback_mode,
                       qr_secret, kiosk_device_label, default_timezone
                FROM company_settings
                WHERE company_id=%s
                """,
                (company_id,),
            )
            r = fetchone(cur)
            if not r:
                return None
            return CompanySettings(
                company_id=str(r["company_id"]),
                geofence_enabled=bool(r["geofence_enabled"]),
                geo_required=bool(r["geo_required"]),
                geofence_lat=float(r["geofence_lat"]),
                geofence_lng=float(r["geofence_lng"]),
                geofence_radius_meters=int(r["geofence_radius_meters"]),
                max_accuracy_meters=float(r["max_accuracy_meters"]),
                qr_enabled=bool(r["qr_enabled"]),
                fallback_mode=FallbackMode.normalize(r.get("punch_fallback_mode")),
                qr_secret=r.get("qr_secret") or "",
                kiosk_device_label=r.get("kiosk_device_label") or "",
                default_timezone=r.get("default_timezone"),
            )

    def save(self, settings: CompanySettings) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO company_settings (
                    company_id, geofence_enabled, geo_required, geofence_lat, geofence_lng,
                    geofence_radius_meters, max_accuracy_meters, qr_enabled, punch_fallback_mode,
                    qr_secret, kiosk_device_label, default_timezone
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                ON DUPLICATE KEY UPDATE
                    geofence_enabled=VALUES(geofence_enabled),
                    geo_required=VALUES(geo_required),
                    geofence_lat=VALUES(geofence_lat),
                    geofence_lng=VALUES(geofence_lng),
                    geofence_radius_meters=VALUES(geofence_radius_meters),
                    max_accuracy_meters=VALUES(max_accuracy_meters),
                    qr_enabled=VALUES(qr_enabled),
                    punch_fallback_mode=VALUES(punch_fallback_mode),
                    qr_secret=VALUES(qr_secret),
                    kiosk_device_label=VALUES(kiosk_device_label),
                    default_timezone=VALUES(default_timezone)
                """,
                (
                    settings.company_id,
                    int(settings.geofence_enabled),
                    int(settings.geo_required),
                    settings.geofence_lat,
                    settings.geofence_lng,
                    int(settings.geofence_radius_meters),
                    settings.max_accuracy_meters,
                    int(settings.qr_enabled),
                    settings.fallback_mode.value,
                    settings.qr_secret,
                    settings.kiosk_device_label,
                    settings.default_timezone,
                ),
            )
