from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import current_actor, json_body, roles_required
from ..core.enums import Role
from ..container import Container

# JSON field -> CompanySettings attribute
_FIELDS = {
    "geofenceEnabled": "geofence_enabled",
    "geoRequired": "geo_required",
    "geofenceLat": "geofence_lat",
    "geofenceLng": "geofence_lng",
    "geofenceRadiusMeters": "geofence_radius_meters",
    "maxAccuracyMeters": "max_accuracy_meters",
    "qrEnabled": "qr_enabled",
    "punchFallbackMode": "fallback_mode",
    "kioskDeviceLabel": "kiosk_device_label",
    "defaultTimezone": "default_timezone",
}


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/settings", methods=["GET"], endpoint="admin_settings_get")
    @roles_required(Role.ADMIN)
    def get_settings():
        actor = current_actor()
        return jsonify(container.settings_service.get_settings(actor.company_id).public_view())

    @app.route("/api/admin/settings", methods=["PUT"], endpoint="admin_settings_update")
    @roles_required(Role.ADMIN)
    def update_settings():
        changes = {_FIELDS.get(k, k): v for k, v in json_body().items()}
        updated = container.settings_service.update_settings(current_actor(), **changes)
        return jsonify(updated.public_view())

    @app.route("/api/admin/settings/qr-secret", methods=["POST"], endpoint="admin_settings_rotate_qr_secret")
    @roles_required(Role.ADMIN)
    def rotate_qr_secret():
        container.settings_service.rotate_qr_secret(current_actor())
        return jsonify({"success": True})
