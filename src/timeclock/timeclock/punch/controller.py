from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date, parse_iso_datetime
from ..common.web import current_actor, json_body, request_metadata, roles_required
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..container import Container
from ..geo.model import GeoReading


def _reading_from(body: dict):
    geo = body.get("geo")
    if geo is None:
        return None
    if not isinstance(geo, dict):
        raise ValidationError("geo must be an object")
    return GeoReading.create(
        lat=geo.get("lat"),
        lng=geo.get("lng"),
        accuracy_meters=geo.get("accuracy"),
        captured_at=parse_iso_datetime(geo.get("capturedAt")),
    )


def register(app: Flask, container: Container) -> None:
    @app.route("/api/timeclock/punch", methods=["POST"], endpoint="timeclock_punch")
    @roles_required(Role.EMPLOYEE, Role.ADMIN)
    def punch():
        body = json_body()
        qr = body.get("qr") or {}
        result = container.punch_service.punch(
            current_actor(),
            reading=_reading_from(body),
            qr_token=qr.get("token") if isinstance(qr, dict) else None,
            device_id=body.get("deviceId"),
            metadata=request_metadata(),
        )
        return jsonify(result), 201

    @app.route("/api/timeclock/today", methods=["GET"], endpoint="timeclock_today")
    @roles_required(Role.EMPLOYEE, Role.ADMIN)
    def today():
        return jsonify(container.punch_service.get_today(current_actor()))

    @app.route("/api/timeclock/history", methods=["GET"], endpoint="timeclock_history")
    @roles_required(Role.EMPLOYEE, Role.ADMIN)
    def history():
        start_s = request.args.get("from")
        end_s = request.args.get("to")
        if not start_s or not end_s:
            raise ValidationError("from and to are required (YYYY-MM-DD)")

        events = container.punch_service.get_history(
            current_actor(),
            parse_iso_date(start_s),
            parse_iso_date(end_s),
        )
        return jsonify(events)
