from __future__ import annotations

import io

from flask import Flask, jsonify, request, send_file

from ..common.web import current_actor, json_body, request_metadata, roles_required
from ..core.enums import KioskAuthMethod, Role
from ..core.exceptions import ValidationError
from ..container import Container
from ..qr.image import decode_qr_image


def register(app: Flask, container: Container) -> None:
    @app.route("/api/kiosk/qr/today", methods=["GET"], endpoint="kiosk_qr_today")
    @roles_required(Role.KIOSK, Role.ADMIN)
    def qr_today():
        return jsonify(container.kiosk_service.get_today_qr(current_actor()).to_dict())

    @app.route("/api/kiosk/qr/today.png", methods=["GET"], endpoint="kiosk_qr_today_png")
    @roles_required(Role.KIOSK, Role.ADMIN)
    def qr_today_png():
        png = container.kiosk_service.get_today_qr_png(current_actor())
        return send_file(io.BytesIO(png), mimetype="image/png")

    @app.route("/api/kiosk/auth/pin", methods=["POST"], endpoint="kiosk_auth_pin")
    @roles_required(Role.KIOSK)
    def auth_pin():
        body = json_body()
        result = container.kiosk_auth_service.auth_by_pin(
            current_actor(),
            body.get("pin"),
            device_label=body.get("deviceLabel"),
            metadata=request_metadata(),
        )
        return jsonify(result.to_dict())

    @app.route("/api/kiosk/auth/qr", methods=["POST"], endpoint="kiosk_auth_qr")
    @roles_required(Role.KIOSK)
    def auth_qr():
        body = json_body()
        result = container.kiosk_auth_service.auth_by_qr(
            current_actor(),
            body.get("token"),
            device_label=body.get("deviceLabel"),
            metadata=request_metadata(),
        )
        return jsonify(result.to_dict())

    @app.route("/api/kiosk/auth/qr/image", methods=["POST"], endpoint="kiosk_auth_qr_image")
    @roles_required(Role.KIOSK)
    def auth_qr_image():
        """Kiosks without a camera scanner upload a photo of the badge."""
        if "image" not in request.files:
            raise ValidationError("Missing image file")

        token = decode_qr_image(request.files["image"].stream)
        result = container.kiosk_auth_service.auth_by_qr(
            current_actor(),
            token,
            device_label=request.form.get("deviceLabel"),
            metadata=request_metadata(),
        )
        return jsonify(result.to_dict())

    @app.route("/api/kiosk/punch", methods=["POST"], endpoint="kiosk_punch")
    @roles_required(Role.KIOSK)
    def punch():
        body = json_body()
        employee_id = body.get("employeeId")
        if not employee_id:
            raise ValidationError("employeeId is required")

        result = container.kiosk_punch_service.punch(
            current_actor(),
            str(employee_id),
            method=body.get("method") or KioskAuthMethod.PIN.value,
            device_label=body.get("deviceLabel"),
            metadata=request_metadata(),
        )
        return jsonify(result.to_dict()), 201
