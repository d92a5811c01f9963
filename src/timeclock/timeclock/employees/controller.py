from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import current_actor, json_body, request_metadata, roles_required
from ..core.enums import Role
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/employees/<employee_id>/pin", methods=["PUT"], endpoint="admin_employee_set_pin")
    @roles_required(Role.ADMIN)
    def set_pin(employee_id: str):
        container.credential_service.set_pin(
            current_actor(),
            employee_id,
            json_body().get("pin"),
            metadata=request_metadata(),
        )
        return jsonify({"success": True})

    @app.route("/api/admin/employees/<employee_id>/pin/reset", methods=["POST"], endpoint="admin_employee_reset_pin")
    @roles_required(Role.ADMIN)
    def reset_pin(employee_id: str):
        pin = container.credential_service.reset_pin(current_actor(), employee_id, metadata=request_metadata())
        return jsonify({"pin": pin})

    @app.route("/api/admin/employees/<employee_id>/qr", methods=["POST"], endpoint="admin_employee_regenerate_qr")
    @roles_required(Role.ADMIN)
    def regenerate_qr(employee_id: str):
        token = container.credential_service.regenerate_employee_qr(
            current_actor(), employee_id, metadata=request_metadata()
        )
        return jsonify({"employeeQrToken": token})
