from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import current_actor, roles_required
from ..core.enums import Role
from ..container import Container


def _requested_day():
    value = request.args.get("date")
    return parse_iso_date(value) if value else None


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/dashboard/summary", methods=["GET"], endpoint="admin_dashboard_summary")
    @roles_required(Role.ADMIN)
    def summary():
        result = container.dashboard_service.get_summary(current_actor(), _requested_day())
        return jsonify(result.to_dict())

    @app.route("/api/admin/dashboard/live", methods=["GET"], endpoint="admin_dashboard_live")
    @roles_required(Role.ADMIN)
    def live():
        rows = container.dashboard_service.get_live(current_actor(), _requested_day())
        return jsonify([row.to_dict() for row in rows])
