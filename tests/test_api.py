import pytest

from src.timeclock.timeclock.main import create_app

INSIDE = {"lat": 0.001, "lng": 0.0, "accuracy": 10, "capturedAt": "2026-03-10T11:59:00Z"}
OUTSIDE = {"lat": 0.002, "lng": 0.0, "accuracy": 10, "capturedAt": "2026-03-10T11:59:00Z"}


@pytest.fixture
def app(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    return create_app(container=container)


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, user_id, role, company_id="c-1"):
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        sess["company_id"] = company_id
        sess["role"] = role


def test_anonymous_requests_are_rejected(client):
    resp = client.post("/api/timeclock/punch", json={"geo": INSIDE})

    assert resp.status_code == 401
    assert resp.get_json()["code"] == "UNAUTHENTICATED"


def test_employee_cannot_use_admin_or_kiosk_routes(client):
    login(client, "u-1", "employee")

    assert client.get("/api/admin/settings").status_code == 403
    assert client.post("/api/kiosk/auth/pin", json={"pin": "1234"}).status_code == 403


def test_punch_inside_geofence(client):
    login(client, "u-1", "employee")

    resp = client.post("/api/timeclock/punch", json={"geo": INSIDE, "deviceId": "phone"})

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["type"] == "IN"
    assert body["method"] == "GEO"


def test_blocked_punch_returns_reason_code(client, audit):
    login(client, "u-1", "employee")

    resp = client.post("/api/timeclock/punch", json={"geo": OUTSIDE})

    assert resp.status_code == 403
    body = resp.get_json()
    assert body["code"] == "OUTSIDE_GEOFENCE"
    assert body["details"] == {"distanceMeters": 222, "radiusMeters": 200}
    assert body["message"]
    assert audit.actions() == ["TIMECLOCK_PUNCH_BLOCKED"]


def test_punch_without_location_asks_for_qr(client):
    login(client, "u-1", "employee")

    resp = client.post("/api/timeclock/punch", json={})

    assert resp.status_code == 403
    assert resp.get_json() == {
        "code": "GEO_FAILED_QR_REQUIRED",
        "message": "Your location could not be obtained. Scan the company QR code to record your punch.",
        "details": None,
    }


def test_punch_with_kiosk_qr_fallback(client, kiosk_actor, container):
    token = container.kiosk_service.get_today_qr(kiosk_actor).qr_token
    login(client, "u-1", "employee")

    resp = client.post("/api/timeclock/punch", json={"qr": {"token": token}})

    assert resp.status_code == 201
    assert resp.get_json()["method"] == "QR"


@pytest.mark.parametrize(
    "body",
    [
        {"geo": {**INSIDE, "lat": 100}},
        {"geo": {**INSIDE, "capturedAt": "yesterday"}},
        {"geo": "here"},
        [1, 2],
    ],
)
def test_malformed_punch_body_is_a_validation_error(client, body):
    login(client, "u-1", "employee")

    resp = client.post("/api/timeclock/punch", json=body)

    assert resp.status_code == 400
    assert resp.get_json()["code"] == "VALIDATION_ERROR"


def test_today_and_history(client):
    login(client, "u-1", "employee")
    client.post("/api/timeclock/punch", json={"geo": INSIDE})

    today = client.get("/api/timeclock/today").get_json()
    history = client.get("/api/timeclock/history?from=2026-03-01&to=2026-03-10").get_json()

    assert today["status"] == {"currentType": "IN", "nextType": "BREAK_START"}
    assert [e["type"] for e in history] == ["IN"]
    assert client.get("/api/timeclock/history?from=2026-03-01").status_code == 400


def test_user_without_profile_gets_404(client):
    login(client, "u-404", "employee")

    resp = client.get("/api/timeclock/today")

    assert resp.status_code == 404
    assert resp.get_json()["code"] == "NOT_FOUND"


def test_kiosk_daily_qr(client):
    login(client, "kiosk-1", "kiosk")

    body = client.get("/api/kiosk/qr/today").get_json()
    png = client.get("/api/kiosk/qr/today.png")

    assert body["date"] == "2026-03-10"
    assert body["expiresAt"] == "2026-03-11T00:00:00+00:00"
    assert png.mimetype == "image/png"
    assert png.data.startswith(b"\x89PNG")


def test_kiosk_pin_auth_then_punch(client):
    login(client, "kiosk-1", "kiosk")

    auth = client.post("/api/kiosk/auth/pin", json={"pin": "5678", "deviceLabel": "front"})
    punch = client.post("/api/kiosk/punch", json={"employeeId": auth.get_json()["employeeId"], "deviceLabel": "front"})

    assert auth.status_code == 200
    assert auth.get_json()["statusSuggestion"] == "CLOCK_IN"
    assert punch.status_code == 201
    assert punch.get_json()["employee"] == {"id": "e-2", "fullName": "Bruno Reis"}


def test_kiosk_wrong_pin_then_lock(client):
    login(client, "kiosk-1", "kiosk")

    codes = [
        client.post("/api/kiosk/auth/pin", json={"pin": "0000", "deviceLabel": "front"}).get_json()["code"]
        for _ in range(5)
    ]
    locked = client.post("/api/kiosk/auth/pin", json={"pin": "1234", "deviceLabel": "front"})

    assert codes == ["PIN_INVALID"] * 4 + ["PIN_LOCKED"]
    assert locked.status_code == 403
    assert locked.get_json()["details"]["scope"] == "DEVICE"


def test_kiosk_punch_requires_employee_id(client):
    login(client, "kiosk-1", "kiosk")

    assert client.post("/api/kiosk/punch", json={}).status_code == 400


def test_kiosk_qr_image_requires_file(client):
    login(client, "kiosk-1", "kiosk")

    resp = client.post("/api/kiosk/auth/qr/image", data={"deviceLabel": "front"})

    assert resp.status_code == 400


def test_admin_updates_settings(client):
    login(client, "admin-1", "admin")

    resp = client.put("/api/admin/settings", json={"punchFallbackMode": "QR_ONLY", "geofenceRadiusMeters": 300})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body["punchFallbackMode"] == "QR_ONLY"
    assert body["geofenceRadiusMeters"] == 300
    assert "qrSecret" not in body


def test_admin_cannot_write_secret_directly(client):
    login(client, "admin-1", "admin")

    resp = client.put("/api/admin/settings", json={"qrSecret": "mine"})

    assert resp.status_code == 400


def test_admin_rotates_secret_and_old_qr_stops_working(client, container, kiosk_actor):
    old = container.kiosk_service.get_today_qr(kiosk_actor).qr_token
    login(client, "admin-1", "admin")
    assert client.post("/api/admin/settings/qr-secret").get_json() == {"success": True}

    login(client, "u-1", "employee")
    resp = client.post("/api/timeclock/punch", json={"qr": {"token": old}})

    assert resp.get_json()["code"] == "INVALID_QR"


def test_admin_manages_employee_credentials(client):
    login(client, "admin-1", "admin")

    pin = client.post("/api/admin/employees/e-1/pin/reset").get_json()["pin"]
    badge = client.post("/api/admin/employees/e-1/qr").get_json()["employeeQrToken"]
    missing = client.put("/api/admin/employees/e-9/pin", json={"pin": "1111"})

    assert len(pin) == 4 and pin.isdigit()
    assert badge
    assert missing.status_code == 404

    login(client, "kiosk-1", "kiosk")
    resp = client.post("/api/kiosk/auth/qr", json={"token": badge})
    assert resp.get_json()["employeeId"] == "e-1"


def test_non_string_punch_qr_token_is_an_audited_invalid_qr(client, audit):
    login(client, "u-1", "employee")

    resp = client.post("/api/timeclock/punch", json={"qr": {"token": 123}})

    assert resp.status_code == 403
    assert resp.get_json()["code"] == "INVALID_QR"
    assert audit.last.payload["reason"] == "INVALID_QR"


def test_non_string_badge_token_is_an_audited_invalid_employee_qr(client, audit):
    login(client, "kiosk-1", "kiosk")

    resp = client.post("/api/kiosk/auth/qr", json={"token": 123})

    assert resp.status_code == 403
    assert resp.get_json()["code"] == "INVALID_EMPLOYEE_QR"
    assert audit.last.action.value == "KIOSK_AUTH_FAILED"


@pytest.mark.parametrize("field", ["geofenceRadiusMeters", "maxAccuracyMeters", "geofenceLat"])
def test_admin_settings_reject_infinite_numbers(client, field):
    login(client, "admin-1", "admin")

    resp = client.put(
        "/api/admin/settings",
        data='{"%s": 1e999}' % field,
        content_type="application/json",
    )

    assert resp.status_code == 400
    assert resp.get_json()["code"] == "VALIDATION_ERROR"


def test_admin_dashboard(client, container, kiosk_actor):
    container.kiosk_punch_service.punch(kiosk_actor, "e-2")
    login(client, "admin-1", "admin")

    summary = client.get("/api/admin/dashboard/summary").get_json()
    live = client.get("/api/admin/dashboard/live?date=2026-03-10").get_json()

    assert summary["workingNow"] == 1
    assert summary["notStartedYet"] == 1
    assert [row["statusNow"] for row in live] == ["NOT_STARTED", "WORKING"]
    assert client.get("/api/admin/dashboard/summary?date=10-03-2026").status_code == 400


def test_dashboard_requires_admin(client):
    login(client, "u-1", "employee")

    assert client.get("/api/admin/dashboard/live").status_code == 403
