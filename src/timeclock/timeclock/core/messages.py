"""User-facing messages for each block reason."""

from .enums import ReasonCode

BLOCK_MESSAGES: dict[ReasonCode, str] = {
    ReasonCode.OUTSIDE_GEOFENCE: "You are outside the company area. Be on site to record your punch.",
    ReasonCode.GEO_REQUIRED: "Location is required to record your punch.",
    ReasonCode.LOW_ACCURACY: "Your location could not be confirmed precisely. Enable GPS and try again.",
    ReasonCode.GEO_FAILED_QR_REQUIRED: "Your location could not be obtained. Scan the company QR code to record your punch.",
    ReasonCode.INVALID_QR: "Invalid QR code. Scan the company QR code again.",
    ReasonCode.QR_DISABLED: "QR code punches are disabled for this company.",
    ReasonCode.QR_EXPIRED: "Expired QR code. Scan today's QR code.",
    ReasonCode.PIN_INVALID: "Incorrect PIN.",
    ReasonCode.INVALID_EMPLOYEE_QR: "Invalid employee QR code.",
    ReasonCode.WORKDAY_ALREADY_CLOSED: "Workday already closed.",
}


def pin_locked_message(retry_after_seconds: int) -> str:
    return f"Too many attempts. Try again in {retry_after_seconds}s."
