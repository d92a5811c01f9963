from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Session roles used for authorization in the HTTP layer."""

    ADMIN = "admin"
    EMPLOYEE = "employee"
    KIOSK = "kiosk"


class FallbackMode(str, Enum):
    """Tenant policy: may a QR code substitute for geolocation?"""

    GEO_ONLY = "GEO_ONLY"
    GEO_OR_QR = "GEO_OR_QR"
    QR_ONLY = "QR_ONLY"

    @classmethod
    def normalize(cls, value: str | None) -> "FallbackMode":
        """Unknown or empty stored values fall back to GEO_OR_QR."""
        try:
            return cls(value)
        except ValueError:
            return cls.GEO_OR_QR


class PunchMethod(str, Enum):
    GEO = "GEO"
    QR = "QR"
    KIOSK = "KIOSK"


class PunchSource(str, Enum):
    PWA = "PWA"
    KIOSK = "KIOSK"


class GeoStatus(str, Enum):
    OK = "OK"
    MISSING = "MISSING"
    OUTSIDE = "OUTSIDE"
    LOW_ACCURACY = "LOW_ACCURACY"


class EventType(str, Enum):
    """Event types of a workday, in the only order they may occur."""

    IN = "IN"
    BREAK_START = "BREAK_START"
    BREAK_END = "BREAK_END"
    OUT = "OUT"


class ReasonCode(str, Enum):
    """Stable block reasons consumed by the HTTP boundary."""

    GEO_REQUIRED = "GEO_REQUIRED"
    LOW_ACCURACY = "LOW_ACCURACY"
    OUTSIDE_GEOFENCE = "OUTSIDE_GEOFENCE"
    GEO_FAILED_QR_REQUIRED = "GEO_FAILED_QR_REQUIRED"
    INVALID_QR = "INVALID_QR"
    QR_DISABLED = "QR_DISABLED"
    QR_EXPIRED = "QR_EXPIRED"
    PIN_INVALID = "PIN_INVALID"
    PIN_LOCKED = "PIN_LOCKED"
    INVALID_EMPLOYEE_QR = "INVALID_EMPLOYEE_QR"
    WORKDAY_ALREADY_CLOSED = "WORKDAY_ALREADY_CLOSED"
    EMPLOYEE_NOT_FOUND = "EMPLOYEE_NOT_FOUND"


class QrDisposition(str, Enum):
    VALID = "VALID"
    INVALID = "INVALID"
    EXPIRED = "EXPIRED"


class LockScope(str, Enum):
    DEVICE = "DEVICE"
    EMPLOYEE = "EMPLOYEE"


class KioskAuthMethod(str, Enum):
    PIN = "PIN"
    EMPLOYEE_QR = "EMPLOYEE_QR"


class AuditAction(str, Enum):
    TIMECLOCK_PUNCH = "TIMECLOCK_PUNCH"
    TIMECLOCK_PUNCH_BLOCKED = "TIMECLOCK_PUNCH_BLOCKED"
    KIOSK_AUTH_SUCCESS = "KIOSK_AUTH_SUCCESS"
    KIOSK_AUTH_FAILED = "KIOSK_AUTH_FAILED"
    KIOSK_PUNCH = "KIOSK_PUNCH"
    KIOSK_PUNCH_BLOCKED = "KIOSK_PUNCH_BLOCKED"
    ADMIN_SET_PIN = "ADMIN_SET_PIN"
    ADMIN_RESET_PIN = "ADMIN_RESET_PIN"
    EMPLOYEE_QR_REGENERATED = "EMPLOYEE_QR_REGENERATED"
    QR_SECRET_ROTATED = "QR_SECRET_ROTATED"


class WorkStatus(str, Enum):
    """What an employee is doing after their latest event."""

    WORKING = "WORKING"
    ON_BREAK = "ON_BREAK"
    OFF = "OFF"
    NOT_STARTED = "NOT_STARTED"
