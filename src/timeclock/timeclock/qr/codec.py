"""Signed QR tokens.

Two token kinds share one wire format: ``base64url(json(payload))`` where the
payload carries its fields plus ``sig``, an HMAC-SHA256 (base64url) over the
fields joined with ``|``.

* daily company token ``{companyId, date, sig}``: valid on one local day;
* employee token ``{companyId, employeeId, sig}``: no date, so it only stops
  working when the tenant secret is rotated.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import re
import secrets
from dataclasses import dataclass
from datetime import date
from typing import Any, Union

from ..common.datetime_utils import format_iso_date
from ..core.constants import QR_FIELD_SEPARATOR, QR_SECRET_BYTES
from ..core.enums import QrDisposition
from ..core.exceptions import QrTokenError

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class DailyQrPayload:
    company_id: str
    iso_date: str


@dataclass(frozen=True)
class EmployeeQrPayload:
    company_id: str
    employee_id: str


def generate_qr_secret() -> str:
    return secrets.token_hex(QR_SECRET_BYTES)


def _encode(value: str) -> str:
    return base64.urlsafe_b64encode(value.encode("utf-8")).rstrip(b"=").decode("ascii")


def _decode(value: str) -> str:
    padded = value + "=" * (-len(value) % 4)
    return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")


def _canonical(*fields: str) -> str:
    for field in fields:
        if QR_FIELD_SEPARATOR in field:
            raise ValueError(f"QR field may not contain {QR_FIELD_SEPARATOR!r}: {field!r}")
    return QR_FIELD_SEPARATOR.join(fields)


def _sign(data: str, secret: str) -> str:
    if not secret:
        raise ValueError("QR signing secret is not configured")
    digest = hmac.new(secret.encode("utf-8"), data.encode("utf-8"), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def _signature_matches(expected: str, actual: str) -> bool:
    # compare_digest keeps running time independent of where the strings differ
    return hmac.compare_digest(expected.encode("ascii"), actual.encode("utf-8"))


def _load(token: str, required: tuple[str, ...]) -> dict[str, str]:
    if not isinstance(token, str) or not token.strip():
        raise QrTokenError(QrDisposition.INVALID)
    try:
        parsed: Any = json.loads(_decode(token.strip()))
    except ValueError:
        raise QrTokenError(QrDisposition.INVALID)

    if not isinstance(parsed, dict):
        raise QrTokenError(QrDisposition.INVALID)
    for key in required:
        value = parsed.get(key)
        if not isinstance(value, str) or not value:
            raise QrTokenError(QrDisposition.INVALID)
    return {key: parsed[key] for key in required}


def build_daily_qr_token(company_id: str, iso_date: Union[str, date], secret: str) -> str:
    if isinstance(iso_date, date):
        iso_date = format_iso_date(iso_date)
    sig = _sign(_canonical(company_id, iso_date), secret)
    return _encode(json.dumps({"companyId": company_id, "date": iso_date, "sig": sig}, separators=(",", ":")))


def parse_and_verify_daily_qr_token(token: str, secret: str) -> DailyQrPayload:
    """Check structure and signature only. Tenant and date are the caller's."""
    fields = _load(token, ("companyId", "date", "sig"))
    if not _ISO_DATE.match(fields["date"]):
        raise QrTokenError(QrDisposition.INVALID)

    try:
        expected = _sign(_canonical(fields["companyId"], fields["date"]), secret)
    except ValueError as exc:
        if not secret:
            raise
        raise QrTokenError(QrDisposition.INVALID) from exc
    if not _signature_matches(expected, fields["sig"]):
        raise QrTokenError(QrDisposition.INVALID)

    return DailyQrPayload(company_id=fields["companyId"], iso_date=fields["date"])


def verify_daily_qr_token(token: str, secret: str, *, company_id: str, today: Union[str, date]) -> DailyQrPayload:
    payload = parse_and_verify_daily_qr_token(token, secret)
    if payload.company_id != company_id:
        raise QrTokenError(QrDisposition.INVALID)

    expected_date = format_iso_date(today) if isinstance(today, date) else today
    if payload.iso_date != expected_date:
        raise QrTokenError(QrDisposition.EXPIRED, payload)
    return payload


def build_employee_qr_token(company_id: str, employee_id: str, secret: str) -> str:
    sig = _sign(_canonical(company_id, employee_id), secret)
    return _encode(json.dumps({"companyId": company_id, "employeeId": employee_id, "sig": sig}, separators=(",", ":")))


def parse_and_verify_employee_qr_token(token: str, secret: str) -> EmployeeQrPayload:
    fields = _load(token, ("companyId", "employeeId", "sig"))

    try:
        expected = _sign(_canonical(fields["companyId"], fields["employeeId"]), secret)
    except ValueError as exc:
        if not secret:
            raise
        raise QrTokenError(QrDisposition.INVALID) from exc
    if not _signature_matches(expected, fields["sig"]):
        raise QrTokenError(QrDisposition.INVALID)

    return EmployeeQrPayload(company_id=fields["companyId"], employee_id=fields["employeeId"])


def verify_employee_qr_token(token: str, secret: str, *, company_id: str) -> EmployeeQrPayload:
    payload = parse_and_verify_employee_qr_token(token, secret)
    if payload.company_id != company_id:
        raise QrTokenError(QrDisposition.INVALID)
    return payload
