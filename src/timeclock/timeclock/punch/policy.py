"""Punch authorization: which method, if any, may record this punch.

The fallback rules are data, not nested conditionals::

    mode        geo outcome        step
    ----------  -----------------  ---------------
    QR_ONLY     (not evaluated)    REQUIRE_QR
    GEO_ONLY    ACCEPTED           SUCCEED_BY_GEO
    GEO_ONLY    any block          TERMINAL_BLOCK
    GEO_OR_QR   ACCEPTED           SUCCEED_BY_GEO
    GEO_OR_QR   GEO_REQUIRED       FALL_BACK_TO_QR
    GEO_OR_QR   LOW_ACCURACY       FALL_BACK_TO_QR
    GEO_OR_QR   OUTSIDE_GEOFENCE   TERMINAL_BLOCK

Being outside the perimeter is never waived by a QR code: QR only stands in
for a location that could not be evaluated.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Optional, Union

from ..audit.model import AuditEntry
from ..audit.trail import AuditTrail
from ..common.datetime_utils import format_iso_date
from ..core.context import Actor, RequestMetadata
from ..core.enums import AuditAction, FallbackMode, GeoStatus, PunchMethod, QrDisposition, ReasonCode
from ..core.exceptions import BlockedAttempt, QrTokenError
from ..core.messages import BLOCK_MESSAGES
from ..geo.evaluator import evaluate_geo
from ..geo.model import EMPTY_GEO_DECISION, GeoDecision, GeoPolicy, GeoReading
from ..qr.codec import verify_daily_qr_token

logger = logging.getLogger(__name__)


class GeoOutcome(str, Enum):
    ACCEPTED = "ACCEPTED"
    GEO_REQUIRED = "GEO_REQUIRED"
    LOW_ACCURACY = "LOW_ACCURACY"
    OUTSIDE_GEOFENCE = "OUTSIDE_GEOFENCE"


class PunchStep(str, Enum):
    SUCCEED_BY_GEO = "SUCCEED_BY_GEO"
    FALL_BACK_TO_QR = "FALL_BACK_TO_QR"
    TERMINAL_BLOCK = "TERMINAL_BLOCK"
    REQUIRE_QR = "REQUIRE_QR"


FALLBACK_TABLE: dict[tuple[FallbackMode, GeoOutcome], PunchStep] = {
    (FallbackMode.GEO_ONLY, GeoOutcome.ACCEPTED): PunchStep.SUCCEED_BY_GEO,
    (FallbackMode.GEO_ONLY, GeoOutcome.GEO_REQUIRED): PunchStep.TERMINAL_BLOCK,
    (FallbackMode.GEO_ONLY, GeoOutcome.LOW_ACCURACY): PunchStep.TERMINAL_BLOCK,
    (FallbackMode.GEO_ONLY, GeoOutcome.OUTSIDE_GEOFENCE): PunchStep.TERMINAL_BLOCK,
    (FallbackMode.GEO_OR_QR, GeoOutcome.ACCEPTED): PunchStep.SUCCEED_BY_GEO,
    (FallbackMode.GEO_OR_QR, GeoOutcome.GEO_REQUIRED): PunchStep.FALL_BACK_TO_QR,
    (FallbackMode.GEO_OR_QR, GeoOutcome.LOW_ACCURACY): PunchStep.FALL_BACK_TO_QR,
    (FallbackMode.GEO_OR_QR, GeoOutcome.OUTSIDE_GEOFENCE): PunchStep.TERMINAL_BLOCK,
}


def geo_outcome(decision: GeoDecision) -> GeoOutcome:
    if not decision.blocked:
        return GeoOutcome.ACCEPTED
    return GeoOutcome(decision.code.value)


def plan_punch(mode: FallbackMode, outcome: Optional[GeoOutcome]) -> PunchStep:
    """Look up the step for a mode; QR_ONLY never consults geo."""
    if mode == FallbackMode.QR_ONLY:
        return PunchStep.REQUIRE_QR
    if outcome is None:
        raise ValueError(f"{mode.value} requires a geo outcome")
    return FALLBACK_TABLE[(mode, outcome)]


@dataclass(frozen=True)
class PunchResolution:
    method: PunchMethod
    geo_decision: GeoDecision
    qr_date: Optional[str] = None

    @property
    def geo_status(self) -> GeoStatus:
        return self.geo_decision.geo_status

    @property
    def distance_meters(self) -> Optional[int]:
        return self.geo_decision.distance_meters


class FallbackPolicyResolver:
    """Resolve a browser punch attempt to GEO or QR, or block it.

    Every block is written to the audit trail before ``BlockedAttempt``
    leaves this class.
    """

    def __init__(self, audit: AuditTrail):
        self._audit = audit

    def resolve_punch(
        self,
        policy: GeoPolicy,
        reading: Optional[GeoReading],
        qr_token: Optional[str],
        today: Union[date, str],
        *,
        actor: Actor,
        metadata: Optional[RequestMetadata] = None,
    ) -> PunchResolution:
        today_iso = format_iso_date(today) if isinstance(today, date) else today
        if isinstance(qr_token, str):
            qr_token = qr_token.strip() or None
        elif not qr_token:
            qr_token = None
        mode = FallbackMode.normalize(policy.fallback_mode)

        if mode == FallbackMode.QR_ONLY:
            qr_date = self._require_qr(policy, qr_token, today_iso, actor, metadata)
            return PunchResolution(method=PunchMethod.QR, geo_decision=EMPTY_GEO_DECISION, qr_date=qr_date)

        decision = evaluate_geo(policy, reading)
        step = plan_punch(mode, geo_outcome(decision))

        if step == PunchStep.SUCCEED_BY_GEO:
            return PunchResolution(method=PunchMethod.GEO, geo_decision=decision)

        if step == PunchStep.TERMINAL_BLOCK:
            self._block(
                actor,
                metadata,
                decision.code,
                decision.message,
                details=decision.details,
                method_attempted=PunchMethod.GEO,
                geo_decision=decision,
            )

        if not policy.qr_enabled:
            self._block(actor, metadata, ReasonCode.QR_DISABLED, method_attempted=PunchMethod.QR)

        if qr_token is None:
            self._block(
                actor,
                metadata,
                ReasonCode.GEO_FAILED_QR_REQUIRED,
                method_attempted=PunchMethod.GEO,
                geo_decision=decision,
            )

        qr_date = self._verify_qr(policy, qr_token, today_iso, actor, metadata)
        return PunchResolution(method=PunchMethod.QR, geo_decision=EMPTY_GEO_DECISION, qr_date=qr_date)

    def _require_qr(
        self,
        policy: GeoPolicy,
        qr_token: Optional[str],
        today_iso: str,
        actor: Actor,
        metadata: Optional[RequestMetadata],
    ) -> str:
        if not policy.qr_enabled:
            self._block(actor, metadata, ReasonCode.QR_DISABLED, method_attempted=PunchMethod.QR)
        return self._verify_qr(policy, qr_token, today_iso, actor, metadata)

    def _verify_qr(
        self,
        policy: GeoPolicy,
        qr_token: Optional[str],
        today_iso: str,
        actor: Actor,
        metadata: Optional[RequestMetadata],
    ) -> str:
        if qr_token is None or not policy.qr_signing_secret:
            self._block(actor, metadata, ReasonCode.INVALID_QR, method_attempted=PunchMethod.QR)

        try:
            payload = verify_daily_qr_token(
                qr_token,
                policy.qr_signing_secret,
                company_id=actor.company_id,
                today=today_iso,
            )
        except QrTokenError as exc:
            if exc.disposition == QrDisposition.EXPIRED:
                self._block(
                    actor,
                    metadata,
                    ReasonCode.QR_EXPIRED,
                    method_attempted=PunchMethod.QR,
                    qr_date=exc.payload.iso_date,
                    qr_disposition=exc.disposition,
                )
            self._block(
                actor,
                metadata,
                ReasonCode.INVALID_QR,
                method_attempted=PunchMethod.QR,
                qr_disposition=exc.disposition,
            )
        return payload.iso_date

    def _block(
        self,
        actor: Actor,
        metadata: Optional[RequestMetadata],
        code: ReasonCode,
        message: Optional[str] = None,
        *,
        details: Optional[dict[str, Any]] = None,
        method_attempted: PunchMethod,
        geo_decision: Optional[GeoDecision] = None,
        qr_date: Optional[str] = None,
        qr_disposition: Optional[QrDisposition] = None,
    ):
        reading = geo_decision.reading if geo_decision else None
        radius = details.get("radiusMeters") if details else None
        self._audit.record(
            AuditEntry.for_actor(
                actor,
                AuditAction.TIMECLOCK_PUNCH_BLOCKED,
                "TimeClockEvent",
                metadata=metadata,
                payload={
                    "reason": code.value,
                    "methodAttempted": method_attempted.value,
                    "geoStatus": geo_decision.geo_status.value if geo_decision else None,
                    "distanceMeters": geo_decision.distance_meters if geo_decision else None,
                    "radiusMeters": radius,
                    "accuracy": reading.accuracy_meters if reading else None,
                    "qrDate": qr_date,
                    "qrDisposition": qr_disposition.value if qr_disposition else None,
                },
            )
        )
        logger.info("punch blocked company=%s user=%s reason=%s", actor.company_id, actor.user_id, code.value)
        raise BlockedAttempt(code, message or BLOCK_MESSAGES[code], details)
