from __future__ import annotations

from typing import Any, Optional

from .enums import QrDisposition, ReasonCode


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced employee or record does not exist."""


class AuthorizationError(DomainError):
    """Raised when an actor lacks permission for an action."""


class BlockedAttempt(DomainError):
    """A request that was correctly denied by policy.

    Always carries one of the stable reason codes. Raised only after the
    corresponding audit entry has been written.
    """

    def __init__(self, code: ReasonCode, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = ReasonCode(code)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code.value, "message": self.message, "details": self.details}


class WorkdayClosedError(BlockedAttempt):
    def __init__(self, message: str = "Workday already closed."):
        super().__init__(ReasonCode.WORKDAY_ALREADY_CLOSED, message)


class QrTokenError(DomainError):
    """Token failed structural, signature, tenant or date checks.

    ``payload`` holds the decoded fields when the signature was valid
    (only set for EXPIRED), so callers can audit the presented date.
    """

    def __init__(self, disposition: QrDisposition, payload: Any = None):
        super().__init__(disposition.value)
        self.disposition = disposition
        self.payload = payload
