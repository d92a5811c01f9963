from __future__ import annotations

import logging
from typing import Protocol

from .model import AuditEntry

logger = logging.getLogger(__name__)


class AuditTrail(Protocol):
    """Consumed interface: append-only audit log.

    ``record`` is called synchronously before a block is raised to the
    caller. Failures are system errors and propagate unchanged.
    """

    def record(self, entry: AuditEntry) -> None:
        raise NotImplementedError


class LoggingAuditTrail:
    """Decorator that mirrors every entry to the application log."""

    def __init__(self, inner: AuditTrail):
        self._inner = inner

    def record(self, entry: AuditEntry) -> None:
        self._inner.record(entry)
        logger.debug(
            "audit company=%s user=%s action=%s entity=%s:%s payload=%s",
            entry.company_id,
            entry.user_id,
            entry.action.value,
            entry.entity,
            entry.entity_id,
            entry.payload_json(),
        )
