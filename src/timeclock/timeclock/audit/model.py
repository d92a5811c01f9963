from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..core.context import Actor, RequestMetadata
from ..core.enums import AuditAction


@dataclass(frozen=True)
class AuditEntry:
    """One audit log line.

    ``payload`` holds the diagnostic fields of the decision (reason, geo
    status, distance, accuracy, QR date...) and is stored as JSON.
    """

    company_id: str
    user_id: Optional[str]
    action: AuditAction
    entity: str
    entity_id: Optional[str] = None
    ip: Optional[str] = None
    user_agent: Optional[str] = None
    payload: Optional[dict[str, Any]] = None

    @classmethod
    def for_actor(
        cls,
        actor: Actor,
        action: AuditAction,
        entity: str,
        *,
        entity_id: Optional[str] = None,
        metadata: Optional[RequestMetadata] = None,
        payload: Optional[dict[str, Any]] = None,
    ) -> "AuditEntry":
        return cls(
            company_id=actor.company_id,
            user_id=actor.user_id,
            action=action,
            entity=entity,
            entity_id=entity_id,
            ip=metadata.ip if metadata else None,
            user_agent=metadata.user_agent if metadata else None,
            payload=payload,
        )

    def with_entity_id(self, entity_id: str) -> "AuditEntry":
        return AuditEntry(
            company_id=self.company_id,
            user_id=self.user_id,
            action=self.action,
            entity=self.entity,
            entity_id=entity_id,
            ip=self.ip,
            user_agent=self.user_agent,
            payload=self.payload,
        )

    def payload_json(self) -> Optional[str]:
        if self.payload is None:
            return None
        return json.dumps(self.payload, default=_json_default, sort_keys=True)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    raise TypeError(f"Unsupported audit payload value: {type(value)!r}")

