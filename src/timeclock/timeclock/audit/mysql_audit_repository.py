from __future__ import annotations

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor
from .model import AuditEntry
from .trail import AuditTrail


def insert_audit(cur, entry: AuditEntry) -> int:
    """Insert using an open cursor so callers can share a transaction."""
    cur.execute(
        """
        INSERT INTO audit_logs (
            company_id, user_id, action, entity, entity_id, ip, user_agent, payload_json, created_at
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, UTC_TIMESTAMP(3))
        """,
        (
            entry.company_id,
            entry.user_id,
            entry.action.value,
            entry.entity,
            entry.entity_id,
            entry.ip,
            (entry.user_agent or "")[:255] or None,
            entry.payload_json(),
        ),
    )
    return int(cur.lastrowid)


class MySQLAuditRepository(AuditTrail):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def record(self, entry: AuditEntry) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            insert_audit(cur, entry)
