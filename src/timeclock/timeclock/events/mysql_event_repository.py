from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..audit.model import AuditEntry
from ..audit.mysql_audit_repository import insert_audit
from ..core.enums import EventType, GeoStatus, PunchMethod, PunchSource
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import NewTimeClockEvent, TimeClockEvent
from .repository import EventRepository

EVENT_COLUMNS = """
    event_id, company_id, employee_id, event_type, occurred_at, source,
    punch_method, geo_status, geo_distance_meters, qr_date
"""


def row_to_event(r: Dict[str, Any]) -> TimeClockEvent:
    return TimeClockEvent(
        event_id=int(r["event_id"]),
        company_id=str(r["company_id"]),
        employee_id=str(r["employee_id"]),
        event_type=EventType(r["event_type"]),
        occurred_at=from_db_datetime(r["occurred_at"]),
        source=PunchSource(r["source"]),
        punch_method=PunchMethod(r["punch_method"]),
        geo_status=GeoStatus(r["geo_status"]),
        geo_distance_meters=r.get("geo_distance_meters"),
        qr_date=r.get("qr_date"),
    )


class MySQLEventRepository(EventRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_last_between(self, company_id: str, employee_id: str, start: datetime, end: datetime) -> Optional[TimeClockEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {EVENT_COLUMNS}
                FROM time_clock_events
                WHERE company_id=%s AND employee_id=%s AND occurred_at >= %s AND occurred_at < %s
                ORDER BY occurred_at DESC, event_id DESC
                LIMIT 1
                """,
                (company_id, employee_id, to_db_datetime(start), to_db_datetime(end)),
            )
            r = fetchone(cur)
            return row_to_event(r) if r else None

    def list_between(self, company_id: str, employee_id: str, start: datetime, end: datetime) -> Sequence[TimeClockEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {EVENT_COLUMNS}
                FROM time_clock_events
                WHERE company_id=%s AND employee_id=%s AND occurred_at >= %s AND occurred_at < %s
                ORDER BY occurred_at ASC, event_id ASC
                """,
                (company_id, employee_id, to_db_datetime(start), to_db_datetime(end)),
            )
            return [row_to_event(r) for r in fetchall(cur)]

    def create_with_audit(self, event: NewTimeClockEvent, audit: AuditEntry) -> TimeClockEvent:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO time_clock_events (
                    company_id, employee_id, event_type, occurred_at, source, punch_method,
                    device_id, ip, user_agent, latitude, longitude, accuracy, geo_captured_at,
                    geo_distance_meters, geo_status, qr_date
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                """,
                (
                    event.company_id,
                    event.employee_id,
                    event.event_type.value,
                    to_db_datetime(event.occurred_at),
                    event.source.value,
                    event.punch_method.value,
                    event.device_id,
                    event.ip,
                    (event.user_agent or "")[:255] or None,
                    event.latitude,
                    event.longitude,
                    event.accuracy,
                    to_db_datetime(event.geo_captured_at),
                    event.geo_distance_meters,
                    event.geo_status.value,
                    event.qr_date,
                ),
            )
            event_id = int(cur.lastrowid)
            insert_audit(cur, audit.with_entity_id(str(event_id)))

        return TimeClockEvent(
            event_id=event_id,
            company_id=event.company_id,
            employee_id=event.employee_id,
            event_type=event.event_type,
            occurred_at=event.occurred_at,
            source=event.source,
            punch_method=event.punch_method,
            geo_status=event.geo_status,
            geo_distance_meters=event.geo_distance_meters,
            qr_date=event.qr_date,
        )
