from __future__ import annotations

from datetime import datetime
from typing import Dict, Sequence

from ..core.enums import AuditAction
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, to_db_datetime
from ..employees.model import Employee
from ..employees.mysql_employee_repository import EMPLOYEE_COLUMNS, row_to_employee
from ..events.model import TimeClockEvent
from ..events.mysql_event_repository import EVENT_COLUMNS, row_to_event
from .repository import DashboardRepository


class MySQLDashboardRepository(DashboardRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_active_employees(self, company_id: str) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {EMPLOYEE_COLUMNS}
                FROM employees
                WHERE company_id=%s AND is_active=1
                ORDER BY full_name ASC, employee_id ASC
                """,
                (company_id,),
            )
            return [row_to_employee(r) for r in fetchall(cur)]

    def last_events_between(self, company_id: str, start: datetime, end: datetime) -> Dict[str, TimeClockEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {EVENT_COLUMNS}
                FROM (
                    SELECT e.*,
                           ROW_NUMBER() OVER (
                               PARTITION BY employee_id ORDER BY occurred_at DESC, event_id DESC
                           ) AS rn
                    FROM time_clock_events e
                    WHERE company_id=%s AND occurred_at >= %s AND occurred_at < %s
                ) ranked
                WHERE rn = 1
                """,
                (company_id, to_db_datetime(start), to_db_datetime(end)),
            )
            events = [row_to_event(r) for r in fetchall(cur)]
            return {e.employee_id: e for e in events}

    def count_blocked_punches(self, company_id: str, start: datetime, end: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total
                FROM audit_logs
                WHERE company_id=%s AND action=%s AND created_at >= %s AND created_at < %s
                """,
                (company_id, AuditAction.TIMECLOCK_PUNCH_BLOCKED.value, to_db_datetime(start), to_db_datetime(end)),
            )
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    def count_blocked_punches_by_user(self, company_id: str, start: datetime, end: datetime) -> Dict[str, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT user_id, COUNT(*) AS total
                FROM audit_logs
                WHERE company_id=%s AND action=%s AND user_id IS NOT NULL
                  AND created_at >= %s AND created_at < %s
                GROUP BY user_id
                """,
                (company_id, AuditAction.TIMECLOCK_PUNCH_BLOCKED.value, to_db_datetime(start), to_db_datetime(end)),
            )
            return {str(r["user_id"]): int(r["total"]) for r in fetchall(cur)}
