from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import Employee
from .repository import EmployeeRepository

EMPLOYEE_COLUMNS = """
    employee_id, company_id, user_id, full_name, email, is_active,
    pin_hash, pin_failed_attempts, pin_locked_until
"""


def row_to_employee(r: Dict[str, Any]) -> Employee:
    return Employee(
        employee_id=str(r["employee_id"]),
        company_id=str(r["company_id"]),
        user_id=str(r["user_id"]),
        full_name=r["full_name"],
        email=r["email"],
        is_active=bool(r["is_active"]),
        pin_hash=r.get("pin_hash"),
        pin_failed_attempts=int(r.get("pin_failed_attempts") or 0),
        pin_locked_until=from_db_datetime(r.get("pin_locked_until")),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, company_id: str, employee_id: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {EMPLOYEE_COLUMNS} FROM employees WHERE company_id=%s AND employee_id=%s",
                (company_id, employee_id),
            )
            r = fetchone(cur)
            return row_to_employee(r) if r else None

    def get_by_user_id(self, company_id: str, user_id: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {EMPLOYEE_COLUMNS} FROM employees WHERE company_id=%s AND user_id=%s",
                (company_id, user_id),
            )
            r = fetchone(cur)
            return row_to_employee(r) if r else None

    def list_pin_candidates(self, company_id: str) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {EMPLOYEE_COLUMNS}
                FROM employees
                WHERE company_id=%s AND is_active=1 AND pin_hash IS NOT NULL AND pin_hash <> ''
                ORDER BY employee_id
                """,
                (company_id,),
            )
            return [row_to_employee(r) for r in fetchall(cur)]

    def reset_pin_lock(self, employee_id: str) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employees SET pin_failed_attempts=0, pin_locked_until=NULL WHERE employee_id=%s",
                (employee_id,),
            )

    def set_pin_hash(self, employee_id: str, *, pin_hash: str, updated_at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE employees
                SET pin_hash=%s, pin_updated_at=%s, pin_failed_attempts=0, pin_locked_until=NULL
                WHERE employee_id=%s
                """,
                (pin_hash, to_db_datetime(updated_at), employee_id),
            )
