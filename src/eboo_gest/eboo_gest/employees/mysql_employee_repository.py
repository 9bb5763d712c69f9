from __future__ import annotations

import uuid
from typing import Optional, Sequence

import mysql.connector

from ..common.datetime_utils import now_utc
from ..core.enums import EmployeeRole
from ..core.exceptions import ConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Employee
from .repository import EmployeeRepository

_COLUMNS = "employee_id, business_id, full_name, role, pin_code, email, phone, created_at"


def _to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=str(r["employee_id"]),
        business_id=str(r["business_id"]),
        full_name=r["full_name"],
        role=EmployeeRole(r["role"]),
        pin_code=str(r["pin_code"]),
        email=r.get("email"),
        phone=r.get("phone"),
        created_at=r.get("created_at"),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_id=%s", (employee_id,))
            r = fetchone(cur)
            return _to_employee(r) if r else None

    def find_by_pin(self, business_id: str, pin_code: str) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM employees
                WHERE business_id=%s AND pin_code=%s
                ORDER BY created_at ASC
                """,
                (business_id, pin_code),
            )
            return [_to_employee(r) for r in fetchall(cur)]

    def list_for_business(self, business_id: str) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE business_id=%s ORDER BY full_name ASC",
                (business_id,),
            )
            return [_to_employee(r) for r in fetchall(cur)]

    def create(
        self,
        *,
        business_id: str,
        full_name: str,
        role: EmployeeRole,
        pin_code: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> str:
        employee_id = str(uuid.uuid4())
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    f"""
                    INSERT INTO employees({_COLUMNS})
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (employee_id, business_id, full_name, role.value, pin_code, email, phone, now_utc()),
                )
            except mysql.connector.IntegrityError as e:
                raise ConflictError("Ce code PIN est déjà utilisé par un autre employé.") from e
        return employee_id

    def update(
        self,
        employee_id: str,
        *,
        full_name: str,
        role: EmployeeRole,
        pin_code: str,
        email: Optional[str],
        phone: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            try:
                cur.execute(
                    """
                    UPDATE employees
                    SET full_name=%s, role=%s, pin_code=%s, email=%s, phone=%s
                    WHERE employee_id=%s
                    """,
                    (full_name, role.value, pin_code, email, phone, employee_id),
                )
            except mysql.connector.IntegrityError as e:
                raise ConflictError("Ce code PIN est déjà utilisé par un autre employé.") from e
            return cur.rowcount > 0

    def delete(self, employee_id: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM employees WHERE employee_id=%s", (employee_id,))
            return cur.rowcount > 0
