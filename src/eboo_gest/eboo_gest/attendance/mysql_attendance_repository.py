from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AttendanceRecord
from .repository import AttendanceRepository

_COLUMNS = "attendance_id, employee_id, business_id, clock_in, clock_out"


def _to_record(r: dict) -> AttendanceRecord:
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        employee_id=str(r["employee_id"]),
        business_id=str(r["business_id"]),
        clock_in=r["clock_in"],
        clock_out=r.get("clock_out"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance WHERE attendance_id=%s", (int(attendance_id),))
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_last_for_employee(self, employee_id: str) -> Optional[AttendanceRecord]:
        rows = self.list_for_employee(employee_id, 1)
        return rows[0] if rows else None

    def list_for_employee(self, employee_id: str, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE employee_id=%s
                ORDER BY clock_in DESC
                LIMIT %s
                """,
                (employee_id, int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_business(self, business_id: str, *, start: datetime, end: datetime) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance
                WHERE business_id=%s AND clock_in>=%s AND clock_in<%s
                ORDER BY clock_in ASC
                """,
                (business_id, start, end),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def open_shift(self, *, employee_id: str, business_id: str, clock_in: datetime) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock on the employee serializes concurrent clock-ins (two kiosk tabs).
            cur.execute("SELECT employee_id FROM employees WHERE employee_id=%s FOR UPDATE", (employee_id,))
            if not fetchone(cur):
                return None
            cur.execute(
                "SELECT attendance_id FROM attendance WHERE employee_id=%s AND clock_out IS NULL LIMIT 1",
                (employee_id,),
            )
            if fetchone(cur):
                return None
            cur.execute(
                """
                INSERT INTO attendance(employee_id, business_id, clock_in, clock_out)
                VALUES(%s,%s,%s,NULL)
                """,
                (employee_id, business_id, clock_in),
            )
            return int(cur.lastrowid)

    def close_shift(self, *, attendance_id: int, clock_out: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance
                SET clock_out=%s
                WHERE attendance_id=%s AND clock_out IS NULL
                """,
                (clock_out, int(attendance_id)),
            )
            return cur.rowcount > 0
