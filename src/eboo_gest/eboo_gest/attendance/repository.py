from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_last_for_employee(self, employee_id: str) -> Optional[AttendanceRecord]:
        """Most recent record by clock_in (descending, limit 1)."""
        raise NotImplementedError

    def list_for_employee(self, employee_id: str, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_business(self, business_id: str, *, start: datetime, end: datetime) -> Sequence[AttendanceRecord]:
        """Records whose clock_in falls in [start, end), oldest first."""
        raise NotImplementedError

    def open_shift(self, *, employee_id: str, business_id: str, clock_in: datetime) -> Optional[int]:
        """Create an open record unless the employee already has one.

        Must be atomic with respect to concurrent callers for the same
        employee. Returns the new id, or None when an open record exists.
        """
        raise NotImplementedError

    def close_shift(self, *, attendance_id: int, clock_out: datetime) -> bool:
        """Set clock_out only if the record is still open."""
        raise NotImplementedError
