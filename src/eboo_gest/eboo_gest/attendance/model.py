from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class AttendanceRecord:
    """Entité métier : pointage d'un employé.

    Open (employee on shift) while clock_out is None.
    """

    attendance_id: int
    employee_id: str
    business_id: str
    clock_in: datetime
    clock_out: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.clock_out is None

    def worked_minutes(self) -> int:
        if self.clock_out is None:
            return 0
        return max(0, int((self.clock_out - self.clock_in).total_seconds() // 60))

    def to_dict(self) -> dict:
        return {
            "id": self.attendance_id,
            "employee_id": self.employee_id,
            "business_id": self.business_id,
            "clock_in": self.clock_in.isoformat(),
            "clock_out": self.clock_out.isoformat() if self.clock_out else None,
        }
