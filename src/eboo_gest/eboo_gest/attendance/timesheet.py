from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from ..common.datetime_utils import format_minutes
from ..core.constants import DEFAULT_REPORT_UTC_OFFSET_MINUTES
from ..employees.repository import EmployeeRepository
from .repository import AttendanceRepository

TIMESHEET_FIELDS = [
    "work_date",
    "employee_id",
    "full_name",
    "clock_in",
    "clock_out",
    "worked_hours",
]


@dataclass(frozen=True)
class TimesheetData:
    rows: list[dict]
    summary: list[dict]


class TimesheetService:
    """Clock times are stored in UTC; report days and hours use the business offset."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        *,
        utc_offset_minutes: int = DEFAULT_REPORT_UTC_OFFSET_MINUTES,
    ):
        self._attendance = attendance
        self._employees = employees
        self._offset = timedelta(minutes=utc_offset_minutes)

    def build_timesheet(self, *, business_id: str, start: date, end: date) -> TimesheetData:
        """Rows for shifts started between start and end (local days, both inclusive)."""

        records = self._attendance.list_for_business(
            business_id,
            start=datetime.combine(start, time.min) - self._offset,
            end=datetime.combine(end + timedelta(days=1), time.min) - self._offset,
        )
        names = {e.employee_id: e.full_name for e in self._employees.list_for_business(business_id)}

        rows: list[dict] = []
        totals: dict[str, int] = {}
        for r in records:
            minutes = r.worked_minutes()
            local_in = r.clock_in + self._offset
            local_out = r.clock_out + self._offset if r.clock_out else None
            rows.append(
                {
                    "work_date": local_in.strftime("%Y-%m-%d"),
                    "employee_id": r.employee_id,
                    "full_name": names.get(r.employee_id, "-"),
                    "clock_in": local_in.strftime("%H:%M"),
                    "clock_out": local_out.strftime("%H:%M") if local_out else "-",
                    "worked_hours": format_minutes(minutes),
                }
            )
            totals[r.employee_id] = totals.get(r.employee_id, 0) + minutes

        summary = [
            {
                "employee_id": employee_id,
                "full_name": names.get(employee_id, "-"),
                "total_minutes": minutes,
                "total_hours": format_minutes(minutes),
            }
            for employee_id, minutes in totals.items()
        ]
        summary.sort(key=lambda x: x["total_minutes"], reverse=True)
        return TimesheetData(rows=rows, summary=summary)
