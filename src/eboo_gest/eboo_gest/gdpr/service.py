from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

from ..attendance.repository import AttendanceRepository
from ..audit.model import AuditFilters
from ..audit.repository import AuditRepository
from ..common.datetime_utils import now_utc
from ..common.logging_config import get_logger
from ..core.exceptions import ValidationError
from ..employees.repository import EmployeeRepository

logger = get_logger("gdpr")

EXPORT_FORMAT = "JSON"
# Lower bound for "all history" range queries (DATETIME-safe).
_EPOCH = datetime(1970, 1, 1)
_AUDIT_EXPORT_LIMIT = 10_000
_HISTORY_EXPORT_LIMIT = 10_000


class DataExportService:
    """Use case: export everything stored about an employee or a business.

    The kiosk PIN is never part of an export.
    """

    def __init__(
        self,
        employees: EmployeeRepository,
        attendance: AttendanceRepository,
        audit_logs: AuditRepository,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._employees = employees
        self._attendance = attendance
        self._audit_logs = audit_logs
        self._clock = clock

    def export_filename(self, subject_id: str) -> str:
        return f"ebo-gest-data-{subject_id}-{self._clock().strftime('%Y-%m-%d')}.json"

    def export_employee(self, business_id: str, employee_id: str) -> dict:
        employee = self._employees.get_by_id(employee_id)
        if not employee or employee.business_id != business_id:
            raise ValidationError("Employé introuvable")

        attendance = self._attendance.list_for_employee(employee_id, _HISTORY_EXPORT_LIMIT)

        # Entries the employee wrote, plus entries written about them.
        logs = {}
        for filters in (AuditFilters(actor_id=employee_id), AuditFilters(resource_id=employee_id)):
            for log in self._audit_logs.search(business_id, filters, limit=_AUDIT_EXPORT_LIMIT):
                logs[log.log_id] = log
        audit_logs = sorted(logs.values(), key=lambda x: (x.created_at, x.log_id), reverse=True)

        logger.info("Personal data export for employee %s (business %s)", employee_id, business_id)
        return {
            "employee": employee.to_public_dict(),
            "attendance": [r.to_dict() for r in attendance],
            "audit_logs": [log.to_dict() for log in audit_logs],
            "exported_at": self._clock().isoformat(),
            "format": EXPORT_FORMAT,
        }

    def export_business(self, business_id: str) -> dict:
        now = self._clock()
        employees = self._employees.list_for_business(business_id)
        attendance = self._attendance.list_for_business(business_id, start=_EPOCH, end=now + timedelta(days=1))
        audit_logs = self._audit_logs.search(business_id, AuditFilters(), limit=_AUDIT_EXPORT_LIMIT)

        logger.info("Personal data export for business %s (%d employees)", business_id, len(employees))
        return {
            "employees": [e.to_public_dict() for e in employees],
            "attendance": [r.to_dict() for r in attendance],
            "audit_logs": [log.to_dict() for log in audit_logs],
            "exported_at": now.isoformat(),
            "format": EXPORT_FORMAT,
        }
