from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional, Sequence

from ..audit.service import AuditService
from ..common.datetime_utils import now_utc
from ..common.logging_config import get_logger
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import WebhookEventType
from ..core.exceptions import ConflictError, ValidationError
from ..employees.repository import EmployeeRepository
from ..webhooks.service import WebhookService
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = get_logger("attendance")


class AttendanceService:
    """Use case: clock employees in and out.

    "At most one open record per employee" is enforced by the repository's
    conditional writes (open_shift / close_shift), not by a read-then-write here.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        *,
        audit: Optional[AuditService] = None,
        webhooks: Optional[WebhookService] = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._attendance = attendance
        self._employees = employees
        self._audit = audit
        self._webhooks = webhooks
        self._clock = clock

    def fetch_last_attendance(self, employee_id: str) -> Optional[AttendanceRecord]:
        return self._attendance.get_last_for_employee(employee_id)

    def get_history(self, employee_id: str, *, limit: int = DEFAULT_HISTORY_LIMIT) -> Sequence[AttendanceRecord]:
        return self._attendance.list_for_employee(employee_id, limit)

    def clock_in(self, employee_id: str, business_id: str) -> AttendanceRecord:
        employee = self._employees.get_by_id(employee_id)
        if not employee or employee.business_id != business_id:
            raise ValidationError("Employé introuvable")

        now = self._clock()
        attendance_id = self._attendance.open_shift(employee_id=employee_id, business_id=business_id, clock_in=now)
        if attendance_id is None:
            raise ConflictError("Pointage d'arrivée déjà enregistré : pointez d'abord votre départ")

        record = AttendanceRecord(
            attendance_id=attendance_id,
            employee_id=employee_id,
            business_id=business_id,
            clock_in=now,
        )
        logger.info("Employee %s clocked in (attendance %s)", employee_id, attendance_id)
        self._notify("clock_in", WebhookEventType.EMPLOYEE_CLOCKED_IN, record)
        return record

    def clock_out(self, record_id: int) -> AttendanceRecord:
        record = self._attendance.get_by_id(record_id)
        if not record:
            raise ValidationError("Pointage introuvable")
        if not record.is_open:
            raise ValidationError("Départ déjà enregistré pour ce pointage")

        now = max(self._clock(), record.clock_in)
        if not self._attendance.close_shift(attendance_id=record.attendance_id, clock_out=now):
            raise ConflictError("Départ déjà enregistré pour ce pointage")

        closed = AttendanceRecord(
            attendance_id=record.attendance_id,
            employee_id=record.employee_id,
            business_id=record.business_id,
            clock_in=record.clock_in,
            clock_out=now,
        )
        logger.info("Employee %s clocked out (attendance %s)", record.employee_id, record.attendance_id)
        self._notify("clock_out", WebhookEventType.EMPLOYEE_CLOCKED_OUT, closed)
        return closed

    def _notify(self, action: str, event_type: WebhookEventType, record: AttendanceRecord) -> None:
        # Both collaborators swallow their own persistence failures.
        if self._audit:
            self._audit.log_attendance_action(
                business_id=record.business_id,
                employee_id=record.employee_id,
                action=action,
                attendance_id=record.attendance_id,
                new_values=record.to_dict(),
            )
        if self._webhooks:
            self._webhooks.send(event_type, record.to_dict())
