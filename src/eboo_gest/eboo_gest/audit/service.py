from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..common.logging_config import get_logger
from ..core.enums import AuditCategory, AuditSeverity
from ..core.exceptions import PersistenceError
from .model import AuditFilters, AuditLog
from .repository import AuditRepository

logger = get_logger("audit")


class AuditService:
    """Use case: keep an append-only trail of who did what.

    Writing the trail must never break the audited action: a failed append is
    logged and dropped.
    """

    def __init__(self, logs: AuditRepository, *, clock: Callable[[], datetime] = now_utc):
        self._logs = logs
        self._clock = clock

    def log_action(
        self,
        *,
        business_id: str,
        actor_id: str,
        action: str,
        resource: str,
        resource_id: str,
        old_values: Optional[Any] = None,
        new_values: Optional[Any] = None,
        severity: AuditSeverity = AuditSeverity.MEDIUM,
        category: AuditCategory = AuditCategory.DATA,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[int]:
        try:
            return self._logs.append(
                business_id=business_id,
                actor_id=actor_id,
                action=action,
                resource=resource,
                resource_id=resource_id,
                severity=severity,
                category=category,
                created_at=self._clock(),
                old_values=old_values,
                new_values=new_values,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        except PersistenceError as e:
            logger.error("Audit log append failed (%s on %s/%s): %s", action, resource, resource_id, e)
            return None

    def log_employee_action(
        self,
        *,
        business_id: str,
        actor_id: str,
        action: str,
        employee_id: str,
        old_values: Optional[dict] = None,
        new_values: Optional[dict] = None,
    ) -> Optional[int]:
        return self.log_action(
            business_id=business_id,
            actor_id=actor_id,
            action=action,
            resource="employee",
            resource_id=employee_id,
            old_values=old_values,
            new_values=new_values,
            severity=AuditSeverity.MEDIUM,
            category=AuditCategory.DATA,
        )

    def log_attendance_action(
        self,
        *,
        business_id: str,
        employee_id: str,
        action: str,
        attendance_id: int,
        new_values: Optional[dict] = None,
    ) -> Optional[int]:
        return self.log_action(
            business_id=business_id,
            actor_id=employee_id,
            action=action,
            resource="attendance",
            resource_id=str(attendance_id),
            new_values=new_values,
            severity=AuditSeverity.MEDIUM,
            category=AuditCategory.BUSINESS,
        )

    def log_security_action(
        self,
        *,
        business_id: str,
        actor_id: str,
        action: str,
        resource_id: str,
        severity: AuditSeverity = AuditSeverity.HIGH,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[int]:
        return self.log_action(
            business_id=business_id,
            actor_id=actor_id,
            action=action,
            resource="security",
            resource_id=resource_id,
            severity=severity,
            category=AuditCategory.SECURITY,
            ip_address=ip_address,
            user_agent=user_agent,
        )

    def fetch_logs(self, business_id: str, filters: Optional[AuditFilters] = None, *, limit: int = 200) -> Sequence[AuditLog]:
        return self._logs.search(business_id, filters or AuditFilters(), limit=limit)
