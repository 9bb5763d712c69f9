from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..core.enums import AuditCategory, AuditSeverity


@dataclass(frozen=True)
class AuditLog:
    """Entrée du journal d'audit (écrite une fois, jamais modifiée)."""

    log_id: int
    business_id: str
    actor_id: str
    action: str
    resource: str
    resource_id: str
    severity: AuditSeverity
    category: AuditCategory
    created_at: datetime
    old_values: Optional[Any] = None
    new_values: Optional[Any] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.log_id,
            "business_id": self.business_id,
            "actor_id": self.actor_id,
            "action": self.action,
            "resource": self.resource,
            "resource_id": self.resource_id,
            "old_values": self.old_values,
            "new_values": self.new_values,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "severity": self.severity.value,
            "category": self.category.value,
            "timestamp": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class AuditFilters:
    actor_id: Optional[str] = None
    action: Optional[str] = None
    resource: Optional[str] = None
    resource_id: Optional[str] = None
    severity: Optional[AuditSeverity] = None
    category: Optional[AuditCategory] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
