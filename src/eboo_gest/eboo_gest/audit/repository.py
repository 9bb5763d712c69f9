from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import AuditCategory, AuditSeverity
from .model import AuditFilters, AuditLog


class AuditRepository(Protocol):
    """Append-only store: no update or delete on purpose."""

    def append(
        self,
        *,
        business_id: str,
        actor_id: str,
        action: str,
        resource: str,
        resource_id: str,
        severity: AuditSeverity,
        category: AuditCategory,
        created_at: datetime,
        old_values: Optional[Any] = None,
        new_values: Optional[Any] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def search(self, business_id: str, filters: AuditFilters, *, limit: int) -> Sequence[AuditLog]:
        """Newest first."""
        raise NotImplementedError
