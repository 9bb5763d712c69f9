from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..core.enums import AuditCategory, AuditSeverity
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, load_json
from .model import AuditFilters, AuditLog
from .repository import AuditRepository


class MySQLAuditRepository(AuditRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO audit_logs(
                    business_id, actor_id, action, resource, resource_id,
                    old_values, new_values, ip_address, user_agent,
                    severity, category, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    business_id,
                    actor_id,
                    action,
                    resource,
                    resource_id,
                    dump_json(old_values),
                    dump_json(new_values),
                    ip_address,
                    (user_agent or "")[:255] or None,
                    severity.value,
                    category.value,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def search(self, business_id: str, filters: AuditFilters, *, limit: int) -> Sequence[AuditLog]:
        where = ["business_id=%s"]
        params: list[Any] = [business_id]

        for column, value in (
            ("actor_id", filters.actor_id),
            ("action", filters.action),
            ("resource", filters.resource),
            ("resource_id", filters.resource_id),
            ("severity", filters.severity.value if filters.severity else None),
            ("category", filters.category.value if filters.category else None),
        ):
            if value is not None:
                where.append(f"{column}=%s")
                params.append(value)
        if filters.start is not None:
            where.append("created_at>=%s")
            params.append(filters.start)
        if filters.end is not None:
            where.append("created_at<=%s")
            params.append(filters.end)

        params.append(int(limit))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT log_id, business_id, actor_id, action, resource, resource_id,
                       old_values, new_values, ip_address, user_agent,
                       severity, category, created_at
                FROM audit_logs
                WHERE {" AND ".join(where)}
                ORDER BY created_at DESC, log_id DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return [
                AuditLog(
                    log_id=int(r["log_id"]),
                    business_id=r["business_id"],
                    actor_id=r["actor_id"],
                    action=r["action"],
                    resource=r["resource"],
                    resource_id=r["resource_id"],
                    severity=AuditSeverity(r["severity"]),
                    category=AuditCategory(r["category"]),
                    created_at=r["created_at"],
                    old_values=load_json(r.get("old_values")),
                    new_values=load_json(r.get("new_values")),
                    ip_address=r.get("ip_address"),
                    user_agent=r.get("user_agent"),
                )
                for r in fetchall(cur)
            ]
