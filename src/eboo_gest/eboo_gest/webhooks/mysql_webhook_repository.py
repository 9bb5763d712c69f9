from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

from ..core.enums import WebhookEventType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, load_json
from .model import WebhookDelivery, WebhookEvent
from .repository import WebhookRepository


def _to_event(r: dict) -> WebhookEvent:
    return WebhookEvent(
        event_id=int(r["event_id"]),
        event_type=WebhookEventType(r["event_type"]),
        data=load_json(r.get("data")),
        created_at=r["created_at"],
    )


class MySQLWebhookRepository(WebhookRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append_event(self, *, event_type: WebhookEventType, data: Any, created_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO webhook_events(event_type, data, created_at) VALUES(%s,%s,%s)",
                (event_type.value, dump_json(data), created_at),
            )
            return int(cur.lastrowid)

    def list_recent(self, limit: int) -> Sequence[WebhookEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT event_id, event_type, data, created_at
                FROM webhook_events
                ORDER BY created_at DESC, event_id DESC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def list_undelivered(self, limit: int) -> Sequence[WebhookEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT e.event_id, e.event_type, e.data, e.created_at
                FROM webhook_events e
                WHERE NOT EXISTS (
                    SELECT 1 FROM webhook_deliveries d
                    WHERE d.event_id = e.event_id AND d.status_code BETWEEN 200 AND 299
                )
                ORDER BY e.event_id ASC
                LIMIT %s
                """,
                (int(limit),),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def delivered_ids(self, event_ids: Sequence[int]) -> set[int]:
        if not event_ids:
            return set()
        placeholders = ",".join(["%s"] * len(event_ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT DISTINCT event_id
                FROM webhook_deliveries
                WHERE event_id IN ({placeholders}) AND status_code BETWEEN 200 AND 299
                """,
                tuple(int(i) for i in event_ids),
            )
            return {int(r["event_id"]) for r in fetchall(cur)}

    def append_delivery(
        self,
        *,
        event_id: int,
        target_url: str,
        attempted_at: datetime,
        status_code: Optional[int],
        response: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO webhook_deliveries(event_id, target_url, status_code, response, attempted_at)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (int(event_id), target_url, status_code, response, attempted_at),
            )
            return int(cur.lastrowid)

    def list_deliveries(self, event_id: int) -> Sequence[WebhookDelivery]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT delivery_id, event_id, target_url, status_code, response, attempted_at
                FROM webhook_deliveries
                WHERE event_id=%s
                ORDER BY delivery_id ASC
                """,
                (int(event_id),),
            )
            return [
                WebhookDelivery(
                    delivery_id=int(r["delivery_id"]),
                    event_id=int(r["event_id"]),
                    target_url=r["target_url"],
                    attempted_at=r["attempted_at"],
                    status_code=r.get("status_code"),
                    response=r.get("response"),
                )
                for r in fetchall(cur)
            ]
