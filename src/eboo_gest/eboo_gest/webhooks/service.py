from __future__ import annotations

import hmac
from datetime import datetime
from typing import Any, Callable, Optional

import requests

from ..audit.service import AuditService
from ..common.datetime_utils import now_utc
from ..common.logging_config import Sensitive, get_logger
from ..core.constants import WEBHOOK_TIMEOUT_SECONDS
from ..core.enums import AuditCategory, AuditSeverity, WebhookEventType
from ..core.exceptions import PersistenceError
from .model import SendResult, WebhookEvent
from .repository import WebhookRepository

logger = get_logger("webhooks")

# Inbound events accepted from the auth provider / partner backends.
INBOUND_TYPES = frozenset(
    [
        WebhookEventType.USER_REGISTRATION,
        WebhookEventType.PME_REGISTRATION,
        WebhookEventType.SALE_COMPLETED,
        WebhookEventType.STOCK_ALERT,
        WebhookEventType.SYSTEM_ALERT,
    ]
)


class WebhookService:
    """Use case: record webhook events and push them to the configured target."""

    def __init__(
        self,
        events: WebhookRepository,
        *,
        target_url: Optional[str] = None,
        secret: Optional[str] = None,
        audit: Optional[AuditService] = None,
        session: Optional[requests.Session] = None,
        timeout: float = WEBHOOK_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._events = events
        self._target_url = target_url or None
        self._secret = secret or None
        self._audit = audit
        self._session = session or requests.Session()
        self._timeout = timeout
        self._clock = clock

    def send(self, event_type: WebhookEventType, data: Any) -> SendResult:
        """Append an event. Never raises: callers treat webhooks as best effort."""
        try:
            event_id = self._events.append_event(event_type=event_type, data=data, created_at=self._clock())
        except PersistenceError as e:
            logger.error("Webhook event %s not recorded: %s", event_type.value, e)
            return SendResult(success=False, error=str(e))
        logger.debug("Webhook event %s recorded (id=%s)", event_type.value, event_id)
        return SendResult(success=True, event_id=event_id)

    def list_events(self, *, limit: int = 50) -> list[dict]:
        events = self._events.list_recent(limit)
        delivered = self._events.delivered_ids([e.event_id for e in events])
        return [e.to_dict(processed=e.event_id in delivered) for e in events]

    def dispatch_pending(self, *, limit: int = 50) -> int:
        """POST undelivered events to the target. Returns how many succeeded."""
        if not self._target_url:
            logger.debug("No webhook target configured; nothing dispatched")
            return 0

        delivered = 0
        for event in self._events.list_undelivered(limit):
            if self._deliver(event):
                delivered += 1
        return delivered

    def _deliver(self, event: WebhookEvent) -> bool:
        headers = {"Content-Type": "application/json"}
        if self._secret:
            headers["Authorization"] = f"Bearer {self._secret}"

        status_code: Optional[int] = None
        try:
            resp = self._session.post(self._target_url, json=event.to_dict(), headers=headers, timeout=self._timeout)
            status_code = resp.status_code
            body = resp.text[:2000]
        except requests.RequestException as e:
            body = str(e)
            logger.warning("Webhook %s delivery to %s failed: %s", event.event_id, self._target_url, e)

        self._events.append_delivery(
            event_id=event.event_id,
            target_url=self._target_url,
            attempted_at=self._clock(),
            status_code=status_code,
            response=body,
        )
        ok = status_code is not None and 200 <= status_code <= 299
        if status_code is not None and not ok:
            logger.warning("Webhook %s rejected by target (HTTP %s)", event.event_id, status_code)
        return ok

    # ------------------------------------------------------------------ inbound

    def verify_bearer(self, authorization: Optional[str]) -> bool:
        if not self._secret or not authorization or not authorization.startswith("Bearer "):
            return False
        token = authorization[len("Bearer "):]
        ok = hmac.compare_digest(token.encode("utf-8"), self._secret.encode("utf-8"))
        if not ok:
            logger.warning("Rejected inbound webhook with bad token %s", Sensitive(token))
        return ok

    def receive(self, raw_type: Any, data: Any) -> Optional[SendResult]:
        """Record an inbound event. Unknown types are logged and ignored (None)."""
        try:
            event_type = WebhookEventType(raw_type)
        except ValueError:
            event_type = None
        if event_type not in INBOUND_TYPES:
            logger.info("Unknown inbound webhook type: %r", raw_type)
            return None

        result = self.send(event_type, data)
        if result.success and self._audit and isinstance(data, dict) and data.get("business_id"):
            self._audit.log_action(
                business_id=str(data["business_id"]),
                actor_id=str(data.get("user_id") or "webhook"),
                action=f"{event_type.value}_webhook",
                resource="webhook",
                resource_id=str(result.event_id),
                severity=AuditSeverity.MEDIUM,
                category=AuditCategory.AUTH
                if event_type in (WebhookEventType.USER_REGISTRATION, WebhookEventType.PME_REGISTRATION)
                else AuditCategory.BUSINESS,
            )
        return result
