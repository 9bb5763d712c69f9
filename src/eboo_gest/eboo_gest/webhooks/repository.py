from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import WebhookEventType
from .model import WebhookDelivery, WebhookEvent


class WebhookRepository(Protocol):
    """Events and delivery attempts are both append-only."""

    def append_event(self, *, event_type: WebhookEventType, data: Any, created_at: datetime) -> int:
        raise NotImplementedError

    def list_recent(self, limit: int) -> Sequence[WebhookEvent]:
        """Newest first."""
        raise NotImplementedError

    def list_undelivered(self, limit: int) -> Sequence[WebhookEvent]:
        """Events without a successful (2xx) delivery, oldest first."""
        raise NotImplementedError

    def delivered_ids(self, event_ids: Sequence[int]) -> set[int]:
        raise NotImplementedError

    def append_delivery(
        self,
        *,
        event_id: int,
        target_url: str,
        attempted_at: datetime,
        status_code: Optional[int],
        response: Optional[str],
    ) -> int:
        raise NotImplementedError

    def list_deliveries(self, event_id: int) -> Sequence[WebhookDelivery]:
        raise NotImplementedError
