from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..core.enums import WebhookEventType


@dataclass(frozen=True)
class WebhookEvent:
    """Événement webhook (ajout seul, jamais modifié)."""

    event_id: int
    event_type: WebhookEventType
    data: Any
    created_at: datetime

    def to_dict(self, *, processed: Optional[bool] = None) -> dict:
        out = {
            "id": self.event_id,
            "type": self.event_type.value,
            "data": self.data,
            "timestamp": self.created_at.isoformat(),
        }
        if processed is not None:
            out["processed"] = processed
        return out


@dataclass(frozen=True)
class WebhookDelivery:
    """One outbound dispatch attempt."""

    delivery_id: int
    event_id: int
    target_url: str
    attempted_at: datetime
    status_code: Optional[int] = None
    response: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code <= 299


@dataclass(frozen=True)
class SendResult:
    success: bool
    event_id: Optional[int] = None
    error: Optional[str] = None
