from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional
from urllib.parse import urlsplit

from werkzeug.datastructures import Headers, MIMEAccept
from werkzeug.http import parse_accept_header
from werkzeug.wrappers import Response

_HTML_TYPES = ("text/html", "application/xhtml+xml")


@dataclass(frozen=True)
class FetchRequest:
    """An outgoing request from the installed app, as seen by the cache layer."""

    url: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def is_http(self) -> bool:
        return urlsplit(self.url).scheme in ("http", "https", "")

    @property
    def accept(self) -> MIMEAccept:
        return parse_accept_header(Headers(dict(self.headers)).get("Accept"), MIMEAccept)

    @property
    def accepts_html(self) -> bool:
        """True when the Accept header explicitly asks for an HTML document.

        Wildcards such as */* do not count: scripts and XHR send those too.
        """
        return any(value in _HTML_TYPES and quality > 0 for value, quality in self.accept)


@dataclass(frozen=True)
class FetchResponse:
    url: str
    status: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def ok(self) -> bool:
        return 200 <= self.status <= 299

    @property
    def size(self) -> int:
        return len(self.body)

    def clone(self) -> "FetchResponse":
        return replace(self, headers=dict(self.headers))

    def to_response(self) -> Response:
        return Response(self.body, status=self.status, headers=list(self.headers.items()))

    @classmethod
    def json(cls, url: str, content: Any, *, status: int = 200) -> "FetchResponse":
        body = json.dumps(content, ensure_ascii=False).encode("utf-8")
        return cls(url=url, status=status, headers={"Content-Type": "application/json"}, body=body)


@dataclass(frozen=True)
class NotificationAction:
    action: str
    title: str


@dataclass(frozen=True)
class Notification:
    title: str
    body: str
    icon: str
    badge: str
    vibrate: tuple[int, ...] = ()
    actions: tuple[NotificationAction, ...] = ()
    data: Optional[Mapping[str, Any]] = None

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "body": self.body,
            "icon": self.icon,
            "badge": self.badge,
            "vibrate": list(self.vibrate),
            "actions": [{"action": a.action, "title": a.title} for a in self.actions],
            "data": dict(self.data or {}),
        }
