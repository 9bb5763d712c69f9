from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Optional

from .model import Notification


class MessagePort:
    """Reply channel handed over with a page message."""

    def __init__(self):
        self.messages: list[Any] = []

    def post_message(self, message: Any) -> None:
        self.messages.append(message)

    @property
    def last(self) -> Optional[Any]:
        return self.messages[-1] if self.messages else None


@dataclass
class Client:
    client_id: str
    url: str
    controlled: bool = False
    focused: bool = False
    inbox: list[Any] = field(default_factory=list)

    def post_message(self, message: Any) -> None:
        self.inbox.append(message)


class Clients:
    """Pages of the installed app known to the worker."""

    def __init__(self):
        self._clients: dict[str, Client] = {}
        self._ids = itertools.count(1)

    def connect(self, url: str) -> Client:
        client = Client(client_id=f"client-{next(self._ids)}", url=url)
        self._clients[client.client_id] = client
        return client

    def disconnect(self, client_id: str) -> None:
        self._clients.pop(client_id, None)

    def match_all(self) -> list[Client]:
        return list(self._clients.values())

    def claim(self) -> int:
        """Take control of every open page without a reload."""
        for client in self._clients.values():
            client.controlled = True
        return len(self._clients)

    def focus(self, client: Client) -> Client:
        for other in self._clients.values():
            other.focused = other is client
        return client

    def open_window(self, url: str) -> Client:
        client = self.connect(url)
        client.controlled = True
        return self.focus(client)


class NotificationTray:
    def __init__(self):
        self._shown: list[Notification] = []

    def show(self, notification: Notification) -> None:
        self._shown.append(notification)

    def close(self, notification: Notification) -> None:
        if notification in self._shown:
            self._shown.remove(notification)

    @property
    def shown(self) -> list[Notification]:
        return list(self._shown)
