"""Offline cache worker.

One instance per deployed cache version. Lifecycle:

    PARSED -> INSTALLING -> INSTALLED -> ACTIVATING -> ACTIVATED
                        \\-> REDUNDANT (install failed, or replaced)

Install fills the static partition with the app shell; activate deletes the
partitions of older versions and claims open pages; once active the worker
answers GET requests cache-first and grows the dynamic partition from
successful network responses.
"""

from __future__ import annotations

import time
from typing import Any, Mapping, Optional, Sequence, Union

from ..common.logging_config import get_logger
from ..core.constants import (
    APP_NAME,
    DEFAULT_CACHE_VERSION,
    DEFAULT_DYNAMIC_CACHE_MAX_ENTRIES,
    DEFAULT_DYNAMIC_CACHE_TTL_SECONDS,
)
from ..core.enums import WorkerState
from ..core.exceptions import CacheInstallError, OfflineError
from .clients import Clients, MessagePort, NotificationTray
from .model import FetchRequest, FetchResponse, Notification, NotificationAction
from .network import Fetcher
from .partitions import CacheNames, CacheStorage

logger = get_logger("offline.worker")

ROOT_URL = "/"

STATIC_ASSETS: tuple[str, ...] = (
    "/",
    "/index.html",
    "/manifest.json",
    "/logo-ebo-gest.png",
    "/favicon.ico",
    "/static/css/main.css",
    "/static/js/main.js",
)

NOTIFICATION_ICON = "/logo-ebo-gest.png"
DEFAULT_PUSH_BODY = "Nouvelle notification d'Ebo'o Gest"
VIBRATION_PATTERN = (100, 50, 100)
PUSH_ACTIONS = (
    NotificationAction(action="explore", title="Ouvrir"),
    NotificationAction(action="close", title="Fermer"),
)

MSG_SKIP_WAITING = "SKIP_WAITING"
MSG_GET_VERSION = "GET_VERSION"
MSG_GET_CACHE_STATUS = "GET_CACHE_STATUS"
MSG_CLEAR_CACHE = "CLEAR_CACHE"
MSG_CACHE_DATA = "CACHE_DATA"


class OfflineCacheWorker:
    def __init__(
        self,
        storage: CacheStorage,
        fetcher: Fetcher,
        *,
        version: str = DEFAULT_CACHE_VERSION,
        static_assets: Sequence[str] = STATIC_ASSETS,
        clients: Optional[Clients] = None,
        notifications: Optional[NotificationTray] = None,
        dynamic_max_entries: Optional[int] = DEFAULT_DYNAMIC_CACHE_MAX_ENTRIES,
        dynamic_ttl_seconds: Optional[float] = DEFAULT_DYNAMIC_CACHE_TTL_SECONDS,
    ):
        self._storage = storage
        self._fetcher = fetcher
        self.names = CacheNames(version)
        self._static_assets = tuple(static_assets)
        self.clients = clients or Clients()
        self.notifications = notifications or NotificationTray()
        self._dynamic_max_entries = dynamic_max_entries
        self._dynamic_ttl_seconds = dynamic_ttl_seconds

        self.state = WorkerState.PARSED
        self.skip_waiting_requested = False

    @property
    def version(self) -> str:
        return self.names.legacy

    def skip_waiting(self) -> None:
        self.skip_waiting_requested = True

    # ----------------------------------------------------------------- lifecycle

    def install(self) -> None:
        if self.state != WorkerState.PARSED:
            raise CacheInstallError(f"Worker {self.version} already {self.state.value}")

        self.state = WorkerState.INSTALLING
        logger.info("Installing offline cache %s (%d assets)", self.version, len(self._static_assets))

        existed = self._storage.has(self.names.static)
        static = self._storage.open(self.names.static)
        try:
            for url in self._static_assets:
                response = self._fetcher.fetch(FetchRequest(url=url))
                if not response.ok:
                    raise CacheInstallError(f"Asset {url} answered HTTP {response.status}")
                static.put(url, response)
        except (CacheInstallError, OfflineError) as e:
            if not existed:
                self._storage.delete(self.names.static)
            self.state = WorkerState.REDUNDANT
            logger.error("Offline cache %s install failed: %s", self.version, e)
            if isinstance(e, CacheInstallError):
                raise
            raise CacheInstallError(str(e)) from e

        self.state = WorkerState.INSTALLED
        self.skip_waiting()
        logger.info("Offline cache %s installed", self.version)

    def activate(self) -> list[str]:
        """Delete partitions left by other versions and claim open pages.

        Returns the deleted partition names.
        """
        if self.state != WorkerState.INSTALLED:
            raise CacheInstallError(f"Cannot activate worker in state {self.state.value}")

        self.state = WorkerState.ACTIVATING
        keep = set(self.names.current)
        deleted = [name for name in self._storage.keys() if name not in keep]
        for name in deleted:
            self._storage.delete(name)
            logger.info("Deleted stale cache partition %s", name)

        self._dynamic()
        claimed = self.clients.claim()
        self.state = WorkerState.ACTIVATED
        logger.info("Offline cache %s active (claimed %d clients)", self.version, claimed)
        return deleted

    def make_redundant(self) -> None:
        self.state = WorkerState.REDUNDANT

    # --------------------------------------------------------------------- fetch

    def _dynamic(self):
        return self._storage.open(
            self.names.dynamic,
            max_entries=self._dynamic_max_entries,
            ttl_seconds=self._dynamic_ttl_seconds,
        )

    def handle_fetch(self, request: FetchRequest) -> Optional[FetchResponse]:
        """Answer an intercepted request.

        Returns None when the request is not intercepted (non-GET, non-http);
        the caller then goes to the network untouched.
        """
        if request.method.upper() != "GET" or not request.is_http:
            return None

        cached = self._storage.match(request.url)
        if cached is not None:
            return cached

        try:
            response = self._fetcher.fetch(request)
        except OfflineError:
            if request.accepts_html:
                shell = self._storage.match(ROOT_URL)
                if shell is not None:
                    logger.info("Offline: serving cached app shell for %s", request.url)
                    return shell
            raise

        if response.status == 200:
            self._dynamic().put(request.url, response.clone())
        return response

    # ------------------------------------------------------------------ messages

    def handle_message(self, data: Mapping[str, Any], port: Optional[MessagePort] = None) -> None:
        msg_type = (data or {}).get("type")

        if msg_type == MSG_SKIP_WAITING:
            self.skip_waiting()
        elif msg_type == MSG_GET_VERSION:
            self._reply(port, {"version": self.version})
        elif msg_type == MSG_GET_CACHE_STATUS:
            self._reply(port, self.cache_status())
        elif msg_type == MSG_CLEAR_CACHE:
            for name in self._storage.keys():
                self._storage.delete(name)
            self._reply(port, {"success": True})
        elif msg_type == MSG_CACHE_DATA:
            dynamic = self._dynamic()
            for url, content in dict(data.get("payload") or {}).items():
                dynamic.put(url, FetchResponse.json(url, content))
            self._reply(port, {"success": True})
        else:
            logger.debug("Ignoring unknown worker message %r", msg_type)

    @staticmethod
    def _reply(port: Optional[MessagePort], message: dict) -> None:
        if port is not None:
            port.post_message(message)

    def cache_status(self) -> dict:
        items = 0
        size = 0
        for name in self.names.current:
            if self._storage.has(name):
                partition = self._storage.open(name)
                items += len(partition)
                size += partition.size_bytes()
        return {"cacheName": self.version, "cachedItems": items, "cacheSize": size}

    # ---------------------------------------------------------------- push/sync

    def handle_push(self, payload: Union[bytes, str, None] = None) -> Notification:
        if isinstance(payload, (bytes, bytearray)):
            payload = payload.decode("utf-8", errors="replace")
        body = payload if payload else DEFAULT_PUSH_BODY

        notification = Notification(
            title=APP_NAME,
            body=body,
            icon=NOTIFICATION_ICON,
            badge=NOTIFICATION_ICON,
            vibrate=VIBRATION_PATTERN,
            actions=PUSH_ACTIONS,
            data={"dateOfArrival": time.time(), "primaryKey": 1},
        )
        self.notifications.show(notification)
        return notification

    def handle_notification_click(self, notification: Notification, action: str = ""):
        self.notifications.close(notification)
        if action != "explore":
            return None

        for client in self.clients.match_all():
            if client.url == ROOT_URL:
                return self.clients.focus(client)
        return self.clients.open_window(ROOT_URL)

    def handle_sync(self, tag: str) -> None:
        # Placeholder: nothing is queued offline yet.
        logger.info("Background sync requested (tag=%s)", tag)
