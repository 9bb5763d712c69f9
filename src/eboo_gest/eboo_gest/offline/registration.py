from __future__ import annotations

from typing import Any, Mapping, Optional

from ..common.logging_config import get_logger
from ..core.enums import WorkerState
from ..core.exceptions import CacheInstallError
from .clients import MessagePort
from .model import FetchRequest, FetchResponse
from .network import Fetcher
from .worker import MSG_SKIP_WAITING, OfflineCacheWorker

logger = get_logger("offline.registration")


class ServiceWorkerRegistration:
    """Keeps the active and the waiting worker versions for one app scope."""

    def __init__(self, fetcher: Fetcher):
        self._fetcher = fetcher
        self.active: Optional[OfflineCacheWorker] = None
        self.waiting: Optional[OfflineCacheWorker] = None

    def register(self, worker: OfflineCacheWorker) -> OfflineCacheWorker:
        """Install a new worker version; activate it now if it asked to skip waiting.

        On install failure the current active worker keeps serving and
        CacheInstallError propagates.
        """
        if self.active is not None and self.active.version == worker.version:
            return self.active

        worker.install()

        if self.waiting is not None:
            self.waiting.make_redundant()
        self.waiting = worker

        if worker.skip_waiting_requested or self.active is None:
            self._promote()
        return worker

    def _promote(self) -> None:
        worker = self.waiting
        if worker is None:
            return
        previous = self.active
        self.waiting = None
        worker.activate()
        if previous is not None:
            previous.make_redundant()
        self.active = worker
        logger.info(
            "Active offline cache is now %s%s",
            worker.version,
            f" (replaced {previous.version})" if previous else "",
        )

    def post_message(self, data: Mapping[str, Any]) -> Optional[Any]:
        """Deliver a page message and return the worker's reply, if any."""
        is_skip = (data or {}).get("type") == MSG_SKIP_WAITING
        target = (self.waiting or self.active) if is_skip else (self.active or self.waiting)
        if target is None:
            return None

        port = MessagePort()
        target.handle_message(data, port)

        if target is self.waiting and target.skip_waiting_requested:
            self._promote()
        return port.last

    def fetch(self, request: FetchRequest) -> FetchResponse:
        worker = self.active
        if worker is not None and worker.state == WorkerState.ACTIVATED:
            response = worker.handle_fetch(request)
            if response is not None:
                return response
        return self._fetcher.fetch(request)

    def require_active(self) -> OfflineCacheWorker:
        if self.active is None:
            raise CacheInstallError("Aucun cache hors ligne actif")
        return self.active
