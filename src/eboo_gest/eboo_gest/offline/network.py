from __future__ import annotations

from typing import Optional, Protocol
from urllib.parse import urljoin

import requests

from ..common.logging_config import get_logger
from ..core.constants import DEFAULT_FETCH_TIMEOUT_SECONDS
from ..core.exceptions import OfflineError
from .model import FetchRequest, FetchResponse

logger = get_logger("offline.network")

# requests already decoded the body; these would lie about what we re-serve.
_HOP_BY_HOP = frozenset(
    ["connection", "content-encoding", "content-length", "keep-alive", "transfer-encoding", "upgrade"]
)


class Fetcher(Protocol):
    def fetch(self, request: FetchRequest) -> FetchResponse:
        """Perform the request. Raise OfflineError when the network is unreachable."""
        ...


class RequestsFetcher:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self._base_url = base_url.rstrip("/") + "/"
        self._timeout = timeout
        self._session = session or requests.Session()

    def resolve(self, url: str) -> str:
        return urljoin(self._base_url, url.lstrip("/"))

    def fetch(self, request: FetchRequest) -> FetchResponse:
        target = self.resolve(request.url)
        try:
            resp = self._session.request(
                request.method,
                target,
                headers=dict(request.headers),
                data=request.body or None,
                timeout=self._timeout,
                allow_redirects=True,
            )
        except requests.RequestException as e:
            logger.info("Network unavailable for %s %s: %s", request.method, target, e)
            raise OfflineError(f"Réseau indisponible: {request.url}") from e

        headers = {k: v for k, v in resp.headers.items() if k.lower() not in _HOP_BY_HOP}
        return FetchResponse(url=request.url, status=resp.status_code, headers=headers, body=resp.content)
