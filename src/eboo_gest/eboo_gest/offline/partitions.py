"""Named cache partitions shared by every version of the offline cache worker.

The static partition holds the app shell and never evicts. The dynamic
partition grows as the app fetches successful GET responses and is bounded by
an entry cap (least-recently-used eviction) and an optional time-to-live.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Iterator, Optional
from urllib.parse import urlsplit, urlunsplit

from ..common.logging_config import get_logger
from .model import FetchResponse

logger = get_logger("offline.cache")

Clock = Callable[[], float]


def cache_key(url: str) -> str:
    """Requests are matched on URL without fragment."""
    parts = urlsplit(url)
    return urlunsplit((parts.scheme, parts.netloc, parts.path or "/", parts.query, ""))


@dataclass(frozen=True)
class CacheNames:
    version: str

    @property
    def legacy(self) -> str:
        return f"eboo-gest-{self.version}"

    @property
    def static(self) -> str:
        return f"eboo-gest-static-{self.version}"

    @property
    def dynamic(self) -> str:
        return f"eboo-gest-dynamic-{self.version}"

    @property
    def current(self) -> tuple[str, str]:
        return self.static, self.dynamic


@dataclass(frozen=True)
class CacheEntry:
    response: FetchResponse
    stored_at: float


class CachePartition:
    def __init__(
        self,
        name: str,
        *,
        max_entries: Optional[int] = None,
        ttl_seconds: Optional[float] = None,
        clock: Clock = time.monotonic,
    ):
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.name = name
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds or None
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        # Request threads share partitions.
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        with self._lock:
            return iter(list(self._entries))

    def _is_stale(self, entry: CacheEntry) -> bool:
        return self.ttl_seconds is not None and self._clock() - entry.stored_at > self.ttl_seconds

    def match(self, url: str) -> Optional[FetchResponse]:
        key = cache_key(url)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._is_stale(entry):
                del self._entries[key]
                logger.debug("Dropped stale entry %s from %s", key, self.name)
                return None
            self._entries.move_to_end(key)
        return entry.response.clone()

    def put(self, url: str, response: FetchResponse) -> None:
        key = cache_key(url)
        entry = CacheEntry(response=response.clone(), stored_at=self._clock())
        with self._lock:
            self._entries[key] = entry
            self._entries.move_to_end(key)

            if self.max_entries is not None:
                while len(self._entries) > self.max_entries:
                    evicted, _ = self._entries.popitem(last=False)
                    logger.debug("Evicted %s from %s (cap=%s)", evicted, self.name, self.max_entries)

    def delete(self, url: str) -> bool:
        with self._lock:
            return self._entries.pop(cache_key(url), None) is not None

    def size_bytes(self) -> int:
        with self._lock:
            return sum(entry.response.size for entry in self._entries.values())


class CacheStorage:
    """All partitions, in creation order. Only the worker mutates it."""

    def __init__(self, *, clock: Clock = time.monotonic):
        self._clock = clock
        self._partitions: dict[str, CachePartition] = {}
        self._lock = threading.Lock()

    def open(
        self,
        name: str,
        *,
        max_entries: Optional[int] = None,
        ttl_seconds: Optional[float] = None,
    ) -> CachePartition:
        with self._lock:
            partition = self._partitions.get(name)
            if partition is None:
                partition = CachePartition(name, max_entries=max_entries, ttl_seconds=ttl_seconds, clock=self._clock)
                self._partitions[name] = partition
            return partition

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._partitions

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._partitions)

    def delete(self, name: str) -> bool:
        with self._lock:
            return self._partitions.pop(name, None) is not None

    def match(self, url: str) -> Optional[FetchResponse]:
        with self._lock:
            partitions = list(self._partitions.values())
        for partition in partitions:
            response = partition.match(url)
            if response is not None:
                return response
        return None
