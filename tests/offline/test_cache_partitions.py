from __future__ import annotations

import threading

import pytest

from src.eboo_gest.eboo_gest.offline.model import FetchResponse
from src.eboo_gest.eboo_gest.offline.partitions import CacheNames, CachePartition, CacheStorage, cache_key


def _resp(url: str, body: bytes = b"x") -> FetchResponse:
    return FetchResponse(url=url, status=200, body=body)


def test_cache_key_ignores_fragment():
    assert cache_key("/reports?week=2#top") == "/reports?week=2"
    assert cache_key("") == "/"


def test_cache_names_are_versioned():
    names = CacheNames("v2")
    assert names.legacy == "eboo-gest-v2"
    assert names.current == ("eboo-gest-static-v2", "eboo-gest-dynamic-v2")


def test_put_replaces_existing_entry(cache_clock):
    partition = CachePartition("p", clock=cache_clock)
    partition.put("/a", _resp("/a", b"old"))
    partition.put("/a", _resp("/a", b"new"))

    assert len(partition) == 1
    assert partition.match("/a").body == b"new"


def test_lru_eviction_respects_recent_lookups(cache_clock):
    partition = CachePartition("dyn", max_entries=2, clock=cache_clock)
    partition.put("/a", _resp("/a"))
    partition.put("/b", _resp("/b"))

    # Touch /a so /b becomes the least recently used.
    assert partition.match("/a") is not None
    partition.put("/c", _resp("/c"))

    assert len(partition) == 2
    assert partition.match("/b") is None
    assert partition.match("/a") is not None
    assert partition.match("/c") is not None


def test_partition_never_exceeds_cap(cache_clock):
    partition = CachePartition("dyn", max_entries=5, clock=cache_clock)
    for i in range(50):
        partition.put(f"/item/{i}", _resp(f"/item/{i}"))
        assert len(partition) <= 5
    assert list(partition) == [f"/item/{i}" for i in range(45, 50)]


def test_stale_entries_are_misses(cache_clock):
    partition = CachePartition("dyn", ttl_seconds=10, clock=cache_clock)
    partition.put("/a", _resp("/a"))

    cache_clock.advance(5)
    assert partition.match("/a") is not None

    cache_clock.advance(6)
    assert partition.match("/a") is None
    assert len(partition) == 0


def test_zero_ttl_means_no_expiry(cache_clock):
    partition = CachePartition("static", ttl_seconds=0, clock=cache_clock)
    partition.put("/", _resp("/"))
    cache_clock.advance(10**9)
    assert partition.match("/") is not None


def test_non_positive_cap_is_rejected():
    with pytest.raises(ValueError):
        CachePartition("dyn", max_entries=0)


def test_match_returns_a_copy(cache_clock):
    partition = CachePartition("p", clock=cache_clock)
    partition.put("/a", FetchResponse(url="/a", status=200, headers={"X": "1"}))

    first = partition.match("/a")
    first.headers["X"] = "changed"
    assert partition.match("/a").headers["X"] == "1"


def test_storage_match_looks_in_creation_order(cache_clock):
    storage = CacheStorage(clock=cache_clock)
    storage.open("static").put("/", _resp("/", b"static"))
    storage.open("dynamic").put("/", _resp("/", b"dynamic"))
    storage.open("dynamic").put("/api/x", _resp("/api/x", b"api"))

    assert storage.match("/").body == b"static"
    assert storage.match("/api/x").body == b"api"
    assert storage.match("/missing") is None


def test_storage_open_reuses_partition(cache_clock):
    storage = CacheStorage(clock=cache_clock)
    first = storage.open("dyn", max_entries=3)
    assert storage.open("dyn") is first
    assert storage.has("dyn")
    assert storage.delete("dyn") is True
    assert storage.keys() == []


def test_concurrent_lookups_during_eviction():
    partition = CachePartition("dynamic", max_entries=1)
    errors: list[str] = []
    stop = threading.Event()

    def read():
        while not stop.is_set():
            try:
                partition.match("/a")
            except Exception as e:  # collected for the assertion below
                errors.append(repr(e))

    readers = [threading.Thread(target=read) for _ in range(3)]
    for t in readers:
        t.start()
    try:
        for _ in range(5000):
            partition.put("/a", _resp("/a"))
            partition.put("/b", _resp("/b"))
    finally:
        stop.set()
        for t in readers:
            t.join()

    assert errors == []
    assert list(partition) == ["/b"]


def test_concurrent_storage_open_returns_one_partition():
    storage = CacheStorage()
    opened: list[CachePartition] = []

    def open_dynamic():
        for _ in range(200):
            opened.append(storage.open("eboo-gest-dynamic-v2", max_entries=5))

    threads = [threading.Thread(target=open_dynamic) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len({id(p) for p in opened}) == 1
    assert storage.keys() == ["eboo-gest-dynamic-v2"]
