from __future__ import annotations

import pytest

from src.eboo_gest.eboo_gest.core.enums import WorkerState
from src.eboo_gest.eboo_gest.core.exceptions import CacheInstallError
from src.eboo_gest.eboo_gest.offline.clients import Clients, NotificationTray
from src.eboo_gest.eboo_gest.offline.model import FetchRequest
from src.eboo_gest.eboo_gest.offline.partitions import CacheStorage
from src.eboo_gest.eboo_gest.offline.registration import ServiceWorkerRegistration
from src.eboo_gest.eboo_gest.offline.worker import OfflineCacheWorker


@pytest.fixture
def storage(cache_clock):
    return CacheStorage(clock=cache_clock)


@pytest.fixture
def registration(fetcher):
    return ServiceWorkerRegistration(fetcher)


def test_first_registration_activates_immediately(registration, storage, fetcher):
    worker = registration.register(OfflineCacheWorker(storage, fetcher, version="v1"))

    assert registration.active is worker
    assert registration.waiting is None
    assert worker.state == WorkerState.ACTIVATED


def test_same_version_is_not_reinstalled(registration, storage, fetcher):
    first = registration.register(OfflineCacheWorker(storage, fetcher, version="v1"))
    calls = len(fetcher.calls)

    again = registration.register(OfflineCacheWorker(storage, fetcher, version="v1"))

    assert again is first
    assert len(fetcher.calls) == calls


def test_new_version_replaces_old_and_drops_its_partitions(registration, storage, fetcher):
    old = registration.register(OfflineCacheWorker(storage, fetcher, version="v1"))
    new = registration.register(OfflineCacheWorker(storage, fetcher, version="v2"))

    assert registration.active is new
    assert old.state == WorkerState.REDUNDANT
    assert sorted(storage.keys()) == ["eboo-gest-dynamic-v2", "eboo-gest-static-v2"]


def test_failed_install_keeps_previous_version_serving(registration, storage, fetcher):
    old = registration.register(OfflineCacheWorker(storage, fetcher, version="v1"))
    del fetcher.pages["/static/js/main.js"]

    with pytest.raises(CacheInstallError):
        registration.register(OfflineCacheWorker(storage, fetcher, version="v2"))

    assert registration.active is old
    assert old.state == WorkerState.ACTIVATED
    assert "eboo-gest-static-v1" in storage.keys()
    assert "eboo-gest-static-v2" not in storage.keys()

    fetcher.offline = True
    response = registration.fetch(FetchRequest(url="/", headers={"Accept": "text/html"}))
    assert response.body == b"<html>shell</html>"


def test_fetch_without_active_worker_goes_to_network(registration, fetcher):
    response = registration.fetch(FetchRequest(url="/index.html"))
    assert response.status == 200
    assert fetcher.calls == ["/index.html"]


def test_not_intercepted_requests_reach_network(registration, storage, fetcher):
    registration.register(OfflineCacheWorker(storage, fetcher))
    calls = len(fetcher.calls)

    response = registration.fetch(FetchRequest(url="/index.html", method="POST"))

    assert response.status == 200
    assert len(fetcher.calls) == calls + 1


def test_post_message_returns_port_reply(registration, storage, fetcher):
    assert registration.post_message({"type": "GET_VERSION"}) is None

    registration.register(OfflineCacheWorker(storage, fetcher, version="v3"))
    assert registration.post_message({"type": "GET_VERSION"}) == {"version": "eboo-gest-v3"}
    assert registration.post_message({"type": "SKIP_WAITING"}) is None


def test_skip_waiting_message_promotes_waiting_worker(registration, storage, fetcher):
    old = registration.register(OfflineCacheWorker(storage, fetcher, version="v1"))

    waiting = OfflineCacheWorker(storage, fetcher, version="v2")
    waiting.install()
    waiting.skip_waiting_requested = False
    registration.waiting = waiting

    registration.post_message({"type": "SKIP_WAITING"})

    assert registration.active is waiting
    assert registration.waiting is None
    assert waiting.state == WorkerState.ACTIVATED
    assert old.state == WorkerState.REDUNDANT


def test_require_active(registration, storage, fetcher):
    with pytest.raises(CacheInstallError):
        registration.require_active()
    worker = registration.register(OfflineCacheWorker(storage, fetcher))
    assert registration.require_active() is worker


def test_update_claims_pages_opened_under_previous_version(registration, storage, fetcher):
    clients = Clients()
    notifications = NotificationTray()

    def worker(version: str) -> OfflineCacheWorker:
        return OfflineCacheWorker(storage, fetcher, version=version, clients=clients, notifications=notifications)

    registration.register(worker("v1"))
    page = registration.active.clients.connect("/")
    shown = registration.active.handle_push(b"Stock bas")

    registration.register(worker("v2"))

    assert registration.active.clients.match_all() == [page]
    assert page.controlled
    assert registration.active.notifications.shown == [shown]
    assert registration.active.handle_notification_click(shown, "explore") is page
    assert page.focused
