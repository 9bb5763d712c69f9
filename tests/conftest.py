from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Optional

import pytest

from src.eboo_gest.eboo_gest.attendance.model import AttendanceRecord
from src.eboo_gest.eboo_gest.audit.model import AuditFilters, AuditLog
from src.eboo_gest.eboo_gest.core.enums import EmployeeRole
from src.eboo_gest.eboo_gest.core.exceptions import OfflineError, PersistenceError
from src.eboo_gest.eboo_gest.employees.model import Employee
from src.eboo_gest.eboo_gest.offline.model import FetchRequest, FetchResponse
from src.eboo_gest.eboo_gest.webhooks.model import WebhookDelivery, WebhookEvent


class FakeClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class MonotonicClock:
    """Float clock for cache partitions."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class InMemoryEmployees:
    def __init__(self):
        self.items: dict[str, Employee] = {}
        self._seq = 0
        self.fail = False

    def _check(self):
        if self.fail:
            raise PersistenceError("Base de données indisponible")

    def add(self, *, business_id: str, full_name: str, pin_code: str, role=EmployeeRole.STAFF, email=None) -> Employee:
        employee_id = self.create(business_id=business_id, full_name=full_name, role=role, pin_code=pin_code, email=email)
        return self.items[employee_id]

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        self._check()
        return self.items.get(employee_id)

    def find_by_pin(self, business_id: str, pin_code: str):
        self._check()
        return [e for e in self.items.values() if e.business_id == business_id and e.pin_code == pin_code]

    def list_for_business(self, business_id: str):
        self._check()
        return sorted((e for e in self.items.values() if e.business_id == business_id), key=lambda e: e.full_name)

    def create(self, *, business_id, full_name, role, pin_code, email=None, phone=None) -> str:
        self._check()
        self._seq += 1
        employee_id = f"emp-{self._seq}"
        self.items[employee_id] = Employee(
            employee_id=employee_id,
            business_id=business_id,
            full_name=full_name,
            role=role,
            pin_code=pin_code,
            email=email,
            phone=phone,
            created_at=datetime(2026, 1, 1) + timedelta(minutes=self._seq),
        )
        return employee_id

    def update(self, employee_id, *, full_name, role, pin_code, email, phone) -> bool:
        self._check()
        current = self.items.get(employee_id)
        if not current:
            return False
        self.items[employee_id] = Employee(
            employee_id=employee_id,
            business_id=current.business_id,
            full_name=full_name,
            role=role,
            pin_code=pin_code,
            email=email,
            phone=phone,
            created_at=current.created_at,
        )
        return True

    def delete(self, employee_id: str) -> bool:
        self._check()
        return self.items.pop(employee_id, None) is not None


class InMemoryAttendance:
    def __init__(self):
        self.records: dict[int, AttendanceRecord] = {}
        self._seq = 0
        self.fail = False

    def _check(self):
        if self.fail:
            raise PersistenceError("Erreur d'accès aux données")

    def get_by_id(self, attendance_id: int):
        self._check()
        return self.records.get(attendance_id)

    def list_for_employee(self, employee_id: str, limit: int):
        self._check()
        items = [r for r in self.records.values() if r.employee_id == employee_id]
        items.sort(key=lambda r: r.clock_in, reverse=True)
        return items[:limit]

    def get_last_for_employee(self, employee_id: str):
        items = self.list_for_employee(employee_id, 1)
        return items[0] if items else None

    def list_for_business(self, business_id: str, *, start: datetime, end: datetime):
        self._check()
        items = [r for r in self.records.values() if r.business_id == business_id and start <= r.clock_in < end]
        return sorted(items, key=lambda r: r.clock_in)

    def open_shift(self, *, employee_id: str, business_id: str, clock_in: datetime):
        self._check()
        if any(r.employee_id == employee_id and r.is_open for r in self.records.values()):
            return None
        self._seq += 1
        self.records[self._seq] = AttendanceRecord(
            attendance_id=self._seq,
            employee_id=employee_id,
            business_id=business_id,
            clock_in=clock_in,
        )
        return self._seq

    def close_shift(self, *, attendance_id: int, clock_out: datetime) -> bool:
        self._check()
        record = self.records.get(attendance_id)
        if not record or not record.is_open:
            return False
        self.records[attendance_id] = AttendanceRecord(
            attendance_id=record.attendance_id,
            employee_id=record.employee_id,
            business_id=record.business_id,
            clock_in=record.clock_in,
            clock_out=clock_out,
        )
        return True


class InMemoryAudit:
    def __init__(self):
        self.logs: list[AuditLog] = []
        self.fail = False

    def append(self, **kwargs) -> int:
        if self.fail:
            raise PersistenceError("Erreur d'accès aux données")
        log = AuditLog(log_id=len(self.logs) + 1, **kwargs)
        self.logs.append(log)
        return log.log_id

    def search(self, business_id: str, filters: AuditFilters, *, limit: int):
        out = []
        for log in reversed(self.logs):
            if log.business_id != business_id:
                continue
            if filters.actor_id and log.actor_id != filters.actor_id:
                continue
            if filters.resource_id and log.resource_id != filters.resource_id:
                continue
            if filters.action and log.action != filters.action:
                continue
            if filters.category and log.category != filters.category:
                continue
            if filters.severity and log.severity != filters.severity:
                continue
            out.append(log)
        return out[:limit]


class InMemoryWebhooks:
    def __init__(self):
        self.events: list[WebhookEvent] = []
        self.deliveries: list[WebhookDelivery] = []
        self.fail = False

    def append_event(self, *, event_type, data, created_at) -> int:
        if self.fail:
            raise PersistenceError("Erreur d'accès aux données")
        event = WebhookEvent(event_id=len(self.events) + 1, event_type=event_type, data=data, created_at=created_at)
        self.events.append(event)
        return event.event_id

    def list_recent(self, limit: int):
        return list(reversed(self.events))[:limit]

    def _delivered(self) -> set[int]:
        return {d.event_id for d in self.deliveries if d.succeeded}

    def list_undelivered(self, limit: int):
        delivered = self._delivered()
        return [e for e in self.events if e.event_id not in delivered][:limit]

    def delivered_ids(self, event_ids):
        return self._delivered() & set(event_ids)

    def append_delivery(self, *, event_id, target_url, attempted_at, status_code, response) -> int:
        delivery = WebhookDelivery(
            delivery_id=len(self.deliveries) + 1,
            event_id=event_id,
            target_url=target_url,
            attempted_at=attempted_at,
            status_code=status_code,
            response=response,
        )
        self.deliveries.append(delivery)
        return delivery.delivery_id

    def list_deliveries(self, event_id: int):
        return [d for d in self.deliveries if d.event_id == event_id]


class FakeFetcher:
    """Serves canned responses; `offline = True` simulates a dead network."""

    def __init__(self, pages: Optional[dict[str, Any]] = None):
        self.pages: dict[str, FetchResponse] = {}
        self.offline = False
        self.calls: list[str] = []
        for url, body in (pages or {}).items():
            self.serve(url, body)

    def serve(self, url: str, body: Any = b"", *, status: int = 200, content_type: str = "text/html") -> None:
        if isinstance(body, str):
            body = body.encode("utf-8")
        self.pages[url] = FetchResponse(url=url, status=status, headers={"Content-Type": content_type}, body=body)

    def fetch(self, request: FetchRequest) -> FetchResponse:
        self.calls.append(request.url)
        if self.offline:
            raise OfflineError(f"Réseau indisponible: {request.url}")
        response = self.pages.get(request.url)
        if response is None:
            return FetchResponse(url=request.url, status=404, body=b"not found")
        return response


APP_SHELL = {
    "/": "<html>shell</html>",
    "/index.html": "<html>shell</html>",
    "/manifest.json": "{}",
    "/logo-ebo-gest.png": b"\x89PNG",
    "/favicon.ico": b"ico",
    "/static/css/main.css": "body{}",
    "/static/js/main.js": "console.log(1)",
}


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 8, 0, 0)


@pytest.fixture
def clock(fixed_now) -> FakeClock:
    return FakeClock(fixed_now)


@pytest.fixture
def cache_clock() -> MonotonicClock:
    return MonotonicClock()


@pytest.fixture
def employees_repo() -> InMemoryEmployees:
    return InMemoryEmployees()


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def audit_repo() -> InMemoryAudit:
    return InMemoryAudit()


@pytest.fixture
def webhooks_repo() -> InMemoryWebhooks:
    return InMemoryWebhooks()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher(APP_SHELL)
