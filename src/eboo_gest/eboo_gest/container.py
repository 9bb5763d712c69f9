from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from .attendance.kiosk import KioskRegistry, PinKiosk
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .attendance.timesheet import TimesheetService
from .audit.mysql_audit_repository import MySQLAuditRepository
from .audit.repository import AuditRepository
from .audit.service import AuditService
from .core.constants import (
    DEFAULT_CACHE_VERSION,
    DEFAULT_DYNAMIC_CACHE_MAX_ENTRIES,
    DEFAULT_DYNAMIC_CACHE_TTL_SECONDS,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_KIOSK_IDLE_TIMEOUT_SECONDS,
    DEFAULT_KIOSK_REGISTRY_TTL_SECONDS,
    DEFAULT_REPORT_UTC_OFFSET_MINUTES,
)
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .employees.service import EmployeeService, PinDirectory
from .gdpr.service import DataExportService
from .offline.clients import Clients, NotificationTray
from .offline.network import Fetcher, RequestsFetcher
from .offline.partitions import CacheStorage
from .offline.registration import ServiceWorkerRegistration
from .offline.worker import OfflineCacheWorker
from .webhooks.mysql_webhook_repository import MySQLWebhookRepository
from .webhooks.repository import WebhookRepository
from .webhooks.service import WebhookService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]

    employees_repo: EmployeeRepository
    attendance_repo: AttendanceRepository
    audit_repo: AuditRepository
    webhooks_repo: WebhookRepository

    audit_service: AuditService
    webhook_service: WebhookService
    pin_directory: PinDirectory
    employee_service: EmployeeService
    attendance_service: AttendanceService
    timesheet_service: TimesheetService
    export_service: DataExportService

    cache_storage: CacheStorage
    clients: Clients
    notifications: NotificationTray
    registration: ServiceWorkerRegistration
    kiosks: KioskRegistry
    new_worker: Callable[[], OfflineCacheWorker]


def build_services(
    *,
    employees_repo: EmployeeRepository,
    attendance_repo: AttendanceRepository,
    audit_repo: AuditRepository,
    webhooks_repo: WebhookRepository,
    fetcher: Fetcher,
    settings: Mapping[str, Any],
    conn: Optional[DatabaseConnection] = None,
    webhook_session=None,
) -> Container:
    """Wire services over the given repositories (MySQL in the app, fakes in tests)."""

    audit_service = AuditService(audit_repo)
    webhook_service = WebhookService(
        webhooks_repo,
        target_url=settings.get("WEBHOOK_TARGET_URL"),
        secret=settings.get("WEBHOOK_SECRET"),
        audit=audit_service,
        session=webhook_session,
    )
    pin_directory = PinDirectory(employees_repo)
    employee_service = EmployeeService(employees_repo, audit=audit_service)
    attendance_service = AttendanceService(
        attendance_repo,
        employees_repo,
        audit=audit_service,
        webhooks=webhook_service,
    )
    timesheet_service = TimesheetService(
        attendance_repo,
        employees_repo,
        utc_offset_minutes=int(settings.get("REPORT_UTC_OFFSET_MINUTES", DEFAULT_REPORT_UTC_OFFSET_MINUTES)),
    )
    export_service = DataExportService(employees_repo, attendance_repo, audit_repo)

    idle_timeout = float(settings.get("KIOSK_IDLE_TIMEOUT_SECONDS", DEFAULT_KIOSK_IDLE_TIMEOUT_SECONDS))

    def new_kiosk(business_id: str) -> PinKiosk:
        return PinKiosk(
            business_id,
            pin_directory,
            attendance_service,
            audit=audit_service,
            idle_timeout_seconds=idle_timeout,
        )

    cache_storage = CacheStorage()
    # Open pages and shown notifications outlive any single cache version.
    clients = Clients()
    notifications = NotificationTray()
    registration = ServiceWorkerRegistration(fetcher)
    max_entries = int(settings.get("DYNAMIC_CACHE_MAX_ENTRIES", DEFAULT_DYNAMIC_CACHE_MAX_ENTRIES))
    ttl_seconds = float(settings.get("DYNAMIC_CACHE_TTL_SECONDS", DEFAULT_DYNAMIC_CACHE_TTL_SECONDS))

    def new_worker() -> OfflineCacheWorker:
        return OfflineCacheWorker(
            cache_storage,
            fetcher,
            version=str(settings.get("CACHE_VERSION", DEFAULT_CACHE_VERSION)),
            clients=clients,
            notifications=notifications,
            dynamic_max_entries=max_entries or None,
            dynamic_ttl_seconds=ttl_seconds or None,
        )

    return Container(
        conn=conn,
        employees_repo=employees_repo,
        attendance_repo=attendance_repo,
        audit_repo=audit_repo,
        webhooks_repo=webhooks_repo,
        audit_service=audit_service,
        webhook_service=webhook_service,
        pin_directory=pin_directory,
        employee_service=employee_service,
        attendance_service=attendance_service,
        timesheet_service=timesheet_service,
        export_service=export_service,
        cache_storage=cache_storage,
        clients=clients,
        notifications=notifications,
        registration=registration,
        kiosks=KioskRegistry(
            new_kiosk,
            ttl_seconds=float(settings.get("KIOSK_REGISTRY_TTL_SECONDS", DEFAULT_KIOSK_REGISTRY_TTL_SECONDS)),
        ),
        new_worker=new_worker,
    )


def build_container(*, db_config: dict, settings: Mapping[str, Any]) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))
    fetcher = RequestsFetcher(
        str(settings.get("OFFLINE_UPSTREAM_URL") or "http://localhost:3000"),
        timeout=float(settings.get("OFFLINE_FETCH_TIMEOUT_SECONDS", DEFAULT_FETCH_TIMEOUT_SECONDS)),
    )
    return build_services(
        employees_repo=MySQLEmployeeRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        audit_repo=MySQLAuditRepository(conn),
        webhooks_repo=MySQLWebhookRepository(conn),
        fetcher=fetcher,
        settings=settings,
        conn=conn,
    )
