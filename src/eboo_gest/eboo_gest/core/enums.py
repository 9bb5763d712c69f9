from __future__ import annotations

from enum import Enum


class EmployeeRole(str, Enum):
    """Rôle d'un employé dans l'établissement."""

    OWNER = "owner"
    MANAGER = "manager"
    CASHIER = "cashier"
    SERVER = "server"
    COOK = "cook"
    STAFF = "staff"


class KioskState(str, Enum):
    """État du poste de pointage partagé."""

    UNIDENTIFIED = "UNIDENTIFIED"
    VERIFYING = "VERIFYING"
    IDENTIFIED = "IDENTIFIED"
    CLOCKED_IN = "CLOCKED_IN"
    CLOCKED_OUT = "CLOCKED_OUT"


class WorkerState(str, Enum):
    """Cycle de vie d'une version du cache hors ligne."""

    PARSED = "parsed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"
    REDUNDANT = "redundant"


class AuditSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AuditCategory(str, Enum):
    AUTH = "auth"
    DATA = "data"
    SYSTEM = "system"
    SECURITY = "security"
    BUSINESS = "business"


class WebhookEventType(str, Enum):
    USER_REGISTRATION = "user_registration"
    PME_REGISTRATION = "pme_registration"
    SALE_COMPLETED = "sale_completed"
    STOCK_ALERT = "stock_alert"
    SYSTEM_ALERT = "system_alert"
    EMPLOYEE_CLOCKED_IN = "employee_clocked_in"
    EMPLOYEE_CLOCKED_OUT = "employee_clocked_out"


class ToastVariant(str, Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"
