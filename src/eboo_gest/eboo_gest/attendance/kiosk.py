"""PIN kiosk: identify a shift worker on a shared device by a 4-digit code.

    UNIDENTIFIED --verify()--> VERIFYING --hit--> IDENTIFIED / CLOCKED_IN / CLOCKED_OUT
                                        \\--miss--> UNIDENTIFIED (error, pin cleared)

Once identified, the clocked-in/out state is derived from the employee's most
recent attendance record. reset() and the idle timeout return to UNIDENTIFIED.
Persistence failures surface as a destructive toast and leave the state as it was.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from ..audit.service import AuditService
from ..common.datetime_utils import now_utc
from ..common.logging_config import get_logger
from ..common.validators import is_partial_pin
from ..core.constants import DEFAULT_KIOSK_IDLE_TIMEOUT_SECONDS, DEFAULT_KIOSK_REGISTRY_TTL_SECONDS, PIN_LENGTH
from ..core.enums import AuditSeverity, KioskState, ToastVariant
from ..core.exceptions import ConflictError, InvalidPinError, PersistenceError, ValidationError
from ..employees.model import Employee
from ..employees.service import PinDirectory
from .model import AttendanceRecord
from .service import AttendanceService

logger = get_logger("attendance.kiosk")

INVALID_PIN_MESSAGE = "Code PIN invalide"


@dataclass(frozen=True)
class Toast:
    title: str
    description: Optional[str] = None
    variant: ToastVariant = ToastVariant.DEFAULT

    def to_dict(self) -> dict:
        return {"title": self.title, "description": self.description, "variant": self.variant.value}


class PinKiosk:
    def __init__(
        self,
        business_id: str,
        pins: PinDirectory,
        attendance: AttendanceService,
        *,
        audit: Optional[AuditService] = None,
        idle_timeout_seconds: Optional[float] = DEFAULT_KIOSK_IDLE_TIMEOUT_SECONDS,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.business_id = business_id
        self._pins = pins
        self._attendance = attendance
        self._audit = audit
        self._idle_timeout = timedelta(seconds=idle_timeout_seconds) if idle_timeout_seconds else None
        self._clock = clock

        self.pin = ""
        self.employee: Optional[Employee] = None
        self.last_attendance: Optional[AttendanceRecord] = None
        self.error: Optional[str] = None
        self._verifying = False
        self._last_activity: Optional[datetime] = None
        self._toasts: list[Toast] = []

    # -------------------------------------------------------------------- state

    @property
    def state(self) -> KioskState:
        if self._verifying:
            return KioskState.VERIFYING
        if self.employee is None:
            return KioskState.UNIDENTIFIED
        if self.last_attendance is None:
            return KioskState.IDENTIFIED
        return KioskState.CLOCKED_IN if self.last_attendance.is_open else KioskState.CLOCKED_OUT

    @property
    def can_verify(self) -> bool:
        return not self._verifying and self.employee is None and len(self.pin) == PIN_LENGTH

    @property
    def can_clock_in(self) -> bool:
        return self.state in (KioskState.IDENTIFIED, KioskState.CLOCKED_OUT)

    @property
    def can_clock_out(self) -> bool:
        return self.state == KioskState.CLOCKED_IN

    def _toast(self, title: str, description: Optional[str] = None, *, destructive: bool = False) -> None:
        variant = ToastVariant.DESTRUCTIVE if destructive else ToastVariant.DEFAULT
        self._toasts.append(Toast(title=title, description=description, variant=variant))

    def drain_toasts(self) -> list[Toast]:
        toasts, self._toasts = self._toasts, []
        return toasts

    def _touch(self) -> None:
        self._last_activity = self._clock()

    def expire_if_idle(self) -> bool:
        """Drop an identified employee left idle past the timeout."""
        if self.employee is None or self._idle_timeout is None or self._last_activity is None:
            return False
        if self._clock() - self._last_activity <= self._idle_timeout:
            return False
        logger.info("Kiosk session for employee %s expired after inactivity", self.employee.employee_id)
        self.reset()
        self._toast("Session expirée", "Veuillez saisir à nouveau votre code PIN.")
        return True

    # --------------------------------------------------------------- operations

    def submit_pin(self, value: str) -> bool:
        """Replace the typed PIN. Non-digit or over-length input is ignored."""
        self.expire_if_idle()
        if self.employee is not None or not is_partial_pin(value):
            return False
        self.pin = value
        self._touch()
        return True

    def verify(self) -> Optional[Employee]:
        self.expire_if_idle()
        if not self.can_verify:
            return None

        self._verifying = True
        try:
            employee = self._pins.verify(self.business_id, self.pin)
            last = self._attendance.fetch_last_attendance(employee.employee_id)
        except InvalidPinError:
            self.employee = None
            self.last_attendance = None
            self.error = INVALID_PIN_MESSAGE
            self.pin = ""
            self._toast(INVALID_PIN_MESSAGE, "Veuillez réessayer ou contacter un manager.", destructive=True)
            if self._audit:
                self._audit.log_security_action(
                    business_id=self.business_id,
                    actor_id="kiosk",
                    action="kiosk_invalid_pin",
                    resource_id=self.business_id,
                    severity=AuditSeverity.LOW,
                )
            return None
        except PersistenceError:
            self._toast("Erreur de connexion", "Vérification impossible, réessayez.", destructive=True)
            return None
        finally:
            self._verifying = False

        self.employee = employee
        self.last_attendance = last
        self.error = None
        self.pin = ""
        self._touch()
        self._toast(f"Bienvenue, {employee.full_name}")
        return employee

    def fetch_last_attendance(self) -> Optional[AttendanceRecord]:
        self.expire_if_idle()
        if self.employee is None:
            return None
        try:
            self.last_attendance = self._attendance.fetch_last_attendance(self.employee.employee_id)
        except PersistenceError:
            self._toast("Erreur de connexion", "Impossible de charger le dernier pointage.", destructive=True)
        return self.last_attendance

    def clock_in(self) -> Optional[AttendanceRecord]:
        self.expire_if_idle()
        if not self.can_clock_in:
            raise ConflictError("Pointage d'arrivée non autorisé dans cet état")

        try:
            record = self._attendance.clock_in(self.employee.employee_id, self.business_id)
        except PersistenceError:
            self._toast("Erreur lors du pointage", destructive=True)
            return None
        except ValidationError as e:
            # Another device changed the record meanwhile.
            self._toast(str(e), destructive=True)
            self.fetch_last_attendance()
            return None

        self.last_attendance = record
        self._touch()
        self._toast("Heure d'arrivée enregistrée")
        return record

    def clock_out(self) -> Optional[AttendanceRecord]:
        self.expire_if_idle()
        if not self.can_clock_out:
            raise ConflictError("Pointage de départ non autorisé dans cet état")

        try:
            record = self._attendance.clock_out(self.last_attendance.attendance_id)
        except PersistenceError:
            self._toast("Erreur lors du départ", destructive=True)
            return None
        except ValidationError as e:
            self._toast(str(e), destructive=True)
            self.fetch_last_attendance()
            return None

        self.last_attendance = record
        self._touch()
        self._toast("Heure de départ enregistrée")
        return record

    def reset(self) -> None:
        self.pin = ""
        self.employee = None
        self.last_attendance = None
        self.error = None
        self._last_activity = None

    def snapshot(self) -> dict:
        return {
            "state": self.state.value,
            "business_id": self.business_id,
            "pin_length": len(self.pin),
            "error": self.error,
            "employee": self.employee.to_public_dict() if self.employee else None,
            "last_attendance": self.last_attendance.to_dict() if self.last_attendance else None,
            "can_verify": self.can_verify,
            "can_clock_in": self.can_clock_in,
            "can_clock_out": self.can_clock_out,
        }


class KioskRegistry:
    """One kiosk per device, kept in memory by the web process.

    A device unseen for longer than `ttl_seconds` is forgotten; its next
    request starts a fresh kiosk.
    """

    def __init__(
        self,
        factory: Callable[[str], PinKiosk],
        *,
        ttl_seconds: Optional[float] = DEFAULT_KIOSK_REGISTRY_TTL_SECONDS,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._factory = factory
        self._ttl = timedelta(seconds=ttl_seconds) if ttl_seconds else None
        self._clock = clock
        self._kiosks: dict[str, PinKiosk] = {}
        self._seen: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._kiosks)

    def _evict_stale(self, now: datetime) -> None:
        if self._ttl is None:
            return
        stale = [device_id for device_id, seen in self._seen.items() if now - seen > self._ttl]
        for device_id in stale:
            self._kiosks.pop(device_id, None)
            self._seen.pop(device_id, None)
        if stale:
            logger.debug("Forgot %d idle kiosk devices", len(stale))

    def get(self, device_id: str, business_id: str) -> PinKiosk:
        now = self._clock()
        with self._lock:
            self._evict_stale(now)
            kiosk = self._kiosks.get(device_id)
            if kiosk is None or kiosk.business_id != business_id:
                kiosk = self._factory(business_id)
                self._kiosks[device_id] = kiosk
            self._seen[device_id] = now
            return kiosk

    def drop(self, device_id: str) -> None:
        with self._lock:
            self._kiosks.pop(device_id, None)
            self._seen.pop(device_id, None)
