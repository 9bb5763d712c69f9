from __future__ import annotations

from typing import Optional, Sequence

from ..audit.service import AuditService
from ..common.logging_config import Sensitive, get_logger
from ..common.validators import require_non_empty, require_pin
from ..core.enums import EmployeeRole
from ..core.exceptions import AuthorizationError, ConflictError, InvalidPinError, ValidationError
from .model import Employee
from .repository import EmployeeRepository

logger = get_logger("employees")

MANAGING_ROLES = frozenset([EmployeeRole.OWNER, EmployeeRole.MANAGER])


def _parse_role(value) -> EmployeeRole:
    try:
        return EmployeeRole(value)
    except ValueError as e:
        raise ValidationError(f"Rôle inconnu: {value}") from e


class PinDirectory:
    """Use case: resolve a kiosk PIN to an employee of one tenant."""

    def __init__(self, employees: EmployeeRepository):
        self._employees = employees

    def verify(self, business_id: str, pin: str) -> Employee:
        matches = self._employees.find_by_pin(business_id, pin)
        if not matches:
            logger.info("No employee of business %s matches PIN %s", business_id, Sensitive(pin))
            raise InvalidPinError("Code PIN invalide")
        if len(matches) > 1:
            # Rows written before PIN uniqueness was enforced.
            logger.warning(
                "PIN %s is shared by %d employees of business %s; using the oldest",
                Sensitive(pin),
                len(matches),
                business_id,
            )
        return matches[0]


class EmployeeService:
    """Use case: manage employees (owner/manager)."""

    def __init__(self, employees: EmployeeRepository, *, audit: Optional[AuditService] = None):
        self._employees = employees
        self._audit = audit

    @staticmethod
    def _require_manager(actor_role: EmployeeRole) -> None:
        if actor_role not in MANAGING_ROLES:
            raise AuthorizationError("Vous n'avez pas les droits pour gérer le personnel")

    def _require_unique_pin(self, business_id: str, pin: str, *, except_id: Optional[str] = None) -> None:
        for other in self._employees.find_by_pin(business_id, pin):
            if other.employee_id != except_id:
                raise ConflictError("Ce code PIN est déjà utilisé par un autre employé.")

    def _get_in_business(self, business_id: str, employee_id: str) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if not employee or employee.business_id != business_id:
            raise ValidationError("Employé introuvable")
        return employee

    def list_employees(self, business_id: str) -> Sequence[Employee]:
        return self._employees.list_for_business(business_id)

    def get_employee(self, business_id: str, employee_id: str) -> Employee:
        return self._get_in_business(business_id, employee_id)

    def create_employee(
        self,
        *,
        business_id: str,
        actor_id: str,
        actor_role: EmployeeRole,
        full_name: str,
        role,
        pin_code: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Employee:
        self._require_manager(actor_role)
        full_name = require_non_empty(full_name, "Nom complet")
        role = _parse_role(role)
        pin_code = require_pin(pin_code)
        if role == EmployeeRole.OWNER:
            raise ValidationError("Le propriétaire ne se crée pas depuis cet écran")
        self._require_unique_pin(business_id, pin_code)

        employee_id = self._employees.create(
            business_id=business_id,
            full_name=full_name,
            role=role,
            pin_code=pin_code,
            email=email or None,
            phone=phone or None,
        )
        employee = self._get_in_business(business_id, employee_id)
        logger.info("Employee %s created in business %s (email=%s)", employee_id, business_id, Sensitive(email))

        if self._audit:
            self._audit.log_employee_action(
                business_id=business_id,
                actor_id=actor_id,
                action="employee_created",
                employee_id=employee_id,
                new_values=employee.to_public_dict(),
            )
        return employee

    def update_employee(
        self,
        *,
        business_id: str,
        actor_id: str,
        actor_role: EmployeeRole,
        employee_id: str,
        full_name: Optional[str] = None,
        role=None,
        pin_code: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Employee:
        """Partial update. An empty pin_code keeps the current PIN."""

        self._require_manager(actor_role)
        current = self._get_in_business(business_id, employee_id)

        new_name = require_non_empty(full_name, "Nom complet") if full_name is not None else current.full_name
        new_role = _parse_role(role) if role is not None else current.role
        new_pin = current.pin_code
        if pin_code:
            new_pin = require_pin(pin_code)
            if new_pin != current.pin_code:
                self._require_unique_pin(business_id, new_pin, except_id=employee_id)

        self._employees.update(
            employee_id,
            full_name=new_name,
            role=new_role,
            pin_code=new_pin,
            email=email if email is not None else current.email,
            phone=phone if phone is not None else current.phone,
        )
        updated = self._get_in_business(business_id, employee_id)

        if self._audit:
            new_values = updated.to_public_dict()
            if new_pin != current.pin_code:
                new_values["pin_changed"] = True
            self._audit.log_employee_action(
                business_id=business_id,
                actor_id=actor_id,
                action="employee_updated",
                employee_id=employee_id,
                old_values=current.to_public_dict(),
                new_values=new_values,
            )
        return updated

    def delete_employee(self, *, business_id: str, actor_id: str, actor_role: EmployeeRole, employee_id: str) -> None:
        self._require_manager(actor_role)
        employee = self._get_in_business(business_id, employee_id)
        if employee.role == EmployeeRole.OWNER:
            raise ValidationError("Impossible de supprimer le propriétaire")
        if not self._employees.delete(employee_id):
            raise ValidationError("Suppression de l'employé échouée")

        if self._audit:
            self._audit.log_employee_action(
                business_id=business_id,
                actor_id=actor_id,
                action="employee_deleted",
                employee_id=employee_id,
                old_values=employee.to_public_dict(),
            )
