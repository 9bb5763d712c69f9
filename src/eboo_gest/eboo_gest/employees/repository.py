from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import EmployeeRole
from .model import Employee


class EmployeeRepository(Protocol):
    """Interface repository des employés.

    Note (DIP): services depend on this interface, never on a concrete store.
    """

    def get_by_id(self, employee_id: str) -> Optional[Employee]:
        raise NotImplementedError

    def find_by_pin(self, business_id: str, pin_code: str) -> Sequence[Employee]:
        """All employees of the tenant carrying this PIN, oldest first."""
        raise NotImplementedError

    def list_for_business(self, business_id: str) -> Sequence[Employee]:
        raise NotImplementedError

    def create(
        self,
        *,
        business_id: str,
        full_name: str,
        role: EmployeeRole,
        pin_code: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> str:
        raise NotImplementedError

    def update(
        self,
        employee_id: str,
        *,
        full_name: str,
        role: EmployeeRole,
        pin_code: str,
        email: Optional[str],
        phone: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def delete(self, employee_id: str) -> bool:
        raise NotImplementedError
