from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import EmployeeRole


@dataclass(frozen=True)
class Employee:
    """Entité métier : employé d'un établissement (tenant = business_id).

    Note: pin_code is the 4-digit kiosk code; never log or export it.
    """

    employee_id: str
    business_id: str
    full_name: str
    role: EmployeeRole
    pin_code: str
    email: Optional[str] = None
    phone: Optional[str] = None
    created_at: Optional[datetime] = None

    def to_public_dict(self) -> dict:
        return {
            "id": self.employee_id,
            "business_id": self.business_id,
            "full_name": self.full_name,
            "role": self.role.value,
            "email": self.email,
            "phone": self.phone,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
