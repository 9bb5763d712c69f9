from __future__ import annotations

import re

from ..core.constants import PIN_LENGTH
from ..core.exceptions import ValidationError

_PIN_RE = re.compile(rf"\d{{{PIN_LENGTH}}}", re.ASCII)
_PARTIAL_PIN_RE = re.compile(r"\d*", re.ASCII)


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} invalide")
    return value.strip()


def require_pin(value: str) -> str:
    if not isinstance(value, str) or not _PIN_RE.fullmatch(value):
        raise ValidationError(f"Le code PIN doit contenir exactement {PIN_LENGTH} chiffres.")
    return value


def is_partial_pin(value: str) -> bool:
    """True while `value` could still grow into a valid PIN (digits only, not too long)."""
    return isinstance(value, str) and bool(_PARTIAL_PIN_RE.fullmatch(value)) and len(value) <= PIN_LENGTH
