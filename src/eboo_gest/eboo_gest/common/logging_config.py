"""
Logging setup for the Ebo'o Gest backend.

JSON lines in production, a plain console format in development. Values that
must never reach a log sink (PINs, contact details, secrets) are wrapped at the
call site in `Sensitive`, so redaction does not depend on what the message or
field happens to be called:

    logger.info("PIN submitted for business %s: %s", business_id, Sensitive(pin))
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")

MASK = "***"

_RESERVED_RECORD_KEYS = frozenset(
    [
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "message", "taskName",
    ]
)


class Sensitive(Generic[T]):
    """Typed wrapper for a value that must be masked whenever it is rendered."""

    __slots__ = ("_value",)

    def __init__(self, value: T):
        self._value = value

    def reveal(self) -> T:
        return self._value

    def __str__(self) -> str:
        return MASK

    def __repr__(self) -> str:
        return f"Sensitive({MASK})"

    def __format__(self, format_spec: str) -> str:
        return MASK

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Sensitive):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)


def _jsonable(value: Any) -> Any:
    if isinstance(value, Sensitive):
        return MASK
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log aggregators."""

    def __init__(self, service_name: str = "eboo-gest"):
        super().__init__()
        self.service_name = service_name

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service_name,
            "source": {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        extra_fields = {
            key: _jsonable(value)
            for key, value in record.__dict__.items()
            if key not in _RESERVED_RECORD_KEYS and not key.startswith("_")
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    def __init__(self):
        super().__init__("%(asctime)s [%(levelname)s] %(name)s: %(message)s")


def configure_logging(level: str = "INFO", *, json_logs: bool = False, stream: Optional[Any] = None) -> None:
    """Install a single root handler. Safe to call more than once."""

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter() if json_logs else ConsoleFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_eboo_gest", False):
            root.removeHandler(existing)
    handler._eboo_gest = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    # Quieter third-party loggers
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("werkzeug").setLevel(logging.WARNING)


def get_logger(feature: str) -> logging.Logger:
    return logging.getLogger(f"eboo_gest.{feature}")
