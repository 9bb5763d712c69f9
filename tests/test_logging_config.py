from __future__ import annotations

import io
import json
import logging

import pytest

from src.eboo_gest.eboo_gest.common.logging_config import (
    MASK,
    JSONFormatter,
    Sensitive,
    configure_logging,
    get_logger,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_sensitive_renders_as_mask():
    pin = Sensitive("1234")
    assert str(pin) == MASK
    assert f"{pin}" == MASK
    assert "1234" not in repr(pin)
    assert pin.reveal() == "1234"


def test_log_line_never_contains_sensitive_value():
    stream = io.StringIO()
    configure_logging("DEBUG", stream=stream)
    get_logger("tests").info("PIN %s for %s", Sensitive("4821"), "biz-A")
    get_logger("tests").info("contact", extra={"email": Sensitive("awa@example.cm")})

    out = stream.getvalue()
    assert "4821" not in out
    assert "PIN *** for biz-A" in out


def test_json_formatter_masks_extra_fields():
    record = logging.LogRecord("eboo_gest.tests", logging.INFO, __file__, 1, "webhook %s", (Sensitive("tok"),), None)
    record.secret = Sensitive("s3cret")
    record.nested = {"phone": Sensitive("+237600000000"), "city": "Douala"}

    data = json.loads(JSONFormatter().format(record))

    assert data["message"] == "webhook ***"
    assert data["service"] == "eboo-gest"
    assert data["extra"]["secret"] == MASK
    assert data["extra"]["nested"] == {"phone": MASK, "city": "Douala"}


def test_configure_logging_does_not_stack_handlers():
    root = logging.getLogger()
    configure_logging("INFO")
    configure_logging("INFO", json_logs=True)

    ours = [h for h in root.handlers if getattr(h, "_eboo_gest", False)]
    assert len(ours) == 1
    assert isinstance(ours[0].formatter, JSONFormatter)
