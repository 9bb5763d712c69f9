from __future__ import annotations

import importlib
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .common.logging_config import configure_logging, get_logger
from .common.web import register_error_handlers
from .core.exceptions import CacheInstallError
from .database.bootstrap import apply_schema, list_tables

from .container import Container, build_container
from .attendance.controller import register as register_attendance
from .audit.controller import register as register_audit
from .employees.controller import register as register_employees
from .gdpr.controller import register as register_gdpr
from .offline.controller import register as register_offline
from .webhooks.controller import register as register_webhooks

logger = get_logger("app")

# Settings copied from the settings module into app.config.
SETTINGS_KEYS = (
    "DEBUG",
    "LOG_LEVEL",
    "LOG_JSON",
    "CACHE_VERSION",
    "DYNAMIC_CACHE_MAX_ENTRIES",
    "DYNAMIC_CACHE_TTL_SECONDS",
    "OFFLINE_UPSTREAM_URL",
    "OFFLINE_FETCH_TIMEOUT_SECONDS",
    "KIOSK_IDLE_TIMEOUT_SECONDS",
    "KIOSK_REGISTRY_TTL_SECONDS",
    "REPORT_UTC_OFFSET_MINUTES",
    "WEBHOOK_SECRET",
    "WEBHOOK_TARGET_URL",
    "PUBLIC_BASE_URL",
)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    for key in SETTINGS_KEYS:
        if hasattr(settings, key):
            app.config[key] = getattr(settings, key)
    app.config["DEBUG"] = bool(app.config.get("DEBUG", False))

    configure_logging(app.config.get("LOG_LEVEL", "INFO"), json_logs=bool(app.config.get("LOG_JSON", False)))
    logger.info(
        "Starting with settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

    container = build_container(db_config=db_config, settings=app.config)

    try:
        container.registration.register(container.new_worker())
    except CacheInstallError as e:
        # The app still starts; pages go straight to the network until /sw/register succeeds.
        logger.warning("Offline cache not installed at startup: %s", e)

    register_routes(app, container)
    return app


def register_routes(app: Flask, container: Container) -> None:
    register_error_handlers(app)
    register_employees(app, container)
    register_attendance(app, container)
    register_audit(app, container)
    register_webhooks(app, container)
    register_gdpr(app, container)
    register_offline(app, container)
