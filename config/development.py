import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "eboo_gest"),
}

DEBUG = True

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))

LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
LOG_JSON = bool(int(os.getenv("LOG_JSON", "0")))

# Offline cache
CACHE_VERSION = os.getenv("CACHE_VERSION", "v2")
DYNAMIC_CACHE_MAX_ENTRIES = int(os.getenv("DYNAMIC_CACHE_MAX_ENTRIES", "200"))
DYNAMIC_CACHE_TTL_SECONDS = int(os.getenv("DYNAMIC_CACHE_TTL_SECONDS", "86400"))
OFFLINE_UPSTREAM_URL = os.getenv("OFFLINE_UPSTREAM_URL", "http://localhost:3000")
OFFLINE_FETCH_TIMEOUT_SECONDS = float(os.getenv("OFFLINE_FETCH_TIMEOUT_SECONDS", "10"))

# PIN kiosk (0 disables the idle timeout)
KIOSK_IDLE_TIMEOUT_SECONDS = int(os.getenv("KIOSK_IDLE_TIMEOUT_SECONDS", "120"))
# Unused kiosk devices are forgotten after this many seconds
KIOSK_REGISTRY_TTL_SECONDS = int(os.getenv("KIOSK_REGISTRY_TTL_SECONDS", "1800"))

# Timesheet days follow the business clock (Africa/Douala is UTC+1, no DST)
REPORT_UTC_OFFSET_MINUTES = int(os.getenv("REPORT_UTC_OFFSET_MINUTES", "60"))

WEBHOOK_SECRET = os.getenv("WEBHOOK_SECRET", "dev-webhook-secret")
WEBHOOK_TARGET_URL = os.getenv("WEBHOOK_TARGET_URL", "")

PUBLIC_BASE_URL = os.getenv("PUBLIC_BASE_URL", "http://localhost:5000")
