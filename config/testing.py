import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "eboo_gest_test"),
}

DEBUG = False
TESTING = True

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

LOG_LEVEL = "WARNING"
LOG_JSON = False

CACHE_VERSION = "test"
DYNAMIC_CACHE_MAX_ENTRIES = 20
DYNAMIC_CACHE_TTL_SECONDS = 0
OFFLINE_UPSTREAM_URL = "http://upstream.test"
OFFLINE_FETCH_TIMEOUT_SECONDS = 1.0

KIOSK_IDLE_TIMEOUT_SECONDS = 120
KIOSK_REGISTRY_TTL_SECONDS = 1800
REPORT_UTC_OFFSET_MINUTES = 0

WEBHOOK_SECRET = "test-webhook-secret"
WEBHOOK_TARGET_URL = ""

PUBLIC_BASE_URL = "http://kiosk.test"
