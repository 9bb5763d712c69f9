"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

PIN_LENGTH = 4

DEFAULT_CACHE_VERSION = "v2"
DEFAULT_DYNAMIC_CACHE_MAX_ENTRIES = 200
DEFAULT_DYNAMIC_CACHE_TTL_SECONDS = 24 * 60 * 60
DEFAULT_FETCH_TIMEOUT_SECONDS = 10

DEFAULT_KIOSK_IDLE_TIMEOUT_SECONDS = 120
DEFAULT_KIOSK_REGISTRY_TTL_SECONDS = 30 * 60
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_REPORT_DAYS = 7
# Report days in UTC unless the deployment sets its offset (Cameroon: +60).
DEFAULT_REPORT_UTC_OFFSET_MINUTES = 0

WEBHOOK_TIMEOUT_SECONDS = 5

APP_NAME = "Ebo'o Gest"
