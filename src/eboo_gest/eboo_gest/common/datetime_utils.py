from __future__ import annotations

from datetime import date, datetime, timezone


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_utc() -> datetime:
    """Current server time (naive UTC, as stored in DATETIME columns).

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_minutes(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"
