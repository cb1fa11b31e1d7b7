from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def now_utc() -> datetime:
    """Return current time as tz-aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp string into tz-aware UTC datetime.

    Accepts strings like:
      - 2026-01-01T12:34:56Z
      - 2026-01-01T12:34:56.123Z
      - 2026-01-01T12:34:56+09:00
    """
    if not isinstance(value, str) or not value:
        raise ValueError("timestamp value must be a non-empty string")

    s = value.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)  # raises ValueError if invalid
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_timestamp_or_none(value: object) -> Optional[datetime]:
    """Lenient variant used when decoding server payloads."""
    if not isinstance(value, str):
        return None
    try:
        return parse_timestamp(value)
    except ValueError:
        return None
