"""
Canonical timestamp handling for screening records.
All record reads that sort or compare timestamps should use parse_to_utc_aware.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def now_utc_iso() -> str:
    """Return current time as a UTC ISO 8601 string."""
    return now_utc().isoformat()


def parse_to_utc_aware(ts: Any) -> datetime:
    """
    Convert a timestamp (string/datetime/None) to timezone-aware UTC datetime.
    - naive datetime -> assume UTC (SQLite drops tzinfo on the way back)
    - iso string without tz -> assume UTC
    - iso string with tz -> convert to UTC
    - None -> datetime.min (UTC), so records without a timestamp sort last
    """
    if ts is None:
        return datetime.min.replace(tzinfo=timezone.utc)

    if isinstance(ts, datetime):
        dt = ts
    else:
        from dateutil.parser import isoparse

        dt = isoparse(str(ts).strip())

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
