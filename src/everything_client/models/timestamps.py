"""Timestamp conversion — Map each transport's native time units to UTC datetimes.

Every ``SearchResult`` carries timezone-aware UTC datetimes truncated to
millisecond precision, so that two results coming from different transports
compare equal when they describe the same instant.

Native units handled here:
  - Windows ``FILETIME``: 100-nanosecond ticks since 1601-01-01 UTC
  - Unix seconds (HTTP API), possibly fractional or string-encoded
  - Unix milliseconds (the shared comparison epoch)
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta
from typing import Any

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

# 100-ns ticks between 1601-01-01 and 1970-01-01
WINDOWS_EPOCH_OFFSET = 116444736000000000
TICKS_PER_MILLISECOND = 10_000

# Everything reports unknown dates as an all-ones FILETIME
UNKNOWN_FILETIME = 0xFFFFFFFFFFFFFFFF


def from_unix_ms(milliseconds: int) -> datetime:
    """Convert Unix milliseconds to a UTC datetime.

    Values outside the range ``datetime`` can represent collapse to the epoch.
    """
    try:
        return UNIX_EPOCH + timedelta(milliseconds=int(milliseconds))
    except OverflowError:
        return UNIX_EPOCH


def to_unix_ms(value: datetime) -> int:
    """Convert a datetime to integer Unix milliseconds.

    Naive datetimes are interpreted as UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    delta = value - UNIX_EPOCH
    return (delta.days * 86_400_000) + (delta.seconds * 1000) + (delta.microseconds // 1000)


def filetime_to_datetime(ticks: int | None) -> datetime:
    """Convert a Windows ``FILETIME`` tick count to a UTC datetime.

    ``0`` and the all-ones sentinel both mean "unknown" and map to the
    Unix epoch.

    Example:
        >>> filetime_to_datetime(116444736000000000).isoformat()
        '1970-01-01T00:00:00+00:00'
    """
    if not ticks or ticks == UNKNOWN_FILETIME:
        return UNIX_EPOCH
    return from_unix_ms((int(ticks) - WINDOWS_EPOCH_OFFSET) // TICKS_PER_MILLISECOND)


def unix_seconds_to_datetime(value: Any) -> datetime:
    """Convert Unix seconds (int, float or numeric string) to a UTC datetime.

    Missing, empty or unparseable values map to the Unix epoch.
    """
    if value is None or value == "" or isinstance(value, bool):
        return UNIX_EPOCH
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return UNIX_EPOCH
    if not math.isfinite(seconds):
        return UNIX_EPOCH
    return from_unix_ms(round(seconds * 1000))
