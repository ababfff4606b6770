"""Lenient coercion of amount and timestamp values from unreliable senders.

Both coercers are total: any input produces a value, never an exception.
Timestamps always come out as UTC ISO-8601 instants with millisecond
precision (``2024-01-01T00:00:00.000Z``) so that stored timestamps sort
lexicographically in chronological order.
"""

import math
import re
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

# Leading float literal, mirroring lenient "parse the numeric prefix" behavior.
_FLOAT_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

# Tried in order after ISO-8601 parsing fails ("/" already replaced by "-").
_FALLBACK_FORMATS = (
    "%Y-%m-%d",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%m-%d-%Y",
    "%m-%d-%Y %H:%M:%S",
    "%d %b %Y",
    "%b %d %Y",
    "%b %d, %Y",
    "%Y%m%d",
)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_instant(value: datetime) -> str:
    """Render a datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ`` in UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    # %Y is not zero-padded below year 1000 on every platform
    return f"{value.year:04d}-{value:%m-%dT%H:%M:%S}.{value.microsecond // 1000:03d}Z"


def coerce_amount(value: Any) -> float:
    """Coerce a resolved amount to float. Unusable input yields 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float, Decimal)):
        try:
            result = float(value)
        except (OverflowError, ValueError):
            # Integers beyond float range, signaling NaN decimals
            return 0.0
    elif isinstance(value, str):
        match = _FLOAT_PREFIX.match(value.replace(",", "").strip())
        if not match:
            return 0.0
        result = float(match.group(0))
    else:
        return 0.0
    return result if math.isfinite(result) else 0.0


def coerce_timestamp(value: Any, now: datetime | None = None) -> str:
    """Coerce a resolved timestamp to an ISO-8601 instant string.

    Falls back to ``now`` (default: current UTC time) for anything that
    cannot be parsed.
    """
    fallback = now if now is not None else utc_now()
    parsed = _parse_instant(value)
    if parsed is None:
        return format_instant(fallback)
    try:
        return format_instant(parsed)
    except (OverflowError, ValueError):
        # UTC conversion pushed the instant outside datetime's range
        return format_instant(fallback)


def _parse_instant(value: Any) -> datetime | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        # Numeric timestamps are epoch milliseconds
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        return _parse_instant_text(value)
    return None


def _parse_instant_text(text: str) -> datetime | None:
    cleaned = text.strip().replace("/", "-")
    if not cleaned:
        return None
    try:
        return datetime.fromisoformat(cleaned)
    except ValueError:
        pass
    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt)
        except ValueError:
            continue
    return None
