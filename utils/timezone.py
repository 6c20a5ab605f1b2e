"""
Time helpers.

Invoices and products are stamped in UTC and stored as TIMESTAMPTZ. A local
zone only comes into play when a receipt is printed.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

RECEIPT_FORMAT = "%Y-%m-%d %H:%M"


def now_utc() -> datetime:
    """Current time in UTC. Use this instead of datetime.now()."""
    return datetime.now(timezone.utc)


def _require_aware(dt: datetime) -> None:
    if dt.tzinfo is None:
        raise ValueError("Cannot convert naive datetime. Datetime must be timezone-aware.")


def to_utc(dt: datetime) -> datetime:
    """
    Convert an aware datetime to UTC.

    Raises ValueError if datetime is naive (no timezone).
    """
    _require_aware(dt)
    return dt.astimezone(timezone.utc)


def get_zone(tz_name: str) -> ZoneInfo:
    """
    Look up an IANA zone such as "Asia/Colombo".

    Raises:
        ValueError: If the name is not a known zone
    """
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {tz_name}")


def to_local(dt: datetime, tz_name: str) -> datetime:
    """Convert an aware datetime to the given zone, for display only."""
    _require_aware(dt)
    return dt.astimezone(get_zone(tz_name))


def format_local(dt: datetime, tz_name: str, fmt: str = RECEIPT_FORMAT) -> str:
    """Local wall-clock text for a stored timestamp, e.g. '2024-03-02 00:15'."""
    return to_local(dt, tz_name).strftime(fmt)
