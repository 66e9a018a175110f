"""Datetime helpers shared by the managers.

MongoDB stores datetimes as UTC with millisecond precision and PyMongo hands them back
naive, so everything written by this package is naive UTC truncated to milliseconds.
"""

from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Current UTC time as a naive datetime at BSON precision."""
    return to_bson_precision(datetime.now(timezone.utc))


def to_bson_precision(value: datetime) -> datetime:
    """Convert to naive UTC and drop sub-millisecond digits."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(microsecond=(value.microsecond // 1000) * 1000)


def normalize_optional(value: Optional[datetime]) -> Optional[datetime]:
    return to_bson_precision(value) if value is not None else None
