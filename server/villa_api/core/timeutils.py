"""Timestamp helpers.

All timestamps are stored as naive UTC and rendered in JSON as ISO 8601
with millisecond precision and a ``Z`` suffix, the format browsers produce
with ``Date.prototype.toISOString``.
"""

from datetime import datetime, timezone
from typing import Annotated

from pydantic import AfterValidator, PlainSerializer


def utcnow() -> datetime:
    """Return the current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def isoformat_z(value: datetime) -> str:
    """Format a datetime as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    return to_naive_utc(value).isoformat(timespec="milliseconds") + "Z"


UtcDateTime = Annotated[
    datetime,
    AfterValidator(to_naive_utc),
    PlainSerializer(isoformat_z, return_type=str, when_used="json"),
]
