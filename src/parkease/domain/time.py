"""Time helpers shared by the domain.

All instants handled by the core are naive datetimes in UTC.
"""

import math
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def ceil_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, rounded up."""
    return math.ceil((end - start).total_seconds() / 60)
