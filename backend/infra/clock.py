"""
Time source for queue bookkeeping.

Every timestamp the job queue writes or compares against comes from a
``Clock`` so the claim/backoff/lease rules can be exercised without waiting
on the wall clock.
"""

from datetime import UTC, datetime
from typing import Protocol


class Clock(Protocol):
    """Protocol for time sources."""

    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalise a datetime read back from the store to aware UTC.

    SQLite drivers hand back naive values; they are stored as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


system_clock = SystemClock()
