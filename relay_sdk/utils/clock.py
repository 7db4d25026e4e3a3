"""Time source - utc_now, Clock, SystemClock."""

from datetime import datetime, timezone
from typing import Protocol


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class Clock(Protocol):
    """Protocol for injectable time sources."""

    def now(self) -> datetime:
        """Return the current time.

        Returns:
            Aware UTC datetime
        """
        ...


class SystemClock:
    """Clock backed by the system wall clock."""

    def now(self) -> datetime:
        return utc_now()
