"""
Clock sources.

Everything that needs "now" takes a Clock, so timer logic can be driven
through hours of elapsed time in a test without anything actually waiting.
"""

import datetime
from typing import Optional, Protocol


class Clock(Protocol):
    def now(self) -> datetime.datetime:
        """Current instant, timezone-aware"""
        ...


class SystemClock:
    """Wall-clock time in UTC"""

    def now(self) -> datetime.datetime:
        return datetime.datetime.now(datetime.timezone.utc)


class FixedClock:
    """A clock that only moves when told to."""

    def __init__(self, start: Optional[datetime.datetime] = None):
        if start is None:
            start = datetime.datetime(2026, 1, 5, 9, 0, tzinfo=datetime.timezone.utc)
        elif start.tzinfo is None:
            start = start.replace(tzinfo=datetime.timezone.utc)
        self.current = start

    def now(self) -> datetime.datetime:
        return self.current

    def advance(self, seconds: float = 0, minutes: float = 0, hours: float = 0) -> datetime.datetime:
        self.current += datetime.timedelta(seconds=seconds, minutes=minutes, hours=hours)
        return self.current

    def set(self, instant: datetime.datetime) -> None:
        self.current = instant
