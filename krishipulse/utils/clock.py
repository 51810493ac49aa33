# krishipulse/utils/clock.py
import datetime as dt
from typing import Protocol


class Clock(Protocol):
    def now(self) -> dt.datetime:
        """Current time, timezone-aware."""
        ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> dt.datetime:
        return dt.datetime.now(dt.timezone.utc)


class FixedClock:
    """Clock pinned to one instant; used to evaluate seasons deterministically."""

    def __init__(self, instant: dt.datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=dt.timezone.utc)
        self._instant = instant

    def now(self) -> dt.datetime:
        return self._instant
