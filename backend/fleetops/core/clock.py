"""Injectable time source.

Services and the alert scheduler take a ``Clock`` through their constructor
instead of calling ``datetime.now()`` so tests can pin the date.
"""
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone
from typing import Optional


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current timezone-aware UTC time."""
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Clock that returns a controlled time until moved explicitly."""

    def __init__(self, fixed_time: Optional[datetime] = None):
        self._time = fixed_time or datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        if self._time.tzinfo is None:
            self._time = self._time.replace(tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._time

    def set_time(self, value: datetime) -> None:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        self._time = value

    def advance(self, **kwargs) -> None:
        """Move forward by a ``timedelta(**kwargs)``, e.g. ``advance(days=1)``."""
        self._time = self._time + timedelta(**kwargs)


system_clock = SystemClock()
