"""
Injectable time source.

Engines never read the wall clock: every time-dependent calculation
(usage windows, stockout dates, expiry warnings, scan rates) takes an
``as_of`` argument.  Services own a ``Clock`` and pass ``clock.now()``
down, so a test can pin the whole stack to one instant.

``SystemClock`` is the only place in the kernel that reads real time.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

# 2024-01-01 12:00 UTC; the default instant for DeterministicClock.
DEFAULT_TEST_INSTANT = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of timezone-aware "now" values."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Repeated ``now()`` calls return the same instant until ``advance()``,
    ``advance_minutes()`` or ``set_time()`` moves it.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or DEFAULT_TEST_INSTANT

    def now(self) -> datetime:
        return self._current

    def set_time(self, time: datetime) -> None:
        self._current = time

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def advance_minutes(self, minutes: int) -> None:
        self._current += timedelta(minutes=minutes)
