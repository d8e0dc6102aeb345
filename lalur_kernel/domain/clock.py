"""
Clock -- injectable "today" for cutoff and validity-year checks.

Services that compare against the current date (a cutoff may not be in the
future, a reference account's validity year may not be too far ahead) take a
Clock in their constructor instead of calling ``date.today()``.

Architecture position:
    Kernel > Domain.  SystemClock is the only implementation that reads the
    system time.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    """
    Source of the current instant.

    Guarantees:
        - ``now()`` is timezone-aware (UTC).
        - ``today()`` is the UTC calendar date of ``now()``.
    """

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """Pinned clock for tests; moves only through ``advance_days``."""

    def __init__(self, fixed_time: datetime):
        self._current = fixed_time

    def now(self) -> datetime:
        return self._current

    def advance_days(self, days: int = 1) -> None:
        self._current += timedelta(days=days)
