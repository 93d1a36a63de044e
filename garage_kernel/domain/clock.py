"""
Module: garage_kernel.domain.clock
Responsibility: Injectable source of the current time for services.
    Work order timestamps, stock movement stamps, invoice issue dates and
    payment times all come from a Clock handed to the service.
Architecture position: Kernel > Domain.  Pure; SystemClock is the only
    place that reads the wall clock.

Invariants enforced:
    - now() is timezone-aware (UTC).
    - A DeterministicClock only moves when a test moves it.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

_DEFAULT_START = datetime(2025, 1, 6, 8, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Time source injected into every service constructor."""

    @abstractmethod
    def now(self) -> datetime:
        """Current instant, timezone-aware."""

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Frozen clock for tests and reproducible seeding.

    ``advance()`` and ``tick()`` move it forward in whole seconds;
    ``set_time()`` jumps to an absolute instant.
    """

    def __init__(self, start: datetime | None = None):
        if start is not None and start.tzinfo is None:
            raise ValueError("DeterministicClock needs a timezone-aware start")
        self._current = start or _DEFAULT_START

    def now(self) -> datetime:
        return self._current

    def set_time(self, moment: datetime) -> None:
        self._current = moment

    def advance(self, seconds: int = 1) -> None:
        self._current += timedelta(seconds=seconds)

    def tick(self) -> datetime:
        """Move one second forward and return the new instant."""
        self.advance()
        return self._current
