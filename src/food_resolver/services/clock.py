"""Wall clock abstraction."""

import time
from typing import Protocol


class Clock(Protocol):
    """Source of the current time in epoch milliseconds."""

    def now_ms(self) -> int:
        """Return the current time in epoch milliseconds."""


class SystemClock(Clock):
    """Clock backed by the system time."""

    def now_ms(self) -> int:
        return time.time_ns() // 1_000_000
