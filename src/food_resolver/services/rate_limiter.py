"""Fixed-window rate limiting for provider calls."""

import logging
import threading
from dataclasses import dataclass, field

from food_resolver.domain.errors import RateLimitExceeded
from food_resolver.domain.sources import RateLimitPolicy
from food_resolver.services.clock import Clock, SystemClock

_logger = logging.getLogger(__name__)

# Denials within one window before the limiter reports it as persistent.
_PERSISTENT_DENIALS = 3


@dataclass
class RateLimitWindow:
    """Mutable call counter for one provider."""

    count: int
    reset_at_ms: int
    denied: int = 0


@dataclass
class RateLimiter:
    """Process-wide fixed-window limiter keyed by provider name.

    Bursts of up to twice the quota are possible across a window boundary.
    """

    clock: Clock = field(default_factory=SystemClock)
    _windows: dict[str, RateLimitWindow] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def try_acquire(self, key: str, policy: RateLimitPolicy | None) -> bool:
        """Consume one call from the window for ``key`` if quota remains."""
        if policy is None:
            return True
        now = self.clock.now_ms()
        with self._lock:
            window = self._windows.get(key)
            if window is None or now >= window.reset_at_ms:
                window = RateLimitWindow(count=0, reset_at_ms=now + policy.window_ms)
                self._windows[key] = window
            if window.count >= policy.max_calls:
                window.denied += 1
                denied = window.denied
                allowed = False
            else:
                window.count += 1
                allowed = True
        if not allowed:
            if denied == _PERSISTENT_DENIALS:
                _logger.warning(
                    "Rate limit repeatedly exceeded: key=%s max_calls=%s window_ms=%s",
                    key,
                    policy.max_calls,
                    policy.window_ms,
                )
            else:
                _logger.debug("Rate limit exceeded: key=%s", key)
        return allowed

    def acquire(self, key: str, policy: RateLimitPolicy | None) -> None:
        """Consume one call or raise ``RateLimitExceeded``."""
        if not self.try_acquire(key, policy):
            raise RateLimitExceeded(key)

    def snapshot(self) -> dict[str, dict[str, int]]:
        """Return current window counters for diagnostics."""
        with self._lock:
            return {
                key: {"count": window.count, "reset_at_ms": window.reset_at_ms}
                for key, window in self._windows.items()
            }
