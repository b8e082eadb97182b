import threading
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from captchalm.scheduler import PeriodicSweep
from captchalm.schemas.config import RateLimitConfig
from captchalm.schemas.verification import RateLimitResult, RateLimitStats
from captchalm.services.crypto_utils import now_ms

logger = structlog.get_logger()


@dataclass
class RateLimitEntry:
    count: int
    reset_at: int


class RateLimiter:
    """
    Fixed-window attempt counter, one window per client key.

    Every public method takes the same lock, so per-key updates are atomic
    and the periodic sweep never interleaves with a read-modify-write.
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        clock: Callable[[], int] = now_ms,
        sweep_interval_seconds: float = 60,
    ):
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()
        self._sweep = PeriodicSweep("rate_limit_sweep", self.sweep, sweep_interval_seconds)

    def record_attempt(self, key: str) -> RateLimitResult:
        """Count an attempt for `key`. Denied attempts are not counted."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or now > entry.reset_at:
                entry = RateLimitEntry(count=0, reset_at=now + self.config.window_ms)
                self._entries[key] = entry

            if entry.count >= self.config.max_attempts:
                logger.info("rate_limit_exceeded", reset_in_ms=entry.reset_at - now)
                return RateLimitResult(allowed=False, remaining=0, reset_at=entry.reset_at)

            entry.count += 1
            return RateLimitResult(
                allowed=True,
                remaining=self.config.max_attempts - entry.count,
                reset_at=entry.reset_at,
            )

    def is_rate_limited(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if now > entry.reset_at:
                del self._entries[key]
                return False
            return entry.count >= self.config.max_attempts

    def get_remaining_attempts(self, key: str) -> int:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or now > entry.reset_at:
                return self.config.max_attempts
            return max(0, self.config.max_attempts - entry.count)

    def reset(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def sweep(self) -> int:
        """Remove entries whose window has elapsed. Returns the number removed."""
        now = self._clock()
        with self._lock:
            stale = [key for key, entry in self._entries.items() if now > entry.reset_at]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def get_stats(self) -> RateLimitStats:
        with self._lock:
            return RateLimitStats(
                active_keys=len(self._entries),
                total_attempts=sum(entry.count for entry in self._entries.values()),
            )

    @property
    def running(self) -> bool:
        return self._sweep.running

    def start(self) -> None:
        self._sweep.start()

    def stop(self) -> None:
        self._sweep.stop()

    def destroy(self) -> None:
        self.stop()
        self.clear()
