"""In-process rate limiter guarding write-heavy endpoints.

Each identifier carries three nested fixed-window counters: a long window
(15 minutes by default), a one-minute window and a one-second burst window.
Counters are checked in that order; the first exhausted cap denies the call
and later counters are not touched.

The limiter state lives in one process. Deployments running several
instances must put a shared store behind it.
"""

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RateLimitConfig:
    """Caps and window sizes for the limiter."""

    window_seconds: int = 15 * 60
    max_per_window: int = 500
    max_per_minute: int = 100
    max_per_second: int = 10
    sweep_seconds: int = 5 * 60

    @classmethod
    def from_settings(cls, values: dict) -> "RateLimitConfig":
        return cls(
            window_seconds=values.get("WINDOW_SECONDS", cls.window_seconds),
            max_per_window=values.get("MAX_PER_WINDOW", cls.max_per_window),
            max_per_minute=values.get("MAX_PER_MINUTE", cls.max_per_minute),
            max_per_second=values.get("MAX_PER_SECOND", cls.max_per_second),
            sweep_seconds=values.get("SWEEP_SECONDS", cls.sweep_seconds),
        )


@dataclass
class _Counter:
    started_at: float
    count: int = 0


@dataclass
class _Entry:
    window: _Counter
    minute: _Counter
    second: _Counter
    last_seen: float = field(default=0.0)


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single :meth:`RateLimiter.hit` call."""

    allowed: bool
    retry_after: int
    limit: int
    remaining: int
    reset_at: float


class RateLimiter:
    """Per-identifier window, minute and burst counters."""

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config or RateLimitConfig()
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    def hit(self, identifier: str) -> RateLimitDecision:
        """Count one call for ``identifier`` and report whether it may proceed."""
        now = self._clock()
        with self._lock:
            self._maybe_sweep(now)
            entry = self._entries.get(identifier)
            if entry is None:
                entry = _Entry(_Counter(now), _Counter(now), _Counter(now))
                self._entries[identifier] = entry
            entry.last_seen = now

            checks = (
                (entry.window, self._config.window_seconds, self._config.max_per_window),
                (entry.minute, 60, self._config.max_per_minute),
                (entry.second, 1, self._config.max_per_second),
            )
            for counter, length, cap in checks:
                if now - counter.started_at >= length:
                    counter.started_at = now
                    counter.count = 0
                if counter.count >= cap:
                    retry_after = max(1, math.ceil(counter.started_at + length - now))
                    logger.warning(
                        "rate_limited",
                        identifier=identifier,
                        window_seconds=length,
                        limit=cap,
                        retry_after=retry_after,
                    )
                    return RateLimitDecision(
                        allowed=False,
                        retry_after=retry_after,
                        limit=cap,
                        remaining=0,
                        reset_at=counter.started_at + length,
                    )
                counter.count += 1

            return RateLimitDecision(
                allowed=True,
                retry_after=0,
                limit=self._config.max_per_window,
                remaining=max(0, self._config.max_per_window - entry.window.count),
                reset_at=entry.window.started_at + self._config.window_seconds,
            )

    def sweep(self) -> int:
        """Drop entries whose long window has elapsed. Returns how many were removed."""
        with self._lock:
            return self._sweep(self._clock())

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep >= self._config.sweep_seconds:
            self._sweep(now)

    def _sweep(self, now: float) -> int:
        stale = [
            key
            for key, entry in self._entries.items()
            if now - entry.window.started_at >= self._config.window_seconds
        ]
        for key in stale:
            del self._entries[key]
        self._last_sweep = now
        if stale:
            logger.debug("rate_limit_swept", removed=len(stale), remaining=len(self._entries))
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)
