"""
Rate limiters for outbound Workspace API calls.

FixedWindowRateLimiter is the default: a counter that resets on fixed
60-second boundaries and blocks (sleeps) out the rest of the window once the
per-minute allowance is spent. Across a boundary it admits up to twice the
allowance.

SlidingWindowRateLimiter is opt-in (rate_limit.strategy = "sliding") and
admits at most `requests_per_minute` calls in any trailing window.

Both are single-owner, single-threaded objects. Clock and sleep are
injectable; both work in milliseconds.
"""

import time
from collections import deque
from typing import Callable

from logging_config import logger
from models import ErrorKind, RateLimitState, WorkspaceError


WINDOW_MS = 60_000

Clock = Callable[[], float]
Sleeper = Callable[[float], None]


def _monotonic_ms() -> float:
    return time.monotonic() * 1000


def _sleep_ms(ms: float) -> None:
    time.sleep(ms / 1000)


def _validate_limit(requests_per_minute: int, window_ms: float) -> None:
    if requests_per_minute <= 0:
        raise WorkspaceError(
            ErrorKind.VALIDATION,
            f"requests_per_minute must be positive, got {requests_per_minute}",
        )
    if window_ms <= 0:
        raise WorkspaceError(
            ErrorKind.VALIDATION,
            f"window_ms must be positive, got {window_ms}",
        )


class FixedWindowRateLimiter:
    """Counter reset on fixed window boundaries."""

    def __init__(
        self,
        requests_per_minute: int,
        window_ms: float = WINDOW_MS,
        clock: Clock | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        _validate_limit(requests_per_minute, window_ms)
        self.window_ms = window_ms
        self._clock = clock or _monotonic_ms
        self._sleep = sleep or _sleep_ms
        self._state = RateLimitState(
            requests_per_minute=requests_per_minute,
            request_count=0,
            last_reset=self._clock(),
        )

    @property
    def state(self) -> RateLimitState:
        return self._state

    def check(self) -> float:
        """
        Account for one request, sleeping first if the window is exhausted.

        Returns:
            Milliseconds spent waiting (0 when the request was admitted
            immediately)
        """
        state = self._state
        now = self._clock()
        elapsed = now - state.last_reset

        if elapsed >= self.window_ms:
            state.request_count = 0
            state.last_reset = now

        waited = 0.0
        if state.request_count >= state.requests_per_minute:
            waited = self.window_ms - elapsed
            logger.info(f"Rate limit reached, waiting {waited:.0f}ms")
            self._sleep(waited)
            state.request_count = 0
            state.last_reset = self._clock()

        state.request_count += 1
        return waited


class SlidingWindowRateLimiter:
    """At most `requests_per_minute` admissions in any trailing window."""

    def __init__(
        self,
        requests_per_minute: int,
        window_ms: float = WINDOW_MS,
        clock: Clock | None = None,
        sleep: Sleeper | None = None,
    ) -> None:
        _validate_limit(requests_per_minute, window_ms)
        self.requests_per_minute = requests_per_minute
        self.window_ms = window_ms
        self._clock = clock or _monotonic_ms
        self._sleep = sleep or _sleep_ms
        self._hits: deque[float] = deque()

    def _prune(self, now: float) -> None:
        while self._hits and now - self._hits[0] >= self.window_ms:
            self._hits.popleft()

    @property
    def state(self) -> RateLimitState:
        now = self._clock()
        self._prune(now)
        return RateLimitState(
            requests_per_minute=self.requests_per_minute,
            request_count=len(self._hits),
            last_reset=self._hits[0] if self._hits else now,
        )

    def check(self) -> float:
        now = self._clock()
        self._prune(now)

        waited = 0.0
        if len(self._hits) >= self.requests_per_minute:
            waited = self.window_ms - (now - self._hits[0])
            logger.info(f"Rate limit reached, waiting {waited:.0f}ms")
            self._sleep(waited)
            now = self._clock()
            self._prune(now)

        self._hits.append(now)
        return waited


RateLimiter = FixedWindowRateLimiter | SlidingWindowRateLimiter


def build_rate_limiter(
    requests_per_minute: int,
    strategy: str = "fixed",
    window_ms: float = WINDOW_MS,
    clock: Clock | None = None,
    sleep: Sleeper | None = None,
) -> RateLimiter:
    """Create the limiter named by `strategy` ("fixed" or "sliding")."""
    if strategy == "fixed":
        return FixedWindowRateLimiter(requests_per_minute, window_ms, clock=clock, sleep=sleep)
    if strategy == "sliding":
        return SlidingWindowRateLimiter(requests_per_minute, window_ms, clock=clock, sleep=sleep)
    raise WorkspaceError(
        ErrorKind.VALIDATION,
        f"Unknown rate limit strategy '{strategy}' (expected 'fixed' or 'sliding')",
    )
