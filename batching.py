"""
Batch execution — sequential chunking with a pause between chunks.

run_in_batches() is the primitive: slice the input into fixed-size windows,
hand each window to the processor, concatenate the results in order, and sleep
a fixed delay between windows (never after the last one).

BatchRunner bundles that with a rate limiter and per-service defaults. Every
service holds one and delegates to it; there is no batching base class.

Processor exceptions are never caught here. A failure on any chunk aborts the
remaining chunks and propagates to the caller with no partial result.
"""

import math
import time
from typing import Callable, Iterator, Sequence, TypeVar

from logging_config import log_batch
from models import ErrorKind, RateLimitState, WorkspaceError
from ratelimit import RateLimiter, build_rate_limiter

T = TypeVar("T")
R = TypeVar("R")

Sleeper = Callable[[float], None]

DEFAULT_BATCH_SIZE = 100
DEFAULT_BATCH_DELAY_MS = 1000


def _sleep_ms(ms: float) -> None:
    time.sleep(ms / 1000)


def _validate_batch_size(batch_size: int) -> None:
    if batch_size <= 0:
        raise WorkspaceError(
            ErrorKind.VALIDATION,
            f"batch_size must be a positive integer, got {batch_size}",
        )


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    """Yield consecutive windows of at most `size` items."""
    _validate_batch_size(size)
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


def run_in_batches(
    items: Sequence[T],
    processor: Callable[[list[T]], Sequence[R]],
    batch_size: int = DEFAULT_BATCH_SIZE,
    delay_ms: float = DEFAULT_BATCH_DELAY_MS,
    sleep: Sleeper | None = None,
) -> list[R]:
    """
    Process `items` chunk by chunk, pausing between chunks.

    Args:
        items: Ordered input (may be empty)
        processor: Maps one chunk to a sequence of results
        batch_size: Items per chunk (positive)
        delay_ms: Pause between chunks; none after the final chunk
        sleep: Millisecond sleeper (defaults to time.sleep)

    Returns:
        Concatenated results in input order

    Raises:
        WorkspaceError: If batch_size is not positive
        Exception: Whatever the processor raises, unchanged

    Example:
        run_in_batches([1, 2, 3, 4, 5], lambda b: [x * 2 for x in b], batch_size=2)
        -> [2, 4, 6, 8, 10]  (two pauses)
    """
    _validate_batch_size(batch_size)
    pause = sleep or _sleep_ms

    results: list[R] = []
    total_batches = math.ceil(len(items) / batch_size)

    for index, batch in enumerate(chunked(items, batch_size)):
        log_batch(index + 1, total_batches, len(batch))
        results.extend(processor(batch))

        if index + 1 < total_batches:
            pause(delay_ms)

    return results


class BatchRunner:
    """
    Rate-limited batch capability shared by the service wrappers.

    check_rate_limit() is called once per logical operation (by
    WorkspaceService.execute); run() chunks a single operation's input.
    """

    def __init__(
        self,
        limiter: RateLimiter,
        batch_size: int = DEFAULT_BATCH_SIZE,
        delay_ms: float = DEFAULT_BATCH_DELAY_MS,
        sleep: Sleeper | None = None,
    ) -> None:
        _validate_batch_size(batch_size)
        self.limiter = limiter
        self.batch_size = batch_size
        self.delay_ms = delay_ms
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: dict,
        strategy: str = "fixed",
        window_ms: float = 60_000,
        clock: Callable[[], float] | None = None,
        sleep: Sleeper | None = None,
    ) -> "BatchRunner":
        """
        Build a runner from a `services.<name>` config section.

        Recognised keys: batch_size, batch_delay_ms, requests_per_minute.
        """
        limiter = build_rate_limiter(
            int(settings.get("requests_per_minute", 100)),
            strategy=strategy,
            window_ms=window_ms,
            clock=clock,
            sleep=sleep,
        )
        return cls(
            limiter,
            batch_size=int(settings.get("batch_size", DEFAULT_BATCH_SIZE)),
            delay_ms=float(settings.get("batch_delay_ms", DEFAULT_BATCH_DELAY_MS)),
            sleep=sleep,
        )

    @property
    def rate_limit_state(self) -> RateLimitState:
        return self.limiter.state

    def check_rate_limit(self) -> float:
        """Count one request against the limiter, waiting if needed."""
        return self.limiter.check()

    def run(
        self,
        items: Sequence[T],
        processor: Callable[[list[T]], Sequence[R]],
        batch_size: int | None = None,
    ) -> list[R]:
        """run_in_batches() with this runner's size, delay and sleeper."""
        return run_in_batches(
            items,
            processor,
            batch_size=self.batch_size if batch_size is None else batch_size,
            delay_ms=self.delay_ms,
            sleep=self._sleep,
        )
