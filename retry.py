"""
Retry decorator with exponential backoff.

Used by adapters to handle transient API failures. This is the only place
foreign exceptions are turned into WorkspaceError, by HTTP status or
exception type. Message text is never inspected.

The batch executor does not retry; callers that want retries around a whole
batch wrap it explicitly.
"""

import asyncio
import random
import time
from functools import wraps
from typing import TypeVar, Callable, Any, ParamSpec, Awaitable, cast

from logging_config import logger, log_retry
from models import WorkspaceError, ErrorKind
from adapters.services import clear_service_cache

T = TypeVar("T")
P = ParamSpec("P")


# Exceptions that should trigger retry
RETRYABLE_EXCEPTIONS: tuple[type[Exception], ...] = (
    ConnectionError,
    TimeoutError,
)

# HTTP status codes that should trigger retry
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({
    429,  # Rate limited
    500,  # Internal server error
    502,  # Bad gateway
    503,  # Service unavailable
    504,  # Gateway timeout
})

# Jitter range applied to each backoff wait
JITTER_FRACTION = 0.25


def _get_http_status(exception: Exception) -> int | None:
    """
    Extract HTTP status code from exception if available.

    Works with googleapiclient.errors.HttpError and similar.
    """
    # Check for resp.status attribute (googleapiclient.errors.HttpError)
    if hasattr(exception, "resp") and hasattr(exception.resp, "status"):
        status = exception.resp.status
        if isinstance(status, int):
            return status

    # Check for status_code attribute (requests-style)
    if hasattr(exception, "status_code"):
        status = exception.status_code
        if isinstance(status, int):
            return status

    return None


def _should_retry(exception: Exception) -> bool:
    """Determine if an exception is retryable."""
    if isinstance(exception, WorkspaceError):
        return exception.retryable

    # Check if it's a known retryable exception type
    if isinstance(exception, RETRYABLE_EXCEPTIONS):
        return True

    # Check for HTTP status code
    status = _get_http_status(exception)
    if status is not None and status in RETRYABLE_STATUS_CODES:
        return True

    return False


def _kind_for_status(status: int) -> tuple[ErrorKind, bool]:
    """Map an HTTP status to (kind, retryable)."""
    if status == 400:
        return ErrorKind.VALIDATION, False
    if status == 401:
        return ErrorKind.AUTHENTICATION, False
    if status == 403:
        return ErrorKind.AUTHORIZATION, False
    if status == 404:
        return ErrorKind.NOT_FOUND, False
    if status == 429:
        return ErrorKind.QUOTA, True
    if status == 504:
        return ErrorKind.TIMEOUT, True
    if status in (502, 503):
        return ErrorKind.NETWORK, True
    if status >= 500:
        return ErrorKind.SYSTEM, True
    return ErrorKind.UNKNOWN, False


def to_workspace_error(exception: BaseException) -> WorkspaceError:
    """Convert an exception to a WorkspaceError if not already one."""
    if isinstance(exception, WorkspaceError):
        return exception

    message = str(exception) or type(exception).__name__

    # Check HTTP status first (most reliable)
    status = _get_http_status(exception) if isinstance(exception, Exception) else None
    if status is not None:
        kind, retryable = _kind_for_status(status)
        if kind is ErrorKind.AUTHENTICATION:
            # Cached services hold the stale credentials
            clear_service_cache()
        return WorkspaceError(kind, message, details={"status": status}, retryable=retryable)

    # Fall back to exception type
    if isinstance(exception, TimeoutError):
        return WorkspaceError(ErrorKind.TIMEOUT, message, retryable=True)
    if isinstance(exception, ConnectionError):
        return WorkspaceError(ErrorKind.NETWORK, message, retryable=True)
    if isinstance(exception, ValueError):
        # Includes JSONDecodeError and UnicodeDecodeError
        return WorkspaceError(ErrorKind.DATA, message)
    if isinstance(exception, TypeError):
        return WorkspaceError(ErrorKind.VALIDATION, message)
    if isinstance(exception, PermissionError):
        return WorkspaceError(ErrorKind.AUTHORIZATION, message)
    if isinstance(exception, FileNotFoundError):
        return WorkspaceError(ErrorKind.NOT_FOUND, message)

    return WorkspaceError(ErrorKind.UNKNOWN, message)


def _calculate_wait_with_jitter(attempt: int, delay_ms: int, backoff_multiplier: float) -> int:
    """Exponential backoff for `attempt` (0-based) with ±25% jitter."""
    base = delay_ms * (backoff_multiplier ** attempt)
    jitter = random.uniform(1 - JITTER_FRACTION, 1 + JITTER_FRACTION)
    return int(base * jitter)


def with_retry(
    max_attempts: int = 3,
    delay_ms: int = 1000,
    backoff_multiplier: float = 2.0,
    convert_errors: bool = True,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Retry a sync or async callable with jittered exponential backoff.

    Non-retryable errors and the final failure are raised immediately,
    converted to WorkspaceError unless convert_errors is False.

    Example:
        @with_retry(max_attempts=3, delay_ms=1000)
        def list_labels():
            return service.users().labels().list(userId="me").execute()
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        name = func.__name__

        def next_wait(error: Exception, attempt: int) -> int:
            """Milliseconds to wait before the next attempt, or raise."""
            if attempt + 1 >= max_attempts or not _should_retry(error):
                logger.error(f"{name} failed after {attempt + 1} attempts: {error}")
                if convert_errors:
                    raise to_workspace_error(error) from error
                raise error
            wait_ms = _calculate_wait_with_jitter(attempt, delay_ms, backoff_multiplier)
            log_retry(attempt + 1, max_attempts, wait_ms, str(error))
            return wait_ms

        if asyncio.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> T:
                attempt = 0
                while True:
                    try:
                        return await cast(Awaitable[T], func(*args, **kwargs))
                    except Exception as e:
                        wait_ms = next_wait(e, attempt)
                    await asyncio.sleep(wait_ms / 1000)
                    attempt += 1

            return cast(Callable[P, T], async_wrapper)

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 0
            while True:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    wait_ms = next_wait(e, attempt)
                time.sleep(wait_ms / 1000)
                attempt += 1

        return cast(Callable[P, T], sync_wrapper)

    return decorator
