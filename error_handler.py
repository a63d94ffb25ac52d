"""
Error handler — classify, log and remember failures.

WorkspaceService.execute() hands every failure to ErrorHandler.handle(),
which records it and returns an ErrorInfo; the caller then re-raises. The
handler itself never raises on behalf of its own bookkeeping: a broken
property store costs a log line, not the original error.

Stored under the property store:
    recent_errors    JSON list of ErrorInfo summaries, newest first (10 max)
    last_error_id    id of the most recent error
    last_error_time  ISO timestamp of the most recent error
"""

import json
import logging
import random
import string
import time
import traceback
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, TypeVar

from models import ErrorInfo, ErrorKind, ErrorSeverity, WorkspaceError
from properties import PropertyStore, push_bounded
from retry import to_workspace_error

T = TypeVar("T")

RECENT_ERRORS_KEY = "recent_errors"
LAST_ERROR_ID_KEY = "last_error_id"
LAST_ERROR_TIME_KEY = "last_error_time"
RECENT_ERRORS_LIMIT = 10

RETRYABLE_KINDS = frozenset({
    ErrorKind.NETWORK,
    ErrorKind.TIMEOUT,
    ErrorKind.QUOTA,
    ErrorKind.SYSTEM,
})

SEVERITY_BY_KIND: dict[ErrorKind, ErrorSeverity] = {
    ErrorKind.SYSTEM: ErrorSeverity.CRITICAL,
    ErrorKind.AUTHENTICATION: ErrorSeverity.HIGH,
    ErrorKind.AUTHORIZATION: ErrorSeverity.HIGH,
    ErrorKind.QUOTA: ErrorSeverity.HIGH,
    ErrorKind.NETWORK: ErrorSeverity.MEDIUM,
    ErrorKind.TIMEOUT: ErrorSeverity.MEDIUM,
    ErrorKind.DATA: ErrorSeverity.MEDIUM,
    ErrorKind.NOT_FOUND: ErrorSeverity.MEDIUM,
}

USER_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: "Please check your input and try again.",
    ErrorKind.AUTHENTICATION: "Authentication failed. Please sign in again.",
    ErrorKind.AUTHORIZATION: "You do not have permission to perform this action.",
    ErrorKind.NOT_FOUND: "The requested item could not be found.",
    ErrorKind.NETWORK: "Network error. Please check your connection and try again.",
    ErrorKind.TIMEOUT: "The operation took too long. Please try again.",
    ErrorKind.QUOTA: "Rate limit exceeded. Please wait a moment and try again.",
    ErrorKind.DATA: "Data processing error. Please check your data format.",
    ErrorKind.SYSTEM: "System error. Please contact support if this persists.",
}

DEFAULT_USER_MESSAGE = "An error occurred. Please try again."


def _base36(number: int) -> str:
    digits = string.digits + string.ascii_lowercase
    if number == 0:
        return "0"
    out = ""
    while number:
        number, remainder = divmod(number, 36)
        out = digits[remainder] + out
    return out


def generate_error_id() -> str:
    """ERR_<base36 epoch ms>_<5 random base36 chars>, upper-cased."""
    stamp = _base36(int(time.time() * 1000))
    suffix = "".join(random.choices(string.digits + string.ascii_lowercase, k=5))
    return f"ERR_{stamp}_{suffix}".upper()


def classify_error(error: BaseException) -> ErrorKind:
    """The ErrorKind of `error`; foreign exceptions go through retry's mapping."""
    return to_workspace_error(error).kind


def determine_severity(error: BaseException, kind: ErrorKind | None = None) -> ErrorSeverity:
    """Explicit severity on a WorkspaceError wins; otherwise derived from kind."""
    if isinstance(error, WorkspaceError) and error.severity is not None:
        return error.severity
    kind = kind or classify_error(error)
    return SEVERITY_BY_KIND.get(kind, ErrorSeverity.LOW)


def is_retryable(error: BaseException) -> bool:
    """True for network/timeout/quota/system failures or retryable=True."""
    converted = to_workspace_error(error)
    return converted.retryable or converted.kind in RETRYABLE_KINDS


def user_friendly_message(error: BaseException, fallback: str = DEFAULT_USER_MESSAGE) -> str:
    """A message suitable for showing to an end user."""
    return USER_MESSAGES.get(classify_error(error), fallback)


class ErrorHandler:
    """Logs and persists handled errors."""

    def __init__(
        self,
        store: PropertyStore,
        logger: logging.Logger | None = None,
        limit: int = RECENT_ERRORS_LIMIT,
    ) -> None:
        self.store = store
        self.logger = logger or logging.getLogger(__name__)
        self.limit = limit

    def handle(self, error: BaseException, context: dict[str, Any] | None = None) -> ErrorInfo:
        """
        Record one error.

        Args:
            error: The exception being handled (not raised here)
            context: service/function plus any extra detail

        Returns:
            The ErrorInfo that was logged and stored
        """
        kind = classify_error(error)
        info = ErrorInfo(
            id=generate_error_id(),
            timestamp=datetime.now(timezone.utc).isoformat(),
            message=str(error) or type(error).__name__,
            kind=kind,
            severity=determine_severity(error, kind),
            context=dict(context or {}),
            stack="".join(traceback.format_exception(type(error), error, error.__traceback__)),
        )

        self.logger.error(
            f"[{info.kind.value.upper()}] {info.message} "
            f"(Error ID: {info.id}, severity: {info.severity.value})"
        )
        self._store(info)

        if info.severity is ErrorSeverity.CRITICAL:
            self._alert(info)

        return info

    def _store(self, info: ErrorInfo) -> None:
        try:
            push_bounded(self.store, RECENT_ERRORS_KEY, info.summary(), self.limit)
            self.store.set(LAST_ERROR_ID_KEY, info.id)
            self.store.set(LAST_ERROR_TIME_KEY, info.timestamp)
        except Exception as e:
            self.logger.warning(f"Failed to store error {info.id}: {e}")

    def _alert(self, info: ErrorInfo) -> None:
        self.logger.critical(
            f"CRITICAL ERROR {info.id}: {info.message} "
            f"(service: {info.context.get('service', 'unknown')}, "
            f"function: {info.context.get('function', 'unknown')})"
        )

    def recent_errors(self, count: int = RECENT_ERRORS_LIMIT) -> list[dict[str, Any]]:
        """Stored error summaries, newest first."""
        raw = self.store.get(RECENT_ERRORS_KEY)
        if not raw:
            return []
        try:
            entries = json.loads(raw)
        except json.JSONDecodeError:
            self.logger.warning(f"Discarding unreadable {RECENT_ERRORS_KEY} entry")
            return []
        return list(entries)[:count]

    def clear(self) -> None:
        """Forget all stored errors."""
        for key in (RECENT_ERRORS_KEY, LAST_ERROR_ID_KEY, LAST_ERROR_TIME_KEY):
            self.store.delete(key)
        self.logger.info("Error log cleared")

    def wrap(self, func: Callable[..., T], **context: Any) -> Callable[..., T]:
        """
        Decorate `func` so failures are handled and re-raised as WorkspaceError.

        The re-raised message reads "[KIND] original message (Error ID: X)".
        """

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                info = self.handle(e, {"function": func.__name__, **context})
                converted = to_workspace_error(e)
                raise WorkspaceError(
                    info.kind,
                    f"[{info.kind.value.upper()}] {info.message} (Error ID: {info.id})",
                    details={**converted.details, "error_id": info.id},
                    retryable=converted.retryable,
                    severity=info.severity,
                ) from e

        return wrapper
