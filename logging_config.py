"""
Logging configuration for workspace-automation.

Simple setup that adapters, services and tools can import.
Extractors should NOT log (they're pure functions).

RecentLogHandler mirrors the most recent entries into the property store so
`wsa logs` can show them after the process has exited.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from properties import PropertyStore, push_bounded

# Create logger for the package
logger = logging.getLogger("workspace_automation")

RECENT_LOGS_KEY = "recent_logs"
RECENT_LOGS_LIMIT = 20
# Messages are truncated before persisting; the store is small
STORED_MESSAGE_CHARS = 100


def configure_logging(level: str = "INFO") -> None:
    """
    Configure logging for workspace-automation.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
    """
    logger.setLevel(getattr(logging, level.upper()))

    # Only add handler if not already configured
    if not any(isinstance(h, logging.StreamHandler) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(logging.DEBUG)

        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)


# NOTE: Call configure_logging() explicitly in cli.py, server.py or test setup.
# We don't auto-configure to avoid side effects on import.


class RecentLogHandler(logging.Handler):
    """
    Persist the last few log records into a property store.

    Entries are stored newest-first as a JSON list under `recent_logs`.
    Any failure while persisting goes through logging's handleError and
    never reaches the caller.
    """

    def __init__(
        self,
        store: PropertyStore,
        limit: int = RECENT_LOGS_LIMIT,
        level: int = logging.INFO,
    ) -> None:
        super().__init__(level)
        self.store = store
        self.limit = limit

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = {
                "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
                "level": record.levelname,
                "message": record.getMessage()[:STORED_MESSAGE_CHARS],
                "logger": record.name,
            }
            push_bounded(self.store, RECENT_LOGS_KEY, entry, self.limit)
        except Exception:
            self.handleError(record)


def attach_recent_log_handler(store: PropertyStore, limit: int = RECENT_LOGS_LIMIT) -> RecentLogHandler:
    """Attach a RecentLogHandler for `store` to the package logger (once per store)."""
    for handler in logger.handlers:
        if isinstance(handler, RecentLogHandler) and handler.store is store:
            return handler
    handler = RecentLogHandler(store, limit=limit)
    logger.addHandler(handler)
    return handler


def detach_recent_log_handler(store: PropertyStore) -> None:
    """Stop mirroring log records into `store`."""
    for handler in list(logger.handlers):
        if isinstance(handler, RecentLogHandler) and handler.store is store:
            logger.removeHandler(handler)
            handler.close()


def recent_logs(store: PropertyStore, count: int = RECENT_LOGS_LIMIT) -> list[dict[str, Any]]:
    """Return up to `count` persisted log entries, newest first."""
    raw = store.get(RECENT_LOGS_KEY)
    if not raw:
        return []
    try:
        entries = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Discarding unreadable {RECENT_LOGS_KEY} entry")
        return []
    return list(entries)[:count]


def clear_recent_logs(store: PropertyStore) -> None:
    """Delete persisted log entries."""
    store.delete(RECENT_LOGS_KEY)


# Convenience functions for common patterns
def log_api_call(service: str, method: str, **params: object) -> None:
    """Log an API call with key parameters."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items() if v is not None)
    logger.debug(f"API: {service}.{method}({param_str})")


def log_api_result(service: str, method: str, result_count: int | None = None) -> None:
    """Log API result summary."""
    if result_count is not None:
        logger.debug(f"API: {service}.{method} returned {result_count} results")
    else:
        logger.debug(f"API: {service}.{method} completed")


def log_retry(attempt: int, max_attempts: int, delay_ms: int, reason: str) -> None:
    """Log a retry attempt."""
    logger.warning(
        f"Retry {attempt}/{max_attempts} in {delay_ms}ms: {reason}"
    )


def log_batch(batch_number: int, total_batches: int, size: int) -> None:
    """Log progress through a batched operation."""
    logger.debug(f"Processing batch {batch_number} of {total_batches} ({size} items)")
