"""
Application context — the one place runtime capabilities are wired together.

Services, the factory, workflows and the surfaces receive an AppContext
instead of reaching for module-level singletons.
"""

import logging
import os
from dataclasses import dataclass

from config import DEFAULT_CONFIG, ConfigurationManager
from error_handler import ErrorHandler
from feature_flags import FeatureFlags
from logging_config import (
    attach_recent_log_handler,
    detach_recent_log_handler,
    logger as package_logger,
)
from metrics import MetricsCollector
from properties import JsonFilePropertyStore, PropertyStore

PROPERTIES_FILE_VAR = "WSA_PROPERTIES_FILE"


@dataclass
class AppContext:
    """Capabilities shared by every service instance."""
    config: ConfigurationManager
    metrics: MetricsCollector
    flags: FeatureFlags
    store: PropertyStore
    error_handler: ErrorHandler
    logger: logging.Logger

    def close(self) -> None:
        """Detach anything create_context hooked onto the package logger."""
        detach_recent_log_handler(self.store)


def default_store() -> PropertyStore:
    """
    JSON file store at $WSA_PROPERTIES_FILE, else storage.properties_file.

    The store is needed to pick the environment, so the path can only come
    from the built-in defaults.
    """
    path = os.environ.get(PROPERTIES_FILE_VAR, DEFAULT_CONFIG["storage"]["properties_file"])
    return JsonFilePropertyStore(path)


def create_context(
    environment: str | None = None,
    store: PropertyStore | None = None,
    persist_logs: bool = True,
) -> AppContext:
    """
    Build an AppContext.

    Args:
        environment: Explicit environment (otherwise detected)
        store: Property store (defaults to the JSON file store)
        persist_logs: Mirror recent log records into the store

    Returns:
        A fully wired context
    """
    store = store if store is not None else default_store()
    config = ConfigurationManager(environment=environment, store=store)

    if persist_logs:
        attach_recent_log_handler(store, limit=int(config.get("logging.recent_logs", 20)))

    metrics = MetricsCollector(enabled=bool(config.get("metrics.enabled", True)))
    return AppContext(
        config=config,
        metrics=metrics,
        flags=FeatureFlags(config),
        store=store,
        error_handler=ErrorHandler(store, logger=package_logger.getChild("errors")),
        logger=package_logger,
    )
