"""
WorkspaceService — the shared operation wrapper.

A service is composed of an AppContext (config, metrics, error handler,
logger) and a BatchRunner (rate limiter + chunking). Subclasses add
Workspace-specific operations and route each one through execute().
"""

import time
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

from batching import BatchRunner
from context import AppContext
from models import HealthStatus

T = TypeVar("T")


class WorkspaceService:
    """Base for the Gmail/Drive/Docs/Sheets wrappers."""

    # Key under `services.<name>` in configuration
    config_key = "service"

    def __init__(
        self,
        context: AppContext,
        name: str | None = None,
        runner: BatchRunner | None = None,
        **options: Any,
    ) -> None:
        self.context = context
        self.name = name or type(self).__name__
        self.options = options
        self.logger = context.logger.getChild(self.config_key)
        self.settings = {**context.config.service_config(self.config_key), **options}
        self.runner = runner or BatchRunner.from_settings(
            self.settings,
            strategy=context.config.get("rate_limit.strategy", "fixed"),
            window_ms=float(context.config.get("rate_limit.window_ms", 60000)),
        )
        self.initialized = False
        self._start_time = time.monotonic()

    def initialize(self) -> None:
        """Mark the service ready. Idempotent."""
        if self.initialized:
            return
        self.logger.debug(f"Initializing service: {self.name}")
        self.context.metrics.increment(f"service.{self.config_key}.initialized")
        self.initialized = True

    def execute(self, operation: str, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """
        Run one logical operation.

        Counts against the rate limit once, records started/success/error
        counters and a duration timing, and hands failures to the error
        handler before re-raising them unchanged.
        """
        if not self.initialized:
            self.initialize()

        self.runner.check_rate_limit()

        metric = f"operation.{self.config_key}.{operation}"
        metrics = self.context.metrics
        self.logger.debug(f"Executing {self.name}.{operation}")
        metrics.increment(f"{metric}.started")
        started = time.monotonic()

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            metrics.increment(f"{metric}.error")
            self.context.error_handler.handle(
                e, {"service": self.name, "function": operation}
            )
            raise

        metrics.timing(f"{metric}.duration", (time.monotonic() - started) * 1000)
        metrics.increment(f"{metric}.success")
        return result

    def health_status(self) -> HealthStatus:
        return HealthStatus(
            name=self.name,
            initialized=self.initialized,
            uptime_ms=int((time.monotonic() - self._start_time) * 1000),
            status="healthy" if self.initialized else "not_initialized",
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    def cleanup(self) -> None:
        self.logger.debug(f"Cleaning up service: {self.name}")
        self.initialized = False
