"""
Feature flags — runtime toggles layered over configuration.

Precedence (lowest to highest): built-in defaults, the `features` section of
the configuration, then per-environment overrides.
"""

import random
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

from config import ConfigurationManager
from logging_config import logger
from models import ErrorKind, WorkspaceError


T = TypeVar("T")

DEFAULT_FLAGS: dict[str, bool] = {
    # Core
    "enhanced-logging": False,
    "debug-mode": False,
    "experimental-features": False,
    # Services
    "gmail-advanced-parsing": False,
    "drive-bulk-operations": False,
    "sheets-auto-formatting": False,
    # Performance
    "batch-processing": True,
    "caching-enabled": True,
    # Security
    "enhanced-security": True,
    "audit-logging": False,
}

ENVIRONMENT_FLAGS: dict[str, dict[str, bool]] = {
    "development": {
        "debug-mode": True,
        "experimental-features": True,
        "enhanced-logging": True,
        "audit-logging": True,
    },
    "staging": {
        "debug-mode": False,
        "experimental-features": True,
        "enhanced-logging": True,
        "audit-logging": True,
    },
    "production": {
        "debug-mode": False,
        "experimental-features": False,
        "enhanced-logging": False,
        "audit-logging": True,
    },
}


class FeatureFlags:
    """Named boolean switches."""

    def __init__(self, config: ConfigurationManager) -> None:
        self.config = config
        self._flags = self._load()

    def _load(self) -> dict[str, bool]:
        configured = self.config.get("features", {}) or {}
        flags: dict[str, bool] = dict(DEFAULT_FLAGS)
        flags.update({k: bool(v) for k, v in configured.items()})
        flags.update(ENVIRONMENT_FLAGS.get(self.config.environment, {}))
        return flags

    def is_enabled(self, flag: str) -> bool:
        enabled = self._flags.get(flag, False)
        logger.debug(f"Feature flag check: {flag} = {enabled}")
        return enabled

    def enable(self, flag: str) -> None:
        self._flags[flag] = True
        logger.info(f"Feature flag enabled: {flag}")

    def disable(self, flag: str) -> None:
        self._flags[flag] = False
        logger.info(f"Feature flag disabled: {flag}")

    def toggle(self, flag: str) -> bool:
        self._flags[flag] = not self._flags.get(flag, False)
        logger.info(f"Feature flag toggled: {flag} = {self._flags[flag]}")
        return self._flags[flag]

    def set(self, flag: str, value: Any) -> None:
        old = self._flags.get(flag)
        self._flags[flag] = bool(value)
        if old != self._flags[flag]:
            logger.info(f"Feature flag changed: {flag} = {self._flags[flag]} (was: {old})")

    def all(self) -> dict[str, bool]:
        return dict(self._flags)

    def enabled(self) -> dict[str, bool]:
        return {k: v for k, v in self._flags.items() if v}

    def are_enabled(self, flags: list[str]) -> dict[str, bool]:
        return {flag: self.is_enabled(flag) for flag in flags}

    def if_enabled(self, flag: str, callback: Callable[[], T]) -> T | None:
        """Run `callback` only when `flag` is on."""
        if not self.is_enabled(flag):
            return None
        try:
            return callback()
        except Exception:
            logger.exception(f"Error in feature flag callback for {flag}")
            raise

    def branch(
        self,
        flag: str,
        when_enabled: Callable[[], T] | None = None,
        when_disabled: Callable[[], T] | None = None,
    ) -> T | None:
        callback = when_enabled if self.is_enabled(flag) else when_disabled
        return callback() if callback else None

    def enable_for_percentage(self, flag: str, percentage: float) -> bool:
        """Randomly enable `flag` with the given probability (0-100)."""
        if percentage < 0 or percentage > 100:
            raise WorkspaceError(
                ErrorKind.VALIDATION,
                "Percentage must be between 0 and 100",
                details={"flag": flag, "percentage": percentage},
            )
        enabled = random.random() * 100 < percentage
        self.set(flag, enabled)
        logger.info(f"A/B test: {flag} = {enabled} ({percentage}% rollout)")
        return enabled

    def status_report(self) -> dict[str, Any]:
        flags = self.all()
        enabled = self.enabled()
        return {
            "environment": self.config.environment,
            "total_flags": len(flags),
            "enabled_flags": len(enabled),
            "disabled_flags": len(flags) - len(enabled),
            "flags": flags,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def reload(self) -> None:
        """Re-read flags from configuration, logging anything that changed."""
        old = dict(self._flags)
        self._flags = self._load()
        for flag, value in self._flags.items():
            if old.get(flag) != value:
                logger.info(f"Feature flag reloaded: {flag} = {value} (was: {old.get(flag)})")
        logger.info("Feature flags reloaded")
