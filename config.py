"""
Configuration — environment-aware settings.

Inline defaults are deep-merged with the settings for the active environment
and any explicit overrides. Constructed explicitly and passed around through
AppContext; there is no module-level instance.

Environment resolution order:
1. `environment` argument
2. WSA_ENVIRONMENT environment variable
3. ENVIRONMENT key in the property store
4. "production"
"""

import copy
import os
from typing import Any

from properties import PropertyStore

ENVIRONMENT_VAR = "WSA_ENVIRONMENT"
ENVIRONMENT_PROPERTY = "ENVIRONMENT"
DEFAULT_ENVIRONMENT = "production"

DEFAULT_CONFIG: dict[str, Any] = {
    "app": {
        "name": "Workspace Automation",
        "version": "2.0.0",
        "timeout": 30000,
    },
    "logging": {
        "level": "info",
        "recent_logs": 20,   # entries mirrored into the property store
    },
    "rate_limit": {
        "strategy": "fixed",   # "fixed" or "sliding"
        "window_ms": 60000,
    },
    # batch_size / batch_delay_ms are the per-service batching constants
    "services": {
        "gmail": {"enabled": True, "batch_size": 100, "requests_per_minute": 100, "batch_delay_ms": 1000},
        "drive": {"enabled": True, "batch_size": 100, "requests_per_minute": 100, "batch_delay_ms": 1000},
        "docs": {"enabled": True, "batch_size": 50, "requests_per_minute": 100, "batch_delay_ms": 1000},
        "sheets": {"enabled": True, "batch_size": 1000, "requests_per_minute": 100, "batch_delay_ms": 500},
    },
    "features": {},
    "metrics": {
        "enabled": True,
    },
    "reports": {
        "directory": "docs/reports",
    },
    "storage": {
        "properties_file": "~/.workspace-automation/properties.json",
    },
}

ENVIRONMENT_CONFIGS: dict[str, dict[str, Any]] = {
    "development": {
        "logging": {"level": "debug"},
        "features": {"experimental-features": True, "debug-mode": True},
    },
    "staging": {
        "logging": {"level": "info"},
        "features": {"experimental-features": True},
    },
    "production": {
        "logging": {"level": "error"},
        "features": {"experimental-features": False, "debug-mode": False},
    },
}


def merge_configs(target: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """
    Deep-merge `source` over `target`, returning a new dict.

    Nested dicts merge key by key; every other value (lists included)
    replaces the target's value.
    """
    result = copy.deepcopy(target)
    for key, value in source.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def detect_environment(
    explicit: str | None = None,
    store: PropertyStore | None = None,
) -> str:
    """Resolve the active environment name."""
    if explicit:
        return explicit
    from_env = os.environ.get(ENVIRONMENT_VAR)
    if from_env:
        return from_env
    if store is not None:
        stored = store.get(ENVIRONMENT_PROPERTY)
        if stored:
            return stored
    return DEFAULT_ENVIRONMENT


class ConfigurationManager:
    """Dotted-path access to the merged configuration."""

    def __init__(
        self,
        environment: str | None = None,
        store: PropertyStore | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> None:
        self.environment = detect_environment(environment, store)
        configs = merge_configs(DEFAULT_CONFIG, ENVIRONMENT_CONFIGS.get(self.environment, {}))
        if overrides:
            configs = merge_configs(configs, overrides)
        self._configs = configs

    def get(self, key_path: str, default: Any = None) -> Any:
        """
        Look up a value by dotted path.

        Example:
            config.get("services.gmail.batch_size")  # -> 100
        """
        current: Any = self._configs
        for key in key_path.split("."):
            if isinstance(current, dict) and key in current:
                current = current[key]
            else:
                return default
        return current

    def set(self, key_path: str, value: Any) -> None:
        """Set a value by dotted path, creating intermediate dicts."""
        keys = key_path.split(".")
        current = self._configs
        for key in keys[:-1]:
            if not isinstance(current.get(key), dict):
                current[key] = {}
            current = current[key]
        current[keys[-1]] = value

    def service_config(self, service_name: str) -> dict[str, Any]:
        """Settings for one service, with `enabled` defaulting to True."""
        settings = self.get(f"services.{service_name}", {})
        return {"enabled": True, **copy.deepcopy(settings)}

    def as_dict(self) -> dict[str, Any]:
        """Deep copy of the full configuration."""
        return copy.deepcopy(self._configs)
