"""
ServiceFactory — registry and instance cache for service wrappers.

Instances are cached per (name, options) unless created with
singleton=False. Services switched off under `services.<name>.enabled`
are refused.
"""

import json
from datetime import datetime, timezone
from typing import Any

from context import AppContext
from models import ErrorKind, WorkspaceError
from services.base import WorkspaceService
from services.docs import DocsService
from services.drive import DriveService
from services.gmail import GmailService
from services.sheets import SheetsService

BUILT_IN_SERVICES: dict[str, type[WorkspaceService]] = {
    "gmail": GmailService,
    "drive": DriveService,
    "docs": DocsService,
    "sheets": SheetsService,
}


def _service_key(name: str, options: dict[str, Any]) -> str:
    return f"{name}_{json.dumps(options, sort_keys=True, default=str)}"


class ServiceFactory:
    """Creates and tracks WorkspaceService instances for one AppContext."""

    def __init__(self, context: AppContext, register_built_ins: bool = True) -> None:
        self.context = context
        self.logger = context.logger.getChild("factory")
        self._registry: dict[str, type[WorkspaceService]] = {}
        self._services: dict[str, WorkspaceService] = {}
        if register_built_ins:
            for name, service_cls in BUILT_IN_SERVICES.items():
                self.register_service(name, service_cls)

    def register_service(self, name: str, service_cls: type[WorkspaceService]) -> None:
        if not (isinstance(service_cls, type) and issubclass(service_cls, WorkspaceService)):
            raise WorkspaceError(
                ErrorKind.VALIDATION,
                f"Service class for '{name}' must subclass WorkspaceService",
            )
        self._registry[name] = service_cls
        self.logger.debug(f"Service registered: {name}")

    def create_service(self, name: str, **options: Any) -> WorkspaceService:
        """
        Return the service named `name`, creating it if needed.

        Args:
            name: Registered service name
            **options: Per-instance settings (batch_size, requests_per_minute,
                batch_delay_ms ...). singleton=False always builds a fresh,
                untracked instance.

        Raises:
            WorkspaceError: NOT_FOUND if unregistered, VALIDATION if disabled
        """
        singleton = options.pop("singleton", True)
        key = _service_key(name, options)

        if singleton and key in self._services:
            return self._services[key]

        service_cls = self._registry.get(name)
        if service_cls is None:
            raise WorkspaceError(
                ErrorKind.NOT_FOUND,
                f"Service '{name}' is not registered",
                details={"registered": self.registered_services()},
            )

        if not self.context.config.service_config(name).get("enabled", True):
            self.logger.error(f"Failed to create service: {name} (disabled)")
            raise WorkspaceError(
                ErrorKind.VALIDATION,
                f"Service '{name}' is disabled in configuration",
            )

        service = service_cls(self.context, name=name, **options)
        service.initialize()
        if singleton:
            self._services[key] = service
        self.logger.info(f"Service created: {name}")
        return service

    def get_service(self, name: str, **options: Any) -> WorkspaceService | None:
        """Cached instance for (name, options), or None."""
        options.pop("singleton", None)
        return self._services.get(_service_key(name, options))

    def is_registered(self, name: str) -> bool:
        return name in self._registry

    def registered_services(self) -> list[str]:
        return list(self._registry)

    def active_services(self) -> list[dict[str, Any]]:
        return [
            {"key": key, "name": service.name, "status": service.health_status().to_dict()}
            for key, service in self._services.items()
        ]

    def create_all_services(self) -> dict[str, WorkspaceService]:
        """One default instance of every enabled registered service."""
        created = {}
        for name in self._registry:
            if self.context.config.service_config(name).get("enabled", True):
                created[name] = self.create_service(name)
        return created

    def cleanup(self) -> None:
        """Clean up and forget every cached instance."""
        self.logger.info("Cleaning up all services")
        for key, service in self._services.items():
            try:
                service.cleanup()
            except Exception:
                self.logger.exception(f"Error cleaning up service: {key}")
        self._services.clear()

    def health_status(self) -> dict[str, Any]:
        active = self.active_services()
        return {
            "registered_services": len(self._registry),
            "active_services": len(active),
            "services": active,
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
