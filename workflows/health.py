"""
Health check workflow — one snapshot of every enabled service.
"""

from datetime import datetime, timezone
from typing import Any

from logging_config import logger
from models import WorkspaceError
from services.factory import ServiceFactory


def service_health_check(factory: ServiceFactory) -> dict[str, Any]:
    """
    Create every enabled service and report its health.

    Also includes the factory summary and the metrics summary. No Google
    API calls are made.
    """
    try:
        services = factory.create_all_services()
    except WorkspaceError as e:
        logger.error(f"Error in service_health_check: {e.message}")
        return {"success": False, "error": e.message, "kind": e.kind.value}

    report = {
        "success": True,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": factory.context.config.environment,
        "services": {name: s.health_status().to_dict() for name, s in services.items()},
        "factory": factory.health_status(),
        "metrics": factory.context.metrics.summary(),
    }
    logger.info(f"Service health check completed: {len(services)} services")
    return report
