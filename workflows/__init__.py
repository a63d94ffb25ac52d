"""
Workflows — multi-service automations built on the service wrappers.
"""

from .exports import (
    batch_email_export,
    create_drive_file_index,
    export_document_to_markdown,
    export_gmail_labels_to_sheet,
)
from .health import service_health_check

__all__ = [
    "export_gmail_labels_to_sheet",
    "create_drive_file_index",
    "export_document_to_markdown",
    "batch_email_export",
    "service_health_check",
]
