"""
Services — rate-limited wrappers over the Workspace adapters.

Each service routes its operations through WorkspaceService.execute() and
batches bulk work through its BatchRunner.
"""

from .base import WorkspaceService
from .docs import DocsService
from .drive import DriveService
from .factory import ServiceFactory
from .gmail import GmailService
from .sheets import SheetsService

__all__ = [
    "WorkspaceService",
    "GmailService",
    "DriveService",
    "DocsService",
    "SheetsService",
    "ServiceFactory",
]
