"""
DriveService — folder listing, name search and text file creation.
"""

from typing import Any

from adapters import drive as drive_api
from models import DriveFileRecord
from services.base import WorkspaceService

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"


def _file_url(file: dict[str, Any]) -> str:
    return file.get("webViewLink") or f"https://drive.google.com/open?id={file['id']}"


def to_record(file: dict[str, Any]) -> DriveFileRecord:
    return DriveFileRecord(
        id=file["id"],
        name=file.get("name", ""),
        url=_file_url(file),
        mime_type=file.get("mimeType", ""),
    )


class DriveService(WorkspaceService):
    config_key = "drive"

    def list_files(self, folder_id: str) -> list[DriveFileRecord]:
        """Files (not subfolders) directly inside a folder."""
        return self.execute(
            "list_files",
            lambda: [
                to_record(f)
                for f in drive_api.list_folder_files(folder_id)
                if f.get("mimeType") != FOLDER_MIME_TYPE
            ],
        )

    def search_files(self, query: str) -> list[DriveFileRecord]:
        """Files whose name contains `query`."""
        return self.execute(
            "search_files",
            lambda: [to_record(f) for f in drive_api.search_files_by_name(query)],
        )

    def create_text_file(
        self,
        name: str,
        content: str,
        folder_id: str | None = None,
    ) -> DriveFileRecord:
        """Upload `content` as a text/plain file."""
        return self.execute(
            "create_text_file",
            lambda: to_record(drive_api.create_text_file(name, content, folder_id)),
        )
