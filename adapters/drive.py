"""
Drive API v3 wrapper.

Folder listing, name search, file metadata, plain-text file creation and
comments. Returns raw API dicts; DriveService and DocsService shape them.
"""

import io
import re
from typing import Any, cast

from googleapiclient.http import MediaIoBaseUpload

from logging_config import log_api_call, log_api_result
from models import ErrorKind, WorkspaceError
from retry import with_retry
from adapters.services import get_drive_service


FILE_FIELDS = "id,name,mimeType,webViewLink"

FILE_METADATA_FIELDS = "id,name,mimeType,modifiedTime,size,owners(displayName,emailAddress),webViewLink"

COMMENT_FIELDS = (
    "nextPageToken,"
    "comments(id,content,author(displayName,emailAddress),createdTime,"
    "resolved,quotedFileContent(value),replies(id))"
)

# Drive caps list page size at 1000; comments at 100
FILE_PAGE_SIZE = 1000
COMMENT_PAGE_SIZE = 100

_DRIVE_ID_RE = re.compile(r'^[A-Za-z0-9_\-]+$')


def _validate_drive_id(drive_id: str, param_name: str = "folder_id") -> None:
    """Raise WorkspaceError if drive_id contains characters outside the Drive ID alphabet."""
    if not _DRIVE_ID_RE.match(drive_id):
        raise WorkspaceError(
            ErrorKind.VALIDATION,
            f"Invalid {param_name}: must contain only alphanumeric characters, hyphens, and underscores",
            details={param_name: drive_id},
        )


def escape_query_value(value: str) -> str:
    """Escape a literal for use inside a single-quoted Drive query string."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _list_files(query: str) -> list[dict[str, Any]]:
    """Run files.list to exhaustion for `query`."""
    service = get_drive_service()

    files: list[dict[str, Any]] = []
    page_token: str | None = None

    while True:
        response = (
            service.files()
            .list(
                q=query,
                pageSize=FILE_PAGE_SIZE,
                fields=f"nextPageToken,files({FILE_FIELDS})",
                supportsAllDrives=True,
                includeItemsFromAllDrives=True,
                pageToken=page_token,
            )
            .execute()
        )
        files.extend(response.get("files", []))
        page_token = response.get("nextPageToken")
        if not page_token:
            return files


@with_retry(max_attempts=3, delay_ms=1000)
def list_folder_files(folder_id: str) -> list[dict[str, Any]]:
    """
    List every non-trashed direct child of a folder.

    Shared-drive folders need both supportsAllDrives and
    includeItemsFromAllDrives; without them the listing is silently empty.

    Args:
        folder_id: The folder's Drive file ID

    Returns:
        File resources with id, name, mimeType, webViewLink

    Raises:
        WorkspaceError: On invalid id or API failure
    """
    _validate_drive_id(folder_id)
    log_api_call("drive", "files.list", folder_id=folder_id)
    files = _list_files(f"'{folder_id}' in parents and trashed = false")
    log_api_result("drive", "files.list", len(files))
    return files


@with_retry(max_attempts=3, delay_ms=1000)
def search_files_by_name(text: str) -> list[dict[str, Any]]:
    """Files whose title contains `text` (Drive's own matching rules)."""
    log_api_call("drive", "files.list", name_contains=text)
    files = _list_files(
        f"name contains '{escape_query_value(text)}' and trashed = false"
    )
    log_api_result("drive", "files.list", len(files))
    return files


@with_retry(max_attempts=3, delay_ms=1000)
def get_file_metadata(file_id: str) -> dict[str, Any]:
    """id, name, mimeType, modifiedTime, size, owners, webViewLink for one file."""
    log_api_call("drive", "files.get", file_id=file_id)
    service = get_drive_service()

    result = (
        service.files()
        .get(fileId=file_id, fields=FILE_METADATA_FIELDS, supportsAllDrives=True)
        .execute()
    )
    return cast(dict[str, Any], result)


@with_retry(max_attempts=3, delay_ms=1000)
def create_text_file(
    name: str,
    content: str,
    folder_id: str | None = None,
) -> dict[str, Any]:
    """
    Upload a plain-text file.

    Args:
        name: File title
        content: UTF-8 text body
        folder_id: Parent folder (My Drive root if omitted)

    Returns:
        The created file's id, name, mimeType, webViewLink
    """
    if folder_id:
        _validate_drive_id(folder_id)
    log_api_call("drive", "files.create", name=name, folder_id=folder_id)
    service = get_drive_service()

    body: dict[str, Any] = {"name": name, "mimeType": "text/plain"}
    if folder_id:
        body["parents"] = [folder_id]

    media = MediaIoBaseUpload(
        io.BytesIO(content.encode("utf-8")),
        mimetype="text/plain",
        resumable=False,
    )
    result = (
        service.files()
        .create(body=body, media_body=media, fields=FILE_FIELDS, supportsAllDrives=True)
        .execute()
    )
    return cast(dict[str, Any], result)


@with_retry(max_attempts=3, delay_ms=1000)
def fetch_file_comments(
    file_id: str,
    include_deleted: bool = False,
    max_results: int = 100,
) -> list[dict[str, Any]]:
    """
    Up to `max_results` comments on a file, oldest first, paging as needed.

    Only COMMENT_FIELDS are requested; replies are reduced to their ids.
    """
    log_api_call("drive", "comments.list", file_id=file_id)
    service = get_drive_service()

    comments: list[dict[str, Any]] = []
    page_token: str | None = None

    while len(comments) < max_results:
        response = (
            service.comments()
            .list(
                fileId=file_id,
                fields=COMMENT_FIELDS,
                includeDeleted=include_deleted,
                pageSize=min(max_results - len(comments), COMMENT_PAGE_SIZE),
                pageToken=page_token,
            )
            .execute()
        )
        comments.extend(response.get("comments", []))
        page_token = response.get("nextPageToken")
        if not page_token:
            break

    log_api_result("drive", "comments.list", len(comments))
    return comments[:max_results]
