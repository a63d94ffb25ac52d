"""
Tests for the Drive adapter and DriveService.
"""

from typing import Generator
from unittest.mock import MagicMock, patch

import pytest

from adapters import drive as drive_api
from context import AppContext
from models import ErrorKind, WorkspaceError
from services.drive import FOLDER_MIME_TYPE, DriveService, to_record
from tests.mock_utils import make_http_error


FILES = [
    {"id": "f1", "name": "Budget.txt", "mimeType": "text/plain", "webViewLink": "https://drive/f1"},
    {"id": "d1", "name": "Archive", "mimeType": FOLDER_MIME_TYPE},
    {"id": "f2", "name": "Plan", "mimeType": "application/vnd.google-apps.document"},
]


class TestDriveAdapter:

    def test_list_folder_files_query(self, patch_drive_service: MagicMock) -> None:
        files = patch_drive_service.files()
        files.list().execute.return_value = {"files": FILES}

        assert drive_api.list_folder_files("folder_1") == FILES

        kwargs = files.list.call_args.kwargs
        assert kwargs["q"] == "'folder_1' in parents and trashed = false"
        assert kwargs["supportsAllDrives"] is True
        assert kwargs["includeItemsFromAllDrives"] is True

    def test_list_folder_files_paginates(self, patch_drive_service: MagicMock) -> None:
        patch_drive_service.files().list().execute.side_effect = [
            {"files": FILES[:1], "nextPageToken": "p2"},
            {"files": FILES[1:]},
        ]
        assert len(drive_api.list_folder_files("folder_1")) == 3

    @pytest.mark.parametrize("folder_id", ["abc'def", "a b", "x/y"])
    def test_invalid_folder_id(self, patch_drive_service: MagicMock, folder_id: str) -> None:
        with pytest.raises(WorkspaceError) as exc_info:
            drive_api.list_folder_files(folder_id)
        assert exc_info.value.kind == ErrorKind.VALIDATION
        patch_drive_service.files.assert_not_called()

    def test_search_escapes_quotes(self, patch_drive_service: MagicMock) -> None:
        files = patch_drive_service.files()
        files.list().execute.return_value = {}

        drive_api.search_files_by_name("Bob's notes")

        assert files.list.call_args.kwargs["q"] == "name contains 'Bob\\'s notes' and trashed = false"

    def test_create_text_file_parent(self, patch_drive_service: MagicMock) -> None:
        files = patch_drive_service.files()
        files.create().execute.return_value = {"id": "new"}

        drive_api.create_text_file("notes.txt", "hello", "folder_1")

        body = files.create.call_args.kwargs["body"]
        assert body == {"name": "notes.txt", "mimeType": "text/plain", "parents": ["folder_1"]}

    def test_create_text_file_root(self, patch_drive_service: MagicMock) -> None:
        files = patch_drive_service.files()
        files.create().execute.return_value = {"id": "new"}

        drive_api.create_text_file("notes.txt", "hello")

        assert "parents" not in files.create.call_args.kwargs["body"]

    def test_comments_capped(self, patch_drive_service: MagicMock) -> None:
        patch_drive_service.comments().list().execute.return_value = {
            "comments": [{"id": str(i)} for i in range(5)],
            "nextPageToken": "more",
        }
        assert len(drive_api.fetch_file_comments("doc1", max_results=3)) == 3

    def test_permission_denied(self, patch_drive_service: MagicMock) -> None:
        patch_drive_service.files().get().execute.side_effect = make_http_error(403)
        with pytest.raises(WorkspaceError) as exc_info:
            drive_api.get_file_metadata("f1")
        assert exc_info.value.kind == ErrorKind.AUTHORIZATION


class TestToRecord:

    def test_web_view_link(self) -> None:
        record = to_record(FILES[0])
        assert (record.id, record.name, record.url, record.mime_type) == (
            "f1", "Budget.txt", "https://drive/f1", "text/plain",
        )

    def test_url_fallback(self) -> None:
        assert to_record({"id": "f2"}).url == "https://drive.google.com/open?id=f2"


@pytest.fixture
def drive_mock() -> Generator[MagicMock, None, None]:
    with patch("services.drive.drive_api") as api:
        yield api


@pytest.fixture
def drive(context: AppContext) -> DriveService:
    return DriveService(context, name="drive")


class TestDriveService:

    def test_list_files_skips_folders(self, drive: DriveService, drive_mock: MagicMock) -> None:
        drive_mock.list_folder_files.return_value = FILES
        assert [r.id for r in drive.list_files("folder_1")] == ["f1", "f2"]

    def test_search_files(self, drive: DriveService, drive_mock: MagicMock) -> None:
        drive_mock.search_files_by_name.return_value = FILES[:1]
        assert [r.name for r in drive.search_files("Budget")] == ["Budget.txt"]
        drive_mock.search_files_by_name.assert_called_once_with("Budget")

    def test_create_text_file(self, drive: DriveService, drive_mock: MagicMock) -> None:
        drive_mock.create_text_file.return_value = {"id": "new", "name": "notes.txt", "mimeType": "text/plain"}

        record = drive.create_text_file("notes.txt", "hello", "folder_1")

        assert record.id == "new"
        drive_mock.create_text_file.assert_called_once_with("notes.txt", "hello", "folder_1")

    def test_not_found_propagates(
        self, drive: DriveService, drive_mock: MagicMock, context: AppContext
    ) -> None:
        drive_mock.list_folder_files.side_effect = WorkspaceError(ErrorKind.NOT_FOUND, "gone")

        with pytest.raises(WorkspaceError) as exc_info:
            drive.list_files("folder_1")

        assert exc_info.value.kind == ErrorKind.NOT_FOUND
        assert context.metrics.get_metric("operation.drive.list_files.error") == 1
