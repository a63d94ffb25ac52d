"""
Export workflows — Gmail/Drive/Docs data into Sheets and Drive.

Thin compositions of the service wrappers. Each returns a result dict with
"success"; a WorkspaceError becomes {"success": False, "error", "kind"}.
"""

from typing import Any, cast

from logging_config import logger
from models import InsertOptions, WorkspaceError
from services.docs import DocsService
from services.drive import DriveService
from services.factory import ServiceFactory
from services.gmail import GmailService
from services.sheets import SheetsService

LABEL_SHEET = "Gmail Labels"
LABEL_HEADERS = ["Label Name", "Thread Count", "Email Count"]

FILE_INDEX_SHEET = "Drive Files"
FILE_INDEX_HEADERS = ["File ID", "File Name", "File URL"]

EMAIL_SHEET = "Email Export"
EMAIL_HEADERS = [
    "Message ID", "Thread ID", "Date", "Subject", "From", "From Name",
    "From Domain", "Has Attachments", "Labels", "Snippet",
]

# Sheets written by these workflows replace their previous contents
REPLACE = InsertOptions(clear_existing=True, auto_resize=True)


def _failure(workflow: str, error: WorkspaceError) -> dict[str, Any]:
    logger.error(f"Error in {workflow}: {error.message}")
    return {"success": False, "error": error.message, "kind": error.kind.value}


def export_gmail_labels_to_sheet(
    factory: ServiceFactory,
    spreadsheet_id: str,
    sheet_name: str = LABEL_SHEET,
) -> dict[str, Any]:
    """One row per user label: name, thread count, email count."""
    try:
        gmail = cast(GmailService, factory.create_service("gmail"))
        sheets = cast(SheetsService, factory.create_service("sheets"))

        sheets.setup_sheet(spreadsheet_id, sheet_name, LABEL_HEADERS)
        rows = [[s.name, s.thread_count, s.email_count] for s in gmail.get_label_stats()]
        sheets.insert_data_into_sheet(spreadsheet_id, sheet_name, rows, LABEL_HEADERS, REPLACE)
    except WorkspaceError as e:
        return _failure("export_gmail_labels_to_sheet", e)

    logger.info(f"Gmail labels exported to sheet: {sheet_name}")
    return {"success": True, "row_count": len(rows)}


def create_drive_file_index(
    factory: ServiceFactory,
    spreadsheet_id: str,
    search_query: str,
    sheet_name: str = FILE_INDEX_SHEET,
) -> dict[str, Any]:
    """One row per Drive file whose name contains `search_query`."""
    try:
        drive = cast(DriveService, factory.create_service("drive"))
        sheets = cast(SheetsService, factory.create_service("sheets"))

        sheets.setup_sheet(spreadsheet_id, sheet_name, FILE_INDEX_HEADERS)
        files = drive.search_files(search_query)
        rows = [[f.id, f.name, f.url] for f in files]
        sheets.insert_data_into_sheet(spreadsheet_id, sheet_name, rows, FILE_INDEX_HEADERS, REPLACE)
    except WorkspaceError as e:
        return _failure("create_drive_file_index", e)

    logger.info(f"Drive file index created: {len(files)} files found")
    return {"success": True, "file_count": len(files)}


def export_document_to_markdown(
    factory: ServiceFactory,
    doc_id: str,
    folder_id: str | None = None,
) -> dict[str, Any]:
    """
    Save a Doc's markdown rendering as "<title>.md" in Drive.

    Returns:
        {"success": True, "original_doc": {...}, "markdown_file": {...}}
    """
    if not doc_id:
        return {"success": False, "error": "Document ID is required", "kind": "validation"}

    try:
        docs = cast(DocsService, factory.create_service("docs"))
        drive = cast(DriveService, factory.create_service("drive"))

        metadata = docs.get_doc_metadata(doc_id)
        logger.info(f"Processing document: {metadata.name}")
        export = docs.export_to_markdown(doc_id)
        file = drive.create_text_file(f"{metadata.name}.md", export.content, folder_id)
    except WorkspaceError as e:
        return _failure("export_document_to_markdown", e)

    logger.info(f"Document exported to markdown: {file.url}")
    return {
        "success": True,
        "original_doc": metadata.to_dict(),
        "markdown_file": file.to_dict(),
    }


def batch_email_export(
    factory: ServiceFactory,
    spreadsheet_id: str,
    query: str = "is:unread",
    max_results: int = 50,
    sheet_name: str = EMAIL_SHEET,
) -> dict[str, Any]:
    """One row per message of the threads matching `query`."""
    try:
        gmail = cast(GmailService, factory.create_service("gmail"))
        sheets = cast(SheetsService, factory.create_service("sheets"))

        sheets.setup_sheet(spreadsheet_id, sheet_name, EMAIL_HEADERS)
        emails = gmail.export_emails(query, max_results)
        rows = [email.to_row() for email in emails]
        sheets.insert_data_into_sheet(spreadsheet_id, sheet_name, rows, EMAIL_HEADERS, REPLACE)
    except WorkspaceError as e:
        return _failure("batch_email_export", e)

    logger.info(f"Batch email export completed: {len(emails)} emails processed")
    return {"success": True, "email_count": len(emails)}
