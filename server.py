#!/usr/bin/env python3
"""
Workspace Automation MCP Server

Rate-limited Gmail, Drive, Docs and Sheets operations exposed as MCP tools,
plus the cross-service workflows and runtime introspection (health, recent
errors, recent logs).

Architecture:
- extractors/: Pure functions (no MCP, no API calls)
- adapters/: Thin Google API wrappers
- services/: Rate-limited, batched service operations
- workflows/: Multi-service automations
- server.py: Thin MCP wrappers (this file)

Tools return plain dicts. Failures come back as WorkspaceError.to_dict():
{"error": True, "kind": ..., "message": ..., "retryable": ...}
"""

import os
import signal
from functools import lru_cache
from typing import Any, Callable, cast

from mcp.server.fastmcp import FastMCP

from context import create_context
from logging_config import configure_logging, recent_logs
from models import FormatOptions, InsertOptions, WorkspaceError
from services import DocsService, DriveService, GmailService, ServiceFactory, SheetsService
from workflows import (
    batch_email_export,
    create_drive_file_index,
    export_document_to_markdown,
    export_gmail_labels_to_sheet,
    service_health_check,
)

# Initialize MCP server
mcp = FastMCP("Workspace Automation")


@lru_cache(maxsize=1)
def _factory() -> ServiceFactory:
    """One context and factory per server process."""
    context = create_context()
    configure_logging(context.config.get("logging.level", "info"))
    return ServiceFactory(context)


def _call(func: Callable[[], Any]) -> Any:
    try:
        return func()
    except WorkspaceError as e:
        return e.to_dict()


def _gmail() -> GmailService:
    return cast(GmailService, _factory().create_service("gmail"))


def _drive() -> DriveService:
    return cast(DriveService, _factory().create_service("drive"))


def _docs() -> DocsService:
    return cast(DocsService, _factory().create_service("docs"))


def _sheets() -> SheetsService:
    return cast(SheetsService, _factory().create_service("sheets"))


# ============================================================================
# GMAIL
# ============================================================================

@mcp.tool()
def gmail_label_stats() -> Any:
    """
    Thread and email totals for every user-created Gmail label.

    Returns:
        List of {name, thread_count, email_count}
    """
    return _call(lambda: [s.to_dict() for s in _gmail().get_label_stats()])


@mcp.tool()
def gmail_unread_counts() -> Any:
    """Unread thread count per user label, as {label_name: count}."""
    return _call(lambda: _gmail().get_unread_counts())


@mcp.tool()
def gmail_export(query: str = "", max_results: int = 100) -> Any:
    """
    Export messages from threads matching a Gmail query.

    Args:
        query: Gmail search syntax (e.g. "is:unread from:alice")
        max_results: Maximum number of threads to read

    Returns:
        List of email records: subject, sender, recipients, date, labels,
        snippet, attachment count, unread/starred flags
    """
    return _call(lambda: [r.to_dict() for r in _gmail().export_emails(query, max_results)])


@mcp.tool()
def gmail_mark_read(thread_ids: list[str]) -> Any:
    """Mark threads as read. Returns {marked: <count>}."""
    return _call(lambda: {"marked": _gmail().mark_emails_read(thread_ids)})


# ============================================================================
# DRIVE
# ============================================================================

@mcp.tool()
def drive_list_files(folder_id: str) -> Any:
    """Non-folder files directly inside a Drive folder."""
    return _call(lambda: [f.to_dict() for f in _drive().list_files(folder_id)])


@mcp.tool()
def drive_search_files(query: str) -> Any:
    """Files whose name contains `query`."""
    return _call(lambda: [f.to_dict() for f in _drive().search_files(query)])


@mcp.tool()
def drive_create_text_file(name: str, content: str, folder_id: str | None = None) -> Any:
    """
    Create a plain-text file in Drive.

    Args:
        name: File name (include the extension, e.g. notes.md)
        content: File body
        folder_id: Destination folder (default: My Drive root)
    """
    return _call(lambda: _drive().create_text_file(name, content, folder_id).to_dict())


# ============================================================================
# DOCS
# ============================================================================

@mcp.tool()
def doc_content(doc_id: str) -> Any:
    """Body text of a Google Doc."""
    return _call(lambda: {"doc_id": doc_id, "content": _docs().get_doc_content(doc_id)})


@mcp.tool()
def doc_to_markdown(doc_id: str) -> Any:
    """Body of a Google Doc as basic markdown (all-caps lines become headings)."""
    return _call(lambda: _docs().export_to_markdown(doc_id).to_dict())


@mcp.tool()
def doc_metadata(doc_id: str) -> Any:
    """Name, URL, word count, owner and last update of a Google Doc."""
    return _call(lambda: _docs().get_doc_metadata(doc_id).to_dict())


@mcp.tool()
def doc_comments(doc_id: str) -> Any:
    """Comments on a Google Doc, with author, content, quoted text and status."""
    return _call(lambda: [c.to_dict() for c in _docs().extract_comments(doc_id)])


@mcp.tool()
def doc_format(
    doc_id: str,
    font_size: float | None = None,
    font_family: str | None = None,
    line_spacing: float | None = None,
) -> Any:
    """
    Apply formatting to the whole document body.

    Args:
        doc_id: Document ID
        font_size: Font size in points
        font_family: Font family name
        line_spacing: Multiplier, e.g. 1.15 or 2.0

    Omitted options are left untouched. With no options, nothing is sent.
    """
    options = FormatOptions(font_size=font_size, font_family=font_family, line_spacing=line_spacing)
    return _call(lambda: _docs().format_document(doc_id, options).to_dict())


@mcp.tool()
def doc_replace_text(doc_id: str, search_text: str, replace_text: str) -> Any:
    """Replace every case-sensitive occurrence of `search_text`."""
    return _call(lambda: _docs().replace_text(doc_id, search_text, replace_text).to_dict())


# ============================================================================
# SHEETS
# ============================================================================

@mcp.tool()
def sheet_data(spreadsheet_id: str, sheet_name: str | None = None) -> Any:
    """All values of a tab (the first tab when sheet_name is omitted)."""
    return _call(lambda: {"values": _sheets().get_sheet_data(spreadsheet_id, sheet_name)})


@mcp.tool()
def sheet_setup(spreadsheet_id: str, sheet_name: str, headers: list[str]) -> Any:
    """Clear a tab (creating it if needed), write headers and apply default formatting."""
    return _call(lambda: _sheets().setup_sheet(spreadsheet_id, sheet_name, headers).to_dict())


@mcp.tool()
def sheet_insert(
    spreadsheet_id: str,
    sheet_name: str,
    data: list[list[Any]],
    headers: list[str] | None = None,
    start_row: int = 2,
    clear_existing: bool = False,
) -> Any:
    """
    Write rows into a tab in rate-limited batches.

    Args:
        spreadsheet_id: Spreadsheet ID
        sheet_name: Tab name (created if missing)
        data: Rows to write
        headers: Header row, written when row 1 is empty
        start_row: First data row (1-based)
        clear_existing: Clear rows below the header first

    Returns:
        rows_written, batches
    """
    options = InsertOptions(start_row=start_row, clear_existing=clear_existing)
    return _call(
        lambda: _sheets().insert_data_into_sheet(
            spreadsheet_id, sheet_name, data, headers, options
        ).to_dict()
    )


@mcp.tool()
def sheet_clear(spreadsheet_id: str, sheet_name: str, preserve_headers: bool = True) -> Any:
    """Clear a tab below row 1, or its values and formatting when preserve_headers is False."""
    return _call(
        lambda: _sheets().clear_sheet(spreadsheet_id, sheet_name, preserve_headers).to_dict()
    )


# ============================================================================
# WORKFLOWS
# ============================================================================

@mcp.tool()
def workflow_labels_to_sheet(spreadsheet_id: str) -> dict[str, Any]:
    """Write Gmail label stats to the "Gmail Labels" tab."""
    return export_gmail_labels_to_sheet(_factory(), spreadsheet_id)


@mcp.tool()
def workflow_file_index(spreadsheet_id: str, search_query: str) -> dict[str, Any]:
    """Write Drive files matching `search_query` to the "Drive Files" tab."""
    return create_drive_file_index(_factory(), spreadsheet_id, search_query)


@mcp.tool()
def workflow_doc_to_markdown(doc_id: str, folder_id: str | None = None) -> dict[str, Any]:
    """Save a Google Doc as a .md file in Drive."""
    return export_document_to_markdown(_factory(), doc_id, folder_id)


@mcp.tool()
def workflow_email_export(
    spreadsheet_id: str,
    query: str = "is:unread",
    max_results: int = 50,
) -> dict[str, Any]:
    """Write messages matching `query` to the "Email Export" tab."""
    return batch_email_export(_factory(), spreadsheet_id, query, max_results)


# ============================================================================
# RUNTIME
# ============================================================================

@mcp.tool()
def health() -> dict[str, Any]:
    """Health of every enabled service, plus factory and metrics summaries."""
    return service_health_check(_factory())


@mcp.tool()
def recent_errors(count: int = 10) -> list[dict[str, Any]]:
    """Most recently handled errors, newest first."""
    return _factory().context.error_handler.recent_errors(count)


@mcp.tool()
def recent_log_entries(count: int = 20) -> list[dict[str, Any]]:
    """Most recently persisted log records, newest first."""
    return recent_logs(_factory().context.store, count)


# ============================================================================
# SERVER ENTRY POINT
# ============================================================================

def _shutdown_handler(signum: int, frame: object) -> None:
    """Exit immediately on SIGTERM/SIGINT.

    sys.exit() raises SystemExit, which the asyncio loop swallows; the
    server would then linger until stdin closes.
    """
    _factory().cleanup()
    os._exit(0)


if __name__ == "__main__":
    signal.signal(signal.SIGTERM, _shutdown_handler)
    signal.signal(signal.SIGINT, _shutdown_handler)
    mcp.run()
