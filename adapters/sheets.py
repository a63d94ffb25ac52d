"""
Sheets API v4 wrapper.

Spreadsheet metadata, value reads/writes/clears and batchUpdate. Ranges are
A1 notation; use a1_range() to build them.
"""

from typing import Any, Literal

from logging_config import log_api_call, log_api_result
from models import CellValue, SheetInfo
from retry import with_retry
from adapters.services import get_sheets_service


# Fields to request from spreadsheets().get()
SPREADSHEET_METADATA_FIELDS = (
    "spreadsheetId,"
    "properties(title),"
    "sheets(properties(sheetId,title,gridProperties(rowCount,columnCount)))"
)


def column_letter(index: int) -> str:
    """
    1-based column number to A1 letters.

    Example:
        column_letter(1) -> "A", column_letter(27) -> "AA"
    """
    if index < 1:
        raise ValueError(f"Column index must be >= 1, got {index}")
    letters = ""
    while index:
        index, remainder = divmod(index - 1, 26)
        letters = chr(ord("A") + remainder) + letters
    return letters


def quote_sheet_name(name: str) -> str:
    """Quote a tab name for A1 notation ('It''s' style escaping)."""
    return "'" + name.replace("'", "''") + "'"


def a1_range(
    sheet_name: str,
    start_row: int | None = None,
    start_col: int = 1,
    end_row: int | None = None,
    end_col: int | None = None,
) -> str:
    """
    Build an A1 range for a tab.

    Example:
        a1_range("Data") -> "'Data'"
        a1_range("Data", 2) -> "'Data'!A2"
        a1_range("Data", 2, 1, 10, 3) -> "'Data'!A2:C10"
        a1_range("Data", 2, 1, None, 3) -> "'Data'!A2:C"  (open-ended rows)
    """
    quoted = quote_sheet_name(sheet_name)
    if start_row is None:
        return quoted
    start = f"{column_letter(start_col)}{start_row}"
    if end_col is None:
        return f"{quoted}!{start}"
    end = column_letter(end_col) + (str(end_row) if end_row is not None else "")
    return f"{quoted}!{start}:{end}"


def _cells(row: list[Any]) -> list[CellValue]:
    """Scalars pass through; anything else the API hands back becomes text."""
    return [
        v if v is None or isinstance(v, (str, int, float, bool)) else str(v)
        for v in row
    ]


def _build_sheet_info(sheet: dict[str, Any]) -> SheetInfo:
    props = sheet.get("properties", {})
    grid = props.get("gridProperties", {})
    return SheetInfo(
        sheet_id=props.get("sheetId", 0),
        title=props.get("title", ""),
        row_count=grid.get("rowCount", 1000),
        column_count=grid.get("columnCount", 26),
    )


@with_retry(max_attempts=3, delay_ms=1000)
def get_spreadsheet_sheets(spreadsheet_id: str) -> list[SheetInfo]:
    """
    List the tabs of a spreadsheet in display order.

    Raises:
        WorkspaceError: On API failure (converted by @with_retry)
    """
    log_api_call("sheets", "spreadsheets.get", spreadsheet_id=spreadsheet_id)
    service = get_sheets_service()
    response = (
        service.spreadsheets()
        .get(spreadsheetId=spreadsheet_id, fields=SPREADSHEET_METADATA_FIELDS)
        .execute()
    )
    return [_build_sheet_info(s) for s in response.get("sheets", [])]


@with_retry(max_attempts=3, delay_ms=1000)
def get_values(spreadsheet_id: str, range_: str) -> list[list[CellValue]]:
    """
    Read a range. Trailing empty rows and cells are omitted by the API.
    """
    log_api_call("sheets", "values.get", range=range_)
    service = get_sheets_service()
    response = (
        service.spreadsheets()
        .values()
        .get(spreadsheetId=spreadsheet_id, range=range_)
        .execute()
    )
    rows = [_cells(row) for row in response.get("values", [])]
    log_api_result("sheets", "values.get", len(rows))
    return rows


@with_retry(max_attempts=3, delay_ms=1000)
def update_values(
    spreadsheet_id: str,
    range_: str,
    values: list[list[CellValue]],
    value_input_option: Literal["RAW", "USER_ENTERED"] = "USER_ENTERED",
) -> int:
    """
    Overwrite `range_` starting at its top-left cell.

    USER_ENTERED lets Sheets parse formulae and dates; RAW stores strings
    as typed. Returns the updatedCells count.
    """
    log_api_call("sheets", "values.update", range=range_, rows=len(values))
    service = get_sheets_service()
    response = (
        service.spreadsheets()
        .values()
        .update(
            spreadsheetId=spreadsheet_id,
            range=range_,
            valueInputOption=value_input_option,
            body={"values": values},
        )
        .execute()
    )
    return response.get("updatedCells", 0)


@with_retry(max_attempts=3, delay_ms=1000)
def clear_values(spreadsheet_id: str, range_: str) -> None:
    """Clear the values (not formatting) in a range."""
    log_api_call("sheets", "values.clear", range=range_)
    service = get_sheets_service()
    service.spreadsheets().values().clear(
        spreadsheetId=spreadsheet_id, range=range_, body={}
    ).execute()


@with_retry(max_attempts=3, delay_ms=1000)
def batch_update(spreadsheet_id: str, requests: list[dict[str, Any]]) -> dict[str, Any]:
    """Apply spreadsheet-level requests (formatting, freezing, resizing)."""
    log_api_call("sheets", "spreadsheets.batchUpdate", requests=len(requests))
    service = get_sheets_service()
    return (
        service.spreadsheets()
        .batchUpdate(spreadsheetId=spreadsheet_id, body={"requests": requests})
        .execute()
    )


def add_sheet(spreadsheet_id: str, title: str) -> int:
    """Create a tab called `title` and return its sheetId."""
    response = batch_update(
        spreadsheet_id, [{"addSheet": {"properties": {"title": title}}}]
    )
    return response["replies"][0]["addSheet"]["properties"]["sheetId"]
