"""
SheetsService — tab lookup/creation, header setup, batched row inserts.

Rows are written through the BatchRunner (1000 rows per values.update by
default, 500 ms apart) so large exports stay under the Sheets write quota.
"""

from typing import Any

from adapters import sheets as sheets_api
from adapters.sheets import a1_range
from models import (
    CellValue,
    ErrorKind,
    InsertOptions,
    InsertResult,
    SheetFormatConfig,
    SheetInfo,
    WorkspaceError,
)
from services.base import WorkspaceService


def hex_to_color(value: str) -> dict[str, float]:
    """'#f3f3f3' -> Sheets API Color (0-1 floats)."""
    digits = value.lstrip("#")
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    if len(digits) != 6:
        raise WorkspaceError(ErrorKind.VALIDATION, f"Invalid colour: {value!r}")
    red, green, blue = (int(digits[i:i + 2], 16) / 255 for i in (0, 2, 4))
    return {"red": red, "green": green, "blue": blue}


def _grid(sheet: SheetInfo, rows: int | None = None, columns: int | None = None) -> dict[str, int]:
    grid = {"sheetId": sheet.sheet_id, "startRowIndex": 0, "startColumnIndex": 0}
    if rows is not None:
        grid["endRowIndex"] = rows
    if columns is not None:
        grid["endColumnIndex"] = columns
    return grid


def build_setup_requests(
    sheet: SheetInfo,
    header_count: int,
    config: SheetFormatConfig,
) -> list[dict[str, Any]]:
    """Whole-sheet text format, header styling and frozen panes."""
    requests: list[dict[str, Any]] = [{
        "repeatCell": {
            "range": _grid(sheet),
            "cell": {"userEnteredFormat": {
                "textFormat": {"fontSize": config.font_size, "fontFamily": config.font_family},
                "horizontalAlignment": config.horizontal_alignment,
                "verticalAlignment": config.vertical_alignment,
                "wrapStrategy": config.wrap_strategy,
            }},
            "fields": (
                "userEnteredFormat(textFormat.fontSize,textFormat.fontFamily,"
                "horizontalAlignment,verticalAlignment,wrapStrategy)"
            ),
        }
    }]

    if header_count:
        header_format: dict[str, Any] = {"textFormat": {"bold": config.header_bold}}
        fields = "userEnteredFormat.textFormat.bold"
        if config.header_background:
            header_format["backgroundColor"] = hex_to_color(config.header_background)
            fields = "userEnteredFormat(textFormat.bold,backgroundColor)"
        requests.append({
            "repeatCell": {
                "range": _grid(sheet, rows=1, columns=header_count),
                "cell": {"userEnteredFormat": header_format},
                "fields": fields,
            }
        })

    grid_properties: dict[str, int] = {}
    if config.freeze_rows > 0:
        grid_properties["frozenRowCount"] = config.freeze_rows
    if config.freeze_columns > 0:
        grid_properties["frozenColumnCount"] = config.freeze_columns
    if grid_properties:
        requests.append({
            "updateSheetProperties": {
                "properties": {"sheetId": sheet.sheet_id, "gridProperties": grid_properties},
                "fields": ",".join(f"gridProperties.{k}" for k in grid_properties),
            }
        })

    return requests


class SheetsService(WorkspaceService):
    config_key = "sheets"

    def _find_sheet(self, spreadsheet_id: str, sheet_name: str | None) -> SheetInfo | None:
        for sheet in sheets_api.get_spreadsheet_sheets(spreadsheet_id):
            if sheet.title == sheet_name:
                return sheet
        return None

    def _get_or_create(self, spreadsheet_id: str, sheet_name: str) -> SheetInfo:
        sheet = self._find_sheet(spreadsheet_id, sheet_name)
        if sheet is not None:
            return sheet
        self.logger.info(f"Creating sheet '{sheet_name}' in {spreadsheet_id}")
        sheet_id = sheets_api.add_sheet(spreadsheet_id, sheet_name)
        return SheetInfo(sheet_id=sheet_id, title=sheet_name)

    def get_or_create_sheet(self, spreadsheet_id: str, sheet_name: str) -> SheetInfo:
        """The tab named `sheet_name`, added if it doesn't exist."""
        return self.execute("get_or_create_sheet", self._get_or_create, spreadsheet_id, sheet_name)

    def get_sheet_data(self, spreadsheet_id: str, sheet_name: str | None = None) -> list[list[CellValue]]:
        """
        All values of a tab.

        Falls back to the first tab when `sheet_name` is missing or unknown.
        """

        def run() -> list[list[CellValue]]:
            sheets = sheets_api.get_spreadsheet_sheets(spreadsheet_id)
            if not sheets:
                raise WorkspaceError(
                    ErrorKind.NOT_FOUND,
                    f"Spreadsheet {spreadsheet_id} has no sheets",
                    details={"spreadsheet_id": spreadsheet_id},
                )
            sheet = next((s for s in sheets if s.title == sheet_name), sheets[0])
            return sheets_api.get_values(spreadsheet_id, a1_range(sheet.title))

        return self.execute("get_sheet_data", run)

    def setup_sheet(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        headers: list[str],
        config: SheetFormatConfig | None = None,
    ) -> SheetInfo:
        """
        Reset a tab: clear it, write `headers` to row 1 and apply formatting.
        """
        settings = config or SheetFormatConfig()

        def run() -> SheetInfo:
            sheet = self._get_or_create(spreadsheet_id, sheet_name)
            sheets_api.clear_values(spreadsheet_id, a1_range(sheet.title))
            if headers:
                sheets_api.update_values(
                    spreadsheet_id, a1_range(sheet.title, 1), [list(headers)]
                )
            sheets_api.batch_update(
                spreadsheet_id, build_setup_requests(sheet, len(headers), settings)
            )
            return sheet

        return self.execute("setup_sheet", run)

    def insert_data_into_sheet(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        data: list[list[CellValue]],
        headers: list[str] | None = None,
        options: InsertOptions | None = None,
    ) -> InsertResult:
        """
        Write `data` starting at options.start_row, one batch of rows per request.

        Headers go to row 1 when the header row is empty or
        preserve_headers is False. The grid is extended when the data would
        run past its last row.
        """
        opts = options or InsertOptions()

        def run() -> InsertResult:
            sheet = self._get_or_create(spreadsheet_id, sheet_name)

            if headers:
                existing = sheets_api.get_values(
                    spreadsheet_id, a1_range(sheet.title, 1, 1, 1, len(headers))
                )
                if not existing or not opts.preserve_headers:
                    sheets_api.update_values(
                        spreadsheet_id, a1_range(sheet.title, 1), [list(headers)]
                    )
                    sheets_api.batch_update(spreadsheet_id, [{
                        "repeatCell": {
                            "range": _grid(sheet, rows=1, columns=len(headers)),
                            "cell": {"userEnteredFormat": {"textFormat": {"bold": True}}},
                            "fields": "userEnteredFormat.textFormat.bold",
                        }
                    }])

            if opts.clear_existing:
                sheets_api.clear_values(
                    spreadsheet_id, a1_range(sheet.title, 2, 1, None, sheet.column_count)
                )

            if not data:
                return InsertResult(spreadsheet_id, sheet.title, rows_written=0, batches=0)

            column_count = len(data[0])
            needed_rows = opts.start_row + len(data) - 1
            if needed_rows > sheet.row_count:
                sheets_api.batch_update(spreadsheet_id, [{
                    "appendDimension": {
                        "sheetId": sheet.sheet_id,
                        "dimension": "ROWS",
                        "length": needed_rows - sheet.row_count,
                    }
                }])

            next_row = opts.start_row
            batches = 0

            def write(batch: list[list[CellValue]]) -> list[list[CellValue]]:
                nonlocal next_row, batches
                sheets_api.update_values(
                    spreadsheet_id, a1_range(sheet.title, next_row), batch
                )
                next_row += len(batch)
                batches += 1
                return batch

            written = self.runner.run(data, write)

            if opts.auto_resize:
                self._auto_resize(spreadsheet_id, sheet, column_count)

            return InsertResult(
                spreadsheet_id=spreadsheet_id,
                sheet_name=sheet.title,
                rows_written=len(written),
                batches=batches,
            )

        return self.execute("insert_data_into_sheet", run)

    def _auto_resize(self, spreadsheet_id: str, sheet: SheetInfo, column_count: int) -> None:
        # Cosmetic; the data is already written
        try:
            sheets_api.batch_update(spreadsheet_id, [{
                "autoResizeDimensions": {
                    "dimensions": {
                        "sheetId": sheet.sheet_id,
                        "dimension": "COLUMNS",
                        "startIndex": 0,
                        "endIndex": column_count,
                    }
                }
            }])
        except WorkspaceError as e:
            self.logger.warning(f"Auto-resize failed for '{sheet.title}': {e}")

    def clear_sheet(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        preserve_headers: bool = True,
    ) -> SheetInfo:
        """
        Clear a tab.

        With preserve_headers, only values from row 2 down go and formatting
        stays. Otherwise every cell loses both its value and its format.
        """

        def run() -> SheetInfo:
            sheet = self._get_or_create(spreadsheet_id, sheet_name)
            if preserve_headers:
                sheets_api.clear_values(
                    spreadsheet_id, a1_range(sheet.title, 2, 1, None, sheet.column_count)
                )
            else:
                sheets_api.batch_update(spreadsheet_id, [{
                    "updateCells": {
                        "range": {"sheetId": sheet.sheet_id},
                        "fields": "userEnteredValue,userEnteredFormat",
                    }
                }])
            return sheet

        return self.execute("clear_sheet", run)
