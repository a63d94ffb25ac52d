"""
Reports — write-only markdown/JSON sink under docs/reports/.
"""

from .sink import (
    slugify,
    get_report_dir,
    write_markdown_report,
    write_json_report,
    list_reports,
)

__all__ = [
    "slugify",
    "get_report_dir",
    "write_markdown_report",
    "write_json_report",
    "list_reports",
]
