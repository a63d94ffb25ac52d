"""
Report sink — markdown and JSON reports under docs/reports/.

Write-only: nothing in the toolkit reads these back. Report names are
slugified; a timestamp suffix keeps successive runs apart when asked for.
"""

import json
import re
import unicodedata
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

DEFAULT_REPORT_DIR = "docs/reports"


def slugify(text: str, max_length: int = 50) -> str:
    """
    Convert text to a filesystem-safe slug.

    Examples:
        "Duplicate Scripts" -> "duplicate-scripts"
        "Q4 Planning Notes (Draft)" -> "q4-planning-notes-draft"
        "Über Cool Report!!!" -> "uber-cool-report"
    """
    # Normalize unicode (é -> e, etc)
    text = unicodedata.normalize("NFKD", text)
    text = text.encode("ascii", "ignore").decode("ascii").lower()

    text = re.sub(r"[^a-z0-9]+", "-", text).strip("-")

    if len(text) > max_length:
        # Try to break at a hyphen
        text = text[:max_length].rsplit("-", 1)[0]

    return text or "untitled"


def get_report_dir(
    base_path: Path | None = None,
    directory: str = DEFAULT_REPORT_DIR,
) -> Path:
    """
    Report directory under `base_path` (cwd by default), created if missing.
    """
    folder = (base_path or Path.cwd()) / directory
    folder.mkdir(parents=True, exist_ok=True)
    return folder


def _report_path(
    name: str,
    suffix: str,
    base_path: Path | None,
    directory: str,
    timestamped: bool,
) -> Path:
    stem = slugify(name)
    if timestamped:
        stem += "-" + datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return get_report_dir(base_path, directory) / f"{stem}{suffix}"


def write_markdown_report(
    name: str,
    content: str,
    base_path: Path | None = None,
    directory: str = DEFAULT_REPORT_DIR,
    timestamped: bool = False,
) -> Path:
    """
    Write a markdown report.

    Args:
        name: Report name (slugified into the filename)
        content: Markdown body
        base_path: Project root (defaults to cwd)
        directory: Report directory relative to base_path
        timestamped: Append a UTC timestamp to the filename

    Returns:
        Path to the written file
    """
    path = _report_path(name, ".md", base_path, directory, timestamped)
    path.write_text(content, encoding="utf-8")
    return path


def write_json_report(
    name: str,
    data: Any,
    base_path: Path | None = None,
    directory: str = DEFAULT_REPORT_DIR,
    timestamped: bool = False,
) -> Path:
    """Write `data` as indented JSON. Same naming rules as write_markdown_report()."""
    path = _report_path(name, ".json", base_path, directory, timestamped)
    path.write_text(json.dumps(data, indent=2, default=str), encoding="utf-8")
    return path


def list_reports(
    base_path: Path | None = None,
    directory: str = DEFAULT_REPORT_DIR,
) -> list[Path]:
    """Report files (.md and .json), newest first."""
    folder = (base_path or Path.cwd()) / directory
    if not folder.exists():
        return []
    reports = [p for p in folder.iterdir() if p.suffix in (".md", ".json") and p.is_file()]
    return sorted(reports, key=lambda p: p.stat().st_mtime, reverse=True)
