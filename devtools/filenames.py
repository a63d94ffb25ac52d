"""
Filename standardizer for Apps Script sources.

Script names converge on lowercase kebab-case, verb first:

    "Gmail Label Exporter.gs"  -> "export-gmail-label.gs"
    "sheetFormatter.gs"        -> "format-sheet.gs"
    "v2-Code.gs"               -> "process-main.gs"

A "gmail-" style prefix is dropped when the script already sits in a
folder of that name. Renames never overwrite: a clash is reported as
skipped and the file keeps its name.
"""

import re
from pathlib import Path

from devtools.duplicates import SKIP_DIRS
from logging_config import logger
from models import FileRename, RenameReport

SERVICE_FOLDERS = ("gmail", "drive", "sheets", "calendar", "tasks", "docs", "chat", "photos")

VERBS = frozenset({
    "export", "import", "create", "update", "delete", "process", "analyze",
    "format", "index", "generate", "send", "fetch", "extract", "convert",
    "sync", "merge", "lint", "style", "sort", "dedupe", "list", "get",
    "set", "check", "validate", "search", "find",
})

# Agent nouns that name a verb: "label-exporter" -> "export-label"
AGENT_NOUNS = {
    "exporter": "export",
    "importer": "import",
    "creator": "create",
    "updater": "update",
    "processor": "process",
    "analyzer": "analyze",
    "formatter": "format",
    "indexer": "index",
    "generator": "generate",
    "sender": "send",
    "fetcher": "fetch",
    "extractor": "extract",
    "converter": "convert",
    "merger": "merge",
    "linter": "lint",
    "styler": "style",
    "sorter": "sort",
    "checker": "check",
}

SPECIAL_NAMES = {
    "code": "process-main",
    "main-code": "process-main",
    "folder-tree": "generate-folder-tree",
    "event-assistant": "assist-events",
}

SYMBOLS = (
    (r"\s+", "-"),
    (r"_", "-"),
    (r"[()?]", ""),
    (r"&", "and"),
    (r"@", "at"),
    (r"\+", "plus"),
    (r"=", "equals"),
    (r"[,.]+", "-"),
    (r"-+", "-"),
)


def _verb_first(name: str) -> str:
    if name in SPECIAL_NAMES:
        return SPECIAL_NAMES[name]

    parts = name.split("-")
    if len(parts) < 2 or parts[0] in VERBS:
        return name

    if parts[-1] in AGENT_NOUNS:
        return "-".join([AGENT_NOUNS[parts[-1]], *parts[:-1]])

    for i, part in enumerate(parts[1:], 1):
        if part in VERBS:
            return "-".join([part, *parts[:i], *parts[i + 1:]])

    return name


def standardize_name(filename: str, folder: str | None = None) -> str:
    """
    Standard form of one script filename.

    Args:
        filename: Current name, with or without the .gs suffix
        folder: Name of the containing directory, used to drop a
            redundant service prefix

    Returns:
        New name ending in .gs
    """
    name = filename[:-3] if filename.endswith(".gs") else filename
    name = re.sub(r"^v\d+[.-]", "", name, flags=re.IGNORECASE)
    name = re.sub(r"([a-z])([A-Z])", r"\1-\2", name)

    for pattern, replacement in SYMBOLS:
        name = re.sub(pattern, replacement, name)
    name = name.strip("-").lower()

    folder = (folder or "").lower()
    if folder in SERVICE_FOLDERS and name.startswith(folder + "-"):
        name = name[len(folder) + 1:]

    return f"{_verb_first(name) or 'untitled'}.gs"


def standardize_filenames(root: Path, dry_run: bool = True) -> RenameReport:
    """
    Rename every .gs file under `root` to its standard name.

    With dry_run (the default) nothing is renamed; the report lists what
    would change.
    """
    report = RenameReport(root=str(root), dry_run=dry_run)

    for path in sorted(root.rglob("*.gs")):
        relative = path.relative_to(root)
        if not path.is_file() or SKIP_DIRS.intersection(relative.parts):
            continue

        new_name = standardize_name(path.name, path.parent.name)
        if new_name == path.name:
            continue

        rename = FileRename(path.name, new_name, relative.parent.as_posix())
        target = path.with_name(new_name)
        # Case-only renames point at the same file on case-insensitive filesystems
        if target.exists() and not target.samefile(path):
            logger.warning(f"Cannot rename {relative} to {new_name}: target exists")
            report.skipped.append(rename)
            continue

        if not dry_run:
            path.rename(target)
        logger.info(f"{'Would rename' if dry_run else 'Renamed'} {relative} -> {new_name}")
        report.renamed.append(rename)

    return report


def render_markdown(report: RenameReport) -> str:
    """Rename table for the report sink."""
    lines = [
        "# Filename Standardization Report",
        "",
        f"Root: `{report.root}`",
        "",
        "## Summary",
        "",
        f"- Files {'to rename' if report.dry_run else 'renamed'}: {len(report.renamed)}",
        f"- Skipped (target exists): {len(report.skipped)}",
        "",
    ]

    for title, renames in (("Renamed Files", report.renamed), ("Skipped", report.skipped)):
        if not renames:
            continue
        lines += [
            f"## {title}",
            "",
            "| Old Name | New Name | Location |",
            "|----------|----------|----------|",
        ]
        lines += [f"| {r.old_name} | {r.new_name} | {r.location} |" for r in renames]
        lines.append("")

    if not report.renamed and not report.skipped:
        lines += ["All filenames already standard.", ""]

    return "\n".join(lines)
