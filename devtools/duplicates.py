"""
Duplicate script detector.

Walks a directory tree for Apps Script sources (.gs) and exported copies
(.txt), then reports:
- exact duplicates: files with identical content (MD5)
- name groups: files sharing a base name, case-insensitively, whatever
  their content

Wasted bytes count every copy in an exact-duplicate set after the first.
remove_duplicates() deletes those copies, keeping one file per set.
"""

import hashlib
import re
from collections import defaultdict
from pathlib import Path

from logging_config import logger
from models import DuplicateGroup, DuplicateReport, ScriptFile

SCRIPT_SUFFIXES = (".gs", ".txt")

# Directories never worth scanning
SKIP_DIRS = frozenset({".git", "node_modules", "__pycache__", ".venv"})

# "Code-v2.gs", "Utils-v10.txt": numbered copies lose to the unversioned name
VERSIONED = re.compile(r"-v\d+\.(gs|txt)$", re.IGNORECASE)


def collect_scripts(root: Path) -> list[ScriptFile]:
    """Every .gs/.txt file under `root`, in sorted path order."""
    scripts: list[ScriptFile] = []

    for path in sorted(root.rglob("*")):
        if path.suffix not in SCRIPT_SUFFIXES or not path.is_file():
            continue
        if SKIP_DIRS.intersection(path.relative_to(root).parts):
            continue

        data = path.read_bytes()
        scripts.append(ScriptFile(
            path=path.relative_to(root).as_posix(),
            filename=path.name,
            hash=hashlib.md5(data).hexdigest(),
            size=len(data),
            source=path.suffix.lstrip("."),
        ))

    return scripts


def _base_name(filename: str) -> str:
    stem = filename
    for suffix in SCRIPT_SUFFIXES:
        if stem.endswith(suffix):
            stem = stem[: -len(suffix)]
            break
    return stem.lower()


def _groups(scripts: list[ScriptFile], key: str) -> list[DuplicateGroup]:
    buckets: dict[str, list[ScriptFile]] = defaultdict(list)
    for script in scripts:
        buckets[script.hash if key == "hash" else _base_name(script.filename)].append(script)
    return [DuplicateGroup(k, files) for k, files in buckets.items() if len(files) > 1]


def find_duplicates(root: Path) -> DuplicateReport:
    """Scan `root` and group duplicates."""
    scripts = collect_scripts(root)
    logger.info(f"Found {len(scripts)} scripts under {root}")
    return DuplicateReport(
        root=str(root),
        total_scripts=len(scripts),
        exact=_groups(scripts, "hash"),
        by_name=_groups(scripts, "name"),
    )


def _keep_order(script: ScriptFile) -> tuple[bool, int, str]:
    return (bool(VERSIONED.search(script.filename)), len(script.path), script.path)


def remove_duplicates(report: DuplicateReport, dry_run: bool = True) -> list[str]:
    """
    Delete every exact copy but one, per duplicate set.

    The kept file is the first unversioned name, then the shortest path.
    With dry_run (the default) nothing is deleted.

    Returns:
        Relative paths removed (or that would be removed), in set order
    """
    root = Path(report.root)
    removed: list[str] = []

    for group in report.exact:
        keep, *rest = sorted(group.files, key=_keep_order)
        for script in rest:
            if not dry_run:
                (root / script.path).unlink(missing_ok=True)
            verb = "Would remove" if dry_run else "Removed"
            logger.info(f"{verb} {script.path} (kept {keep.path})")
            removed.append(script.path)

    return removed


def render_markdown(report: DuplicateReport, removed: list[str] | None = None) -> str:
    """Human-readable report. `removed` comes from remove_duplicates()."""
    lines = [
        "# Duplicate Script Report",
        "",
        f"Root: `{report.root}`",
        "",
        "## Summary",
        "",
        f"- Total scripts: {report.total_scripts}",
        f"- Duplicate sets: {len(report.exact)}",
        f"- Space wasted: {report.wasted_bytes / 1024:.1f} KB",
        "",
        "## Exact duplicates",
        "",
    ]

    if not report.exact:
        lines += ["None found.", ""]
    for group in report.exact:
        lines.append(f"### Hash `{group.key[:8]}`")
        lines.append("")
        lines += [f"- `{f.path}` ({f.source}, {f.size} bytes)" for f in group.files]
        lines.append("")

    lines += ["## Name-based duplicates", ""]
    if not report.by_name:
        lines += ["None found.", ""]
    for group in report.by_name:
        lines.append(f"### {group.key}")
        lines.append("")
        lines += [f"- `{f.path}` ({f.source})" for f in group.files]
        lines.append("")

    if removed is not None:
        lines += ["## Removed", ""]
        lines += [f"- `{path}`" for path in removed] or ["Nothing to remove."]
        lines.append("")

    return "\n".join(lines)
