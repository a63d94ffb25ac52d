"""
Developer tools — repository maintenance helpers for Apps Script sources.
"""

from .duplicates import collect_scripts, find_duplicates, remove_duplicates, render_markdown
from .filenames import standardize_filenames, standardize_name
from .lint import fix_source, lint_source, lint_tree

__all__ = [
    "collect_scripts",
    "find_duplicates",
    "remove_duplicates",
    "render_markdown",
    "standardize_filenames",
    "standardize_name",
    "fix_source",
    "lint_source",
    "lint_tree",
]
