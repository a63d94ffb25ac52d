"""
Regex linter for Apps Script sources (.gs).

Checks the house conventions for scripts kept in the repository:
- a /** ... */ header with Title, Service, Purpose, Created, Updated,
  Author, Contact and License fields
- a "Script Summary:" comment block
- a doc comment closing on the line above every top-level function
- camelCase function and variable names
- const/let instead of var, lines of at most 100 characters, no trailing
  whitespace, even indentation

This is pattern matching, not parsing: it reads source line by line and
never evaluates JavaScript. --fix rewrites only the mechanical problems
(var and trailing whitespace).
"""

import re
from pathlib import Path
from typing import Callable, Iterator

from devtools.duplicates import SKIP_DIRS
from logging_config import logger
from models import LintIssue, LintReport

ERROR = "error"
WARNING = "warning"
INFO = "info"

MAX_LINE_LENGTH = 100

VALID_SERVICES = frozenset({
    "Gmail",
    "Google Drive",
    "Google Sheets",
    "Google Docs",
    "Google Calendar",
    "Google Tasks",
    "Google Photos",
    "Google Chat",
    "Utility/Multiple Services",
    "Google Apps Script",
})

HEADER_FIELDS = (
    "Title", "Service", "Purpose", "Created", "Updated", "Author", "Contact", "License",
)

HEADER = re.compile(r"/\*\*.*?\*/", re.DOTALL)
SUMMARY = re.compile(r"/\*.*?Script Summary:.*?\*/", re.DOTALL)
FUNCTION = re.compile(r"^\s*function\s+(\w+)\s*\([^)]*\)\s*\{", re.MULTILINE)
CONST = re.compile(r"\bconst\s+([A-Za-z_$][\w$]*)\s*=")
VAR = re.compile(r"\bvar(?=\s+[A-Za-z_$])")
CAMEL_CASE = re.compile(r"[a-z][a-zA-Z0-9]*")
DATE = re.compile(r"\d{4}-\d{2}-\d{2}")

Check = Callable[[str, list[str]], Iterator[tuple[int, str, str, str]]]


def _line_of(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


def check_header(text: str, lines: list[str]) -> Iterator[tuple[int, str, str, str]]:
    match = HEADER.search(text)
    if not match:
        yield 1, "header-required", ERROR, "Missing script header"
        return

    header = match.group(0)
    for name in HEADER_FIELDS:
        if f"{name}:" not in header:
            yield 1, f"header-{name.lower()}", ERROR, f"Missing {name}: in header"

    service = re.search(r"\* Service:\s*(.+)", header)
    if service and service.group(1).strip() not in VALID_SERVICES:
        yield 1, "header-service-invalid", ERROR, f"Invalid service: {service.group(1).strip()!r}"

    for name in ("Created", "Updated"):
        value = re.search(rf"\* {name}:\s*(.+)", header)
        if value and not DATE.fullmatch(value.group(1).strip()):
            yield 1, "header-date-format", ERROR, f"{name} date must be YYYY-MM-DD"


def check_summary(text: str, lines: list[str]) -> Iterator[tuple[int, str, str, str]]:
    if not SUMMARY.search(text):
        yield 1, "summary-required", ERROR, "Missing Script Summary section"


def check_functions(text: str, lines: list[str]) -> Iterator[tuple[int, str, str, str]]:
    for match in FUNCTION.finditer(text):
        name = match.group(1)
        line = _line_of(text, match.start(1))
        if line > 1 and "*/" not in lines[line - 2]:
            yield line, "function-docs-required", ERROR, f"Function '{name}' has no doc comment"
        if not CAMEL_CASE.fullmatch(name):
            yield line, "function-naming", WARNING, f"Function '{name}' should use camelCase"


def check_variables(text: str, lines: list[str]) -> Iterator[tuple[int, str, str, str]]:
    for match in CONST.finditer(text):
        name = match.group(1)
        # UPPER_CASE marks a constant
        if name == name.upper() or CAMEL_CASE.fullmatch(name):
            continue
        yield (
            _line_of(text, match.start(1)),
            "variable-naming",
            INFO,
            f"Variable '{name}' should use camelCase or UPPER_CASE",
        )


def check_formatting(text: str, lines: list[str]) -> Iterator[tuple[int, str, str, str]]:
    for number, line in enumerate(lines, 1):
        if VAR.search(line):
            yield number, "no-var", ERROR, "Use const or let instead of var"
        if len(line) > MAX_LINE_LENGTH:
            message = f"Line exceeds {MAX_LINE_LENGTH} characters ({len(line)})"
            yield number, "max-line-length", WARNING, message
        if line != line.rstrip():
            yield number, "no-trailing-spaces", WARNING, "Trailing whitespace"
        indent = len(line) - len(line.lstrip(" "))
        # " * text" continues a block comment
        if indent % 2 and not line.lstrip().startswith("*"):
            yield number, "indent", WARNING, "Indentation should be a multiple of 2 spaces"


CHECKS: tuple[Check, ...] = (
    check_header,
    check_summary,
    check_functions,
    check_variables,
    check_formatting,
)


def lint_source(text: str, path: str = "<string>") -> list[LintIssue]:
    """All issues in one script, ordered by line then rule."""
    lines = text.split("\n")
    issues = [
        LintIssue(path, line, rule, severity, message)
        for check in CHECKS
        for line, rule, severity, message in check(text, lines)
    ]
    return sorted(issues, key=lambda i: (i.line, i.rule))


def fix_source(text: str) -> str:
    """Replace var with let and strip trailing whitespace. Nothing else changes."""
    lines = [VAR.sub("let", line).rstrip() for line in text.split("\n")]
    return "\n".join(lines)


def lint_tree(root: Path, fix: bool = False) -> LintReport:
    """
    Lint every .gs file under `root`.

    With fix=True, files whose source changes under fix_source() are
    rewritten first and then linted in their fixed form.
    """
    report = LintReport(root=str(root), files_checked=0)

    for path in sorted(root.rglob("*.gs")):
        relative = path.relative_to(root)
        if not path.is_file() or SKIP_DIRS.intersection(relative.parts):
            continue

        text = path.read_text(encoding="utf-8", errors="replace")
        if fix:
            fixed = fix_source(text)
            if fixed != text:
                path.write_text(fixed, encoding="utf-8")
                report.fixed.append(relative.as_posix())
                text = fixed

        report.files_checked += 1
        report.issues += lint_source(text, relative.as_posix())

    logger.info(
        f"Linted {report.files_checked} scripts: {report.count(ERROR)} errors, "
        f"{report.count(WARNING)} warnings"
    )
    return report


def render_markdown(report: LintReport) -> str:
    """Human-readable report, issues grouped by file."""
    lines = [
        "# Apps Script Lint Report",
        "",
        f"Root: `{report.root}`",
        "",
        "## Summary",
        "",
        f"- Files checked: {report.files_checked}",
        f"- Errors: {report.count(ERROR)}",
        f"- Warnings: {report.count(WARNING)}",
        f"- Info: {report.count(INFO)}",
    ]
    if report.fixed:
        lines.append(f"- Files fixed: {len(report.fixed)}")
    lines.append("")

    if not report.issues:
        lines += ["No issues found.", ""]

    current = None
    for issue in report.issues:
        if issue.path != current:
            if current is not None:
                lines.append("")
            current = issue.path
            lines += [f"## `{current}`", ""]
        lines.append(f"- {issue.line}: {issue.severity} {issue.message} ({issue.rule})")

    return "\n".join(lines) + "\n"
