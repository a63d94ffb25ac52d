"""
Type definitions for workspace-automation.

Dataclasses defining the contracts between layers:
- Adapters return raw API dicts; services build these records from them
- Extractors are pure functions over API payloads
- Workflows and the CLI serialise records with to_dict()

Errors are a tagged variant: the failure site picks an ErrorKind, nothing
downstream re-derives it from message text.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


# ============================================================================
# ERROR TYPES
# ============================================================================

class ErrorKind(Enum):
    """Categories of errors for consistent handling."""
    VALIDATION = "validation"            # Bad parameters or configuration
    AUTHENTICATION = "authentication"    # Token missing, expired or revoked
    AUTHORIZATION = "authorization"      # Authenticated but not permitted
    NOT_FOUND = "not_found"              # Resource doesn't exist
    NETWORK = "network"                  # Connection failed
    TIMEOUT = "timeout"                  # Request timed out
    QUOTA = "quota"                      # Hit API quota / rate limit
    DATA = "data"                        # Couldn't parse or process content
    SYSTEM = "system"                    # Upstream 5xx or internal failure
    UNKNOWN = "unknown"                  # Unexpected error


class ErrorSeverity(Enum):
    """How loudly an error should be reported."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class WorkspaceError(Exception):
    """
    Structured error for consistent handling across layers.

    Adapters raise these on API failures (converted by @with_retry).
    Services let them propagate; ErrorHandler logs and stores them.
    Surfaces (CLI, MCP server, workflows) format them with to_dict().
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
        severity: ErrorSeverity | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details or {}
        self.retryable = retryable
        self.severity = severity

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for CLI/MCP responses."""
        return {
            "error": True,
            "kind": self.kind.value,
            "message": self.message,
            "retryable": self.retryable,
            **self.details,
        }


@dataclass
class ErrorInfo:
    """Everything recorded about one handled error."""
    id: str
    timestamp: str
    message: str
    kind: ErrorKind
    severity: ErrorSeverity
    context: dict[str, Any] = field(default_factory=dict)
    stack: str = ""

    def summary(self) -> dict[str, Any]:
        """Compact form persisted in the property store."""
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "message": self.message,
            "type": self.kind.value,
            "severity": self.severity.value,
            "service": self.context.get("service", "unknown"),
            "function": self.context.get("function", "unknown"),
        }


# ============================================================================
# RATE LIMITING
# ============================================================================

@dataclass
class RateLimitState:
    """
    Fixed-window rate limit bookkeeping.

    Owned by exactly one limiter; last_reset is milliseconds on the
    limiter's clock.
    """
    requests_per_minute: int
    request_count: int = 0
    last_reset: float = 0.0


# ============================================================================
# SERVICE HEALTH
# ============================================================================

@dataclass
class HealthStatus:
    """Health snapshot of a service instance."""
    name: str
    initialized: bool
    uptime_ms: int
    status: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ============================================================================
# GMAIL TYPES
# ============================================================================

@dataclass
class SenderInfo:
    """Parsed form of a From header."""
    email: str
    name: str
    domain: str


@dataclass
class LabelStats:
    """Thread and message totals for a user label."""
    name: str
    thread_count: int
    email_count: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class EmailRecord:
    """
    Flattened message suitable for export to a sheet.

    Built by GmailService.parse_email_data() from a Gmail API message.
    """
    id: str
    thread_id: str
    date: datetime | None
    subject: str
    from_email: str
    from_name: str
    from_domain: str
    to: list[str] = field(default_factory=list)
    cc: list[str] = field(default_factory=list)
    bcc: list[str] = field(default_factory=list)
    has_attachments: bool = False
    attachment_count: int = 0
    labels: list[str] = field(default_factory=list)
    snippet: str = ""
    is_unread: bool = False
    is_starred: bool = False

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["date"] = self.date.isoformat() if self.date else None
        return result

    def to_row(self) -> list[Any]:
        """Row layout used by the email export workflow."""
        return [
            self.id,
            self.thread_id,
            self.date.isoformat() if self.date else "",
            self.subject,
            self.from_email,
            self.from_name,
            self.from_domain,
            self.has_attachments,
            ", ".join(self.labels),
            self.snippet,
        ]


# ============================================================================
# DRIVE TYPES
# ============================================================================

@dataclass
class DriveFileRecord:
    """Minimal file listing entry."""
    id: str
    name: str
    url: str
    mime_type: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ============================================================================
# DOCS TYPES
# ============================================================================

@dataclass
class DocMarkdownExport:
    """Result of a basic Doc → markdown conversion."""
    title: str
    content: str
    export_date: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class DocMetadata:
    """Document metadata joined from the Docs and Drive APIs."""
    id: str
    name: str
    url: str
    word_count: int
    last_modified: datetime | None = None
    owner: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result = asdict(self)
        result["last_modified"] = self.last_modified.isoformat() if self.last_modified else None
        return result


@dataclass
class DocComment:
    """A comment on a document, with reply count."""
    id: str
    content: str
    author_name: str
    author_email: str | None = None
    created_time: str | None = None
    resolved: bool = False
    quoted_text: str = ""
    reply_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class FormatOptions:
    """Body-wide formatting to apply to a document."""
    font_size: float | None = None
    font_family: str | None = None
    line_spacing: float | None = None  # Multiplier, e.g. 1.5

    def is_empty(self) -> bool:
        return self.font_size is None and self.font_family is None and self.line_spacing is None


@dataclass
class FormatResult:
    """Outcome of DocsService.format_document()."""
    doc_id: str
    options: FormatOptions
    requests_applied: int
    success: bool = True

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class ReplaceTextResult:
    """Outcome of DocsService.replace_text()."""
    doc_id: str
    search_text: str
    replace_text: str
    replacements: int
    success: bool = True

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ============================================================================
# SHEETS TYPES
# ============================================================================

# Cell values from Sheets API are strings, numbers, booleans, or None
CellValue = str | int | float | bool | None


@dataclass
class SheetInfo:
    """A tab within a spreadsheet."""
    sheet_id: int
    title: str
    row_count: int = 1000
    column_count: int = 26

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SheetFormatConfig:
    """
    Default sheet formatting.

    Mirrors the conventions of the original sheet utilities: Helvetica Neue 11,
    top-left aligned, clipped, bold grey header row, first row frozen.
    """
    font_size: int = 11
    font_family: str = "Helvetica Neue"
    horizontal_alignment: str = "LEFT"
    vertical_alignment: str = "TOP"
    wrap_strategy: str = "CLIP"
    header_bold: bool = True
    header_background: str | None = "#f3f3f3"
    freeze_rows: int = 1
    freeze_columns: int = 0


@dataclass
class InsertOptions:
    """Options for SheetsService.insert_data_into_sheet()."""
    start_row: int = 2
    preserve_headers: bool = True
    clear_existing: bool = False
    auto_resize: bool = True


@dataclass
class InsertResult:
    """Outcome of SheetsService.insert_data_into_sheet()."""
    spreadsheet_id: str
    sheet_name: str
    rows_written: int
    batches: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ============================================================================
# DEV TOOL TYPES
# ============================================================================

@dataclass
class ScriptFile:
    """A script collected by the duplicate detector."""
    path: str
    filename: str
    hash: str
    size: int
    source: str  # "gs" or "txt"


@dataclass
class DuplicateGroup:
    """Scripts sharing a content hash (or base name)."""
    key: str
    files: list[ScriptFile]

    @property
    def wasted_bytes(self) -> int:
        """Size of every copy after the first."""
        return sum(f.size for f in self.files[1:])


@dataclass
class DuplicateReport:
    """Full duplicate scan result."""
    root: str
    total_scripts: int
    exact: list[DuplicateGroup] = field(default_factory=list)
    by_name: list[DuplicateGroup] = field(default_factory=list)

    @property
    def wasted_bytes(self) -> int:
        return sum(g.wasted_bytes for g in self.exact)

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": self.root,
            "total_scripts": self.total_scripts,
            "duplicate_sets": len(self.exact),
            "name_groups": len(self.by_name),
            "wasted_bytes": self.wasted_bytes,
            "exact": [
                {"hash": g.key, "files": [f.path for f in g.files]}
                for g in self.exact
            ],
            "by_name": [
                {"name": g.key, "files": [f.path for f in g.files]}
                for g in self.by_name
            ],
        }


@dataclass
class LintIssue:
    """One finding from the .gs linter. Line numbers are 1-based."""
    path: str
    line: int
    rule: str
    severity: str  # "error", "warning" or "info"
    message: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class LintReport:
    """Linter result for a directory tree."""
    root: str
    files_checked: int
    issues: list[LintIssue] = field(default_factory=list)
    fixed: list[str] = field(default_factory=list)  # Paths rewritten by --fix

    def count(self, severity: str) -> int:
        return sum(1 for issue in self.issues if issue.severity == severity)

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": self.root,
            "files_checked": self.files_checked,
            "errors": self.count("error"),
            "warnings": self.count("warning"),
            "info": self.count("info"),
            "fixed": self.fixed,
            "issues": [issue.to_dict() for issue in self.issues],
        }


@dataclass
class FileRename:
    """A script rename proposed (or applied) by the filename standardizer."""
    old_name: str
    new_name: str
    location: str  # Directory relative to the scan root, "." for the root itself


@dataclass
class RenameReport:
    """Filename standardizer result."""
    root: str
    renamed: list[FileRename] = field(default_factory=list)
    skipped: list[FileRename] = field(default_factory=list)  # Target already existed
    dry_run: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": self.root,
            "dry_run": self.dry_run,
            "renamed": [asdict(r) for r in self.renamed],
            "skipped": [asdict(r) for r in self.skipped],
        }
