#!/usr/bin/env python3
"""
CLI interface for workspace-automation.

Usage:
    wsa gmail labels
    wsa gmail export "is:unread" --max-results 50
    wsa sheets insert <spreadsheet_id> "Data" < rows.json
    wsa workflow email-export <spreadsheet_id>
    wsa health

Every command prints JSON. A WorkspaceError prints its to_dict() and exits 1.
"""

import argparse
import dataclasses
import json
import sys
from pathlib import Path
from typing import Any, Callable, cast

from context import AppContext, create_context
from devtools.duplicates import find_duplicates, remove_duplicates, render_markdown
from devtools.filenames import render_markdown as render_rename_markdown
from devtools.filenames import standardize_filenames
from devtools.lint import lint_tree
from devtools.lint import render_markdown as render_lint_markdown
from logging_config import clear_recent_logs, configure_logging, recent_logs
from models import ErrorKind, FormatOptions, InsertOptions, SheetFormatConfig, WorkspaceError
from reports.sink import write_json_report, write_markdown_report
from services import DocsService, DriveService, GmailService, ServiceFactory, SheetsService
from workflows import (
    batch_email_export,
    create_drive_file_index,
    export_document_to_markdown,
    export_gmail_labels_to_sheet,
    service_health_check,
)

Command = Callable[[argparse.Namespace, ServiceFactory], Any]


def _jsonable(value: Any) -> Any:
    """Records -> dicts (via to_dict() where defined), recursively."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def _read_json_input(path: str | None) -> Any:
    text = Path(path).read_text(encoding="utf-8") if path else sys.stdin.read()
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise WorkspaceError(ErrorKind.DATA, f"Invalid JSON input: {e}") from e


# =============================================================================
# SERVICE COMMANDS
# =============================================================================


def cmd_gmail(args: argparse.Namespace, factory: ServiceFactory) -> Any:
    gmail = cast(GmailService, factory.create_service("gmail"))
    if args.action == "labels":
        return gmail.get_label_stats()
    if args.action == "unread":
        return gmail.get_unread_counts()
    if args.action == "export":
        return gmail.export_emails(args.query, args.max_results)
    return {"marked": gmail.mark_emails_read(args.thread_ids)}


def cmd_drive(args: argparse.Namespace, factory: ServiceFactory) -> Any:
    drive = cast(DriveService, factory.create_service("drive"))
    if args.action == "list":
        return drive.list_files(args.folder_id)
    if args.action == "search":
        return drive.search_files(args.query)
    content = args.content if args.content is not None else sys.stdin.read()
    return drive.create_text_file(args.name, content, args.folder)


def cmd_docs(args: argparse.Namespace, factory: ServiceFactory) -> Any:
    docs = cast(DocsService, factory.create_service("docs"))
    if args.action == "content":
        return {"doc_id": args.doc_id, "content": docs.get_doc_content(args.doc_id)}
    if args.action == "markdown":
        return docs.export_to_markdown(args.doc_id)
    if args.action == "metadata":
        return docs.get_doc_metadata(args.doc_id)
    if args.action == "comments":
        return docs.extract_comments(args.doc_id)
    if args.action == "format":
        options = FormatOptions(
            font_size=args.font_size,
            font_family=args.font_family,
            line_spacing=args.line_spacing,
        )
        return docs.format_document(args.doc_id, options)
    return docs.replace_text(args.doc_id, args.search, args.replace)


def cmd_sheets(args: argparse.Namespace, factory: ServiceFactory) -> Any:
    sheets = cast(SheetsService, factory.create_service("sheets"))
    if args.action == "get":
        return {"values": sheets.get_sheet_data(args.spreadsheet_id, args.sheet)}
    if args.action == "ensure":
        return sheets.get_or_create_sheet(args.spreadsheet_id, args.sheet)
    if args.action == "setup":
        config = SheetFormatConfig(freeze_rows=args.freeze_rows)
        return sheets.setup_sheet(args.spreadsheet_id, args.sheet, args.headers, config)
    if args.action == "clear":
        return sheets.clear_sheet(args.spreadsheet_id, args.sheet, preserve_headers=not args.all)

    rows = _read_json_input(args.input)
    if not isinstance(rows, list) or not all(isinstance(r, list) for r in rows):
        raise WorkspaceError(ErrorKind.VALIDATION, "Input must be a JSON array of rows")
    options = InsertOptions(
        start_row=args.start_row,
        clear_existing=args.clear_existing,
        auto_resize=not args.no_resize,
    )
    return sheets.insert_data_into_sheet(args.spreadsheet_id, args.sheet, rows, args.headers, options)


def cmd_workflow(args: argparse.Namespace, factory: ServiceFactory) -> Any:
    if args.action == "labels":
        return export_gmail_labels_to_sheet(factory, args.spreadsheet_id)
    if args.action == "file-index":
        return create_drive_file_index(factory, args.spreadsheet_id, args.query)
    if args.action == "doc-markdown":
        return export_document_to_markdown(factory, args.doc_id, args.folder)
    return batch_email_export(factory, args.spreadsheet_id, args.query, args.max_results)


# =============================================================================
# RUNTIME COMMANDS
# =============================================================================


def cmd_health(args: argparse.Namespace, factory: ServiceFactory) -> Any:
    return service_health_check(factory)


def cmd_errors(args: argparse.Namespace, factory: ServiceFactory) -> Any:
    handler = factory.context.error_handler
    if args.clear:
        handler.clear()
        return {"cleared": True}
    return handler.recent_errors(args.count)


def cmd_logs(args: argparse.Namespace, factory: ServiceFactory) -> Any:
    store = factory.context.store
    if args.clear:
        clear_recent_logs(store)
        return {"cleared": True}
    return recent_logs(store, args.count)


def cmd_flags(args: argparse.Namespace, factory: ServiceFactory) -> Any:
    return factory.context.flags.status_report()


def cmd_config(args: argparse.Namespace, factory: ServiceFactory) -> Any:
    config = factory.context.config
    if args.key:
        return {args.key: config.get(args.key)}
    return {"environment": config.environment, **config.as_dict()}


def _tree_root(value: str) -> Path:
    root = Path(value).resolve()
    if not root.is_dir():
        raise WorkspaceError(ErrorKind.NOT_FOUND, f"Not a directory: {root}")
    return root


def _write_reports(
    factory: ServiceFactory, name: str, markdown: str, data: dict[str, Any], root: Path
) -> list[str]:
    directory = factory.context.config.get("reports.directory")
    return [
        str(write_markdown_report(name, markdown, base_path=root, directory=directory)),
        str(write_json_report(name, data, base_path=root, directory=directory)),
    ]


def cmd_duplicates(args: argparse.Namespace, factory: ServiceFactory) -> Any:
    root = _tree_root(args.root)
    report = find_duplicates(root)
    removed = remove_duplicates(report, dry_run=not args.clean)
    result: dict[str, Any] = report.to_dict()
    result["removed"] = removed
    result["dry_run"] = not args.clean
    if args.report:
        result["reports"] = _write_reports(
            factory, "duplicate-scripts", render_markdown(report, removed), result, root
        )
    return result


def cmd_lint(args: argparse.Namespace, factory: ServiceFactory) -> Any:
    root = _tree_root(args.root)
    report = lint_tree(root, fix=args.fix)
    result: dict[str, Any] = report.to_dict()
    result["success"] = result["errors"] == 0
    if args.report:
        result["reports"] = _write_reports(
            factory, "gas-lint", render_lint_markdown(report), report.to_dict(), root
        )
    return result


def cmd_standardize_names(args: argparse.Namespace, factory: ServiceFactory) -> Any:
    root = _tree_root(args.root)
    report = standardize_filenames(root, dry_run=not args.apply)
    result: dict[str, Any] = report.to_dict()
    if args.report:
        result["reports"] = _write_reports(
            factory, "filename-standardization", render_rename_markdown(report), result, root
        )
    return result


# =============================================================================
# PARSER
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wsa",
        description="Google Workspace automation CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    wsa gmail labels
    wsa gmail mark-read 18f4a5b6c7d8e9f0 18f4a5b6c7d8e9f1
    wsa drive search "invoice"
    wsa docs format 1abc... --font-size 11 --line-spacing 1.15
    echo '[["a", 1], ["b", 2]]' | wsa sheets insert 1xyz... Data --headers Name Count
    wsa workflow doc-markdown 1abc...
    wsa errors --count 5
    wsa duplicates ./apps --report
    wsa lint ./apps --fix
    wsa standardize-names ./apps --apply
""",
    )
    parser.add_argument("--env", help="Environment (development, staging, production)")
    parser.add_argument("--debug", action="store_true", help="Verbose logging to stderr")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # gmail
    gmail_p = subparsers.add_parser("gmail", help="Gmail operations")
    gmail_sub = gmail_p.add_subparsers(dest="action", required=True)
    gmail_sub.add_parser("labels", help="Thread/email totals per user label")
    gmail_sub.add_parser("unread", help="Unread thread count per user label")
    export_p = gmail_sub.add_parser("export", help="Export messages matching a query")
    export_p.add_argument("query", nargs="?", default="", help="Gmail search query")
    export_p.add_argument("--max-results", type=int, default=100, help="Maximum threads (default: 100)")
    read_p = gmail_sub.add_parser("mark-read", help="Mark threads as read")
    read_p.add_argument("thread_ids", nargs="+", help="Thread IDs")
    gmail_p.set_defaults(func=cmd_gmail)

    # drive
    drive_p = subparsers.add_parser("drive", help="Drive operations")
    drive_sub = drive_p.add_subparsers(dest="action", required=True)
    list_p = drive_sub.add_parser("list", help="Files in a folder")
    list_p.add_argument("folder_id", help="Folder ID")
    search_p = drive_sub.add_parser("search", help="Files whose name contains text")
    search_p.add_argument("query", help="Text to look for in file names")
    create_p = drive_sub.add_parser("create", help="Create a text file")
    create_p.add_argument("name", help="File name")
    create_p.add_argument("--content", help="File content (or read from stdin)")
    create_p.add_argument("--folder", help="Destination folder ID")
    drive_p.set_defaults(func=cmd_drive)

    # docs
    docs_p = subparsers.add_parser("docs", help="Docs operations")
    docs_sub = docs_p.add_subparsers(dest="action", required=True)
    for action, help_text in (
        ("content", "Document body as plain text"),
        ("markdown", "Document body as basic markdown"),
        ("metadata", "Name, url, word count, owner"),
        ("comments", "Comments on the document"),
    ):
        p = docs_sub.add_parser(action, help=help_text)
        p.add_argument("doc_id", help="Document ID")
    format_p = docs_sub.add_parser("format", help="Apply body-wide formatting")
    format_p.add_argument("doc_id", help="Document ID")
    format_p.add_argument("--font-size", type=float, help="Font size in points")
    format_p.add_argument("--font-family", help="Font family")
    format_p.add_argument("--line-spacing", type=float, help="Line spacing multiplier (e.g. 1.5)")
    replace_p = docs_sub.add_parser("replace", help="Replace all occurrences of text")
    replace_p.add_argument("doc_id", help="Document ID")
    replace_p.add_argument("search", help="Text to find (case-sensitive)")
    replace_p.add_argument("replace", help="Replacement text")
    docs_p.set_defaults(func=cmd_docs)

    # sheets
    sheets_p = subparsers.add_parser("sheets", help="Sheets operations")
    sheets_sub = sheets_p.add_subparsers(dest="action", required=True)
    get_p = sheets_sub.add_parser("get", help="All values of a tab")
    get_p.add_argument("spreadsheet_id")
    get_p.add_argument("--sheet", help="Tab name (default: first tab)")
    ensure_p = sheets_sub.add_parser("ensure", help="Get or create a tab")
    ensure_p.add_argument("spreadsheet_id")
    ensure_p.add_argument("sheet")
    setup_p = sheets_sub.add_parser("setup", help="Reset a tab with headers and formatting")
    setup_p.add_argument("spreadsheet_id")
    setup_p.add_argument("sheet")
    setup_p.add_argument("headers", nargs="+")
    setup_p.add_argument("--freeze-rows", type=int, default=1, help="Frozen rows (default: 1)")
    insert_p = sheets_sub.add_parser("insert", help="Insert rows from a JSON array")
    insert_p.add_argument("spreadsheet_id")
    insert_p.add_argument("sheet")
    insert_p.add_argument("--input", help="JSON file (default: stdin)")
    insert_p.add_argument("--headers", nargs="+", help="Header row")
    insert_p.add_argument("--start-row", type=int, default=2, help="First data row (default: 2)")
    insert_p.add_argument("--clear-existing", action="store_true", help="Clear rows below the header first")
    insert_p.add_argument("--no-resize", action="store_true", help="Skip column auto-resize")
    clear_p = sheets_sub.add_parser("clear", help="Clear a tab's values")
    clear_p.add_argument("spreadsheet_id")
    clear_p.add_argument("sheet")
    clear_p.add_argument("--all", action="store_true", help="Clear the header row too")
    sheets_p.set_defaults(func=cmd_sheets)

    # workflow
    workflow_p = subparsers.add_parser("workflow", help="Multi-service automations")
    workflow_sub = workflow_p.add_subparsers(dest="action", required=True)
    labels_p = workflow_sub.add_parser("labels", help="Export Gmail label stats to a sheet")
    labels_p.add_argument("spreadsheet_id")
    index_p = workflow_sub.add_parser("file-index", help="Index Drive files into a sheet")
    index_p.add_argument("spreadsheet_id")
    index_p.add_argument("query", help="Text to look for in file names")
    md_p = workflow_sub.add_parser("doc-markdown", help="Save a Doc as a .md file in Drive")
    md_p.add_argument("doc_id")
    md_p.add_argument("--folder", help="Destination folder ID")
    email_p = workflow_sub.add_parser("email-export", help="Export messages to a sheet")
    email_p.add_argument("spreadsheet_id")
    email_p.add_argument("--query", default="is:unread", help="Gmail query (default: is:unread)")
    email_p.add_argument("--max-results", type=int, default=50, help="Maximum threads (default: 50)")
    workflow_p.set_defaults(func=cmd_workflow)

    # runtime
    subparsers.add_parser("health", help="Service health report").set_defaults(func=cmd_health)
    subparsers.add_parser("flags", help="Feature flag status").set_defaults(func=cmd_flags)

    config_p = subparsers.add_parser("config", help="Show configuration")
    config_p.add_argument("key", nargs="?", help="Dotted key, e.g. services.gmail.batch_size")
    config_p.set_defaults(func=cmd_config)

    errors_p = subparsers.add_parser("errors", help="Recently handled errors")
    errors_p.add_argument("--count", type=int, default=10)
    errors_p.add_argument("--clear", action="store_true")
    errors_p.set_defaults(func=cmd_errors)

    logs_p = subparsers.add_parser("logs", help="Recently persisted log entries")
    logs_p.add_argument("--count", type=int, default=20)
    logs_p.add_argument("--clear", action="store_true")
    logs_p.set_defaults(func=cmd_logs)

    dup_p = subparsers.add_parser("duplicates", help="Find duplicate .gs/.txt scripts")
    dup_p.add_argument("root", help="Directory to scan")
    dup_p.add_argument("--report", action="store_true", help="Also write markdown/JSON reports")
    dup_p.add_argument(
        "--clean", action="store_true", help="Delete exact copies (default: list them only)"
    )
    dup_p.set_defaults(func=cmd_duplicates)

    lint_p = subparsers.add_parser("lint", help="Lint .gs scripts against the house conventions")
    lint_p.add_argument("root", help="Directory to scan")
    lint_p.add_argument(
        "--fix", action="store_true", help="Replace var and strip trailing whitespace"
    )
    lint_p.add_argument("--report", action="store_true", help="Also write markdown/JSON reports")
    lint_p.set_defaults(func=cmd_lint)

    names_p = subparsers.add_parser(
        "standardize-names", help="Rename .gs scripts to verb-first kebab-case"
    )
    names_p.add_argument("root", help="Directory to scan")
    names_p.add_argument(
        "--apply", action="store_true", help="Rename files (default: list renames only)"
    )
    names_p.add_argument("--report", action="store_true", help="Also write markdown/JSON reports")
    names_p.set_defaults(func=cmd_standardize_names)

    return parser


def run(args: argparse.Namespace, context: AppContext) -> int:
    """Dispatch a parsed command; returns the process exit code."""
    factory = ServiceFactory(context)
    command: Command = args.func
    try:
        result = command(args, factory)
    except WorkspaceError as e:
        print(json.dumps(e.to_dict(), indent=2, default=str))
        return 1
    finally:
        factory.cleanup()

    print(json.dumps(_jsonable(result), indent=2, default=str))
    if isinstance(result, dict) and result.get("success") is False:
        return 1
    return 0


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    context = create_context(environment=args.env)
    configure_logging("DEBUG" if args.debug else context.config.get("logging.level", "info"))

    try:
        code = run(args, context)
    finally:
        context.close()
    sys.exit(code)


if __name__ == "__main__":
    main()
