"""
DocsService — document text, markdown export, metadata, comments and edits.
"""

from datetime import datetime, timezone
from typing import Any

from adapters import docs as docs_api
from adapters import drive as drive_api
from extractors.docs import body_end_index, document_text, to_markdown, word_count
from models import (
    DocComment,
    DocMarkdownExport,
    DocMetadata,
    FormatOptions,
    FormatResult,
    ReplaceTextResult,
)
from services.base import WorkspaceService


def _doc_url(doc_id: str) -> str:
    return f"https://docs.google.com/document/d/{doc_id}/edit"


def _parse_datetime(dt_str: str | None) -> datetime | None:
    """Parse ISO datetime from Drive API."""
    if not dt_str:
        return None
    try:
        # Drive returns RFC 3339 format
        return datetime.fromisoformat(dt_str.replace("Z", "+00:00"))
    except ValueError:
        return None


def _build_comment(comment: dict[str, Any]) -> DocComment:
    author = comment.get("author", {})
    return DocComment(
        id=comment.get("id", ""),
        content=comment.get("content", ""),
        author_name=author.get("displayName") or "Unknown",
        author_email=author.get("emailAddress"),
        created_time=comment.get("createdTime"),
        resolved=bool(comment.get("resolved", False)),
        quoted_text=comment.get("quotedFileContent", {}).get("value", ""),
        reply_count=len(comment.get("replies", [])),
    )


def build_format_requests(options: FormatOptions, end_index: int) -> list[dict[str, Any]]:
    """
    Docs API requests applying `options` to the whole body.

    Line spacing is a multiplier (1.5) here and a percentage (150) in the API.
    """
    if options.is_empty() or end_index - 1 <= 1:
        return []

    body_range = {"startIndex": 1, "endIndex": end_index - 1}
    requests: list[dict[str, Any]] = []

    text_style: dict[str, Any] = {}
    fields: list[str] = []
    if options.font_size is not None:
        text_style["fontSize"] = {"magnitude": options.font_size, "unit": "PT"}
        fields.append("fontSize")
    if options.font_family is not None:
        text_style["weightedFontFamily"] = {"fontFamily": options.font_family}
        fields.append("weightedFontFamily")
    if text_style:
        requests.append({
            "updateTextStyle": {
                "range": body_range,
                "textStyle": text_style,
                "fields": ",".join(fields),
            }
        })

    if options.line_spacing is not None:
        requests.append({
            "updateParagraphStyle": {
                "range": body_range,
                "paragraphStyle": {"lineSpacing": options.line_spacing * 100},
                "fields": "lineSpacing",
            }
        })

    return requests


class DocsService(WorkspaceService):
    config_key = "docs"

    def get_doc_content(self, doc_id: str) -> str:
        """Plain text of the document body."""
        return self.execute(
            "get_doc_content", lambda: document_text(docs_api.fetch_document(doc_id))
        )

    def export_to_markdown(self, doc_id: str) -> DocMarkdownExport:
        """Title plus body converted with the basic heading rule."""

        def run() -> DocMarkdownExport:
            document = docs_api.fetch_document(doc_id)
            return DocMarkdownExport(
                title=document.get("title", ""),
                content=to_markdown(document_text(document)),
                export_date=datetime.now(timezone.utc).isoformat(),
            )

        return self.execute("export_to_markdown", run)

    def get_doc_metadata(self, doc_id: str) -> DocMetadata:
        """Name, url and word count from Docs; modified time and owner from Drive."""

        def run() -> DocMetadata:
            document = docs_api.fetch_document(doc_id)
            file = drive_api.get_file_metadata(doc_id)
            owners = file.get("owners", [])
            return DocMetadata(
                id=doc_id,
                name=document.get("title", file.get("name", "")),
                url=file.get("webViewLink") or _doc_url(doc_id),
                word_count=word_count(document_text(document)),
                last_modified=_parse_datetime(file.get("modifiedTime")),
                owner=owners[0].get("emailAddress") if owners else None,
            )

        return self.execute("get_doc_metadata", run)

    def extract_comments(self, doc_id: str) -> list[DocComment]:
        """Comments on the document (deleted ones excluded)."""
        return self.execute(
            "extract_comments",
            lambda: [_build_comment(c) for c in drive_api.fetch_file_comments(doc_id)],
        )

    def format_document(self, doc_id: str, options: FormatOptions) -> FormatResult:
        """
        Apply font size, font family and line spacing to the whole body.

        Options left as None are not touched. Nothing is sent when every
        option is None.
        """

        def run() -> FormatResult:
            requests: list[dict[str, Any]] = []
            if not options.is_empty():
                document = docs_api.fetch_document(doc_id)
                requests = build_format_requests(options, body_end_index(document))
            if requests:
                docs_api.batch_update(doc_id, requests)
            return FormatResult(doc_id=doc_id, options=options, requests_applied=len(requests))

        return self.execute("format_document", run)

    def replace_text(self, doc_id: str, search_text: str, replace_text: str) -> ReplaceTextResult:
        """Replace every case-sensitive literal occurrence of `search_text`."""

        def run() -> ReplaceTextResult:
            response = docs_api.batch_update(doc_id, [{
                "replaceAllText": {
                    "containsText": {"text": search_text, "matchCase": True},
                    "replaceText": replace_text,
                }
            }])
            replies = response.get("replies") or [{}]
            changed = replies[0].get("replaceAllText", {}).get("occurrencesChanged", 0)
            return ReplaceTextResult(
                doc_id=doc_id,
                search_text=search_text,
                replace_text=replace_text,
                replacements=int(changed),
            )

        return self.execute("replace_text", run)
