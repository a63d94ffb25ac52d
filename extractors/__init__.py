"""
Extractors — Pure functions for content extraction.

No logging, no Google API calls. Just transform input → output.
Easily testable with fixtures.
"""

from .docs import document_text, to_markdown, word_count, body_end_index
from .gmail import (
    extract_email,
    extract_name,
    format_sender_info,
    parse_recipients,
    get_headers,
    extract_plain_body,
    count_attachments,
)

__all__ = [
    "document_text",
    "to_markdown",
    "word_count",
    "body_end_index",
    "extract_email",
    "extract_name",
    "format_sender_info",
    "parse_recipients",
    "get_headers",
    "extract_plain_body",
    "count_attachments",
]
