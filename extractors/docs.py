"""
Docs Extractor — Pure functions over Docs API document resources.

Plain-text flattening, the basic markdown conversion used by exports, and
word counting. No API calls.
"""

import re
from typing import Any

HEADING_PREFIX = "# "


def _text_from_elements(elements: list[dict[str, Any]]) -> str:
    """
    Recursively flatten structural elements to text.

    Paragraph text runs are concatenated as-is (each paragraph already ends
    in "\\n"). Table cells and tables of contents are walked in order.
    """
    parts: list[str] = []

    for element in elements:
        if "paragraph" in element:
            for run in element["paragraph"].get("elements", []):
                if "textRun" in run:
                    parts.append(run["textRun"].get("content", ""))

        elif "table" in element:
            for row in element["table"].get("tableRows", []):
                for cell in row.get("tableCells", []):
                    parts.append(_text_from_elements(cell.get("content", [])))

        elif "tableOfContents" in element:
            parts.append(_text_from_elements(element["tableOfContents"].get("content", [])))

    return "".join(parts)


def document_text(document: dict[str, Any]) -> str:
    """
    Body text of a document.

    The trailing newline the API always appends to the final paragraph is
    dropped.
    """
    content = document.get("body", {}).get("content", [])
    text = _text_from_elements(content)
    return text[:-1] if text.endswith("\n") else text


def body_end_index(document: dict[str, Any]) -> int:
    """
    endIndex of the last structural element (1 for an empty body).

    Ranges over the whole body run from 1 to body_end_index() - 1; the final
    newline cannot be styled or deleted.
    """
    content = document.get("body", {}).get("content", [])
    if not content:
        return 1
    return int(content[-1].get("endIndex", 1))


def _is_heading(line: str) -> bool:
    # Requires at least one cased character: "2024" or "---" stay as-is
    return line.isupper()


def to_markdown(text: str) -> str:
    """
    Basic text → markdown: every all-uppercase line becomes a level-1 heading.

    Paragraph breaks are preserved; nothing else is rewritten.

    Example:
        to_markdown("INTRODUCTION\\nSome text") -> "# INTRODUCTION\\nSome text"
    """
    return "\n".join(
        f"{HEADING_PREFIX}{line}" if _is_heading(line) else line
        for line in text.split("\n")
    )


def word_count(text: str | None) -> int:
    """Whitespace-delimited word count (0 for empty or blank text)."""
    if not text or not text.strip():
        return 0
    return len(re.split(r"\s+", text.strip()))
