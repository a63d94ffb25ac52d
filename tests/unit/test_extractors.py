"""
Tests for the pure extractors (no API calls, no mocks).
"""

import pytest

from extractors.docs import body_end_index, document_text, to_markdown, word_count
from extractors.gmail import (
    NO_DISPLAY_NAME,
    count_attachments,
    extract_email,
    extract_name,
    extract_plain_body,
    format_sender_info,
    get_headers,
    parse_recipients,
)
from tests.mock_utils import encode_body, make_document, make_message


# ============================================================================
# GMAIL
# ============================================================================

class TestExtractEmail:

    @pytest.mark.parametrize("value,expected", [
        ("Jane Doe <jane@example.com>", "jane@example.com"),
        ("jane@example.com", "jane@example.com"),
        ('"Doe, Jane" <jane.doe@sub.example.co.uk>', "jane.doe@sub.example.co.uk"),
        ("mailer-daemon", "mailer-daemon"),
        ("", ""),
        (None, ""),
    ])
    def test_extract_email(self, value: str | None, expected: str) -> None:
        assert extract_email(value) == expected


class TestExtractName:

    @pytest.mark.parametrize("value,expected", [
        ("Jane Doe <jane@example.com>", "Jane Doe"),
        ('"Doe, Jane" <jane@example.com>', "Doe, Jane"),
        ("<jane@example.com>", NO_DISPLAY_NAME),
        ("jane@example.com", "jane@example.com"),
        (None, NO_DISPLAY_NAME),
    ])
    def test_extract_name(self, value: str | None, expected: str) -> None:
        assert extract_name(value) == expected

    def test_sender_info(self) -> None:
        sender = format_sender_info("Jane Doe <jane@example.com>")
        assert (sender.email, sender.name, sender.domain) == ("jane@example.com", "Jane Doe", "example.com")

    def test_sender_info_without_address(self) -> None:
        assert format_sender_info("mailer-daemon").domain == ""


class TestParseRecipients:

    def test_mixed(self) -> None:
        assert parse_recipients("bob@example.com, Carol <carol@example.org>") == [
            "bob@example.com",
            "carol@example.org",
        ]

    def test_drops_entries_without_address(self) -> None:
        assert parse_recipients("undisclosed-recipients:;, bob@example.com") == ["bob@example.com"]

    @pytest.mark.parametrize("value", ["", None])
    def test_empty(self, value: str | None) -> None:
        assert parse_recipients(value) == []


class TestPayloadHelpers:

    def test_headers_first_wins(self) -> None:
        payload = {"headers": [
            {"name": "Received", "value": "first"},
            {"name": "Received", "value": "second"},
            {"name": "Subject", "value": "Hi"},
        ]}
        assert get_headers(payload) == {"Received": "first", "Subject": "Hi"}

    def test_plain_body_from_multipart(self) -> None:
        message = make_message(body="Line one\nLine two")
        assert extract_plain_body(message["payload"]) == "Line one\nLine two"

    def test_plain_body_single_part(self) -> None:
        payload = {"mimeType": "text/plain", "body": {"data": encode_body("just text")}}
        assert extract_plain_body(payload) == "just text"

    def test_plain_body_missing_padding(self) -> None:
        data = encode_body("abcd e").rstrip("=")
        assert extract_plain_body({"mimeType": "text/plain", "body": {"data": data}}) == "abcd e"

    def test_html_only_has_no_plain_body(self) -> None:
        payload = {
            "mimeType": "multipart/alternative",
            "parts": [{"mimeType": "text/html", "body": {"data": encode_body("<p>x</p>")}}],
        }
        assert extract_plain_body(payload) == ""

    @pytest.mark.parametrize("attachments", [0, 1, 3])
    def test_count_attachments(self, attachments: int) -> None:
        message = make_message(attachments=attachments)
        assert count_attachments(message["payload"]) == attachments

    def test_inline_part_without_filename_not_counted(self) -> None:
        payload = {"parts": [{"filename": "", "body": {"attachmentId": "a1"}}]}
        assert count_attachments(payload) == 0


# ============================================================================
# DOCS
# ============================================================================

class TestDocumentText:

    def test_paragraphs(self) -> None:
        document = make_document("INTRODUCTION", "Some text")
        assert document_text(document) == "INTRODUCTION\nSome text"

    def test_empty_body(self) -> None:
        assert document_text({"body": {"content": []}}) == ""
        assert document_text({}) == ""

    def test_table_cells(self) -> None:
        cell = lambda text: {"content": [{"paragraph": {"elements": [{"textRun": {"content": text}}]}}]}
        document = {"body": {"content": [
            {"table": {"tableRows": [{"tableCells": [cell("a\n"), cell("b\n")]}]}},
        ]}}
        assert document_text(document) == "a\nb"


class TestToMarkdown:

    def test_uppercase_lines_become_headings(self) -> None:
        assert to_markdown("INTRODUCTION\nSome text") == "# INTRODUCTION\nSome text"

    def test_uppercase_with_digits_and_punctuation(self) -> None:
        assert to_markdown("PHASE 2: ROLLOUT") == "# PHASE 2: ROLLOUT"

    @pytest.mark.parametrize("line", ["2024", "---", "", "Mixed Case"])
    def test_non_heading_lines_untouched(self, line: str) -> None:
        assert to_markdown(line) == line

    def test_paragraph_breaks_preserved(self) -> None:
        assert to_markdown("TITLE\n\nbody") == "# TITLE\n\nbody"


class TestWordCount:

    @pytest.mark.parametrize("text,expected", [
        ("one two  three\nfour", 4),
        ("  padded  ", 1),
        ("", 0),
        ("   \n\t", 0),
        (None, 0),
    ])
    def test_word_count(self, text: str | None, expected: int) -> None:
        assert word_count(text) == expected


class TestBodyEndIndex:

    def test_last_element(self) -> None:
        # section break ends at 1, then 6 + 10 characters
        document = make_document("Hello", "123456789")
        assert body_end_index(document) == 17

    def test_empty(self) -> None:
        assert body_end_index({}) == 1
