"""
Gmail Extractor — Pure functions over Gmail API message payloads.

Sender/recipient parsing, header lookup, plain-body decoding and attachment
counting. No API calls.
"""

import base64
import binascii
import re
from typing import Any

from models import SenderInfo

NO_DISPLAY_NAME = "No display name"

_ANGLE_ADDRESS = re.compile(r"<(.+?)>")
_BARE_ADDRESS = re.compile(r"[\w.-]+@[\w.-]+\.\w+")


# =============================================================================
# SENDERS AND RECIPIENTS
# =============================================================================


def extract_email(from_string: str | None) -> str:
    """
    Email address from a From/To style header value.

    "Jane Doe <jane@example.com>" -> "jane@example.com"
    "jane@example.com" -> "jane@example.com"
    Anything without a recognisable address is returned unchanged.
    """
    if not from_string:
        return ""

    match = _ANGLE_ADDRESS.search(from_string)
    if match:
        return match.group(1)

    match = _BARE_ADDRESS.search(from_string)
    return match.group(0) if match else from_string


def extract_name(from_string: str | None) -> str:
    """
    Display name from a header value.

    "Jane Doe <jane@example.com>" -> "Jane Doe"
    "<jane@example.com>" -> "No display name"
    A value without angle brackets is returned as-is.
    """
    if not from_string:
        return NO_DISPLAY_NAME

    match = _ANGLE_ADDRESS.search(from_string)
    if match:
        name = from_string.replace(match.group(0), "").strip().strip('"').strip()
        return name or NO_DISPLAY_NAME

    return from_string


def format_sender_info(from_string: str | None) -> SenderInfo:
    """Email, display name and domain of a sender."""
    email = extract_email(from_string)
    _, _, domain = email.partition("@")
    return SenderInfo(
        email=email,
        name=extract_name(from_string),
        domain=domain,
    )


def parse_recipients(recipient_string: str | None) -> list[str]:
    """
    Addresses from a comma-separated recipient header.

    Entries that don't yield an address containing "@" are dropped.
    """
    if not recipient_string:
        return []

    emails = (extract_email(part.strip()) for part in recipient_string.split(","))
    return [e for e in emails if e and "@" in e]


# =============================================================================
# PAYLOAD HELPERS
# =============================================================================


def get_headers(payload: dict[str, Any]) -> dict[str, str]:
    """Header name -> value (first occurrence wins)."""
    headers: dict[str, str] = {}
    for h in payload.get("headers", []):
        name = h.get("name")
        if name and name not in headers:
            headers[name] = h.get("value", "")
    return headers


def _decode_body(data: str) -> str:
    """Decode base64url body data, tolerating missing padding."""
    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        return ""


def extract_plain_body(payload: dict[str, Any]) -> str:
    """
    First text/plain body in the MIME tree, or "" if there is none.
    """
    if payload.get("mimeType") == "text/plain":
        data = payload.get("body", {}).get("data")
        if data:
            return _decode_body(data)

    for part in payload.get("parts", []):
        text = extract_plain_body(part)
        if text:
            return text

    return ""


def count_attachments(payload: dict[str, Any]) -> int:
    """Number of parts carrying an attachmentId and a filename."""
    count = 0

    def scan(part: dict[str, Any]) -> None:
        nonlocal count
        if part.get("body", {}).get("attachmentId") and part.get("filename"):
            count += 1
        for child in part.get("parts", []):
            scan(child)

    scan(payload)
    return count
