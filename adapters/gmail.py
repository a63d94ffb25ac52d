"""
Gmail adapter — Gmail API wrapper.

Lists labels and threads and fetches thread payloads. Returns raw API dicts;
GmailService turns them into EmailRecord / LabelStats.
"""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any

from logging_config import log_api_call, log_api_result
from retry import with_retry
from adapters.services import get_gmail_service


# Fields to request for threads: only what the export needs
THREAD_FIELDS = (
    "id,"
    "messages("
    "id,"
    "threadId,"
    "labelIds,"
    "snippet,"
    "payload(headers,mimeType,filename,body(attachmentId,size),parts),"
    "internalDate"
    ")"
)

# Gmail caps list page size at 500
MAX_PAGE_SIZE = 500


def parse_date(date_str: str | None, internal_date: str | None) -> datetime | None:
    """Parse date from header or internal timestamp."""
    if date_str:
        try:
            return parsedate_to_datetime(date_str)
        except (ValueError, TypeError):
            pass

    if internal_date:
        try:
            # internalDate is milliseconds since epoch
            return datetime.fromtimestamp(int(internal_date) / 1000, tz=timezone.utc)
        except (ValueError, TypeError):
            pass

    return None


@with_retry(max_attempts=3, delay_ms=1000)
def list_labels() -> list[dict[str, Any]]:
    """
    List all labels (system and user).

    Returns:
        Label resources with id, name and type
    """
    log_api_call("gmail", "labels.list")
    service = get_gmail_service()
    response = service.users().labels().list(userId="me").execute()
    labels = response.get("labels", [])
    log_api_result("gmail", "labels.list", len(labels))
    return labels


@with_retry(max_attempts=3, delay_ms=1000)
def get_label(label_id: str) -> dict[str, Any]:
    """
    Fetch one label with its counters.

    labels.list omits threadsTotal/messagesTotal/threadsUnread; only
    labels.get returns them.
    """
    log_api_call("gmail", "labels.get", label_id=label_id)
    service = get_gmail_service()
    return service.users().labels().get(userId="me", id=label_id).execute()


@with_retry(max_attempts=3, delay_ms=1000)
def list_thread_ids(query: str = "", max_results: int = 100) -> list[str]:
    """
    Thread ids matching a Gmail search query, newest first.

    Args:
        query: Gmail search syntax (empty matches everything)
        max_results: Upper bound on ids returned

    Returns:
        Up to max_results thread ids
    """
    log_api_call("gmail", "threads.list", q=query, max_results=max_results)
    service = get_gmail_service()

    thread_ids: list[str] = []
    page_token: str | None = None

    while len(thread_ids) < max_results:
        response = (
            service.users()
            .threads()
            .list(
                userId="me",
                q=query or None,
                maxResults=min(MAX_PAGE_SIZE, max_results - len(thread_ids)),
                pageToken=page_token,
            )
            .execute()
        )
        thread_ids.extend(t["id"] for t in response.get("threads", []))
        page_token = response.get("nextPageToken")
        if not page_token:
            break

    log_api_result("gmail", "threads.list", len(thread_ids))
    return thread_ids[:max_results]


@with_retry(max_attempts=3, delay_ms=1000)
def fetch_thread(thread_id: str) -> dict[str, Any]:
    """
    Fetch a thread with all its messages.

    Uses threads().get(format='full') to get all messages in one call.
    Full payload includes headers and attachment metadata.

    Args:
        thread_id: The thread ID (from URL or API)

    Returns:
        Thread resource restricted to THREAD_FIELDS
    """
    service = get_gmail_service()
    return (
        service.users()
        .threads()
        .get(userId="me", id=thread_id, format="full", fields=THREAD_FIELDS)
        .execute()
    )


@with_retry(max_attempts=3, delay_ms=1000)
def mark_thread_read(thread_id: str) -> dict[str, Any]:
    """Remove the UNREAD label from every message in a thread."""
    log_api_call("gmail", "threads.modify", thread_id=thread_id)
    service = get_gmail_service()
    return (
        service.users()
        .threads()
        .modify(userId="me", id=thread_id, body={"removeLabelIds": ["UNREAD"]})
        .execute()
    )
