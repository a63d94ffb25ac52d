"""
Docs adapter — Google Docs API wrapper.

Fetches document bodies and applies batchUpdate requests.
"""

from typing import Any, cast

from logging_config import log_api_call
from retry import with_retry
from adapters.services import get_docs_service


# Legacy single-body format: the first tab's content under `body`.
# NOTE: Cannot mix these with tabs() in one request
DOCUMENT_FIELDS = "documentId,title,body,revisionId"


@with_retry(max_attempts=3, delay_ms=1000)
def fetch_document(document_id: str) -> dict[str, Any]:
    """
    Fetch a document's title and body.

    Args:
        document_id: The document ID (from URL or API)

    Returns:
        Document resource with documentId, title, body, revisionId

    Raises:
        WorkspaceError: On API failure (converted by @with_retry)
    """
    log_api_call("docs", "documents.get", document_id=document_id)
    service = get_docs_service()
    result = (
        service.documents()
        .get(documentId=document_id, fields=DOCUMENT_FIELDS)
        .execute()
    )
    return cast(dict[str, Any], result)


@with_retry(max_attempts=3, delay_ms=1000)
def batch_update(document_id: str, requests: list[dict[str, Any]]) -> dict[str, Any]:
    """
    Apply a list of Docs API requests atomically.

    Returns:
        The batchUpdate response (one reply per request)
    """
    log_api_call("docs", "documents.batchUpdate", document_id=document_id, requests=len(requests))
    service = get_docs_service()
    result = (
        service.documents()
        .batchUpdate(documentId=document_id, body={"requests": requests})
        .execute()
    )
    return cast(dict[str, Any], result)
