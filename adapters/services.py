"""
Google API client construction for the four Workspace APIs.

Every adapter gets its Resource from here. Credentials come from token.json
(written by `python -m auth`) and are refreshed in place when expired.
Clients are built once per process; clear_service_cache() drops them, which
retry.py does on a 401 so the next attempt re-reads the token.
"""

from functools import lru_cache

import google_auth_httplib2
import httplib2
from google.auth.exceptions import RefreshError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import Resource, build

from models import ErrorKind, WorkspaceError
from oauth_config import SCOPES, TOKEN_FILE

__all__ = [
    "API_VERSIONS",
    "get_gmail_service",
    "get_drive_service",
    "get_docs_service",
    "get_sheets_service",
    "clear_service_cache",
]

# Socket timeout (seconds) for token refresh and every API request
API_TIMEOUT = 60

API_VERSIONS = {
    "gmail": "v1",
    "drive": "v3",
    "docs": "v1",
    "sheets": "v4",
}


def _auth_error(reason: str) -> WorkspaceError:
    return WorkspaceError(ErrorKind.AUTHENTICATION, f"{reason}. Run: python -m auth")


def _get_credentials() -> Credentials:
    """token.json credentials, refreshed (and re-saved) if expired."""
    if not TOKEN_FILE.exists():
        raise _auth_error(f"{TOKEN_FILE} not found")

    creds = Credentials.from_authorized_user_file(str(TOKEN_FILE), SCOPES)
    if creds.valid:
        return creds
    if not (creds.expired and creds.refresh_token):
        raise _auth_error(f"{TOKEN_FILE} is invalid")

    try:
        creds.refresh(google_auth_httplib2.Request(httplib2.Http(timeout=API_TIMEOUT)))
    except RefreshError as e:
        raise _auth_error(f"Token refresh failed ({e})") from e

    TOKEN_FILE.write_text(creds.to_json(), encoding="utf-8")
    return creds


@lru_cache(maxsize=None)
def _service(api: str) -> Resource:
    http = google_auth_httplib2.AuthorizedHttp(
        _get_credentials(), http=httplib2.Http(timeout=API_TIMEOUT)
    )
    return build(api, API_VERSIONS[api], http=http)


def get_gmail_service() -> Resource:
    return _service("gmail")


def get_drive_service() -> Resource:
    return _service("drive")


def get_docs_service() -> Resource:
    return _service("docs")


def get_sheets_service() -> Resource:
    return _service("sheets")


def clear_service_cache() -> None:
    """Forget built clients (after re-auth or a 401)."""
    _service.cache_clear()
