#!/usr/bin/env python3
"""
OAuth Authentication for workspace-automation.

Runs the installed-app flow against credentials.json and writes token.json,
which adapters/services.py loads on every run.

Usage:
    python -m auth                    # Auto mode (opens browser)
    python -m auth --manual           # Manual mode (copy-paste URL)
    python -m auth --code CODE        # Finish a manual flow non-interactively

Prerequisites:
    - credentials.json (OAuth client, "Desktop app") from the GCP Console
"""

import os
import sys
import argparse
from pathlib import Path

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from oauth_config import (
    TOKEN_FILE,
    SCOPES,
    OAUTH_PORT,
    CREDENTIALS_FILE,
)

# Redirect used by manual mode; the browser lands on a dead localhost page
# and the user pastes the URL (or just the code) back.
MANUAL_REDIRECT_URI = f"http://localhost:{OAUTH_PORT}/"


def _is_interactive() -> bool:
    """Check if we're running in an interactive terminal."""
    return sys.stdin.isatty() and bool(
        os.environ.get("DISPLAY", os.environ.get("WAYLAND_DISPLAY", ""))
    )


def _extract_code(code_or_url: str) -> str:
    """Accept either a bare code or the full redirect URL."""
    if "code=" not in code_or_url:
        return code_or_url.strip()
    query = code_or_url.split("?", 1)[-1]
    for part in query.split("&"):
        key, _, value = part.partition("=")
        if key == "code":
            return value
    return code_or_url.strip()


def save_token(creds: Credentials, token_path: Path = TOKEN_FILE) -> None:
    """Write credentials as authorized-user JSON."""
    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(creds.to_json(), encoding="utf-8")


def authenticate(
    credentials_path: Path = CREDENTIALS_FILE,
    token_path: Path = TOKEN_FILE,
    manual_mode: bool = False,
    code: str | None = None,
    port: int = OAUTH_PORT,
) -> Credentials:
    """
    Run the OAuth flow and persist the resulting token.

    Args:
        credentials_path: OAuth client secrets file
        token_path: Where to write token.json
        manual_mode: Print the consent URL instead of opening a browser
        code: Authorization code or redirect URL (skips the prompt)
        port: Local callback port for browser mode

    Returns:
        The authorized credentials
    """
    flow = InstalledAppFlow.from_client_secrets_file(str(credentials_path), SCOPES)

    if manual_mode:
        flow.redirect_uri = MANUAL_REDIRECT_URI
        if code is None:
            auth_url, _ = flow.authorization_url(access_type="offline", prompt="consent")
            print("Open this URL in a browser and approve access:")
            print()
            print(f"  {auth_url}")
            print()
            code = input("Paste the redirect URL (or code): ")
        flow.fetch_token(code=_extract_code(code))
        creds = flow.credentials
    else:
        creds = flow.run_local_server(port=port, access_type="offline", prompt="consent")

    save_token(creds, token_path)
    return creds


def main() -> None:
    parser = argparse.ArgumentParser(
        description="OAuth authentication for workspace-automation"
    )
    parser.add_argument(
        '--manual',
        action='store_true',
        help='Manual mode: copy-paste OAuth flow (for remote/SSH sessions)'
    )
    parser.add_argument(
        '--code',
        type=str,
        help='Authorization code or redirect URL (non-interactive)'
    )
    parser.add_argument(
        '--credentials',
        type=Path,
        default=CREDENTIALS_FILE,
        help=f'OAuth client secrets file (default: {CREDENTIALS_FILE})'
    )

    args = parser.parse_args()

    if not args.credentials.exists():
        print(f"Error: {args.credentials} not found")
        print("Download an OAuth client (Desktop app) from the GCP Console.")
        sys.exit(1)

    # Default to manual mode if no display available
    manual = args.manual or bool(args.code)
    if not manual and not _is_interactive():
        print("No display detected — using manual mode.")
        manual = True

    try:
        authenticate(
            credentials_path=args.credentials,
            token_path=TOKEN_FILE,
            manual_mode=manual,
            code=args.code,
            port=OAUTH_PORT,
        )
        print()
        print(f"Authentication complete. {TOKEN_FILE} created.")
    except KeyboardInterrupt:
        print("\n\nAuthentication cancelled")
        sys.exit(1)
    except Exception as e:
        print(f"\nAuthentication failed: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
