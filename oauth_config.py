"""
OAuth Configuration - Single Source of Truth

All OAuth parameters defined here. Do not duplicate elsewhere.
"""

import os
from pathlib import Path

# Package root (where this file lives)
_PACKAGE_ROOT = Path(__file__).parent

# OAuth scopes for workspace-automation
SCOPES = [
    # Gmail: read labels/threads, mark threads read
    'https://www.googleapis.com/auth/gmail.modify',

    # Drive: list folders, search, create files, read comments
    'https://www.googleapis.com/auth/drive',

    # Docs + Sheets: read and edit
    'https://www.googleapis.com/auth/documents',
    'https://www.googleapis.com/auth/spreadsheets',
]

# OAuth server port (localhost callback receiver)
OAUTH_PORT = 3000

# Client secrets downloaded from the GCP Console
CREDENTIALS_FILE = Path(
    os.environ.get("WSA_CREDENTIALS_FILE", _PACKAGE_ROOT / 'credentials.json')
)

# Local token storage (user's OAuth tokens, not shared)
# Absolute path so it works regardless of cwd when MCP runs
TOKEN_FILE = Path(os.environ.get("WSA_TOKEN_FILE", _PACKAGE_ROOT / 'token.json'))
