"""
Shared pytest fixtures for workspace-automation tests.

Provides an in-memory AppContext, a fake millisecond clock for the rate
limiters, and the adapter mocking infrastructure for testing without
hitting real Google APIs. Payload builders live in mock_utils.py.
"""

from typing import Generator
from unittest.mock import MagicMock, patch

import pytest

from context import AppContext, create_context
from properties import InMemoryPropertyStore
from services.factory import ServiceFactory
from tests.mock_utils import FakeClock


# ============================================================================
# Clock / sleep
# ============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(autouse=True)
def no_real_sleep() -> Generator[None, None, None]:
    """Batch pauses and retry backoff never really sleep in tests."""
    with patch("batching._sleep_ms"), patch("ratelimit._sleep_ms"), patch("retry.time.sleep"):
        yield


# ============================================================================
# Context
# ============================================================================

@pytest.fixture
def store() -> InMemoryPropertyStore:
    return InMemoryPropertyStore()


@pytest.fixture
def context(store: InMemoryPropertyStore) -> AppContext:
    """Development context over an in-memory store, no persisted logs."""
    return create_context(environment="development", store=store, persist_logs=False)


@pytest.fixture
def factory(context: AppContext) -> ServiceFactory:
    return ServiceFactory(context)


# ============================================================================
# Google API clients
# ============================================================================

def _patched_client(api: str) -> Generator[MagicMock, None, None]:
    """Patch adapters.<api>.get_<api>_service with a MagicMock client."""
    client = MagicMock(name=f"{api}_client")
    with patch(f"adapters.{api}.get_{api}_service", return_value=client):
        yield client


@pytest.fixture
def patch_gmail_service() -> Generator[MagicMock, None, None]:
    """
    Mocked Gmail client as seen by adapters/gmail.py.

        def test_labels(patch_gmail_service):
            patch_gmail_service.users().labels().list().execute.return_value = {"labels": []}
            assert gmail.list_labels() == []
    """
    yield from _patched_client("gmail")


@pytest.fixture
def patch_drive_service() -> Generator[MagicMock, None, None]:
    yield from _patched_client("drive")


@pytest.fixture
def patch_docs_service() -> Generator[MagicMock, None, None]:
    yield from _patched_client("docs")


@pytest.fixture
def patch_sheets_service() -> Generator[MagicMock, None, None]:
    yield from _patched_client("sheets")
