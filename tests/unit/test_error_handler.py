"""
Tests for error_handler.py — classification, severity, persistence, wrap().
"""

import json
import logging
import re
from unittest.mock import MagicMock, patch

import pytest

from error_handler import (
    LAST_ERROR_ID_KEY,
    LAST_ERROR_TIME_KEY,
    RECENT_ERRORS_KEY,
    ErrorHandler,
    classify_error,
    determine_severity,
    generate_error_id,
    is_retryable,
    user_friendly_message,
)
from models import ErrorKind, ErrorSeverity, WorkspaceError
from properties import InMemoryPropertyStore
from tests.mock_utils import make_http_error


ERROR_ID_PATTERN = re.compile(r"^ERR_[0-9A-Z]+_[0-9A-Z]{5}$")


class TestGenerateErrorId:

    def test_format(self) -> None:
        assert ERROR_ID_PATTERN.match(generate_error_id())

    def test_unique(self) -> None:
        assert len({generate_error_id() for _ in range(200)}) == 200


class TestClassification:

    def test_workspace_error_keeps_kind(self) -> None:
        assert classify_error(WorkspaceError(ErrorKind.QUOTA, "x")) == ErrorKind.QUOTA

    def test_http_error_by_status(self) -> None:
        with patch("retry.clear_service_cache"):
            assert classify_error(make_http_error(401)) == ErrorKind.AUTHENTICATION

    def test_foreign_exception_by_type(self) -> None:
        assert classify_error(ConnectionError("reset")) == ErrorKind.NETWORK

    @pytest.mark.parametrize("kind,severity", [
        (ErrorKind.SYSTEM, ErrorSeverity.CRITICAL),
        (ErrorKind.AUTHENTICATION, ErrorSeverity.HIGH),
        (ErrorKind.AUTHORIZATION, ErrorSeverity.HIGH),
        (ErrorKind.QUOTA, ErrorSeverity.HIGH),
        (ErrorKind.NETWORK, ErrorSeverity.MEDIUM),
        (ErrorKind.TIMEOUT, ErrorSeverity.MEDIUM),
        (ErrorKind.DATA, ErrorSeverity.MEDIUM),
        (ErrorKind.NOT_FOUND, ErrorSeverity.MEDIUM),
        (ErrorKind.VALIDATION, ErrorSeverity.LOW),
        (ErrorKind.UNKNOWN, ErrorSeverity.LOW),
    ])
    def test_severity_by_kind(self, kind: ErrorKind, severity: ErrorSeverity) -> None:
        assert determine_severity(WorkspaceError(kind, "x")) == severity

    def test_explicit_severity_wins(self) -> None:
        error = WorkspaceError(ErrorKind.VALIDATION, "x", severity=ErrorSeverity.CRITICAL)
        assert determine_severity(error) == ErrorSeverity.CRITICAL

    @pytest.mark.parametrize("kind", [
        ErrorKind.NETWORK, ErrorKind.TIMEOUT, ErrorKind.QUOTA, ErrorKind.SYSTEM,
    ])
    def test_retryable_kinds(self, kind: ErrorKind) -> None:
        assert is_retryable(WorkspaceError(kind, "x"))

    def test_retryable_flag(self) -> None:
        assert is_retryable(WorkspaceError(ErrorKind.UNKNOWN, "x", retryable=True))

    def test_not_retryable(self) -> None:
        assert not is_retryable(WorkspaceError(ErrorKind.VALIDATION, "x"))
        assert not is_retryable(ValueError("x"))

    def test_user_friendly_message(self) -> None:
        message = user_friendly_message(WorkspaceError(ErrorKind.QUOTA, "429"))
        assert message == "Rate limit exceeded. Please wait a moment and try again."

    def test_user_friendly_message_fallback(self) -> None:
        assert user_friendly_message(RuntimeError("boom")) == "An error occurred. Please try again."


class TestErrorHandler:

    @pytest.fixture
    def handler(self, store: InMemoryPropertyStore) -> ErrorHandler:
        return ErrorHandler(store, logger=logging.getLogger("workspace_automation.errors"))

    def test_handle_returns_info(self, handler: ErrorHandler) -> None:
        info = handler.handle(
            WorkspaceError(ErrorKind.NOT_FOUND, "Doc gone"),
            {"service": "docs", "function": "get_doc_content"},
        )
        assert ERROR_ID_PATTERN.match(info.id)
        assert info.kind == ErrorKind.NOT_FOUND
        assert info.severity == ErrorSeverity.MEDIUM
        assert info.context["service"] == "docs"
        assert "WorkspaceError" in info.stack

    def test_handle_persists(self, handler: ErrorHandler, store: InMemoryPropertyStore) -> None:
        info = handler.handle(ValueError("bad row"), {"service": "sheets", "function": "insert"})

        stored = json.loads(store.get(RECENT_ERRORS_KEY) or "[]")
        assert stored[0]["id"] == info.id
        assert stored[0]["type"] == "data"
        assert stored[0]["service"] == "sheets"
        assert store.get(LAST_ERROR_ID_KEY) == info.id
        assert store.get(LAST_ERROR_TIME_KEY) == info.timestamp

    def test_keeps_ten_newest_first(self, handler: ErrorHandler) -> None:
        for i in range(15):
            handler.handle(RuntimeError(f"error {i}"))

        recent = handler.recent_errors(50)
        assert len(recent) == 10
        assert [e["message"] for e in recent] == [f"error {i}" for i in range(14, 4, -1)]

    def test_recent_errors_count(self, handler: ErrorHandler) -> None:
        for i in range(5):
            handler.handle(RuntimeError(f"error {i}"))
        assert [e["message"] for e in handler.recent_errors(2)] == ["error 4", "error 3"]

    def test_recent_errors_empty(self, handler: ErrorHandler) -> None:
        assert handler.recent_errors() == []

    def test_recent_errors_unreadable(self, handler: ErrorHandler, store: InMemoryPropertyStore) -> None:
        store.set(RECENT_ERRORS_KEY, "not json")
        assert handler.recent_errors() == []

    def test_clear(self, handler: ErrorHandler, store: InMemoryPropertyStore) -> None:
        handler.handle(RuntimeError("x"))
        handler.clear()
        assert handler.recent_errors() == []
        assert store.get(LAST_ERROR_ID_KEY) is None

    def test_log_line(self, handler: ErrorHandler, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="workspace_automation"):
            info = handler.handle(WorkspaceError(ErrorKind.QUOTA, "Too many requests"))
        assert f"[QUOTA] Too many requests (Error ID: {info.id}, severity: HIGH)" in caplog.text

    def test_critical_alert(self, handler: ErrorHandler, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="workspace_automation"):
            handler.handle(
                WorkspaceError(ErrorKind.SYSTEM, "Backend exploded"),
                {"service": "gmail", "function": "export_emails"},
            )
        critical = [r for r in caplog.records if r.levelno == logging.CRITICAL]
        assert len(critical) == 1
        assert "service: gmail" in critical[0].getMessage()

    def test_store_failure_does_not_propagate(self, caplog: pytest.LogCaptureFixture) -> None:
        broken = MagicMock()
        broken.get.return_value = None
        broken.set.side_effect = OSError("disk full")
        handler = ErrorHandler(broken, logger=logging.getLogger("workspace_automation.errors"))

        with caplog.at_level(logging.WARNING, logger="workspace_automation"):
            info = handler.handle(RuntimeError("original"))

        assert info.message == "original"
        assert "Failed to store error" in caplog.text


class TestWrap:

    def test_passes_through_result(self, store: InMemoryPropertyStore) -> None:
        handler = ErrorHandler(store)
        assert handler.wrap(lambda x: x + 1)(1) == 2

    def test_reraises_tagged_error(self, store: InMemoryPropertyStore) -> None:
        handler = ErrorHandler(store)

        def parse_row() -> None:
            raise ValueError("column B is not a number")

        wrapped = handler.wrap(parse_row, service="sheets")

        with pytest.raises(WorkspaceError) as exc_info:
            wrapped()

        error = exc_info.value
        error_id = error.details["error_id"]
        assert error.kind == ErrorKind.DATA
        assert error.message == f"[DATA] column B is not a number (Error ID: {error_id})"
        assert isinstance(error.__cause__, ValueError)

        stored = handler.recent_errors()[0]
        assert stored["id"] == error_id
        assert stored["function"] == "parse_row"
        assert stored["service"] == "sheets"

    def test_keeps_retryable_flag(self, store: InMemoryPropertyStore) -> None:
        handler = ErrorHandler(store)

        def call() -> None:
            raise TimeoutError("slow")

        with pytest.raises(WorkspaceError) as exc_info:
            handler.wrap(call)()
        assert exc_info.value.retryable
