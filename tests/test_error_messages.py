"""
User-facing error message tests.
"""
from __future__ import annotations

import pytest

from app.core import error_messages
from app.core.error_messages import classify_error, friendly_error_message


@pytest.mark.parametrize(
    ("message", "code"),
    [
        ("Session expired", error_messages.SESSION_EXPIRED),
        ("Request timed out", error_messages.TIMEOUT_ERROR),
        ("Failed to fetch", error_messages.NETWORK_ERROR),
        ("Invalid email or password", error_messages.INVALID_CREDENTIALS),
        ("Missing authentication token", error_messages.UNAUTHORIZED),
        ("Access Denied", error_messages.FORBIDDEN),
        ("Task with id '1' not found", error_messages.NOT_FOUND),
        ("A client named 'Acme' already exists", error_messages.DUPLICATE_ENTRY),
        ("File is too large: maximum allowed size is 10 MB", error_messages.FILE_TOO_LARGE),
        ("Too many requests", error_messages.RATE_LIMITED),
        ("End date must be after start date", error_messages.VALIDATION_ERROR),
        ("An unexpected internal server error occurred", error_messages.INTERNAL_ERROR),
        ("Something odd", error_messages.UNKNOWN_ERROR),
    ],
)
def test_classify_error(message: str, code: str) -> None:
    assert classify_error(message) == code


def test_first_matching_rule_wins() -> None:
    # "expired" outranks "invalid"
    assert classify_error("Invalid or expired access token") == error_messages.SESSION_EXPIRED


def test_timeout_exception_is_classified_by_type() -> None:
    error = friendly_error_message(TimeoutError())
    assert error.code == error_messages.TIMEOUT_ERROR
    assert error.retryable


def test_none_is_unknown() -> None:
    error = friendly_error_message(None)
    assert error.code == error_messages.UNKNOWN_ERROR
    assert error.severity == "high"


def test_forbidden_is_not_retryable() -> None:
    error = friendly_error_message("Insufficient permissions")
    assert error.code == error_messages.FORBIDDEN
    assert not error.retryable
    assert error.user_message == error_messages.USER_ERROR_MESSAGES[error_messages.FORBIDDEN]
