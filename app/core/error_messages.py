"""
User-facing error messages.

Errors are classified by case-insensitive substring matching on their text and
mapped to a short message that is safe to show to an end user. The first
matching rule wins, so more specific phrases come first.
"""
from __future__ import annotations

from dataclasses import dataclass

NETWORK_ERROR = "NETWORK_ERROR"
TIMEOUT_ERROR = "TIMEOUT_ERROR"
SESSION_EXPIRED = "SESSION_EXPIRED"
INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
UNAUTHORIZED = "UNAUTHORIZED"
FORBIDDEN = "FORBIDDEN"
NOT_FOUND = "NOT_FOUND"
DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
FILE_TOO_LARGE = "FILE_TOO_LARGE"
RATE_LIMITED = "RATE_LIMITED"
VALIDATION_ERROR = "VALIDATION_ERROR"
INTERNAL_ERROR = "INTERNAL_ERROR"
UNKNOWN_ERROR = "UNKNOWN_ERROR"

USER_ERROR_MESSAGES: dict[str, str] = {
    NETWORK_ERROR: (
        "We're having trouble connecting to our servers. "
        "Please check your internet connection and try again."
    ),
    TIMEOUT_ERROR: "The request is taking longer than expected. Please try again.",
    SESSION_EXPIRED: "Your session has expired. Please sign in again.",
    INVALID_CREDENTIALS: (
        "Invalid email or password. Please check your credentials and try again."
    ),
    UNAUTHORIZED: "You need to sign in to access this feature. Please sign in and try again.",
    FORBIDDEN: (
        "You don't have permission to perform this action. "
        "Please contact your administrator."
    ),
    NOT_FOUND: "The requested item could not be found. It may have been deleted or moved.",
    DUPLICATE_ENTRY: "This item already exists. Please use a different name or identifier.",
    FILE_TOO_LARGE: "The file is too large. Please choose a smaller file.",
    RATE_LIMITED: "You've made too many requests. Please wait a moment and try again.",
    VALIDATION_ERROR: (
        "The information you provided is invalid. Please check your input and try again."
    ),
    INTERNAL_ERROR: "Something went wrong on our end. Please try again later.",
    UNKNOWN_ERROR: (
        "An unexpected error occurred. "
        "Please try again or contact support if the problem persists."
    ),
}

ERROR_SEVERITY: dict[str, str] = {
    NETWORK_ERROR: "medium",
    TIMEOUT_ERROR: "medium",
    SESSION_EXPIRED: "high",
    INVALID_CREDENTIALS: "low",
    UNAUTHORIZED: "high",
    FORBIDDEN: "high",
    NOT_FOUND: "low",
    DUPLICATE_ENTRY: "low",
    FILE_TOO_LARGE: "low",
    RATE_LIMITED: "medium",
    VALIDATION_ERROR: "low",
    INTERNAL_ERROR: "critical",
    UNKNOWN_ERROR: "high",
}

RETRYABLE_CODES = frozenset(
    {NETWORK_ERROR, TIMEOUT_ERROR, RATE_LIMITED, INTERNAL_ERROR, UNKNOWN_ERROR}
)

# (code, substrings) in match priority order
_RULES: tuple[tuple[str, tuple[str, ...]], ...] = (
    (SESSION_EXPIRED, ("expired",)),
    (TIMEOUT_ERROR, ("timeout", "timed out")),
    (NETWORK_ERROR, ("network", "fetch", "connection")),
    (INVALID_CREDENTIALS, ("invalid email or password",)),
    (
        UNAUTHORIZED,
        (
            "unauthorized",
            "unauthenticated",
            "authentication required",
            "not authenticated",
            "missing authentication",
        ),
    ),
    (
        FORBIDDEN,
        ("forbidden", "permission", "access denied", "insufficient", "only admins"),
    ),
    (NOT_FOUND, ("not found",)),
    (DUPLICATE_ENTRY, ("already exists", "already taken", "duplicate")),
    (FILE_TOO_LARGE, ("too large",)),
    (RATE_LIMITED, ("rate limit", "too many requests")),
    (VALIDATION_ERROR, ("validation", "invalid", "must be")),
    (INTERNAL_ERROR, ("internal server error", "internal error")),
)


@dataclass(frozen=True)
class AppError:
    code: str
    message: str
    user_message: str
    severity: str
    retryable: bool


def classify_error(message: str) -> str:
    """Return the error code whose rule first matches ``message``."""
    lowered = message.lower()
    for code, needles in _RULES:
        if any(needle in lowered for needle in needles):
            return code
    return UNKNOWN_ERROR


def friendly_error_message(error: BaseException | str | None) -> AppError:
    """Map an exception or error text to a structured, user-facing error."""
    if error is None:
        message = ""
    elif isinstance(error, BaseException):
        message = str(error) or type(error).__name__
        if isinstance(error, TimeoutError):
            message = f"timeout: {message}"
    else:
        message = error

    code = classify_error(message)
    return AppError(
        code=code,
        message=message,
        user_message=USER_ERROR_MESSAGES[code],
        severity=ERROR_SEVERITY[code],
        retryable=code in RETRYABLE_CODES,
    )
