"""
Centralized error codes and messages for the SupportDesk API.

Error codes are constants that map to user-safe message strings. The
builder returns structured error dicts used for logging and for the
``data`` field of failure envelopes when extra detail is safe to show.
"""

from __future__ import annotations

from typing import Any

# =============================================================================
# Error Code Constants
# =============================================================================

VALIDATION_ERROR = "VALIDATION_ERROR"
CONTENT_POLICY_VIOLATION = "CONTENT_POLICY_VIOLATION"
PROMPT_INJECTION_DETECTED = "PROMPT_INJECTION_DETECTED"
RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
NOT_FOUND = "NOT_FOUND"
INTERNAL_ERROR = "INTERNAL_ERROR"
DATABASE_ERROR = "DATABASE_ERROR"
EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"

_ERROR_MESSAGES: dict[str, str] = {
    VALIDATION_ERROR: "Invalid input. Please check your request.",
    CONTENT_POLICY_VIOLATION: "Message violates content policy.",
    PROMPT_INJECTION_DETECTED: "Message violates content policy.",
    RATE_LIMIT_EXCEEDED: "Too many messages. Please try again later.",
    NOT_FOUND: "The requested resource was not found.",
    INTERNAL_ERROR: "Failed to process chat message.",
    DATABASE_ERROR: "Failed to process chat message.",
    EXTERNAL_SERVICE_ERROR: "Failed to process chat message.",
}


def get_error_message(code: str) -> str:
    """
    Get the user-safe message for an error code.

    Falls back to a generic message if the error code is unknown.
    """
    return _ERROR_MESSAGES.get(code, "An error occurred.")


def build_error_response(
    code: str,
    message: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build a structured error dict: {"code": str, "message": str, "details": dict}.

    If no message is provided, the registered message for the code is used.
    """
    error: dict[str, Any] = {
        "code": code,
        "message": message if message is not None else get_error_message(code),
    }
    if details is not None:
        error["details"] = details
    return error


__all__ = [
    "VALIDATION_ERROR",
    "CONTENT_POLICY_VIOLATION",
    "PROMPT_INJECTION_DETECTED",
    "RATE_LIMIT_EXCEEDED",
    "NOT_FOUND",
    "INTERNAL_ERROR",
    "DATABASE_ERROR",
    "EXTERNAL_SERVICE_ERROR",
    "get_error_message",
    "build_error_response",
]
