"""
Custom exception hierarchy for the SupportDesk chat backend.

All exceptions inherit from SupportDeskException, enabling a catch-all
for application errors at the request boundary while keeping the
ability to catch specific error types.

HTTP mapping (applied in supportdesk.api):
    ValidationError      -> 400
    GuardrailViolation   -> 400
    RateLimitExceeded    -> 429
    anything else        -> 500 (generic message, details logged only)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from supportdesk.lib.guardrails.types import GuardrailResult


class SupportDeskException(Exception):
    """Base exception for all SupportDesk errors."""


class ConfigurationError(SupportDeskException):
    """Missing environment variables, invalid config values, or startup failures."""


class ValidationError(SupportDeskException):
    """Malformed, oversized or structurally unsafe request input."""


class GuardrailViolation(SupportDeskException):
    """
    Inbound text rejected by the guardrail pipeline.

    Carries the failing GuardrailResult so the HTTP layer can surface
    its user-readable ``reason``.
    """

    def __init__(self, result: GuardrailResult, stage: str | None = None) -> None:
        self.result = result
        self.stage = stage
        super().__init__(result.reason or "Message violates content policy")


class RateLimitExceeded(SupportDeskException):
    """Raised when a conversation exceeds its per-window message budget."""

    def __init__(self, limit: int, window: str, retry_after: int) -> None:
        self.limit = limit
        self.window = window
        self.retry_after = retry_after
        super().__init__(
            f"Rate limit exceeded: Maximum {limit} messages per {window}"
        )


class UpstreamModelError(SupportDeskException):
    """The chat-model call failed. Not fatal to the request."""


class PersistenceError(SupportDeskException):
    """Message storage read or write failures."""
