"""
Input Validation Guardrail.

Sanitizes raw user text and validates its structure before any other
guardrail sees it. Steps run in order and stop at the first failure:

1. Sanitize (control characters, whitespace, trim)
2. Emptiness
3. Length (characters, then words)
4. Format (repetition, special-character ratio)
5. Suspicious shortened URLs
6. PII (SSN, card number, email, phone)

On success the result carries ``sanitized_message``, which callers must
use in place of the raw text.
"""

from __future__ import annotations

import re

from supportdesk.config.guardrails import GuardrailConfig, get_guardrail_config
from supportdesk.lib.guardrails.audit import log_check
from supportdesk.lib.guardrails.patterns import (
    DEFAULT_REGISTRY,
    PatternCategory,
    PatternRegistry,
)
from supportdesk.lib.guardrails.types import GuardrailResult, Severity

# Null bytes and C0 control characters except tab (\x09), newline (\x0a)
# and carriage return (\x0d), plus DEL
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_WHITESPACE_RUN = re.compile(r"\s+")

EMPTY_MESSAGE_REASON = "Message cannot be empty"


def sanitize_input(message: str) -> str:
    """
    Canonicalize user text.

    Strips null bytes and control characters, collapses every whitespace
    run to a single space and trims the ends.
    """
    if not message:
        return ""
    sanitized = _CONTROL_CHARS.sub("", message)
    sanitized = _WHITESPACE_RUN.sub(" ", sanitized)
    return sanitized.strip()


def _check_length(message: str, config: GuardrailConfig) -> GuardrailResult:
    if len(message) < config.min_message_length:
        return GuardrailResult.fail("Message is too short", Severity.LOW)

    if len(message) > config.max_message_length:
        return GuardrailResult.fail(
            f"Message exceeds maximum length of {config.max_message_length} characters",
            Severity.MEDIUM,
        )

    word_count = len(message.split())
    if word_count > config.max_words:
        return GuardrailResult.fail(
            f"Message exceeds maximum word count of {config.max_words} words",
            Severity.MEDIUM,
        )

    return GuardrailResult.ok()


def _check_format(
    message: str, config: GuardrailConfig, registry: PatternRegistry
) -> GuardrailResult:
    if registry.first_match(PatternCategory.REPETITION, message):
        return GuardrailResult.fail(
            "Message contains excessive repetition",
            Severity.MEDIUM,
        )

    special_count = registry.count(PatternCategory.SPECIAL_CHARACTER, message)
    if special_count / len(message) > config.max_special_char_ratio:
        return GuardrailResult.fail(
            "Message contains too many special characters",
            Severity.MEDIUM,
        )

    return GuardrailResult.ok()


def _check_suspicious_urls(message: str, registry: PatternRegistry) -> GuardrailResult:
    if registry.first_match(PatternCategory.SUSPICIOUS_URL, message):
        return GuardrailResult.fail(
            "Message contains suspicious shortened URLs",
            Severity.MEDIUM,
            blocked_content="Shortened URL detected",
        )
    return GuardrailResult.ok()


def _check_pii(message: str, registry: PatternRegistry) -> GuardrailResult:
    if registry.first_match(PatternCategory.PII, message):
        return GuardrailResult.fail(
            "Message may contain sensitive personal information (PII). "
            "Please avoid sharing SSN, credit cards, or phone numbers.",
            Severity.HIGH,
            blocked_content="PII detected",
        )
    return GuardrailResult.ok()


def validate_input(
    message: str,
    config: GuardrailConfig | None = None,
    registry: PatternRegistry = DEFAULT_REGISTRY,
) -> GuardrailResult:
    """
    Sanitize and validate user input.

    Args:
        message: Raw user text
        config: Optional GuardrailConfig override
        registry: Pattern registry to consult

    Returns:
        The first failing GuardrailResult, or a passing result carrying
        the sanitized text.
    """
    cfg = config or get_guardrail_config()
    sanitized = sanitize_input(message)

    if not sanitized:
        return GuardrailResult.fail(EMPTY_MESSAGE_REASON, Severity.LOW)

    checks = (
        ("length", lambda: _check_length(sanitized, cfg)),
        ("format", lambda: _check_format(sanitized, cfg, registry)),
        ("suspicious_urls", lambda: _check_suspicious_urls(sanitized, registry)),
        ("pii", lambda: _check_pii(sanitized, registry)),
    )
    for name, check in checks:
        result = check()
        log_check(name, result, cfg)
        if not result.passed:
            return result

    return GuardrailResult.ok(sanitized)


def validate_input_frontend(
    message: str,
    config: GuardrailConfig | None = None,
) -> GuardrailResult:
    """
    Relaxed validation for cheap client-side pre-checks.

    Only sanitizes and checks emptiness and maximum length. This is NOT a
    security boundary; the server always runs validate_input.
    """
    cfg = config or get_guardrail_config()
    sanitized = sanitize_input(message)

    if not sanitized:
        return GuardrailResult.fail(EMPTY_MESSAGE_REASON, Severity.LOW)

    if len(sanitized) > cfg.max_message_length:
        return GuardrailResult.fail(
            f"Message too long (max {cfg.max_message_length} characters)",
            Severity.LOW,
        )

    return GuardrailResult.ok(sanitized)
