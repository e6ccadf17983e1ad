"""
AI Response Filtering Guardrail.

Validates model output before it reaches the user. The reply is
sanitized first, then seven checks run and the most severe failure wins
(ties go to check order):

1. Length (empty or over the configured maximum)
2. Prompt leakage
3. PII (business contact details on the whitelist are allowed)
4. Harmful instructions
5. False capability claims
6. Jailbreak success indicators
7. Code injection

Users never see why a reply was blocked; get_safe_response swaps in a
fixed apology and logs the real reason.
"""

from __future__ import annotations

import re

import structlog

from supportdesk.config.guardrails import GuardrailConfig, get_guardrail_config
from supportdesk.lib.guardrails.audit import ViolationType, log_check, record_violation
from supportdesk.lib.guardrails.patterns import (
    DEFAULT_REGISTRY,
    PatternCategory,
    PatternRegistry,
)
from supportdesk.lib.guardrails.types import (
    GuardrailResult,
    SafeResponse,
    Severity,
    most_severe,
)

logger = structlog.get_logger(__name__)

SAFE_FALLBACK_MESSAGE = (
    "I apologize, but I cannot provide that response. Let me help you with something else."
)

_INLINE_WHITESPACE = re.compile(r"[ \t]+")
_EXCESS_BLANK_LINES = re.compile(r"\n{4,}")


def sanitize_response(response: str) -> str:
    """Strip null bytes, collapse spaces/tabs and cap blank line runs."""
    sanitized = response.replace("\x00", "")
    sanitized = _INLINE_WHITESPACE.sub(" ", sanitized)
    sanitized = _EXCESS_BLANK_LINES.sub("\n\n\n", sanitized)
    return sanitized.strip()


# =============================================================================
# Individual checks
# =============================================================================


def _check_length(response: str, config: GuardrailConfig) -> GuardrailResult:
    if len(response) > config.max_response_length:
        return GuardrailResult.fail("Response exceeds maximum length", Severity.LOW)
    if not response.strip():
        return GuardrailResult.fail("Response is empty", Severity.MEDIUM)
    return GuardrailResult.ok()


def _pattern_check(
    category: PatternCategory,
    reason: str,
    severity: Severity,
    blocked_content: str,
):
    def check(response: str, config: GuardrailConfig, registry: PatternRegistry) -> GuardrailResult:
        if registry.first_match(category, response):
            return GuardrailResult.fail(reason, severity, blocked_content=blocked_content)
        return GuardrailResult.ok()

    return check


def _strip_whitelisted(response: str, config: GuardrailConfig) -> str:
    # Longest first so "www.shopease.in" goes before "shopease.in"
    for contact in sorted(config.whitelisted_contacts, key=len, reverse=True):
        response = response.replace(contact, " ")
    return response


def _check_pii(response: str, config: GuardrailConfig, registry: PatternRegistry) -> GuardrailResult:
    if registry.first_match(PatternCategory.PII, _strip_whitelisted(response, config)):
        return GuardrailResult.fail(
            "Response may contain sensitive information",
            Severity.CRITICAL,
            blocked_content="PII in response",
        )
    return GuardrailResult.ok()


_CHECKS = (
    ("length", lambda response, config, registry: _check_length(response, config)),
    (
        "prompt_leakage",
        _pattern_check(
            PatternCategory.PROMPT_LEAKAGE,
            "Response may reveal system instructions",
            Severity.HIGH,
            "Prompt leakage detected",
        ),
    ),
    ("pii", _check_pii),
    (
        "harmful_response",
        _pattern_check(
            PatternCategory.HARMFUL_RESPONSE,
            "Response contains harmful instructions",
            Severity.CRITICAL,
            "Harmful content in response",
        ),
    ),
    (
        "capability_claims",
        _pattern_check(
            PatternCategory.CAPABILITY_CLAIM,
            "Response makes false capability claims",
            Severity.MEDIUM,
            "False capability claim",
        ),
    ),
    (
        "jailbreak_success",
        _pattern_check(
            PatternCategory.JAILBREAK_SUCCESS,
            "Response indicates successful jailbreak",
            Severity.CRITICAL,
            "Jailbreak success detected",
        ),
    ),
    (
        "code_injection",
        _pattern_check(
            PatternCategory.CODE_INJECTION,
            "Response may contain code injection",
            Severity.HIGH,
            "Code injection detected",
        ),
    ),
)


# =============================================================================
# Public API
# =============================================================================


def filter_ai_response(
    response_text: str,
    config: GuardrailConfig | None = None,
    registry: PatternRegistry = DEFAULT_REGISTRY,
) -> GuardrailResult:
    """
    Sanitize and validate a model reply.

    Returns:
        The most severe failing result, or a passing result whose
        ``sanitized_message`` is the cleaned reply.
    """
    cfg = config or get_guardrail_config()
    sanitized = sanitize_response(response_text or "")

    results = []
    for name, check in _CHECKS:
        result = check(sanitized, cfg, registry)
        log_check(name, result, cfg)
        results.append(result)

    return most_severe(results) or GuardrailResult.ok(sanitized)


def quick_response_validation(
    response_text: str,
    config: GuardrailConfig | None = None,
) -> GuardrailResult:
    """Length-only response check for cheap streaming/preview paths."""
    cfg = config or get_guardrail_config()
    if not response_text or not response_text.strip():
        return GuardrailResult.fail("Empty response", Severity.MEDIUM)
    if len(response_text) > cfg.max_response_length:
        return GuardrailResult.fail("Response too long", Severity.LOW)
    return GuardrailResult.ok()


def get_safe_response(
    response_text: str,
    conversation_id: str | None = None,
    config: GuardrailConfig | None = None,
) -> SafeResponse:
    """
    Turn a model reply into something safe to show the user.

    A failing filter result becomes SAFE_FALLBACK_MESSAGE (the reason is
    logged, never shown); a passing one becomes the sanitized reply.
    """
    result = filter_ai_response(response_text, config)

    if not result.passed:
        record_violation(ViolationType.UNSAFE_RESPONSE, result, conversation_id, config)
        logger.warning(
            "guardrail_response_blocked",
            reason=result.reason,
            severity=result.severity.value if result.severity else None,
        )
        return SafeResponse(safe=False, message=SAFE_FALLBACK_MESSAGE, reason=result.reason)

    return SafeResponse(safe=True, message=result.sanitized_message or response_text)
