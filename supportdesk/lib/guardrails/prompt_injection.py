"""
Prompt Injection & Jailbreak Detection.

Detects attempts to override or extract the assistant's instructions and
attempts to strip its safety constraints. Four checks, most severe wins
(ties go to check order):

1. Prompt injection (override phrasing, instruction blocks, system
   prompt extraction, structured tag injection)
2. Jailbreak (named modes, persona bypass, co-occurring policy-bypass
   framing)
3. Roleplay manipulation
4. Obfuscation (base64 payloads with execution keywords, cipher
   mentions, hidden zero-width characters)

Within a check, the first matching pattern group decides the result.
"""

from __future__ import annotations

from supportdesk.config.guardrails import GuardrailConfig, get_guardrail_config
from supportdesk.lib.guardrails.audit import log_check
from supportdesk.lib.guardrails.patterns import (
    DEFAULT_REGISTRY,
    PatternCategory,
    PatternRegistry,
)
from supportdesk.lib.guardrails.types import GuardrailResult, Severity, most_severe

# =============================================================================
# Prompt injection
# =============================================================================


def check_prompt_injection(
    text: str,
    config: GuardrailConfig,
    registry: PatternRegistry = DEFAULT_REGISTRY,
) -> GuardrailResult:
    groups = (
        (PatternCategory.PROMPT_INJECTION, "Potential prompt injection detected", Severity.HIGH),
        (
            PatternCategory.INSTRUCTION_OVERRIDE,
            "Message contains instruction override attempt",
            Severity.HIGH,
        ),
        (
            PatternCategory.SYSTEM_PROMPT_EXTRACTION,
            "Cannot reveal system configuration",
            Severity.MEDIUM,
        ),
        (
            PatternCategory.STRUCTURED_INJECTION,
            "Message contains structured injection attempt",
            Severity.HIGH,
        ),
    )
    for category, reason, severity in groups:
        match = registry.first_match(category, text)
        if match:
            return GuardrailResult.fail(reason, severity, blocked_content=match.name)
    return GuardrailResult.ok()


# =============================================================================
# Jailbreak
# =============================================================================


def check_jailbreak(
    text: str,
    config: GuardrailConfig,
    registry: PatternRegistry = DEFAULT_REGISTRY,
) -> GuardrailResult:
    match = registry.first_match(PatternCategory.JAILBREAK_MODE, text)
    if match:
        return GuardrailResult.fail(
            "Jailbreak attempt detected",
            Severity.CRITICAL,
            blocked_content=match.name,
        )

    match = registry.first_match(PatternCategory.PERSONA_JAILBREAK, text)
    if match:
        return GuardrailResult.fail(
            "Attempt to bypass AI safety guidelines detected",
            Severity.CRITICAL,
            blocked_content=match.name,
        )

    bypass_matches = registry.all_matches(PatternCategory.POLICY_BYPASS, text)
    if len(bypass_matches) >= config.policy_bypass_threshold:
        return GuardrailResult.fail(
            "Multiple policy bypass attempts detected",
            Severity.HIGH,
            blocked_content=", ".join(m.name for m in bypass_matches),
        )

    return GuardrailResult.ok()


# =============================================================================
# Roleplay & obfuscation
# =============================================================================


def check_roleplay_manipulation(
    text: str,
    config: GuardrailConfig,
    registry: PatternRegistry = DEFAULT_REGISTRY,
) -> GuardrailResult:
    match = registry.first_match(PatternCategory.ROLEPLAY_MANIPULATION, text)
    if match:
        return GuardrailResult.fail(
            "Roleplay manipulation attempt detected",
            Severity.HIGH,
            blocked_content=match.name,
        )
    return GuardrailResult.ok()


def check_obfuscation(
    text: str,
    config: GuardrailConfig,
    registry: PatternRegistry = DEFAULT_REGISTRY,
) -> GuardrailResult:
    if registry.first_match(PatternCategory.BASE64_PAYLOAD, text) and registry.first_match(
        PatternCategory.EXECUTION_KEYWORD, text
    ):
        return GuardrailResult.fail(
            "Encoded instructions detected",
            Severity.HIGH,
            blocked_content="base64 payload",
        )

    if registry.first_match(PatternCategory.ENCODING_MENTION, text):
        return GuardrailResult.fail(
            "Encoding or cipher instructions detected",
            Severity.MEDIUM,
        )

    hidden = registry.count(PatternCategory.HIDDEN_CHARACTER, text)
    if hidden > config.max_hidden_chars:
        return GuardrailResult.fail(
            "Message contains hidden characters",
            Severity.MEDIUM,
            blocked_content=f"{hidden} zero-width character(s)",
        )

    return GuardrailResult.ok()


# =============================================================================
# Public API
# =============================================================================


def detect_prompt_injection_and_jailbreak(
    text: str,
    config: GuardrailConfig | None = None,
    registry: PatternRegistry = DEFAULT_REGISTRY,
) -> GuardrailResult:
    """
    Run every injection/jailbreak check and return the most severe failure.

    Args:
        text: Sanitized user text
        config: Optional GuardrailConfig override
        registry: Pattern registry to consult
    """
    cfg = config or get_guardrail_config()
    results = []
    for name, check in (
        ("prompt_injection", check_prompt_injection),
        ("jailbreak", check_jailbreak),
        ("roleplay_manipulation", check_roleplay_manipulation),
        ("obfuscation", check_obfuscation),
    ):
        result = check(text, cfg, registry)
        log_check(name, result, cfg)
        results.append(result)

    return most_severe(results) or GuardrailResult.ok()


def quick_jailbreak_check(text: str, registry: PatternRegistry = DEFAULT_REGISTRY) -> bool:
    """
    Cheap advisory check for only the most blatant jailbreak phrasing.

    Returns True when the text looks like a jailbreak. Never a substitute
    for detect_prompt_injection_and_jailbreak.
    """
    return registry.first_match(PatternCategory.QUICK_JAILBREAK, text) is not None
