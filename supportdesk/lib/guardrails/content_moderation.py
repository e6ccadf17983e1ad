"""
Content Moderation Guardrail.

Four independent checks run on already-sanitized text; when more than one
fails the most severe result wins, ties going to check order:

1. Profanity (word list plus obfuscated spellings)
2. Harmful content (explicit requests, or clustered harmful keywords)
3. Spam (shouting, punctuation runs, emoji floods)
4. Malicious links (phishing call-to-action with a link, too many links)
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
from supportdesk.lib.guardrails.types import (
    GuardrailResult,
    Severity,
    Strictness,
    most_severe,
)

_TOKEN_PUNCTUATION = re.compile(r"[^\w]", re.UNICODE)
_UPPERCASE = re.compile(r"[A-Z]")

# Lowest severity that still blocks at each strictness level
_STRICTNESS_FLOOR: dict[Strictness, Severity] = {
    Strictness.LOW: Severity.HIGH,
    Strictness.MEDIUM: Severity.MEDIUM,
    Strictness.HIGH: Severity.LOW,
}


# =============================================================================
# Individual checks
# =============================================================================


def _count_profanity(text: str, registry: PatternRegistry) -> int:
    hits = 0
    for raw_token in text.lower().split():
        token = _TOKEN_PUNCTUATION.sub("", raw_token)
        if not token:
            continue
        if token in registry.profanity_exact or token in registry.profanity_substring:
            hits += 1
        elif any(word in token for word in registry.profanity_substring):
            hits += 1
    if registry.first_match(PatternCategory.OBFUSCATED_PROFANITY, text):
        hits += 1
    return hits


def check_profanity(
    text: str,
    config: GuardrailConfig,
    registry: PatternRegistry = DEFAULT_REGISTRY,
) -> GuardrailResult:
    hits = _count_profanity(text, registry)
    if hits == 0:
        return GuardrailResult.ok()
    severity = Severity.HIGH if hits > config.profanity_high_threshold else Severity.MEDIUM
    return GuardrailResult.fail(
        "Message contains inappropriate language",
        severity,
        blocked_content=f"{hits} profane term(s)",
    )


def check_harmful_content(
    text: str,
    config: GuardrailConfig,
    registry: PatternRegistry = DEFAULT_REGISTRY,
) -> GuardrailResult:
    match = registry.first_match(PatternCategory.HARMFUL_REQUEST, text)
    if match:
        return GuardrailResult.fail(
            "Message contains harmful or dangerous content",
            Severity.CRITICAL,
            blocked_content=match.name,
        )

    lowered = text.lower()
    keyword_hits = [kw for kw in registry.harmful_keywords if kw in lowered]
    if len(keyword_hits) >= config.harmful_keyword_threshold:
        return GuardrailResult.fail(
            "Message contains potentially harmful content",
            Severity.MEDIUM,
            blocked_content=", ".join(keyword_hits),
        )

    return GuardrailResult.ok()


def check_spam(
    text: str,
    config: GuardrailConfig,
    registry: PatternRegistry = DEFAULT_REGISTRY,
) -> GuardrailResult:
    if len(text) > config.spam_min_length:
        uppercase_ratio = len(_UPPERCASE.findall(text)) / len(text)
        if uppercase_ratio > config.max_uppercase_ratio:
            return GuardrailResult.fail(
                "Please avoid excessive use of capital letters",
                Severity.LOW,
            )

    if registry.count(PatternCategory.PUNCTUATION_RUN, text) > config.max_punctuation_runs:
        return GuardrailResult.fail(
            "Please avoid excessive punctuation",
            Severity.LOW,
        )

    if registry.count(PatternCategory.EMOJI, text) > config.max_emojis:
        return GuardrailResult.fail(
            "Please avoid excessive use of emojis",
            Severity.LOW,
        )

    return GuardrailResult.ok()


def check_malicious_links(
    text: str,
    config: GuardrailConfig,
    registry: PatternRegistry = DEFAULT_REGISTRY,
) -> GuardrailResult:
    url_count = registry.count(PatternCategory.URL, text)
    if url_count == 0:
        return GuardrailResult.ok()

    match = registry.first_match(PatternCategory.PHISHING, text)
    if match:
        return GuardrailResult.fail(
            "Message contains suspicious links",
            Severity.HIGH,
            blocked_content=match.name,
        )

    if url_count > config.max_urls:
        return GuardrailResult.fail(
            "Message contains too many links",
            Severity.MEDIUM,
        )

    return GuardrailResult.ok()


# =============================================================================
# Public API
# =============================================================================


def moderate_content(
    text: str,
    config: GuardrailConfig | None = None,
    registry: PatternRegistry = DEFAULT_REGISTRY,
) -> GuardrailResult:
    """
    Run every moderation check and return the most severe failure.

    Args:
        text: Sanitized user text
        config: Optional GuardrailConfig override
        registry: Pattern registry to consult

    Returns:
        GuardrailResult.ok() when nothing fails.
    """
    cfg = config or get_guardrail_config()
    results = []
    for name, check in (
        ("profanity", check_profanity),
        ("harmful_content", check_harmful_content),
        ("spam", check_spam),
        ("malicious_links", check_malicious_links),
    ):
        result = check(text, cfg, registry)
        log_check(name, result, cfg)
        results.append(result)

    return most_severe(results) or GuardrailResult.ok()


def moderate_content_with_level(
    text: str,
    strictness: Strictness = Strictness.MEDIUM,
    config: GuardrailConfig | None = None,
) -> GuardrailResult:
    """
    Moderate with a severity floor.

    Failures below the floor for ``strictness`` are turned back into a
    pass: LOW blocks only high/critical, MEDIUM blocks medium and up,
    HIGH blocks everything.
    """
    result = moderate_content(text, config)
    if result.passed:
        return result

    floor = _STRICTNESS_FLOOR[Strictness(strictness)]
    severity = result.severity or Severity.LOW
    if severity.rank < floor.rank:
        return GuardrailResult.ok()
    return result
