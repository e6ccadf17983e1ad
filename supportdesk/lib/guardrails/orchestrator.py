"""
Inbound guardrail orchestration.

Runs the input validator, the injection/jailbreak detector and the
content moderator in that fixed order and returns the FIRST failure.
Unlike the check groups, this is not most-severe-wins: the validator
sanitizes the text, and the later stages must only ever see that
sanitized form.
"""

from __future__ import annotations

from enum import StrEnum

import structlog

from supportdesk.config.guardrails import GuardrailConfig, get_guardrail_config
from supportdesk.lib.guardrails.audit import ViolationType, record_violation
from supportdesk.lib.guardrails.content_moderation import moderate_content
from supportdesk.lib.guardrails.input_validator import validate_input
from supportdesk.lib.guardrails.prompt_injection import detect_prompt_injection_and_jailbreak
from supportdesk.lib.guardrails.types import GuardrailResult, Severity
from supportdesk.lib.logging import hash_id

logger = structlog.get_logger(__name__)


class GuardrailStage(StrEnum):
    """Inbound pipeline stages, in execution order."""

    INPUT_VALIDATION = "input_validation"
    INJECTION_DETECTION = "injection_detection"
    CONTENT_MODERATION = "content_moderation"


def _violation_type(stage: GuardrailStage, result: GuardrailResult) -> ViolationType:
    if stage == GuardrailStage.INPUT_VALIDATION:
        if result.blocked_content == "PII detected":
            return ViolationType.PII_DETECTED
        if result.reason and "exceeds maximum" in result.reason:
            return ViolationType.EXCESSIVE_LENGTH
        return ViolationType.INVALID_FORMAT
    if stage == GuardrailStage.INJECTION_DETECTION:
        if result.severity == Severity.CRITICAL:
            return ViolationType.JAILBREAK_ATTEMPT
        return ViolationType.PROMPT_INJECTION
    if result.reason == "Message contains inappropriate language":
        return ViolationType.PROFANITY
    return ViolationType.HARMFUL_CONTENT


def evaluate_input(
    message: str,
    conversation_id: str | None = None,
    config: GuardrailConfig | None = None,
) -> tuple[GuardrailResult, GuardrailStage | None]:
    """
    Run the inbound pipeline and report which stage rejected the message.

    Returns:
        (result, stage) where stage is None when every check passed.
    """
    cfg = config or get_guardrail_config()

    validation = validate_input(message, cfg)
    if not validation.passed:
        return _reject(GuardrailStage.INPUT_VALIDATION, validation, conversation_id, cfg)

    sanitized = validation.sanitized_message or ""

    for stage, check in (
        (GuardrailStage.INJECTION_DETECTION, detect_prompt_injection_and_jailbreak),
        (GuardrailStage.CONTENT_MODERATION, moderate_content),
    ):
        result = check(sanitized, cfg)
        if not result.passed:
            return _reject(stage, result, conversation_id, cfg)

    return GuardrailResult.ok(sanitized), None


def _reject(
    stage: GuardrailStage,
    result: GuardrailResult,
    conversation_id: str | None,
    config: GuardrailConfig,
) -> tuple[GuardrailResult, GuardrailStage]:
    record_violation(_violation_type(stage, result), result, conversation_id, config)
    logger.info(
        "guardrail_input_blocked",
        stage=stage.value,
        severity=result.severity.value if result.severity else None,
        conversation_hash=hash_id(conversation_id),
    )
    return result, stage


def check_all_input_guardrails(
    message: str,
    conversation_id: str | None = None,
    config: GuardrailConfig | None = None,
) -> GuardrailResult:
    """
    Run every inbound guardrail.

    On success the result's ``sanitized_message`` must replace the raw
    text for everything downstream (model call, persistence).
    """
    result, _ = evaluate_input(message, conversation_id, config)
    return result
