"""
Guardrail violation audit logging.

Every blocked input or filtered response is recorded as a structured
log event so violations can be counted and reviewed without storing
the offending text itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

import structlog

from supportdesk.config.guardrails import GuardrailConfig, get_guardrail_config
from supportdesk.lib.guardrails.types import GuardrailResult, Severity
from supportdesk.lib.logging import hash_id

logger = structlog.get_logger(__name__)


class ViolationType(StrEnum):
    """Categories of guardrail violations."""

    PROMPT_INJECTION = "prompt_injection"
    JAILBREAK_ATTEMPT = "jailbreak_attempt"
    PROFANITY = "profanity"
    HARMFUL_CONTENT = "harmful_content"
    EXCESSIVE_LENGTH = "excessive_length"
    INVALID_FORMAT = "invalid_format"
    UNSAFE_RESPONSE = "unsafe_response"
    PII_DETECTED = "pii_detected"


@dataclass(frozen=True)
class ViolationRecord:
    """A single recorded violation."""

    violation_type: ViolationType
    message: str
    severity: Severity
    conversation_id: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


def record_violation(
    violation_type: ViolationType,
    result: GuardrailResult,
    conversation_id: str | None = None,
    config: GuardrailConfig | None = None,
) -> ViolationRecord:
    """
    Build a ViolationRecord from a failing result and log it.

    Logging is skipped when ``log_violations`` is disabled; the record is
    returned either way.
    """
    cfg = config or get_guardrail_config()
    record = ViolationRecord(
        violation_type=violation_type,
        message=result.reason or "",
        severity=result.severity or Severity.LOW,
        conversation_id=conversation_id,
    )
    if cfg.log_violations:
        logger.warning(
            "guardrail_violation",
            violation_type=record.violation_type.value,
            severity=record.severity.value,
            reason=record.message,
            blocked_content=result.blocked_content,
            conversation_hash=hash_id(conversation_id),
            timestamp=record.timestamp.isoformat(),
        )
    return record


def log_check(name: str, result: GuardrailResult, config: GuardrailConfig | None = None) -> None:
    """Debug-log an individual check outcome when ``log_all_checks`` is on."""
    cfg = config or get_guardrail_config()
    if cfg.log_all_checks:
        logger.debug(
            "guardrail_check",
            check=name,
            passed=result.passed,
            severity=result.severity.value if result.severity else None,
        )
