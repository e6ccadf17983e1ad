"""
Guardrail result types.

GuardrailResult is a pure value: built fresh per check and discarded
once the caller acts on it.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum


class Severity(StrEnum):
    """Ordinal severity of a guardrail violation."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK: dict[Severity, int] = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


class Strictness(StrEnum):
    """Moderation strictness levels for moderate_content_with_level."""

    LOW = "low"        # only high and critical block
    MEDIUM = "medium"  # medium, high and critical block
    HIGH = "high"      # everything blocks


@dataclass(frozen=True)
class GuardrailResult:
    """
    Outcome of a single guardrail check or check group.

    A passing result carries no reason/severity/blocked_content; it may
    carry ``sanitized_message``, which callers must use instead of the
    original text. A failing result always carries a ``reason``.
    """

    passed: bool
    reason: str | None = None
    severity: Severity | None = None
    blocked_content: str | None = None
    sanitized_message: str | None = None

    @classmethod
    def ok(cls, sanitized_message: str | None = None) -> GuardrailResult:
        return cls(passed=True, sanitized_message=sanitized_message)

    @classmethod
    def fail(
        cls,
        reason: str,
        severity: Severity,
        blocked_content: str | None = None,
    ) -> GuardrailResult:
        return cls(
            passed=False,
            reason=reason,
            severity=severity,
            blocked_content=blocked_content,
        )


@dataclass(frozen=True)
class SafeResponse:
    """User-deliverable model reply produced by get_safe_response."""

    safe: bool
    message: str
    reason: str | None = None


def most_severe(results: Iterable[GuardrailResult]) -> GuardrailResult | None:
    """
    Return the most severe failing result, or None if all passed.

    Ties keep the earliest result, so callers control precedence by
    the order in which they list their checks.
    """
    worst: GuardrailResult | None = None
    for result in results:
        if result.passed:
            continue
        rank = (result.severity or Severity.LOW).rank
        if worst is None or rank > (worst.severity or Severity.LOW).rank:
            worst = result
    return worst
