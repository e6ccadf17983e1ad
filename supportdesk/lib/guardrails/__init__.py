"""
Guardrail pipeline.

Inbound: check_all_input_guardrails (validator -> injection detector ->
moderator, first failure wins). Outbound: filter_ai_response /
get_safe_response. Rate limiting lives in supportdesk.lib.rate_limiter.
"""

from supportdesk.lib.guardrails.audit import ViolationRecord, ViolationType, record_violation
from supportdesk.lib.guardrails.content_moderation import (
    moderate_content,
    moderate_content_with_level,
)
from supportdesk.lib.guardrails.input_validator import (
    sanitize_input,
    validate_input,
    validate_input_frontend,
)
from supportdesk.lib.guardrails.orchestrator import (
    GuardrailStage,
    check_all_input_guardrails,
    evaluate_input,
)
from supportdesk.lib.guardrails.patterns import (
    DEFAULT_REGISTRY,
    Matcher,
    PatternCategory,
    PatternRegistry,
    compile_matcher,
)
from supportdesk.lib.guardrails.prompt_injection import (
    detect_prompt_injection_and_jailbreak,
    quick_jailbreak_check,
)
from supportdesk.lib.guardrails.response_filter import (
    SAFE_FALLBACK_MESSAGE,
    filter_ai_response,
    get_safe_response,
    quick_response_validation,
)
from supportdesk.lib.guardrails.types import (
    GuardrailResult,
    SafeResponse,
    Severity,
    Strictness,
    most_severe,
)

__all__ = [
    "DEFAULT_REGISTRY",
    "SAFE_FALLBACK_MESSAGE",
    "GuardrailResult",
    "GuardrailStage",
    "Matcher",
    "PatternCategory",
    "PatternRegistry",
    "SafeResponse",
    "Severity",
    "Strictness",
    "ViolationRecord",
    "ViolationType",
    "check_all_input_guardrails",
    "compile_matcher",
    "detect_prompt_injection_and_jailbreak",
    "evaluate_input",
    "filter_ai_response",
    "get_safe_response",
    "moderate_content",
    "moderate_content_with_level",
    "most_severe",
    "quick_jailbreak_check",
    "quick_response_validation",
    "record_violation",
    "sanitize_input",
    "validate_input",
    "validate_input_frontend",
]
