"""
Guardrail Configuration for SupportDesk.

Numeric limits and heuristic thresholds used by the guardrail pipeline.
Every field can be overridden from the environment with the
``SUPPORTDESK_`` prefix and the upper-cased field name, e.g.
``SUPPORTDESK_MAX_MESSAGE_LENGTH=4000``.

The keyword-count and co-occurrence thresholds (harmful_keyword_threshold,
policy_bypass_threshold) are empirically tuned values; adjust them here
rather than in check logic.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from supportdesk.lib.exceptions import ConfigurationError

ENV_PREFIX = "SUPPORTDESK_"

# Business contact details the assistant is allowed to repeat in replies
DEFAULT_WHITELISTED_CONTACTS: tuple[str, ...] = (
    "support@shopease.in",
    "+91 79 4567 8900",
    "+91 98765 43210",
    "shopease@paytm",
    "www.shopease.in",
    "shopease.in",
    "402 Sakar Complex, Ashram Road, Ahmedabad, Gujarat 380009",
)


@dataclass(frozen=True)
class GuardrailConfig:
    """Limits and thresholds for input validation, moderation and response filtering."""

    # Input validation limits
    max_message_length: int = 5000
    min_message_length: int = 1
    max_words: int = 1000
    max_special_char_ratio: float = 0.3

    # Rate limiting (per conversation)
    max_messages_per_minute: int = 10
    max_messages_per_hour: int = 100

    # Content moderation
    profanity_high_threshold: int = 3
    harmful_keyword_threshold: int = 3
    spam_min_length: int = 20
    max_uppercase_ratio: float = 0.7
    max_punctuation_runs: int = 3
    max_emojis: int = 10
    max_urls: int = 5

    # Injection / jailbreak detection
    policy_bypass_threshold: int = 2
    max_hidden_chars: int = 5

    # Response filtering
    max_response_length: int = 10000
    whitelisted_contacts: tuple[str, ...] = DEFAULT_WHITELISTED_CONTACTS

    # Logging
    log_violations: bool = True
    log_all_checks: bool = False


def _coerce(name: str, raw: str, default: Any) -> Any:
    """Convert an environment string to the type of the field default."""
    try:
        if isinstance(default, bool):
            return raw.strip().lower() in ("1", "true", "yes", "on")
        if isinstance(default, int):
            return int(raw)
        if isinstance(default, float):
            return float(raw)
        if isinstance(default, tuple):
            return tuple(item.strip() for item in raw.split(",") if item.strip())
    except ValueError as e:
        raise ConfigurationError(
            f"Invalid value for {ENV_PREFIX}{name.upper()}: {raw!r}"
        ) from e
    return raw


def load_guardrail_config(environ: dict[str, str] | None = None) -> GuardrailConfig:
    """
    Build a GuardrailConfig from environment overrides.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Raises:
        ConfigurationError: If a numeric override cannot be parsed
    """
    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for f in dataclasses.fields(GuardrailConfig):
        raw = env.get(f"{ENV_PREFIX}{f.name.upper()}")
        if raw is not None:
            overrides[f.name] = _coerce(f.name, raw, f.default)
    return GuardrailConfig(**overrides)


@lru_cache(maxsize=1)
def get_guardrail_config() -> GuardrailConfig:
    """Get the process-wide guardrail configuration (read once from the environment)."""
    return load_guardrail_config()
