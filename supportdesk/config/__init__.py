"""
Configuration package for SupportDesk.

- guardrails.py: Guardrail thresholds and limits (GuardrailConfig)
- settings.py: Runtime settings (database, model, CORS) and startup validation
"""

from supportdesk.config.guardrails import (
    GuardrailConfig,
    get_guardrail_config,
    load_guardrail_config,
)
from supportdesk.config.settings import Settings, get_settings, load_settings, validate_settings

__all__ = [
    "GuardrailConfig",
    "get_guardrail_config",
    "load_guardrail_config",
    "Settings",
    "get_settings",
    "load_settings",
    "validate_settings",
]
