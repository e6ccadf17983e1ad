"""
Lib package for SupportDesk.

Contains shared utilities:
- guardrails/: Input/output guardrail pipeline
- rate_limiter.py: Per-conversation sliding-window rate limiting
- errors.py: Centralized error response builder
- exceptions.py: Exception hierarchy
- logging.py: structlog setup
"""
