"""
Shared test fixtures for SupportDesk.

This module provides common fixtures used across all test modules:
- Environment setup (dev mode)
- Session factory (in-memory SQLite, StaticPool)
- ChatRepository on top of it
- FakeChatModel standing in for Gemini
- ConversationRateLimiter driven by a controllable clock
- ChatService wired from the above

Usage:
    All fixtures are automatically available to any test in the tests/ directory.
"""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import Any

import pytest

# ---------------------------------------------------------------------------
# 1. Environment setup -- must run before any application imports
# ---------------------------------------------------------------------------

os.environ.setdefault("SUPPORTDESK_DEV_MODE", "1")

# ---------------------------------------------------------------------------
# Application imports (after env vars are set)
# ---------------------------------------------------------------------------

from supportdesk.config import GuardrailConfig  # noqa: E402
from supportdesk.lib.exceptions import UpstreamModelError  # noqa: E402
from supportdesk.lib.rate_limiter import ConversationRateLimiter  # noqa: E402
from supportdesk.models.database import create_session_factory  # noqa: E402
from supportdesk.services.chat_repository import ChatRepository  # noqa: E402
from supportdesk.services.chat_service import ChatService  # noqa: E402

# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock the test moves by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeChatModel:
    """
    ChatModelClient that returns a canned reply and records its calls.

    ``reply=None`` simulates a response without text; ``error`` makes
    generate raise UpstreamModelError.
    """

    def __init__(self, reply: str | None = "Happy to help with your order!") -> None:
        self.reply = reply
        self.error: Exception | None = None
        self.calls: list[tuple[list[dict[str, Any]], str]] = []

    async def generate(self, history: Sequence[dict[str, Any]], message: str) -> str | None:
        self.calls.append((list(history), message))
        if self.error is not None:
            raise self.error
        return self.reply

    def fail_with(self, message: str = "boom") -> None:
        self.error = UpstreamModelError(message)


# ---------------------------------------------------------------------------
# 2. Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def guardrail_config():
    """Default GuardrailConfig, independent of the process environment."""
    return GuardrailConfig()


@pytest.fixture()
def session_factory():
    """
    sessionmaker bound to a fresh in-memory SQLite database.

    StaticPool keeps every session on the same connection, so all of them
    see the same database.
    """
    factory = create_session_factory("sqlite://")
    yield factory
    factory.kw["bind"].dispose()


@pytest.fixture()
def repository(session_factory):
    return ChatRepository(session_factory)


@pytest.fixture()
def fake_clock():
    return FakeClock()


@pytest.fixture()
def rate_limiter(fake_clock, guardrail_config):
    return ConversationRateLimiter(clock=fake_clock, config=guardrail_config)


@pytest.fixture()
def fake_model():
    return FakeChatModel()


@pytest.fixture()
def chat_service(repository, fake_model, rate_limiter):
    return ChatService(repository, fake_model, rate_limiter=rate_limiter)
