"""
Per-conversation rate limiting.

Sliding window over monotonic timestamps, kept per conversation id:
at most ``max_messages_per_minute`` in any trailing 60 seconds and
``max_messages_per_hour`` in any trailing hour.

Process-local only. A multi-instance deployment needs a shared store
with atomic increment-and-check semantics instead.

Usage:
    from supportdesk.lib.rate_limiter import check_rate_limit

    check_rate_limit(conversation_id)  # raises RateLimitExceeded
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog

from supportdesk.config.guardrails import GuardrailConfig, get_guardrail_config
from supportdesk.lib.exceptions import RateLimitExceeded
from supportdesk.lib.logging import hash_id

logger = structlog.get_logger(__name__)

MINUTE_SECONDS = 60
HOUR_SECONDS = 3600


@dataclass(frozen=True)
class RateLimitStatus:
    """Snapshot of a conversation's usage in both windows."""

    minute_count: int
    hour_count: int
    minute_remaining: int
    hour_remaining: int


class ConversationRateLimiter:
    """
    In-memory sliding-window limiter keyed by conversation id.

    The timestamp map is guarded by a lock so concurrent calls for the
    same conversation never lose an append.
    """

    def __init__(
        self,
        max_per_minute: int | None = None,
        max_per_hour: int | None = None,
        clock: Callable[[], float] = time.monotonic,
        config: GuardrailConfig | None = None,
    ) -> None:
        cfg = config or get_guardrail_config()
        self.max_per_minute = max_per_minute if max_per_minute is not None else cfg.max_messages_per_minute
        self.max_per_hour = max_per_hour if max_per_hour is not None else cfg.max_messages_per_hour
        self._clock = clock
        self._attempts: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    def _prune(self, conversation_id: str, now: float) -> list[float]:
        timestamps = [
            ts for ts in self._attempts.get(conversation_id, []) if now - ts < HOUR_SECONDS
        ]
        self._attempts[conversation_id] = timestamps
        return timestamps

    def check_rate_limit(self, conversation_id: str) -> None:
        """
        Record an attempt or raise if a window is full.

        Raises:
            RateLimitExceeded: minute window (retry after 60s) is checked
                before the hour window (retry after 3600s).
        """
        with self._lock:
            now = self._clock()
            timestamps = self._prune(conversation_id, now)
            minute_count = sum(1 for ts in timestamps if now - ts < MINUTE_SECONDS)

            if minute_count >= self.max_per_minute:
                logger.warning(
                    "rate_limit_exceeded_minute",
                    conversation_hash=hash_id(conversation_id),
                    count=minute_count,
                )
                raise RateLimitExceeded(self.max_per_minute, "minute", MINUTE_SECONDS)

            if len(timestamps) >= self.max_per_hour:
                logger.warning(
                    "rate_limit_exceeded_hour",
                    conversation_hash=hash_id(conversation_id),
                    count=len(timestamps),
                )
                raise RateLimitExceeded(self.max_per_hour, "hour", HOUR_SECONDS)

            timestamps.append(now)

    def get_status(self, conversation_id: str) -> RateLimitStatus:
        """Current usage for a conversation, without recording an attempt."""
        with self._lock:
            now = self._clock()
            timestamps = [
                ts for ts in self._attempts.get(conversation_id, []) if now - ts < HOUR_SECONDS
            ]
        minute_count = sum(1 for ts in timestamps if now - ts < MINUTE_SECONDS)
        return RateLimitStatus(
            minute_count=minute_count,
            hour_count=len(timestamps),
            minute_remaining=max(0, self.max_per_minute - minute_count),
            hour_remaining=max(0, self.max_per_hour - len(timestamps)),
        )

    def clear(self, conversation_id: str) -> None:
        """Forget all attempts for a conversation."""
        with self._lock:
            self._attempts.pop(conversation_id, None)

    def cleanup(self) -> int:
        """
        Prune every conversation and drop the ones left empty.

        Returns:
            Number of conversations removed
        """
        with self._lock:
            now = self._clock()
            stale = [key for key in list(self._attempts) if not self._prune(key, now)]
            for key in stale:
                del self._attempts[key]

        if stale:
            logger.debug("rate_limit_cleanup", removed=len(stale), remaining=len(self._attempts))
        return len(stale)

    async def run_cleanup_loop(self, interval: float) -> None:
        """Sweep forever every ``interval`` seconds; cancel the task to stop."""
        while True:
            await asyncio.sleep(interval)
            self.cleanup()

    def __len__(self) -> int:
        return len(self._attempts)


_limiter: ConversationRateLimiter | None = None


def get_rate_limiter() -> ConversationRateLimiter:
    """Return the process-wide limiter, creating it on first use."""
    global _limiter
    if _limiter is None:
        _limiter = ConversationRateLimiter()
    return _limiter


def check_rate_limit(conversation_id: str) -> None:
    """Check the process-wide limiter. Raises RateLimitExceeded."""
    get_rate_limiter().check_rate_limit(conversation_id)
