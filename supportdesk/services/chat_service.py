"""
Chat message handling.

ChatService runs one inbound message through the whole flow:

    rate limit -> input guardrails -> history -> model -> response filter -> persist

Guardrail and rate-limit rejections raise (GuardrailViolation,
RateLimitExceeded) and are mapped to 400/429 by the API layer. Model and
persistence failures never cost the user their reply: the model falls
back to NO_RESPONSE_FALLBACK and storage failures are only logged.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime

import structlog

from supportdesk.lib.exceptions import GuardrailViolation, PersistenceError, UpstreamModelError
from supportdesk.lib.guardrails import evaluate_input, get_safe_response
from supportdesk.lib.logging import hash_id
from supportdesk.lib.rate_limiter import ConversationRateLimiter, get_rate_limiter
from supportdesk.models.conversation import SenderRole
from supportdesk.services.chat_model import ChatModelClient, to_model_history
from supportdesk.services.chat_repository import ChatRepository

logger = structlog.get_logger(__name__)

NO_RESPONSE_FALLBACK = (
    "Sorry, I couldn't come up with a response just now. Please try again in a moment."
)


@dataclass(frozen=True)
class ChatReply:
    """Reply returned to the client for one handled message."""

    message: str
    conversation_id: str
    filtered: bool = False


@dataclass(frozen=True)
class HistoryMessage:
    id: int
    sender: str
    text: str
    timestamp: datetime


@dataclass(frozen=True)
class HistoryData:
    conversation_id: str
    messages: list[HistoryMessage] = field(default_factory=list)


class ChatService:
    """
    Orchestrates guardrails, the chat model and persistence.

    Usage:
        service = ChatService(repository, model_client)
        reply = await service.handle_message("Where is my order?")
    """

    def __init__(
        self,
        repository: ChatRepository,
        model_client: ChatModelClient,
        rate_limiter: ConversationRateLimiter | None = None,
    ) -> None:
        self.repository = repository
        self.model_client = model_client
        self.rate_limiter = rate_limiter if rate_limiter is not None else get_rate_limiter()

    async def handle_message(
        self,
        message: str,
        conversation_id: str | None = None,
    ) -> ChatReply:
        """
        Handle one user message.

        Raises:
            RateLimitExceeded: The conversation is over its budget
            GuardrailViolation: The message was rejected by an input guardrail
        """
        conversation_id = conversation_id or str(uuid.uuid4())
        log = logger.bind(conversation_hash=hash_id(conversation_id))

        self.rate_limiter.check_rate_limit(conversation_id)

        result, stage = evaluate_input(message, conversation_id)
        if not result.passed:
            raise GuardrailViolation(result, stage=stage.value if stage else None)

        # Downstream only ever sees the sanitized text
        user_text = result.sanitized_message or message.strip()

        try:
            history = to_model_history(self.repository.get_history(conversation_id))
        except PersistenceError:
            log.warning("chat_history_unavailable")
            history = []

        model_text: str | None
        try:
            model_text = await self.model_client.generate(history, user_text)
        except UpstreamModelError as e:
            log.error("chat_model_failed", error=str(e))
            model_text = None

        filtered = False
        if model_text:
            safe = get_safe_response(model_text, conversation_id)
            reply_text = safe.message
            filtered = not safe.safe
        else:
            log.warning("chat_model_no_response")
            reply_text = NO_RESPONSE_FALLBACK

        try:
            if model_text:
                self.repository.save_exchange(conversation_id, user_text, reply_text)
            else:
                self.repository.save_message(conversation_id, user_text, SenderRole.USER)
        except PersistenceError:
            log.error("chat_persist_failed")

        log.info("chat_message_handled", filtered=filtered, history_turns=len(history))
        return ChatReply(message=reply_text, conversation_id=conversation_id, filtered=filtered)

    def get_history(self, conversation_id: str) -> HistoryData:
        """
        Stored messages of a conversation, oldest first.

        Raises:
            PersistenceError: The history could not be read
        """
        messages = self.repository.get_history(conversation_id)
        return HistoryData(
            conversation_id=conversation_id,
            messages=[
                HistoryMessage(id=m.id, sender=m.sender, text=m.text, timestamp=m.created_at)
                for m in messages
            ],
        )
