"""
Chat message persistence.

Wraps a SQLAlchemy sessionmaker. Every public method opens its own
session; SQLAlchemyError never escapes, it is re-raised as
PersistenceError.
"""

from __future__ import annotations

from datetime import UTC, datetime

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from supportdesk.lib.exceptions import PersistenceError
from supportdesk.lib.logging import hash_id
from supportdesk.models.conversation import ChatMessage, Conversation, SenderRole

logger = structlog.get_logger(__name__)


class ChatRepository:
    """
    Repository for conversations and their messages.

    Usage:
        repo = ChatRepository(session_factory)
        repo.save_exchange(conversation_id, "Hi", "Hello! How can I help?")
        messages = repo.get_history(conversation_id)
    """

    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._session_factory = session_factory

    def _ensure_conversation(self, session: Session, conversation_id: str) -> Conversation:
        conversation = session.get(Conversation, conversation_id)
        if conversation is None:
            conversation = Conversation(id=conversation_id)
            session.add(conversation)
        else:
            conversation.updated_at = datetime.now(UTC)
        return conversation

    def save_message(
        self,
        conversation_id: str,
        text: str,
        sender: SenderRole | str,
    ) -> ChatMessage:
        """Store one message, creating the conversation on first use."""
        role = SenderRole(sender)
        try:
            with self._session_factory() as session, session.begin():
                self._ensure_conversation(session, conversation_id)
                message = ChatMessage(
                    conversation_id=conversation_id,
                    sender=role.value,
                    text=text,
                )
                session.add(message)
        except SQLAlchemyError as e:
            logger.error(
                "chat_message_save_failed",
                conversation_hash=hash_id(conversation_id),
                error=str(e),
            )
            raise PersistenceError("Failed to save chat message") from e
        return message

    def save_exchange(self, conversation_id: str, user_text: str, model_text: str) -> None:
        """Store a user message and the model reply atomically."""
        try:
            with self._session_factory() as session, session.begin():
                self._ensure_conversation(session, conversation_id)
                session.add(
                    ChatMessage(
                        conversation_id=conversation_id,
                        sender=SenderRole.USER.value,
                        text=user_text,
                    )
                )
                # Flush so the user row gets the lower id
                session.flush()
                session.add(
                    ChatMessage(
                        conversation_id=conversation_id,
                        sender=SenderRole.MODEL.value,
                        text=model_text,
                    )
                )
        except SQLAlchemyError as e:
            logger.error(
                "chat_exchange_save_failed",
                conversation_hash=hash_id(conversation_id),
                error=str(e),
            )
            raise PersistenceError("Failed to save chat exchange") from e

    def get_history(self, conversation_id: str) -> list[ChatMessage]:
        """All messages of a conversation, oldest first."""
        stmt = (
            select(ChatMessage)
            .where(ChatMessage.conversation_id == conversation_id)
            .order_by(ChatMessage.created_at, ChatMessage.id)
        )
        try:
            with self._session_factory() as session:
                return list(session.scalars(stmt).all())
        except SQLAlchemyError as e:
            logger.error(
                "chat_history_read_failed",
                conversation_hash=hash_id(conversation_id),
                error=str(e),
            )
            raise PersistenceError("Failed to read conversation history") from e

    def get_conversation(self, conversation_id: str) -> Conversation | None:
        """Conversation metadata, or None if nothing was stored yet."""
        try:
            with self._session_factory() as session:
                return session.get(Conversation, conversation_id)
        except SQLAlchemyError as e:
            raise PersistenceError("Failed to read conversation") from e
