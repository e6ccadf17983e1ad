"""
Conversation and ChatMessage models.

A conversation is identified only by its UUID string; there is no
separate session identifier. Messages are ordered by (created_at, id).
"""

from datetime import UTC, datetime
from enum import StrEnum

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from supportdesk.models.base import Base


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SenderRole(StrEnum):
    """Author of a chat message. Matches the chat-model history roles."""

    USER = "user"
    MODEL = "model"


class Conversation(Base):
    """
    A single support conversation.

    Attributes:
        id: UUID string, assigned by the service on the first message
        created_at: When the first message was stored
        updated_at: When the latest message was stored
    """

    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    messages = relationship(
        "ChatMessage",
        back_populates="conversation",
        cascade="all, delete-orphan",
        order_by="ChatMessage.id",
    )

    def __repr__(self) -> str:
        return f"<Conversation(id={self.id})>"


class ChatMessage(Base):
    """A stored user or model message."""

    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(
        String(36),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    sender = Column(String(10), nullable=False)  # user | model
    text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    conversation = relationship("Conversation", back_populates="messages")

    __table_args__ = (
        Index("ix_chat_messages_conversation_created", "conversation_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ChatMessage(id={self.id}, sender={self.sender})>"
