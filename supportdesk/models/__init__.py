"""
Models package for SupportDesk.

Usage:
    from supportdesk.models import Conversation, ChatMessage, SenderRole
"""

from supportdesk.models.base import Base
from supportdesk.models.conversation import ChatMessage, Conversation, SenderRole
from supportdesk.models.database import create_db_engine, create_session_factory

__all__ = [
    "Base",
    "ChatMessage",
    "Conversation",
    "SenderRole",
    "create_db_engine",
    "create_session_factory",
]
