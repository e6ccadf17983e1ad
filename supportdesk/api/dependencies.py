"""
FastAPI dependencies.
"""

from fastapi import Request

from supportdesk.services.chat_service import ChatService


def get_chat_service(request: Request) -> ChatService:
    """The ChatService created by create_app and stored on app.state."""
    return request.app.state.chat_service
