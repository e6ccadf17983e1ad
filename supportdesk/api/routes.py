"""
REST API Routes for SupportDesk.

Endpoints:
- POST /api/chat/message - Send a message, receive the assistant reply
- GET  /api/chat/history - Stored messages of a conversation

Guardrail, rate-limit and storage errors are raised from the service and
turned into envelopes by the exception handlers in supportdesk.api.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from supportdesk.api.dependencies import get_chat_service
from supportdesk.api.schemas import (
    ChatData,
    ChatRequest,
    HistoryMessageOut,
    HistoryOut,
    dump,
    success_response,
)
from supportdesk.lib.exceptions import ValidationError
from supportdesk.services.chat_service import ChatService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])


@router.post("/message", status_code=201)
async def send_message(
    body: ChatRequest,
    service: ChatService = Depends(get_chat_service),
) -> JSONResponse:
    """Run a user message through the guardrails and the chat model."""
    reply = await service.handle_message(body.message, body.conversation_id)
    data = ChatData(message=reply.message, conversation_id=reply.conversation_id)
    return success_response(201, "message sent", dump(data))


@router.get("/history")
async def get_history(
    conversation_id: str | None = Query(default=None, alias="conversationId"),
    service: ChatService = Depends(get_chat_service),
) -> JSONResponse:
    """Return the stored conversation, oldest message first."""
    if not conversation_id or not conversation_id.strip():
        raise ValidationError("conversationId is required")

    history = service.get_history(conversation_id.strip())
    data = HistoryOut(
        conversation_id=history.conversation_id,
        messages=[
            HistoryMessageOut(id=m.id, sender=m.sender, text=m.text, timestamp=m.timestamp)
            for m in history.messages
        ],
    )
    return success_response(200, "history retrieved", dump(data))
