"""
Pydantic schemas and response envelopes for the SupportDesk API.

Every response, success or failure, uses the same envelope:

    {"code": <HTTP status>, "message": <str>, "data": <payload | null>}
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_REQUEST_MESSAGE_LENGTH = 10000

# =============================================================================
# Envelope helpers
# =============================================================================


class ApiResponse(BaseModel):
    """Standard response envelope."""

    code: int
    message: str
    data: Any = None


def success_response(code: int, message: str, data: Any) -> JSONResponse:
    body = ApiResponse(code=code, message=message, data=data)
    return JSONResponse(status_code=code, content=jsonable_encoder(body))


def error_response(
    code: int,
    message: str,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ApiResponse(code=code, message=message, data=None)
    return JSONResponse(status_code=code, content=jsonable_encoder(body), headers=headers)


# =============================================================================
# Chat Schemas
# =============================================================================


class ChatRequest(BaseModel):
    """Request body for POST /api/chat/message."""

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(..., max_length=MAX_REQUEST_MESSAGE_LENGTH)
    conversation_id: str | None = Field(default=None, alias="conversationId")

    @field_validator("message")
    @classmethod
    def validate_message(cls, v: str) -> str:
        """Reject empty or whitespace-only messages."""
        v = v.strip()
        if not v:
            raise ValueError("message cannot be empty")
        return v

    @field_validator("conversation_id")
    @classmethod
    def validate_conversation_id(cls, v: str | None) -> str | None:
        """Blank means "start a new conversation"; anything else must be a UUID."""
        if v is None or not v.strip():
            return None
        try:
            return str(uuid.UUID(v.strip()))
        except ValueError as e:
            raise ValueError("conversationId must be a valid UUID") from e


class ChatData(BaseModel):
    """Payload of a successful chat message response."""

    model_config = ConfigDict(populate_by_name=True)

    message: str
    conversation_id: str = Field(serialization_alias="conversationId")


class HistoryMessageOut(BaseModel):
    id: int
    sender: str
    text: str
    timestamp: datetime


class HistoryOut(BaseModel):
    """Payload of GET /api/chat/history."""

    conversation_id: str = Field(serialization_alias="conversationId")
    messages: list[HistoryMessageOut]


def dump(model: BaseModel) -> dict[str, Any]:
    """Serialize a payload model with its camelCase aliases."""
    return model.model_dump(mode="json", by_alias=True)
