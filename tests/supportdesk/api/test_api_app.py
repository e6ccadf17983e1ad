"""
Tests for create_app wiring, startup validation and request schemas.
"""

from __future__ import annotations

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient
from pydantic import ValidationError

from supportdesk.api import create_app
from supportdesk.api.schemas import ChatRequest
from supportdesk.config import Settings
from supportdesk.lib.exceptions import ConfigurationError
from supportdesk.services.chat_model import GeminiChatClient
from supportdesk.services.chat_service import NO_RESPONSE_FALLBACK


class TestCreateApp:
    def test_production_without_api_key_fails_fast(self):
        with pytest.raises(ConfigurationError):
            create_app(settings=Settings(environment="production", database_url="sqlite://"))

    def test_docs_disabled_in_production(self, chat_service):
        app = create_app(
            settings=Settings(environment="production", google_api_key="k"),
            chat_service=chat_service,
        )
        assert app.docs_url is None
        assert app.redoc_url is None

    def test_builds_default_service(self):
        app = create_app(settings=Settings(dev_mode=True, database_url="sqlite://"))
        service = app.state.chat_service
        assert isinstance(service.model_client, GeminiChatClient)
        assert service.model_client.configured is False

    @pytest.mark.asyncio
    async def test_dev_mode_without_key_falls_back_to_default_reply(self):
        app = create_app(settings=Settings(dev_mode=True, database_url="sqlite://"))
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post(
                "/api/chat/message",
                json={"message": "Hello", "conversationId": "a8c3e9d2-5b1f-4e7a-9c6d-3f2b1a0e9d8c"},
            )

        assert response.status_code == 201
        assert response.json()["data"]["message"] == NO_RESPONSE_FALLBACK

    @pytest.mark.asyncio
    async def test_lifespan_starts_and_stops_sweep(self, chat_service, rate_limiter, fake_clock):
        app = create_app(
            settings=Settings(dev_mode=True, rate_limit_sweep_seconds=0.01),
            chat_service=chat_service,
        )
        rate_limiter.check_rate_limit("stale")
        fake_clock.advance(3600)

        async with app.router.lifespan_context(app):
            await asyncio.sleep(0.05)

        assert len(rate_limiter) == 0


class TestChatRequest:
    def test_trims_message(self):
        assert ChatRequest(message="  hi  ").message == "hi"

    def test_alias_and_uuid_normalization(self):
        request = ChatRequest.model_validate(
            {"message": "hi", "conversationId": "3D5F7A91-2C4B-4E6D-8F0A-1B2C3D4E5F60"}
        )
        assert request.conversation_id == "3d5f7a91-2c4b-4e6d-8f0a-1b2c3d4e5f60"

    def test_blank_conversation_id_means_new_conversation(self):
        assert ChatRequest.model_validate({"message": "hi", "conversationId": "  "}).conversation_id is None

    @pytest.mark.parametrize(
        "payload",
        [{"message": ""}, {"message": "\n\t "}, {"message": "x" * 10001}, {"message": "hi", "conversationId": "123"}],
        ids=["empty", "whitespace", "too_long", "bad_uuid"],
    )
    def test_invalid(self, payload):
        with pytest.raises(ValidationError):
            ChatRequest.model_validate(payload)
