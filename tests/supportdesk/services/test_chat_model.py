"""
Tests for the chat-model client adapter.

The google-generativeai SDK is mocked; no network calls are made.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from supportdesk.lib.exceptions import UpstreamModelError
from supportdesk.models import ChatMessage
from supportdesk.services.chat_model import (
    SUPPORT_SYSTEM_PROMPT,
    GeminiChatClient,
    to_model_history,
)


class _NoText:
    @property
    def text(self):
        raise ValueError("response has no text")


def _client_with_chat(chat) -> GeminiChatClient:
    model = MagicMock()
    model.start_chat.return_value = chat
    with patch("supportdesk.services.chat_model.genai") as genai:
        genai.GenerativeModel.return_value = model
        client = GeminiChatClient(api_key="test-key", model_name="gemini-test")
    return client


class TestToModelHistory:
    def test_converts_roles_and_parts(self):
        messages = [
            ChatMessage(sender="user", text="Hi"),
            ChatMessage(sender="model", text="Hello! How can I help?"),
        ]
        assert to_model_history(messages) == [
            {"role": "user", "parts": [{"text": "Hi"}]},
            {"role": "model", "parts": [{"text": "Hello! How can I help?"}]},
        ]

    def test_empty(self):
        assert to_model_history([]) == []


class TestGeminiChatClient:
    def test_configures_sdk(self):
        with patch("supportdesk.services.chat_model.genai") as genai:
            client = GeminiChatClient(api_key="test-key", model_name="gemini-test")

        genai.configure.assert_called_once_with(api_key="test-key")
        genai.GenerativeModel.assert_called_once_with(
            model_name="gemini-test",
            system_instruction=SUPPORT_SYSTEM_PROMPT,
        )
        assert client.configured is True

    def test_without_api_key_is_unconfigured(self):
        with patch("supportdesk.services.chat_model.genai") as genai:
            client = GeminiChatClient(api_key=None)
        genai.configure.assert_not_called()
        assert client.configured is False

    @pytest.mark.asyncio
    async def test_unconfigured_generate_raises(self):
        client = GeminiChatClient(api_key=None)
        with pytest.raises(UpstreamModelError):
            await client.generate([], "hi")

    @pytest.mark.asyncio
    async def test_generate_returns_text_and_passes_history(self):
        chat = MagicMock()
        chat.send_message_async = AsyncMock(return_value=SimpleNamespace(text="Sure thing!"))
        client = _client_with_chat(chat)
        history = [{"role": "user", "parts": [{"text": "Hi"}]}]

        reply = await client.generate(history, "Where is my order?")

        assert reply == "Sure thing!"
        client._model.start_chat.assert_called_once_with(history=history)
        chat.send_message_async.assert_awaited_once_with("Where is my order?")

    @pytest.mark.asyncio
    async def test_no_text_returns_none(self):
        chat = MagicMock()
        chat.send_message_async = AsyncMock(return_value=_NoText())
        client = _client_with_chat(chat)

        assert await client.generate([], "hi") is None

    @pytest.mark.asyncio
    async def test_empty_text_returns_none(self):
        chat = MagicMock()
        chat.send_message_async = AsyncMock(return_value=SimpleNamespace(text=""))
        client = _client_with_chat(chat)

        assert await client.generate([], "hi") is None

    @pytest.mark.asyncio
    async def test_sdk_failure_raises_upstream_error(self):
        chat = MagicMock()
        chat.send_message_async = AsyncMock(side_effect=RuntimeError("quota exceeded"))
        client = _client_with_chat(chat)

        with pytest.raises(UpstreamModelError):
            await client.generate([], "hi")
