"""Tests for AI provider module."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.services.ai import AIProvider, ChatMessage, GeminiProvider, MockProvider, get_ai_provider
from src.services.ai.mock import MOCK_NARRATIVE_RESPONSE, MOCK_SUMMARY_RESPONSE


def _collect(provider: AIProvider, messages: list[ChatMessage]) -> tuple[str, list[tuple[str, bool]]]:
    updates: list[tuple[str, bool]] = []
    result = asyncio.run(
        provider.stream_completion(messages, 500, lambda content, done: updates.append((content, done)))
    )
    return result, updates


class TestMockProvider:
    """Tests for MockProvider class."""

    def test_mock_provider_name(self):
        provider = MockProvider()
        assert provider.name == "mock"

    def test_mock_provider_is_available(self):
        provider = MockProvider()
        assert provider.is_available() is True

    def test_streams_cumulative_chunks(self):
        """Every update carries the whole text so far; the last one is final."""
        provider = MockProvider(response="abcdefghij", chunk_size=4)
        result, updates = _collect(provider, [ChatMessage("user", "hi")])

        assert result == "abcdefghij"
        assert updates == [
            ("abcd", False),
            ("abcdefgh", False),
            ("abcdefghij", False),
            ("abcdefghij", True),
        ]

    def test_story_and_summary_replies(self):
        provider = MockProvider()
        story, _ = _collect(provider, [ChatMessage("user", "我走向喷泉")])
        summary, _ = _collect(provider, [ChatMessage("user", "请输出 <summary> 片段")])

        assert story == MOCK_NARRATIVE_RESPONSE
        assert summary == MOCK_SUMMARY_RESPONSE

    def test_without_callback(self):
        provider = MockProvider(response="ok")
        assert asyncio.run(provider.stream_completion([ChatMessage("user", "x")], 200)) == "ok"


class _FakeStream:
    def __init__(self, parts: list[str]) -> None:
        self._parts = parts

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for part in self._parts:
            yield MagicMock(text=part)


class TestGeminiProvider:
    """Tests for GeminiProvider class."""

    @patch("src.services.ai.gemini.genai")
    def test_gemini_provider_name(self, mock_genai: MagicMock):
        provider = GeminiProvider(api_key="test_key")
        assert provider.name == "gemini"

    @patch("src.services.ai.gemini.genai")
    def test_gemini_provider_not_available_without_key(self, mock_genai: MagicMock):
        provider = GeminiProvider(api_key="")
        assert provider.is_available() is False

    @patch("src.services.ai.gemini.genai")
    def test_gemini_provider_available_with_key(self, mock_genai: MagicMock):
        provider = GeminiProvider(api_key="test_key")
        assert provider.is_available() is True

    @patch("src.services.ai.gemini.genai")
    def test_stream_maps_roles_and_accumulates(self, mock_genai: MagicMock):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content_async = AsyncMock(return_value=_FakeStream(["你好，", "冒险者。"]))
        provider = GeminiProvider(api_key="test_key")

        result, updates = _collect(
            provider, [ChatMessage("user", "hi"), ChatMessage("assistant", "hello"), ChatMessage("user", "go")]
        )

        assert result == "你好，冒险者。"
        assert updates[-1] == ("你好，冒险者。", True)
        contents = model.generate_content_async.call_args.args[0]
        assert [c["role"] for c in contents] == ["user", "model", "user"]
        assert model.generate_content_async.call_args.kwargs["stream"] is True

    @patch("src.services.ai.gemini.genai")
    def test_api_error_becomes_runtime_error(self, mock_genai: MagicMock):
        model = mock_genai.GenerativeModel.return_value
        model.generate_content_async = AsyncMock(side_effect=Exception("quota"))
        provider = GeminiProvider(api_key="test_key")

        with pytest.raises(RuntimeError, match="quota"):
            asyncio.run(provider.stream_completion([ChatMessage("user", "hi")], 500))

    @patch("src.services.ai.gemini.genai")
    def test_unavailable_provider_raises(self, mock_genai: MagicMock):
        provider = GeminiProvider(api_key="")
        with pytest.raises(RuntimeError):
            asyncio.run(provider.stream_completion([ChatMessage("user", "hi")], 500))


class TestAIProviderFactory:
    """Tests for AI provider factory."""

    def test_factory_returns_mock_by_name(self):
        provider = get_ai_provider("mock")
        assert isinstance(provider, AIProvider)
        assert provider.name == "mock"

    @patch("src.services.ai.factory.settings")
    def test_factory_gemini_without_key_falls_back(self, mock_settings: MagicMock):
        mock_settings.AI_API_KEY = None
        provider = get_ai_provider("gemini")
        assert isinstance(provider, MockProvider)

    @patch("src.services.ai.gemini.genai")
    @patch("src.services.ai.factory.settings")
    def test_factory_gemini_with_key(self, mock_settings: MagicMock, mock_genai: MagicMock):
        mock_settings.AI_API_KEY = "key"
        mock_settings.AI_MODEL = None
        provider = get_ai_provider("gemini")
        assert isinstance(provider, GeminiProvider)

    def test_factory_unknown_provider_falls_back(self):
        assert isinstance(get_ai_provider("nope"), MockProvider)
