"""Mock AI provider for testing and fallback."""

from typing import Optional

from src.services.ai.base import AIProvider, ChatMessage, UpdateCallback

MOCK_NARRATIVE_RESPONSE = (
    "你环顾四周，午后的阳光洒在王都的石板路上。"
    "「需要帮忙吗，冒险者？」一位商贩笑着向你招手。"
    "*新的冒险就在前方。*"
)
MOCK_SUMMARY_RESPONSE = (
    "<summary>\n你在这次探险中稳扎稳打，"
    "「莉亚：下次别再乱冲啦！」她一边抱怨一边替你收拾战利品。\n</summary>"
)


class MockProvider(AIProvider):
    """Mock AI provider that streams static text.

    Used for testing and as a fallback when no API key is configured.
    """

    def __init__(self, response: Optional[str] = None, chunk_size: int = 16) -> None:
        self._response = response
        self._chunk_size = chunk_size

    @property
    def name(self) -> str:
        """Return the provider name."""
        return "mock"

    def is_available(self) -> bool:
        """Check if the provider is available."""
        return True

    def _pick_response(self, messages: list[ChatMessage]) -> str:
        if self._response is not None:
            return self._response
        last = messages[-1].content if messages else ""
        if "<summary>" in last:
            return MOCK_SUMMARY_RESPONSE
        return MOCK_NARRATIVE_RESPONSE

    async def stream_completion(
        self,
        messages: list[ChatMessage],
        max_tokens: int,
        on_update: Optional[UpdateCallback] = None,
    ) -> str:
        """Stream the canned response in fixed-size chunks."""
        text = self._pick_response(messages)
        buffer = ""
        for start in range(0, len(text), self._chunk_size):
            buffer += text[start : start + self._chunk_size]
            if on_update:
                on_update(buffer, False)
        if on_update:
            on_update(buffer, True)
        return buffer
