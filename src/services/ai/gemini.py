"""Gemini AI provider implementation."""

from typing import Optional

import google.generativeai as genai

from src.core.logging import get_logger
from src.services.ai.base import AIProvider, ChatMessage, UpdateCallback

logger = get_logger(__name__)

# Gemini calls the assistant side "model"
ROLE_MAP = {"user": "user", "assistant": "model"}


class GeminiProvider(AIProvider):
    """AI provider using Google Gemini API."""

    def __init__(self, api_key: str, model: str = "gemini-2.0-flash") -> None:
        """Initialize the Gemini provider.

        Args:
            api_key: Google API key for Gemini.
            model: Model name to use.
        """
        self._api_key = api_key
        self._model_name = model
        self._model = None

        if self._api_key:
            genai.configure(api_key=self._api_key)
            self._model = genai.GenerativeModel(self._model_name)
            logger.info("GeminiProvider initialized with model: %s", self._model_name)

    @property
    def name(self) -> str:
        """Return the provider name."""
        return "gemini"

    def is_available(self) -> bool:
        """Check if the provider is available."""
        return bool(self._api_key) and self._model is not None

    @staticmethod
    def _to_contents(messages: list[ChatMessage]) -> list[dict]:
        return [
            {"role": ROLE_MAP.get(m.role, "user"), "parts": [m.content]}
            for m in messages
        ]

    async def stream_completion(
        self,
        messages: list[ChatMessage],
        max_tokens: int,
        on_update: Optional[UpdateCallback] = None,
    ) -> str:
        """Stream text from Gemini.

        Raises:
            RuntimeError: If API call fails or provider is not available.
        """
        if not self.is_available():
            raise RuntimeError("GeminiProvider is not available. Check API key.")

        assert self._model is not None

        generation_config = genai.types.GenerationConfig(
            max_output_tokens=max_tokens,
        )

        buffer = ""
        try:
            response = await self._model.generate_content_async(
                self._to_contents(messages),
                generation_config=generation_config,
                stream=True,
            )
            async for chunk in response:
                buffer += chunk.text
                if on_update:
                    on_update(buffer, False)
        except Exception as e:
            logger.error("Gemini API error: %s", e)
            raise RuntimeError(f"Gemini API error: {e}") from e

        if on_update:
            on_update(buffer, True)
        return buffer
