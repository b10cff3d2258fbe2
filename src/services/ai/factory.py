"""Narrator selection from settings."""

from typing import Optional

from src.config import settings
from src.core.logging import get_logger
from src.services.ai.base import AIProvider
from src.services.ai.gemini import GeminiProvider
from src.services.ai.mock import MockProvider

logger = get_logger(__name__)

DEFAULT_GEMINI_MODEL = "gemini-2.0-flash"


def _offline_narrator(reason: str) -> AIProvider:
    logger.warning("%s, story text will come from MockProvider", reason)
    return MockProvider()


def get_ai_provider(provider_name: Optional[str] = None) -> AIProvider:
    """Build the narrator named by ``provider_name`` or ``AI_PROVIDER``.

    The game stays playable without a model: a missing key or an unknown
    name yields the MockProvider.
    """
    name = (provider_name or settings.AI_PROVIDER or "mock").strip().lower()

    if name == "mock":
        return MockProvider()

    if name == "gemini":
        if not settings.AI_API_KEY:
            return _offline_narrator("AI_API_KEY is not set")
        model = settings.AI_MODEL or DEFAULT_GEMINI_MODEL
        logger.info("Narrator: Gemini (%s)", model)
        return GeminiProvider(api_key=settings.AI_API_KEY, model=model)

    return _offline_narrator(f"Unknown AI provider '{name}'")
