"""Abstract base class for AI providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

# on_update(content, done): content is the cumulative text so far
UpdateCallback = Callable[[str, bool], None]


@dataclass
class ChatMessage:
    """One turn of the conversation sent to the model.

    Only "user" and "assistant" are accepted by the narrative service.
    """

    role: str
    content: str


class AIProvider(ABC):
    """Abstract base class for AI providers.

    All AI providers must implement this interface to ensure
    consistent behavior across different LLM APIs.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is available and configured."""
        ...

    @abstractmethod
    async def stream_completion(
        self,
        messages: list[ChatMessage],
        max_tokens: int,
        on_update: Optional[UpdateCallback] = None,
    ) -> str:
        """Stream a completion for a role-alternating message list.

        Args:
            messages: Conversation so far, oldest first.
            max_tokens: Maximum tokens for the response.
            on_update: Called with the cumulative buffer after every chunk,
                and once more with done=True at the end.

        Returns:
            The full generated text.
        """
        ...
