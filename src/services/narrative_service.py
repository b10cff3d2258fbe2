"""Narrative service: the single gateway for all model calls.

Requests are normalised (no system role, no two consecutive messages of the
same role) and the token budget is validated before anything is sent. The
reply streams into a placeholder log entry; a failed stream removes the
placeholder again so the session never keeps a half-written line.
"""

from typing import Callable, Optional

from src.core.errors import GameError
from src.core.logging import get_logger
from src.services.ai.base import AIProvider, ChatMessage
from src.services.game_session import EntryType, GameSession, NarrativeOutcome

logger = get_logger(__name__)

MIN_MAX_TOKENS = 200
MAX_MAX_TOKENS = 3000
ALLOWED_ROLES = ("user", "assistant")


class NarrativeRequestError(GameError):
    """The request is malformed and was never sent."""


class NarrativeGenerationError(GameError):
    """The provider failed mid-request. Session state was rolled back."""


def validate_max_tokens(max_tokens: int) -> int:
    if not MIN_MAX_TOKENS <= max_tokens <= MAX_MAX_TOKENS:
        raise NarrativeRequestError(
            f"max_tokens must be within [{MIN_MAX_TOKENS}, {MAX_MAX_TOKENS}], got {max_tokens}"
        )
    return max_tokens


def normalize_messages(messages: list[ChatMessage]) -> list[ChatMessage]:
    """Merge consecutive same-role messages with a newline.

    Raises NarrativeRequestError for an empty list or any role other than
    user/assistant.
    """
    if not messages:
        raise NarrativeRequestError("messages must not be empty")

    merged: list[ChatMessage] = []
    for message in messages:
        if message.role not in ALLOWED_ROLES:
            raise NarrativeRequestError(f"Unsupported message role: {message.role}")
        if merged and merged[-1].role == message.role:
            merged[-1] = ChatMessage(role=message.role, content=f"{merged[-1].content}\n{message.content}")
        else:
            merged.append(ChatMessage(role=message.role, content=message.content))
    return merged


class NarrativeService:
    """Streams story text from an AIProvider into the session log."""

    def __init__(self, ai_provider: AIProvider, default_max_tokens: int = 2000) -> None:
        """Initialize the narrative service.

        Args:
            ai_provider: The AI provider to use for text generation.
            default_max_tokens: Budget for ordinary story turns.
        """
        self.ai = ai_provider
        self._default_max_tokens = validate_max_tokens(default_max_tokens)

    async def narrate(
        self,
        session: GameSession,
        messages: list[ChatMessage],
        max_tokens: Optional[int] = None,
        entry_type: EntryType = EntryType.DIALOGUE,
        finalize: Optional[Callable[[str], str]] = None,
    ) -> str:
        """Stream one reply into a new narrator log entry.

        ``finalize`` post-processes the complete text (e.g. stripping an XML
        envelope) before it is written for the last time.

        Returns:
            The final text stored in the log.

        Raises:
            NarrativeRequestError: Invalid request, or a stream already running.
            NarrativeGenerationError: Provider failure; placeholder removed.
        """
        budget = validate_max_tokens(max_tokens if max_tokens is not None else self._default_max_tokens)
        normalized = normalize_messages(messages)
        if session.is_generating:
            raise NarrativeRequestError("正在生成中，请稍候")

        placeholder = session.add_log("", "", entry_type)
        session.is_generating = True

        def on_update(content: str, done: bool) -> None:
            if done and finalize is not None:
                content = finalize(content)
            session.update_log(placeholder.id, content)

        try:
            raw = await self.ai.stream_completion(normalized, budget, on_update)
        except Exception as e:
            session.remove_log(placeholder.id)
            logger.warning("Narrative generation failed (%s): %s", self.ai.name, e)
            raise NarrativeGenerationError("故事生成失败，请重试") from e
        finally:
            session.is_generating = False

        text = finalize(raw) if finalize is not None else raw
        session.update_log(placeholder.id, text)
        return text

    async def play_turn(
        self,
        session: GameSession,
        action: str,
        max_tokens: Optional[int] = None,
    ) -> tuple[str, NarrativeOutcome]:
        """Player writes an action; the narrator answers; game effects apply."""
        character = session.require_character()
        action = action.strip()
        if not action:
            raise NarrativeRequestError("行动内容不能为空")

        player_entry = session.add_log(character.name, action, EntryType.DIALOGUE)
        messages = session.prompts.player_turn_messages(
            character,
            session.location,
            session.logs,
            action,
            relic_count=len(session.shop_state.purchased_keys),
        )
        try:
            text = await self.narrate(session, messages, max_tokens)
        except NarrativeRequestError:
            session.remove_log(player_entry.id)
            raise
        return text, session.process_narrative(text)
