"""EventBus - side-effect channel between the game services

GameSession and CombatService never call SaveService directly. A purchase,
a quest hand-in or a combat victory emits ``AUTO_SAVE_REQUESTED``; the save
service subscribes to it and writes slot 0. Combat milestones
(``COMBAT_STARTED``, ``COMBAT_ENDED``, ``COMBAT_SESSION_CLOSED``) and the
progression events travel the same way for any listener that wants them.

Rules:
- Events carry ids and small scalars (``reason``, ``battles``, ``level``),
  never Character or CombatState snapshots.
- A player action is one chain: services call ``reset_chain`` before acting.
- Within a chain a source may emit a given event type once, so one action
  auto-saves at most once per source.
- Nesting is capped at MAX_DEPTH.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable

from src.core.logging import get_logger

logger = get_logger(__name__)

# action -> COMBAT_ENDED / AUTO_SAVE_REQUESTED -> save handler; no handler here emits deeper
MAX_DEPTH = 3


@dataclass
class GameEvent:
    """One emitted event.

    Args:
        event_type: an ``EventTypes`` value
        data: payload, e.g. ``{"reason": "victory"}`` or ``{"battles": 3}``
        source: ``"game_session"`` or ``"combat_service"``
    """

    event_type: str
    data: dict[str, Any]
    source: str

    _depth: int = field(default=0, repr=False)


EventHandler = Callable[[GameEvent], None]


class EventBus:
    """Synchronous, in-process bus shared by one game's services.

    Usage:
        bus = EventBus()
        bus.subscribe(EventTypes.AUTO_SAVE_REQUESTED, save_service._on_auto_save_requested)
        bus.emit(
            GameEvent(
                event_type=EventTypes.AUTO_SAVE_REQUESTED,
                data={"reason": "victory"},
                source="combat_service",
            )
        )
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)
        self._current_depth = 0
        self._emitted_in_chain: set[str] = set()  # "source:event_type"

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)
        logger.debug("EventBus subscribe: %s -> %s", event_type, handler.__qualname__)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)
            logger.debug("EventBus unsubscribe: %s -> %s", event_type, handler.__qualname__)
        else:
            logger.warning("Handler not registered: %s -> %s", event_type, handler.__qualname__)

    def emit(self, event: GameEvent) -> None:
        """Run every handler of ``event.event_type`` now, in subscription order.

        Dropped with a warning: events past MAX_DEPTH, and a repeat of the
        same source/event_type within the current chain. A failing handler
        is logged and the remaining handlers still run.
        """
        if self._current_depth >= MAX_DEPTH:
            logger.warning(
                "EventBus depth exceeded (%d): %s:%s dropped",
                MAX_DEPTH,
                event.source,
                event.event_type,
            )
            return

        chain_key = f"{event.source}:{event.event_type}"
        if chain_key in self._emitted_in_chain:
            logger.warning("EventBus duplicate event blocked: %s", chain_key)
            return

        self._emitted_in_chain.add(chain_key)
        event._depth = self._current_depth

        handlers = self._handlers.get(event.event_type, [])
        if not handlers:
            logger.debug("EventBus: no subscribers for %s", event.event_type)
            return

        logger.info(
            "EventBus emit: %s (source=%s, depth=%d, handlers=%d)",
            event.event_type,
            event.source,
            self._current_depth,
            len(handlers),
        )

        self._current_depth += 1
        try:
            for handler in list(handlers):
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        "EventBus handler error: %s (event=%s)",
                        handler.__qualname__,
                        event.event_type,
                    )
        finally:
            self._current_depth -= 1

    def reset_chain(self) -> None:
        """Start a new player action."""
        self._emitted_in_chain.clear()
        self._current_depth = 0

    def clear(self) -> None:
        """Drop all subscriptions (app shutdown, tests)."""
        self._handlers.clear()
        self.reset_chain()

    @property
    def handler_count(self) -> int:
        return sum(len(h) for h in self._handlers.values())
