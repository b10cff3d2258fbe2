"""EventBus tests"""

from src.core.event_bus import EventBus, GameEvent, MAX_DEPTH
from src.core.event_types import EventTypes


def _event(event_type: str = EventTypes.AUTO_SAVE_REQUESTED, source: str = "combat_service", **data) -> GameEvent:
    return GameEvent(event_type=event_type, data=data, source=source)


class TestSubscribeEmit:
    def test_basic_emit(self):
        bus = EventBus()
        received = []
        bus.subscribe(EventTypes.AUTO_SAVE_REQUESTED, lambda e: received.append(e))
        bus.emit(_event(reason="victory"))
        assert len(received) == 1
        assert received[0].data["reason"] == "victory"

    def test_handlers_run_in_subscription_order(self):
        bus = EventBus()
        results = []
        bus.subscribe(EventTypes.LEVEL_UP, lambda e: results.append("save"))
        bus.subscribe(EventTypes.LEVEL_UP, lambda e: results.append("notify"))
        bus.emit(_event(EventTypes.LEVEL_UP, level=2))
        assert results == ["save", "notify"]

    def test_no_handlers(self):
        """Nobody listening is not an error"""
        bus = EventBus()
        bus.emit(_event(EventTypes.COMBAT_STARTED))

    def test_unsubscribe(self):
        bus = EventBus()
        received = []
        handler = lambda e: received.append(e)  # noqa: E731
        bus.subscribe(EventTypes.ITEM_USED, handler)
        bus.unsubscribe(EventTypes.ITEM_USED, handler)
        bus.emit(_event(EventTypes.ITEM_USED, source="game_session"))
        assert received == []

    def test_unsubscribe_nonexistent(self):
        """Unknown handler: warning only"""
        bus = EventBus()
        bus.unsubscribe(EventTypes.ITEM_USED, lambda e: None)


class TestDepthLimit:
    def test_max_depth_prevents_infinite_loop(self):
        bus = EventBus()
        call_count = 0

        def recursive_handler(event: GameEvent):
            nonlocal call_count
            call_count += 1
            # a new source each time so the duplicate guard does not trigger
            bus.emit(_event("chain", source=f"handler_{call_count}"))

        bus.subscribe("chain", recursive_handler)
        bus.emit(_event("chain", source="origin"))

        assert call_count == MAX_DEPTH


class TestDuplicatePrevention:
    def test_same_source_same_event_blocked(self):
        bus = EventBus()
        count = 0

        def handler(event: GameEvent):
            nonlocal count
            count += 1
            bus.emit(_event(source="game_session"))

        bus.subscribe(EventTypes.AUTO_SAVE_REQUESTED, handler)
        bus.emit(_event(source="game_session"))
        assert count == 1

    def test_different_source_allowed(self):
        bus = EventBus()
        received = []
        bus.subscribe(EventTypes.AUTO_SAVE_REQUESTED, lambda e: received.append(e.source))
        bus.emit(_event(source="game_session"))
        bus.emit(_event(source="combat_service"))
        assert received == ["game_session", "combat_service"]


class TestResetChain:
    def test_reset_allows_re_emit(self):
        bus = EventBus()
        received = []
        bus.subscribe(EventTypes.COMBAT_ENDED, lambda e: received.append(1))
        bus.emit(_event(EventTypes.COMBAT_ENDED))
        bus.reset_chain()
        bus.emit(_event(EventTypes.COMBAT_ENDED))
        assert len(received) == 2


class TestHandlerError:
    def test_handler_exception_doesnt_stop_others(self):
        bus = EventBus()
        results = []

        def bad_handler(e):
            raise ValueError("boom")

        bus.subscribe(EventTypes.QUEST_COMPLETED, bad_handler)
        bus.subscribe(EventTypes.QUEST_COMPLETED, lambda e: results.append("ok"))
        bus.emit(_event(EventTypes.QUEST_COMPLETED, source="game_session"))
        assert results == ["ok"]


class TestClear:
    def test_clear_removes_all(self):
        bus = EventBus()
        bus.subscribe(EventTypes.LEVEL_UP, lambda e: None)
        bus.subscribe(EventTypes.AUTO_SAVE_REQUESTED, lambda e: None)
        assert bus.handler_count == 2
        bus.clear()
        assert bus.handler_count == 0


class TestGameChains:
    def test_victory_chain_saves_once(self):
        bus = EventBus()
        saves = []

        def on_combat_ended(event: GameEvent):
            bus.emit(_event(source="combat_service", reason="victory"))

        bus.subscribe(EventTypes.COMBAT_ENDED, on_combat_ended)
        bus.subscribe(EventTypes.AUTO_SAVE_REQUESTED, lambda e: saves.append(e._depth))

        bus.emit(_event(EventTypes.COMBAT_ENDED))
        bus.emit(_event(reason="victory"))

        assert saves == [1]
        assert MAX_DEPTH > 1
