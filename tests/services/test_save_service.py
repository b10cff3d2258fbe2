"""Save slots: round trip, old-save migration, previews and auto-save."""

import random
from dataclasses import replace

import pytest

from conftest import TestSession
from src.core.character.models import ClassType, Gender
from src.core.combat.models import CombatState
from src.core.event_bus import GameEvent
from src.core.event_types import EventTypes
from src.services.save_service import (
    AUTO_SAVE_SLOT,
    MAX_SLOTS,
    SaveService,
    SaveStore,
    character_from_dict,
    character_to_dict,
    slot_key,
)


@pytest.fixture()
def store(db_session) -> SaveStore:
    return SaveStore(TestSession)


@pytest.fixture()
def started(game_session):
    game_session.create_character("艾伦", ClassType.KNIGHT, Gender.MALE)
    return game_session


@pytest.fixture()
def saves(store, started, event_bus) -> SaveService:
    return SaveService(store, started, event_bus, rng=random.Random(3))


class TestSlotKey:
    def test_range(self):
        assert slot_key(0) == "aetheria_save_slot_0"
        assert slot_key(MAX_SLOTS - 1).endswith("5")
        with pytest.raises(ValueError):
            slot_key(MAX_SLOTS)
        with pytest.raises(ValueError):
            slot_key(-1)


class TestRoundTrip:
    def test_save_then_load(self, saves, started):
        started.purchase_item("RUSTY_DAGGER")
        started.accept_quest("quest_herb")
        started.set_location("郊外 - 田野")
        character, logs = started.character, list(started.logs)
        purchased = started.shop_state.purchased_keys

        saves.save(1)
        started.character = replace(character, gold=0, inventory=[])
        started.add_log("", "存档之后的故事")
        started.combat_state = CombatState(is_in_combat=True)

        assert saves.load(1) is True
        assert started.character == character
        assert started.logs == logs
        assert started.location == "郊外 - 田野"
        assert started.shop_state.purchased_keys == purchased
        assert started.combat_state == CombatState()

    def test_empty_slot(self, saves):
        assert saves.load(3) is False

    def test_version_mismatch_still_loads(self, saves, store, started):
        saves.save(2)
        data = store.get(slot_key(2))
        data["version"] = "0.9.0"
        store.put(slot_key(2), data)

        assert saves.load(2) is True
        assert started.character.name == "艾伦"


class TestOldSaves:
    def _raw(self, started, *missing):
        raw = character_to_dict(replace(started.character, level=3))
        for key in missing:
            raw.pop(key)
        return raw

    def test_missing_hp_is_filled_below_max(self, started):
        raw = self._raw(started, "current_hp", "max_hp")
        character = character_from_dict(raw, rng=random.Random(1))

        assert character.max_hp > 0
        assert int(character.max_hp * 0.7) <= character.current_hp <= character.max_hp

    def test_missing_ap_uses_snapshot(self, started):
        raw = self._raw(started, "current_ap", "max_ap")
        character = character_from_dict(raw, combat_ap={"current_ap": 42, "max_ap": 110})
        assert (character.current_ap, character.max_ap) == (42, 110)

    def test_missing_ap_without_snapshot_uses_level_max(self, started):
        raw = self._raw(started, "current_ap", "max_ap")
        character = character_from_dict(raw)
        assert character.current_ap == character.max_ap == 110


class TestPreviews:
    def test_preview_and_list(self, saves, started):
        started.accept_quest("quest_slime")
        saves.save(1)
        saves.save(4)

        preview = saves.preview(1)
        assert preview.character_name == "艾伦"
        assert preview.class_type == ClassType.KNIGHT.value
        assert preview.quests_active == 1
        assert preview.message_count == len(started.logs)
        assert [p.slot for p in saves.list_previews()] == [1, 4]
        assert saves.preview(2) is None

    def test_delete(self, saves):
        saves.save(1)
        assert saves.delete(1) is True
        assert saves.delete(1) is False
        assert saves.preview(1) is None


class TestAutoSave:
    def test_requested_event_writes_slot_zero(self, saves, started):
        started.purchase_item("BREAD")
        assert saves.preview(AUTO_SAVE_SLOT) is not None

    def test_no_character_no_save(self, store, game_session, event_bus):
        service = SaveService(store, game_session, event_bus)
        event_bus.emit(GameEvent(event_type=EventTypes.AUTO_SAVE_REQUESTED, data={}, source="test"))
        assert service.preview(AUTO_SAVE_SLOT) is None
