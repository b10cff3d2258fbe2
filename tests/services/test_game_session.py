"""GameSession: character lifecycle, log, inventory, quests, shop, dialogue tick."""

from dataclasses import replace

import pytest

from src.core.character.models import ClassType, Gender, ItemType, MAX_GOLD
from src.core.combat.models import CombatState
from src.core.errors import ActionRejectedError, NoCharacterError, UnknownItemError
from src.core.event_types import EventTypes
from src.core.shop import LEGENDARY_SHOP_ITEMS, LEGENDARY_SHOP_PRICE, ShopState
from src.core.world.regions import DEFAULT_LOCATION
from src.services.game_session import STARTING_GOLD, EntryType, LogEntry


def _recorder(event_bus, *event_types):
    received = []
    for event_type in event_types:
        event_bus.subscribe(event_type, lambda e: received.append(e))
    return received


@pytest.fixture()
def started(game_session):
    game_session.create_character("艾伦", ClassType.KNIGHT, Gender.MALE)
    return game_session


class TestCreateCharacter:
    def test_fresh_character(self, started):
        character = started.character
        assert character.level == 1
        assert character.gold == STARTING_GOLD
        assert character.current_ap == character.max_ap == 100
        assert character.current_hp == character.max_hp == 120
        assert character.stats.STR == 10

    def test_opening_greeting_logged(self, started):
        assert len(started.logs) == 1
        assert started.logs[0].speaker == ""
        assert "艾伦" in started.logs[0].text
        assert started.location == DEFAULT_LOCATION

    def test_forest_opening_moves_the_party(self, game_session):
        game_session.create_character("莉娜", ClassType.SCHOLAR, Gender.FEMALE, opening_id="forest")
        assert game_session.opening == "forest"
        assert game_session.location == "迷雾森林 - 深处"

    def test_unknown_opening_falls_back(self, game_session):
        game_session.create_character("莉娜", ClassType.SCHOLAR, Gender.FEMALE, opening_id="moon")
        assert game_session.opening == "main"

    def test_blank_name_rejected(self, game_session):
        with pytest.raises(ValueError):
            game_session.create_character("   ", ClassType.KNIGHT, Gender.MALE)

    def test_shop_stocked(self, started):
        assert started.shop_state.current_item_key in LEGENDARY_SHOP_ITEMS

    def test_operations_need_a_character(self, game_session):
        with pytest.raises(NoCharacterError):
            game_session.use_item("x")


class TestLog:
    def test_update_and_remove(self, started):
        entry = started.add_log("", "……")
        started.update_log(entry.id, "完整的故事")
        assert started.logs[-1].text == "完整的故事"
        assert started.remove_log(entry.id) is True
        assert started.remove_log(entry.id) is False

    def test_log_entry_round_trip_and_unknown_type(self):
        entry = LogEntry("艾伦", "你好", EntryType.NARRATION)
        assert LogEntry.from_dict(entry.to_dict()) == entry
        assert LogEntry.from_dict({"speaker": "", "text": "x", "type": "poem"}).type == EntryType.DIALOGUE


class TestLocation:
    def test_danger_warning_once_per_region(self, started, event_bus):
        moves = _recorder(event_bus, EventTypes.LOCATION_CHANGED)

        warning = started.set_location("古代遗迹 - 大厅")
        again = started.set_location("古代遗迹 - 禁地")

        assert warning is not None
        assert again is None
        assert started.logs[-1].type == EntryType.SYSTEM
        assert len(moves) == 2

    def test_safe_region(self, started):
        assert started.set_location("王都阿斯拉 - 商业区") is None


class TestInventory:
    def test_purchase_and_eat(self, started):
        item = started.purchase_item("STAMINA_STEW")
        assert started.character.gold == STARTING_GOLD - 70
        assert started.logs[-1].type == EntryType.SYSTEM

        started.character = replace(started.character, current_ap=20)
        character = started.use_item(item.id)

        # price 70: 30% of 100 + 15
        assert character.current_ap == 65
        assert character.inventory == []

    def test_purchase_with_explicit_price(self, started):
        started.purchase_item("BREAD", price=0)
        assert started.character.gold == STARTING_GOLD

    def test_not_enough_gold(self, started):
        with pytest.raises(ActionRejectedError):
            started.purchase_item("ARCANE_TONIC")
        assert started.character.inventory == []

    def test_unknown_key(self, started):
        with pytest.raises(UnknownItemError):
            started.purchase_item("NOPE")

    def test_equipment_cannot_be_used(self, started):
        dagger = started.items.create_instance("RUSTY_DAGGER")
        started.add_item(dagger)
        assert started.character.stats_bonus.STR == 1
        with pytest.raises(ActionRejectedError):
            started.use_item(dagger.id)

    def test_potion_outside_combat_does_not_heal(self, started):
        potion = started.items.create_instance("POTION")
        started.add_item(potion)
        started.character = replace(started.character, current_ap=50)
        assert started.use_item(potion.id).current_ap == 50

    def test_remove_item_drops_bonus(self, started):
        dagger = started.items.create_instance("RUSTY_DAGGER")
        started.add_item(dagger)
        started.remove_item(dagger.id)
        assert started.character.stats_bonus.STR == 0

    def test_purchase_requests_auto_save(self, started, event_bus):
        saves = _recorder(event_bus, EventTypes.AUTO_SAVE_REQUESTED)
        started.purchase_item("BREAD")
        assert saves[0].data["reason"] == "purchase"


class TestQuests:
    def test_accept(self, started):
        assert started.accept_quest("quest_slime") is True
        assert started.accept_quest("quest_slime") is False
        assert started.character.active_quests == ["quest_slime"]

    def test_unknown_quest(self, started):
        with pytest.raises(ValueError):
            started.accept_quest("quest_dragon")

    def test_complete(self, started):
        started.accept_quest("quest_herb")
        assert started.complete_quest("quest_herb") is True
        assert started.character.active_quests == []
        assert started.character.completed_quests == ["quest_herb"]
        assert started.complete_quest("quest_herb") is False


class TestLegendaryShop:
    def test_purchase_relic(self, started):
        started.character = replace(started.character, gold=LEGENDARY_SHOP_PRICE + 5)
        key = started.shop_state.current_item_key

        assert started.purchase_shop_item() == key
        assert started.character.gold == 5
        assert started.shop_state.purchased_keys == (key,)
        assert started.character.stats_bonus == started.items.require(key).stat_bonus
        assert all(item.template_key != key for item in started.character.inventory)

    def test_overlord_proof(self, started):
        started.shop_state = ShopState(purchased_keys=LEGENDARY_SHOP_ITEMS)
        proof = started.claim_overlord_proof()
        assert proof.item_type == ItemType.KEY
        assert started.shop_state.achievement_claimed is True
        with pytest.raises(ActionRejectedError):
            started.claim_overlord_proof()


class TestProcessNarrative:
    def test_dialogue_tick(self, started):
        started.character = replace(started.character, current_ap=50)

        outcome = started.process_narrative("你漫步在王都的街道上，微风拂面。")

        assert started.character.current_ap == 58
        assert started.character.exp == 3
        assert started.character.current_hp <= started.character.max_hp
        assert outcome.notifications == []
        assert outcome.levels_gained == 0

    def test_no_ap_recovery_in_combat(self, started):
        started.character = replace(started.character, current_ap=50)
        started.combat_state = CombatState(is_in_combat=True)
        started.process_narrative("你漫步在街道上。")
        assert started.character.current_ap == 50

    def test_quest_completion_rewards(self, started, event_bus):
        completed = _recorder(event_bus, EventTypes.QUEST_COMPLETED)
        saves = _recorder(event_bus, EventTypes.AUTO_SAVE_REQUESTED)
        started.accept_quest("quest_slime")

        outcome = started.process_narrative("你击败了史莱姆。")

        assert outcome.completed_quests == ["quest_slime"]
        assert started.character.completed_quests == ["quest_slime"]
        assert started.character.gold >= STARTING_GOLD + 150
        assert completed[0].data["quest_ids"] == ["quest_slime"]
        assert saves[0].data["reason"] == "quest"

    def test_level_up_notification(self, started, event_bus):
        levels = _recorder(event_bus, EventTypes.LEVEL_UP)
        started.character = replace(started.character, exp=99)

        outcome = started.process_narrative("你漫步在街道上。")

        assert outcome.levels_gained == 1
        assert started.character.level == 2
        assert started.character.max_ap == 105
        assert "升级" in outcome.notifications[-1]
        assert levels[0].data["level"] == 2

    def test_gold_is_clamped(self, started):
        started.character = replace(started.character, gold=MAX_GOLD)
        started.process_narrative("商人付给你 30 枚金币。")
        assert started.character.gold == MAX_GOLD

    def test_defeat_text_zeroes_hp(self, started):
        started.process_narrative("你眼前一黑，失去意识。")
        assert started.character.current_hp == 0


class TestRestore:
    def test_restore_recomputes_bonus_and_drops_combat(self, started):
        character = started.character
        started.combat_state = CombatState(is_in_combat=True)

        started.restore(
            character=character,
            logs=[LogEntry("", "旧日的故事")],
            location="郊外 - 田野",
            opening="",
            shop_state=ShopState(purchased_keys=("FORTUNE_COIN",), next_refresh_at=0.0),
        )

        assert started.combat_state == CombatState()
        assert started.character.stats_bonus.LUCK == 6
        assert started.opening == "main"
        assert started.logs[0].text == "旧日的故事"
        assert started.shop_state.current_item_key != "FORTUNE_COIN"
