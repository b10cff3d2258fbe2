"""Combat number functions."""

import random
from dataclasses import replace

import pytest

from conftest import make_character
from src.core.character.models import CharacterStats, Item, ItemType, Rarity
from src.core.combat import stats
from src.core.combat.config import DEFAULT_COMBAT_CONFIG


class TestAttackPower:
    def test_weighted_sum_plus_level(self):
        character = make_character(
            stats=CharacterStats(STR=10, DEX=5, INT=4, CHA=7, LUCK=4), level=1
        )
        # 20 + 7.5 + 4 + 3.5 + 4.8 = 39.8, + 2 -> floor 41
        assert stats.attack_power(character) == 41

    def test_bonus_is_included(self):
        base = make_character(stats=CharacterStats(STR=10))
        boosted = replace(base, stats_bonus=CharacterStats(STR=5))
        assert stats.attack_power(boosted) - stats.attack_power(base) == 10


class TestActionPoints:
    def test_max_ap_by_level(self):
        assert stats.max_ap(1) == 100
        assert stats.max_ap(2) == 105
        assert stats.max_ap(99) == 590

    def test_max_ap_is_monotonic(self):
        values = [stats.max_ap(level) for level in range(1, 100)]
        assert values == sorted(values)
        assert len(set(values)) == len(values)

    def test_recover_ap_caps_at_max(self):
        assert stats.recover_ap(50, 100) == 58
        assert stats.recover_ap(97, 100) == 100

    def test_can_perform_action(self):
        assert stats.can_perform_action(1, "attack") is True
        assert stats.can_perform_action(0, "defend") is False
        assert stats.can_perform_action(29, "encounter") is False
        assert stats.can_perform_action(30, "encounter") is True

    def test_unknown_action_rejected(self):
        with pytest.raises(ValueError):
            stats.can_perform_action(50, "dance")

    def test_consume_ap_never_negative(self):
        assert stats.consume_ap(50, "attack") == 30
        assert stats.consume_ap(5, "attack") == 0
        assert stats.consume_ap(50, "encounter") == 20


class TestFoodRecovery:
    @pytest.mark.parametrize(
        "price, expected",
        [
            (25, 15),  # 10% + 5
            (35, 15),
            (50, 23),  # 15% + 8
            (65, 32),  # 20% + 12
            (120, 45),  # 30% + 15
        ],
    )
    def test_price_bands(self, price, expected):
        assert stats.food_recovery_amount(100, price) == expected

    def test_recovery_capped(self):
        assert stats.recover_ap_from_food(95, 100, 120) == 100


class TestDamage:
    def test_damage_bounds(self):
        rng = random.Random(1)
        for _ in range(200):
            damage = stats.damage_to_enemy(40, 10, rng)
            assert 27 <= damage <= 33

    def test_damage_at_least_one(self):
        rng = random.Random(3)
        for _ in range(50):
            assert stats.damage_to_enemy(1, 100, rng) >= 1

    def test_ap_damage_strong_then_defend(self):
        assert stats.ap_damage(7, False, False) == 7
        assert stats.ap_damage(7, True, False) == 14
        assert stats.ap_damage(7, False, True) == 3
        assert stats.ap_damage(7, True, True) == 7

    def test_ap_damage_minimum_one(self):
        assert stats.ap_damage(1, False, True) == 1
        assert stats.ap_damage(0, False, False) == 1

    def test_strong_attack_roll(self):
        class Fixed:
            def __init__(self, value):
                self.value = value

            def random(self):
                return self.value

        assert stats.will_enemy_use_strong_attack(Fixed(0.29)) is True
        assert stats.will_enemy_use_strong_attack(Fixed(0.3)) is False

    def test_strong_attack_rate(self):
        rng = random.Random(2024)
        trials = 10000
        strong = sum(stats.will_enemy_use_strong_attack(rng) for _ in range(trials))
        assert strong / trials == pytest.approx(0.3, abs=0.02)


class TestRetreatAndTimeout:
    def test_retreat_chance(self):
        character = make_character(stats=CharacterStats(DEX=9, LUCK=7))
        assert stats.retreat_chance(character) == pytest.approx(0.08)

    def test_retreat_chance_clamped(self):
        lucky = make_character(stats=CharacterStats(DEX=150, LUCK=150))
        cursed = make_character(stats=CharacterStats(DEX=-50, LUCK=-50))
        assert stats.retreat_chance(lucky) == 1.0
        assert stats.retreat_chance(cursed) == 0.0

    def test_timeout(self):
        max_turns = DEFAULT_COMBAT_CONFIG.max_turns
        assert stats.check_timeout(max_turns, max_turns) is False
        assert stats.check_timeout(max_turns + 1, max_turns) is True


class TestStatsBonus:
    def test_inventory_and_relics(self, item_registry):
        ring = Item(
            id="item_ring",
            name="幸运戒指",
            description="",
            item_type=ItemType.EQUIPMENT,
            rarity=Rarity.RARE,
            stat_bonus=CharacterStats(LUCK=2),
        )
        relic = item_registry.require("FORTUNE_COIN").stat_bonus

        bonus = stats.compute_stats_bonus([ring], ["FORTUNE_COIN", "NOT_A_RELIC"], item_registry)

        assert bonus.LUCK == 2 + relic.LUCK
