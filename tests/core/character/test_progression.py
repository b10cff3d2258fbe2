"""Experience curve and decorative HP/MP."""

import random
from dataclasses import replace

import pytest

from conftest import make_character
from src.core.character import progression
from src.core.character.models import MAX_LEVEL
from src.core.combat.config import DEFAULT_COMBAT_CONFIG
from src.core.combat import stats


class TestAddExperience:
    def test_no_level_up(self):
        gain = progression.add_experience(1, 50, 30)
        assert (gain.new_level, gain.new_exp, gain.levels_gained) == (1, 80, 0)

    def test_single_level_up_keeps_remainder(self):
        gain = progression.add_experience(1, 90, 30)
        assert (gain.new_level, gain.new_exp, gain.levels_gained) == (2, 20, 1)

    def test_multi_level_jump(self):
        gain = progression.add_experience(3, 0, 250)
        assert (gain.new_level, gain.new_exp, gain.levels_gained) == (5, 50, 2)

    def test_cap_pins_exp_to_zero(self):
        gain = progression.add_experience(MAX_LEVEL - 1, 50, 500)
        assert gain.new_level == MAX_LEVEL
        assert gain.new_exp == 0
        assert gain.levels_gained == 1

    def test_already_capped(self):
        gain = progression.add_experience(MAX_LEVEL, 0, 1000)
        assert (gain.new_level, gain.new_exp, gain.levels_gained) == (MAX_LEVEL, 0, 0)

    def test_progress_percent(self):
        assert progression.exp_progress(45) == pytest.approx(45.0)
        assert progression.exp_to_next_level(10) == 100


class TestHpMp:
    def test_formulas(self):
        hp_mp = progression.initialize_hp_mp(3)
        assert (hp_mp.max_hp, hp_mp.max_mp) == (160, 80)
        assert hp_mp.current_hp == hp_mp.max_hp

    def test_level_up_restore_band(self):
        rng = random.Random(0)
        for _ in range(50):
            hp_mp = progression.hp_mp_on_level_up(5, rng)
            assert int(200 * 0.9) <= hp_mp.current_hp <= 200
            assert int(100 * 0.9) <= hp_mp.current_mp <= 100

    def test_fatigue_floor(self):
        rng = random.Random(1)
        hp, mp = 120, 60
        for _ in range(200):
            hp, mp = progression.apply_adventure_fatigue(hp, 120, mp, 60, rng)
        assert hp == int(120 * 0.7)
        assert mp == int(60 * 0.7)

    def test_micro_fluctuation_band(self):
        rng = random.Random(2)
        for _ in range(50):
            assert 70 <= progression.micro_fluctuation(100, rng) <= 100

    def test_validate_clamps(self):
        hp_mp = progression.validate_hp_mp(500, 120, -3, 60)
        assert (hp_mp.current_hp, hp_mp.current_mp) == (120, 0)


class TestGrantExperience:
    def test_level_up_raises_max_ap_and_keeps_current(self):
        character = make_character(level=1, exp=95, current_ap=40, max_ap=100)

        updated, levels = progression.grant_experience(
            character, 10, stats.max_ap, random.Random(0)
        )

        assert levels == 1
        assert updated.level == 2
        assert updated.exp == 5
        assert updated.max_ap == 105
        assert updated.current_ap == 40
        assert updated.max_hp == 140
        assert character.level == 1

    def test_no_level_up_leaves_hp(self):
        character = make_character(exp=10, current_hp=90)
        updated, levels = progression.grant_experience(character, 3, stats.max_ap)
        assert levels == 0
        assert updated.exp == 13
        assert updated.current_hp == 90

    def test_messages(self):
        assert "2" in progression.level_up_message("艾伦", 2, 1)
        assert "连续升级 3 级" in progression.level_up_message("艾伦", 5, 3)


class TestConfiguredCurve:
    CONFIG = replace(
        DEFAULT_COMBAT_CONFIG,
        exp_per_level=50,
        base_max_hp=200,
        hp_per_level=10,
        fatigue_floor=0.5,
    )

    def test_exp_per_level(self):
        gain = progression.add_experience(1, 40, 20, self.CONFIG)
        assert (gain.new_level, gain.new_exp, gain.levels_gained) == (2, 10, 1)
        assert progression.exp_to_next_level(4, self.CONFIG) == 50
        assert progression.exp_progress(25, self.CONFIG) == pytest.approx(50.0)

    def test_hp_formula(self):
        assert progression.max_hp(3, self.CONFIG) == 230
        assert progression.initialize_hp_mp(3, self.CONFIG).max_hp == 230

    def test_fatigue_floor(self):
        rng = random.Random(1)
        hp, mp = 100, 60
        for _ in range(600):
            hp, mp = progression.apply_adventure_fatigue(hp, 100, mp, 60, rng, self.CONFIG)
        assert hp == 50
        assert mp == 30

    def test_grant_experience_uses_config(self):
        character = make_character(level=1, exp=45)
        updated, levels = progression.grant_experience(
            character, 10, stats.max_ap, random.Random(0), config=self.CONFIG
        )
        assert levels == 1
        assert updated.exp == 5
        assert updated.max_hp == 220
