"""CombatConfig validation and JSON overrides."""

import json
from dataclasses import replace

import pytest

from src.core.combat.config import (
    DEFAULT_COMBAT_CONFIG,
    HpCurveSegment,
    load_combat_config,
)


class TestValidate:
    def test_default_table_is_valid(self):
        DEFAULT_COMBAT_CONFIG.validate()

    def test_hp_curve_is_continuous_at_every_threshold(self):
        curve = DEFAULT_COMBAT_CONFIG.hp_curve
        for previous, segment in zip(curve, curve[1:]):
            assert previous.value_at(segment.threshold) == pytest.approx(segment.base)

    def test_discontinuous_curve_rejected(self):
        broken = (HpCurveSegment(1, 1.0, 0.15), HpCurveSegment(3, 2.0, 0.2))
        with pytest.raises(ValueError, match="discontinuity"):
            replace(DEFAULT_COMBAT_CONFIG, hp_curve=broken).validate()

    def test_non_increasing_thresholds_rejected(self):
        broken = (HpCurveSegment(3, 1.0, 0.1), HpCurveSegment(3, 1.0, 0.1))
        with pytest.raises(ValueError, match="strictly increasing"):
            replace(DEFAULT_COMBAT_CONFIG, hp_curve=broken).validate()

    def test_probability_out_of_range_rejected(self):
        with pytest.raises(ValueError, match="strong_attack_probability"):
            replace(DEFAULT_COMBAT_CONFIG, strong_attack_probability=1.5).validate()

    def test_rank_bucket_weights_must_sum_to_one(self):
        buckets = ((5, {"D": 0.5, "C": 0.3}), (None, {"B": 0.5, "A": 0.5}))
        with pytest.raises(ValueError, match="sum to 1"):
            replace(DEFAULT_COMBAT_CONFIG, rank_buckets=buckets).validate()

    def test_last_food_band_must_be_open(self):
        bands = ((35, 0.1, 5), (50, 0.15, 8))
        with pytest.raises(ValueError, match="open ended"):
            replace(DEFAULT_COMBAT_CONFIG, food_bands=bands).validate()

    def test_inverted_range_rejected(self):
        with pytest.raises(ValueError, match="story_rest_hp is inverted"):
            replace(DEFAULT_COMBAT_CONFIG, story_rest_hp=(50, 20)).validate()

    def test_exp_per_level_must_be_positive(self):
        with pytest.raises(ValueError, match="exp_per_level"):
            replace(DEFAULT_COMBAT_CONFIG, exp_per_level=0).validate()


class TestLoadCombatConfig:
    def test_overrides_only_given_keys(self, tmp_path):
        path = tmp_path / "combat.json"
        path.write_text(json.dumps({"max_turns": 12, "ap_cost_attack": 15}), encoding="utf-8")

        config = load_combat_config(path)

        assert config.max_turns == 12
        assert config.ap_cost_attack == 15
        assert config.ap_cost_defend == DEFAULT_COMBAT_CONFIG.ap_cost_defend

    def test_table_shapes_are_rebuilt_from_lists(self, tmp_path):
        path = tmp_path / "combat.json"
        path.write_text(
            json.dumps(
                {
                    "hp_curve": [[1, 1.0, 0.2], [5, 1.8, 0.3]],
                    "treasure_drop_pool": ["BREAD"],
                }
            ),
            encoding="utf-8",
        )

        config = load_combat_config(path)

        assert config.hp_curve[1] == HpCurveSegment(5, 1.8, 0.3)
        assert config.treasure_drop_pool == ("BREAD",)

    def test_progression_and_story_tables_load(self, tmp_path):
        path = tmp_path / "combat.json"
        path.write_text(
            json.dumps(
                {
                    "exp_per_level": 80,
                    "fatigue_range": [0.01, 0.03],
                    "story_victory_exp": [40, 60],
                    "exp_sources": {"DIALOGUE": 5},
                }
            ),
            encoding="utf-8",
        )

        config = load_combat_config(path)

        assert config.exp_per_level == 80
        assert config.fatigue_range == (0.01, 0.03)
        assert config.story_victory_exp == (40, 60)
        assert config.exp_sources["DIALOGUE"] == 5
        assert config.exp_sources["QUEST_COMPLETE"] == 50

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "combat.json"
        path.write_text(json.dumps({"no_such_key": 1}), encoding="utf-8")
        assert load_combat_config(path) == DEFAULT_COMBAT_CONFIG

    def test_invalid_override_fails_fast(self, tmp_path):
        path = tmp_path / "combat.json"
        path.write_text(json.dumps({"damage_variance": 2}), encoding="utf-8")
        with pytest.raises(ValueError):
            load_combat_config(path)
