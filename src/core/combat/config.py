"""Gameplay tuning table.

Every numeric constant of the combat, enemy-generation, progression and
story-event rules lives here.
``load_combat_config`` swaps values in from JSON so balance changes need no
code change.
"""

import json
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional

logger = logging.getLogger(__name__)

RANKS: tuple[str, ...] = ("D", "C", "B", "A")

RANGE_FIELDS: tuple[str, ...] = (
    "level_up_restore_range",
    "fatigue_range",
    "fluctuation_range",
    "story_combat_hp_loss",
    "story_victory_exp",
    "story_victory_gold",
    "story_gold_fallback",
    "story_rest_hp",
)


@dataclass(frozen=True)
class HpCurveSegment:
    """One piece of the enemy HP growth curve.

    For levels past ``threshold`` the multiplier is
    ``base + (level - threshold) * growth``.
    """

    threshold: int
    base: float
    growth: float

    def value_at(self, level: int) -> float:
        return self.base + (level - self.threshold) * self.growth


def _default_hp_curve() -> tuple[HpCurveSegment, ...]:
    return (
        HpCurveSegment(1, 1.0, 0.15),
        HpCurveSegment(3, 1.3, 0.20),
        HpCurveSegment(7, 2.1, 0.25),
        HpCurveSegment(12, 3.35, 0.30),
    )


def _default_rank_buckets() -> tuple[tuple[Optional[int], dict[str, float]], ...]:
    # (exclusive upper player level, rank weights); None = open ended
    return (
        (5, {"D": 0.7, "C": 0.3}),
        (10, {"D": 0.3, "C": 0.5, "B": 0.2}),
        (20, {"C": 0.3, "B": 0.5, "A": 0.2}),
        (None, {"B": 0.5, "A": 0.5}),
    )


def _default_food_bands() -> tuple[tuple[Optional[int], float, int], ...]:
    # (max price inclusive, percent of max AP, flat bonus); None = any price
    return (
        (35, 0.10, 5),
        (50, 0.15, 8),
        (65, 0.20, 12),
        (None, 0.30, 15),
    )


def _default_exp_sources() -> dict[str, int]:
    return {
        "DIALOGUE": 3,
        "QUEST_COMPLETE": 50,
        "COMBAT_VICTORY": 20,
        "ITEM_FOUND": 10,
        "EXPLORATION": 15,
        "BOSS_DEFEAT": 100,
        "QUEST_CHAIN": 150,
    }


@dataclass(frozen=True)
class CombatConfig:
    # AP economy
    base_max_ap: int = 100
    ap_per_level: int = 5
    ap_cost_attack: int = 20
    ap_cost_defend: int = 10
    ap_cost_encounter: int = 30
    ap_recovery_per_dialogue: int = 8
    retreat_ap_cost: int = 20

    # potions
    healing_potion_ap_percent: float = 0.3
    healing_potion_turns: int = 5  # includes the turn it is drunk
    heal_potion_name: str = "治愈药水"
    arcane_tonic_name: str = "奥术灵药"

    # turns
    max_turns: int = 10
    treasure_max_turns: int = 3

    # player attack
    attack_weights: dict[str, float] = field(
        default_factory=lambda: {"STR": 2.0, "DEX": 1.5, "INT": 1.0, "CHA": 0.5, "LUCK": 1.2}
    )
    attack_level_multiplier: int = 2
    damage_variance: float = 0.1

    # enemy attack
    strong_attack_probability: float = 0.3
    strong_attack_multiplier: float = 2.0
    defend_ap_reduction: float = 0.5

    # enemy generation
    treasure_monster_probability: float = 0.1
    hp_curve: tuple[HpCurveSegment, ...] = field(default_factory=_default_hp_curve)
    rank_hp_multipliers: dict[str, float] = field(
        default_factory=lambda: {"D": 1.0, "C": 1.15, "B": 1.3, "A": 1.5}
    )
    rank_reward_multipliers: dict[str, float] = field(
        default_factory=lambda: {"D": 1.0, "C": 1.5, "B": 2.5, "A": 4.0}
    )
    rank_buckets: tuple[tuple[Optional[int], dict[str, float]], ...] = field(
        default_factory=_default_rank_buckets
    )
    stat_growth_per_level: float = 0.1
    reward_gold_base: int = 20
    reward_gold_per_level: int = 5
    reward_exp_base: int = 15
    reward_exp_per_level: int = 3
    treasure_exp: int = 10
    treasure_drop_min: int = 2
    treasure_drop_max: int = 4
    treasure_drop_pool: tuple[str, ...] = ("BREAD", "POTION", "STAMINA_STEW")
    no_region_level_jitter: int = 2
    static_phase_level_jitter: int = 1

    # food
    food_bands: tuple[tuple[Optional[int], float, int], ...] = field(
        default_factory=_default_food_bands
    )

    # progression
    exp_per_level: int = 100
    exp_sources: dict[str, int] = field(default_factory=_default_exp_sources)
    base_max_hp: int = 100
    hp_per_level: int = 20
    base_max_mp: int = 50
    mp_per_level: int = 10
    level_up_restore_range: tuple[float, float] = (0.9, 1.0)
    fatigue_range: tuple[float, float] = (0.005, 0.02)
    fatigue_floor: float = 0.7
    fluctuation_range: tuple[float, float] = (0.7, 1.0)

    # story events (inclusive randint ranges)
    story_combat_hp_loss: tuple[int, int] = (5, 20)
    story_victory_exp: tuple[int, int] = (30, 100)
    story_victory_gold: tuple[int, int] = (10, 50)
    story_gold_fallback: tuple[int, int] = (10, 50)
    story_rest_hp: tuple[int, int] = (20, 50)

    def validate(self) -> None:
        """Fail fast on an inconsistent table. Raises ValueError."""
        if not self.hp_curve:
            raise ValueError("hp_curve must have at least one segment")
        previous = None
        for segment in self.hp_curve:
            if previous is not None:
                if segment.threshold <= previous.threshold:
                    raise ValueError("hp_curve thresholds must be strictly increasing")
                expected = previous.value_at(segment.threshold)
                if abs(expected - segment.base) > 1e-9:
                    raise ValueError(
                        f"hp_curve discontinuity at level {segment.threshold}: "
                        f"{segment.base} != {expected}"
                    )
            previous = segment

        for name in (
            "strong_attack_probability",
            "treasure_monster_probability",
            "damage_variance",
            "healing_potion_ap_percent",
            "defend_ap_reduction",
        ):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise ValueError(f"{name} must be within [0, 1], got {value}")

        for rank in RANKS:
            if rank not in self.rank_hp_multipliers or rank not in self.rank_reward_multipliers:
                raise ValueError(f"missing multiplier for rank {rank}")

        for _, weights in self.rank_buckets:
            total = sum(weights.values())
            if abs(total - 1.0) > 1e-6:
                raise ValueError(f"rank bucket weights must sum to 1, got {total}")
        if self.rank_buckets[-1][0] is not None:
            raise ValueError("last rank bucket must be open ended")
        if self.food_bands[-1][0] is not None:
            raise ValueError("last food band must be open ended")
        if self.treasure_drop_min > self.treasure_drop_max:
            raise ValueError("treasure_drop_min exceeds treasure_drop_max")
        if self.exp_per_level <= 0:
            raise ValueError("exp_per_level must be positive")
        if not 0 <= self.fatigue_floor <= 1:
            raise ValueError(f"fatigue_floor must be within [0, 1], got {self.fatigue_floor}")
        for name in RANGE_FIELDS:
            low, high = getattr(self, name)
            if low > high:
                raise ValueError(f"{name} is inverted: {low} > {high}")


DEFAULT_COMBAT_CONFIG = CombatConfig()


def _coerce(name: str, value: Any) -> Any:
    """JSON gives lists and string keys; turn them back into table shapes."""
    if name == "hp_curve":
        return tuple(HpCurveSegment(int(t), float(b), float(g)) for t, b, g in value)
    if name == "rank_buckets":
        return tuple((limit, dict(weights)) for limit, weights in value)
    if name == "food_bands":
        return tuple((limit, float(pct), int(flat)) for limit, pct, flat in value)
    if name == "exp_sources":
        return {**_default_exp_sources(), **value}
    if name == "treasure_drop_pool" or name in RANGE_FIELDS:
        return tuple(value)
    return value


def load_combat_config(path: str | Path) -> CombatConfig:
    """Build a CombatConfig from a JSON object holding any subset of keys."""
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        raw: dict[str, Any] = json.load(f)

    known = {f.name for f in fields(CombatConfig)}
    overrides = {}
    for key, value in raw.items():
        if key not in known:
            logger.warning("Unknown combat config key ignored: %s", key)
            continue
        overrides[key] = _coerce(key, value)

    config = replace(DEFAULT_COMBAT_CONFIG, **overrides)
    config.validate()
    logger.info("Loaded combat config from %s (%d overrides)", path, len(overrides))
    return config
