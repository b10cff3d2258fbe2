"""Experience curve and decorative HP/MP.

Experience is a flat ``exp_per_level`` (100) per level. HP/MP carry no gameplay weight; they
drift with "fatigue" during play and refill on level-up.
"""

import logging
import random
from dataclasses import dataclass, replace
from typing import Optional

from src.core.combat.config import CombatConfig, DEFAULT_COMBAT_CONFIG

from .models import Character, MAX_LEVEL

logger = logging.getLogger(__name__)

# exp granted per source, default table
EXP_SOURCES: dict[str, int] = DEFAULT_COMBAT_CONFIG.exp_sources


@dataclass(frozen=True)
class ExperienceGain:
    new_level: int
    new_exp: int
    levels_gained: int


@dataclass(frozen=True)
class HpMp:
    current_hp: int
    max_hp: int
    current_mp: int
    max_mp: int


def add_experience(
    level: int, exp: int, gain: int, config: CombatConfig = DEFAULT_COMBAT_CONFIG
) -> ExperienceGain:
    """Apply an exp gain. Handles multi-level jumps.

    At the level cap exp is pinned to 0.
    """
    new_exp = exp + gain
    new_level = level
    levels_gained = 0

    per_level = config.exp_per_level
    while new_exp >= per_level and new_level < MAX_LEVEL:
        new_exp -= per_level
        new_level += 1
        levels_gained += 1

    if new_level >= MAX_LEVEL:
        new_level = MAX_LEVEL
        new_exp = 0

    return ExperienceGain(new_level=new_level, new_exp=new_exp, levels_gained=levels_gained)


def exp_progress(exp: int, config: CombatConfig = DEFAULT_COMBAT_CONFIG) -> float:
    """Progress towards the next level, in percent."""
    return (exp % config.exp_per_level) / config.exp_per_level * 100


def exp_to_next_level(level: int, config: CombatConfig = DEFAULT_COMBAT_CONFIG) -> int:
    return config.exp_per_level


def level_up_message(name: str, new_level: int, levels_gained: int) -> str:
    if levels_gained == 1:
        return f"🎉 {name} 升级了！等级提升至 {new_level}"
    return f"🎉 {name} 连续升级 {levels_gained} 级！当前等级 {new_level}"


def exp_gain_message(gain: int, source: str) -> str:
    return f"+{gain} EXP（{source}）"


# === HP / MP ===


def max_hp(level: int, config: CombatConfig = DEFAULT_COMBAT_CONFIG) -> int:
    return config.base_max_hp + level * config.hp_per_level


def max_mp(level: int, config: CombatConfig = DEFAULT_COMBAT_CONFIG) -> int:
    return config.base_max_mp + level * config.mp_per_level


def initialize_hp_mp(level: int, config: CombatConfig = DEFAULT_COMBAT_CONFIG) -> HpMp:
    """Full HP/MP for a fresh character."""
    hp, mp = max_hp(level, config), max_mp(level, config)
    return HpMp(current_hp=hp, max_hp=hp, current_mp=mp, max_mp=mp)


def micro_fluctuation(
    max_value: int,
    rng: Optional[random.Random] = None,
    config: CombatConfig = DEFAULT_COMBAT_CONFIG,
) -> int:
    """A "natural looking" value within ``fluctuation_range`` of max (70-100%)."""
    rng = rng or random
    low, high = config.fluctuation_range
    return int(max_value * rng.uniform(low, high))


def hp_mp_on_level_up(
    new_level: int,
    rng: Optional[random.Random] = None,
    config: CombatConfig = DEFAULT_COMBAT_CONFIG,
) -> HpMp:
    """New maxima; current values restored to 90-100% of them."""
    rng = rng or random
    hp, mp = max_hp(new_level, config), max_mp(new_level, config)
    restore = rng.uniform(*config.level_up_restore_range)
    return HpMp(
        current_hp=int(hp * restore),
        max_hp=hp,
        current_mp=int(mp * restore),
        max_mp=mp,
    )


def apply_adventure_fatigue(
    current_hp: int,
    max_hp_value: int,
    current_mp: int,
    max_mp_value: int,
    rng: Optional[random.Random] = None,
    config: CombatConfig = DEFAULT_COMBAT_CONFIG,
) -> tuple[int, int]:
    """Drain 0.5-2% of max; never below 70% of max (defaults)."""
    rng = rng or random
    ratio = rng.uniform(*config.fatigue_range)

    new_hp = current_hp - int(max_hp_value * ratio)
    new_mp = current_mp - int(max_mp_value * ratio)

    new_hp = max(int(max_hp_value * config.fatigue_floor), new_hp)
    new_mp = max(int(max_mp_value * config.fatigue_floor), new_mp)
    return new_hp, new_mp


def validate_hp_mp(current_hp: int, max_hp_value: int, current_mp: int, max_mp_value: int) -> HpMp:
    """Clamp possibly corrupt values from old saves."""
    return HpMp(
        current_hp=max(0, min(max_hp_value, current_hp)),
        max_hp=max(1, max_hp_value),
        current_mp=max(0, min(max_mp_value, current_mp)),
        max_mp=max(1, max_mp_value),
    )


def grant_experience(
    character: Character,
    gain: int,
    max_ap_for_level,
    rng: Optional[random.Random] = None,
    config: CombatConfig = DEFAULT_COMBAT_CONFIG,
) -> tuple[Character, int]:
    """Credit exp to a character. Returns (updated character, levels gained).

    A level-up refills HP/MP to 90-100% and raises max AP (current AP is
    kept, clamped to the new max). ``max_ap_for_level`` maps level to max AP.
    """
    result = add_experience(character.level, character.exp, gain, config)
    if result.levels_gained == 0:
        return replace(character, level=result.new_level, exp=result.new_exp), 0

    hp_mp = hp_mp_on_level_up(result.new_level, rng, config)
    new_max_ap = max_ap_for_level(result.new_level)
    logger.info(
        "%s reached level %d (+%d)", character.name, result.new_level, result.levels_gained
    )
    updated = replace(
        character,
        level=result.new_level,
        exp=result.new_exp,
        current_hp=hp_mp.current_hp,
        max_hp=hp_mp.max_hp,
        current_mp=hp_mp.current_mp,
        max_mp=hp_mp.max_mp,
        max_ap=new_max_ap,
        current_ap=min(character.current_ap, new_max_ap),
    )
    return updated, result.levels_gained
