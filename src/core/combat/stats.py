"""Combat numbers: attack power, AP economy, damage, retreat odds.

Pure functions. Anything random takes an optional ``random.Random`` so tests
can pin the outcome; without one the module-level ``random`` is used.
"""

import math
import random
from typing import Iterable, Optional

from src.core.character.inventory import sum_stat_bonuses
from src.core.character.models import Character, CharacterStats, Item
from src.core.character.registry import ItemRegistry

from .config import CombatConfig, DEFAULT_COMBAT_CONFIG

AP_ACTIONS = ("attack", "defend", "encounter")


def total_stats(character: Character) -> CharacterStats:
    """Base stats plus equipment/relic bonus. Not clamped."""
    return character.stats + character.stats_bonus


def attack_power(character: Character, config: CombatConfig = DEFAULT_COMBAT_CONFIG) -> int:
    stats = total_stats(character)
    weights = config.attack_weights
    weighted = (
        stats.STR * weights["STR"]
        + stats.DEX * weights["DEX"]
        + stats.INT * weights["INT"]
        + stats.CHA * weights["CHA"]
        + stats.LUCK * weights["LUCK"]
    )
    return math.floor(weighted + character.level * config.attack_level_multiplier)


def max_ap(level: int, config: CombatConfig = DEFAULT_COMBAT_CONFIG) -> int:
    return config.base_max_ap + (level - 1) * config.ap_per_level


def retreat_chance(character: Character) -> float:
    stats = total_stats(character)
    return min(1.0, max(0.0, (stats.DEX + stats.LUCK) / 200))


def recover_ap(current_ap: int, max_ap_value: int, config: CombatConfig = DEFAULT_COMBAT_CONFIG) -> int:
    """Dialogue tick recovery."""
    return min(current_ap + config.ap_recovery_per_dialogue, max_ap_value)


def food_recovery_amount(max_ap_value: int, price: int, config: CombatConfig = DEFAULT_COMBAT_CONFIG) -> int:
    """AP restored by a food of the given price (before capping)."""
    for limit, percent, flat in config.food_bands:
        if limit is None or price <= limit:
            return max(1, math.floor(max_ap_value * percent + flat))
    raise ValueError("food_bands has no open-ended band")


def recover_ap_from_food(
    current_ap: int,
    max_ap_value: int,
    price: int,
    config: CombatConfig = DEFAULT_COMBAT_CONFIG,
) -> int:
    return min(current_ap + food_recovery_amount(max_ap_value, price, config), max_ap_value)


def _action_cost(action: str, config: CombatConfig) -> int:
    if action == "attack":
        return config.ap_cost_attack
    if action == "defend":
        return config.ap_cost_defend
    if action == "encounter":
        return config.ap_cost_encounter
    raise ValueError(f"Unknown AP action: {action}")


def can_perform_action(current_ap: int, action: str, config: CombatConfig = DEFAULT_COMBAT_CONFIG) -> bool:
    """Combat actions only need AP > 0; an encounter needs the full cost."""
    if current_ap <= 0:
        return False
    if action == "encounter":
        return current_ap >= config.ap_cost_encounter
    _action_cost(action, config)
    return True


def consume_ap(current_ap: int, action: str, config: CombatConfig = DEFAULT_COMBAT_CONFIG) -> int:
    return max(0, current_ap - _action_cost(action, config))


def damage_to_enemy(
    attack: int,
    enemy_defense: int,
    rng: Optional[random.Random] = None,
    config: CombatConfig = DEFAULT_COMBAT_CONFIG,
) -> int:
    """max(1, attack - defense) with uniform +/- variance, floored, at least 1."""
    rng = rng or random
    base = max(1, attack - enemy_defense)
    variance = config.damage_variance
    multiplier = rng.uniform(1 - variance, 1 + variance)
    return max(1, math.floor(base * multiplier))


def ap_damage(
    enemy_attack: int,
    is_strong: bool,
    is_defending: bool,
    config: CombatConfig = DEFAULT_COMBAT_CONFIG,
) -> int:
    """AP lost to an enemy hit. Strong first, then defend; floor after each."""
    damage = enemy_attack
    if is_strong:
        damage = math.floor(damage * config.strong_attack_multiplier)
    if is_defending:
        damage = math.floor(damage * config.defend_ap_reduction)
    return max(1, damage)


def will_enemy_use_strong_attack(
    rng: Optional[random.Random] = None,
    config: CombatConfig = DEFAULT_COMBAT_CONFIG,
) -> bool:
    rng = rng or random
    return rng.random() < config.strong_attack_probability


def check_timeout(current_turn: int, max_turns: int) -> bool:
    return current_turn > max_turns


def compute_stats_bonus(
    inventory: Iterable[Item],
    relic_keys: Iterable[str],
    registry: ItemRegistry,
) -> CharacterStats:
    """Bonus from carried items plus relics owned through the shop.

    Relics are looked up in the registry since they never sit in the
    inventory.
    """
    from_inventory = sum_stat_bonuses(item.stat_bonus for item in inventory)
    relic_bonuses = []
    for key in relic_keys:
        template = registry.get(key)
        if template is not None:
            relic_bonuses.append(template.stat_bonus)
    return from_inventory + sum_stat_bonuses(relic_bonuses)
