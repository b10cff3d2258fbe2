"""Enemy generation pipeline.

treasure roll -> rank roll -> template pick (biome filtered) -> target level
-> HP curve x rank multiplier -> linear attack/defense -> rewards
"""

import logging
import math
import random
import uuid
from typing import Optional

from src.core.character.registry import ItemRegistry
from src.core.errors import UnknownItemError
from src.core.world.regions import RegionConfig

from .config import CombatConfig, DEFAULT_COMBAT_CONFIG
from .enemy_templates import ENEMY_TEMPLATES, TREASURE_TEMPLATES, EnemyTemplate, TreasureTemplate
from .models import Enemy, EnemyRewards, Rank

logger = logging.getLogger(__name__)

MIN_ENEMY_LEVEL = 1
MAX_ENEMY_LEVEL = 99


class EnemyGenerator:
    """Builds a fresh Enemy per encounter. Holds no state besides config and rng."""

    def __init__(
        self,
        config: CombatConfig = DEFAULT_COMBAT_CONFIG,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = config
        self._rng = rng or random.Random()

    # === pipeline steps ===

    def roll_treasure(self, force: bool = False) -> bool:
        if force:
            return True
        return self._rng.random() < self._config.treasure_monster_probability

    def determine_rank(self, player_level: int) -> Rank:
        """Level-bucketed weighted roll."""
        weights = self._config.rank_buckets[-1][1]
        for limit, bucket in self._config.rank_buckets:
            if limit is None or player_level < limit:
                weights = bucket
                break

        roll = self._rng.random()
        cumulative = 0.0
        for rank_name, weight in weights.items():
            cumulative += weight
            if roll < cumulative:
                return Rank(rank_name)
        # float rounding can leave roll just above the cumulative total
        return Rank(list(weights)[-1])

    def pick_template(self, rank: Rank, region: Optional[RegionConfig] = None) -> EnemyTemplate:
        pool = ENEMY_TEMPLATES[rank]
        if region is not None:
            filtered = [t for t in pool if t.biomes & region.biomes]
            if filtered:
                pool = filtered
            else:
                logger.debug("No %s template matches region %s, using full pool", rank.value, region.id)
        return self._rng.choice(pool)

    def target_level(self, player_level: int, region: Optional[RegionConfig] = None) -> int:
        if region is None:
            jitter = self._config.no_region_level_jitter
            return max(MIN_ENEMY_LEVEL, player_level + self._rng.randint(-jitter, jitter))

        scaling = region.scaling
        static = not scaling.enabled or player_level <= region.level_max + scaling.static_buffer
        if static:
            jitter = self._config.static_phase_level_jitter
            level = self._rng.randint(region.level_min, region.level_max)
            level += self._rng.randint(-jitter, jitter)
            return max(MIN_ENEMY_LEVEL, min(MAX_ENEMY_LEVEL, level))

        low = scaling.min_diff_by_tier[region.tier]
        high = scaling.max_diff_by_tier[region.tier]
        level = player_level + self._rng.randint(low, high)
        return max(region.level_min, min(MAX_ENEMY_LEVEL, level))

    def hp_multiplier(self, level: int) -> float:
        """Piecewise-linear growth; the last segment whose threshold is below ``level`` applies."""
        curve = self._config.hp_curve
        segment = curve[0]
        for candidate in curve[1:]:
            if candidate.threshold < level:
                segment = candidate
        return segment.value_at(level)

    def build(
        self,
        template: EnemyTemplate,
        rank: Rank,
        level: int,
        is_treasure: bool = False,
    ) -> Enemy:
        config = self._config
        max_hp = math.floor(
            template.base_hp * self.hp_multiplier(level) * config.rank_hp_multipliers[rank.value]
        )
        stat_multiplier = 1 + (level - 1) * config.stat_growth_per_level
        attack = math.floor(template.base_attack * stat_multiplier)
        defense = math.floor(template.base_defense * stat_multiplier)

        if is_treasure:
            if not isinstance(template, TreasureTemplate):
                raise ValueError(f"{template.key} is not a treasure template")
            rewards = EnemyRewards(
                gold=template.gold_reward,
                exp=config.treasure_exp,
                items=self._roll_treasure_drops(),
            )
        else:
            multiplier = config.rank_reward_multipliers[rank.value]
            rewards = EnemyRewards(
                gold=math.floor((config.reward_gold_base + level * config.reward_gold_per_level) * multiplier),
                exp=math.floor((config.reward_exp_base + level * config.reward_exp_per_level) * multiplier),
            )

        return Enemy(
            id=f"enemy_{uuid.uuid4().hex[:12]}",
            name=template.name,
            level=level,
            rank=rank,
            current_hp=max_hp,
            max_hp=max_hp,
            attack=attack,
            defense=defense,
            rewards=rewards,
            is_treasure_monster=is_treasure,
            family=template.family,
            element=template.element,
            biomes=tuple(sorted(b.value for b in template.biomes)),
        )

    def _roll_treasure_drops(self) -> tuple[str, ...]:
        config = self._config
        count = self._rng.randint(config.treasure_drop_min, config.treasure_drop_max)
        return tuple(self._rng.choice(config.treasure_drop_pool) for _ in range(count))

    # === entry points ===

    def encounter(
        self,
        player_level: int,
        region: Optional[RegionConfig] = None,
        force_treasure: bool = False,
    ) -> Enemy:
        if self.roll_treasure(force_treasure):
            template = self._rng.choice(TREASURE_TEMPLATES)
            level = self.target_level(player_level, region)
            enemy = self.build(template, Rank.D, level, is_treasure=True)
        else:
            rank = self.determine_rank(player_level)
            template = self.pick_template(rank, region)
            level = self.target_level(player_level, region)
            enemy = self.build(template, rank, level)

        logger.info(
            "Encounter: %s rank=%s lv=%d hp=%d atk=%d def=%d treasure=%s",
            enemy.name,
            enemy.rank.value,
            enemy.level,
            enemy.max_hp,
            enemy.attack,
            enemy.defense,
            enemy.is_treasure_monster,
        )
        return enemy

    def get_max_turns(self, enemy: Enemy) -> int:
        if enemy.is_treasure_monster:
            return self._config.treasure_max_turns
        return self._config.max_turns

    def reward_item_keys(self) -> set[str]:
        """Every item key this generator can put into rewards."""
        return set(self._config.treasure_drop_pool)

    def validate_reward_keys(self, registry: ItemRegistry) -> None:
        """Startup check; raises UnknownItemError on the first missing key."""
        for key in sorted(self.reward_item_keys()):
            if key not in registry:
                logger.error("Enemy reward key missing from item registry: %s", key)
                raise UnknownItemError(key)
