"""Combat core: tuning table, stats, enemy generation, turn engine."""

from .config import DEFAULT_COMBAT_CONFIG, CombatConfig, HpCurveSegment, load_combat_config
from .enemy_generator import EnemyGenerator
from .engine import CombatEngine, TurnResolution
from .log_stats import aggregate_log_stats, turns_used
from .models import (
    CombatAction,
    CombatLog,
    CombatOutcome,
    CombatResult,
    CombatState,
    Enemy,
    EnemyAction,
    EnemyRewards,
    LogType,
    PlayerCombatStats,
    Rank,
    TurnStatus,
)

__all__ = [
    "DEFAULT_COMBAT_CONFIG",
    "CombatConfig",
    "HpCurveSegment",
    "load_combat_config",
    "EnemyGenerator",
    "CombatEngine",
    "TurnResolution",
    "aggregate_log_stats",
    "turns_used",
    "CombatAction",
    "CombatLog",
    "CombatOutcome",
    "CombatResult",
    "CombatState",
    "Enemy",
    "EnemyAction",
    "EnemyRewards",
    "LogType",
    "PlayerCombatStats",
    "Rank",
    "TurnStatus",
]
