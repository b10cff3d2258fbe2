"""Combat domain models.

CombatState is frozen; engine steps build a new one per resolution.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class Rank(str, Enum):
    D = "D"
    C = "C"
    B = "B"
    A = "A"


class EnemyAction(str, Enum):
    NORMAL = "NORMAL"
    STRONG = "STRONG"


class LogType(str, Enum):
    SYSTEM = "system"
    ACTION = "action"
    DAMAGE = "damage"
    WARNING = "warning"
    VICTORY = "victory"
    DEFEAT = "defeat"


class TurnStatus(str, Enum):
    """Result of one engine resolution step."""

    CONTINUE = "continue"
    VICTORY = "victory"
    DEFEAT = "defeat"
    ESCAPED = "escaped"
    TIMEOUT = "timeout"

    @property
    def is_terminal(self) -> bool:
        return self != TurnStatus.CONTINUE


class CombatOutcome(str, Enum):
    """Settled outcome recorded in a CombatResult."""

    VICTORY = "victory"
    DEFEAT = "defeat"
    RETREAT = "retreat"

    @classmethod
    def from_status(cls, status: TurnStatus) -> CombatOutcome:
        if status == TurnStatus.VICTORY:
            return cls.VICTORY
        if status == TurnStatus.DEFEAT:
            return cls.DEFEAT
        if status in (TurnStatus.ESCAPED, TurnStatus.TIMEOUT):
            return cls.RETREAT
        raise ValueError(f"Not a terminal status: {status}")


class CombatAction(str, Enum):
    ATTACK = "attack"
    DEFEND = "defend"
    SKIP = "skip"
    USE_HEAL_POTION = "useHealPotion"
    USE_ARCANE_TONIC = "useArcaneTonic"


@dataclass(frozen=True)
class EnemyRewards:
    gold: int
    exp: int
    items: tuple[str, ...] = ()


@dataclass(frozen=True)
class Enemy:
    id: str
    name: str
    level: int
    rank: Rank
    current_hp: int
    max_hp: int
    attack: int
    defense: int
    rewards: EnemyRewards
    is_treasure_monster: bool = False
    description: str = ""
    family: str = ""
    element: str = ""
    biomes: tuple[str, ...] = ()


@dataclass(frozen=True)
class CombatLog:
    turn: int
    text: str
    type: LogType
    id: str = field(default_factory=lambda: f"clog_{uuid.uuid4().hex[:12]}")


@dataclass(frozen=True)
class PlayerCombatStats:
    damage_dealt: int = 0
    damage_taken: int = 0
    ap_used: int = 0


@dataclass(frozen=True)
class CombatResult:
    enemy: Enemy
    outcome: CombatOutcome
    turns_used: int
    rewards: EnemyRewards
    player_stats: PlayerCombatStats
    failure_reason: Optional[str] = None


@dataclass(frozen=True)
class CombatState:
    is_in_combat: bool = False
    current_enemy: Optional[Enemy] = None
    combat_logs: tuple[CombatLog, ...] = ()
    current_turn: int = 0
    max_turns: int = 10
    is_player_stunned: bool = False
    enemy_next_action: EnemyAction = EnemyAction.NORMAL
    ap_regen_buff_turns_remaining: int = 0
    show_settlement: bool = False
    current_result: Optional[CombatResult] = None
    session_results: tuple[CombatResult, ...] = ()
