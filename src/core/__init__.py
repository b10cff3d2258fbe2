"""Aetheria Core Engine"""
__version__ = "0.1.0"

from src.core.character import Character, CharacterStats, ClassType, Item, ItemRegistry
from src.core.combat import CombatConfig, CombatEngine, CombatState, EnemyGenerator, TurnStatus
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes

__all__ = [
    "Character",
    "CharacterStats",
    "ClassType",
    "Item",
    "ItemRegistry",
    "CombatConfig",
    "CombatEngine",
    "CombatState",
    "EnemyGenerator",
    "TurnStatus",
    "EventBus",
    "GameEvent",
    "EventTypes",
]
