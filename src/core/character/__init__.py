"""Character domain: models, inventory, item registry, progression."""

from .models import (
    CLASS_LABELS,
    INITIAL_STATS,
    MAX_GOLD,
    MAX_LEVEL,
    MAX_STACK,
    Character,
    CharacterStats,
    ClassType,
    Gender,
    Item,
    ItemType,
    Rarity,
    clamp_gold,
)
from .registry import ItemRegistry, ItemTemplate, load_default_registry

__all__ = [
    "CLASS_LABELS",
    "INITIAL_STATS",
    "MAX_GOLD",
    "MAX_LEVEL",
    "MAX_STACK",
    "Character",
    "CharacterStats",
    "ClassType",
    "Gender",
    "Item",
    "ItemType",
    "Rarity",
    "clamp_gold",
    "ItemRegistry",
    "ItemTemplate",
    "load_default_registry",
]
