"""Character and item domain models (no persistence concerns)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

MAX_LEVEL = 99
MAX_GOLD = 999_999_999
MAX_STACK = 99

STAT_NAMES: tuple[str, ...] = ("STR", "DEX", "INT", "CHA", "LUCK")


class ClassType(str, Enum):
    ALCHEMIST = "Alchemist"
    KNIGHT = "Knight"
    SKY_PIRATE = "Sky Pirate"
    SCHOLAR = "Scholar"


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    NON_BINARY = "Non-binary"


class ItemType(str, Enum):
    CONSUMABLE = "Consumable"
    EQUIPMENT = "Equipment"
    MATERIAL = "Material"
    KEY = "Key"


class Rarity(str, Enum):
    COMMON = "Common"
    RARE = "Rare"
    EPIC = "Epic"
    LEGENDARY = "Legendary"


CLASS_LABELS: dict[ClassType, str] = {
    ClassType.ALCHEMIST: "炼金术士",
    ClassType.KNIGHT: "王国骑士",
    ClassType.SKY_PIRATE: "碧空海盗",
    ClassType.SCHOLAR: "遗迹学者",
}


@dataclass(frozen=True)
class CharacterStats:
    """Five core attributes. Bonuses may be negative."""

    STR: int = 0
    DEX: int = 0
    INT: int = 0
    CHA: int = 0
    LUCK: int = 0

    def __add__(self, other: CharacterStats) -> CharacterStats:
        return CharacterStats(
            STR=self.STR + other.STR,
            DEX=self.DEX + other.DEX,
            INT=self.INT + other.INT,
            CHA=self.CHA + other.CHA,
            LUCK=self.LUCK + other.LUCK,
        )

    def to_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in STAT_NAMES}

    @classmethod
    def from_dict(cls, raw: Optional[dict]) -> CharacterStats:
        raw = raw or {}
        return cls(**{name: int(raw.get(name, 0)) for name in STAT_NAMES})


INITIAL_STATS: dict[ClassType, CharacterStats] = {
    ClassType.ALCHEMIST: CharacterStats(STR=3, DEX=6, INT=10, CHA=5, LUCK=8),
    ClassType.KNIGHT: CharacterStats(STR=10, DEX=5, INT=4, CHA=7, LUCK=4),
    ClassType.SKY_PIRATE: CharacterStats(STR=6, DEX=9, INT=5, CHA=8, LUCK=7),
    ClassType.SCHOLAR: CharacterStats(STR=2, DEX=4, INT=12, CHA=6, LUCK=5),
}


@dataclass(frozen=True)
class Item:
    """Inventory entry. ``quantity`` is only meaningful for consumables."""

    id: str
    name: str
    description: str
    item_type: ItemType
    rarity: Rarity
    icon: str = ""
    quantity: Optional[int] = None
    stat_bonus: Optional[CharacterStats] = None
    template_key: Optional[str] = None
    price: Optional[int] = None

    @property
    def is_consumable(self) -> bool:
        return self.item_type == ItemType.CONSUMABLE


@dataclass
class Character:
    """Player character snapshot.

    Engine functions never mutate a Character in place; they build a new one
    with ``dataclasses.replace``.
    """

    name: str
    class_type: ClassType
    gender: Gender
    stats: CharacterStats
    level: int = 1
    exp: int = 0
    gold: int = 0
    inventory: list[Item] = field(default_factory=list)
    active_quests: list[str] = field(default_factory=list)
    completed_quests: list[str] = field(default_factory=list)
    current_ap: int = 100
    max_ap: int = 100
    current_hp: int = 120
    max_hp: int = 120
    current_mp: int = 60
    max_mp: int = 60
    stats_bonus: CharacterStats = field(default_factory=CharacterStats)
    appearance: Optional[str] = None
    avatar_url: str = ""


def clamp_gold(gold: int) -> int:
    """Clamp gold into ``[0, MAX_GOLD]``."""
    return max(0, min(MAX_GOLD, gold))
