"""Save/load of the game session.

A save is one JSON document per slot in the ``save_slots`` table. Slot 0
is the auto-save slot. Active combat is never saved; only the AP snapshot
travels with the save.

Old saves may lack HP/MP or AP fields. Loading fills them in: HP/MP from the
level formulas with a small random dip, AP from the save's AP snapshot or the
level maximum.
"""

import random
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import partial
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from src.core.character.models import (
    Character,
    CharacterStats,
    ClassType,
    Gender,
    Item,
    ItemType,
    Rarity,
    clamp_gold,
)
from src.core.character.progression import initialize_hp_mp, micro_fluctuation
from src.core.combat import stats
from src.core.combat.config import DEFAULT_COMBAT_CONFIG, CombatConfig
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.logging import get_logger
from src.core.shop import ShopState
from src.db.models import SaveSlotModel
from src.services.game_session import GameSession, LogEntry

logger = get_logger(__name__)

SAVE_VERSION = "1.0.0"
SAVE_KEY_PREFIX = "aetheria_save_slot_"
AUTO_SAVE_SLOT = 0
MAX_SLOTS = 6  # slot 0 (auto) + 5 manual


def slot_key(slot: int) -> str:
    if not 0 <= slot < MAX_SLOTS:
        raise ValueError(f"Save slot out of range: {slot}")
    return f"{SAVE_KEY_PREFIX}{slot}"


class SaveStore:
    """Key/value JSON storage on top of SQLAlchemy."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def get(self, key: str) -> Optional[dict]:
        with self._session_factory() as db:
            row = db.get(SaveSlotModel, key)
            return dict(row.data) if row is not None else None

    def put(self, key: str, value: dict) -> None:
        with self._session_factory() as db:
            row = db.get(SaveSlotModel, key)
            now = datetime.now(timezone.utc)
            if row is None:
                db.add(SaveSlotModel(key=key, data=value, updated_at=now))
            else:
                row.data = value
                row.updated_at = now
            db.commit()

    def delete(self, key: str) -> bool:
        with self._session_factory() as db:
            row = db.get(SaveSlotModel, key)
            if row is None:
                return False
            db.delete(row)
            db.commit()
            return True


# === serialization ===


def item_to_dict(item: Item) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "description": item.description,
        "type": item.item_type.value,
        "rarity": item.rarity.value,
        "icon": item.icon,
        "quantity": item.quantity,
        "stat_bonus": item.stat_bonus.to_dict() if item.stat_bonus else None,
        "template_key": item.template_key,
        "price": item.price,
    }


def item_from_dict(raw: dict[str, Any]) -> Item:
    bonus = raw.get("stat_bonus")
    return Item(
        id=raw["id"],
        name=raw["name"],
        description=raw.get("description", ""),
        item_type=ItemType(raw.get("type", ItemType.MATERIAL.value)),
        rarity=Rarity(raw.get("rarity", Rarity.COMMON.value)),
        icon=raw.get("icon", ""),
        quantity=raw.get("quantity"),
        stat_bonus=CharacterStats.from_dict(bonus) if bonus else None,
        template_key=raw.get("template_key"),
        price=raw.get("price"),
    )


def character_to_dict(character: Character) -> dict[str, Any]:
    return {
        "name": character.name,
        "class_type": character.class_type.value,
        "gender": character.gender.value,
        "stats": character.stats.to_dict(),
        "level": character.level,
        "exp": character.exp,
        "gold": character.gold,
        "inventory": [item_to_dict(item) for item in character.inventory],
        "active_quests": list(character.active_quests),
        "completed_quests": list(character.completed_quests),
        "current_ap": character.current_ap,
        "max_ap": character.max_ap,
        "current_hp": character.current_hp,
        "max_hp": character.max_hp,
        "current_mp": character.current_mp,
        "max_mp": character.max_mp,
        "stats_bonus": character.stats_bonus.to_dict(),
        "appearance": character.appearance,
        "avatar_url": character.avatar_url,
    }


def character_from_dict(
    raw: dict[str, Any],
    combat_ap: Optional[dict[str, int]] = None,
    rng: Optional[random.Random] = None,
    config: CombatConfig = DEFAULT_COMBAT_CONFIG,
) -> Character:
    """Rebuild a Character, filling fields that older saves do not have."""
    level = int(raw.get("level", 1))

    if raw.get("current_hp") is None or raw.get("max_hp") is None:
        logger.info("Old save detected, initializing HP/MP")
        hp_mp = initialize_hp_mp(level, config)
        current_hp = micro_fluctuation(hp_mp.max_hp, rng, config)
        current_mp = micro_fluctuation(hp_mp.max_mp, rng, config)
        max_hp, max_mp = hp_mp.max_hp, hp_mp.max_mp
    else:
        current_hp, max_hp = int(raw["current_hp"]), int(raw["max_hp"])
        current_mp = int(raw.get("current_mp", 0))
        max_mp = int(raw.get("max_mp", 0))

    if raw.get("current_ap") is None or raw.get("max_ap") is None:
        logger.info("Old save detected, initializing AP")
        level_max = stats.max_ap(level, config)
        current_ap = (combat_ap or {}).get("current_ap", level_max)
        max_ap = (combat_ap or {}).get("max_ap", level_max)
    elif combat_ap:
        current_ap, max_ap = combat_ap["current_ap"], combat_ap["max_ap"]
    else:
        current_ap, max_ap = int(raw["current_ap"]), int(raw["max_ap"])

    return Character(
        name=raw["name"],
        class_type=ClassType(raw["class_type"]),
        gender=Gender(raw["gender"]),
        stats=CharacterStats.from_dict(raw.get("stats")),
        level=level,
        exp=int(raw.get("exp", 0)),
        gold=clamp_gold(int(raw.get("gold", 0))),
        inventory=[item_from_dict(item) for item in raw.get("inventory", [])],
        active_quests=list(raw.get("active_quests", [])),
        completed_quests=list(raw.get("completed_quests", [])),
        current_ap=int(current_ap),
        max_ap=int(max_ap),
        current_hp=current_hp,
        max_hp=max_hp,
        current_mp=current_mp,
        max_mp=max_mp,
        stats_bonus=CharacterStats.from_dict(raw.get("stats_bonus")),
        appearance=raw.get("appearance"),
        avatar_url=raw.get("avatar_url", ""),
    )


@dataclass(frozen=True)
class SavePreview:
    slot: int
    character_name: str
    level: int
    gold: int
    exp: int
    location: str
    timestamp: float
    message_count: int
    avatar_url: str
    class_type: str
    quests_completed: int
    quests_active: int
    legendary_purchased: int


class SaveService:
    def __init__(
        self,
        store: SaveStore,
        session: GameSession,
        event_bus: EventBus,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._store = store
        self._session = session
        self._bus = event_bus
        self._rng = rng or random.Random()
        self._character_from_dict = partial(character_from_dict, config=session.config)
        self._bus.subscribe(EventTypes.AUTO_SAVE_REQUESTED, self._on_auto_save_requested)

    def _on_auto_save_requested(self, event: GameEvent) -> None:
        if not self._session.has_character:
            return
        self.save(AUTO_SAVE_SLOT)
        logger.info("Auto-saved to slot %d (%s)", AUTO_SAVE_SLOT, event.data.get("reason", "-"))

    def build_save_data(self) -> dict[str, Any]:
        session = self._session
        character = session.require_character()
        return {
            "version": SAVE_VERSION,
            "character": character_to_dict(character),
            "logs": [entry.to_dict() for entry in session.logs],
            "location": session.location,
            "timestamp": time.time(),
            "opening": session.opening,
            "shop_state": session.shop_state.to_dict(),
            "combat_ap": {"current_ap": character.current_ap, "max_ap": character.max_ap},
        }

    def save(self, slot: int) -> float:
        """Write the session to a slot. Returns the save timestamp."""
        key = slot_key(slot)
        data = self.build_save_data()
        self._store.put(key, data)
        logger.info("Game saved to slot %d", slot)
        return data["timestamp"]

    def load(self, slot: int) -> bool:
        """Replace the session with a slot's content. False when the slot is empty."""
        data = self._store.get(slot_key(slot))
        if data is None:
            logger.info("No save data in slot %d", slot)
            return False

        if data.get("version") != SAVE_VERSION:
            logger.warning(
                "Save version mismatch in slot %d (%s != %s), loading anyway",
                slot,
                data.get("version"),
                SAVE_VERSION,
            )

        character = self._character_from_dict(data["character"], data.get("combat_ap"), self._rng)
        self._session.restore(
            character=character,
            logs=[LogEntry.from_dict(raw) for raw in data.get("logs", [])],
            location=data.get("location") or self._session.location,
            opening=data.get("opening") or "main",
            shop_state=ShopState.from_dict(data.get("shop_state")),
        )
        logger.info("Game loaded from slot %d", slot)
        return True

    def preview(self, slot: int) -> Optional[SavePreview]:
        data = self._store.get(slot_key(slot))
        if data is None:
            return None
        raw = data.get("character", {})
        return SavePreview(
            slot=slot,
            character_name=raw.get("name", ""),
            level=int(raw.get("level", 1)),
            gold=int(raw.get("gold", 0)),
            exp=int(raw.get("exp", 0)),
            location=data.get("location", ""),
            timestamp=float(data.get("timestamp", 0.0)),
            message_count=len(data.get("logs", [])),
            avatar_url=raw.get("avatar_url", ""),
            class_type=raw.get("class_type", ""),
            quests_completed=len(raw.get("completed_quests", [])),
            quests_active=len(raw.get("active_quests", [])),
            legendary_purchased=len((data.get("shop_state") or {}).get("purchased_keys", [])),
        )

    def list_previews(self) -> list[SavePreview]:
        previews = (self.preview(slot) for slot in range(MAX_SLOTS))
        return [p for p in previews if p is not None]

    def delete(self, slot: int) -> bool:
        return self._store.delete(slot_key(slot))
