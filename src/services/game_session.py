"""GameSession: the single in-memory play session.

Owns the character, adventure log, location, shop state and combat state.
Pure engine functions are fed snapshots from here; results are written back.
Side effects for other services (auto-save) go through the EventBus.
"""

import random
import time
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from functools import partial
from typing import Optional

from src.core.character.inventory import (
    add_item as inventory_add,
    consume_one,
    find_item,
    remove_item as inventory_remove,
)
from src.core.character.models import (
    INITIAL_STATS,
    Character,
    ClassType,
    Gender,
    Item,
    ItemType,
    clamp_gold,
)
from src.core.character.progression import (
    apply_adventure_fatigue,
    grant_experience,
    initialize_hp_mp,
    level_up_message,
)
from src.core.character.registry import ItemRegistry
from src.core.combat import stats
from src.core.combat.config import DEFAULT_COMBAT_CONFIG, CombatConfig
from src.core.combat.models import CombatState
from src.core.errors import ActionRejectedError, NoCharacterError
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.logging import get_logger
from src.core.narrative.event_detector import apply_events, detect_events
from src.core.narrative.quest_detector import detect_quest_completion
from src.core.quest.registry import QuestRegistry
from src.core.shop import (
    OVERLORD_PROOF_KEY,
    ShopState,
    claim_overlord_proof,
    purchase_current,
    refresh_shop,
)
from src.core.world.regions import DEFAULT_LOCATION, danger_warning, get_region_by_location, is_dangerous
from src.services.narrative_prompts import DEFAULT_OPENING, PromptBuilder, get_opening

logger = get_logger(__name__)

SOURCE = "game_session"
SYSTEM_SPEAKER = "系统"
STARTING_GOLD = 100


class EntryType(str, Enum):
    DIALOGUE = "dialogue"
    NARRATION = "narration"
    SYSTEM = "system"


@dataclass
class LogEntry:
    """One line of the adventure log.

    An empty speaker is the narrator. Only DIALOGUE entries are replayed to
    the model as conversation history.
    """

    speaker: str
    text: str
    type: EntryType = EntryType.DIALOGUE
    id: str = field(default_factory=lambda: f"log_{uuid.uuid4().hex[:12]}")

    def to_dict(self) -> dict:
        return {"id": self.id, "speaker": self.speaker, "text": self.text, "type": self.type.value}

    @classmethod
    def from_dict(cls, raw: dict) -> "LogEntry":
        try:
            entry_type = EntryType(raw.get("type", EntryType.DIALOGUE.value))
        except ValueError:
            logger.warning("Unknown log type %r, treating as dialogue", raw.get("type"))
            entry_type = EntryType.DIALOGUE
        return cls(
            speaker=raw.get("speaker", ""),
            text=raw.get("text", ""),
            type=entry_type,
            id=raw.get("id") or f"log_{uuid.uuid4().hex[:12]}",
        )


@dataclass(frozen=True)
class NarrativeOutcome:
    """Game-side effects of one finished story reply."""

    notifications: list[str] = field(default_factory=list)
    completed_quests: list[str] = field(default_factory=list)
    levels_gained: int = 0


class GameSession:
    """Mutable session state plus the non-combat gameplay operations."""

    def __init__(
        self,
        item_registry: ItemRegistry,
        quest_registry: QuestRegistry,
        event_bus: EventBus,
        combat_config: CombatConfig = DEFAULT_COMBAT_CONFIG,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.items = item_registry
        self.quests = quest_registry
        self.prompts = PromptBuilder(item_registry, quest_registry)
        self._bus = event_bus
        self._config = combat_config
        self._rng = rng or random.Random()
        self._max_ap_for_level = partial(stats.max_ap, config=combat_config)
        self.reset()

    def reset(self) -> None:
        """Back to the title screen: no character, empty log."""
        self.character: Optional[Character] = None
        self.logs: list[LogEntry] = []
        self.location: str = DEFAULT_LOCATION
        self.opening: str = DEFAULT_OPENING
        self.shop_state = ShopState(next_refresh_at=time.time())
        self.combat_state = CombatState()
        self.is_generating = False
        self._warned_regions: set[str] = set()
        logger.info("Game session reset")

    @property
    def config(self) -> CombatConfig:
        return self._config

    @property
    def has_character(self) -> bool:
        return self.character is not None

    def require_character(self) -> Character:
        if self.character is None:
            raise NoCharacterError("尚未创建角色")
        return self.character

    def _emit(self, event_type: str, **data) -> None:
        self._bus.emit(GameEvent(event_type=event_type, data=data, source=SOURCE))

    # === character ===

    def create_character(
        self,
        name: str,
        class_type: ClassType,
        gender: Gender,
        appearance: Optional[str] = None,
        opening_id: str = DEFAULT_OPENING,
        avatar_url: str = "",
    ) -> Character:
        """Start a new game. Replaces whatever was in the session."""
        name = name.strip()
        if not name:
            raise ValueError("Character name must not be empty")

        self.reset()
        hp_mp = initialize_hp_mp(1, self._config)
        full_ap = self._max_ap_for_level(1)
        self.character = Character(
            name=name,
            class_type=class_type,
            gender=gender,
            stats=INITIAL_STATS[class_type],
            level=1,
            exp=0,
            gold=STARTING_GOLD,
            current_ap=full_ap,
            max_ap=full_ap,
            current_hp=hp_mp.current_hp,
            max_hp=hp_mp.max_hp,
            current_mp=hp_mp.current_mp,
            max_mp=hp_mp.max_mp,
            appearance=appearance,
            avatar_url=avatar_url,
        )

        opening = get_opening(opening_id)
        self.opening = opening.id
        self.location = opening.location
        self.add_log("", self.prompts.opening_greeting(self.character, opening.id), EntryType.DIALOGUE)
        self.refresh_shop(force=True)
        logger.info("Character created: %s (%s)", name, class_type.value)
        return self.character

    def restore(
        self,
        character: Character,
        logs: list[LogEntry],
        location: str,
        opening: str,
        shop_state: ShopState,
    ) -> None:
        """Install a loaded game. Active combat is never restored."""
        self.reset()
        self.character = character
        self.logs = list(logs)
        self.location = location
        self.opening = opening or DEFAULT_OPENING
        self.shop_state = shop_state
        self.recompute_stats_bonus()
        self.refresh_shop()

    def recompute_stats_bonus(self) -> None:
        if self.character is None:
            return
        bonus = stats.compute_stats_bonus(
            self.character.inventory, self.shop_state.purchased_keys, self.items
        )
        self.character = replace(self.character, stats_bonus=bonus)

    # === adventure log ===

    def add_log(self, speaker: str, text: str, entry_type: EntryType = EntryType.DIALOGUE) -> LogEntry:
        entry = LogEntry(speaker=speaker, text=text, type=entry_type)
        self.logs.append(entry)
        return entry

    def update_log(self, log_id: str, text: str) -> None:
        for entry in self.logs:
            if entry.id == log_id:
                entry.text = text
                return
        logger.warning("update_log: no entry %s", log_id)

    def remove_log(self, log_id: str) -> bool:
        before = len(self.logs)
        self.logs = [entry for entry in self.logs if entry.id != log_id]
        return len(self.logs) != before

    def clear_logs(self) -> None:
        self.logs = []

    # === location ===

    def set_location(self, location: str) -> Optional[str]:
        """Move the party. Returns the danger warning if one was issued.

        Each region warns at most once per session.
        """
        self._bus.reset_chain()
        self.location = location
        self._emit(EventTypes.LOCATION_CHANGED, location=location)

        if self.character is None:
            return None
        region = get_region_by_location(location)
        if region is None or region.id in self._warned_regions:
            return None
        if not is_dangerous(region, self.character.level):
            return None

        self._warned_regions.add(region.id)
        warning = danger_warning(region, self.character.level)
        self.add_log(SYSTEM_SPEAKER, warning, EntryType.SYSTEM)
        return warning

    # === inventory ===

    def add_item(self, item: Item) -> None:
        character = self.require_character()
        self.character = replace(character, inventory=inventory_add(character.inventory, item))
        self.recompute_stats_bonus()
        self._emit(EventTypes.ITEM_ADDED, name=item.name, template_key=item.template_key)

    def remove_item(self, item_id: str) -> None:
        character = self.require_character()
        self.character = replace(character, inventory=inventory_remove(character.inventory, item_id))
        self.recompute_stats_bonus()

    def use_item(self, item_id: str) -> Character:
        """Consume one unit. Food restores AP according to its price band."""
        self._bus.reset_chain()
        character = self.require_character()
        item = find_item(character.inventory, item_id)
        if item is None:
            raise ActionRejectedError("背包中没有这件物品")
        if item.item_type != ItemType.CONSUMABLE:
            raise ActionRejectedError("这件物品无法使用")

        current_ap = character.current_ap
        template = self.items.get(item.template_key) if item.template_key else None
        if template is None:
            template = self.items.find_by_name(item.name)
        if template is not None and template.is_food and template.price is not None:
            current_ap = stats.recover_ap_from_food(
                character.current_ap, character.max_ap, template.price, self._config
            )

        self.character = replace(
            character,
            inventory=consume_one(character.inventory, item_id),
            current_ap=current_ap,
        )
        self.recompute_stats_bonus()
        self._emit(EventTypes.ITEM_USED, name=item.name, ap_recovered=current_ap - character.current_ap)
        return self.character

    def purchase_item(self, key: str, price: Optional[int] = None) -> Item:
        """Buy from the tavern or potion shop (not the legendary shop)."""
        self._bus.reset_chain()
        character = self.require_character()
        template = self.items.require(key)
        cost = price if price is not None else (template.price or 0)
        if cost < 0:
            raise ValueError("price must be >= 0")
        if character.gold < cost:
            raise ActionRejectedError("金币不足")

        item = self.items.create_instance(key)
        self.character = replace(
            character,
            gold=clamp_gold(character.gold - cost),
            inventory=inventory_add(character.inventory, item),
        )
        self.recompute_stats_bonus()
        self.add_log(SYSTEM_SPEAKER, f"你在酒馆点了「{template.name}」，花费了 {cost} G。", EntryType.SYSTEM)
        self._emit(EventTypes.AUTO_SAVE_REQUESTED, reason="purchase")
        return item

    # === quests ===

    def accept_quest(self, quest_id: str) -> bool:
        self._bus.reset_chain()
        character = self.require_character()
        if quest_id not in self.quests:
            raise ValueError(f"Unknown quest: {quest_id}")
        if quest_id in character.active_quests:
            return False
        self.character = replace(character, active_quests=[*character.active_quests, quest_id])
        self._emit(EventTypes.QUEST_ACCEPTED, quest_id=quest_id)
        return True

    def complete_quest(self, quest_id: str) -> bool:
        """Move a quest from active to completed. Rewards are the caller's job."""
        character = self.require_character()
        if quest_id not in character.active_quests:
            return False
        self.character = replace(
            character,
            active_quests=[q for q in character.active_quests if q != quest_id],
            completed_quests=[*character.completed_quests, quest_id],
        )
        return True

    # === legendary shop ===

    def refresh_shop(self, force: bool = False, now: Optional[float] = None) -> ShopState:
        self.shop_state = refresh_shop(
            self.shop_state, time.time() if now is None else now, force=force, rng=self._rng
        )
        return self.shop_state

    def purchase_shop_item(self) -> str:
        """Buy the relic on offer. It lights up the collection, not the bag."""
        self._bus.reset_chain()
        character = self.require_character()
        key = self.shop_state.current_item_key
        self.shop_state, gold = purchase_current(self.shop_state, character.gold)
        self.character = replace(character, gold=clamp_gold(gold))
        self.recompute_stats_bonus()
        self._emit(EventTypes.SHOP_PURCHASED, key=key)
        self._emit(EventTypes.AUTO_SAVE_REQUESTED, reason="shop")
        return key

    def claim_overlord_proof(self) -> Item:
        self._bus.reset_chain()
        character = self.require_character()
        self.shop_state = claim_overlord_proof(self.shop_state)
        proof = self.items.create_instance(OVERLORD_PROOF_KEY)
        self.character = replace(character, inventory=inventory_add(character.inventory, proof))
        self.recompute_stats_bonus()
        self._emit(EventTypes.AUTO_SAVE_REQUESTED, reason="achievement")
        return proof

    # === dialogue tick ===

    def process_narrative(self, text: str) -> NarrativeOutcome:
        """Apply the game effects of one finished story reply.

        Order: AP recovery, narrative events, dialogue exp (level-up or
        fatigue), then quest completion.
        """
        self._bus.reset_chain()
        character = self.require_character()
        notifications: list[str] = []

        if not self.combat_state.is_in_combat:
            character = replace(
                character, current_ap=stats.recover_ap(character.current_ap, character.max_ap, self._config)
            )

        events = detect_events(text, self._rng, self._config)
        applied = apply_events(events, character.current_hp, character.max_hp, character.gold, character.exp)
        notifications.extend(applied.notifications)
        character = replace(character, gold=clamp_gold(applied.gold), current_hp=applied.hp)
        exp_gain = (applied.exp - character.exp) + self._config.exp_sources["DIALOGUE"]

        character, levels = grant_experience(
            character, exp_gain, self._max_ap_for_level, self._rng, self._config
        )
        if levels == 0:
            hp, mp = apply_adventure_fatigue(
                character.current_hp,
                character.max_hp,
                character.current_mp,
                character.max_mp,
                self._rng,
                self._config,
            )
            # fatigue only drains; it never lifts a value already below its floor
            character = replace(
                character,
                current_hp=min(character.current_hp, hp),
                current_mp=min(character.current_mp, mp),
            )
        self.character = character

        result = detect_quest_completion(text, character.active_quests, self.quests)
        if result.completed_quest_ids:
            for quest_id in result.completed_quest_ids:
                self.complete_quest(quest_id)
            quest_exp = self._config.exp_sources["QUEST_COMPLETE"] * len(result.completed_quest_ids)
            self.character = replace(self.character, gold=clamp_gold(self.character.gold + result.gold))
            self.character, quest_levels = grant_experience(
                self.character, quest_exp, self._max_ap_for_level, self._rng, self._config
            )
            levels += quest_levels
            notifications.extend(result.notifications)
            self._emit(EventTypes.QUEST_COMPLETED, quest_ids=list(result.completed_quest_ids))

        if levels:
            notifications.append(level_up_message(self.character.name, self.character.level, levels))
            self._emit(EventTypes.LEVEL_UP, level=self.character.level, levels_gained=levels)

        self._emit(EventTypes.NARRATIVE_PROCESSED, event_count=len(events))
        if result.completed_quest_ids:
            self._emit(EventTypes.AUTO_SAVE_REQUESTED, reason="quest")

        return NarrativeOutcome(
            notifications=notifications,
            completed_quests=list(result.completed_quest_ids),
            levels_gained=levels,
        )
