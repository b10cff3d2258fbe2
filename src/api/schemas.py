"""API request/response schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from src.core.character.models import Character, ClassType, Gender, Item
from src.core.combat.models import CombatAction, CombatResult, CombatState, Enemy
from src.core.shop import ShopState
from src.services.game_session import GameSession, LogEntry


# === Request Schemas ===


class NewGameRequest(BaseModel):
    """New character request"""

    name: str = Field(..., min_length=1, max_length=30, description="Character name")
    class_type: ClassType
    gender: Gender
    appearance: Optional[str] = Field(default=None, max_length=200)
    opening: str = Field(default="main", description="Opening route: main, forest, ruins")
    avatar_url: str = ""


class LocationRequest(BaseModel):
    location: str = Field(..., min_length=1)


class UseItemRequest(BaseModel):
    item_id: str


class PurchaseRequest(BaseModel):
    key: str = Field(..., description="Item template key")
    price: Optional[int] = Field(default=None, ge=0)


class QuestRequest(BaseModel):
    quest_id: str


class PlayerActionRequest(BaseModel):
    """Free-text player action to be narrated"""

    action: str = Field(..., min_length=1, max_length=1000)
    max_tokens: Optional[int] = Field(default=None, description="Token budget, 200-3000")


class NarrativeProcessRequest(BaseModel):
    """Apply the game effects of an already-generated story text"""

    text: str


class CombatActionRequest(BaseModel):
    action: CombatAction


# === Response Schemas ===


class ItemInfo(BaseModel):
    id: str
    name: str
    description: str
    type: str
    rarity: str
    icon: str = ""
    quantity: Optional[int] = None
    stat_bonus: Optional[dict[str, int]] = None
    template_key: Optional[str] = None

    @classmethod
    def from_item(cls, item: Item) -> "ItemInfo":
        return cls(
            id=item.id,
            name=item.name,
            description=item.description,
            type=item.item_type.value,
            rarity=item.rarity.value,
            icon=item.icon,
            quantity=item.quantity,
            stat_bonus=item.stat_bonus.to_dict() if item.stat_bonus else None,
            template_key=item.template_key,
        )


class CharacterInfo(BaseModel):
    name: str
    class_type: str
    gender: str
    level: int
    exp: int
    gold: int
    stats: dict[str, int]
    stats_bonus: dict[str, int]
    current_ap: int
    max_ap: int
    current_hp: int
    max_hp: int
    current_mp: int
    max_mp: int
    inventory: list[ItemInfo] = []
    active_quests: list[str] = []
    completed_quests: list[str] = []
    appearance: Optional[str] = None
    avatar_url: str = ""

    @classmethod
    def from_character(cls, character: Character) -> "CharacterInfo":
        return cls(
            name=character.name,
            class_type=character.class_type.value,
            gender=character.gender.value,
            level=character.level,
            exp=character.exp,
            gold=character.gold,
            stats=character.stats.to_dict(),
            stats_bonus=character.stats_bonus.to_dict(),
            current_ap=character.current_ap,
            max_ap=character.max_ap,
            current_hp=character.current_hp,
            max_hp=character.max_hp,
            current_mp=character.current_mp,
            max_mp=character.max_mp,
            inventory=[ItemInfo.from_item(item) for item in character.inventory],
            active_quests=list(character.active_quests),
            completed_quests=list(character.completed_quests),
            appearance=character.appearance,
            avatar_url=character.avatar_url,
        )


class LogInfo(BaseModel):
    id: str
    speaker: str
    text: str
    type: str

    @classmethod
    def from_entry(cls, entry: LogEntry) -> "LogInfo":
        return cls(id=entry.id, speaker=entry.speaker, text=entry.text, type=entry.type.value)


class ShopInfo(BaseModel):
    current_item_key: Optional[str] = None
    next_refresh_at: float
    purchased_keys: list[str] = []
    achievement_claimed: bool = False

    @classmethod
    def from_state(cls, state: ShopState) -> "ShopInfo":
        return cls(**state.to_dict())


class GameStateResponse(BaseModel):
    """Full session snapshot"""

    success: bool = True
    character: Optional[CharacterInfo] = None
    location: str
    opening: str
    logs: list[LogInfo] = []
    shop: ShopInfo
    in_combat: bool = False
    is_generating: bool = False

    @classmethod
    def from_session(cls, session: GameSession) -> "GameStateResponse":
        return cls(
            character=CharacterInfo.from_character(session.character) if session.character else None,
            location=session.location,
            opening=session.opening,
            logs=[LogInfo.from_entry(entry) for entry in session.logs],
            shop=ShopInfo.from_state(session.shop_state),
            in_combat=session.combat_state.is_in_combat,
            is_generating=session.is_generating,
        )


class ActionResponse(BaseModel):
    """Generic action result"""

    success: bool
    message: str = ""
    notifications: list[str] = []
    narrative: Optional[str] = None
    data: Optional[dict[str, Any]] = None


class EnemyInfo(BaseModel):
    id: str
    name: str
    level: int
    rank: str
    current_hp: int
    max_hp: int
    attack: int
    defense: int
    is_treasure_monster: bool
    reward_gold: int
    reward_exp: int
    reward_items: list[str] = []

    @classmethod
    def from_enemy(cls, enemy: Enemy) -> "EnemyInfo":
        return cls(
            id=enemy.id,
            name=enemy.name,
            level=enemy.level,
            rank=enemy.rank.value,
            current_hp=enemy.current_hp,
            max_hp=enemy.max_hp,
            attack=enemy.attack,
            defense=enemy.defense,
            is_treasure_monster=enemy.is_treasure_monster,
            reward_gold=enemy.rewards.gold,
            reward_exp=enemy.rewards.exp,
            reward_items=list(enemy.rewards.items),
        )


class CombatResultInfo(BaseModel):
    enemy_name: str
    outcome: str
    turns_used: int
    gold: int
    exp: int
    items: list[str] = []
    damage_dealt: int = 0
    damage_taken: int = 0
    ap_used: int = 0
    failure_reason: Optional[str] = None

    @classmethod
    def from_result(cls, result: CombatResult) -> "CombatResultInfo":
        return cls(
            enemy_name=result.enemy.name,
            outcome=result.outcome.value,
            turns_used=result.turns_used,
            gold=result.rewards.gold,
            exp=result.rewards.exp,
            items=list(result.rewards.items),
            damage_dealt=result.player_stats.damage_dealt,
            damage_taken=result.player_stats.damage_taken,
            ap_used=result.player_stats.ap_used,
            failure_reason=result.failure_reason,
        )


class CombatStateResponse(BaseModel):
    success: bool = True
    status: str = "continue"
    message: Optional[str] = None
    result_prompt: Optional[str] = None
    is_in_combat: bool
    enemy: Optional[EnemyInfo] = None
    logs: list[dict[str, Any]] = []
    current_turn: int
    max_turns: int
    is_player_stunned: bool
    enemy_next_action: str
    ap_regen_buff_turns_remaining: int
    show_settlement: bool
    current_ap: int
    max_ap: int
    current_result: Optional[CombatResultInfo] = None
    session_results: list[CombatResultInfo] = []

    @classmethod
    def build(
        cls,
        state: CombatState,
        character: Character,
        status: str = "continue",
        message: Optional[str] = None,
        result_prompt: Optional[str] = None,
    ) -> "CombatStateResponse":
        return cls(
            status=status,
            message=message,
            result_prompt=result_prompt,
            is_in_combat=state.is_in_combat,
            enemy=EnemyInfo.from_enemy(state.current_enemy) if state.current_enemy else None,
            logs=[
                {"id": log.id, "turn": log.turn, "text": log.text, "type": log.type.value}
                for log in state.combat_logs
            ],
            current_turn=state.current_turn,
            max_turns=state.max_turns,
            is_player_stunned=state.is_player_stunned,
            enemy_next_action=state.enemy_next_action.value,
            ap_regen_buff_turns_remaining=state.ap_regen_buff_turns_remaining,
            show_settlement=state.show_settlement,
            current_ap=character.current_ap,
            max_ap=character.max_ap,
            current_result=CombatResultInfo.from_result(state.current_result) if state.current_result else None,
            session_results=[CombatResultInfo.from_result(r) for r in state.session_results],
        )


class SavePreviewInfo(BaseModel):
    slot: int
    character_name: str
    level: int
    gold: int
    exp: int
    location: str
    timestamp: float
    message_count: int
    avatar_url: str = ""
    class_type: str
    quests_completed: int
    quests_active: int
    legendary_purchased: int


class ErrorResponse(BaseModel):
    """Error response"""

    success: bool = False
    error: str
    detail: Optional[str] = None
