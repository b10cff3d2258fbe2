"""Keyword detectors over generated story text.

Best-effort heuristics: free prose gives both false positives ("他没有受伤"
still contains 受伤) and false negatives (unusual synonyms). That is
accepted; the text source emits no structured markers. Known examples of
both are pinned in the tests.
"""

import logging
import random
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional

from src.core.combat.config import CombatConfig, DEFAULT_COMBAT_CONFIG

logger = logging.getLogger(__name__)


class NarrativeEventType(str, Enum):
    COMBAT = "COMBAT"
    VICTORY = "VICTORY"
    DEFEAT = "DEFEAT"
    ITEM_FOUND = "ITEM_FOUND"
    GOLD_FOUND = "GOLD_FOUND"
    REST = "REST"
    LEVEL_UP = "LEVEL_UP"


@dataclass(frozen=True)
class NarrativeEvent:
    type: NarrativeEventType
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AppliedEvents:
    hp: int
    gold: int
    exp: int
    notifications: list[str]


COMBAT_PATTERN = re.compile(r"战斗|击中|攻击|受伤|被打|挨揍|负伤|刀剑|利爪")
VICTORY_PATTERN = re.compile(r"击败|战胜|消灭|打倒|获胜|胜利|敌人倒下|怪物死亡")
# "敌人倒下" / "怪物死亡" describe the other side falling
DEFEAT_PATTERN = re.compile(r"(?<!敌人)(?<!怪物)(?:倒下|死亡)|失败|战败|昏迷|失去意识")
ITEM_PATTERN = re.compile(r"获得|得到|拾取|捡到|发现|宝箱|药剂|道具|装备")
ITEM_NAME_PATTERN = re.compile(r"获得了?([^。！，、]*?)(药|剑|盾|铠|书|石|珠|戒指|项链)")
GOLD_PATTERN = re.compile(r"金币|钱币|赏金|报酬|奖励.*金")
GOLD_AMOUNT_PATTERN = re.compile(r"(\d+).*?金币")
REST_PATTERN = re.compile(r"休息|疗伤|恢复|治疗|包扎|睡眠|旅馆|客栈")
LEVEL_UP_PATTERN = re.compile(r"升级|等级提升")

DEFAULT_ITEM_NAME = "神秘道具"

Detector = Callable[[str, Any, CombatConfig], Optional[NarrativeEvent]]


def detect_defeat(text: str, rng, config: CombatConfig) -> Optional[NarrativeEvent]:
    if DEFEAT_PATTERN.search(text):
        return NarrativeEvent(NarrativeEventType.DEFEAT)
    return None


def detect_victory(text: str, rng, config: CombatConfig) -> Optional[NarrativeEvent]:
    if VICTORY_PATTERN.search(text):
        return NarrativeEvent(
            NarrativeEventType.VICTORY,
            {
                "exp_gain": rng.randint(*config.story_victory_exp),
                "gold_gain": rng.randint(*config.story_victory_gold),
            },
        )
    return None


def detect_combat(text: str, rng, config: CombatConfig) -> Optional[NarrativeEvent]:
    if COMBAT_PATTERN.search(text):
        hp_loss = rng.randint(*config.story_combat_hp_loss)
        return NarrativeEvent(NarrativeEventType.COMBAT, {"hp_loss": hp_loss})
    return None


def detect_item_found(text: str, rng, config: CombatConfig) -> Optional[NarrativeEvent]:
    if ITEM_PATTERN.search(text):
        match = ITEM_NAME_PATTERN.search(text)
        name = match.group(0) if match else DEFAULT_ITEM_NAME
        return NarrativeEvent(NarrativeEventType.ITEM_FOUND, {"item_name": name})
    return None


def detect_gold_found(text: str, rng, config: CombatConfig) -> Optional[NarrativeEvent]:
    if GOLD_PATTERN.search(text):
        match = GOLD_AMOUNT_PATTERN.search(text)
        amount = int(match.group(1)) if match else rng.randint(*config.story_gold_fallback)
        return NarrativeEvent(NarrativeEventType.GOLD_FOUND, {"gold_amount": amount})
    return None


def detect_rest(text: str, rng, config: CombatConfig) -> Optional[NarrativeEvent]:
    if REST_PATTERN.search(text):
        recovered = rng.randint(*config.story_rest_hp)
        return NarrativeEvent(NarrativeEventType.REST, {"hp_recovered": recovered})
    return None


def detect_level_up(text: str, rng, config: CombatConfig) -> Optional[NarrativeEvent]:
    if LEVEL_UP_PATTERN.search(text):
        return NarrativeEvent(NarrativeEventType.LEVEL_UP)
    return None


# defeat runs before victory so ambiguous text resolves to defeat
DETECTORS: tuple[Detector, ...] = (
    detect_defeat,
    detect_victory,
    detect_combat,
    detect_item_found,
    detect_gold_found,
    detect_rest,
    detect_level_up,
)


def detect_events(
    text: str,
    rng: Optional[random.Random] = None,
    config: CombatConfig = DEFAULT_COMBAT_CONFIG,
) -> list[NarrativeEvent]:
    rng = rng or random
    events: list[NarrativeEvent] = []
    defeated = False
    for detector in DETECTORS:
        event = detector(text, rng, config)
        if event is None:
            continue
        if event.type == NarrativeEventType.DEFEAT:
            defeated = True
        elif event.type == NarrativeEventType.VICTORY and defeated:
            continue
        events.append(event)

    if events:
        logger.debug("Detected narrative events: %s", [e.type.value for e in events])
    return events


def apply_events(
    events: list[NarrativeEvent],
    current_hp: int,
    max_hp: int,
    gold: int,
    exp: int,
) -> AppliedEvents:
    """Fold events into (hp, gold, exp). Caller clamps gold and levels exp."""
    hp = current_hp
    notifications: list[str] = []

    for event in events:
        data = event.data
        if event.type == NarrativeEventType.COMBAT:
            hp = max(0, hp - data["hp_loss"])
            notifications.append(f"受到 {data['hp_loss']} 点伤害")
        elif event.type == NarrativeEventType.VICTORY:
            exp += data["exp_gain"]
            gold += data["gold_gain"]
            notifications.append(f"获得 {data['exp_gain']} 经验值、{data['gold_gain']} 金币")
        elif event.type == NarrativeEventType.DEFEAT:
            hp = 0
            notifications.append("你被击败了...")
        elif event.type == NarrativeEventType.ITEM_FOUND:
            notifications.append(f"获得道具：{data['item_name']}")
        elif event.type == NarrativeEventType.GOLD_FOUND:
            gold += data["gold_amount"]
            notifications.append(f"获得 {data['gold_amount']} 金币")
        elif event.type == NarrativeEventType.REST:
            hp = min(max_hp, hp + data["hp_recovered"])
            notifications.append(f"恢复 {data['hp_recovered']} HP")
        elif event.type == NarrativeEventType.LEVEL_UP:
            notifications.append("等级提升！")

    return AppliedEvents(hp=hp, gold=gold, exp=exp, notifications=notifications)
