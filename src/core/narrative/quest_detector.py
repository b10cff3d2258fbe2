"""Quest completion detection over story text.

Each quest carries its own hand-written synonym patterns. Like the event
detector this is a heuristic and will occasionally misfire.
"""

import logging
from dataclasses import dataclass, field

from src.core.quest.registry import QuestRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestCompletionResult:
    completed_quest_ids: list[str] = field(default_factory=list)
    gold: int = 0
    notifications: list[str] = field(default_factory=list)


def detect_quest_completion(
    text: str,
    active_quest_ids: list[str],
    quest_registry: QuestRegistry,
) -> QuestCompletionResult:
    completed: list[str] = []
    gold = 0
    notifications: list[str] = []

    for quest_id in active_quest_ids:
        quest = quest_registry.get(quest_id)
        if quest is None:
            logger.warning("Active quest not in registry: %s", quest_id)
            continue
        if quest.matches(text):
            completed.append(quest_id)
            gold += quest.reward
            notifications.append(f"✓ 任务完成：{quest.title}（+{quest.reward}G）")

    if completed:
        logger.info("Quests completed from narrative: %s", completed)
    return QuestCompletionResult(completed_quest_ids=completed, gold=gold, notifications=notifications)
