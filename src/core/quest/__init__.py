"""Guild quest definitions."""

from src.core.quest.models import QuestDefinition
from src.core.quest.registry import QuestRegistry, load_default_quests

__all__ = [
    "QuestDefinition",
    "QuestRegistry",
    "load_default_quests",
]
