"""Quest registry: JSON load and lookup."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Optional

from .models import QuestDefinition

logger = logging.getLogger(__name__)

DEFAULT_QUESTS_PATH = Path(__file__).resolve().parents[2] / "data" / "quests.json"


class QuestRegistry:
    def __init__(self) -> None:
        self._quests: dict[str, QuestDefinition] = {}

    def load_from_json(self, path: str | Path = DEFAULT_QUESTS_PATH) -> int:
        path = Path(path)
        with path.open("r", encoding="utf-8") as f:
            raw_list: list[dict] = json.load(f)

        count = 0
        for raw in raw_list:
            try:
                quest = QuestDefinition(
                    id=raw["id"],
                    title=raw["title"],
                    description=raw.get("description", ""),
                    reward=int(raw.get("reward", 0)),
                    completion_patterns=tuple(
                        re.compile(p) for p in raw.get("completion_patterns", [])
                    ),
                )
            except (KeyError, ValueError, re.error) as e:
                logger.warning("Failed to load quest %s: %s", raw.get("id", "?"), e)
                continue
            self.register(quest)
            count += 1

        logger.info("Loaded %d quests from %s", count, path)
        return count

    def register(self, quest: QuestDefinition) -> None:
        if quest.id in self._quests:
            logger.warning("Overwriting existing quest: %s", quest.id)
        self._quests[quest.id] = quest

    def get(self, quest_id: str) -> Optional[QuestDefinition]:
        return self._quests.get(quest_id)

    def __contains__(self, quest_id: str) -> bool:
        return quest_id in self._quests

    def all(self) -> list[QuestDefinition]:
        return list(self._quests.values())

    def count(self) -> int:
        return len(self._quests)


def load_default_quests() -> QuestRegistry:
    registry = QuestRegistry()
    registry.load_from_json(DEFAULT_QUESTS_PATH)
    return registry
