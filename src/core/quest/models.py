"""Quest definitions (static, loaded from JSON)."""

from __future__ import annotations

import re
from dataclasses import dataclass, field


@dataclass(frozen=True)
class QuestDefinition:
    """A bounty posted at the guild board.

    Completion is detected from story text: the quest counts as done when
    any of ``completion_patterns`` matches.
    """

    id: str
    title: str
    description: str
    reward: int  # gold
    completion_patterns: tuple[re.Pattern, ...] = field(default_factory=tuple)

    def matches(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in self.completion_patterns)
