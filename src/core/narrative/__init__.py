"""Heuristic detectors over generated story text."""

from .event_detector import (
    AppliedEvents,
    NarrativeEvent,
    NarrativeEventType,
    apply_events,
    detect_events,
)
from .quest_detector import QuestCompletionResult, detect_quest_completion

__all__ = [
    "AppliedEvents",
    "NarrativeEvent",
    "NarrativeEventType",
    "apply_events",
    "detect_events",
    "QuestCompletionResult",
    "detect_quest_completion",
]
