"""Per-battle player numbers, recovered by scanning combat log text.

This is a text-pattern heuristic. It depends on the exact wording the engine
uses for its log lines; rewording a log message silently changes the totals.
Tests pin the wording so that drift is caught.
"""

import re
from typing import Iterable

from .models import CombatLog, PlayerCombatStats

# "你对 X 造成了 N 点伤害！"
DAMAGE_DEALT_PATTERN = re.compile(r"你对\s*.+?\s*造成了\s*(\d+)\s*点伤害")
# enemy hits: "对你造成了 N 点行动点伤害" / "消耗了你 N 点行动点" / "只消耗了 N 点行动点"
DAMAGE_TAKEN_PATTERN = re.compile(r"(?:造成了|消耗了你?)\s*(\d+)\s*点行动点")
# player spend suffix: "（消耗 N 点行动点）"
AP_USED_PATTERN = re.compile(r"（消耗\s*(\d+)\s*点行动点）")


def _sum_matches(pattern: re.Pattern, logs: Iterable[CombatLog]) -> int:
    total = 0
    for log in logs:
        if not log.text:
            continue
        match = pattern.search(log.text)
        if match:
            total += int(match.group(1))
    return total


def aggregate_log_stats(logs: Iterable[CombatLog]) -> PlayerCombatStats:
    logs = list(logs)
    return PlayerCombatStats(
        damage_dealt=_sum_matches(DAMAGE_DEALT_PATTERN, logs),
        damage_taken=_sum_matches(DAMAGE_TAKEN_PATTERN, logs),
        ap_used=_sum_matches(AP_USED_PATTERN, logs),
    )


def turns_used(logs: Iterable[CombatLog]) -> int:
    """Highest turn number seen in the logs (0 when empty)."""
    return max((log.turn for log in logs), default=0)
