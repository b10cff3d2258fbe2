"""Log-text aggregation of per-battle player numbers."""

from src.core.combat.log_stats import aggregate_log_stats, turns_used
from src.core.combat.models import CombatLog, LogType


def _log(turn: int, text: str) -> CombatLog:
    return CombatLog(turn=turn, text=text, type=LogType.SYSTEM)


class TestAggregate:
    def test_every_line_shape(self):
        logs = [
            _log(0, "遭遇了 D级 蓝色史莱姆（Lv.1）！"),
            _log(1, "你对 蓝色史莱姆 造成了 12 点伤害！（消耗 20 点行动点）"),
            _log(1, "蓝色史莱姆 发动强力攻击！消耗了你 10 点行动点，你被击晕了！"),
            _log(2, "蓝色史莱姆 趁机攻击，消耗了你 5 点行动点！"),
            _log(3, "你进入了防御姿态。（消耗 10 点行动点）"),
            _log(3, "蓝色史莱姆 对你造成了 2 点行动点伤害。（防御减伤）"),
            _log(4, "撤退失败！在逃跑时被攻击，消耗了 5 点行动点。"),
            _log(5, "你对 蓝色史莱姆 造成了 30 点伤害！"),
        ]

        totals = aggregate_log_stats(logs)

        assert totals.damage_dealt == 42
        assert totals.damage_taken == 10 + 5 + 2 + 5
        assert totals.ap_used == 30

    def test_recovery_lines_are_not_damage(self):
        logs = [
            _log(1, "治愈药水生效，你立即恢复了 30 点行动点，接下来数回合还会持续恢复。"),
            _log(2, "灵能涌动，你的行动点瞬间回满（+60）。"),
        ]
        totals = aggregate_log_stats(logs)
        assert (totals.damage_dealt, totals.damage_taken, totals.ap_used) == (0, 0, 0)

    def test_empty_text_skipped(self):
        assert aggregate_log_stats([_log(1, "")]).damage_taken == 0


class TestTurnsUsed:
    def test_highest_turn(self):
        assert turns_used([_log(0, "a"), _log(3, "b"), _log(2, "c")]) == 3

    def test_empty(self):
        assert turns_used([]) == 0
