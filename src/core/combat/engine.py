"""Turn-based combat resolver.

Every action takes (character, state) snapshots and returns a
TurnResolution with fresh snapshots; nothing is mutated in place.

Per continuing step, in order:
1. player action and its AP changes
2. enemy strike and defeat check
3. heal-over-time tick
4. turn advance and timeout check
5. roll of the enemy's next action
"""

import logging
import math
import random
from dataclasses import dataclass, replace
from typing import Optional

from src.core.character.inventory import consume_at, find_consumable_index
from src.core.character.models import Character
from src.core.errors import ActionRejectedError, NoActiveCombatError

from . import stats
from .config import CombatConfig, DEFAULT_COMBAT_CONFIG
from .models import (
    CombatAction,
    CombatLog,
    CombatResult,
    CombatState,
    Enemy,
    EnemyAction,
    LogType,
    TurnStatus,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TurnResolution:
    character: Character
    state: CombatState
    status: TurnStatus


def _append(logs: tuple[CombatLog, ...], turn: int, text: str, log_type: LogType) -> tuple[CombatLog, ...]:
    return logs + (CombatLog(turn=turn, text=text, type=log_type),)


class CombatEngine:
    """Stateless apart from config and rng; one instance serves every battle."""

    def __init__(
        self,
        config: CombatConfig = DEFAULT_COMBAT_CONFIG,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._config = config
        self._rng = rng or random.Random()

    @property
    def config(self) -> CombatConfig:
        return self._config

    def _roll_next_action(self) -> EnemyAction:
        if stats.will_enemy_use_strong_attack(self._rng, self._config):
            return EnemyAction.STRONG
        return EnemyAction.NORMAL

    # === lifecycle ===

    def init_combat(
        self,
        enemy: Enemy,
        max_turns: int,
        session_results: tuple[CombatResult, ...] = (),
    ) -> CombatState:
        treasure_note = " 这是稀有的珍宝怪！" if enemy.is_treasure_monster else ""
        opening = CombatLog(
            turn=0,
            text=f"遭遇了 {enemy.rank.value}级 {enemy.name}（Lv.{enemy.level}）！{treasure_note}",
            type=LogType.SYSTEM,
        )
        return CombatState(
            is_in_combat=True,
            current_enemy=enemy,
            combat_logs=(opening,),
            current_turn=1,
            max_turns=max_turns,
            is_player_stunned=False,
            enemy_next_action=self._roll_next_action(),
            ap_regen_buff_turns_remaining=0,
            show_settlement=False,
            current_result=None,
            session_results=session_results,
        )

    def execute(self, action: CombatAction, character: Character, state: CombatState) -> TurnResolution:
        """Dispatch a player action. A stunned player always gets the stunned turn."""
        enemy = self._require_active(state)
        if state.is_player_stunned or action == CombatAction.SKIP:
            return self._stunned_turn(character, state, enemy)
        if action == CombatAction.ATTACK:
            return self._attack(character, state, enemy)
        if action == CombatAction.DEFEND:
            return self._defend(character, state, enemy)
        if action == CombatAction.USE_HEAL_POTION:
            return self._use_potion(character, state, enemy, heal_over_time=True)
        if action == CombatAction.USE_ARCANE_TONIC:
            return self._use_potion(character, state, enemy, heal_over_time=False)
        raise ValueError(f"Unsupported combat action: {action}")

    def attack(self, character: Character, state: CombatState) -> TurnResolution:
        return self.execute(CombatAction.ATTACK, character, state)

    def defend(self, character: Character, state: CombatState) -> TurnResolution:
        return self.execute(CombatAction.DEFEND, character, state)

    def use_heal_potion(self, character: Character, state: CombatState) -> TurnResolution:
        return self.execute(CombatAction.USE_HEAL_POTION, character, state)

    def use_arcane_tonic(self, character: Character, state: CombatState) -> TurnResolution:
        return self.execute(CombatAction.USE_ARCANE_TONIC, character, state)

    def stunned_turn(self, character: Character, state: CombatState) -> TurnResolution:
        return self.execute(CombatAction.SKIP, character, state)

    def retreat(self, character: Character, state: CombatState) -> TurnResolution:
        enemy = self._require_active(state)
        if state.is_player_stunned:
            return self._stunned_turn(character, state, enemy)

        turn = state.current_turn
        logs = state.combat_logs
        chance = stats.retreat_chance(character)

        if self._rng.random() < chance:
            cost = self._config.retreat_ap_cost
            character = replace(character, current_ap=max(0, character.current_ap - cost))
            logs = _append(logs, turn, f"成功撤退了！（消耗 {cost} 点行动点）", LogType.SYSTEM)
            return TurnResolution(character, replace(state, combat_logs=logs), TurnStatus.ESCAPED)

        # failed: free normal hit, and the turn is spent like any other action
        damage = stats.ap_damage(enemy.attack, False, False, self._config)
        character = replace(character, current_ap=max(0, character.current_ap - damage))
        logs = _append(logs, turn, f"撤退失败！在逃跑时被攻击，消耗了 {damage} 点行动点。", LogType.DAMAGE)
        if character.current_ap <= 0:
            return self._defeat(character, state, logs)
        return self._continue(character, state, enemy, logs, stunned=False)

    # === action paths ===

    def _attack(self, character: Character, state: CombatState, enemy: Enemy) -> TurnResolution:
        turn = state.current_turn
        logs = state.combat_logs

        damage = stats.damage_to_enemy(
            stats.attack_power(character, self._config), enemy.defense, self._rng, self._config
        )
        enemy = replace(enemy, current_hp=max(0, enemy.current_hp - damage))

        # a killing blow costs no AP
        if enemy.current_hp <= 0:
            logs = _append(logs, turn, f"你对 {enemy.name} 造成了 {damage} 点伤害！", LogType.DAMAGE)
            logs = _append(logs, turn, f"{enemy.name} 被击败了！", LogType.VICTORY)
            new_state = replace(state, current_enemy=enemy, combat_logs=logs)
            return TurnResolution(character, new_state, TurnStatus.VICTORY)

        cost = self._config.ap_cost_attack
        logs = _append(
            logs, turn, f"你对 {enemy.name} 造成了 {damage} 点伤害！（消耗 {cost} 点行动点）", LogType.DAMAGE
        )
        character = replace(character, current_ap=stats.consume_ap(character.current_ap, "attack", self._config))

        strong = state.enemy_next_action == EnemyAction.STRONG
        character, logs = self._enemy_strike(character, enemy, logs, turn, strong, defending=False)
        if character.current_ap <= 0:
            return self._defeat(character, replace(state, current_enemy=enemy), logs)
        return self._continue(character, state, enemy, logs, stunned=strong)

    def _defend(self, character: Character, state: CombatState, enemy: Enemy) -> TurnResolution:
        turn = state.current_turn
        cost = self._config.ap_cost_defend
        logs = _append(state.combat_logs, turn, f"你进入了防御姿态。（消耗 {cost} 点行动点）", LogType.ACTION)
        character = replace(character, current_ap=stats.consume_ap(character.current_ap, "defend", self._config))

        strong = state.enemy_next_action == EnemyAction.STRONG
        character, logs = self._enemy_strike(character, enemy, logs, turn, strong, defending=True)
        if character.current_ap <= 0:
            return self._defeat(character, state, logs)
        # a defended strike never stuns
        return self._continue(character, state, enemy, logs, stunned=False)

    def _use_potion(
        self,
        character: Character,
        state: CombatState,
        enemy: Enemy,
        heal_over_time: bool,
    ) -> TurnResolution:
        config = self._config
        name = config.heal_potion_name if heal_over_time else config.arcane_tonic_name
        index = find_consumable_index(character.inventory, name)
        if index is None:
            raise ActionRejectedError("背包中没有这种药水")

        turn = state.current_turn
        character = replace(character, inventory=consume_at(character.inventory, index))
        regen_turns = state.ap_regen_buff_turns_remaining

        if heal_over_time:
            logs = _append(state.combat_logs, turn, f"你使用了「{name}」，温暖的能量在体内流转。", LogType.ACTION)
            heal = min(self._regen_amount(character), character.max_ap - character.current_ap)
            if heal > 0:
                character = replace(character, current_ap=character.current_ap + heal)
                logs = _append(
                    logs,
                    turn,
                    f"治愈药水生效，你立即恢复了 {heal} 点行动点，接下来数回合还会持续恢复。",
                    LogType.SYSTEM,
                )
            # this turn already healed once; the buff covers the remaining turns
            regen_turns = config.healing_potion_turns - 1
        else:
            logs = _append(state.combat_logs, turn, f"你饮下了「{name}」，体内的灵能瞬间被点燃！", LogType.ACTION)
            gained = character.max_ap - character.current_ap
            character = replace(character, current_ap=character.max_ap)
            logs = _append(logs, turn, f"灵能涌动，你的行动点瞬间回满（+{gained}）。", LogType.SYSTEM)

        # The enemy action was decided in the previous step and is not re-rolled
        # for a potion turn.
        strong = state.enemy_next_action == EnemyAction.STRONG
        character, logs = self._enemy_strike(character, enemy, logs, turn, strong, defending=False)
        if character.current_ap <= 0:
            return self._defeat(character, state, logs)

        state = replace(state, ap_regen_buff_turns_remaining=regen_turns)
        return self._continue(character, state, enemy, logs, stunned=strong, tick_regen=not heal_over_time)

    def _stunned_turn(self, character: Character, state: CombatState, enemy: Enemy) -> TurnResolution:
        turn = state.current_turn
        logs = _append(state.combat_logs, turn, "你被击晕了，无法行动...", LogType.SYSTEM)

        damage = stats.ap_damage(enemy.attack, False, False, self._config)
        character = replace(character, current_ap=max(0, character.current_ap - damage))
        logs = _append(logs, turn, f"{enemy.name} 趁机攻击，消耗了你 {damage} 点行动点！", LogType.DAMAGE)
        if character.current_ap <= 0:
            return self._defeat(character, state, logs)

        logs = _append(logs, turn, "你从眩晕中恢复了。", LogType.SYSTEM)
        return self._continue(character, state, enemy, logs, stunned=False)

    # === shared steps ===

    def _enemy_strike(
        self,
        character: Character,
        enemy: Enemy,
        logs: tuple[CombatLog, ...],
        turn: int,
        strong: bool,
        defending: bool,
    ) -> tuple[Character, tuple[CombatLog, ...]]:
        damage = stats.ap_damage(enemy.attack, strong, defending, self._config)
        character = replace(character, current_ap=max(0, character.current_ap - damage))

        if strong and defending:
            text = f"{enemy.name} 发动强力攻击！你成功格挡，只消耗了 {damage} 点行动点。"
            log_type = LogType.ACTION
        elif strong:
            text = f"{enemy.name} 发动强力攻击！消耗了你 {damage} 点行动点，你被击晕了！"
            log_type = LogType.WARNING
        else:
            suffix = "（防御减伤）" if defending else ""
            text = f"{enemy.name} 对你造成了 {damage} 点行动点伤害。{suffix}"
            log_type = LogType.DAMAGE
        return character, _append(logs, turn, text, log_type)

    def _regen_amount(self, character: Character) -> int:
        return math.floor(character.max_ap * self._config.healing_potion_ap_percent)

    def _defeat(
        self,
        character: Character,
        state: CombatState,
        logs: tuple[CombatLog, ...],
    ) -> TurnResolution:
        logs = _append(logs, state.current_turn, "行动点耗尽，战斗失败...", LogType.DEFEAT)
        return TurnResolution(character, replace(state, combat_logs=logs), TurnStatus.DEFEAT)

    def _continue(
        self,
        character: Character,
        state: CombatState,
        enemy: Enemy,
        logs: tuple[CombatLog, ...],
        stunned: bool,
        tick_regen: bool = True,
    ) -> TurnResolution:
        turn = state.current_turn
        regen_turns = state.ap_regen_buff_turns_remaining

        if tick_regen and regen_turns > 0:
            heal = min(self._regen_amount(character), character.max_ap - character.current_ap)
            if heal > 0:
                character = replace(character, current_ap=character.current_ap + heal)
                logs = _append(logs, turn, f"治愈药水的效果持续，你恢复了 {heal} 点行动点。", LogType.SYSTEM)
            regen_turns = max(0, regen_turns - 1)

        next_turn = turn + 1
        if stats.check_timeout(next_turn, state.max_turns):
            who = "珍宝怪" if enemy.is_treasure_monster else "敌人"
            logs = _append(logs, next_turn, f"回合用尽，{who}逃走了...", LogType.SYSTEM)
            new_state = replace(
                state,
                current_enemy=enemy,
                combat_logs=logs,
                ap_regen_buff_turns_remaining=regen_turns,
            )
            return TurnResolution(character, new_state, TurnStatus.TIMEOUT)

        new_state = replace(
            state,
            current_enemy=enemy,
            combat_logs=logs,
            current_turn=next_turn,
            is_player_stunned=stunned,
            enemy_next_action=self._roll_next_action(),
            ap_regen_buff_turns_remaining=regen_turns,
        )
        return TurnResolution(character, new_state, TurnStatus.CONTINUE)

    @staticmethod
    def _require_active(state: CombatState) -> Enemy:
        if not state.is_in_combat or state.current_enemy is None:
            raise NoActiveCombatError("当前不在战斗中")
        if state.current_enemy.current_hp <= 0:
            raise ActionRejectedError("敌人已被击败")
        return state.current_enemy
