"""Combat session controller.

Drives the CombatEngine against the GameSession: starts encounters, applies
player actions, settles finished battles and closes a run of battles with a
narrated summary.
"""

import logging
from dataclasses import dataclass, replace
from functools import partial
from typing import Optional

from src.core.character.inventory import add_item
from src.core.character.models import clamp_gold
from src.core.character.progression import grant_experience
from src.core.combat import stats
from src.core.combat.engine import CombatEngine
from src.core.combat.enemy_generator import EnemyGenerator
from src.core.combat.log_stats import aggregate_log_stats, turns_used
from src.core.combat.models import (
    CombatAction,
    CombatLog,
    CombatOutcome,
    CombatResult,
    CombatState,
    Enemy,
    EnemyRewards,
    TurnStatus,
)
from src.core.errors import ActionRejectedError, InsufficientAPError, NoActiveCombatError
from src.core.event_bus import EventBus, GameEvent
from src.core.event_types import EventTypes
from src.core.world.regions import get_region_by_location
from src.services.ai.base import ChatMessage
from src.services.game_session import EntryType, GameSession
from src.services.narrative_prompts import extract_summary
from src.services.narrative_service import (
    NarrativeGenerationError,
    NarrativeRequestError,
    NarrativeService,
)

logger = logging.getLogger(__name__)

SOURCE = "combat_service"

FAILURE_REASONS: dict[TurnStatus, str] = {
    TurnStatus.DEFEAT: "行动点耗尽",
    TurnStatus.TIMEOUT: "回合用尽，敌人逃走",
    TurnStatus.ESCAPED: "主动撤退",
}


@dataclass(frozen=True)
class CombatTurn:
    """What the player sees after one combat command.

    ``message`` is set when the command was rejected and nothing changed.
    ``result`` is set when the command ended the battle.
    """

    status: TurnStatus
    state: CombatState
    message: Optional[str] = None
    result: Optional[CombatResult] = None


class CombatService:
    def __init__(
        self,
        session: GameSession,
        engine: CombatEngine,
        generator: EnemyGenerator,
        narrative: NarrativeService,
        event_bus: EventBus,
        summary_max_tokens: int = 500,
        force_treasure: bool = False,
    ) -> None:
        self._session = session
        self._engine = engine
        self._generator = generator
        self._narrative = narrative
        self._bus = event_bus
        self._summary_max_tokens = summary_max_tokens
        self.force_treasure = force_treasure
        self._max_ap_for_level = partial(stats.max_ap, config=engine.config)

    def _emit(self, event_type: str, **data) -> None:
        self._bus.emit(GameEvent(event_type=event_type, data=data, source=SOURCE))

    # === encounter ===

    def start_combat(self) -> CombatState:
        """Pay the encounter cost and meet a new enemy.

        Battle results are kept when coming from a settlement screen or from
        an unfinished fight; otherwise a new run of battles begins.
        """
        self._bus.reset_chain()
        session = self._session
        character = session.require_character()
        config = self._engine.config
        if not stats.can_perform_action(character.current_ap, "encounter", config):
            raise InsufficientAPError(f"行动点不足，遭遇战需要 {config.ap_cost_encounter} 点行动点")

        character = replace(character, current_ap=stats.consume_ap(character.current_ap, "encounter", config))

        region = get_region_by_location(session.location)
        enemy = self._generator.encounter(character.level, region, force_treasure=self.force_treasure)

        previous = session.combat_state
        keep = previous.show_settlement or previous.is_in_combat
        state = self._engine.init_combat(
            enemy,
            self._generator.get_max_turns(enemy),
            session_results=previous.session_results if keep else (),
        )

        session.character = character
        session.combat_state = state
        logger.debug("Encounter region: %s", region.id if region else None)
        self._emit(EventTypes.COMBAT_STARTED, enemy_id=enemy.id, rank=enemy.rank.value, level=enemy.level)
        return state

    def continue_encounter(self) -> CombatState:
        """Next battle of the same run."""
        return self.start_combat()

    # === actions ===

    def execute_action(self, action: CombatAction) -> CombatTurn:
        self._bus.reset_chain()
        character = self._session.require_character()
        state = self._session.combat_state
        try:
            resolution = self._engine.execute(action, character, state)
        except ActionRejectedError as e:
            logger.info("Combat action %s rejected: %s", action.value, e.message)
            return CombatTurn(status=TurnStatus.CONTINUE, state=state, message=e.message)
        return self._apply(resolution.character, resolution.state, resolution.status)

    def retreat(self) -> CombatTurn:
        self._bus.reset_chain()
        character = self._session.require_character()
        resolution = self._engine.retreat(character, self._session.combat_state)
        return self._apply(resolution.character, resolution.state, resolution.status)

    def _apply(self, character, state: CombatState, status: TurnStatus) -> CombatTurn:
        self._session.character = character
        self._session.combat_state = state
        if not status.is_terminal:
            return CombatTurn(status=status, state=state)
        result = self.end_combat(status)
        return CombatTurn(status=status, state=self._session.combat_state, result=result)

    # === settlement ===

    def end_combat(
        self,
        status: TurnStatus,
        enemy: Optional[Enemy] = None,
        logs: Optional[tuple[CombatLog, ...]] = None,
    ) -> CombatResult:
        """Settle a finished battle and move to the settlement screen.

        Victory credits gold, exp and reward items. An unknown reward key
        raises UnknownItemError before anything is credited.
        """
        session = self._session
        state = session.combat_state
        enemy = enemy or state.current_enemy
        if enemy is None:
            raise NoActiveCombatError("当前不在战斗中")
        logs = tuple(log for log in (logs if logs is not None else state.combat_logs) if log)

        outcome = CombatOutcome.from_status(status)
        rewards = EnemyRewards(gold=0, exp=0, items=())
        if outcome == CombatOutcome.VICTORY:
            rewards = enemy.rewards
            self._credit_victory(rewards)

        result = CombatResult(
            enemy=enemy,
            outcome=outcome,
            turns_used=turns_used(logs),
            rewards=rewards,
            player_stats=aggregate_log_stats(logs),
            failure_reason=FAILURE_REASONS.get(status),
        )
        session.combat_state = replace(
            state,
            is_in_combat=False,
            show_settlement=True,
            current_result=result,
            session_results=state.session_results + (result,),
            combat_logs=logs,
        )
        logger.info("Combat ended: %s vs %s in %d turns", outcome.value, enemy.name, result.turns_used)
        self._emit(EventTypes.COMBAT_ENDED, outcome=outcome.value, enemy_id=enemy.id)
        if outcome == CombatOutcome.VICTORY:
            self._emit(EventTypes.AUTO_SAVE_REQUESTED, reason="victory")
        return result

    def _credit_victory(self, rewards: EnemyRewards) -> None:
        session = self._session
        # resolve every key first so a bad key credits nothing
        items = [session.items.create_instance(key) for key in rewards.items]

        character = session.require_character()
        inventory = character.inventory
        for item in items:
            inventory = add_item(inventory, item)
        character = replace(character, gold=clamp_gold(character.gold + rewards.gold), inventory=inventory)
        character, levels = grant_experience(
            character, rewards.exp, self._max_ap_for_level, config=self._engine.config
        )
        session.character = character
        session.recompute_stats_bonus()
        if levels:
            self._emit(EventTypes.LEVEL_UP, level=character.level, levels_gained=levels)

    # === narration ===

    async def return_to_adventure(self) -> Optional[str]:
        """Close the run of battles, narrate it, and leave combat entirely.

        Returns the summary text written to the log, or None when no battle
        was fought. A narration failure falls back to a plain summary; a
        rejected request (another stream running) raises NarrativeRequestError
        and leaves the log and the combat state untouched.
        """
        self._bus.reset_chain()
        session = self._session
        character = session.require_character()
        results = list(session.combat_state.session_results)

        summary: Optional[str] = None
        if results:
            prompts = session.prompts
            report = prompts.combat_session_report(results)
            report_entry = session.add_log(character.name, report, EntryType.NARRATION)
            prompt = prompts.combat_summary_prompt(report, character, session.location)
            try:
                summary = await self._narrative.narrate(
                    session,
                    [ChatMessage(role="user", content=prompt)],
                    max_tokens=self._summary_max_tokens,
                    entry_type=EntryType.NARRATION,
                    finalize=extract_summary,
                )
            except NarrativeRequestError:
                session.remove_log(report_entry.id)
                raise
            except NarrativeGenerationError:
                summary = prompts.fallback_summary(results)
                session.add_log("", summary, EntryType.NARRATION)

        session.combat_state = CombatState()
        self._emit(EventTypes.COMBAT_SESSION_CLOSED, battles=len(results))
        return summary

    def build_result_prompt(
        self,
        status: TurnStatus,
        enemy: Enemy,
        rewards: Optional[EnemyRewards] = None,
    ) -> str:
        return self._session.prompts.combat_result_prompt(status, enemy, rewards)
