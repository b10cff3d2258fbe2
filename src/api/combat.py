"""Combat API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Request

from src.api.game import ERROR_RESPONSES, get_session, to_http_exception
from src.api.schemas import ActionResponse, CombatActionRequest, CombatStateResponse
from src.core.errors import GameError
from src.core.logging import get_logger
from src.services.combat_service import CombatService, CombatTurn
from src.services.game_session import GameSession

logger = get_logger(__name__)

router = APIRouter(prefix="/combat", tags=["combat"])


def get_combat_service(request: Request) -> CombatService:
    """CombatService instance (dependency injection)"""
    service: CombatService = request.app.state.combat_service
    return service


def _turn_response(turn: CombatTurn, session: GameSession, combat: CombatService) -> CombatStateResponse:
    result_prompt: Optional[str] = None
    if turn.result is not None:
        result_prompt = combat.build_result_prompt(turn.status, turn.result.enemy, turn.result.rewards)
    return CombatStateResponse.build(
        turn.state,
        session.require_character(),
        status=turn.status.value,
        message=turn.message,
        result_prompt=result_prompt,
    )


@router.post("/start", response_model=CombatStateResponse, responses=ERROR_RESPONSES)
def start_combat(
    session: GameSession = Depends(get_session),
    combat: CombatService = Depends(get_combat_service),
) -> CombatStateResponse:
    """Spend encounter AP and meet an enemy."""
    try:
        state = combat.start_combat()
    except GameError as e:
        raise to_http_exception(e)
    return CombatStateResponse.build(state, session.require_character())


@router.get("/state", response_model=CombatStateResponse, responses=ERROR_RESPONSES)
def get_combat_state(session: GameSession = Depends(get_session)) -> CombatStateResponse:
    try:
        character = session.require_character()
    except GameError as e:
        raise to_http_exception(e)
    return CombatStateResponse.build(session.combat_state, character)


@router.post("/action", response_model=CombatStateResponse, responses=ERROR_RESPONSES)
def combat_action(
    request: CombatActionRequest,
    session: GameSession = Depends(get_session),
    combat: CombatService = Depends(get_combat_service),
) -> CombatStateResponse:
    """Attack, defend, drink a potion, or pass a stunned turn."""
    try:
        turn = combat.execute_action(request.action)
    except GameError as e:
        raise to_http_exception(e)
    return _turn_response(turn, session, combat)


@router.post("/retreat", response_model=CombatStateResponse, responses=ERROR_RESPONSES)
def retreat(
    session: GameSession = Depends(get_session),
    combat: CombatService = Depends(get_combat_service),
) -> CombatStateResponse:
    try:
        turn = combat.retreat()
    except GameError as e:
        raise to_http_exception(e)
    return _turn_response(turn, session, combat)


@router.post("/continue", response_model=CombatStateResponse, responses=ERROR_RESPONSES)
def continue_encounter(
    session: GameSession = Depends(get_session),
    combat: CombatService = Depends(get_combat_service),
) -> CombatStateResponse:
    """Next battle; the results of this run are kept."""
    try:
        state = combat.continue_encounter()
    except GameError as e:
        raise to_http_exception(e)
    return CombatStateResponse.build(state, session.require_character())


@router.post("/return", response_model=ActionResponse, responses=ERROR_RESPONSES)
async def return_to_adventure(combat: CombatService = Depends(get_combat_service)) -> ActionResponse:
    """Leave combat; the run of battles is summarised into the story log."""
    try:
        summary = await combat.return_to_adventure()
    except GameError as e:
        raise to_http_exception(e)
    return ActionResponse(success=True, narrative=summary)
