"""Game API endpoints (session, inventory, quests, shop, story, saves)."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Request

from src.api.schemas import (
    ActionResponse,
    ErrorResponse,
    GameStateResponse,
    ItemInfo,
    LocationRequest,
    NarrativeProcessRequest,
    NewGameRequest,
    PlayerActionRequest,
    PurchaseRequest,
    QuestRequest,
    SavePreviewInfo,
    ShopInfo,
    UseItemRequest,
)
from src.core.errors import (
    ActionRejectedError,
    GameError,
    NoActiveCombatError,
    NoCharacterError,
    UnknownItemError,
)
from src.core.logging import get_logger
from src.services.game_session import GameSession
from src.services.narrative_service import (
    NarrativeGenerationError,
    NarrativeRequestError,
    NarrativeService,
)
from src.services.save_service import SaveService

logger = get_logger(__name__)

router = APIRouter(prefix="/game", tags=["game"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def to_http_exception(error: Exception) -> HTTPException:
    """Map a domain error to an HTTP error."""
    if isinstance(error, (NoCharacterError, NoActiveCombatError)):
        return HTTPException(status_code=409, detail=error.message)
    if isinstance(error, UnknownItemError):
        return HTTPException(status_code=404, detail=error.message)
    if isinstance(error, NarrativeGenerationError):
        return HTTPException(status_code=502, detail=error.message)
    if isinstance(error, (ActionRejectedError, NarrativeRequestError)):
        return HTTPException(status_code=400, detail=error.message)
    if isinstance(error, GameError):
        return HTTPException(status_code=400, detail=error.message)
    return HTTPException(status_code=400, detail=str(error))


def get_session(request: Request) -> GameSession:
    """GameSession instance (dependency injection)"""
    session: GameSession = request.app.state.game_session
    return session


def get_narrative_service(request: Request) -> NarrativeService:
    """NarrativeService instance (dependency injection)"""
    service: NarrativeService = request.app.state.narrative_service
    return service


def get_save_service(request: Request) -> SaveService:
    """SaveService instance (dependency injection)"""
    service: SaveService = request.app.state.save_service
    return service


# === session ===


@router.post("/new", response_model=GameStateResponse, responses=ERROR_RESPONSES)
def new_game(
    request: NewGameRequest,
    session: GameSession = Depends(get_session),
) -> GameStateResponse:
    """Create a character and start a new adventure."""
    try:
        session.create_character(
            name=request.name,
            class_type=request.class_type,
            gender=request.gender,
            appearance=request.appearance,
            opening_id=request.opening,
            avatar_url=request.avatar_url,
        )
    except ValueError as e:
        raise to_http_exception(e)
    return GameStateResponse.from_session(session)


@router.get("/state", response_model=GameStateResponse)
def get_game_state(session: GameSession = Depends(get_session)) -> GameStateResponse:
    return GameStateResponse.from_session(session)


@router.post("/reset", response_model=GameStateResponse)
def reset_game(session: GameSession = Depends(get_session)) -> GameStateResponse:
    session.reset()
    return GameStateResponse.from_session(session)


@router.post("/location", response_model=ActionResponse)
def change_location(
    request: LocationRequest,
    session: GameSession = Depends(get_session),
) -> ActionResponse:
    warning = session.set_location(request.location)
    return ActionResponse(
        success=True,
        message=f"来到了 {request.location}",
        notifications=[warning] if warning else [],
    )


# === inventory ===


@router.post("/items/use", response_model=ActionResponse, responses=ERROR_RESPONSES)
def use_item(
    request: UseItemRequest,
    session: GameSession = Depends(get_session),
) -> ActionResponse:
    try:
        before = session.require_character().current_ap
        character = session.use_item(request.item_id)
    except GameError as e:
        raise to_http_exception(e)
    recovered = character.current_ap - before
    return ActionResponse(
        success=True,
        message=f"恢复了 {recovered} 点行动点" if recovered > 0 else "使用了物品",
        data={"current_ap": character.current_ap, "max_ap": character.max_ap},
    )


@router.post("/items/purchase", response_model=ActionResponse, responses=ERROR_RESPONSES)
def purchase_item(
    request: PurchaseRequest,
    session: GameSession = Depends(get_session),
) -> ActionResponse:
    try:
        item = session.purchase_item(request.key, request.price)
    except (GameError, ValueError) as e:
        raise to_http_exception(e)
    return ActionResponse(
        success=True,
        message=f"购买了「{item.name}」",
        data={"item": ItemInfo.from_item(item).model_dump(), "gold": session.character.gold},
    )


# === quests ===


@router.get("/quests")
def list_quests(session: GameSession = Depends(get_session)) -> list[dict]:
    return [
        {"id": quest.id, "title": quest.title, "description": quest.description, "reward": quest.reward}
        for quest in session.quests.all()
    ]


@router.post("/quests/accept", response_model=ActionResponse, responses=ERROR_RESPONSES)
def accept_quest(
    request: QuestRequest,
    session: GameSession = Depends(get_session),
) -> ActionResponse:
    try:
        accepted = session.accept_quest(request.quest_id)
    except (GameError, ValueError) as e:
        raise to_http_exception(e)
    return ActionResponse(success=accepted, message="接受了任务" if accepted else "任务已在进行中")


# === legendary shop ===


@router.get("/shop", response_model=ShopInfo)
def get_shop(session: GameSession = Depends(get_session)) -> ShopInfo:
    return ShopInfo.from_state(session.refresh_shop())


@router.post("/shop/purchase", response_model=ActionResponse, responses=ERROR_RESPONSES)
def purchase_shop_item(session: GameSession = Depends(get_session)) -> ActionResponse:
    try:
        key = session.purchase_shop_item()
    except GameError as e:
        raise to_http_exception(e)
    return ActionResponse(success=True, message="传说宝物已收入万宝阁", data={"key": key})


@router.post("/shop/claim", response_model=ActionResponse, responses=ERROR_RESPONSES)
def claim_overlord_proof(session: GameSession = Depends(get_session)) -> ActionResponse:
    try:
        proof = session.claim_overlord_proof()
    except GameError as e:
        raise to_http_exception(e)
    return ActionResponse(success=True, message=f"获得了「{proof.name}」")


# === story ===


@router.post("/action", response_model=ActionResponse, responses={**ERROR_RESPONSES, 502: {"model": ErrorResponse}})
async def player_action(
    request: PlayerActionRequest,
    session: GameSession = Depends(get_session),
    narrative: NarrativeService = Depends(get_narrative_service),
) -> ActionResponse:
    """Narrate a free-text player action and apply its game effects."""
    try:
        text, outcome = await narrative.play_turn(session, request.action, request.max_tokens)
    except GameError as e:
        raise to_http_exception(e)
    return ActionResponse(
        success=True,
        narrative=text,
        notifications=outcome.notifications,
        data={"completed_quests": outcome.completed_quests, "levels_gained": outcome.levels_gained},
    )


@router.post("/narrative", response_model=ActionResponse, responses=ERROR_RESPONSES)
def process_narrative(
    request: NarrativeProcessRequest,
    session: GameSession = Depends(get_session),
) -> ActionResponse:
    """Apply the game effects of story text produced elsewhere."""
    try:
        outcome = session.process_narrative(request.text)
    except GameError as e:
        raise to_http_exception(e)
    return ActionResponse(
        success=True,
        notifications=outcome.notifications,
        data={"completed_quests": outcome.completed_quests, "levels_gained": outcome.levels_gained},
    )


# === saves ===


@router.post("/save/{slot}", response_model=ActionResponse, responses=ERROR_RESPONSES)
def save_game(slot: int, saves: SaveService = Depends(get_save_service)) -> ActionResponse:
    try:
        timestamp = saves.save(slot)
    except (GameError, ValueError) as e:
        raise to_http_exception(e)
    return ActionResponse(success=True, message=f"已保存到存档 {slot}", data={"timestamp": timestamp})


@router.post("/load/{slot}", response_model=GameStateResponse, responses=ERROR_RESPONSES)
def load_game(
    slot: int,
    saves: SaveService = Depends(get_save_service),
    session: GameSession = Depends(get_session),
) -> GameStateResponse:
    try:
        loaded = saves.load(slot)
    except ValueError as e:
        raise to_http_exception(e)
    if not loaded:
        raise HTTPException(status_code=404, detail=f"存档 {slot} 为空")
    return GameStateResponse.from_session(session)


@router.get("/saves", response_model=list[SavePreviewInfo])
def list_saves(saves: SaveService = Depends(get_save_service)) -> list[SavePreviewInfo]:
    return [SavePreviewInfo(**asdict(preview)) for preview in saves.list_previews()]


@router.get("/saves/{slot}", response_model=SavePreviewInfo, responses=ERROR_RESPONSES)
def get_save_preview(slot: int, saves: SaveService = Depends(get_save_service)) -> SavePreviewInfo:
    try:
        preview = saves.preview(slot)
    except ValueError as e:
        raise to_http_exception(e)
    if preview is None:
        raise HTTPException(status_code=404, detail=f"存档 {slot} 为空")
    return SavePreviewInfo(**asdict(preview))


@router.delete("/saves/{slot}", response_model=ActionResponse, responses=ERROR_RESPONSES)
def delete_save(slot: int, saves: SaveService = Depends(get_save_service)) -> ActionResponse:
    try:
        deleted = saves.delete(slot)
    except ValueError as e:
        raise to_http_exception(e)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"存档 {slot} 为空")
    return ActionResponse(success=True, message=f"已删除存档 {slot}")
