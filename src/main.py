"""FastAPI application entrypoint."""

import random
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from src.api.combat import router as combat_router
from src.api.game import router as game_router
from src.api.health import router as health_router
from src.config import settings
from src.core.character.registry import load_default_registry
from src.core.combat.config import DEFAULT_COMBAT_CONFIG, load_combat_config
from src.core.combat.engine import CombatEngine
from src.core.combat.enemy_generator import EnemyGenerator
from src.core.event_bus import EventBus
from src.core.logging import get_logger, setup_logging
from src.core.quest.registry import load_default_quests
from src.db.database import SessionLocal, init_db
from src.services.ai import get_ai_provider
from src.services.combat_service import CombatService
from src.services.game_session import GameSession
from src.services.narrative_service import NarrativeService
from src.services.save_service import SaveService, SaveStore

setup_logging(settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Creating database tables...")
    init_db()

    # static data; a broken registry or config stops startup here
    item_registry = load_default_registry()
    quest_registry = load_default_quests()
    combat_config = (
        load_combat_config(settings.COMBAT_CONFIG_PATH)
        if settings.COMBAT_CONFIG_PATH
        else DEFAULT_COMBAT_CONFIG
    )
    rng = random.Random()
    generator = EnemyGenerator(combat_config, rng)
    generator.validate_reward_keys(item_registry)
    logger.info(
        "Registries loaded: %d items, %d quests", item_registry.count(), quest_registry.count()
    )

    event_bus = EventBus()
    session = GameSession(item_registry, quest_registry, event_bus, combat_config, rng)

    ai_provider = get_ai_provider()
    narrative_service = NarrativeService(ai_provider, settings.NARRATIVE_MAX_TOKENS)
    logger.info(f"AI provider initialized: {ai_provider.name}")

    combat_service = CombatService(
        session=session,
        engine=CombatEngine(combat_config, rng),
        generator=generator,
        narrative=narrative_service,
        event_bus=event_bus,
        summary_max_tokens=settings.SUMMARY_MAX_TOKENS,
        force_treasure=settings.DEV_FORCE_TREASURE_MONSTER,
    )
    save_service = SaveService(SaveStore(SessionLocal), session, event_bus, rng)

    app.state.event_bus = event_bus
    app.state.game_session = session
    app.state.narrative_service = narrative_service
    app.state.combat_service = combat_service
    app.state.save_service = save_service
    logger.info("Game services initialized.")

    yield

    logger.info("Shutting down...")
    event_bus.clear()


app = FastAPI(title="Aetheria Chronicle", lifespan=lifespan)

app.include_router(health_router)
app.include_router(game_router)
app.include_router(combat_router)
