"""Shared test fixtures."""

import random
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from src.core.character.models import Character, ClassType, Gender, INITIAL_STATS
from src.core.character.registry import ItemRegistry, load_default_registry
from src.core.combat.models import Enemy, EnemyRewards, Rank
from src.core.event_bus import EventBus
from src.core.quest.registry import QuestRegistry, load_default_quests
from src.db.database import get_db
from src.db.models import Base
from src.main import app
from src.services.ai.mock import MockProvider
from src.services.game_session import GameSession

TEST_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = sessionmaker(bind=TEST_ENGINE, autocommit=False, autoflush=False)


def _override_get_db():
    db = TestSession()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = _override_get_db


@pytest.fixture()
def client() -> TestClient:
    """FastAPI TestClient wired to an in-memory SQLite database.

    The lifespan runs, so every test gets fresh game services.
    """
    Base.metadata.drop_all(bind=TEST_ENGINE)
    Base.metadata.create_all(bind=TEST_ENGINE)
    with patch("src.main.init_db"), patch("src.main.SessionLocal", TestSession), patch(
        "src.main.get_ai_provider", return_value=MockProvider()
    ):
        with TestClient(app) as test_client:
            yield test_client


@pytest.fixture()
def db_session() -> Session:
    """Raw database session for direct DB assertions."""
    Base.metadata.drop_all(bind=TEST_ENGINE)
    Base.metadata.create_all(bind=TEST_ENGINE)
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


# === domain fixtures ===


@pytest.fixture(scope="session")
def item_registry() -> ItemRegistry:
    return load_default_registry()


@pytest.fixture(scope="session")
def quest_registry() -> QuestRegistry:
    return load_default_quests()


@pytest.fixture()
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def game_session(item_registry, quest_registry, event_bus) -> GameSession:
    return GameSession(item_registry, quest_registry, event_bus, rng=random.Random(7))


def make_character(**overrides) -> Character:
    """Level-1 knight with full AP; any field can be overridden."""
    values = dict(
        name="艾伦",
        class_type=ClassType.KNIGHT,
        gender=Gender.MALE,
        stats=INITIAL_STATS[ClassType.KNIGHT],
    )
    values.update(overrides)
    return Character(**values)


def make_enemy(**overrides) -> Enemy:
    values = dict(
        id="enemy_test",
        name="蓝色史莱姆",
        level=1,
        rank=Rank.D,
        current_hp=50,
        max_hp=50,
        attack=5,
        defense=2,
        rewards=EnemyRewards(gold=25, exp=18),
    )
    values.update(overrides)
    return Enemy(**values)


class ScriptedRandom:
    """random() pops queued values (0.99 when empty); uniform() is the midpoint."""

    def __init__(self, *values: float) -> None:
        self.values = list(values)

    def random(self) -> float:
        return self.values.pop(0) if self.values else 0.99

    def uniform(self, a: float, b: float) -> float:
        return (a + b) / 2
