import itertools
import random

import pytest

from letterdash.logic.enums import Language
from letterdash.logic.settings import GameSettings
from letterdash.messaging.router import MessageRouter
from letterdash.server.app import create_app
from letterdash.server.settings import GameServerSettings
from letterdash.session.manager import SessionManager
from letterdash.session.room import Room
from letterdash.tests.mocks.connection import MockConnection

TEST_CATEGORIES = ("name", "city", "animal")
FIXED_NOW = 1_700_000_000.0


def sequential_codes(prefix: str = "ROOM"):
    """Deterministic room code generator: ROOM2, ROOM3, ..."""
    counter = itertools.count(2)
    return lambda: f"{prefix}{next(counter)}"


def make_room(
    code: str = "ABCDE",
    *,
    categories: tuple[str, ...] = TEST_CATEGORIES,
    language: Language = Language.ENGLISH,
    duration_seconds: int = 60,
) -> Room:
    return Room(code=code, categories=categories, language=language, duration_seconds=duration_seconds)


@pytest.fixture
def game_settings():
    return GameSettings(categories=TEST_CATEGORIES, default_language=Language.ENGLISH)


@pytest.fixture
def session_manager(game_settings):
    manager = SessionManager(
        game_settings,
        code_generator=sequential_codes(),
        rng=random.Random(7),
        clock=lambda: FIXED_NOW,
    )
    yield manager
    manager.cancel_all_timers()


@pytest.fixture
def message_router(session_manager):
    return MessageRouter(session_manager)


@pytest.fixture
def mock_connection():
    return MockConnection()


@pytest.fixture
def server_settings():
    return GameServerSettings(cors_origins=["http://localhost:5173"], max_rooms=10)


@pytest.fixture
def app(server_settings, session_manager, message_router):
    return create_app(
        settings=server_settings,
        session_manager=session_manager,
        message_router=message_router,
    )
