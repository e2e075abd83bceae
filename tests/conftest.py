"""
Pytest fixtures for the weekly turn engine.

Provides fresh games per difficulty and seeded random streams.
"""

import random

import pytest

from core.modes import DEFAULT_MODES, INDIE_BOOTSTRAP
from core.state import GameState, new_game
from engine.config import EngineConfig
from engine.pipeline import start_game


@pytest.fixture
def rng():
    """Seeded random stream."""
    return random.Random(1234)


@pytest.fixture
def config():
    return EngineConfig(base_seed=7)


@pytest.fixture
def indie(config) -> GameState:
    """Fresh IndieBootstrap game."""
    return start_game(INDIE_BOOTSTRAP, config, game_id="test-indie")


@pytest.fixture
def bare_state(rng) -> GameState:
    """Fresh IndieBootstrap game with no rivals, for isolated rule tests."""
    state = new_game(INDIE_BOOTSTRAP, rng, game_id="bare")
    state.competitors = []
    return state


@pytest.fixture(params=sorted(DEFAULT_MODES))
def any_difficulty(request) -> str:
    return request.param
