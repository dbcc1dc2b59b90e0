"""Shared test fixtures."""

import random

import pytest

from state import initialize_match
from tests.helpers import THREE_PLAYERS, TWO_PLAYERS

# --- Fixtures ---


@pytest.fixture
def match():
    """Fresh 2-player match on a 4x4 board, all tokens in reserve."""
    return initialize_match(TWO_PLAYERS)


@pytest.fixture
def three_player_match():
    """Fresh 3-player match on a 4x4 board."""
    return initialize_match(THREE_PLAYERS)


@pytest.fixture
def rng():
    """Deterministic RNG seeded at 42."""
    return random.Random(42)


@pytest.fixture
def api_client():
    """Flask test client."""
    from app import app

    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client

