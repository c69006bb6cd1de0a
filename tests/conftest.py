"""
Shared pytest fixtures for tournament engine tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from tournament_core.tennis import TennisConfig, init_tennis_state, score_point as tennis_point
from tournament_core.volleyball import VolleyballConfig, init_volleyball_state, score_point as volleyball_point


@pytest.fixture
def four_players():
    """Four participants ordered by seed."""
    return ["Ana", "Ben", "Cleo", "Dan"]


@pytest.fixture
def eight_players():
    """Eight participants ordered by seed."""
    return [f"Player {i}" for i in range(1, 9)]


@pytest.fixture
def tennis_state():
    """Fresh best-of-3 tennis match with ad scoring, participant 1 serving."""
    return init_tennis_state(TennisConfig(), 1)


@pytest.fixture
def volleyball_state():
    """Fresh best-of-5 volleyball match, team 1 serving."""
    return init_volleyball_state(VolleyballConfig(), 1)


@pytest.fixture
def play_tennis():
    """Score a sequence of tennis points, returning the final state."""
    def play(state, winners):
        for winner in winners:
            state = tennis_point(state, winner)
        return state
    return play


@pytest.fixture
def play_volleyball():
    """Score a sequence of volleyball rallies, returning the final state."""
    def play(state, winners):
        for winner in winners:
            state = volleyball_point(state, winner)
        return state
    return play


@pytest.fixture
def data_dir(tmp_path):
    """Temporary data directory for a match store."""
    path = tmp_path / "data"
    path.mkdir()
    return str(path)
