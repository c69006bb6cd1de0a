"""
Volleyball (rally point) scoring engine.

Every rally scores a point. Serve only changes hands on a side-out,
i.e. when the receiving team wins the rally. Sets are won at the
target with a minimum lead; the deciding set uses its own target.
"""
import copy
import logging
from dataclasses import dataclass, field, asdict, fields
from typing import List, Dict, Tuple

from .errors import InvalidInput, InvalidState
from .models import validate_slot, validate_int

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20

SNAPSHOT_FIELDS = (
    'sets',
    'current_set_points',
    'serving_team',
    'current_set_number',
    'is_match_complete',
)


@dataclass(frozen=True)
class VolleyballConfig:
    sets_to_win: int = 3
    points_per_set: int = 25
    points_per_deciding_set: int = 15
    min_lead_to_win: int = 2

    def __post_init__(self):
        validate_int(self.sets_to_win, 'sets_to_win')
        validate_int(self.points_per_set, 'points_per_set')
        validate_int(self.points_per_deciding_set, 'points_per_deciding_set')
        validate_int(self.min_lead_to_win, 'min_lead_to_win')


@dataclass
class VolleyballState:
    sets: List[List[int]] = field(default_factory=list)
    current_set_points: List[int] = field(default_factory=lambda: [0, 0])
    serving_team: int = 1
    sets_to_win: int = 3
    points_per_set: int = 25
    points_per_deciding_set: int = 15
    min_lead_to_win: int = 2
    current_set_number: int = 1
    is_match_complete: bool = False
    history: List[Dict] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> 'VolleyballState':
        known = {f.name for f in fields(cls)}
        return cls(**{key: copy.deepcopy(value) for key, value in data.items() if key in known})


def init_volleyball_state(config: VolleyballConfig, first_server: int) -> VolleyballState:
    first_server = validate_slot(first_server, 'first_server')
    return VolleyballState(
        serving_team=first_server,
        sets_to_win=config.sets_to_win,
        points_per_set=config.points_per_set,
        points_per_deciding_set=config.points_per_deciding_set,
        min_lead_to_win=config.min_lead_to_win,
    )


def count_sets_won(sets: List[List[int]]) -> Tuple[int, int]:
    team1 = sum(1 for s in sets if s[0] > s[1])
    team2 = sum(1 for s in sets if s[1] > s[0])
    return team1, team2


def is_deciding_set(state: VolleyballState) -> bool:
    """True when the next set win ends the match for either team."""
    team1, team2 = count_sets_won(state.sets)
    return team1 == state.sets_to_win - 1 and team2 == state.sets_to_win - 1


def get_set_target(state: VolleyballState) -> int:
    return state.points_per_deciding_set if is_deciding_set(state) else state.points_per_set


def is_set_won(state: VolleyballState) -> bool:
    """Either team has reached the set target with the minimum lead."""
    p1, p2 = state.current_set_points
    target = get_set_target(state)
    return max(p1, p2) >= target and abs(p1 - p2) >= state.min_lead_to_win


def get_match_winner(state: VolleyballState):
    if not state.is_match_complete:
        return None
    team1, team2 = count_sets_won(state.sets)
    return 1 if team1 > team2 else 2


def add_to_history(state: VolleyballState) -> List[Dict]:
    state.history.append({name: copy.deepcopy(getattr(state, name)) for name in SNAPSHOT_FIELDS})
    if len(state.history) > HISTORY_LIMIT:
        del state.history[:-HISTORY_LIMIT]
    return state.history


def score_point(state: VolleyballState, winner: int) -> VolleyballState:
    """
    Score a rally for team 1 or 2.

    Raises InvalidInput for a winner other than 1 or 2 and InvalidState
    once the match is complete.
    """
    winner = validate_slot(winner, 'winner')
    if state.is_match_complete:
        raise InvalidState("Match is already complete", 'is_match_complete')

    new_state = copy.deepcopy(state)
    add_to_history(new_state)

    new_state.current_set_points[winner - 1] += 1

    # Side-out: receiving team won the rally and takes the serve
    if winner != new_state.serving_team:
        new_state.serving_team = winner

    if not is_set_won(new_state):
        return new_state

    new_state.sets.append(list(new_state.current_set_points))
    logger.debug(
        f"Set {new_state.current_set_number} won by team {winner} "
        f"{new_state.current_set_points[0]}-{new_state.current_set_points[1]}"
    )
    new_state.current_set_points = [0, 0]
    new_state.current_set_number += 1

    team1, team2 = count_sets_won(new_state.sets)
    if team1 >= new_state.sets_to_win or team2 >= new_state.sets_to_win:
        new_state.is_match_complete = True
        logger.debug(f"Match won by team {winner}, sets {new_state.sets}")

    return new_state


def undo(state: VolleyballState, allow_undo_completed: bool = True) -> VolleyballState:
    """Restore the state before the last scored rally."""
    if not state.history:
        raise InvalidState("No history available to undo", 'history')
    if state.is_match_complete and not allow_undo_completed:
        raise InvalidState("Completed matches cannot be undone", 'is_match_complete')

    new_state = copy.deepcopy(state)
    snapshot = new_state.history.pop()
    for name in SNAPSHOT_FIELDS:
        setattr(new_state, name, snapshot[name])
    logger.debug(f"Undo restored sets={new_state.sets} points={new_state.current_set_points}")
    return new_state


def adjust_score(state: VolleyballState, team: int, delta: int) -> VolleyballState:
    """
    Manually correct a team's points in the current set.

    The result is floored at 0. No set or match check is run and no
    history entry is pushed.
    """
    team = validate_slot(team, 'team')
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise InvalidInput(f"delta must be an integer, got {delta!r}", 'delta')
    if state.is_match_complete:
        raise InvalidState("Cannot adjust the score of a completed match", 'is_match_complete')

    new_state = copy.deepcopy(state)
    new_state.current_set_points[team - 1] = max(0, new_state.current_set_points[team - 1] + delta)
    return new_state


def set_server(state: VolleyballState, team: int) -> VolleyballState:
    """Correct the serving team. Not recorded in history."""
    team = validate_slot(team, 'serving_team')
    new_state = copy.deepcopy(state)
    new_state.serving_team = team
    return new_state
