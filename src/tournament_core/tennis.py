"""
Tennis scoring engine.

Points are fed one at a time into a TennisState; every operation returns
a new state and leaves its input untouched. Game, set, tiebreak and
match progress are derived from the point sequence, and every scoring
event pushes a snapshot so it can be undone.

Point counters map to 0/15/30/40 for values 0..3. Once both players have
3 or more points the game is at deuce: with advantage scoring the game
needs a two point lead, with no-ad scoring the next point decides it.
"""
import copy
import logging
from dataclasses import dataclass, field, asdict, fields
from typing import List, Dict, Optional, Tuple

from .errors import InvalidInput, InvalidState
from .models import validate_slot, validate_int

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50

DEFAULT_SET_TIEBREAK_TARGET = 7
DEFAULT_FINAL_SET_TIEBREAK_TARGET = 7
DEFAULT_MATCH_TIEBREAK_TARGET = 10

GAMES_FOR_TIEBREAK = 6

TIEBREAK_MODE_SET = 'set'
TIEBREAK_MODE_MATCH = 'match'

POINT_NAMES = ['0', '15', '30', '40']

# Everything a scoring event can change; restored verbatim on undo
SNAPSHOT_FIELDS = (
    'sets',
    'current_set_games',
    'current_game_points',
    'serving_participant',
    'first_server_of_set',
    'is_tiebreak',
    'tiebreak_points',
    'tiebreak_target',
    'tiebreak_mode',
    'is_match_complete',
    'aces',
    'double_faults',
    'fault_state',
)


@dataclass(frozen=True)
class TennisConfig:
    """Tournament-level tennis rules, baked into each match state at initialization."""

    is_ad_scoring: bool = True
    sets_to_win: int = 2
    set_tiebreak_target: int = DEFAULT_SET_TIEBREAK_TARGET
    final_set_tiebreak_target: int = DEFAULT_FINAL_SET_TIEBREAK_TARGET
    use_match_tiebreak: bool = False
    match_tiebreak_target: int = DEFAULT_MATCH_TIEBREAK_TARGET

    def __post_init__(self):
        if not isinstance(self.is_ad_scoring, bool):
            raise InvalidInput("is_ad_scoring must be true or false", 'is_ad_scoring')
        if not isinstance(self.use_match_tiebreak, bool):
            raise InvalidInput("use_match_tiebreak must be true or false", 'use_match_tiebreak')
        validate_int(self.sets_to_win, 'sets_to_win')
        validate_int(self.set_tiebreak_target, 'set_tiebreak_target')
        validate_int(self.final_set_tiebreak_target, 'final_set_tiebreak_target')
        validate_int(self.match_tiebreak_target, 'match_tiebreak_target')


@dataclass
class TennisState:
    """Live score of a tennis match. Index 0 is participant 1, index 1 participant 2."""

    sets: List[List[int]] = field(default_factory=list)
    current_set_games: List[int] = field(default_factory=lambda: [0, 0])
    current_game_points: List[int] = field(default_factory=lambda: [0, 0])
    serving_participant: int = 1
    first_server_of_set: int = 1
    is_ad_scoring: bool = True
    sets_to_win: int = 2
    set_tiebreak_target: int = DEFAULT_SET_TIEBREAK_TARGET
    final_set_tiebreak_target: int = DEFAULT_FINAL_SET_TIEBREAK_TARGET
    use_match_tiebreak: bool = False
    match_tiebreak_target: int = DEFAULT_MATCH_TIEBREAK_TARGET
    is_tiebreak: bool = False
    tiebreak_points: List[int] = field(default_factory=lambda: [0, 0])
    tiebreak_target: int = DEFAULT_SET_TIEBREAK_TARGET
    tiebreak_mode: Optional[str] = None
    is_match_complete: bool = False
    aces: List[int] = field(default_factory=lambda: [0, 0])
    double_faults: List[int] = field(default_factory=lambda: [0, 0])
    fault_state: int = 0
    history: List[Dict] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> 'TennisState':
        known = {f.name for f in fields(cls)}
        return cls(**{key: copy.deepcopy(value) for key, value in data.items() if key in known})


def init_tennis_state(config: TennisConfig, first_server: int) -> TennisState:
    """Create the state for a match about to go live."""
    first_server = validate_slot(first_server, 'first_server')
    return TennisState(
        serving_participant=first_server,
        first_server_of_set=first_server,
        is_ad_scoring=config.is_ad_scoring,
        sets_to_win=config.sets_to_win,
        set_tiebreak_target=config.set_tiebreak_target,
        final_set_tiebreak_target=config.final_set_tiebreak_target,
        use_match_tiebreak=config.use_match_tiebreak,
        match_tiebreak_target=config.match_tiebreak_target,
        tiebreak_target=config.set_tiebreak_target,
    )


def create_snapshot(state: TennisState) -> Dict:
    """Deep copy of every field a scoring event can change."""
    return {name: copy.deepcopy(getattr(state, name)) for name in SNAPSHOT_FIELDS}


def add_to_history(state: TennisState) -> List[Dict]:
    """Push the current state onto its history, keeping the newest HISTORY_LIMIT entries."""
    state.history.append(create_snapshot(state))
    if len(state.history) > HISTORY_LIMIT:
        del state.history[:-HISTORY_LIMIT]
    return state.history


def other_participant(participant: int) -> int:
    return 2 if participant == 1 else 1


def count_sets_won(sets: List[List[int]]) -> Tuple[int, int]:
    """Sets won by each participant; a set counts for whoever has strictly more games."""
    p1_sets = sum(1 for s in sets if s[0] > s[1])
    p2_sets = sum(1 for s in sets if s[1] > s[0])
    return p1_sets, p2_sets


def is_deuce(p1_points: int, p2_points: int) -> bool:
    """Check if game is at deuce (both players on 40 or beyond)."""
    return p1_points >= 3 and p2_points >= 3


def is_deciding_set(state: TennisState) -> bool:
    """Both participants are one set away from the match."""
    p1_sets, p2_sets = count_sets_won(state.sets)
    return p1_sets == state.sets_to_win - 1 and p2_sets == state.sets_to_win - 1


def point_to_string(point: int, opponent_point: int, is_ad_scoring: bool) -> str:
    """Convert a point counter to tennis terminology for the player holding it."""
    if is_deuce(point, opponent_point):
        if point > opponent_point and is_ad_scoring:
            return "Ad"
        return "40"
    return POINT_NAMES[min(point, 3)]


def get_point_display(points: List[int], player_index: int, is_ad_scoring: bool, is_tiebreak: bool) -> str:
    """
    Display label for one player's points.

    Tiebreak points are shown as raw numbers; regular games use
    0/15/30/40, with 40/Ad once both players reach 40.
    """
    if is_tiebreak:
        return str(points[player_index])
    return point_to_string(points[player_index], points[1 - player_index], is_ad_scoring)


def get_game_status(points: List[int], is_ad_scoring: bool, is_tiebreak: bool,
                    serving_participant: int, tiebreak_mode: Optional[str] = None,
                    names: Tuple[str, str] = ('Player 1', 'Player 2')) -> Optional[str]:
    """
    Status line for the current game, e.g. "Deuce" or "Advantage Player 1".
    Returns None when no special status applies.
    """
    if is_tiebreak:
        return "Match Tiebreak" if tiebreak_mode == TIEBREAK_MODE_MATCH else "Tiebreak"

    p1, p2 = points
    if is_ad_scoring:
        if is_deuce(p1, p2):
            if p1 == p2:
                return "Deuce"
            return f"Advantage {names[0] if p1 > p2 else names[1]}"
    elif p1 == 3 and p2 == 3:
        receiver = names[1] if serving_participant == 1 else names[0]
        return f"Deciding Point ({receiver} chooses side)"

    return None


def process_game_point(state: TennisState, winner: int) -> Tuple[bool, Optional[int], List[int]]:
    """
    Process a point won in a regular game.
    Returns (game_over, game_winner, new_points).
    """
    winner_idx = winner - 1
    loser_idx = 1 - winner_idx

    new_points = list(state.current_game_points)
    new_points[winner_idx] += 1

    winner_points = new_points[winner_idx]
    loser_points = new_points[loser_idx]

    if is_deuce(new_points[0], new_points[1]):
        if state.is_ad_scoring:
            # Ad scoring: need 2-point lead to win
            if winner_points >= 4 and winner_points - loser_points >= 2:
                return True, winner, [0, 0]
            # Opponent lost the advantage: back to deuce
            if loser_points >= 4:
                return False, None, [3, 3]
            return False, None, new_points

        # No-ad: the point after 40-40 decides the game
        if winner_points == 4:
            return True, winner, [0, 0]
        return False, None, new_points

    if winner_points >= 4:
        return True, winner, [0, 0]

    return False, None, new_points


def process_tiebreak_point(state: TennisState, winner: int) -> Tuple[bool, Optional[int], List[int]]:
    """
    Process a point won in a tiebreak: first to the target with a 2-point lead.
    Returns (tiebreak_over, tiebreak_winner, new_points).
    """
    new_points = list(state.tiebreak_points)
    new_points[winner - 1] += 1

    p1, p2 = new_points
    target = state.tiebreak_target or state.set_tiebreak_target
    if (p1 >= target or p2 >= target) and abs(p1 - p2) >= 2:
        return True, (1 if p1 > p2 else 2), new_points

    return False, None, new_points


def process_set_game(state: TennisState, game_winner: int) -> Tuple[bool, Optional[int], List[int], bool]:
    """
    Process a game won and update set state.
    Returns (set_over, set_winner, new_games, start_tiebreak).
    """
    new_games = list(state.current_set_games)
    new_games[game_winner - 1] += 1

    p1, p2 = new_games

    if p1 == GAMES_FOR_TIEBREAK and p2 == GAMES_FOR_TIEBREAK:
        return False, None, new_games, True

    # First to 6 with a 2-game lead (7-5 included)
    if (p1 >= GAMES_FOR_TIEBREAK or p2 >= GAMES_FOR_TIEBREAK) and abs(p1 - p2) >= 2:
        return True, (1 if p1 > p2 else 2), new_games, False

    return False, None, new_games, False


def process_match_set(state: TennisState, set_score: List[int]) -> Tuple[bool, Optional[int], List[List[int]]]:
    """
    Append a finished set and check for match completion.
    Returns (match_over, match_winner, new_sets).
    """
    new_sets = [list(s) for s in state.sets] + [list(set_score)]
    p1_sets, p2_sets = count_sets_won(new_sets)

    if p1_sets >= state.sets_to_win:
        return True, 1, new_sets
    if p2_sets >= state.sets_to_win:
        return True, 2, new_sets

    return False, None, new_sets


def get_next_first_server(first_server_of_set: int, set_score: List[int]) -> int:
    """
    First server of the next set under normal alternation: the same player
    after an even number of games, the other player after an odd number.
    """
    if sum(set_score) % 2 == 0:
        return first_server_of_set
    return other_participant(first_server_of_set)


def get_match_winner(state: TennisState) -> Optional[int]:
    if not state.is_match_complete:
        return None
    p1_sets, p2_sets = count_sets_won(state.sets)
    return 1 if p1_sets > p2_sets else 2


def _require_in_progress(state: TennisState):
    if state.is_match_complete:
        raise InvalidState("Match is already complete", 'is_match_complete')


def _start_tiebreak(state: TennisState, mode: str, target: int):
    state.is_tiebreak = True
    state.tiebreak_points = [0, 0]
    state.tiebreak_mode = mode
    state.tiebreak_target = target
    logger.debug(f"{mode} tiebreak started (first to {target})")


def _finish_set(state: TennisState, set_score: List[int]):
    match_over, match_winner, new_sets = process_match_set(state, set_score)

    state.sets = new_sets
    state.current_set_games = [0, 0]
    state.current_game_points = [0, 0]
    state.is_tiebreak = False
    state.tiebreak_points = [0, 0]
    state.tiebreak_mode = None
    logger.debug(f"Set {len(new_sets)} finished {set_score[0]}-{set_score[1]}")

    if match_over:
        state.is_match_complete = True
        logger.debug(f"Match won by participant {match_winner}, sets {new_sets}")
        return

    next_first_server = get_next_first_server(state.first_server_of_set, set_score)
    state.first_server_of_set = next_first_server
    state.serving_participant = next_first_server

    if state.use_match_tiebreak and is_deciding_set(state):
        # Deciding set is replaced by a single match tiebreak
        _start_tiebreak(state, TIEBREAK_MODE_MATCH, state.match_tiebreak_target)


def _apply_tiebreak_point(state: TennisState, winner: int):
    tiebreak_over, tiebreak_winner, new_points = process_tiebreak_point(state, winner)

    if not tiebreak_over:
        state.tiebreak_points = new_points
        # Server changes after the first point, then every two points
        if sum(new_points) % 2 == 1:
            state.serving_participant = other_participant(state.serving_participant)
        return

    if state.tiebreak_mode == TIEBREAK_MODE_MATCH:
        set_score = new_points
    else:
        # Tiebreak winner takes the set 7-6
        set_score = list(state.current_set_games)
        set_score[tiebreak_winner - 1] += 1
    _finish_set(state, set_score)


def _apply_point(state: TennisState, winner: int):
    if state.is_tiebreak:
        _apply_tiebreak_point(state, winner)
        return

    game_over, game_winner, new_points = process_game_point(state, winner)
    if not game_over:
        state.current_game_points = new_points
        return

    state.current_game_points = [0, 0]
    set_over, set_winner, new_games, start_tiebreak = process_set_game(state, game_winner)

    if start_tiebreak:
        state.current_set_games = new_games
        target = state.final_set_tiebreak_target if is_deciding_set(state) else state.set_tiebreak_target
        _start_tiebreak(state, TIEBREAK_MODE_SET, target)
        # Tiebreak opens with whoever is next in the rotation
        state.serving_participant = other_participant(state.serving_participant)
    elif set_over:
        _finish_set(state, new_games)
    else:
        state.current_set_games = new_games
        state.serving_participant = other_participant(state.serving_participant)


def score_point(state: TennisState, winner: int) -> TennisState:
    """
    Score a point for participant 1 or 2.

    Raises InvalidInput for a winner other than 1 or 2 and InvalidState
    once the match is complete.
    """
    winner = validate_slot(winner, 'winner')
    _require_in_progress(state)

    new_state = copy.deepcopy(state)
    add_to_history(new_state)
    new_state.fault_state = 0
    _apply_point(new_state, winner)
    return new_state


def score_ace(state: TennisState) -> TennisState:
    """Point to the server, counted as an ace."""
    _require_in_progress(state)

    new_state = copy.deepcopy(state)
    add_to_history(new_state)
    server = new_state.serving_participant
    new_state.aces[server - 1] += 1
    new_state.fault_state = 0
    _apply_point(new_state, server)
    return new_state


def score_fault(state: TennisState) -> TennisState:
    """
    Record a service fault.

    The first fault only marks the second serve; a second fault is a
    double fault and the receiver wins the point.
    """
    _require_in_progress(state)

    new_state = copy.deepcopy(state)
    add_to_history(new_state)
    server = new_state.serving_participant

    if new_state.fault_state == 0:
        new_state.fault_state = 1
        return new_state

    new_state.double_faults[server - 1] += 1
    new_state.fault_state = 0
    _apply_point(new_state, other_participant(server))
    return new_state


def undo(state: TennisState, allow_undo_completed: bool = True) -> TennisState:
    """
    Restore the state before the last scoring event.

    Raises InvalidState when there is nothing to undo, or when the match
    is complete and allow_undo_completed is False.
    """
    if not state.history:
        raise InvalidState("No history available to undo", 'history')
    if state.is_match_complete and not allow_undo_completed:
        raise InvalidState("Completed matches cannot be undone", 'is_match_complete')

    new_state = copy.deepcopy(state)
    snapshot = new_state.history.pop()
    for name in SNAPSHOT_FIELDS:
        setattr(new_state, name, snapshot[name])

    logger.debug(f"Undo restored sets={new_state.sets} games={new_state.current_set_games}")
    return new_state


def set_server(state: TennisState, participant: int) -> TennisState:
    """Correct the serving participant. Not recorded in history."""
    participant = validate_slot(participant, 'serving_participant')
    new_state = copy.deepcopy(state)
    new_state.serving_participant = participant
    return new_state


def detect_match_point(state: TennisState) -> Optional[int]:
    """
    Participant (1 or 2) who would win the match by winning the next point,
    or None if neither does.
    """
    if state.is_match_complete:
        return None

    sets_won = count_sets_won(state.sets)

    for participant in (1, 2):
        idx = participant - 1
        opp = 1 - idx

        # Need to be one set away from winning
        if sets_won[idx] != state.sets_to_win - 1:
            continue

        if state.is_tiebreak:
            points = state.tiebreak_points
            if points[idx] >= state.tiebreak_target - 1 and points[idx] - points[opp] >= 1:
                return participant
            continue

        games = state.current_set_games
        would_win_set = (games[idx] >= 5 and games[idx] > games[opp]) or (games[idx] == 6 and games[opp] == 5)
        if not would_win_set:
            continue

        points = state.current_game_points
        if state.is_ad_scoring:
            if points[idx] >= 3 and points[idx] > points[opp]:
                return participant
        elif points[idx] >= 3 and points[idx] >= points[opp]:
            return participant

    return None
