"""
Match records and the constants shared by the generator and the engines.

A match record is a plain dict so it can be stored verbatim (YAML, JSON)
by whatever hosts it. References to other matches (`next_match`,
`loser_next_match`) are indices into the list the generator returned.
"""
from typing import Dict, List, Optional

from .errors import InvalidInput, InvalidState

STATUS_PENDING = 'pending'
STATUS_SCHEDULED = 'scheduled'
STATUS_LIVE = 'live'
STATUS_COMPLETED = 'completed'
STATUS_BYE = 'bye'

MATCH_STATUSES = (STATUS_PENDING, STATUS_SCHEDULED, STATUS_LIVE, STATUS_COMPLETED, STATUS_BYE)

# Statuses in which a match has a final outcome
RESOLVED_STATUSES = (STATUS_COMPLETED, STATUS_BYE)

# bye is entered only at creation/propagation time and never left
STATUS_TRANSITIONS = {
    STATUS_PENDING: (STATUS_SCHEDULED, STATUS_LIVE, STATUS_COMPLETED),
    STATUS_SCHEDULED: (STATUS_LIVE, STATUS_COMPLETED),
    STATUS_LIVE: (STATUS_COMPLETED,),
    STATUS_COMPLETED: (STATUS_LIVE,),
    STATUS_BYE: (),
}

FORMAT_SINGLE_ELIMINATION = 'single_elimination'
FORMAT_DOUBLE_ELIMINATION = 'double_elimination'
FORMAT_ROUND_ROBIN = 'round_robin'

TOURNAMENT_FORMATS = (FORMAT_SINGLE_ELIMINATION, FORMAT_DOUBLE_ELIMINATION, FORMAT_ROUND_ROBIN)

SIDE_WINNERS = 'winners'
SIDE_LOSERS = 'losers'
SIDE_GRAND_FINAL = 'grand_final'
SIDE_GRAND_FINAL_RESET = 'grand_final_reset'

SPORT_TENNIS = 'tennis'
SPORT_VOLLEYBALL = 'volleyball'
SPORT_GENERIC = 'generic'

SPORT_KINDS = (SPORT_TENNIS, SPORT_VOLLEYBALL, SPORT_GENERIC)


def validate_slot(value, field: str = 'slot') -> int:
    """Return value if it is 1 or 2, otherwise raise InvalidInput."""
    if isinstance(value, bool) or value not in (1, 2):
        raise InvalidInput(f"{field} must be 1 or 2, got {value!r}", field)
    return value


def validate_int(value, field: str, minimum: int = 1) -> int:
    """Return value if it is an integer >= minimum, otherwise raise InvalidInput."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"{field} must be an integer, got {value!r}", field)
    if value < minimum:
        raise InvalidInput(f"{field} must be at least {minimum}, got {value}", field)
    return value


def new_match(round_number: int, match_number: int, position: int,
              participant1=None, participant2=None,
              bracket_side: Optional[str] = None) -> Dict:
    """Create a match record with every field present."""
    return {
        'round': round_number,
        'match_number': match_number,
        'bracket_side': bracket_side,
        'position': position,
        'participant1': participant1,
        'participant2': participant2,
        'participant1_score': 0,
        'participant2_score': 0,
        'status': STATUS_PENDING,
        'winner': None,
        'next_match': None,
        'next_match_slot': None,
        'loser_next_match': None,
        'loser_next_match_slot': None,
        'sport_kind': None,
        'sport_state': None,
    }


def get_participants(match: Dict) -> List:
    """Real participants present in a match (placeholders excluded)."""
    return [p for p in (match['participant1'], match['participant2']) if p is not None]


def get_slot_participant(match: Dict, slot: int):
    return match['participant1'] if slot == 1 else match['participant2']


def set_slot_participant(match: Dict, slot: int, participant):
    if slot == 1:
        match['participant1'] = participant
    else:
        match['participant2'] = participant


def is_resolved(match: Dict) -> bool:
    return match['status'] in RESOLVED_STATUSES


def transition_status(match: Dict, status: str) -> Dict:
    """
    Move a match to a new status, enforcing the match status machine.

    pending -> scheduled -> live -> completed, with shortcuts
    pending -> live/completed and scheduled -> completed. A completed
    match may only go back to live when its deciding point is undone.
    """
    if status not in MATCH_STATUSES:
        raise InvalidInput(f"Unknown match status: {status!r}", 'status')

    current = match['status']
    if status not in STATUS_TRANSITIONS[current]:
        raise InvalidState(f"Cannot move match {match['match_number']} from {current} to {status}", 'status')

    match['status'] = status
    return match


def start_match(match: Dict, sport_kind: str, sport_state) -> Dict:
    """
    Attach a sport state to a match and put it live.

    Both participants must be known; a match that already carries sport
    state cannot be initialised again.
    """
    if sport_kind not in SPORT_KINDS:
        raise InvalidInput(f"Unknown sport: {sport_kind!r}", 'sport_kind')
    if match['participant1'] is None or match['participant2'] is None:
        raise InvalidState("Both participants must be assigned before initializing the match", 'participant')
    if match['sport_state'] is not None:
        raise InvalidState(f"Match {match['match_number']} is already initialized", 'sport_state')

    transition_status(match, STATUS_LIVE)
    match['sport_kind'] = sport_kind
    match['sport_state'] = sport_state
    return match
