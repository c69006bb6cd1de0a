"""
Bracket advancement: recording results against a generated match list.

Every function takes the match list the generator produced and returns
an updated copy; the input list is never modified, so a failed call
leaves the caller's data untouched.
"""
import copy
import logging
from typing import List, Dict, Optional

from .errors import InvalidInput, InvalidState, NotFound
from .models import (
    get_slot_participant,
    set_slot_participant,
    is_resolved,
    transition_status,
    start_match,
    validate_slot,
    STATUS_PENDING,
    STATUS_SCHEDULED,
    STATUS_LIVE,
    STATUS_COMPLETED,
    STATUS_BYE,
    SIDE_GRAND_FINAL,
    SPORT_TENNIS,
    SPORT_VOLLEYBALL,
    SPORT_GENERIC,
)
from .elimination import propagate_byes
from . import tennis
from . import volleyball

logger = logging.getLogger(__name__)

MIN_SCORE = 0
MAX_SCORE = 999

# Statuses a downstream match may be in while its feeders can still change
OPEN_STATUSES = (STATUS_PENDING, STATUS_SCHEDULED)


def get_match(matches: List[Dict], index: int) -> Dict:
    """Return the match at index, raising NotFound for an unknown index."""
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(matches):
        raise NotFound.for_resource(f"Match {index!r}", 'index')
    return matches[index]


def _validate_score(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput("Scores must be whole numbers", field)
    if value < MIN_SCORE or value > MAX_SCORE:
        raise InvalidInput(f"Score must be between {MIN_SCORE} and {MAX_SCORE}", field)
    return value


def _get_loser(match: Dict):
    if match['status'] != STATUS_COMPLETED or match['winner'] is None:
        return None
    if match['winner'] == match['participant1']:
        return match['participant2']
    return match['participant1']


def update_score(matches: List[Dict], index: int, participant1_score: int, participant2_score: int) -> List[Dict]:
    """Set the aggregate score of a match that has not finished yet."""
    participant1_score = _validate_score(participant1_score, 'participant1_score')
    participant2_score = _validate_score(participant2_score, 'participant2_score')

    matches = copy.deepcopy(matches)
    match = get_match(matches, index)
    if match['status'] not in (STATUS_PENDING, STATUS_SCHEDULED, STATUS_LIVE):
        raise InvalidState(f"Cannot update score for match {match['match_number']}", 'status')

    match['participant1_score'] = participant1_score
    match['participant2_score'] = participant2_score
    return matches


def record_result(matches: List[Dict], index: int, winner_slot: Optional[int] = None,
                  participant1_score: Optional[int] = None,
                  participant2_score: Optional[int] = None) -> List[Dict]:
    """
    Complete a match and advance its participants.

    Args:
        matches: Match list as generated
        index: Index of the match being completed
        winner_slot: 1 or 2; None decides by score. A level score is only
            accepted (as a draw) for matches that feed nowhere, i.e. round robin
        participant1_score / participant2_score: Final aggregate score, if known

    The winner moves into next_match/next_match_slot and the loser into
    loser_next_match/loser_next_match_slot. When the winners bracket
    champion (slot 1) wins the grand final the loser is not sent on, so
    the reset match resolves as a bye for the champion. Bye propagation
    runs again from the matches that received a participant.
    """
    matches = copy.deepcopy(matches)
    match = get_match(matches, index)

    if is_resolved(match):
        raise InvalidState(f"Match {match['match_number']} is already decided", 'status')
    if match['participant1'] is None or match['participant2'] is None:
        raise InvalidState("Both participants must be assigned before completing", 'participant')

    if participant1_score is not None:
        match['participant1_score'] = _validate_score(participant1_score, 'participant1_score')
    if participant2_score is not None:
        match['participant2_score'] = _validate_score(participant2_score, 'participant2_score')

    if winner_slot is None:
        if match['participant1_score'] > match['participant2_score']:
            winner_slot = 1
        elif match['participant2_score'] > match['participant1_score']:
            winner_slot = 2
        elif match['next_match'] is not None or match['loser_next_match'] is not None:
            raise InvalidInput("Cannot complete match with tied score in elimination format", 'winner_slot')
    else:
        winner_slot = validate_slot(winner_slot, 'winner_slot')

    transition_status(match, STATUS_COMPLETED)

    if winner_slot is None:
        logger.info(f"Match {match['match_number']} completed as a draw")
        return matches

    winner = get_slot_participant(match, winner_slot)
    loser = get_slot_participant(match, 3 - winner_slot)
    match['winner'] = winner

    touched = []
    if match['next_match'] is not None:
        set_slot_participant(matches[match['next_match']], match['next_match_slot'], winner)
        touched.append(match['next_match'])

    # Winners bracket champion winning the grand final ends the tournament
    champion_won_final = match['bracket_side'] == SIDE_GRAND_FINAL and winner_slot == 1
    if match['loser_next_match'] is not None:
        if not champion_won_final:
            set_slot_participant(matches[match['loser_next_match']], match['loser_next_match_slot'], loser)
        touched.append(match['loser_next_match'])

    propagate_byes(matches, start=touched)

    logger.info(f"Match {match['match_number']} won by {winner!r} (slot {winner_slot})")
    return matches


def _release_slot(matches: List[Dict], target_index: int, slot: int, participant):
    target = matches[target_index]
    if target['status'] == STATUS_BYE:
        # Bye produced by the result being reverted; unwind it as well
        _unwind(matches, target_index)
    elif target['status'] not in OPEN_STATUSES:
        raise InvalidState(f"Match {target['match_number']} has already started", 'next_match')

    if participant is not None and get_slot_participant(target, slot) == participant:
        set_slot_participant(target, slot, None)


def _unwind(matches: List[Dict], index: int):
    match = matches[index]
    winner = match['winner']
    loser = _get_loser(match)

    if match['next_match'] is not None:
        _release_slot(matches, match['next_match'], match['next_match_slot'], winner)
    if match['loser_next_match'] is not None:
        _release_slot(matches, match['loser_next_match'], match['loser_next_match_slot'], loser)

    match['winner'] = None
    match['status'] = STATUS_PENDING


def revert_result(matches: List[Dict], index: int) -> List[Dict]:
    """
    Undo a recorded result.

    Participants are withdrawn from the matches they were advanced into,
    together with any byes that result produced. Fails with InvalidState
    when one of those matches has already gone live or finished.
    A match with live scoring state goes back to live, any other match
    back to pending with its score cleared.
    """
    matches = copy.deepcopy(matches)
    match = get_match(matches, index)

    if match['status'] != STATUS_COMPLETED:
        raise InvalidState(f"Match {match['match_number']} is not completed", 'status')

    _unwind(matches, index)

    if match['sport_state'] is not None:
        match['status'] = STATUS_COMPLETED
        transition_status(match, STATUS_LIVE)
    else:
        match['participant1_score'] = 0
        match['participant2_score'] = 0

    logger.info(f"Result of match {match['match_number']} reverted")
    return matches


def initialize_match(matches: List[Dict], index: int, sport_kind: str,
                     config=None, first_server: int = 1) -> List[Dict]:
    """
    Put a match live with a fresh sport state built from config.

    config is a TennisConfig or VolleyballConfig (defaults when None);
    generic matches carry no sport state.
    """
    matches = copy.deepcopy(matches)
    match = get_match(matches, index)

    if sport_kind == SPORT_TENNIS:
        state = tennis.init_tennis_state(config or tennis.TennisConfig(), first_server)
    elif sport_kind == SPORT_VOLLEYBALL:
        state = volleyball.init_volleyball_state(config or volleyball.VolleyballConfig(), first_server)
    elif sport_kind == SPORT_GENERIC:
        state = None
    else:
        raise InvalidInput(f"Unknown sport: {sport_kind!r}", 'sport_kind')

    if state is None:
        if match['participant1'] is None or match['participant2'] is None:
            raise InvalidState("Both participants must be assigned before initializing the match", 'participant')
        transition_status(match, STATUS_LIVE)
        match['sport_kind'] = sport_kind
    else:
        start_match(match, sport_kind, state)

    logger.info(f"Match {match['match_number']} is live ({sport_kind})")
    return matches


def get_set_counts(match: Dict):
    """Sets won by each side according to the attached sport state."""
    state = match['sport_state']
    if state is None:
        raise InvalidState(f"Match {match['match_number']} has no scoring state", 'sport_state')
    if match['sport_kind'] == SPORT_TENNIS:
        return tennis.count_sets_won(state.sets)
    elif match['sport_kind'] == SPORT_VOLLEYBALL:
        return volleyball.count_sets_won(state.sets)
    raise InvalidState(f"Unknown sport: {match['sport_kind']!r}", 'sport_kind')


def sync_scores(match: Dict) -> Dict:
    """Copy of match with its aggregate score set to the live set counts."""
    match = copy.deepcopy(match)
    match['participant1_score'], match['participant2_score'] = get_set_counts(match)
    return match


def complete_from_sport_state(matches: List[Dict], index: int) -> List[Dict]:
    """Record the result of a match whose sport state reports completion."""
    match = get_match(matches, index)
    state = match['sport_state']
    if state is None or not state.is_match_complete:
        raise InvalidState(f"Match {match['match_number']} is still in progress", 'sport_state')

    p1_sets, p2_sets = get_set_counts(match)
    winner_slot = 1 if p1_sets > p2_sets else 2
    return record_result(matches, index, winner_slot, p1_sets, p2_sets)


def is_tournament_complete(matches: List[Dict]) -> bool:
    """No match is left pending, scheduled or live."""
    return all(is_resolved(m) for m in matches)

