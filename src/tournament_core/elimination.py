"""
Single elimination bracket generation and bye propagation.
"""
import math
import logging
from collections import deque
from typing import List, Dict, Tuple, Optional, Iterable

from .errors import InvalidInput
from .models import (
    new_match,
    get_participants,
    set_slot_participant,
    is_resolved,
    STATUS_PENDING,
    STATUS_BYE,
    STATUS_COMPLETED,
)

logger = logging.getLogger(__name__)


def get_round_name(round_number: int, total_rounds: int) -> str:
    """Get the display name of a bracket round (1-based)."""
    if round_number == total_rounds:
        return "Final"
    elif round_number == total_rounds - 1:
        return "Semifinal"
    elif round_number == total_rounds - 2:
        return "Quarterfinal"
    else:
        return f"Round {round_number}"


def calculate_bracket_size(num_participants: int) -> int:
    """Calculate the bracket size (next power of 2)."""
    if num_participants <= 0:
        return 0
    return 2 ** math.ceil(math.log2(num_participants))


def calculate_byes(num_participants: int) -> int:
    """Calculate number of byes needed."""
    bracket_size = calculate_bracket_size(num_participants)
    return bracket_size - num_participants


def validate_participants(participants: List) -> List:
    """
    Check the participant list is usable for any format.

    Raises InvalidInput for fewer than 2 participants, for empty
    references and for participants listed more than once.
    """
    if participants is None or len(participants) < 2:
        count = 0 if participants is None else len(participants)
        raise InvalidInput(f"At least 2 participants are required, got {count}", 'participants')

    seen = set()
    for participant in participants:
        if participant is None:
            raise InvalidInput("Participant references cannot be empty", 'participants')
        if participant in seen:
            raise InvalidInput(f"Participant {participant!r} appears more than once", 'participants')
        seen.add(participant)

    return list(participants)


def _generate_bracket_order(bracket_size: int) -> List[int]:
    """
    Generate the standard tournament bracket order.
    This ensures that if all higher seeds win, they meet in the proper rounds.

    For 8 participants: [1, 8, 4, 5, 2, 7, 3, 6]
    This gives matchups: 1v8, 4v5, 2v7, 3v6
    Winners: 1v4 side, 2v3 side
    Final: 1v2 (if chalk)
    """
    if bracket_size == 1:
        return [1]
    if bracket_size == 2:
        return [1, 2]

    upper_half = _generate_bracket_order(bracket_size // 2)

    # Pair each seed with its complement
    result = []
    for seed in upper_half:
        result.extend([seed, bracket_size + 1 - seed])

    return result


def place_seeds(participants: List, bracket_size: int) -> List:
    """Place seeded participants into bracket slots; empty slots are None."""
    num_participants = len(participants)
    slots = []
    for seed in _generate_bracket_order(bracket_size):
        slots.append(participants[seed - 1] if seed <= num_participants else None)
    return slots


def create_bracket_matchups(participants: List, bracket_side: Optional[str] = None,
                            first_match_number: int = 1) -> List[Dict]:
    """
    Create first round matches with standard seeding (1 vs N, 2 vs N-1, ...).

    A slot paired with an empty slot is created as a bye with the real
    participant already set as winner.
    """
    bracket_size = calculate_bracket_size(len(participants))
    slots = place_seeds(participants, bracket_size)

    matches = []
    match_number = first_match_number
    for i in range(0, bracket_size, 2):
        position = i // 2 + 1
        match = new_match(1, match_number, position, slots[i], slots[i + 1], bracket_side)

        present = get_participants(match)
        if len(present) == 1:
            match['status'] = STATUS_BYE
            match['winner'] = present[0]

        matches.append(match)
        match_number += 1

    return matches


def link_next_round(matches: List[Dict], previous_round: List[int], round_number: int,
                    bracket_side: Optional[str] = None) -> List[int]:
    """
    Append the round fed by previous_round and link winners forward.

    Feeder 2i goes to slot 1 and feeder 2i+1 to slot 2 of match i.
    Returns the indices of the new round.
    """
    current_round = []
    for i in range(len(previous_round) // 2):
        match_index = len(matches)
        match_number = matches[-1]['match_number'] + 1
        matches.append(new_match(round_number, match_number, i + 1, bracket_side=bracket_side))
        current_round.append(match_index)

        for slot, feeder_index in ((1, previous_round[i * 2]), (2, previous_round[i * 2 + 1])):
            matches[feeder_index]['next_match'] = match_index
            matches[feeder_index]['next_match_slot'] = slot

    return current_round


def _build_feeders(matches: List[Dict]) -> Dict[int, List[Tuple[int, str]]]:
    """Map each match index to the (feeder index, 'winner'|'loser') pairs flowing into it."""
    feeders = {index: [] for index in range(len(matches))}
    for index, match in enumerate(matches):
        if match.get('next_match') is not None:
            feeders[match['next_match']].append((index, 'winner'))
        if match.get('loser_next_match') is not None:
            feeders[match['loser_next_match']].append((index, 'loser'))
    return feeders


def propagate_byes(matches: List[Dict], start: Optional[Iterable[int]] = None) -> List[Dict]:
    """
    Auto-complete matches that can only ever have one participant.

    Works in place with a worklist over match indices. A pending match
    whose feeders are all decided and which holds a single participant
    becomes a bye won by that participant; with no participant at all it
    becomes an empty bye with no winner. Bye winners are forwarded and
    the downstream matches re-examined until nothing changes. Each match
    turns into a bye at most once, so the loop terminates.

    Args:
        matches: Linked match records
        start: Indices to examine first (defaults to every match)
    """
    feeders = _build_feeders(matches)
    queue = deque(range(len(matches)) if start is None else start)
    # Byes created by the generator still have to push their winner forward
    forwarded = set()

    while queue:
        index = queue.popleft()
        match = matches[index]

        if match['status'] == STATUS_PENDING:
            if not all(is_resolved(matches[feeder]) for feeder, _ in feeders[index]):
                continue
            present = get_participants(match)
            if len(present) == 2:
                continue
            match['status'] = STATUS_BYE
            match['winner'] = present[0] if present else None
            logger.debug(f"Match {match['match_number']} resolved as bye (winner={match['winner']})")
        elif match['status'] != STATUS_BYE or index in forwarded:
            continue

        forwarded.add(index)
        if match['next_match'] is not None:
            if match['winner'] is not None:
                set_slot_participant(matches[match['next_match']], match['next_match_slot'], match['winner'])
            queue.append(match['next_match'])
        if match['loser_next_match'] is not None:
            # A bye has no loser, but the receiving match may now be decidable
            queue.append(match['loser_next_match'])

    return matches


def generate_single_elimination_bracket(participants: List) -> List[Dict]:
    """
    Generate a complete single elimination bracket.

    Args:
        participants: Participant references ordered by seed (seed 1 first)

    Returns list of match records. Round 1 byes are completed and their
    winners already placed in round 2; next_match values are indices
    into the returned list.
    """
    participants = validate_participants(participants)

    bracket_size = calculate_bracket_size(len(participants))
    total_rounds = int(math.log2(bracket_size))

    matches = create_bracket_matchups(participants)
    previous_round = list(range(len(matches)))

    for round_number in range(2, total_rounds + 1):
        previous_round = link_next_round(matches, previous_round, round_number)

    propagate_byes(matches)

    logger.info(
        f"Generated single elimination bracket: {len(participants)} participants, "
        f"bracket size {bracket_size}, {len(matches)} matches"
    )
    return matches


def group_by_round(matches: List[Dict]) -> Dict[Tuple, List[Dict]]:
    """Group matches by (bracket_side, round), preserving match order."""
    rounds = {}
    for match in matches:
        key = (match.get('bracket_side'), match['round'])
        if key not in rounds:
            rounds[key] = []
        rounds[key].append(match)
    return rounds


def get_champion(matches: List[Dict]):
    """
    Winner of the elimination final, or None while it is undecided.

    An elimination bracket has exactly one match with no onward link;
    anything else (a round robin schedule, an empty list) has no champion.
    For double elimination an unplayed reset resolved as a bye carries
    the champion as its winner.
    """
    finals = [m for m in matches if m.get('next_match') is None]
    if len(finals) != 1:
        return None
    final = finals[0]
    if final['status'] in (STATUS_COMPLETED, STATUS_BYE):
        return final['winner']
    return None
