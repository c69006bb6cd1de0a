"""
Double elimination bracket generation.

In double elimination:
- Participants must lose twice to be eliminated
- Winners Bracket: participants that haven't lost yet
- Losers Bracket: participants that have lost once
- Grand Final: Winners bracket champion vs Losers bracket champion
- Bracket Reset: If losers bracket winner wins Grand Final, a final match decides the champion
"""
import math
import logging
from typing import List, Dict, Optional

from .models import (
    new_match,
    SIDE_WINNERS,
    SIDE_LOSERS,
    SIDE_GRAND_FINAL,
    SIDE_GRAND_FINAL_RESET,
)
from .elimination import (
    calculate_bracket_size,
    validate_participants,
    create_bracket_matchups,
    link_next_round,
    propagate_byes,
)

logger = logging.getLogger(__name__)


def get_losers_round_name(round_number: int, total_losers_rounds: int) -> str:
    """Get the name for a losers bracket round (1-based)."""
    rounds_from_end = total_losers_rounds - round_number
    if rounds_from_end == 0:
        return "Losers Final"
    elif rounds_from_end == 1:
        return "Losers Semifinal"
    else:
        return f"Losers Round {round_number}"


def get_winners_round_name(round_number: int, total_winners_rounds: int) -> str:
    """Get the name for a winners bracket round (1-based)."""
    rounds_from_end = total_winners_rounds - round_number
    if rounds_from_end == 0:
        return "Winners Final"
    elif rounds_from_end == 1:
        return "Winners Semifinal"
    elif rounds_from_end == 2:
        return "Winners Quarterfinal"
    else:
        return f"Winners Round {round_number}"


def calculate_losers_bracket_rounds(bracket_size: int) -> int:
    """
    Calculate number of rounds in losers bracket.
    For N participants in winners bracket (power of 2):
    - Winners bracket has log2(N) rounds
    - Losers bracket has 2 * (log2(N) - 1) rounds

    Pattern: minor, major, minor, major, ... ending with a major round
    """
    if bracket_size < 2:
        return 0
    winners_rounds = int(math.log2(bracket_size))
    return 2 * (winners_rounds - 1)


def count_double_elimination_matches(num_participants: int, bracket_reset: bool = True) -> int:
    """
    Total match records generated for a double elimination bracket.

    Winners bracket: bracket_size - 1
    Losers bracket: bracket_size - 2
    Grand Final: 1, Bracket Reset: 1 (when enabled)
    """
    if num_participants < 2:
        return 0
    bracket_size = calculate_bracket_size(num_participants)
    losers_matches = max(bracket_size - 2, 0)
    return (bracket_size - 1) + losers_matches + 1 + (1 if bracket_reset else 0)


def _link_winner(matches: List[Dict], source: int, target: int, slot: int):
    matches[source]['next_match'] = target
    matches[source]['next_match_slot'] = slot


def _link_loser(matches: List[Dict], source: int, target: int, slot: int):
    matches[source]['loser_next_match'] = target
    matches[source]['loser_next_match_slot'] = slot


def _append_match(matches: List[Dict], round_number: int, position: int, bracket_side: str) -> int:
    match_number = matches[-1]['match_number'] + 1
    matches.append(new_match(round_number, match_number, position, bracket_side=bracket_side))
    return len(matches) - 1


def _drop_order(winners_round: List[int], drop_number: int) -> List[int]:
    """
    Order in which a winners round's losers enter the losers bracket.

    Odd drops are reversed and even drops swap halves, so a dropped
    participant lands on the far side from the players it already beat.
    """
    if len(winners_round) < 2:
        return list(winners_round)
    if drop_number % 2 == 1:
        return list(reversed(winners_round))
    half = len(winners_round) // 2
    return winners_round[half:] + winners_round[:half]


def _generate_losers_bracket(matches: List[Dict], winners_rounds: List[List[int]]) -> Optional[int]:
    """
    Append the losers bracket following standard double elimination format.

    The losers bracket alternates between:
    - Minor rounds: only losers bracket participants compete
    - Major rounds: losers from the winners bracket drop in (slot 2)
      against the previous losers round winners (slot 1)

    For 8-participant bracket:
    - L Round 1 (minor): 4 W-R1 losers pair off -> 2 matches
    - L Round 2 (major): 2 W-SF losers + 2 L-R1 winners -> 2 matches
    - L Round 3 (minor): 2 L-R2 winners pair off -> 1 match
    - L Round 4 (major): W-F loser + L-R3 winner -> 1 match (losers final)

    Returns the index of the losers final, or None when the winners
    bracket is a single match and there is no losers bracket.
    """
    if len(winners_rounds) < 2:
        return None

    first_round = winners_rounds[0]
    losers_round = 1
    previous = []
    for i in range(0, len(first_round), 2):
        match_index = _append_match(matches, losers_round, i // 2 + 1, SIDE_LOSERS)
        _link_loser(matches, first_round[i], match_index, 1)
        _link_loser(matches, first_round[i + 1], match_index, 2)
        previous.append(match_index)

    for drop_number, winners_round in enumerate(winners_rounds[1:], start=1):
        # Major round: survivors in slot 1, new drop-downs in slot 2
        losers_round += 1
        dropping = _drop_order(winners_round, drop_number)
        current = []
        for i, survivor in enumerate(previous):
            match_index = _append_match(matches, losers_round, i + 1, SIDE_LOSERS)
            _link_winner(matches, survivor, match_index, 1)
            _link_loser(matches, dropping[i], match_index, 2)
            current.append(match_index)
        previous = current

        # Minor round: survivors pair off
        if len(previous) > 1:
            losers_round += 1
            previous = link_next_round(matches, previous, losers_round, SIDE_LOSERS)

    return previous[0]


def generate_double_elimination_bracket(participants: List, bracket_reset: bool = True) -> List[Dict]:
    """
    Generate complete double elimination bracket.

    Args:
        participants: Participant references ordered by seed (seed 1 first)
        bracket_reset: Emit the conditional second grand final, played
            only if the losers bracket champion wins the first one

    Returns list of match records: winners bracket, losers bracket,
    grand final and (optionally) the reset, in match_number order.
    """
    participants = validate_participants(participants)

    bracket_size = calculate_bracket_size(len(participants))
    total_winners_rounds = int(math.log2(bracket_size))

    # Winners bracket, same shape and seeding as single elimination
    matches = create_bracket_matchups(participants, SIDE_WINNERS)
    winners_rounds = [list(range(len(matches)))]
    for round_number in range(2, total_winners_rounds + 1):
        winners_rounds.append(link_next_round(matches, winners_rounds[-1], round_number, SIDE_WINNERS))

    losers_final = _generate_losers_bracket(matches, winners_rounds)

    # Grand Final
    winners_final = winners_rounds[-1][0]
    grand_final = _append_match(matches, total_winners_rounds + 1, 1, SIDE_GRAND_FINAL)
    _link_winner(matches, winners_final, grand_final, 1)
    if losers_final is None:
        # Two participants: the loser of the only match goes straight to the grand final
        _link_loser(matches, winners_final, grand_final, 2)
    else:
        _link_winner(matches, losers_final, grand_final, 2)

    # Bracket Reset (only played if losers bracket winner wins Grand Final)
    if bracket_reset:
        reset = _append_match(matches, total_winners_rounds + 2, 1, SIDE_GRAND_FINAL_RESET)
        _link_winner(matches, grand_final, reset, 1)
        _link_loser(matches, grand_final, reset, 2)

    propagate_byes(matches)

    logger.info(
        f"Generated double elimination bracket: {len(participants)} participants, "
        f"bracket size {bracket_size}, {len(matches)} matches, reset={bracket_reset}"
    )
    return matches


def get_double_elimination_round_name(match: Dict, matches: List[Dict]) -> str:
    """Display name for a match's round within a double elimination bracket."""
    side = match.get('bracket_side')
    if side == SIDE_GRAND_FINAL:
        return "Grand Final"
    if side == SIDE_GRAND_FINAL_RESET:
        return "Bracket Reset"

    total_rounds = max(m['round'] for m in matches if m.get('bracket_side') == side)
    if side == SIDE_LOSERS:
        return get_losers_round_name(match['round'], total_rounds)
    return get_winners_round_name(match['round'], total_rounds)
