"""
Round robin schedule generation using the circle method.
"""
import logging
from typing import List, Dict

from .models import new_match, STATUS_BYE
from .elimination import validate_participants

logger = logging.getLogger(__name__)


def calculate_round_robin_rounds(num_participants: int) -> int:
    """n-1 rounds for an even count, n rounds for an odd count (one bye per round)."""
    if num_participants < 2:
        return 0
    return num_participants - 1 if num_participants % 2 == 0 else num_participants


def generate_round_robin_schedule(participants: List) -> List[Dict]:
    """
    Generate a round robin schedule where everyone meets everyone once.

    The first participant stays fixed while the others rotate one place
    each round. With an odd count an empty slot rotates with them, and
    whoever is paired with it that round gets an explicit bye record.
    Round robin matches carry no next_match links.
    """
    participants = validate_participants(participants)

    slots = list(participants)
    if len(slots) % 2 != 0:
        slots.append(None)

    n = len(slots)
    fixed = slots[0]
    rotating = slots[1:]

    matches = []
    match_number = 0
    for round_number in range(1, n):
        current = [fixed] + rotating
        for position in range(1, n // 2 + 1):
            home = current[position - 1]
            away = current[n - position]
            match_number += 1

            if home is None or away is None:
                present = home if home is not None else away
                match = new_match(round_number, match_number, position, present, None)
                match['status'] = STATUS_BYE
                match['winner'] = present
            else:
                match = new_match(round_number, match_number, position, home, away)
            matches.append(match)

        rotating = [rotating[-1]] + rotating[:-1]

    logger.info(
        f"Generated round robin schedule: {len(participants)} participants, "
        f"{n - 1} rounds, {len(matches)} matches"
    )
    return matches
