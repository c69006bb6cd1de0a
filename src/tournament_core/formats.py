"""Bracket generation dispatch by tournament format."""
import math
from typing import List, Dict

from .errors import InvalidState
from .models import (
    FORMAT_SINGLE_ELIMINATION,
    FORMAT_DOUBLE_ELIMINATION,
    FORMAT_ROUND_ROBIN,
    TOURNAMENT_FORMATS,
)
from .elimination import generate_single_elimination_bracket
from .double_elimination import generate_double_elimination_bracket
from .round_robin import generate_round_robin_schedule, calculate_round_robin_rounds


class TournamentFormat:
    def __init__(self, participants, bracket_reset=True):
        self.participants = list(participants)
        self.bracket_reset = bracket_reset

    def round_robin(self):
        return generate_round_robin_schedule(self.participants)

    def single_elimination(self):
        return generate_single_elimination_bracket(self.participants)

    def double_elimination(self):
        return generate_double_elimination_bracket(self.participants, bracket_reset=self.bracket_reset)

    def generate(self, tournament_format):
        if tournament_format == FORMAT_SINGLE_ELIMINATION:
            return self.single_elimination()
        elif tournament_format == FORMAT_DOUBLE_ELIMINATION:
            return self.double_elimination()
        elif tournament_format == FORMAT_ROUND_ROBIN:
            return self.round_robin()
        raise InvalidState(
            f"Unknown tournament format: {tournament_format!r} (expected one of {', '.join(TOURNAMENT_FORMATS)})",
            'format'
        )

    def __repr__(self):
        return f"TournamentFormat(participants={len(self.participants)}, bracket_reset={self.bracket_reset})"


def generate_bracket(participants: List, tournament_format: str, bracket_reset: bool = True) -> List[Dict]:
    """Generate the full match list for a format."""
    return TournamentFormat(participants, bracket_reset).generate(tournament_format)


def get_num_rounds(tournament_format: str, participant_count: int) -> int:
    """Number of rounds for a format and participant count (0 below 2 participants)."""
    if participant_count <= 1:
        return 0

    if tournament_format == FORMAT_SINGLE_ELIMINATION:
        return math.ceil(math.log2(participant_count))
    elif tournament_format == FORMAT_DOUBLE_ELIMINATION:
        # Winners rounds + losers rounds + grand final(s)
        winners_rounds = math.ceil(math.log2(participant_count))
        return winners_rounds + (winners_rounds * 2 - 2) + 2
    elif tournament_format == FORMAT_ROUND_ROBIN:
        return calculate_round_robin_rounds(participant_count)
    raise InvalidState(f"Unknown tournament format: {tournament_format!r}", 'format')
