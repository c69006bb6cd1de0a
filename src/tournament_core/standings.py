"""
Round robin standings computed from completed match records.
"""
from typing import List, Dict

from .models import STATUS_COMPLETED


def _empty_row(participant) -> Dict:
    return {
        'participant': participant,
        'played': 0,
        'wins': 0,
        'losses': 0,
        'draws': 0,
        'points_for': 0,
        'points_against': 0,
        'points': 0,
    }


def compute_standings(participants: List, matches: List[Dict], points_per_win: int = 3,
                      points_per_draw: int = 1, points_per_loss: int = 0) -> List[Dict]:
    """
    Build the standings table for a round robin.

    Only completed matches count; byes and unfinished matches are
    ignored. A completed match without a winner is a draw.

    Returns rows sorted by:
    1. Points (descending)
    2. Score differential (descending)
    3. Score for (descending)
    Ties beyond that keep the order of the participants list.
    """
    table = {participant: _empty_row(participant) for participant in participants}

    for match in matches:
        if match['status'] != STATUS_COMPLETED:
            continue
        p1, p2 = match['participant1'], match['participant2']
        if p1 not in table or p2 not in table:
            continue

        for participant, scored, conceded in ((p1, match['participant1_score'], match['participant2_score']),
                                              (p2, match['participant2_score'], match['participant1_score'])):
            row = table[participant]
            row['played'] += 1
            row['points_for'] += scored
            row['points_against'] += conceded

            if match['winner'] is None:
                row['draws'] += 1
                row['points'] += points_per_draw
            elif match['winner'] == participant:
                row['wins'] += 1
                row['points'] += points_per_win
            else:
                row['losses'] += 1
                row['points'] += points_per_loss

    rows = list(table.values())
    for row in rows:
        row['differential'] = row['points_for'] - row['points_against']

    # Stable sort keeps participant order for full ties
    rows.sort(key=lambda r: (r['points'], r['differential'], r['points_for']), reverse=True)
    return rows
