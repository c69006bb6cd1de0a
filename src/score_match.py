"""
Live scoring of a stored match.

Usage:
    python src/score_match.py --data-dir data start 3 --sport tennis --first-server 1
    python src/score_match.py --data-dir data point 3 1
    python src/score_match.py --data-dir data ace 3
    python src/score_match.py --data-dir data undo 3
    python src/score_match.py --data-dir data result 0 2 --scores 1 3
    python src/score_match.py --data-dir data show 3

Match numbers are indices into the stored match list. When a point ends
a match, the result is recorded and the participants advance.

Exit codes:
    0: Success
    1: Rejected (invalid input, invalid state, unknown match)
"""
import argparse
import logging
import sys

from tournament_core.errors import TournamentError, InvalidInput, InvalidState
from tournament_core.models import SPORT_KINDS, SPORT_TENNIS, SPORT_VOLLEYBALL, STATUS_COMPLETED
from tournament_core.config import (
    get_default_config,
    load_tournament_config,
    tennis_config_from_settings,
    volleyball_config_from_settings,
)
from tournament_core.advancement import (
    get_match,
    initialize_match,
    record_result,
    revert_result,
    complete_from_sport_state,
)
from tournament_core.storage import MatchStore
from tournament_core import tennis
from tournament_core import volleyball


def apply_sport_event(match, event, args):
    """New sport state for a scoring event on a live match."""
    state = match['sport_state']
    if state is None:
        raise InvalidState(f"Match {match['match_number']} has not been started", 'sport_state')

    engine = tennis if match['sport_kind'] == SPORT_TENNIS else volleyball
    if event == 'point':
        return engine.score_point(state, args.winner)
    elif event == 'server':
        return engine.set_server(state, args.participant)
    elif event in ('ace', 'fault'):
        if engine is not tennis:
            raise InvalidInput(f"{event} is only tracked for tennis", 'event')
        return tennis.score_ace(state) if event == 'ace' else tennis.score_fault(state)
    elif event == 'adjust':
        if engine is not volleyball:
            raise InvalidInput("adjust is only available for volleyball", 'event')
        return volleyball.adjust_score(state, args.team, args.delta)
    raise InvalidInput(f"Unknown event: {event}", 'event')


def handle_event(matches, args, settings):
    index = args.index
    match = get_match(matches, index)

    if args.command == 'start':
        if args.sport == SPORT_TENNIS:
            config = tennis_config_from_settings(settings)
        elif args.sport == SPORT_VOLLEYBALL:
            config = volleyball_config_from_settings(settings)
        else:
            config = None
        return initialize_match(matches, index, args.sport, config, args.first_server)

    if args.command == 'result':
        p1_score, p2_score = args.scores if args.scores else (None, None)
        return record_result(matches, index, args.winner, p1_score, p2_score)

    if args.command == 'revert':
        return revert_result(matches, index)

    if args.command == 'undo':
        if match['sport_state'] is None:
            raise InvalidState(f"Match {match['match_number']} has no scoring history", 'sport_state')
        if match['status'] == STATUS_COMPLETED:
            # Pull the participants back before reopening the match
            matches = revert_result(matches, index)
            match = matches[index]
        engine = tennis if match['sport_kind'] == SPORT_TENNIS else volleyball
        match['sport_state'] = engine.undo(match['sport_state'])
        return matches

    new_state = apply_sport_event(match, args.command, args)
    matches[index] = dict(match, sport_state=new_state)
    if new_state.is_match_complete:
        matches = complete_from_sport_state(matches, index)
    return matches


def describe_match(match):
    p1 = match['participant1'] if match['participant1'] is not None else 'TBD'
    p2 = match['participant2'] if match['participant2'] is not None else 'TBD'
    lines = [f"Match {match['match_number']} ({match['status']}): {p1} vs {p2}"]

    state = match['sport_state']
    if match['sport_kind'] == SPORT_TENNIS and state is not None:
        sets = ' '.join(f"{a}-{b}" for a, b in state.sets) or '-'
        games = f"{state.current_set_games[0]}-{state.current_set_games[1]}"
        points = state.tiebreak_points if state.is_tiebreak else state.current_game_points
        display = [tennis.get_point_display(points, i, state.is_ad_scoring, state.is_tiebreak) for i in (0, 1)]
        lines.append(f"Sets: {sets}  Games: {games}  Points: {display[0]}-{display[1]}")
        lines.append(f"Serving: {p1 if state.serving_participant == 1 else p2}")
        status = tennis.get_game_status(points, state.is_ad_scoring, state.is_tiebreak,
                                        state.serving_participant, state.tiebreak_mode, (str(p1), str(p2)))
        if status:
            lines.append(status)
        match_point = tennis.detect_match_point(state)
        if match_point:
            lines.append(f"Match point {p1 if match_point == 1 else p2}")
    elif match['sport_kind'] == SPORT_VOLLEYBALL and state is not None:
        sets = ' '.join(f"{a}-{b}" for a, b in state.sets) or '-'
        points = state.current_set_points
        lines.append(f"Sets: {sets}  Set {state.current_set_number}: {points[0]}-{points[1]}")
        lines.append(f"Serving: {p1 if state.serving_team == 1 else p2}")
    else:
        lines.append(f"Score: {match['participant1_score']}-{match['participant2_score']}")

    if match['winner'] is not None:
        lines.append(f"Winner: {match['winner']}")
    return '\n'.join(lines)


def build_parser():
    parser = argparse.ArgumentParser(description='Score a stored tournament match')
    parser.add_argument('--data-dir', required=True, help='Directory holding matches.yaml')
    parser.add_argument('--config', help='Tournament settings YAML file')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')

    commands = parser.add_subparsers(dest='command', required=True)

    start = commands.add_parser('start', help='Put a match live')
    start.add_argument('index', type=int)
    start.add_argument('--sport', choices=SPORT_KINDS, help='Sport (default: from settings)')
    start.add_argument('--first-server', type=int, default=1, help='Participant serving first (1 or 2)')

    point = commands.add_parser('point', help='Score a point')
    point.add_argument('index', type=int)
    point.add_argument('winner', type=int, help='1 or 2')

    for name, help_text in (('ace', 'Ace by the server (tennis)'),
                            ('fault', 'Service fault (tennis)'),
                            ('undo', 'Undo the last scoring event'),
                            ('revert', 'Revert a recorded result'),
                            ('show', 'Show the match')):
        command = commands.add_parser(name, help=help_text)
        command.add_argument('index', type=int)

    server = commands.add_parser('server', help='Correct the serving participant')
    server.add_argument('index', type=int)
    server.add_argument('participant', type=int, help='1 or 2')

    adjust = commands.add_parser('adjust', help='Correct the current set score (volleyball)')
    adjust.add_argument('index', type=int)
    adjust.add_argument('team', type=int, help='1 or 2')
    adjust.add_argument('delta', type=int)

    result = commands.add_parser('result', help='Record a result directly')
    result.add_argument('index', type=int)
    result.add_argument('winner', type=int, nargs='?', help='1 or 2 (default: higher score)')
    result.add_argument('--scores', type=int, nargs=2, metavar=('P1', 'P2'))

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s'
    )

    store = MatchStore(args.data_dir)
    try:
        settings = load_tournament_config(args.config) if args.config else get_default_config()
        if args.command == 'start' and args.sport is None:
            args.sport = settings['sport']

        if args.command == 'show':
            match = store.get_match(args.index)
        else:
            matches = store.update(lambda current: handle_event(current, args, settings))
            match = matches[args.index]
    except TournamentError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print(describe_match(match))
    return 0


if __name__ == '__main__':
    sys.exit(main())
