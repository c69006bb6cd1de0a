"""
Generate a tournament bracket and print it, optionally saving it to a data directory.

Usage:
    python src/generate_bracket.py teams.yaml --format double_elimination
    python src/generate_bracket.py --participants Ann Bob Cat --format round_robin
    python src/generate_bracket.py teams.yaml --config settings.yaml --data-dir data

The participants file is a YAML list ordered by seed (seed 1 first).

Exit codes:
    0: Success
    1: Invalid participants, settings or format
"""
import argparse
import logging
import sys

import yaml

from tournament_core.errors import TournamentError, InvalidInput
from tournament_core.models import TOURNAMENT_FORMATS, FORMAT_DOUBLE_ELIMINATION, FORMAT_ROUND_ROBIN
from tournament_core.config import load_tournament_config, get_default_config
from tournament_core.formats import generate_bracket
from tournament_core.elimination import get_round_name, group_by_round
from tournament_core.double_elimination import get_double_elimination_round_name
from tournament_core.storage import MatchStore


def load_participants(file_path):
    with open(file_path, mode='r', encoding='utf-8') as file:
        data = yaml.safe_load(file)
    if isinstance(data, dict):
        data = data.get('participants')
    if not isinstance(data, list):
        raise InvalidInput(f"{file_path} must contain a list of participants", 'participants')
    return data


def format_match(match):
    p1 = match['participant1'] if match['participant1'] is not None else 'TBD'
    p2 = match['participant2'] if match['participant2'] is not None else 'TBD'
    if match['status'] == 'bye':
        if match['winner'] is None:
            return f"M{match['match_number']}: (empty)"
        return f"M{match['match_number']}: {match['winner']} (bye)"
    return f"M{match['match_number']}: {p1} vs {p2}"


def print_bracket(matches, tournament_format):
    rounds = group_by_round(matches)
    total_rounds = max(m['round'] for m in matches)

    first_round = True
    for (side, round_number), round_matches in rounds.items():
        if not first_round:
            print()
        if tournament_format == FORMAT_DOUBLE_ELIMINATION:
            title = get_double_elimination_round_name(round_matches[0], matches)
        elif tournament_format == FORMAT_ROUND_ROBIN:
            title = f"Round {round_number}"
        else:
            title = get_round_name(round_number, total_rounds)
        print(f"# {title}")
        for match in round_matches:
            print(format_match(match))
        first_round = False


def main(argv=None):
    parser = argparse.ArgumentParser(description='Generate a tournament bracket')
    parser.add_argument('participants_file', nargs='?', help='YAML list of participants ordered by seed')
    parser.add_argument('--participants', nargs='+', help='Participants ordered by seed')
    parser.add_argument('--format', choices=TOURNAMENT_FORMATS, help='Tournament format (default: from settings)')
    parser.add_argument('--config', help='Tournament settings YAML file')
    parser.add_argument('--no-reset', action='store_true', help='Double elimination without the bracket reset match')
    parser.add_argument('--data-dir', help='Save the generated matches to this directory')
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s'
    )

    try:
        settings = load_tournament_config(args.config) if args.config else get_default_config()
        if args.participants:
            participants = args.participants
        elif args.participants_file:
            participants = load_participants(args.participants_file)
        else:
            parser.error('participants_file or --participants is required')

        tournament_format = args.format or settings['format']
        bracket_reset = settings['bracket_reset'] and not args.no_reset
        matches = generate_bracket(participants, tournament_format, bracket_reset)
    except TournamentError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    print_bracket(matches, tournament_format)

    if args.data_dir:
        store = MatchStore(args.data_dir)
        store.update(lambda _: matches)
        print(f"\nSaved {len(matches)} matches to {store.path}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
