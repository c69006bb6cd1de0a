"""
YAML-backed match store.

Matches live in matches.yaml inside a data directory. Every
read-modify-write goes through update(), which holds the directory's
file lock so two processes never interleave mutations of the same
match list.
"""
import os
import logging
from typing import List, Dict, Callable

import yaml
from filelock import FileLock

from .errors import InvalidState, NotFound
from .models import SPORT_TENNIS, SPORT_VOLLEYBALL
from .tennis import TennisState
from .volleyball import VolleyballState

logger = logging.getLogger(__name__)

MATCHES_FILENAME = 'matches.yaml'
LOCK_FILENAME = '.lock'
LOCK_TIMEOUT = 10

SPORT_STATE_TYPES = {
    SPORT_TENNIS: TennisState,
    SPORT_VOLLEYBALL: VolleyballState,
}


def match_to_dict(match: Dict) -> Dict:
    """Plain-data copy of a match, with its sport state flattened."""
    data = dict(match)
    state = match.get('sport_state')
    if state is not None and hasattr(state, 'to_dict'):
        data['sport_state'] = state.to_dict()
    return data


def match_from_dict(data: Dict) -> Dict:
    """Inverse of match_to_dict: rebuild the sport state from its sport_kind tag."""
    match = dict(data)
    state = match.get('sport_state')
    state_type = SPORT_STATE_TYPES.get(match.get('sport_kind'))
    if isinstance(state, dict) and state_type is not None:
        match['sport_state'] = state_type.from_dict(state)
    return match


class MatchStore:
    def __init__(self, data_dir: str):
        self.data_dir = data_dir
        self.path = os.path.join(data_dir, MATCHES_FILENAME)
        os.makedirs(data_dir, exist_ok=True)
        self.lock = FileLock(os.path.join(data_dir, LOCK_FILENAME), timeout=LOCK_TIMEOUT)

    def load(self) -> List[Dict]:
        """
        Load matches from the YAML file; a missing or empty file yields [].

        Raises InvalidState when the file cannot be parsed or does not hold
        a matches mapping, so update() never saves over a damaged store.
        """
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.error(f'Failed to parse {self.path}: {e}')
            raise InvalidState(f"Match store {self.path} is not valid YAML", 'matches') from e
        if not data:
            return []
        if not isinstance(data, dict) or not isinstance(data.get('matches') or [], list):
            logger.error(f'Unexpected layout in {self.path}: {type(data).__name__}')
            raise InvalidState(f"Match store {self.path} does not hold a matches list", 'matches')
        return [match_from_dict(m) for m in data.get('matches') or []]

    def save(self, matches: List[Dict]):
        """Write matches to the YAML file."""
        with open(self.path, 'w', encoding='utf-8') as f:
            yaml.dump({'matches': [match_to_dict(m) for m in matches]}, f, default_flow_style=False)

    def update(self, mutation: Callable[[List[Dict]], List[Dict]]) -> List[Dict]:
        """
        Apply mutation to the stored matches under the file lock.

        mutation receives the current list and returns the new one, which
        is saved and returned. If mutation raises nothing is written.
        """
        with self.lock:
            matches = mutation(self.load())
            self.save(matches)
        return matches

    def get_match(self, index: int) -> Dict:
        matches = self.load()
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(matches):
            raise NotFound.for_resource(f"Match {index!r}", 'index')
        return matches[index]

    def __repr__(self):
        return f"MatchStore(data_dir={self.data_dir!r})"
