"""
Tournament settings stored as YAML.

Settings are merged over get_default_config() so every key is present;
the per-sport sections are turned into the immutable configuration
values the scoring engines are initialized with.
"""
import copy
import os
import logging
from typing import Dict

import yaml

from .errors import InvalidInput
from .models import TOURNAMENT_FORMATS, SPORT_KINDS
from .tennis import TennisConfig
from .volleyball import VolleyballConfig

logger = logging.getLogger(__name__)


def get_default_config() -> Dict:
    """Return default tournament settings."""
    return {
        'format': 'single_elimination',
        'sport': 'generic',
        'bracket_reset': True,
        'tennis': {
            'is_ad_scoring': True,
            'sets_to_win': 2,
            'set_tiebreak_target': 7,
            'final_set_tiebreak_target': 7,
            'use_match_tiebreak': False,
            'match_tiebreak_target': 10,
        },
        'volleyball': {
            'sets_to_win': 3,
            'points_per_set': 25,
            'points_per_deciding_set': 15,
            'min_lead_to_win': 2,
        },
        'standings': {
            'points_per_win': 3,
            'points_per_draw': 1,
            'points_per_loss': 0,
        },
    }


def _merge(defaults: Dict, overrides: Dict) -> Dict:
    merged = copy.deepcopy(defaults)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_tournament_config(file_path: str) -> Dict:
    """Load settings from a YAML file, merging with defaults."""
    defaults = get_default_config()
    if not os.path.exists(file_path):
        return defaults
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except Exception as e:
        logger.warning(f'Failed to parse {file_path}: {e}')
        return defaults

    if not data:
        return defaults
    if not isinstance(data, dict):
        logger.warning(f'Ignoring {file_path}: expected a mapping, got {type(data).__name__}')
        return defaults

    config = _merge(defaults, data)
    if config['format'] not in TOURNAMENT_FORMATS:
        raise InvalidInput(f"Unknown tournament format: {config['format']!r}", 'format')
    if config['sport'] not in SPORT_KINDS:
        raise InvalidInput(f"Unknown sport: {config['sport']!r}", 'sport')
    return config


def save_tournament_config(file_path: str, config: Dict):
    """Save settings to a YAML file."""
    directory = os.path.dirname(file_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(file_path, 'w', encoding='utf-8') as f:
        yaml.dump(config, f, default_flow_style=False)


def _section(settings: Dict, name: str) -> Dict:
    section = settings.get(name) or {}
    if not isinstance(section, dict):
        raise InvalidInput(f"{name} settings must be a mapping", name)
    return section


def tennis_config_from_settings(settings: Dict) -> TennisConfig:
    """Build a TennisConfig from the 'tennis' section of the settings."""
    section = _section(settings, 'tennis')
    defaults = get_default_config()['tennis']
    unknown = set(section) - set(defaults)
    if unknown:
        raise InvalidInput(f"Unknown tennis settings: {', '.join(sorted(unknown))}", 'tennis')
    return TennisConfig(**_merge(defaults, section))


def volleyball_config_from_settings(settings: Dict) -> VolleyballConfig:
    """Build a VolleyballConfig from the 'volleyball' section of the settings."""
    section = _section(settings, 'volleyball')
    defaults = get_default_config()['volleyball']
    unknown = set(section) - set(defaults)
    if unknown:
        raise InvalidInput(f"Unknown volleyball settings: {', '.join(sorted(unknown))}", 'volleyball')
    return VolleyballConfig(**_merge(defaults, section))
