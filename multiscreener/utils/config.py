"""
Settings loading.

Settings come from ``config/config.yaml`` deep-merged over the built-in
defaults below, so a config file only needs the keys it changes.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from ..exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / 'config' / 'config.yaml'

SCREENER_IDS = ('magic_formula', 'piotroski', 'value_scan', 'canslim')

DEFAULT_SETTINGS: Dict[str, Any] = {
    'api': {
        'base_url': 'https://financialmodelingprep.com/api/v3/',
        'api_key_env': 'FMP_API_KEY',
        'timeout': 30,
    },
    'universe': {
        'exchange': 'NSE',
        'limit': 2000,
    },
    'screeners': {
        # Screeners that make more calls per symbol get smaller batches
        'magic_formula': {'batch_size': 100, 'delay': 0.1},
        'piotroski': {'batch_size': 80, 'delay': 0.1, 'min_score': 7},
        'value_scan': {
            'batch_size': 200,
            'delay': 0.1,
            'criteria': {
                'pe_max': 15,
                'pb_max': 1.5,
                'current_ratio_min': 2,
                'debt_to_equity_max': 0.5,
                'positive_net_margin': True,
            },
        },
        'canslim': {
            'batch_size': 50,
            'delay': 0.15,
            'quarterly_growth_min': 0.25,
            'annual_growth_min': 0.25,
            'new_high_proximity': 0.85,
            'price_history_days': 365,
        },
    },
    'daily': {
        'batch_size': 300,
        'screeners': ['magic_formula', 'value_scan', 'piotroski'],
    },
    'run': {
        'max_runtime': None,
    },
    'cache': {
        'dir': 'cache',
        'top_n': 50,
    },
    'logging': {
        'level': 'INFO',
    },
}


def _deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_settings(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load settings from a YAML configuration file.

    Args:
        config_path: Path to config file. If None, uses default config/config.yaml

    Returns:
        Settings dictionary with every default filled in

    Raises:
        ValidationError: If the file is not valid YAML or not a mapping
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        logger.warning(f"Config file not found at {config_path}, using defaults")
        return copy.deepcopy(DEFAULT_SETTINGS)

    try:
        with open(config_path, 'r') as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid YAML in {config_path}: {str(e)}") from e

    if not isinstance(raw, Mapping):
        raise ValidationError(f"Config {config_path} must be a mapping, got {type(raw).__name__}")

    return _deep_merge(DEFAULT_SETTINGS, raw)


def screener_settings(settings: Mapping[str, Any], screener_id: str) -> Dict[str, Any]:
    """
    Settings block for one screener.

    Raises:
        ValidationError: If ``screener_id`` is not a known screener
    """
    if screener_id not in SCREENER_IDS:
        raise ValidationError(f"Unknown screener: {screener_id} (choose from {', '.join(SCREENER_IDS)})")
    return dict(settings.get('screeners', {}).get(screener_id, {}))
