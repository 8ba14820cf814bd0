"""
Configuration loading.

Settings live in a YAML file whose sections override DEFAULT_CONFIG key by
key; anything left out keeps its default.
"""

import copy
from pathlib import Path
from typing import Dict, Optional, Union

import yaml

DEFAULT_CONFIG: Dict = {
    'analysis': {
        'window_seconds': 0.1,   # head length = sample_rate * window_seconds
        'norm': 'forward',
        'parallel': False,
        'top_bins': 5,
    },
    'display': {
        'tick_rate': 0.1,        # seconds between ticks
        'exit_key': 'q',
        'window': 100,           # samples visible in the waveform chart
        'step': 5,               # samples scrolled per tick
        'height': 12,
        'n_bars': 40,
    },
    'plot': {
        'n_bins': 150,
        'dpi': 150,
    },
    'logging': {
        'level': 'INFO',
        'log_file': None,
    },
}


def merge_config(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(config_path: Optional[Union[str, Path]] = None) -> Dict:
    """Load configuration from YAML file, on top of the defaults."""
    if config_path is None:
        config = copy.deepcopy(DEFAULT_CONFIG)
    else:
        with open(config_path, 'r') as f:
            loaded = yaml.safe_load(f)

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Config file {config_path} must contain a mapping, got {type(loaded).__name__}")

        config = merge_config(DEFAULT_CONFIG, loaded)

    validate_config(config)
    return config


def _number(section: Dict, name: str, key: str, cast):
    value = section.get(key, 0)
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name}.{key} must be a number, got {value!r}") from None


def validate_config(config: Dict) -> None:
    """Check value ranges and coerce numeric settings in place."""
    analysis = config.get('analysis', {})
    analysis['window_seconds'] = _number(analysis, 'analysis', 'window_seconds', float)
    if analysis['window_seconds'] <= 0:
        raise ValueError(f"analysis.window_seconds must be positive, got {analysis['window_seconds']}")
    analysis['top_bins'] = _number(analysis, 'analysis', 'top_bins', int)
    if analysis['top_bins'] < 1:
        raise ValueError(f"analysis.top_bins must be at least 1, got {analysis['top_bins']}")
    if analysis.get('norm') not in ('forward', 'backward', 'ortho'):
        raise ValueError(f"analysis.norm must be forward, backward or ortho, got {analysis.get('norm')!r}")

    display = config.get('display', {})
    for key in ('window', 'step', 'height', 'n_bars'):
        display[key] = _number(display, 'display', key, int)
        if display[key] < 1:
            raise ValueError(f"display.{key} must be at least 1, got {display[key]}")
    display['tick_rate'] = _number(display, 'display', 'tick_rate', float)
    if display['tick_rate'] <= 0:
        raise ValueError(f"display.tick_rate must be positive, got {display['tick_rate']}")
