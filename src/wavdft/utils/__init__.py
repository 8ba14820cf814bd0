"""
Utility modules.

utils.plot is not imported here: it pulls in matplotlib and dsp_core.
"""

from .logging import setup_logging, get_logger, RunLogger
from .wav import WavFile, MalformedHeaderError
from .config import load_config, DEFAULT_CONFIG

__all__ = [
    'setup_logging',
    'get_logger',
    'RunLogger',
    'WavFile',
    'MalformedHeaderError',
    'load_config',
    'DEFAULT_CONFIG',
]
