"""
Logging utilities for analysis runs.
"""

import logging
import sys
from pathlib import Path
from typing import Optional


def setup_logging(
    log_file: Optional[str] = None,
    level: int = logging.INFO,
    format_string: str = None,
    name: str = None
) -> logging.Logger:
    """
    Set up logging configuration.

    Args:
        log_file: Path to log file (if None, only console output)
        level: Logging level
        format_string: Custom format string
        name: Logger name (if None, uses root logger)

    Returns:
        Configured logger
    """
    if format_string is None:
        format_string = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'

    # Get or create logger
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    logger.handlers = []

    formatter = logging.Formatter(format_string, datefmt='%Y-%m-%d %H:%M:%S')

    # Console handler (minimal output - we use rich for main display)
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.WARNING)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (detailed logs)
    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger by name.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class RunLogger:
    """
    Wraps the configured logger of a CLI run and writes its configuration and
    results as flat dotted keys, one per line.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def exception(self, msg: str):
        self.logger.exception(msg)

    def log_config(self, config: dict):
        self._log_block("CONFIGURATION", config)

    def log_results(self, results: dict, title: str = "RESULTS"):
        self._log_block(title, results)

    def _log_block(self, title: str, d: dict):
        self.logger.info(f"{'=' * 20} {title} {'=' * 20}")
        for key, value in _flatten(d):
            if isinstance(value, float):
                value = f"{value:.4f}"
            self.logger.info(f"  {key}: {value}")


def _flatten(d: dict, prefix: str = ''):
    """Yield (dotted.key, value) pairs of a nested dict."""
    for key, value in d.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            yield from _flatten(value, prefix=f"{name}.")
        else:
            yield name, value
