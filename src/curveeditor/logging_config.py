"""
Logging Configuration
Sets up the 'curveeditor' logger used by the engines, commands and document state.
"""
import logging
import os
import sys
from typing import Optional

LOGGER_NAMESPACE = "curveeditor"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def level_from_env(default: int = logging.INFO) -> int:
    """Resolve the level name in CURVEEDITOR_LOG_LEVEL (e.g. "DEBUG"), or `default`."""
    name = os.environ.get("CURVEEDITOR_LOG_LEVEL")
    if not name:
        return default
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else default


def setup_logging(level: Optional[int] = None, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configures the logger for the 'curveeditor' namespace.

    Args:
        level: Logging level (e.g. logging.DEBUG). Falls back to CURVEEDITOR_LOG_LEVEL, then INFO.
        log_file: Optional path to also write the log to.

    Returns:
        The configured namespace logger.
    """
    if level is None:
        level = level_from_env()

    logger = logging.getLogger(LOGGER_NAMESPACE)
    logger.setLevel(level)

    # Re-running setup (new document session, tests) must not duplicate output
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt='%H:%M:%S')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.info(f"Logging initialized at level {logging.getLevelName(level)}.")
    return logger
