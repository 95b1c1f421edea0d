"""
Logging setup for boltguard.

Library modules log through `logging.getLogger(__name__)` and never
configure handlers themselves. The CLI calls setup_logging() once to send
the "boltguard" logger tree to stderr through Rich.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "boltguard"


def setup_logging(level: str | int = "WARNING", console: Console | None = None) -> logging.Logger:
    """
    Configure the boltguard logger.

    Calling this again only changes the level; handlers are not duplicated.

    Args:
        level: Logging level name or number (DEBUG, INFO, WARNING, ERROR)
        console: Rich Console to write to (defaults to stderr)

    Returns:
        The configured "boltguard" logger

    Raises:
        ValueError: If level is not a known logging level name
    """
    logger = logging.getLogger(LOGGER_NAME)

    if isinstance(level, str):
        level_upper = level.upper()
        if level_upper not in logging.getLevelNamesMapping():
            raise ValueError(
                f"Invalid log level: {level}. "
                f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
            )
        level = logging.getLevelNamesMapping()[level_upper]
    logger.setLevel(level)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s", datefmt="%Y-%m-%dT%H:%M:%S"))
        logger.addHandler(handler)
        logger.propagate = False

    return logger
