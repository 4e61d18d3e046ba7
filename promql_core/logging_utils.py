"""
Logging Utilities

Console logging setup shared by the CLI and the HTTP server.
"""

import logging
import sys
from typing import Union


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def configure_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """
    Install one console handler on the root logger.

    Writes to stderr so formatted output on stdout stays clean.
    Calling it again replaces the handler instead of adding another.

    Args:
        level: Logging level name ("DEBUG", "WARNING", ...) or number

    Returns:
        The configured root logger
    """
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level!r}")
        level = resolved

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Clear existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    return root_logger
