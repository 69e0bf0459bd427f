# jsonsigner/logging_config.py
"""
Logging setup for the command line. Library modules only create loggers;
handlers are attached here.
"""

import logging
import os
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "jsonsigner"
LEVEL_ENV = "JSON_SIGNER_LOG_LEVEL"


def setup_logging(verbose: bool = False, level: Optional[str] = None) -> logging.Logger:
    """
    Send jsonsigner logs to stderr through rich.

    Level comes from `level`, then JSON_SIGNER_LOG_LEVEL, then DEBUG when
    verbose and INFO otherwise. Safe to call more than once.
    """
    name = level or os.environ.get(LEVEL_ENV)
    if name:
        resolved = logging.getLevelName(name.upper())
        if not isinstance(resolved, int):
            raise ValueError(f"unknown log level {name!r}")
    else:
        resolved = logging.DEBUG if verbose else logging.INFO

    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=verbose,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    return logger
