from __future__ import annotations

import os
import sys
from typing import Optional

from loguru import logger

LOG_FORMAT = "<level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"

_LEVELS = {0: "WARNING", 1: "DEBUG"}


def _stderr_sink(message: str) -> None:
    # Resolve sys.stderr per write so redirected streams (tests, pipes) are honoured.
    sys.stderr.write(message)


def setup_logging(verbose: int = 0) -> str:
    """Configure loguru for one CLI invocation and return the active level.

    -v gives DEBUG, -vv and up gives TRACE. TRITON_LOG_LEVEL overrides both;
    an unknown level name is ignored with a warning.
    """
    level = _LEVELS.get(verbose, "TRACE")
    requested = os.getenv("TRITON_LOG_LEVEL")
    invalid: Optional[str] = None
    if requested:
        try:
            level = logger.level(requested.upper()).name
        except ValueError:
            invalid = requested

    logger.remove()
    logger.add(_stderr_sink, format=LOG_FORMAT, level=level, colorize=False)
    if invalid is not None:
        logger.warning("ignoring unknown TRITON_LOG_LEVEL {!r}, using {}", invalid, level)
    return level
