from __future__ import annotations

import logging
import os
from typing import Optional

LOG_LEVEL_ENV = "HOMERUN_LOG_LEVEL"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def verbosity_level(verbosity: int) -> int:
    """Map the CLI's repeated -v count to a level: none WARNING, -v INFO, -vv DEBUG."""
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(default_level: int = logging.INFO, verbosity: Optional[int] = None) -> int:
    """Configure the root logger for console runs and return the level used.

    Precedence: HOMERUN_LOG_LEVEL, then the -v count, then default_level.
    Placement skips log at WARNING, run and battle milestones at INFO and
    per-step detail at DEBUG, so a bare run only shows degraded generation.
    """
    level = verbosity_level(verbosity) if verbosity is not None else default_level
    level_name = os.getenv(LOG_LEVEL_ENV)
    if level_name:
        level = getattr(logging, level_name.upper(), level)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    return level
