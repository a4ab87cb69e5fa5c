#!/usr/bin/env python3
"""
conflicts - Tell the operator what is in conflict and how to carry on.

Nothing here resolves or aborts anything; the repository is left exactly
as the cherry-pick left it.
"""

import logging
from typing import List

from gitbackport.engine import VcsEngine

logger = logging.getLogger(__name__)

CONTINUE_COMMAND = "git cherry-pick --continue"
ABORT_COMMAND = "git cherry-pick --abort"


def guidance(destination: str) -> str:
    return (
        f"Resolve conflicts on branch '{destination}' and run: {CONTINUE_COMMAND}\n"
        f"(or give up with: {ABORT_COMMAND})"
    )


def report(engine: VcsEngine, destination: str) -> List[str]:
    """Log each conflicting path plus continuation guidance, and return the paths."""
    paths = list(engine.status().conflicting)
    for path in paths:
        logger.error("Conflict: %s", path)
    logger.error(guidance(destination))
    return paths
