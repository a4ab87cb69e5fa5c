#!/usr/bin/env python3
"""
branching - Name and create the branch a backport is replayed onto.
"""

import logging
from typing import Optional

from gitbackport.engine import VcsEngine
from gitbackport.errors import BranchExists

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "backport"


def derive_branch_name(target_line: str, last_commit: Optional[str], prefix: str = DEFAULT_PREFIX) -> str:
    """
    Build <prefix>/<target with '/' -> '-'>/<short hash of last commit>.

    >>> derive_branch_name("release/2.26", "abc1234def")
    'backport/release-2.26/abc1234'
    """
    short_hash = last_commit[:7] if last_commit else "unknown"
    return f"{prefix}/{target_line.replace('/', '-')}/{short_hash}"


def materialize(engine: VcsEngine, target_line: str, name: str) -> str:
    """
    Check out target_line and create (or reuse) branch name from its tip.

    An existing branch is a warning: it is checked out and left where it
    points, and replay continues from there.
    """
    engine.checkout(target_line)
    try:
        engine.create_branch(name, target_line)
    except BranchExists:
        logger.warning("Branch already exists: %s (reusing it)", name)
        engine.checkout(name)
    return name
