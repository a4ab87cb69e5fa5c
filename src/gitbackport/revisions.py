#!/usr/bin/env python3
"""
revisions - Turn user-supplied references into commit ids.
"""

import logging
from typing import Iterable, List

from gitbackport.engine import VcsEngine
from gitbackport.errors import UnresolvedReference

logger = logging.getLogger(__name__)


def resolve(engine: VcsEngine, ref: str) -> str:
    """
    Resolve a branch, tag, abbreviated/full hash or HEAD to a full commit id.

    Raises:
        UnresolvedReference: the engine cannot map ref to a commit.
    """
    ref = (ref or "").strip()
    commit_id = engine.resolve(ref) if ref else None
    if commit_id is None:
        raise UnresolvedReference(ref)
    logger.debug("Resolved %s -> %s", ref, commit_id)
    return commit_id


def resolve_many(engine: VcsEngine, refs: Iterable[str]) -> List[str]:
    """Resolve every ref in order. The first unresolvable one aborts."""
    return [resolve(engine, ref) for ref in refs]
