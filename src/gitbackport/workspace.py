#!/usr/bin/env python3
"""
workspace - Refuse to start on a working tree that is not safe to modify.

The state is recomputed on every call; nothing is cached because another
process (or the operator) may change the repository between runs.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from gitbackport.engine import VcsEngine
from gitbackport.errors import UnsafeWorkspace

logger = logging.getLogger(__name__)


class WorkspaceKind(Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    IN_PROGRESS = "in-progress"


@dataclass
class WorkspaceState:
    kind: WorkspaceKind
    uncommitted: List[str] = field(default_factory=list)
    untracked: List[str] = field(default_factory=list)
    in_progress_kind: Optional[str] = None

    @property
    def is_clean(self) -> bool:
        return self.kind is WorkspaceKind.CLEAN


def inspect_workspace(engine: VcsEngine) -> WorkspaceState:
    """Compute the current workspace state. An interrupted operation wins over dirt."""
    pending = engine.in_progress()
    status = engine.status()
    # Unmerged paths count as uncommitted work
    uncommitted = status.uncommitted + status.conflicting

    if pending:
        return WorkspaceState(WorkspaceKind.IN_PROGRESS, uncommitted, status.untracked, pending)
    if uncommitted or status.untracked:
        return WorkspaceState(WorkspaceKind.DIRTY, uncommitted, status.untracked)
    return WorkspaceState(WorkspaceKind.CLEAN)


def ensure_safe(engine: VcsEngine, allow_dirty: bool = False) -> WorkspaceState:
    """
    Raise UnsafeWorkspace unless the repository may be modified.

    allow_dirty permits uncommitted and untracked files. An interrupted
    merge, rebase, cherry-pick or revert is refused regardless.
    """
    state = inspect_workspace(engine)

    if state.kind is WorkspaceKind.IN_PROGRESS:
        raise UnsafeWorkspace(in_progress_kind=state.in_progress_kind)

    if state.kind is WorkspaceKind.DIRTY:
        if not allow_dirty:
            raise UnsafeWorkspace(uncommitted=state.uncommitted, untracked=state.untracked)
        logger.warning("Skipping clean-state check: %d uncommitted, %d untracked path(s)",
                       len(state.uncommitted), len(state.untracked))

    return state
