#!/usr/bin/env python3
"""
applier - Replay a closure onto the destination branch, one commit at a time.

The first conflict stops the run and leaves the repository mid cherry-pick
for the operator. Any other non-success status is fatal and raised as
CherryPickFailed with the engine's own message.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

from gitbackport import conflicts
from gitbackport.engine import CherryPickStatus, VcsEngine
from gitbackport.errors import CherryPickFailed

logger = logging.getLogger(__name__)


class ApplyOutcome(Enum):
    APPLIED = "applied"
    CONFLICTING = "conflicting"
    SKIPPED = "skipped"


@dataclass
class ApplyReport:
    destination: str
    applied: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    conflicted: Optional[str] = None
    not_attempted: List[str] = field(default_factory=list)
    conflicts: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.conflicted is None


def apply_one(engine: VcsEngine, commit_id: str) -> ApplyOutcome:
    """Cherry-pick one commit and classify the engine's answer."""
    logger.info("Cherry-picking commit: %s", commit_id)
    result = engine.cherry_pick(commit_id)

    if result.status is CherryPickStatus.OK:
        logger.info("Picked %s", commit_id[:7])
        return ApplyOutcome.APPLIED
    if result.status is CherryPickStatus.EMPTY:
        logger.warning("Skipped %s: its changes are already present", commit_id[:7])
        return ApplyOutcome.SKIPPED
    if result.status is CherryPickStatus.CONFLICTING:
        return ApplyOutcome.CONFLICTING

    logger.error("Unexpected status %s for %s: %s", result.status.value, commit_id, result.detail)
    raise CherryPickFailed(commit_id, result.status.value, result.detail)


def apply(engine: VcsEngine, closure: Iterable[str], destination: str) -> ApplyReport:
    """Replay every commit in order onto the checked-out destination branch."""
    queue = list(closure)
    report = ApplyReport(destination=destination)

    for index, commit_id in enumerate(queue):
        outcome = apply_one(engine, commit_id)
        if outcome is ApplyOutcome.APPLIED:
            report.applied.append(commit_id)
        elif outcome is ApplyOutcome.SKIPPED:
            report.skipped.append(commit_id)
        else:
            logger.error("Conflict in %s on branch '%s'", commit_id, destination)
            report.conflicted = commit_id
            report.not_attempted = queue[index + 1:]
            report.conflicts = conflicts.report(engine, destination)
            break

    return report
