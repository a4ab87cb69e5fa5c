#!/usr/bin/env python3
"""
backport - Replay commits (and the ancestors they need) onto another line.

A run moves strictly forward through

    IDLE -> VALIDATING -> RESOLVING -> BRANCHING -> APPLYING -> DONE
                                                             -> CONFLICTED
                                    (any stage)              -> FAILED

Validation resolves every reference and checks the workspace before the
repository is touched. A conflict is a normal ending: the half-applied
branch is left in place for the operator. Nothing is pushed.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

from gitbackport import applier, branching, closure, revisions, workspace
from gitbackport.applier import ApplyReport
from gitbackport.closure import Closure, MergePolicy
from gitbackport.engine import VcsEngine
from gitbackport.errors import BackportError

logger = logging.getLogger(__name__)


class Phase(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    RESOLVING = "resolving"
    BRANCHING = "branching"
    APPLYING = "applying"
    DONE = "done"
    CONFLICTED = "conflicted"
    FAILED = "failed"


@dataclass
class BackportResult:
    phase: Phase
    branch: Optional[str] = None
    closure: Closure = field(default_factory=Closure)
    report: Optional[ApplyReport] = None
    conflicts: List[str] = field(default_factory=list)
    noop: bool = False


class Backport:
    """One backport run against one repository."""

    def __init__(
        self,
        engine: VcsEngine,
        source: str,
        target: str,
        commits: Optional[Sequence[str]] = None,
        branch_name: Optional[str] = None,
        auto_deps: bool = True,
        allow_dirty: bool = False,
        merge_policy: Optional[MergePolicy] = None,
        branch_prefix: str = branching.DEFAULT_PREFIX,
    ):
        self.engine = engine
        self.source = source
        self.target = target
        self.commits = [c for c in (commits or []) if c and c.strip()]
        self.branch_name = branch_name.strip() if branch_name and branch_name.strip() else None
        self.auto_deps = auto_deps
        self.allow_dirty = allow_dirty
        self.merge_policy = merge_policy or MergePolicy.for_mode(auto_deps)
        self.branch_prefix = branch_prefix
        self.phase = Phase.IDLE

    def _enter(self, phase: Phase):
        logger.debug("Phase %s -> %s", self.phase.value, phase.value)
        self.phase = phase

    def run(self) -> BackportResult:
        if self.phase is not Phase.IDLE:
            raise RuntimeError(f"Backport already ran (phase: {self.phase.value})")

        logger.info("Starting the backport process.")
        try:
            return self._run()
        except BackportError:
            self._enter(Phase.FAILED)
            raise

    def _run(self) -> BackportResult:
        self._enter(Phase.VALIDATING)
        source_tip = revisions.resolve(self.engine, self.source)
        target_tip = revisions.resolve(self.engine, self.target)
        requested = revisions.resolve_many(self.engine, self.commits) or [source_tip]
        workspace.ensure_safe(self.engine, allow_dirty=self.allow_dirty)

        self._enter(Phase.RESOLVING)
        result = closure.resolve_closure(
            self.engine,
            requested,
            target_tip,
            auto_deps=self.auto_deps,
            merge_policy=self.merge_policy,
        )
        logger.info("Commits to backport: %s", [c[:7] for c in result])

        if not result:
            logger.info("Nothing to backport: '%s' already contains the requested commits.", self.target)
            self._enter(Phase.DONE)
            return BackportResult(Phase.DONE, closure=result, noop=True)

        self._enter(Phase.BRANCHING)
        name = self.branch_name
        if name is None:
            name = branching.derive_branch_name(self.target, result.last, self.branch_prefix)
            logger.info("Generated backport branch name: %s", name)
        destination = branching.materialize(self.engine, self.target, name)

        self._enter(Phase.APPLYING)
        report = applier.apply(self.engine, result, destination)

        if not report.ok:
            self._enter(Phase.CONFLICTED)
            return BackportResult(Phase.CONFLICTED, destination, result, report, report.conflicts)

        logger.info("Backport complete on %s. Please push manually: git push <remote> %s",
                    destination, destination)
        self._enter(Phase.DONE)
        return BackportResult(Phase.DONE, destination, result, report)


def run_backport(engine: VcsEngine, source: str, target: str, **kwargs) -> BackportResult:
    """Build a Backport and run it. See Backport for the keyword arguments."""
    return Backport(engine, source, target, **kwargs).run()
