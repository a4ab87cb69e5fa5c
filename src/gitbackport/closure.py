#!/usr/bin/env python3
"""
closure - Work out which commits must be replayed onto the target line.

With automatic dependencies every requested commit pulls in its ancestry
path relative to the target tip (everything reachable from the commit but
not from the target), oldest first. Without them the request is taken
literally. Either way the result is de-duplicated in first-seen order and
never contains a commit the target already has.

The closure is computed once, before anything is replayed, and is
immutable afterwards.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from gitbackport.engine import CommitInfo, VcsEngine
from gitbackport.errors import UnsupportedMergeCommit

logger = logging.getLogger(__name__)


class MergePolicy(Enum):
    """What to do with a merge commit found in the closure."""
    SKIP = "skip"        # warn and leave it out
    REJECT = "reject"    # raise UnsupportedMergeCommit

    @classmethod
    def for_mode(cls, auto_deps: bool) -> "MergePolicy":
        return cls.SKIP if auto_deps else cls.REJECT


@dataclass(frozen=True)
class Closure:
    commits: Tuple[str, ...] = ()
    skipped: Tuple[str, ...] = ()
    merges: Tuple[str, ...] = ()

    def __iter__(self) -> Iterator[str]:
        return iter(self.commits)

    def __len__(self) -> int:
        return len(self.commits)

    def __bool__(self) -> bool:
        return bool(self.commits)

    @property
    def last(self) -> Optional[str]:
        return self.commits[-1] if self.commits else None


def dedupe(commit_ids: Iterable[str]) -> List[str]:
    """Drop repeated ids, keeping each at its first position."""
    seen = set()
    unique = []
    for commit_id in commit_ids:
        if commit_id not in seen:
            seen.add(commit_id)
            unique.append(commit_id)
    return unique


def _apply_merge_policy(commit: CommitInfo, policy: MergePolicy) -> bool:
    """Return True if the commit may be replayed."""
    if not commit.is_merge:
        return True
    if policy is MergePolicy.REJECT:
        raise UnsupportedMergeCommit(commit.id)
    logger.warning("Skipping merge commit: %s (%s)", commit.short_id, commit.subject)
    return False


def ancestry_path(engine: VcsEngine, commit_id: str, target_tip: str) -> List[CommitInfo]:
    """Commits unique to commit_id's history relative to target_tip, oldest first."""
    path = engine.ancestry(commit_id, target_tip)
    path.reverse()
    return path


def resolve_closure(
    engine: VcsEngine,
    requested: Union[str, Sequence[str]],
    target_tip: str,
    auto_deps: bool = True,
    merge_policy: Optional[MergePolicy] = None,
) -> Closure:
    """
    Compute the ordered, duplicate-free list of commits to replay.

    Args:
        engine: repository to read from
        requested: one commit id or a list of them, already resolved
        target_tip: commit id at the tip of the target line
        auto_deps: expand each request to its ancestry path
        merge_policy: defaults to MergePolicy.for_mode(auto_deps)

    Returns:
        Closure whose commits are oldest first. Empty when the target
        already contains everything requested.
    """
    if isinstance(requested, str):
        requested = [requested]
    if merge_policy is None:
        merge_policy = MergePolicy.for_mode(auto_deps)

    candidates: List[CommitInfo] = []
    skipped: List[str] = []

    for commit_id in dedupe(requested):
        if auto_deps:
            path = ancestry_path(engine, commit_id, target_tip)
            if not path:
                logger.warning("Commit %s is already on the target line, skipping", commit_id[:7])
                skipped.append(commit_id)
            logger.debug("Ancestry path for %s: %s", commit_id[:7], [c.short_id for c in path])
            candidates.extend(path)
        elif engine.is_ancestor(commit_id, target_tip):
            logger.warning("Commit %s is already on the target line, skipping", commit_id[:7])
            skipped.append(commit_id)
        else:
            candidates.append(engine.read_commit(commit_id))

    commits: List[str] = []
    merges: List[str] = []
    seen = set()
    for commit in candidates:
        if commit.id in seen:
            continue
        seen.add(commit.id)
        if _apply_merge_policy(commit, merge_policy):
            commits.append(commit.id)
        else:
            merges.append(commit.id)

    return Closure(commits=tuple(commits), skipped=tuple(skipped), merges=tuple(merges))
