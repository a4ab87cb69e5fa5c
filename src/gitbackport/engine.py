#!/usr/bin/env python3
"""
engine - The version-control capabilities gitbackport relies on.

Every component talks to a repository through a VcsEngine bound to that
repository. GitEngine (gitops.py) drives the real git CLI; MemoryEngine
(memory.py) is a self-contained commit graph used by the tests.
"""

import abc
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class CherryPickStatus(Enum):
    OK = "OK"
    CONFLICTING = "CONFLICTING"
    EMPTY = "EMPTY"
    OTHER = "OTHER"


@dataclass(frozen=True)
class CommitInfo:
    """A commit as seen by the core: its id, parent ids and subject line."""
    id: str
    parents: Tuple[str, ...] = ()
    subject: str = ""

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    @property
    def short_id(self) -> str:
        return self.id[:7]


@dataclass
class StatusSnapshot:
    uncommitted: List[str] = field(default_factory=list)
    untracked: List[str] = field(default_factory=list)
    conflicting: List[str] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not (self.uncommitted or self.untracked or self.conflicting)


@dataclass
class PickResult:
    status: CherryPickStatus
    detail: str = ""


class VcsEngine(abc.ABC):
    """Operations the backport core needs from one repository."""

    @abc.abstractmethod
    def resolve(self, ref: str) -> Optional[str]:
        """Return the full commit id for ref, or None if it names nothing."""

    @abc.abstractmethod
    def read_commit(self, commit_id: str) -> CommitInfo:
        pass

    @abc.abstractmethod
    def ancestry(self, start: str, exclude: str) -> List[CommitInfo]:
        """
        Commits reachable from start but not from exclude.

        Newest first, and every commit is listed before its parents.
        """

    @abc.abstractmethod
    def is_ancestor(self, commit_id: str, tip: str) -> bool:
        pass

    @abc.abstractmethod
    def status(self) -> StatusSnapshot:
        pass

    @abc.abstractmethod
    def in_progress(self) -> Optional[str]:
        """The interrupted operation, if any: merge, rebase, cherry-pick or revert."""

    @abc.abstractmethod
    def current_branch(self) -> Optional[str]:
        pass

    @abc.abstractmethod
    def branch_exists(self, name: str) -> bool:
        pass

    @abc.abstractmethod
    def list_branches(self) -> List[str]:
        pass

    @abc.abstractmethod
    def checkout(self, ref: str) -> None:
        pass

    @abc.abstractmethod
    def create_branch(self, name: str, start_point: str) -> None:
        """Create name at start_point and check it out. Raises BranchExists."""

    @abc.abstractmethod
    def cherry_pick(self, commit_id: str) -> PickResult:
        """
        Replay commit_id on top of the checked-out branch.

        On CONFLICTING the repository is left mid cherry-pick.
        """
