#!/usr/bin/env python3
"""
memory - An in-memory VcsEngine.

Commits are full path -> content snapshots addressed by a sha1 of their
contents, so histories can be built and replayed without touching disk.
Cherry-picks use a per-path three-way check (base = first parent,
ours = current tip, theirs = the picked commit) and stop in a
cherry-pick state on conflict, the way git does.
"""

import hashlib
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from gitbackport.engine import (
    CherryPickStatus,
    CommitInfo,
    PickResult,
    StatusSnapshot,
    VcsEngine,
)
from gitbackport.errors import BranchExists, GitCommandError


@dataclass
class _StoredCommit:
    info: CommitInfo
    snapshot: Dict[str, str] = field(default_factory=dict)


class MemoryEngine(VcsEngine):
    """A small commit graph with branches, tags and a working-tree overlay."""

    def __init__(self, initial_branch: str = "main"):
        self.commits: Dict[str, _StoredCommit] = {}
        self.branches: Dict[str, str] = {}
        self.tags: Dict[str, str] = {}
        self.head: Optional[str] = initial_branch
        self.detached: Optional[str] = None

        # Working tree overlay, set directly by callers
        self.uncommitted: set = set()
        self.untracked: set = set()

        self.pending: Optional[str] = None
        self.conflicting: List[str] = []
        self.operations: List[Tuple[str, str]] = []
        self._serial = 0

    # -- building history -------------------------------------------------

    def _tip(self) -> Optional[str]:
        if self.head is None:
            return self.detached
        return self.branches.get(self.head)

    def _store(self, message: str, parents: Tuple[str, ...], snapshot: Dict[str, str]) -> str:
        self._serial += 1
        digest = hashlib.sha1()
        digest.update(message.encode("utf-8"))
        for parent in parents:
            digest.update(parent.encode("ascii"))
        for path, content in sorted(snapshot.items()):
            digest.update(f"{path}\x00{content}\x00".encode("utf-8"))
        digest.update(str(self._serial).encode("ascii"))
        commit_id = digest.hexdigest()

        self.commits[commit_id] = _StoredCommit(
            info=CommitInfo(id=commit_id, parents=parents, subject=message.splitlines()[0] if message else ""),
            snapshot=dict(snapshot),
        )
        return commit_id

    def _advance(self, commit_id: str):
        if self.head is None:
            self.detached = commit_id
        else:
            self.branches[self.head] = commit_id

    def commit(self, message: str, files: Optional[Dict[str, Optional[str]]] = None) -> str:
        """Commit file changes on the checked-out branch; None deletes a path."""
        tip = self._tip()
        snapshot = dict(self.commits[tip].snapshot) if tip else {}
        for path, content in (files or {}).items():
            if content is None:
                snapshot.pop(path, None)
            else:
                snapshot[path] = content
        commit_id = self._store(message, (tip,) if tip else (), snapshot)
        self._advance(commit_id)
        return commit_id

    def merge(self, other: str, message: str = "") -> str:
        """Record a merge commit of branch other into the checked-out branch."""
        ours = self._tip()
        theirs = self.branches[other]
        snapshot = dict(self.commits[ours].snapshot)
        snapshot.update(self.commits[theirs].snapshot)
        commit_id = self._store(message or f"Merge branch '{other}'", (ours, theirs), snapshot)
        self._advance(commit_id)
        return commit_id

    def tag(self, name: str, ref: str = "HEAD"):
        self.tags[name] = self.resolve(ref)

    def files(self, ref: str = "HEAD") -> Dict[str, str]:
        commit_id = self.resolve(ref)
        return dict(self.commits[commit_id].snapshot) if commit_id else {}

    def log(self, ref: str = "HEAD") -> List[str]:
        """Subjects reachable from ref, following first parents, oldest first."""
        subjects = []
        commit_id = self.resolve(ref)
        while commit_id:
            info = self.commits[commit_id].info
            subjects.append(info.subject)
            commit_id = info.parents[0] if info.parents else None
        return list(reversed(subjects))

    # -- VcsEngine --------------------------------------------------------

    def resolve(self, ref: str) -> Optional[str]:
        if not ref:
            return None
        if ref == "HEAD":
            return self._tip()
        if ref in self.branches:
            return self.branches[ref]
        if ref in self.tags:
            return self.tags[ref]
        if ref in self.commits:
            return ref
        if len(ref) >= 4 and all(c in "0123456789abcdef" for c in ref.lower()):
            matches = [c for c in self.commits if c.startswith(ref.lower())]
            if len(matches) == 1:
                return matches[0]
        return None

    def read_commit(self, commit_id: str) -> CommitInfo:
        return self.commits[commit_id].info

    def _reachable(self, start: Optional[str]) -> set:
        seen = set()
        stack = [start] if start else []
        while stack:
            commit_id = stack.pop()
            if commit_id in seen:
                continue
            seen.add(commit_id)
            stack.extend(self.commits[commit_id].info.parents)
        return seen

    def ancestry(self, start: str, exclude: str) -> List[CommitInfo]:
        hidden = self._reachable(exclude)
        ordered: List[str] = []
        visited = set()

        # Post-order puts every commit after its parents
        stack = [(start, False)]
        while stack:
            commit_id, expanded = stack.pop()
            if expanded:
                ordered.append(commit_id)
                continue
            if commit_id in visited or commit_id in hidden:
                continue
            visited.add(commit_id)
            stack.append((commit_id, True))
            for parent in reversed(self.commits[commit_id].info.parents):
                stack.append((parent, False))

        return [self.commits[c].info for c in reversed(ordered)]

    def is_ancestor(self, commit_id: str, tip: str) -> bool:
        return commit_id in self._reachable(tip)

    def status(self) -> StatusSnapshot:
        return StatusSnapshot(
            uncommitted=sorted(self.uncommitted),
            untracked=sorted(self.untracked),
            conflicting=list(self.conflicting),
        )

    def in_progress(self) -> Optional[str]:
        return self.pending

    def current_branch(self) -> Optional[str]:
        return self.head

    def branch_exists(self, name: str) -> bool:
        return name in self.branches

    def list_branches(self) -> List[str]:
        return sorted(self.branches)

    def checkout(self, ref: str) -> None:
        self.operations.append(("checkout", ref))
        if ref in self.branches:
            self.head = ref
            self.detached = None
            return
        commit_id = self.resolve(ref)
        if commit_id is None:
            raise GitCommandError(["checkout", ref], 1,
                                  f"error: pathspec '{ref}' did not match any file(s) known to git")
        self.head = None
        self.detached = commit_id

    def create_branch(self, name: str, start_point: str) -> None:
        if name in self.branches:
            raise BranchExists(name)
        commit_id = self.resolve(start_point)
        if commit_id is None:
            raise GitCommandError(["checkout", "-b", name, start_point], 128,
                                  f"fatal: '{start_point}' is not a commit")
        self.operations.append(("create_branch", name))
        self.branches[name] = commit_id
        self.head = name
        self.detached = None

    def cherry_pick(self, commit_id: str) -> PickResult:
        self.operations.append(("cherry_pick", commit_id))
        if self.pending:
            return PickResult(CherryPickStatus.OTHER,
                              f"error: {self.pending} is already in progress")
        stored = self.commits.get(commit_id)
        if stored is None:
            return PickResult(CherryPickStatus.OTHER, f"fatal: bad revision '{commit_id}'")
        if stored.info.is_merge:
            return PickResult(CherryPickStatus.OTHER,
                              f"error: commit {commit_id} is a merge but no -m option was given.")

        parent = stored.info.parents[0] if stored.info.parents else None
        base = self.commits[parent].snapshot if parent else {}
        theirs = stored.snapshot
        tip = self._tip()
        ours = self.commits[tip].snapshot if tip else {}

        result = dict(ours)
        conflicts = []
        for path in sorted(set(base) | set(theirs)):
            b, t, o = base.get(path), theirs.get(path), ours.get(path)
            if b == t:
                continue
            if o == b or o == t:
                if t is None:
                    result.pop(path, None)
                else:
                    result[path] = t
            else:
                conflicts.append(path)

        if conflicts:
            self.pending = "cherry-pick"
            self.conflicting = conflicts
            return PickResult(CherryPickStatus.CONFLICTING,
                              f"error: could not apply {commit_id[:7]}... {stored.info.subject}")

        if result == ours:
            return PickResult(CherryPickStatus.EMPTY, "The previous cherry-pick is now empty")

        new_id = self._store(stored.info.subject, (tip,) if tip else (), result)
        self._advance(new_id)
        return PickResult(CherryPickStatus.OK)
