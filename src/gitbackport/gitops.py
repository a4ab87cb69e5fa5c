#!/usr/bin/env python3
"""
gitops - git CLI adapter for gitbackport.

GitEngine implements the VcsEngine operations by running git as a
subprocess inside an explicit repository path. The process working
directory is never changed.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional

from gitbackport.engine import (
    CherryPickStatus,
    CommitInfo,
    PickResult,
    StatusSnapshot,
    VcsEngine,
)
from gitbackport.errors import BranchExists, GitCommandError

logger = logging.getLogger(__name__)

# Marker left under the git dir by each interrupted operation.
IN_PROGRESS_MARKERS = [
    ("CHERRY_PICK_HEAD", "cherry-pick"),
    ("MERGE_HEAD", "merge"),
    ("REVERT_HEAD", "revert"),
    ("rebase-merge", "rebase"),
    ("rebase-apply", "rebase"),
]

# Two-letter porcelain codes for unmerged paths
CONFLICT_CODES = {"DD", "AU", "UD", "UA", "DU", "AA", "UU"}

LOG_FORMAT = "--format=%H%x00%P%x00%s"


def run_git(args: List[str], cwd: Optional[Path] = None, check: bool = True) -> subprocess.CompletedProcess:
    """Run git command and return result, raising GitCommandError on failure if check."""
    logger.debug("git %s (in %s)", " ".join(args), cwd)
    try:
        result = subprocess.run(
            ["git"] + args,
            capture_output=True,
            text=True,
            check=False,
            cwd=cwd,
            encoding='utf-8',
            errors='replace'
        )
    except OSError as e:
        raise GitCommandError(args, -1, str(e))

    if check and result.returncode != 0:
        raise GitCommandError(args, result.returncode, result.stderr)

    return result


def is_git_repo(path: Path) -> bool:
    """Check if the given path is inside a git work tree."""
    try:
        result = run_git(["rev-parse", "--is-inside-work-tree"], cwd=path, check=False)
    except GitCommandError:
        return False
    return result.returncode == 0 and result.stdout.strip() == "true"


def _parse_log_line(line: str) -> CommitInfo:
    commit_id, parents, subject = (line.split("\x00") + ["", ""])[:3]
    return CommitInfo(
        id=commit_id.strip(),
        parents=tuple(parents.split()),
        subject=subject,
    )


def parse_porcelain(output: str) -> StatusSnapshot:
    """Parse `git status --porcelain=v1 -z` output."""
    snapshot = StatusSnapshot()
    entries = output.split("\x00")
    i = 0
    while i < len(entries):
        entry = entries[i]
        i += 1
        if len(entry) < 4:
            continue
        code, path = entry[:2], entry[3:]
        if code == "??":
            snapshot.untracked.append(path)
        elif code == "!!":
            continue
        elif code in CONFLICT_CODES:
            snapshot.conflicting.append(path)
        else:
            snapshot.uncommitted.append(path)
        # Renames and copies carry the original path as a separate entry
        if code[0] in "RC":
            i += 1
    return snapshot


class GitEngine(VcsEngine):
    """VcsEngine backed by the git executable."""

    def __init__(self, repo_path: Path):
        self.repo_path = Path(repo_path)

    def __repr__(self):
        return f"GitEngine({str(self.repo_path)!r})"

    def _git(self, args: List[str], check: bool = True) -> subprocess.CompletedProcess:
        return run_git(args, cwd=self.repo_path, check=check)

    def git_dir(self) -> Path:
        path = Path(self._git(["rev-parse", "--git-dir"]).stdout.strip())
        if not path.is_absolute():
            path = self.repo_path / path
        return path

    # -- reading ----------------------------------------------------------

    def resolve(self, ref: str) -> Optional[str]:
        if not ref or ref.startswith("-"):
            return None
        result = self._git(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], check=False)
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def read_commit(self, commit_id: str) -> CommitInfo:
        result = self._git(["show", "-s", "--no-color", LOG_FORMAT, commit_id])
        return _parse_log_line(result.stdout.strip("\n"))

    def ancestry(self, start: str, exclude: str) -> List[CommitInfo]:
        result = self._git(["log", "--topo-order", "--no-color", LOG_FORMAT, start, f"^{exclude}", "--"])
        return [_parse_log_line(line) for line in result.stdout.splitlines() if line]

    def is_ancestor(self, commit_id: str, tip: str) -> bool:
        result = self._git(["merge-base", "--is-ancestor", commit_id, tip], check=False)
        if result.returncode == 0:
            return True
        if result.returncode == 1:
            return False
        raise GitCommandError(["merge-base", "--is-ancestor", commit_id, tip],
                              result.returncode, result.stderr)

    def status(self) -> StatusSnapshot:
        result = self._git(["status", "--porcelain=v1", "-z", "--untracked-files=all"])
        return parse_porcelain(result.stdout)

    def in_progress(self) -> Optional[str]:
        git_dir = self.git_dir()
        for marker, kind in IN_PROGRESS_MARKERS:
            if (git_dir / marker).exists():
                return kind
        return None

    def current_branch(self) -> Optional[str]:
        result = self._git(["branch", "--show-current"], check=False)
        name = result.stdout.strip()
        return name if result.returncode == 0 and name else None

    def branch_exists(self, name: str) -> bool:
        result = self._git(["rev-parse", "--verify", "--quiet", f"refs/heads/{name}"], check=False)
        return result.returncode == 0

    def list_branches(self) -> List[str]:
        result = self._git(["for-each-ref", "--format=%(refname:short)", "refs/heads/"])
        return [line.strip() for line in result.stdout.splitlines() if line.strip()]

    # -- mutating ---------------------------------------------------------

    def checkout(self, ref: str) -> None:
        self._git(["checkout", "--quiet", ref])
        logger.info("Checked out branch: %s", ref)

    def create_branch(self, name: str, start_point: str) -> None:
        if self.branch_exists(name):
            raise BranchExists(name)
        self._git(["checkout", "--quiet", "-b", name, start_point])
        logger.info("Created and checked out branch: %s", name)

    def cherry_pick(self, commit_id: str) -> PickResult:
        result = self._git(["cherry-pick", commit_id], check=False)
        if result.returncode == 0:
            return PickResult(CherryPickStatus.OK)

        detail = (result.stderr.strip() or result.stdout.strip())
        status = self.status()
        if status.conflicting and self.in_progress() == "cherry-pick":
            return PickResult(CherryPickStatus.CONFLICTING, detail)

        output = f"{result.stdout}\n{result.stderr}".lower()
        if "is now empty" in output or "nothing to commit" in output:
            self._git(["cherry-pick", "--skip"])
            return PickResult(CherryPickStatus.EMPTY, detail)

        return PickResult(CherryPickStatus.OTHER, detail)

    # -- transport, used by the fan-out commands only ---------------------

    def fetch(self, remote: str = "origin") -> None:
        self._git(["fetch", remote])

    def rebase(self, upstream: str) -> subprocess.CompletedProcess:
        return self._git(["rebase", upstream], check=False)

    def push(self, remote: str, branch: str) -> None:
        self._git(["push", remote, branch])
