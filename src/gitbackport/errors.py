#!/usr/bin/env python3
"""
errors - Exception types raised by gitbackport.

Conflicts are not errors: a conflicting cherry-pick ends the run in the
CONFLICTED phase and is reported, not raised.
"""

from typing import List, Optional


class BackportError(Exception):
    """Base class for every fatal gitbackport condition."""
    pass


class UnresolvedReference(BackportError):
    """A branch, tag or hash could not be mapped to a commit."""

    def __init__(self, ref: str):
        self.ref = ref
        super().__init__(f"Could not resolve '{ref}' to a valid commit.")


class UnsafeWorkspace(BackportError):
    """The working tree is dirty or mid-way through another operation."""

    def __init__(self, uncommitted: Optional[List[str]] = None,
                 untracked: Optional[List[str]] = None,
                 in_progress_kind: Optional[str] = None):
        self.uncommitted = list(uncommitted or [])
        self.untracked = list(untracked or [])
        self.in_progress_kind = in_progress_kind

        if in_progress_kind:
            message = (
                f"Repository is in the middle of a {in_progress_kind}. "
                f"Finish it with 'git {in_progress_kind} --continue' "
                f"or drop it with 'git {in_progress_kind} --abort' first."
            )
        else:
            message = (
                "Working directory is not clean. "
                "Please commit or stash changes before running this command. "
                f"Uncommitted: {self.uncommitted}, Untracked: {self.untracked}"
            )
        super().__init__(message)


class UnsupportedMergeCommit(BackportError):
    """A merge commit was explicitly requested for replay."""

    def __init__(self, commit_id: str):
        self.commit_id = commit_id
        super().__init__(f"Merge commits are not supported: {commit_id}")


class BranchExists(BackportError):
    """Raised by an engine when asked to create a branch that already exists."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Branch already exists: {name}")


class CherryPickFailed(BackportError):
    """The engine reported something other than success or conflict."""

    def __init__(self, commit_id: str, status: str, detail: str = ""):
        self.commit_id = commit_id
        self.status = status
        self.detail = detail
        message = f"Unexpected status {status} for {commit_id}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class GitCommandError(BackportError):
    """A git invocation failed in a way the engine does not model."""

    def __init__(self, args: List[str], returncode: int, stderr: str = ""):
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(
            f"git {' '.join(args)} exited with code {returncode}: {stderr.strip()}"
        )


class ConfigError(BackportError):
    """A repository list file could not be parsed."""

    def __init__(self, path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid config file {path}: {reason}")
