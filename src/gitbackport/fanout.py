#!/usr/bin/env python3
"""
fanout - Branch housekeeping across one or many repositories.

  create_version_branch: cut the same branch in every listed repository
  rebase_all:            fetch and rebase a branch in every listed repository
  feature_branch:        create feature/<name> in one repository
  list_branches:         local branches, optionally filtered by prefix

The multi-repository commands never stop at the first bad repository:
each failure is logged and recorded, and the next repository is processed.
All repositories are assumed to be up to date locally; only rebase_all
talks to a remote.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from gitbackport import workspace
from gitbackport.engine import VcsEngine
from gitbackport.errors import BackportError, BranchExists
from gitbackport.gitops import GitEngine, is_git_repo

logger = logging.getLogger(__name__)

FEATURE_PREFIX = "feature/"


def _open(path: str) -> Optional[GitEngine]:
    repo_dir = Path(path)
    if not repo_dir.is_dir():
        logger.error("Not a directory: %s", path)
        return None
    if not is_git_repo(repo_dir):
        logger.error("Not a git repository: %s", path)
        return None
    return GitEngine(repo_dir)


def create_version_branch(repos: Iterable[str], new_branch: str,
                          base_branch: Optional[str] = None, force: bool = False) -> Dict[str, str]:
    """
    Create new_branch in every repository.

    Starts from base_branch, or each repository's current branch when it
    is not given. force tolerates uncommitted files but never an
    interrupted merge, rebase or cherry-pick.

    Returns:
        {path: "created" | "exists" | "error: ..."}
    """
    results = {}
    for path in repos:
        engine = _open(path)
        if engine is None:
            results[path] = "error: not a git repository"
            continue

        logger.info("Processing repo: %s", path)
        try:
            workspace.ensure_safe(engine, allow_dirty=force)
        except BackportError as e:
            logger.error("Repository not safe to modify: %s - %s", path, e)
            results[path] = f"error: {e}"
            continue

        start_point = base_branch or engine.current_branch()
        if not start_point:
            logger.error("Detached HEAD and no base branch given: %s", path)
            results[path] = "error: detached HEAD"
            continue
        if not base_branch:
            logger.info("  Using current branch as base: %s", start_point)

        try:
            engine.create_branch(new_branch, start_point)
            results[path] = "created"
        except BranchExists:
            logger.warning("Branch already exists: %s in %s", new_branch, path)
            results[path] = "exists"
        except BackportError as e:
            logger.error("Error processing %s: %s", path, e)
            results[path] = f"error: {e}"

    return results


def rebase_all(repos: Iterable[str], branch: str, base_branch: str = "master",
               push: bool = False, remote: str = "origin") -> Dict[str, str]:
    """
    Fetch remote and rebase branch onto <remote>/<base_branch> in every repository.

    A failed rebase is left in progress for the operator to finish.

    Returns:
        {path: "rebased" | "pushed" | "conflict" | "error: ..."}
    """
    results = {}
    for path in repos:
        engine = _open(path)
        if engine is None:
            results[path] = "error: not a git repository"
            continue

        logger.info("-> Processing repo: %s", path)
        try:
            workspace.ensure_safe(engine)
            engine.checkout(branch)

            logger.info("  Fetching %s/%s", remote, base_branch)
            engine.fetch(remote)

            upstream = f"{remote}/{base_branch}"
            logger.info("  Rebasing %s onto %s", branch, upstream)
            result = engine.rebase(upstream)
            if result.returncode != 0:
                logger.error("  Rebase failed: %s", (result.stderr or result.stdout).strip())
                results[path] = "conflict"
                continue

            logger.info("  Rebase successful.")
            results[path] = "rebased"
            if push:
                engine.push(remote, branch)
                logger.info("  Pushed rebased branch to %s/%s", remote, branch)
                results[path] = "pushed"
        except BackportError as e:
            logger.error("  Error in %s: %s", path, e)
            results[path] = f"error: {e}"

    return results


def feature_branch(engine: VcsEngine, name: str, base_branch: Optional[str] = None) -> str:
    """Create and check out feature/<name> from base_branch or the current branch."""
    workspace.ensure_safe(engine)

    if base_branch:
        logger.info("Checking out base branch: %s", base_branch)
        engine.checkout(base_branch)
        start_point = base_branch
    else:
        start_point = engine.current_branch() or "HEAD"
        logger.info("Using current HEAD branch as base: %s", start_point)

    branch_name = name if name.startswith(FEATURE_PREFIX) else FEATURE_PREFIX + name
    engine.create_branch(branch_name, start_point)
    logger.info("Feature branch '%s' created from '%s'", branch_name, start_point)
    return branch_name


def list_branches(engine: VcsEngine, prefix: Optional[str] = None) -> List[str]:
    """Local branch names, keeping only those starting with prefix if given."""
    branches = [b for b in engine.list_branches() if not prefix or b.startswith(prefix)]
    logger.info("Branches retrieved successfully. Total branches: %d", len(branches))
    return branches
