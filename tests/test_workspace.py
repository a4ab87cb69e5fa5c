"""Tests for workspace safety checks."""

import pytest

from gitbackport.errors import UnsafeWorkspace
from gitbackport.gitops import GitEngine
from gitbackport.workspace import WorkspaceKind, ensure_safe, inspect_workspace

from conftest import commit_file, git


def test_clean_workspace_passes(linear):
    engine, _ = linear
    state = ensure_safe(engine)
    assert state.kind is WorkspaceKind.CLEAN
    assert state.is_clean


def test_untracked_file_fails_every_time(linear):
    engine, _ = linear
    engine.untracked.add("scratch.txt")

    for _ in range(2):
        with pytest.raises(UnsafeWorkspace) as excinfo:
            ensure_safe(engine, allow_dirty=False)
        assert excinfo.value.untracked == ["scratch.txt"]
        assert excinfo.value.in_progress_kind is None

    assert engine.operations == []


def test_allow_dirty_tolerates_uncommitted(linear, caplog):
    engine, _ = linear
    engine.uncommitted.add("app.txt")

    state = ensure_safe(engine, allow_dirty=True)

    assert state.kind is WorkspaceKind.DIRTY
    assert state.uncommitted == ["app.txt"]
    assert "Skipping clean-state check" in caplog.text


def test_in_progress_is_never_overridden(linear):
    engine, _ = linear
    engine.pending = "rebase"

    with pytest.raises(UnsafeWorkspace) as excinfo:
        ensure_safe(engine, allow_dirty=True)
    assert excinfo.value.in_progress_kind == "rebase"
    assert "git rebase --continue" in str(excinfo.value)


def test_git_untracked_file_detected(repo):
    (repo / "stray.txt").write_text("stray")
    engine = GitEngine(repo)

    with pytest.raises(UnsafeWorkspace) as first:
        ensure_safe(engine)
    with pytest.raises(UnsafeWorkspace) as second:
        ensure_safe(engine)

    assert first.value.untracked == ["stray.txt"] == second.value.untracked


def test_git_modified_file_detected(repo):
    (repo / "app.txt").write_text("changed\n")
    state = inspect_workspace(GitEngine(repo))
    assert state.kind is WorkspaceKind.DIRTY
    assert state.uncommitted == ["app.txt"]


def test_git_cherry_pick_in_progress_detected(repo):
    git(repo, "checkout", "-q", "-b", "source")
    change = commit_file(repo, "app.txt", "Line 1: v3", "v3 change", append=False)
    git(repo, "checkout", "-q", "master")
    commit_file(repo, "app.txt", "Line 1: v2", "v2 change", append=False)
    pick = GitEngine(repo).cherry_pick(change)
    assert pick.status.value == "CONFLICTING"

    state = inspect_workspace(GitEngine(repo))
    assert state.kind is WorkspaceKind.IN_PROGRESS
    assert state.in_progress_kind == "cherry-pick"
    with pytest.raises(UnsafeWorkspace):
        ensure_safe(GitEngine(repo), allow_dirty=True)


@pytest.mark.parametrize("marker, kind", [
    ("MERGE_HEAD", "merge"),
    ("REVERT_HEAD", "revert"),
    ("rebase-merge", "rebase"),
])
def test_git_in_progress_kinds(repo, marker, kind):
    engine = GitEngine(repo)
    target = engine.git_dir() / marker
    if marker.startswith("rebase"):
        target.mkdir()
    else:
        target.write_text(git(repo, "rev-parse", "HEAD") + "\n")

    assert engine.in_progress() == kind
    with pytest.raises(UnsafeWorkspace) as excinfo:
        ensure_safe(engine, allow_dirty=True)
    assert excinfo.value.in_progress_kind == kind
