"""Shared fixtures: throwaway git repositories and in-memory histories."""

import subprocess
from pathlib import Path

import pytest

from gitbackport.memory import MemoryEngine


def git(cwd: Path, *args: str) -> str:
    """Run git in cwd, fail the test on error, return stdout."""
    result = subprocess.run(["git", *args], cwd=cwd, capture_output=True, text=True)
    assert result.returncode == 0, f"git {' '.join(args)} failed: {result.stderr}"
    return result.stdout.strip()


def init_repo(path: Path) -> Path:
    """Initialise a repo on master with a single 'Initial commit'."""
    path.mkdir(parents=True, exist_ok=True)
    git(path, "init", "-q")
    git(path, "symbolic-ref", "HEAD", "refs/heads/master")
    git(path, "config", "user.email", "test@test.com")
    git(path, "config", "user.name", "Test")
    git(path, "config", "commit.gpgsign", "false")
    (path / "app.txt").write_text("Line 1: v1\n")
    git(path, "add", "app.txt")
    git(path, "commit", "-q", "-m", "Initial commit")
    return path


def commit_file(path: Path, name: str, line: str, message: str, append: bool = True) -> str:
    """Append (or overwrite) a line in a file, commit it and return the commit id."""
    target = path / name
    if append and target.exists():
        target.write_text(target.read_text() + line + "\n")
    else:
        target.write_text(line + "\n")
    git(path, "add", name)
    git(path, "commit", "-q", "-m", message)
    return git(path, "rev-parse", "HEAD")


def subjects(path: Path, ref: str) -> list:
    """Commit subjects reachable from ref, oldest first."""
    return git(path, "log", "--reverse", "--format=%s", ref).splitlines()


@pytest.fixture
def repo(tmp_path):
    return init_repo(tmp_path / "repo")


@pytest.fixture
def linear():
    """
    main:         I -- base
                   \\
    release/2.28:   A -- B -- C -- D

    Returns (engine, ids) where ids maps A..D to commit ids.
    """
    engine = MemoryEngine()
    engine.commit("Initial commit", {"app.txt": "Line 1"})
    engine.create_branch("release/2.28", "main")
    ids = {
        "A": engine.commit("Commit A: add util.txt", {"util.txt": "v1"}),
        "B": engine.commit("Commit B: update util.txt to v2", {"util.txt": "v1\nv2"}),
        "C": engine.commit("Commit C: independent change", {"app.txt": "Line 1\nLine 3"}),
        "D": engine.commit("Commit D: tweak util.txt to v3", {"util.txt": "v1\nv3"}),
    }
    engine.checkout("main")
    engine.commit("main base", {"notes.txt": "base"})
    engine.operations.clear()
    return engine, ids
