"""Tests for the command line entry point."""

import json
import logging
from pathlib import Path

import pytest

from gitbackport import cli

from conftest import commit_file, git, init_repo, subjects


@pytest.fixture(autouse=True)
def home(tmp_path, monkeypatch):
    """Isolate user config and keep log files inside the test directory."""
    home_dir = tmp_path / "home"
    (home_dir / ".gitbackport").mkdir(parents=True)
    (home_dir / ".gitbackport" / "config.json").write_text(
        json.dumps({"log_dir": str(tmp_path)}))
    monkeypatch.setattr(Path, "home", lambda: home_dir)
    yield home_dir

    logger = logging.getLogger("gitbackport")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


def test_split_commits():
    assert cli.split_commits(None) == []
    assert cli.split_commits(["a,b", " c ", "d,,"]) == ["a", "b", "c", "d"]


def test_backport_success(repo, capsys):
    git(repo, "checkout", "-q", "-b", "release/2.26")
    git(repo, "checkout", "-q", "-b", "release/2.28")
    fix = commit_file(repo, "fix.txt", "fix", "Bug fix")

    code = cli.main(["-r", str(repo), "bp", "-s", "release/2.28", "-t", "release/2.26",
                     "-c", fix[:7], "--no-auto-deps"])

    assert code == cli.EXIT_OK
    assert "Please push manually" in capsys.readouterr().out
    assert subjects(repo, f"backport/release-2.26/{fix[:7]}")[-1] == "Bug fix"


def test_backport_conflict_exit_code(repo, capsys):
    app = repo / "app.txt"
    git(repo, "checkout", "-q", "-b", "release/2.28")
    app.write_text("Line 1: v3\n")
    git(repo, "commit", "-q", "-am", "v3 change")
    git(repo, "checkout", "-q", "-b", "release/2.26", "master")
    app.write_text("Line 1: v2\n")
    git(repo, "commit", "-q", "-am", "v2 change")

    code = cli.main(["--repo", str(repo), "backport", "-s", "release/2.28", "-t", "release/2.26"])

    captured = capsys.readouterr()
    assert code == cli.EXIT_CONFLICTED
    assert "app.txt" in captured.out
    assert (captured.out + captured.err).count("git cherry-pick --continue") == 1


def test_backport_unresolved_reference(repo, capsys):
    code = cli.main(["-r", str(repo), "bp", "-s", "nope", "-t", "master"])
    assert code == cli.EXIT_FAILED
    assert "Could not resolve 'nope'" in capsys.readouterr().err


def test_backport_noop(repo, capsys):
    git(repo, "branch", "release/2.26")
    code = cli.main(["-r", str(repo), "bp", "-s", "master", "-t", "release/2.26"])
    assert code == cli.EXIT_OK
    assert "Nothing to backport" in capsys.readouterr().out


def test_backport_requires_source_and_target(repo):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["-r", str(repo), "bp", "-t", "master"])
    assert excinfo.value.code == 2


def test_not_a_repository(tmp_path, capsys):
    code = cli.main(["-r", str(tmp_path), "ls"])
    assert code == cli.EXIT_FAILED
    assert "Not in a git repository" in capsys.readouterr().err


def test_list_branches(repo, capsys):
    git(repo, "branch", "release/2.26")
    git(repo, "branch", "release/2.28")

    code = cli.main(["-r", str(repo), "ls", "--filter", "release/"])

    out = capsys.readouterr().out
    assert code == cli.EXIT_OK
    assert "1. release/2.26" in out
    assert "2. release/2.28" in out
    assert "master" not in out


def test_feature_branch(repo):
    assert cli.main(["-r", str(repo), "fb", "-n", "login"]) == cli.EXIT_OK
    assert git(repo, "branch", "--show-current") == "feature/login"


def test_create_version_branch(tmp_path):
    one = init_repo(tmp_path / "one")
    two = init_repo(tmp_path / "two")
    repos_file = tmp_path / "cvb-repos.yaml"
    repos_file.write_text(f"repos:\n  - {one}\n  - {two}\n")

    code = cli.main(["cvb", "-n", "release/v1.2.0", "-c", str(repos_file)])

    assert code == cli.EXIT_OK
    for path in (one, two):
        assert git(path, "branch", "--show-current") == "release/v1.2.0"


def test_create_version_branch_without_repos(tmp_path, capsys):
    code = cli.main(["cvb", "-n", "release/v1", "-c", str(tmp_path / "absent.yaml")])
    assert code == cli.EXIT_FAILED
    assert "No repositories to process" in capsys.readouterr().err


def test_config_set_branch_prefix(home, repo):
    assert cli.main(["config", "--set-branch-prefix", "hotfix"]) == cli.EXIT_OK
    stored = json.loads((home / ".gitbackport" / "config.json").read_text())
    assert stored["branch_prefix"] == "hotfix"

    git(repo, "checkout", "-q", "-b", "release/2.28")
    fix = commit_file(repo, "fix.txt", "fix", "Fix")
    assert cli.main(["-r", str(repo), "bp", "-s", "release/2.28", "-t", "master"]) == cli.EXIT_OK
    assert git(repo, "branch", "--show-current") == f"hotfix/master/{fix[:7]}"


def test_no_command_prints_help(capsys):
    assert cli.main([]) == cli.EXIT_FAILED
    assert "usage:" in capsys.readouterr().out


def test_auto_deps_flag_overrides_config(home, repo):
    (home / ".gitbackport" / "config.json").write_text(
        json.dumps({"log_dir": str(home), "auto_deps": False}))
    git(repo, "checkout", "-q", "-b", "release/2.26")
    git(repo, "checkout", "-q", "-b", "release/2.28")
    commit_file(repo, "util.txt", "v1", "Add util.txt")
    fix = commit_file(repo, "util.txt", "v2", "Fix util.txt")

    code = cli.main(["-r", str(repo), "bp", "-s", "release/2.28", "-t", "release/2.26",
                     "-c", fix, "--auto-deps"])

    assert code == cli.EXIT_OK
    assert subjects(repo, f"backport/release-2.26/{fix[:7]}")[-2:] == ["Add util.txt", "Fix util.txt"]


def test_auto_deps_flags_are_exclusive(repo):
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["-r", str(repo), "bp", "-s", "master", "-t", "master",
                  "--auto-deps", "--no-auto-deps"])
    assert excinfo.value.code == 2
