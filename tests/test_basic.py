"""Basic tests for gitbackport package."""

import subprocess

import pytest


def test_package_imports():
    """Test that the package can be imported."""
    import gitbackport
    assert gitbackport.__version__ == "0.1.0"
    assert gitbackport.__author__ == "1minds3t"


def test_cli_import():
    """Test that cli module exposes its entry point."""
    from gitbackport import cli
    assert hasattr(cli, 'main')
    assert hasattr(cli, 'build_parser')


def test_git_command_helper():
    """Test git command helper function."""
    from gitbackport.gitops import run_git

    result = run_git(["--version"])
    assert result.returncode == 0
    assert "git version" in result.stdout.lower()


def test_git_command_helper_raises():
    from gitbackport.errors import GitCommandError
    from gitbackport.gitops import run_git

    with pytest.raises(GitCommandError) as excinfo:
        run_git(["definitely-not-a-git-command"])
    assert excinfo.value.returncode != 0


def test_is_git_repo(tmp_path):
    """Test git repository detection."""
    from gitbackport.gitops import is_git_repo

    # Not a git repo initially
    assert not is_git_repo(tmp_path)

    subprocess.run(["git", "init"], cwd=tmp_path, capture_output=True)

    assert is_git_repo(tmp_path)
