#!/usr/bin/env python3
"""
gitbackport - Backport commits and their dependencies between release lines.

Main entry point providing the backport command and the branch
housekeeping commands built around it.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from gitbackport import __version__, fanout
from gitbackport.backport import Phase, run_backport
from gitbackport.config import load_config, load_repos_from_file, set_branch_prefix, show_config
from gitbackport.errors import BackportError
from gitbackport.gitops import GitEngine, is_git_repo
from gitbackport.logs import configure_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFLICTED = 3


# ANSI color codes
class Colors:
    RESET = '\033[0m'
    BOLD = '\033[1m'
    RED = '\033[31m'
    GREEN = '\033[32m'
    YELLOW = '\033[33m'
    CYAN = '\033[36m'


def split_commits(values: Optional[List[str]]) -> List[str]:
    """Flatten repeated, comma-separated -c/--commit values."""
    commits = []
    for value in values or []:
        commits.extend(part.strip() for part in value.split(",") if part.strip())
    return commits


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gitbackport",
        description="gitbackport - Backport commits (and the commits they depend on) to another branch",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gitbackport bp -s release/2.28 -t release/2.26             # Backport the tip of release/2.28
  gitbackport bp -s main -t release/2.26 -c a1b2c3d          # Backport a1b2c3d and its dependencies
  gitbackport bp -s main -t release/2.26 -c a1b2c3d,e4f5a6b --no-auto-deps
  gitbackport cvb -n release/v1.2.0 -c cvb-repos.yaml        # Cut a branch in many repos
  gitbackport ra -n feature/foo -b main -p                   # Rebase and push in many repos
  gitbackport fb -n login-page                               # Create feature/login-page
  gitbackport ls --filter release/                           # List release branches
        """
    )

    parser.add_argument(
        '-r', '--repo',
        type=str,
        default=None,
        help='Path to git repository (default: current directory)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Show debug output'
    )
    parser.add_argument(
        '--version',
        action='version',
        version=f'gitbackport {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # backport subcommand
    backport_parser = subparsers.add_parser(
        'backport', aliases=['bp'],
        help='Backport commits to a target branch, resolving dependencies'
    )
    backport_parser.add_argument(
        '-s', '--source',
        required=True,
        help='Source branch, tag, or commit'
    )
    backport_parser.add_argument(
        '-t', '--target',
        required=True,
        help='Target branch'
    )
    backport_parser.add_argument(
        '-n', '--name',
        help='Name of the new backport branch (default: backport/<target>/<short-hash>)'
    )
    backport_parser.add_argument(
        '-c', '--commit',
        action='append',
        dest='commits',
        help='Comma-separated commit hashes to backport (repeatable)'
    )
    deps_group = backport_parser.add_mutually_exclusive_group()
    deps_group.add_argument(
        '--auto-deps',
        action='store_true',
        dest='auto_deps',
        default=None,
        help='Include the commits each requested commit depends on (overrides config)'
    )
    deps_group.add_argument(
        '--no-auto-deps',
        action='store_false',
        dest='auto_deps',
        help='Disable automatic dependency detection and use only specified commits'
    )
    backport_parser.add_argument(
        '--allow-dirty',
        action='store_true',
        help='Proceed with uncommitted or untracked files present'
    )

    # create-version-branch subcommand
    cvb_parser = subparsers.add_parser(
        'create-version-branch', aliases=['cvb'],
        help='Create a new version branch across multiple repositories'
    )
    cvb_parser.add_argument(
        '-n', '--new-branch',
        required=True,
        help='Name of the branch to create (e.g. release/v1.2.0)'
    )
    cvb_parser.add_argument(
        '-b', '--base-branch',
        help="Local base branch to create from (defaults to each repo's current branch)"
    )
    cvb_parser.add_argument(
        '-c', '--config-file',
        default='cvb-repos.yaml',
        help='Path to repos config file (YAML format, default: cvb-repos.yaml)'
    )
    cvb_parser.add_argument(
        '--force',
        action='store_true',
        help='Proceed even if there are uncommitted changes'
    )

    # rebase-all subcommand
    ra_parser = subparsers.add_parser(
        'rebase-all', aliases=['ra'],
        help='Fetch and rebase a branch across all repos in a YAML list'
    )
    ra_parser.add_argument(
        '-n', '--branch',
        required=True,
        help='Local branch to rebase (e.g. feature/foo)'
    )
    ra_parser.add_argument(
        '-b', '--base-branch',
        default='master',
        help='Base branch to pull in before replaying commits (default: master)'
    )
    ra_parser.add_argument(
        '-c', '--config-file',
        default='rebase-all-repos.yaml',
        help='YAML file listing repositories (default: rebase-all-repos.yaml)'
    )
    ra_parser.add_argument(
        '-p', '--push',
        action='store_true',
        help='After a successful rebase, push the rebased branch upstream'
    )

    # feature-branch subcommand
    fb_parser = subparsers.add_parser(
        'feature-branch', aliases=['fb'],
        help='Create a new feature branch called feature/<name>'
    )
    fb_parser.add_argument(
        '-n', '--branch-name',
        required=True,
        help='Name of the feature (the new branch will be feature/<name>)'
    )
    fb_parser.add_argument(
        '-b', '--base-branch',
        help='Local base branch to create from (defaults to current HEAD)'
    )

    # list-branches subcommand
    ls_parser = subparsers.add_parser(
        'list-branches', aliases=['ls'],
        help='List local branches, optionally filtered by prefix'
    )
    ls_parser.add_argument(
        '--filter',
        help='Filter branches by name prefix (e.g. release/)'
    )

    # config subcommand
    config_parser = subparsers.add_parser(
        'config',
        help='View or edit configuration'
    )
    config_parser.add_argument(
        '--show',
        action='store_true',
        help='Show current configuration'
    )
    config_parser.add_argument(
        '--set-branch-prefix',
        type=str,
        help='Set the prefix for generated backport branch names'
    )

    return parser


def cmd_backport(args, repo_path: Path, config: dict) -> int:
    auto_deps = args.auto_deps
    if auto_deps is None:
        auto_deps = config.get('auto_deps', True)

    result = run_backport(
        GitEngine(repo_path),
        args.source,
        args.target,
        commits=split_commits(args.commits),
        branch_name=args.name,
        auto_deps=auto_deps,
        allow_dirty=args.allow_dirty,
        branch_prefix=config.get('branch_prefix') or 'backport',
    )

    if result.noop:
        print(f"{Colors.YELLOW}Nothing to backport: '{args.target}' already contains the requested commits.{Colors.RESET}")
        return EXIT_OK

    if result.phase is Phase.CONFLICTED:
        report = result.report
        print(f"\n{Colors.RED}✗ Conflict while cherry-picking {report.conflicted[:7]} onto '{result.branch}'{Colors.RESET}")
        for path in result.conflicts:
            print(f"  • {path}")
        print(f"\n  Applied: {len(report.applied)}   Not attempted: {len(report.not_attempted)}")
        return EXIT_CONFLICTED

    report = result.report
    print(f"\n{Colors.GREEN}✓ Backported {len(report.applied)} commit(s) onto '{result.branch}'{Colors.RESET}")
    if report.skipped:
        print(f"  Skipped {len(report.skipped)} commit(s) already present")
    print(f"\nPlease push manually: git push <remote> {result.branch}")
    return EXIT_OK


def cmd_fanout(results: dict) -> int:
    if not results:
        print(f"{Colors.RED}No repositories to process.{Colors.RESET}", file=sys.stderr)
        return EXIT_FAILED

    print()
    failed = 0
    for path, outcome in results.items():
        ok = not outcome.startswith("error") and outcome != "conflict"
        color = Colors.GREEN if ok else Colors.RED
        print(f"  {color}{'✓' if ok else '✗'}{Colors.RESET} {path}: {outcome}")
        failed += 0 if ok else 1
    return EXIT_FAILED if failed else EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for gitbackport CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_FAILED

    config = load_config()
    configure_logging(verbose=args.verbose, log_dir=config.get('log_dir'))

    if args.command == 'config':
        try:
            if args.set_branch_prefix:
                set_branch_prefix(args.set_branch_prefix)
            else:
                show_config()
        except BackportError as e:
            print(f"Error: {e}", file=sys.stderr)
            return EXIT_FAILED
        return EXIT_OK

    try:
        if args.command in ('create-version-branch', 'cvb'):
            repos = load_repos_from_file(Path(args.config_file))
            return cmd_fanout(fanout.create_version_branch(
                repos, args.new_branch, base_branch=args.base_branch, force=args.force))

        if args.command in ('rebase-all', 'ra'):
            repos = load_repos_from_file(Path(args.config_file))
            return cmd_fanout(fanout.rebase_all(
                repos, args.branch, base_branch=args.base_branch, push=args.push))

        # Single-repository commands
        repo_path = Path(args.repo).resolve() if args.repo else Path.cwd()
        if not is_git_repo(repo_path):
            print(f"Error: Not in a git repository: {repo_path}", file=sys.stderr)
            return EXIT_FAILED

        if args.command in ('backport', 'bp'):
            return cmd_backport(args, repo_path, config)

        if args.command in ('feature-branch', 'fb'):
            name = fanout.feature_branch(GitEngine(repo_path), args.branch_name, args.base_branch)
            print(f"{Colors.GREEN}✓ Created branch '{name}'{Colors.RESET}")
            return EXIT_OK

        if args.command in ('list-branches', 'ls'):
            branches = fanout.list_branches(GitEngine(repo_path), args.filter)
            print("Available branches:")
            for i, name in enumerate(branches, 1):
                print(f"  {i}. {name}")
            return EXIT_OK

    except BackportError as e:
        logger.error("%s", e)
        print(f"{Colors.RED}Error: {e}{Colors.RESET}", file=sys.stderr)
        return EXIT_FAILED

    parser.print_help()
    return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
