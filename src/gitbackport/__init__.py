"""
gitbackport - Backport commits and the commits they depend on.

Tools included:
- backport: resolve the dependency closure of commits and replay it onto a target branch
- create-version-branch: cut the same branch across many repositories
- rebase-all: fetch and rebase a branch across many repositories
- feature-branch: create feature/<name> branches
- list-branches: list local branches
"""

__version__ = "0.1.0"
__author__ = "1minds3t"
__email__ = "1minds3t@proton.me"
__all__ = ["backport", "closure", "workspace", "branching", "applier", "conflicts", "fanout", "config"]
