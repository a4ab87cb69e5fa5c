#!/usr/bin/env python3
"""
config - Configuration management for gitbackport.

Two kinds of configuration:
  - user preferences in ~/.gitbackport/config.json (branch prefix, default
    dependency mode, log directory)
  - YAML repository lists consumed by the multi-repository commands
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List

import yaml

from gitbackport.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULTS: Dict[str, Any] = {
    "branch_prefix": "backport",
    "auto_deps": True,
    "log_dir": None,
}


def get_config_dir() -> Path:
    """Get the gitbackport configuration directory."""
    return Path.home() / ".gitbackport"


def get_config_file() -> Path:
    """Get the path to the configuration file."""
    return get_config_dir() / "config.json"


def load_config() -> Dict[str, Any]:
    """Load configuration from file, falling back to defaults."""
    config = dict(DEFAULTS)
    config_file = get_config_file()

    if not config_file.exists():
        return config

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            stored = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config %s: %s", config_file, e)
        return config

    if isinstance(stored, dict):
        config.update(stored)
    return config


def save_config(config: Dict[str, Any]):
    """Save configuration to file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    with open(config_file, 'w', encoding='utf-8') as f:
        json.dump(config, f, indent=2)


def set_branch_prefix(prefix: str):
    """Set the prefix used for generated backport branch names."""
    prefix = prefix.strip().strip("/")
    if not prefix:
        raise ConfigError(get_config_file(), "branch prefix cannot be empty")
    config = load_config()
    config['branch_prefix'] = prefix
    save_config(config)
    print(f"Branch prefix set to: {prefix}")


def show_config():
    """Display current configuration."""
    config = load_config()

    print("\n" + "=" * 60)
    print("GITBACKPORT CONFIGURATION")
    print("=" * 60)
    print(f"Config file: {get_config_file()}")
    print()
    print("Settings:")
    print(f"  Branch prefix:      {config.get('branch_prefix')}")
    print(f"  Auto dependencies:  {config.get('auto_deps')}")
    print(f"  Log directory:      {config.get('log_dir') or '(default: /var/log or /tmp)'}")
    print()
    print("To modify settings:")
    print("  gitbackport config --set-branch-prefix hotfix")
    print(f"  Or edit: {get_config_file()}")
    print()


def load_repos_from_file(config_file: Path) -> List[str]:
    """
    Load repository paths from a YAML file.

    The list lives under a top-level "repos" or "repositories" key.
    A missing file is logged and yields no repositories.

    Raises:
        ConfigError: the file is not valid YAML or has no usable list.
    """
    config_file = Path(config_file)
    if not config_file.exists():
        logger.error("Config file not found: %s", config_file.resolve())
        return []

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(config_file, f"invalid YAML: {e}")

    if not isinstance(data, dict):
        raise ConfigError(config_file, "expected a mapping with a 'repos' list")

    repos = data.get("repos", data.get("repositories"))
    if not isinstance(repos, list):
        raise ConfigError(config_file, "missing or invalid 'repos' list")

    return [str(Path(str(r)).expanduser()) for r in repos if r]
