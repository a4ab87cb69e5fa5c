#!/usr/bin/env python3
"""
logs - Logging setup for the gitbackport command line.

Library modules only call logging.getLogger(__name__); handlers are
attached here, once, by the CLI.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "gitbackport"
FORMAT = '%(asctime)s - %(message)s'
DATEFMT = '%Y-%m-%d %H:%M:%S'


def default_log_dir() -> Path:
    """Try /var/log first, fall back to /tmp."""
    log_dir = Path("/var/log")
    if not log_dir.exists() or not os.access(log_dir, os.W_OK):
        log_dir = Path("/tmp")
    return log_dir


def configure_logging(verbose: bool = False, log_dir: Optional[Path] = None) -> logging.Logger:
    """Attach console and file handlers to the gitbackport logger."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(FORMAT, datefmt=DATEFMT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console.setFormatter(formatter)
    logger.addHandler(console)

    log_dir = Path(log_dir) if log_dir else default_log_dir()
    try:
        fh = logging.FileHandler(log_dir / f"{LOGGER_NAME}.log")
        fh.setLevel(logging.INFO)

        eh = logging.FileHandler(log_dir / f"{LOGGER_NAME}_errors.log")
        eh.setLevel(logging.ERROR)

        fh.setFormatter(formatter)
        eh.setFormatter(formatter)

        logger.addHandler(fh)
        logger.addHandler(eh)
    except OSError as e:
        # Console logging is enough when the log directory is not writable
        logger.debug("File logging disabled: %s", e)

    return logger
