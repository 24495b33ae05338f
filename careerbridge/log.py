"""Centralized logging configuration."""
from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_configured = False


def get_logger(name: str) -> logging.Logger:
    """Return a named logger; configures the package handler on first call."""
    global _configured
    if not _configured:
        _configure()
        _configured = True
    return logging.getLogger(name)


def _configure() -> None:
    from careerbridge import config

    level = getattr(logging, config.CAREERBRIDGE_LOG_LEVEL, logging.WARNING)

    root = logging.getLogger("careerbridge")
    root.setLevel(level)

    if root.handlers:
        return

    # stderr keeps stdout clean for --json output
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FMT))
    root.addHandler(console)
