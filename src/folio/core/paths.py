"""Centralized workspace path management.

All tool-managed artifacts go under var/ (configurable via FOLIO_WORKDIR).
Human-managed inputs go under data/ (configurable via FOLIO_DATA_DIR).
Both are resolved against the current working directory.
"""

from pathlib import Path

from . import config


def data() -> Path:
    """Human-managed inputs directory (default: data/)"""
    return Path.cwd() / config.SETTINGS.FOLIO_DATA_DIR


def workdir() -> Path:
    """Tool-managed workspace directory (default: var/)"""
    return Path.cwd() / config.SETTINGS.FOLIO_WORKDIR


def runs() -> Path:
    """Runs artifact directory (default: var/runs/)"""
    return workdir() / "runs"

