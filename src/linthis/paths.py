# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Well-known locations for configuration, state and the plugin cache."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final

LINTHIS_HOME_ENV: Final[str] = "LINTHIS_HOME"
LINTHIS_DIR_NAME: Final[str] = ".linthis"
CONFIG_FILE_NAME: Final[str] = "config.toml"
PROJECT_CONFIG_FILE: Final[str] = ".linthis.toml"
PLUGIN_CACHE_DIR_NAME: Final[str] = "plugins"


def linthis_home() -> Path:
    """Return the per-user state directory (``~/.linthis`` unless overridden).

    ``LINTHIS_HOME`` takes precedence so tests and CI runs can isolate state.
    """

    override = os.environ.get(LINTHIS_HOME_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / LINTHIS_DIR_NAME


def global_config_path() -> Path:
    """Return the path of the global configuration file."""

    return linthis_home() / CONFIG_FILE_NAME


def project_config_candidates(root: Path) -> tuple[Path, ...]:
    """Return the project configuration paths in lookup order."""

    return (root / PROJECT_CONFIG_FILE, root / LINTHIS_DIR_NAME / CONFIG_FILE_NAME)


def project_config_path(root: Path) -> Path:
    """Return the existing project configuration file or the default location."""

    candidates = project_config_candidates(root)
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return candidates[0]


def plugin_cache_root() -> Path:
    """Return the root directory holding cached plugin checkouts."""

    return linthis_home() / PLUGIN_CACHE_DIR_NAME


__all__ = [
    "CONFIG_FILE_NAME",
    "LINTHIS_DIR_NAME",
    "LINTHIS_HOME_ENV",
    "PLUGIN_CACHE_DIR_NAME",
    "PROJECT_CONFIG_FILE",
    "global_config_path",
    "linthis_home",
    "plugin_cache_root",
    "project_config_candidates",
    "project_config_path",
]
