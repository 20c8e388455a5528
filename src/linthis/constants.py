# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared constants for configuration, plugin and update handling."""

from __future__ import annotations

from typing import Final

PACKAGE_NAME: Final[str] = "linthis"
SECONDS_PER_DAY: Final[int] = 86_400

DEFAULT_MAX_COMPLEXITY: Final[int] = 20
DEFAULT_INTERVAL_DAYS: Final[int] = 7
DEFAULT_PLUGIN_REF: Final[str] = "main"

MANIFEST_FILENAME: Final[str] = "linthis-plugin.toml"
PLUGIN_CONFIG_FILENAME: Final[str] = "linthis.toml"
CACHE_INDEX_FILENAME: Final[str] = "index.json"

# Plugin names that resolve to a URL without the user spelling it out.
BUILTIN_PLUGINS: Final[dict[str, str]] = {
    "official": "https://github.com/zhlinh/linthis-config.git",
}

__all__ = [
    "BUILTIN_PLUGINS",
    "CACHE_INDEX_FILENAME",
    "DEFAULT_INTERVAL_DAYS",
    "DEFAULT_MAX_COMPLEXITY",
    "DEFAULT_PLUGIN_REF",
    "MANIFEST_FILENAME",
    "PACKAGE_NAME",
    "PLUGIN_CONFIG_FILENAME",
    "SECONDS_PER_DAY",
]
