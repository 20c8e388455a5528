# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models, layers and resolution."""

from __future__ import annotations

from .models import (
    Config,
    ConfigFragment,
    PeriodicFragment,
    PeriodicSettings,
    PluginScope,
    PluginSource,
    Preset,
    UpdateMode,
)
from .resolver import ConfigLoader, ConfigLoadResult, ConfigResolver, FieldUpdate, load_config
from .sources import ConfigSource, LayerRanks

__all__ = [
    "Config",
    "ConfigFragment",
    "ConfigLoadResult",
    "ConfigLoader",
    "ConfigResolver",
    "ConfigSource",
    "FieldUpdate",
    "LayerRanks",
    "PeriodicFragment",
    "PeriodicSettings",
    "PluginScope",
    "PluginSource",
    "Preset",
    "UpdateMode",
    "load_config",
]
