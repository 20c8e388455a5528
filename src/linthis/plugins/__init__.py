# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Git-hosted configuration plugins: registry, cache and synchronisation."""

from __future__ import annotations

from .auto_sync import AutoSyncManager, AutoSyncResult, AutoSyncStatus
from .cache import PluginCache
from .manifest import PluginManifest
from .models import CleanSelector, PluginCacheEntry, RemoveOutcome, SyncOutcome, SyncReport, SyncStatus
from .registry import PluginRegistry
from .scheduler import PluginSyncScheduler
from .vcs import GitClient, VcsClient

__all__ = [
    "AutoSyncManager",
    "AutoSyncResult",
    "AutoSyncStatus",
    "CleanSelector",
    "GitClient",
    "PluginCache",
    "PluginCacheEntry",
    "PluginManifest",
    "PluginRegistry",
    "PluginSyncScheduler",
    "RemoveOutcome",
    "SyncOutcome",
    "SyncReport",
    "SyncStatus",
    "VcsClient",
]
