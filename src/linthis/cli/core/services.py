# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Factories wiring the core services used by CLI commands."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from ...config.resolver import ConfigLoader
from ...errors import LinthisError
from ...periodic import PeriodicTrigger
from ...plugins.auto_sync import AutoSyncManager
from ...plugins.cache import PluginCache
from ...plugins.registry import PluginRegistry
from ...plugins.scheduler import PluginSyncScheduler, ProgressHook
from ...plugins.vcs import GitClient, VcsClient
from ...self_update import PipUpgrader, PipVersionLookup, RemoteVersionLookup, SelfUpdateManager, Upgrader
from ...timestamps import FileTimestampStore, TimestampKey, TimestampStore
from .shared import CLILogger, confirm


def build_vcs(logger: CLILogger) -> VcsClient:
    return GitClient(debug=logger.debug)


def build_version_lookup() -> RemoteVersionLookup:
    return PipVersionLookup()


def build_upgrader() -> Upgrader:
    return PipUpgrader()


def build_timestamp_store() -> TimestampStore:
    return FileTimestampStore()


@dataclass(slots=True)
class PluginServices:
    """Registry, cache and scheduler sharing one project root."""

    registry: PluginRegistry
    cache: PluginCache
    scheduler: PluginSyncScheduler


def build_plugin_services(
    logger: CLILogger,
    *,
    project_root: Path | None = None,
    jobs: int | None = None,
    progress: ProgressHook | None = None,
) -> PluginServices:
    registry = PluginRegistry(project_root=project_root)
    cache = PluginCache(vcs=build_vcs(logger), debug=logger.debug, use_emoji=logger.use_emoji)
    scheduler = PluginSyncScheduler(registry, cache, jobs=jobs, progress=progress, use_emoji=logger.use_emoji)
    return PluginServices(registry=registry, cache=cache, scheduler=scheduler)


def build_self_update_manager(trigger: PeriodicTrigger, logger: CLILogger) -> SelfUpdateManager:
    return SelfUpdateManager(
        trigger,
        lookup=build_version_lookup(),
        upgrader=build_upgrader(),
        confirm=confirm,
        use_emoji=logger.use_emoji,
    )


def run_periodic_checks(project_root: Path, logger: CLILogger) -> None:
    """Run the self-update and plugin auto-sync checks that are due.

    Failures never abort the invoked command; they are reported as warnings.
    """

    services = build_plugin_services(logger, project_root=project_root)
    try:
        config = ConfigLoader(project_root=project_root, plugins=services.cache).load()
    except LinthisError as exc:
        logger.warn(f"Skipping periodic checks: {exc}")
        return
    store = build_timestamp_store()

    try:
        trigger = PeriodicTrigger.from_settings(store, TimestampKey.SELF_UPDATE, config.self_auto_update)
        result = build_self_update_manager(trigger, logger).run()
        logger.debug(f"periodic=self_update status={result.status.value}")
    except (LinthisError, OSError) as exc:
        logger.warn(f"Self-update check failed: {exc}")

    try:
        trigger = PeriodicTrigger.from_settings(store, TimestampKey.PLUGIN_SYNC, config.plugin_auto_sync)
        manager = AutoSyncManager(
            trigger,
            registry=services.registry,
            cache=services.cache,
            scheduler=services.scheduler,
            confirm=confirm,
            use_emoji=logger.use_emoji,
        )
        outcome = manager.run()
        logger.debug(f"periodic=plugin_sync status={outcome.status.value}")
    except (LinthisError, OSError) as exc:
        logger.warn(f"Plugin auto-sync failed: {exc}")


__all__ = [
    "PluginServices",
    "build_plugin_services",
    "build_self_update_manager",
    "build_timestamp_store",
    "build_upgrader",
    "build_vcs",
    "build_version_lookup",
    "run_periodic_checks",
]
