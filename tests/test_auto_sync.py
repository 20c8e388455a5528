# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for periodic plugin auto-sync."""

from __future__ import annotations

from pathlib import Path

import pytest

from linthis.config.models import PluginScope, PluginSource, UpdateMode
from linthis.periodic import PeriodicTrigger
from linthis.plugins.auto_sync import SYNC_QUESTION, AutoSyncManager, AutoSyncStatus
from linthis.plugins.cache import PluginCache
from linthis.plugins.registry import PluginRegistry
from linthis.plugins.scheduler import PluginSyncScheduler
from linthis.timestamps import InMemoryTimestampStore, TimestampKey

from .fakes import FakeClock, FakeVcs, ScriptedConfirm

KEY = TimestampKey.PLUGIN_SYNC
CORP = PluginSource(name="corp", url="https://example.com/corp.git")
TEAM = PluginSource(name="team", url="https://example.com/team.git")


@pytest.fixture
def registry(project_root: Path) -> PluginRegistry:
    return PluginRegistry(project_root=project_root)


@pytest.fixture
def cache(tmp_path: Path, vcs: FakeVcs, clock: FakeClock) -> PluginCache:
    vcs.publish(CORP.url, "a" * 40)
    vcs.publish(TEAM.url, "b" * 40)
    return PluginCache(vcs=vcs, root=tmp_path / "cache", clock=clock, use_emoji=False)


def _manager(
    registry: PluginRegistry,
    cache: PluginCache,
    store: InMemoryTimestampStore,
    clock: FakeClock,
    *,
    mode: UpdateMode,
    confirm: ScriptedConfirm,
) -> AutoSyncManager:
    trigger = PeriodicTrigger(store, KEY, mode=mode, interval_days=7, clock=clock)
    scheduler = PluginSyncScheduler(registry, cache, jobs=1, use_emoji=False)
    return AutoSyncManager(
        trigger,
        registry=registry,
        cache=cache,
        scheduler=scheduler,
        confirm=confirm,
        use_emoji=False,
    )


def test_not_due_skips_everything(
    registry: PluginRegistry,
    cache: PluginCache,
    store: InMemoryTimestampStore,
    clock: FakeClock,
    vcs: FakeVcs,
) -> None:
    registry.add(PluginScope.PROJECT, CORP)
    store.values[KEY] = int(clock.now)

    result = _manager(registry, cache, store, clock, mode=UpdateMode.AUTO, confirm=ScriptedConfirm()).run()

    assert result.status is AutoSyncStatus.NOT_DUE
    assert vcs.calls == []
    assert store.writes == []


def test_auto_mode_syncs_both_scopes(
    registry: PluginRegistry,
    cache: PluginCache,
    store: InMemoryTimestampStore,
    clock: FakeClock,
) -> None:
    registry.add(PluginScope.PROJECT, CORP)
    registry.add(PluginScope.GLOBAL, TEAM)

    result = _manager(registry, cache, store, clock, mode=UpdateMode.AUTO, confirm=ScriptedConfirm()).run()

    assert result.status is AutoSyncStatus.SYNCED
    assert result.updated == 2
    assert cache.entry(CORP, PluginScope.PROJECT) is not None
    assert cache.entry(TEAM, PluginScope.GLOBAL) is not None
    assert store.read(KEY) == int(clock.now)


def test_prompt_mode_is_silent_when_nothing_changed(
    registry: PluginRegistry,
    cache: PluginCache,
    store: InMemoryTimestampStore,
    clock: FakeClock,
) -> None:
    registry.add(PluginScope.PROJECT, CORP)
    cache.sync(CORP, PluginScope.PROJECT)
    confirm = ScriptedConfirm()

    result = _manager(registry, cache, store, clock, mode=UpdateMode.PROMPT, confirm=confirm).run()

    assert result.status is AutoSyncStatus.UP_TO_DATE
    assert confirm.questions == []
    assert store.read(KEY) == int(clock.now)


def test_prompt_mode_asks_before_syncing(
    registry: PluginRegistry,
    cache: PluginCache,
    store: InMemoryTimestampStore,
    clock: FakeClock,
    vcs: FakeVcs,
) -> None:
    registry.add(PluginScope.PROJECT, CORP)
    cache.sync(CORP, PluginScope.PROJECT)
    vcs.publish(CORP.url, "c" * 40)
    confirm = ScriptedConfirm(answer=True)

    result = _manager(registry, cache, store, clock, mode=UpdateMode.PROMPT, confirm=confirm).run()

    assert confirm.questions == [SYNC_QUESTION]
    assert result.status is AutoSyncStatus.SYNCED
    assert result.pending == ["corp"]
    entry = cache.entry(CORP, PluginScope.PROJECT)
    assert entry is not None and entry.last_synced_commit == "c" * 40


def test_prompt_declined_keeps_cache_and_advances_timestamp(
    registry: PluginRegistry,
    cache: PluginCache,
    store: InMemoryTimestampStore,
    clock: FakeClock,
    vcs: FakeVcs,
) -> None:
    registry.add(PluginScope.PROJECT, CORP)
    cache.sync(CORP, PluginScope.PROJECT)
    vcs.publish(CORP.url, "c" * 40)

    result = _manager(
        registry,
        cache,
        store,
        clock,
        mode=UpdateMode.PROMPT,
        confirm=ScriptedConfirm(answer=False),
    ).run()

    assert result.status is AutoSyncStatus.DECLINED
    entry = cache.entry(CORP, PluginScope.PROJECT)
    assert entry is not None and entry.last_synced_commit == "a" * 40
    assert store.read(KEY) == int(clock.now)


def test_failures_are_reported_as_warnings(
    registry: PluginRegistry,
    cache: PluginCache,
    store: InMemoryTimestampStore,
    clock: FakeClock,
    vcs: FakeVcs,
) -> None:
    registry.add(PluginScope.PROJECT, CORP)
    registry.add(PluginScope.PROJECT, TEAM)
    vcs.broken.add(TEAM.url)

    result = _manager(registry, cache, store, clock, mode=UpdateMode.AUTO, confirm=ScriptedConfirm()).run()

    assert result.status is AutoSyncStatus.FAILED
    assert (result.updated, result.failed) == (1, 1)
    assert any("team" in warning for warning in result.warnings)
    assert store.read(KEY) == int(clock.now)


def test_no_registered_plugins_is_up_to_date(
    registry: PluginRegistry,
    cache: PluginCache,
    store: InMemoryTimestampStore,
    clock: FakeClock,
) -> None:
    result = _manager(registry, cache, store, clock, mode=UpdateMode.AUTO, confirm=ScriptedConfirm()).run()

    assert result.status is AutoSyncStatus.UP_TO_DATE
    assert store.read(KEY) == int(clock.now)
