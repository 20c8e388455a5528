# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for batch plugin synchronisation."""

from __future__ import annotations

from pathlib import Path

import pytest

from linthis.config.models import PluginScope, PluginSource
from linthis.plugins.cache import PluginCache
from linthis.plugins.models import SyncOutcome, SyncStatus
from linthis.plugins.registry import PluginRegistry
from linthis.plugins.scheduler import PluginSyncScheduler, default_parallel_jobs

from .fakes import FakeClock, FakeVcs

STABLE = PluginSource(name="stable", url="https://example.com/stable.git")
BROKEN = PluginSource(name="broken", url="https://example.com/broken.git")
FRESH = PluginSource(name="fresh", url="https://example.com/fresh.git")


@pytest.fixture
def registry(project_root: Path) -> PluginRegistry:
    registry = PluginRegistry(project_root=project_root)
    for source in (STABLE, BROKEN, FRESH):
        registry.add(PluginScope.PROJECT, source)
    return registry


@pytest.fixture
def cache(tmp_path: Path, vcs: FakeVcs, clock: FakeClock) -> PluginCache:
    vcs.publish(STABLE.url, "1" * 40)
    vcs.publish(BROKEN.url, "2" * 40)
    vcs.publish(FRESH.url, "3" * 40)
    return PluginCache(vcs=vcs, root=tmp_path / "cache", clock=clock, use_emoji=False)


@pytest.mark.parametrize("jobs", [1, 4])
def test_failures_are_isolated_and_order_is_kept(
    registry: PluginRegistry,
    cache: PluginCache,
    vcs: FakeVcs,
    jobs: int,
) -> None:
    cache.sync(STABLE, PluginScope.PROJECT)
    vcs.broken.add(BROKEN.url)
    seen: list[tuple[str, SyncStatus]] = []

    def progress(name: str, outcome: SyncOutcome) -> None:
        seen.append((name, outcome.status))

    scheduler = PluginSyncScheduler(registry, cache, jobs=jobs, progress=progress, use_emoji=False)
    report = scheduler.sync_all(PluginScope.PROJECT)

    assert [entry.name for entry in report.results] == ["stable", "broken", "fresh"]
    assert report.statuses == [SyncStatus.UNCHANGED, SyncStatus.FAILED, SyncStatus.UPDATED]
    assert report.summary() == "1 updated, 1 failed, 1 unchanged"
    assert report.exit_code() == 1
    assert sorted(seen) == [
        ("broken", SyncStatus.FAILED),
        ("fresh", SyncStatus.UPDATED),
        ("stable", SyncStatus.UNCHANGED),
    ]


class DiskFullCache(PluginCache):
    """Cache whose bookkeeping fails for one named plugin."""

    def __init__(self, *, failing: str, **kwargs: object) -> None:
        super().__init__(**kwargs)
        self.failing = failing

    def sync(self, source: PluginSource, scope: PluginScope) -> SyncOutcome:
        if source.name == self.failing:
            raise OSError(28, "No space left on device")
        return super().sync(source, scope)


@pytest.mark.parametrize("jobs", [1, 4])
def test_unexpected_cache_error_fails_only_that_plugin(
    registry: PluginRegistry,
    vcs: FakeVcs,
    tmp_path: Path,
    jobs: int,
) -> None:
    for source in (STABLE, BROKEN, FRESH):
        vcs.publish(source.url, "4" * 40)
    cache = DiskFullCache(failing="broken", vcs=vcs, root=tmp_path / "cache", use_emoji=False)

    report = PluginSyncScheduler(registry, cache, jobs=jobs, use_emoji=False).sync_all(PluginScope.PROJECT)

    assert report.statuses == [SyncStatus.UPDATED, SyncStatus.FAILED, SyncStatus.UPDATED]
    assert "No space left on device" in (report.results[1].outcome.reason or "")


def test_successful_batch_exits_zero(registry: PluginRegistry, cache: PluginCache) -> None:
    report = PluginSyncScheduler(registry, cache, jobs=2, use_emoji=False).sync_all(PluginScope.PROJECT)

    assert report.updated == 3
    assert report.exit_code() == 0


def test_sync_named_skips_unknown_names(registry: PluginRegistry, cache: PluginCache) -> None:
    scheduler = PluginSyncScheduler(registry, cache, jobs=1, use_emoji=False)

    report = scheduler.sync_named(PluginScope.PROJECT, ["fresh", "ghost"])

    assert [entry.name for entry in report.results] == ["fresh"]
    assert report.missing == ["ghost"]
    assert report.exit_code() == 1


def test_empty_scope_produces_empty_report(registry: PluginRegistry, cache: PluginCache) -> None:
    report = PluginSyncScheduler(registry, cache, use_emoji=False).sync_all(PluginScope.GLOBAL)

    assert report.results == []
    assert report.exit_code() == 0


def test_default_parallel_jobs_uses_three_quarters_of_cores(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("linthis.plugins.scheduler.os.cpu_count", lambda: 8)
    assert default_parallel_jobs() == 6

    monkeypatch.setattr("linthis.plugins.scheduler.os.cpu_count", lambda: None)
    assert default_parallel_jobs() == 1
