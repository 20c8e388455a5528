# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Batch synchronisation of registered plugins."""

from __future__ import annotations

import math
import os
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor

from ..config.models import PluginScope, PluginSource
from ..errors import LinthisError, PluginNotFoundError
from ..logging import warn
from .cache import PluginCache
from .models import NamedOutcome, SyncOutcome, SyncReport
from .registry import PluginRegistry

ProgressHook = Callable[[str, SyncOutcome], None]


def default_parallel_jobs() -> int:
    """Return 75% of available CPU cores (minimum of 1)."""
    cores = os.cpu_count() or 1
    return max(1, math.floor(cores * 0.75))


class PluginSyncScheduler:
    """Synchronise every plugin of a scope, isolating per-plugin failures.

    Results are reported in registry order even when plugins are synced on a
    thread pool.
    """

    def __init__(
        self,
        registry: PluginRegistry,
        cache: PluginCache,
        *,
        jobs: int | None = None,
        progress: ProgressHook | None = None,
        use_emoji: bool = True,
    ) -> None:
        self._registry = registry
        self._cache = cache
        self._jobs = jobs if jobs is not None else default_parallel_jobs()
        self._progress = progress
        self._use_emoji = use_emoji

    def sync_all(self, scope: PluginScope) -> SyncReport:
        return self.sync_sources(scope, self._registry.list(scope))

    def sync_named(self, scope: PluginScope, names: Iterable[str]) -> SyncReport:
        """Sync only ``names``; unregistered names are warned about and skipped."""

        registered = {source.name: source for source in self._registry.list(scope)}
        selected: list[PluginSource] = []
        missing: list[str] = []
        for name in names:
            if (source := registered.get(name)) is None:
                error = PluginNotFoundError(name, scope.value)
                warn(str(error), use_emoji=self._use_emoji)
                missing.append(name)
                continue
            selected.append(source)
        report = self.sync_sources(scope, selected)
        report.missing = missing
        return report

    def sync_sources(self, scope: PluginScope, sources: Sequence[PluginSource]) -> SyncReport:
        if not sources:
            return SyncReport()
        if self._jobs <= 1 or len(sources) == 1:
            outcomes = [self._sync_one(source, scope) for source in sources]
        else:
            with ThreadPoolExecutor(max_workers=min(self._jobs, len(sources))) as executor:
                outcomes = list(executor.map(lambda source: self._sync_one(source, scope), sources))
        return SyncReport(
            results=[NamedOutcome(name=source.name, outcome=outcome) for source, outcome in zip(sources, outcomes)],
        )

    def _sync_one(self, source: PluginSource, scope: PluginScope) -> SyncOutcome:
        try:
            outcome = self._cache.sync(source, scope)
        except (LinthisError, OSError) as exc:
            outcome = SyncOutcome.failed(str(exc))
        if self._progress is not None:
            self._progress(source.name, outcome)
        return outcome


__all__ = ["PluginSyncScheduler", "ProgressHook", "default_parallel_jobs"]
