# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Periodic background refresh of registered plugins."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import Enum
from typing import Final

from pydantic import BaseModel, ConfigDict, Field

from ..config.models import PluginScope, PluginSource, UpdateMode
from ..logging import ok, warn
from ..periodic import PeriodicTrigger
from .cache import PluginCache
from .models import SyncReport, SyncStatus
from .registry import PluginRegistry
from .scheduler import PluginSyncScheduler

Confirm = Callable[[str], bool]

SYNC_QUESTION: Final[str] = "Updates available for plugins. Update now?"
DEFAULT_SCOPES: Final[tuple[PluginScope, ...]] = (PluginScope.PROJECT, PluginScope.GLOBAL)


class AutoSyncStatus(str, Enum):
    NOT_DUE = "not_due"
    UP_TO_DATE = "up_to_date"
    DECLINED = "declined"
    SYNCED = "synced"
    FAILED = "failed"


class AutoSyncResult(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    status: AutoSyncStatus
    pending: list[str] = Field(default_factory=list)
    updated: int = 0
    failed: int = 0
    warnings: list[str] = Field(default_factory=list)


class AutoSyncManager:
    """Combine a :class:`PeriodicTrigger` with the plugin sync scheduler."""

    def __init__(
        self,
        trigger: PeriodicTrigger,
        *,
        registry: PluginRegistry,
        cache: PluginCache,
        scheduler: PluginSyncScheduler,
        confirm: Confirm,
        scopes: Sequence[PluginScope] = DEFAULT_SCOPES,
        use_emoji: bool = True,
    ) -> None:
        self._trigger = trigger
        self._registry = registry
        self._cache = cache
        self._scheduler = scheduler
        self._confirm = confirm
        self._scopes = tuple(scopes)
        self._use_emoji = use_emoji

    def run(self) -> AutoSyncResult:
        """Sync plugins when the trigger is due; the timestamp advances on every due run."""

        if not self._trigger.is_due:
            return AutoSyncResult(status=AutoSyncStatus.NOT_DUE)
        try:
            if self._trigger.mode is UpdateMode.PROMPT:
                return self._run_prompt()
            return self._sync()
        finally:
            self._trigger.mark_checked()

    def _registered(self) -> dict[PluginScope, list[PluginSource]]:
        return {scope: self._registry.list(scope) for scope in self._scopes}

    def _run_prompt(self) -> AutoSyncResult:
        pending: list[str] = []
        warnings: list[str] = []
        for scope, sources in self._registered().items():
            for update in self._cache.remote_updates(scope, sources):
                if update.error is not None:
                    message = f"Could not check plugin '{update.name}' for updates: {update.error}"
                    warn(message, use_emoji=self._use_emoji)
                    warnings.append(message)
                elif update.has_update:
                    pending.append(update.name)
        if not pending:
            return AutoSyncResult(status=AutoSyncStatus.UP_TO_DATE, warnings=warnings)
        if not self._confirm(SYNC_QUESTION):
            return AutoSyncResult(status=AutoSyncStatus.DECLINED, pending=pending, warnings=warnings)
        result = self._sync()
        result.pending = pending
        result.warnings = [*warnings, *result.warnings]
        return result

    def _sync(self) -> AutoSyncResult:
        reports: list[SyncReport] = []
        for scope, sources in self._registered().items():
            if sources:
                reports.append(self._scheduler.sync_sources(scope, sources))
        if not reports:
            return AutoSyncResult(status=AutoSyncStatus.UP_TO_DATE)
        updated = sum(report.updated for report in reports)
        failed = sum(report.failed for report in reports)
        warnings: list[str] = []
        for report in reports:
            for entry in report.results:
                if entry.outcome.status is SyncStatus.FAILED:
                    message = f"Plugin '{entry.name}' failed to sync: {entry.outcome.reason}"
                    warn(message, use_emoji=self._use_emoji)
                    warnings.append(message)
        if failed:
            return AutoSyncResult(status=AutoSyncStatus.FAILED, updated=updated, failed=failed, warnings=warnings)
        if updated:
            ok(f"Plugins synced: {updated} updated", use_emoji=self._use_emoji)
        return AutoSyncResult(status=AutoSyncStatus.SYNCED, updated=updated)


__all__ = ["AutoSyncManager", "AutoSyncResult", "AutoSyncStatus", "SYNC_QUESTION"]
