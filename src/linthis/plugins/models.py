# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Data structures describing cached plugins and sync results."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ..config.models import PluginScope, PluginSource


class SyncStatus(str, Enum):
    """Result category of a single plugin sync."""

    UNCHANGED = "unchanged"
    UPDATED = "updated"
    FAILED = "failed"


class SyncOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: SyncStatus
    commit: str | None = None
    reason: str | None = None

    @classmethod
    def unchanged(cls, commit: str) -> SyncOutcome:
        return cls(status=SyncStatus.UNCHANGED, commit=commit)

    @classmethod
    def updated(cls, commit: str) -> SyncOutcome:
        return cls(status=SyncStatus.UPDATED, commit=commit)

    @classmethod
    def failed(cls, reason: str, *, commit: str | None = None) -> SyncOutcome:
        return cls(status=SyncStatus.FAILED, reason=reason, commit=commit)


class PluginCacheEntry(BaseModel):
    """Index record for one materialised plugin checkout."""

    model_config = ConfigDict(validate_assignment=True)

    source: PluginSource
    scope: PluginScope
    local_path: Path
    last_synced_commit: str
    last_synced_at: int


class NamedOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    outcome: SyncOutcome


class SyncReport(BaseModel):
    """Ordered per-plugin outcomes for one batch."""

    model_config = ConfigDict(validate_assignment=True)

    results: list[NamedOutcome] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)

    def _count(self, status: SyncStatus) -> int:
        return sum(1 for entry in self.results if entry.outcome.status is status)

    @property
    def updated(self) -> int:
        return self._count(SyncStatus.UPDATED)

    @property
    def failed(self) -> int:
        return self._count(SyncStatus.FAILED)

    @property
    def unchanged(self) -> int:
        return self._count(SyncStatus.UNCHANGED)

    @property
    def statuses(self) -> list[SyncStatus]:
        return [entry.outcome.status for entry in self.results]

    def summary(self) -> str:
        return f"{self.updated} updated, {self.failed} failed, {self.unchanged} unchanged"

    def exit_code(self) -> int:
        return 1 if self.failed or self.missing else 0


class RemoveOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    scope: PluginScope
    found: bool
    path: Path | None = None


class RemoteUpdate(BaseModel):
    """Difference between the cached commit and the remote head of a plugin ref."""

    model_config = ConfigDict(frozen=True)

    name: str
    cached_commit: str | None
    remote_commit: str | None
    error: str | None = None

    @property
    def has_update(self) -> bool:
        return self.error is None and self.remote_commit != self.cached_commit


class CleanSelector(str, Enum):
    ALL = "all"


ConfirmEntry = Callable[[PluginCacheEntry], bool]
CleanChoice = CleanSelector | ConfirmEntry


__all__ = [
    "CleanChoice",
    "CleanSelector",
    "ConfirmEntry",
    "NamedOutcome",
    "PluginCacheEntry",
    "RemoteUpdate",
    "RemoveOutcome",
    "SyncOutcome",
    "SyncReport",
    "SyncStatus",
]
