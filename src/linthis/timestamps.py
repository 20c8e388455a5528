# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Persistence of the last-check timestamps used by periodic background checks."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable

from .filesystem import atomic_write_text
from .paths import linthis_home


class TimestampKey(str, Enum):
    """Tracked behaviours, each persisted in its own file."""

    SELF_UPDATE = "self_update"
    PLUGIN_SYNC = "plugin_sync"

    @property
    def filename(self) -> str:
        return f".{self.value}_last_check"


@runtime_checkable
class TimestampStore(Protocol):
    """Read and write one Unix timestamp per tracked behaviour."""

    def read(self, key: TimestampKey) -> int | None:
        """Return the stored timestamp for ``key`` or ``None`` when absent."""
        ...

    def write(self, key: TimestampKey, timestamp: int) -> None:
        """Persist ``timestamp`` for ``key``."""
        ...


class FileTimestampStore:
    """Store timestamps as decimal integers in ``~/.linthis/.<key>_last_check`` files."""

    def __init__(self, directory: Path | None = None) -> None:
        self._directory = directory if directory is not None else linthis_home()

    def path_for(self, key: TimestampKey) -> Path:
        return self._directory / key.filename

    def read(self, key: TimestampKey) -> int | None:
        path = self.path_for(key)
        try:
            content = path.read_text(encoding="utf-8").strip()
        except OSError:
            return None
        # A garbled file counts as "never checked" so the next run repairs it.
        if not content.isdigit():
            return None
        return int(content)

    def write(self, key: TimestampKey, timestamp: int) -> None:
        atomic_write_text(self.path_for(key), str(int(timestamp)))


class InMemoryTimestampStore:
    """Dictionary-backed store used by tests and dry runs."""

    def __init__(self, initial: dict[TimestampKey, int] | None = None) -> None:
        self.values: dict[TimestampKey, int] = dict(initial or {})
        self.writes: list[tuple[TimestampKey, int]] = []

    def read(self, key: TimestampKey) -> int | None:
        return self.values.get(key)

    def write(self, key: TimestampKey, timestamp: int) -> None:
        self.values[key] = int(timestamp)
        self.writes.append((key, int(timestamp)))


__all__ = ["FileTimestampStore", "InMemoryTimestampStore", "TimestampKey", "TimestampStore"]
