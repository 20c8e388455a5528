# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Interval-based trigger shared by self-update and plugin auto-sync."""

from __future__ import annotations

import time
from collections.abc import Callable
from enum import Enum

from .config.models import PeriodicSettings, UpdateMode
from .constants import SECONDS_PER_DAY
from .timestamps import TimestampKey, TimestampStore

Clock = Callable[[], float]


class TriggerState(str, Enum):
    """Whether a periodic behaviour should run during this invocation."""

    DUE = "due"
    NOT_DUE = "not_due"


class PeriodicTrigger:
    """Decide whether enough time has elapsed since the last recorded check.

    The stored timestamp is read exactly once, when the trigger is created, and
    written at most once through :meth:`mark_checked`. A missing timestamp
    counts as "never checked" and is therefore due.
    """

    def __init__(
        self,
        store: TimestampStore,
        key: TimestampKey,
        *,
        mode: UpdateMode,
        interval_days: int,
        clock: Clock = time.time,
    ) -> None:
        if interval_days <= 0:
            raise ValueError("interval_days must be a positive integer")
        self._store = store
        self._key = key
        self._mode = mode
        self._interval_seconds = interval_days * SECONDS_PER_DAY
        self._clock = clock
        self._now = int(clock())
        self._last_check = store.read(key)

    @classmethod
    def from_settings(
        cls,
        store: TimestampStore,
        key: TimestampKey,
        settings: PeriodicSettings,
        *,
        clock: Clock = time.time,
    ) -> PeriodicTrigger:
        return cls(store, key, mode=settings.effective_mode, interval_days=settings.interval_days, clock=clock)

    @property
    def mode(self) -> UpdateMode:
        return self._mode

    @property
    def key(self) -> TimestampKey:
        return self._key

    @property
    def last_check(self) -> int | None:
        return self._last_check

    @property
    def state(self) -> TriggerState:
        if self._mode is UpdateMode.DISABLED:
            return TriggerState.NOT_DUE
        if self._last_check is None:
            return TriggerState.DUE
        if self._now - self._last_check >= self._interval_seconds:
            return TriggerState.DUE
        return TriggerState.NOT_DUE

    @property
    def is_due(self) -> bool:
        return self.state is TriggerState.DUE

    def mark_checked(self) -> int:
        """Record the current time as the last check and return it."""

        now = int(self._clock())
        self._store.write(self._key, now)
        return now


__all__ = ["Clock", "PeriodicTrigger", "TriggerState"]
