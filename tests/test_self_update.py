# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for periodic and on-demand self-updates."""

from __future__ import annotations

import subprocess
from collections.abc import Sequence

import pytest

from linthis.config.models import UpdateMode
from linthis.errors import VersionLookupError
from linthis.periodic import PeriodicTrigger
from linthis.process_utils import SubprocessExecutionError
from linthis.self_update import (
    PipUpgrader,
    PipVersionLookup,
    SelfUpdateManager,
    SelfUpdateStatus,
    parse_available_versions,
)
from linthis.timestamps import InMemoryTimestampStore, TimestampKey

from .fakes import FakeClock, FakeLookup, FakeUpgrader, ScriptedConfirm

KEY = TimestampKey.SELF_UPDATE


def _manager(
    store: InMemoryTimestampStore,
    clock: FakeClock,
    *,
    mode: UpdateMode,
    lookup: FakeLookup,
    upgrader: FakeUpgrader,
    confirm: ScriptedConfirm,
) -> SelfUpdateManager:
    trigger = PeriodicTrigger(store, KEY, mode=mode, interval_days=7, clock=clock)
    return SelfUpdateManager(
        trigger,
        lookup=lookup,
        upgrader=upgrader,
        confirm=confirm,
        current_version="0.2.0",
        use_emoji=False,
    )


def test_not_due_does_nothing(store: InMemoryTimestampStore, clock: FakeClock) -> None:
    store.values[KEY] = int(clock.now)
    lookup = FakeLookup("9.9.9")

    result = _manager(
        store,
        clock,
        mode=UpdateMode.AUTO,
        lookup=lookup,
        upgrader=FakeUpgrader(),
        confirm=ScriptedConfirm(),
    ).run()

    assert result.status is SelfUpdateStatus.NOT_DUE
    assert lookup.calls == 0
    assert store.writes == []


def test_disabled_never_checks(store: InMemoryTimestampStore, clock: FakeClock) -> None:
    lookup = FakeLookup("9.9.9")

    result = _manager(
        store,
        clock,
        mode=UpdateMode.DISABLED,
        lookup=lookup,
        upgrader=FakeUpgrader(),
        confirm=ScriptedConfirm(),
    ).run()

    assert result.status is SelfUpdateStatus.NOT_DUE
    assert lookup.calls == 0


def test_prompt_mode_is_silent_when_up_to_date(store: InMemoryTimestampStore, clock: FakeClock) -> None:
    confirm = ScriptedConfirm()

    result = _manager(
        store,
        clock,
        mode=UpdateMode.PROMPT,
        lookup=FakeLookup("0.2.0"),
        upgrader=FakeUpgrader(),
        confirm=confirm,
    ).run()

    assert result.status is SelfUpdateStatus.UP_TO_DATE
    assert confirm.questions == []
    assert store.read(KEY) == int(clock.now)


def test_prompt_accepted_upgrades(store: InMemoryTimestampStore, clock: FakeClock) -> None:
    confirm = ScriptedConfirm(answer=True)
    upgrader = FakeUpgrader()

    result = _manager(
        store,
        clock,
        mode=UpdateMode.PROMPT,
        lookup=FakeLookup("0.3.0"),
        upgrader=upgrader,
        confirm=confirm,
    ).run()

    assert result.status is SelfUpdateStatus.UPGRADED
    assert result.latest_version == "0.3.0"
    assert upgrader.calls == 1
    assert confirm.questions == ["A new version of linthis is available: 0.2.0 → 0.3.0. Update now?"]


def test_prompt_declined_still_advances_timestamp(store: InMemoryTimestampStore, clock: FakeClock) -> None:
    upgrader = FakeUpgrader()

    result = _manager(
        store,
        clock,
        mode=UpdateMode.PROMPT,
        lookup=FakeLookup("0.3.0"),
        upgrader=upgrader,
        confirm=ScriptedConfirm(answer=False),
    ).run()

    assert result.status is SelfUpdateStatus.DECLINED
    assert upgrader.calls == 0
    assert store.read(KEY) == int(clock.now)


def test_auto_mode_upgrades_without_asking(store: InMemoryTimestampStore, clock: FakeClock) -> None:
    confirm = ScriptedConfirm()

    result = _manager(
        store,
        clock,
        mode=UpdateMode.AUTO,
        lookup=FakeLookup("1.0.0"),
        upgrader=FakeUpgrader(),
        confirm=confirm,
    ).run()

    assert result.status is SelfUpdateStatus.UPGRADED
    assert result.update_available
    assert confirm.questions == []


def test_lookup_failure_is_soft(store: InMemoryTimestampStore, clock: FakeClock) -> None:
    result = _manager(
        store,
        clock,
        mode=UpdateMode.AUTO,
        lookup=FakeLookup(None),
        upgrader=FakeUpgrader(),
        confirm=ScriptedConfirm(),
    ).run()

    assert result.status is SelfUpdateStatus.LOOKUP_FAILED
    assert result.message is not None and "index unreachable" in result.message
    assert store.read(KEY) == int(clock.now)


def test_upgrade_failure_is_soft(store: InMemoryTimestampStore, clock: FakeClock) -> None:
    result = _manager(
        store,
        clock,
        mode=UpdateMode.AUTO,
        lookup=FakeLookup("1.0.0"),
        upgrader=FakeUpgrader(fail=True),
        confirm=ScriptedConfirm(),
    ).run()

    assert result.status is SelfUpdateStatus.UPGRADE_FAILED
    assert store.read(KEY) == int(clock.now)


def test_run_now_check_only_reports_without_upgrading(store: InMemoryTimestampStore, clock: FakeClock) -> None:
    store.values[KEY] = int(clock.now)
    upgrader = FakeUpgrader()

    result = _manager(
        store,
        clock,
        mode=UpdateMode.DISABLED,
        lookup=FakeLookup("0.2.1"),
        upgrader=upgrader,
        confirm=ScriptedConfirm(),
    ).run_now(check_only=True)

    assert result.status is SelfUpdateStatus.UPDATE_AVAILABLE
    assert upgrader.calls == 0
    assert store.writes == [(KEY, int(clock.now))]


def _completed(returncode: int, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess[str]:
    return subprocess.CompletedProcess(["pip"], returncode, stdout, stderr)


def test_parse_available_versions() -> None:
    output = "linthis (0.3.1)\nAvailable versions: 0.3.1, 0.3.0, 0.2.0\n"

    assert parse_available_versions(output) == ["0.3.1", "0.3.0", "0.2.0"]
    assert parse_available_versions("nothing here") == []


def test_pip_lookup_returns_newest_version() -> None:
    calls: list[Sequence[str]] = []

    def runner(args: Sequence[str]) -> subprocess.CompletedProcess[str]:
        calls.append(args)
        return _completed(0, "linthis (0.4.0)\nAvailable versions: 0.4.0, 0.3.0\n")

    lookup = PipVersionLookup(runner=runner, python="python3")

    assert lookup.latest_version() == "0.4.0"
    assert list(calls[0]) == ["python3", "-m", "pip", "index", "versions", "linthis"]


@pytest.mark.parametrize(
    "completed",
    [
        _completed(1, stderr="ERROR: No matching distribution found"),
        _completed(0, "linthis\n"),
        _completed(0, "Available versions: banana\n"),
    ],
)
def test_pip_lookup_errors(completed: subprocess.CompletedProcess[str]) -> None:
    lookup = PipVersionLookup(runner=lambda args: completed)

    with pytest.raises(VersionLookupError):
        lookup.latest_version()


def test_pip_lookup_wraps_missing_interpreter() -> None:
    def runner(args: Sequence[str]) -> subprocess.CompletedProcess[str]:
        raise FileNotFoundError("python not found")

    with pytest.raises(VersionLookupError, match="unable to query"):
        PipVersionLookup(runner=runner).latest_version()


def test_pip_upgrader_raises_on_failure() -> None:
    upgrader = PipUpgrader(runner=lambda args: _completed(1, stderr="boom"), python="python3")

    with pytest.raises(SubprocessExecutionError):
        upgrader.upgrade()
