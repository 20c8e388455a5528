# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from linthis.timestamps import InMemoryTimestampStore

from .fakes import FakeClock, FakeVcs


@pytest.fixture(autouse=True)
def linthis_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate state, global config and plugin cache under a temporary home."""

    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("LINTHIS_HOME", str(home))
    monkeypatch.setenv("LINTHIS_NO_UPDATE_CHECK", "1")
    return home


@pytest.fixture
def project_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    monkeypatch.chdir(root)
    return root


@pytest.fixture
def vcs() -> FakeVcs:
    return FakeVcs()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(1_700_000_000)


@pytest.fixture
def store() -> InMemoryTimestampStore:
    return InMemoryTimestampStore()
