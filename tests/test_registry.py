# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for per-scope plugin registrations."""

from __future__ import annotations

import tomllib
from pathlib import Path

from linthis.config.models import PluginScope, PluginSource
from linthis.plugins.registry import PluginRegistry

CORP = PluginSource(name="corp", url="https://example.com/corp.git")


def test_scopes_map_to_their_config_files(project_root: Path, linthis_home: Path) -> None:
    registry = PluginRegistry(project_root=project_root)

    assert registry.config_path(PluginScope.PROJECT) == project_root.resolve() / ".linthis.toml"
    assert registry.config_path(PluginScope.GLOBAL) == linthis_home / "config.toml"


def test_add_list_and_get(project_root: Path) -> None:
    registry = PluginRegistry(project_root=project_root)

    assert registry.add(PluginScope.PROJECT, CORP) is False

    assert registry.list(PluginScope.PROJECT) == [CORP]
    assert registry.get(PluginScope.PROJECT, "corp") == CORP
    assert registry.get(PluginScope.PROJECT, "other") is None
    assert registry.list(PluginScope.GLOBAL) == []


def test_add_same_name_overwrites_in_place(project_root: Path) -> None:
    registry = PluginRegistry(project_root=project_root)
    registry.add(PluginScope.PROJECT, CORP)
    registry.add(PluginScope.PROJECT, PluginSource(name="extra", url="https://example.com/extra.git"))

    replaced = registry.add(PluginScope.PROJECT, CORP.model_copy(update={"ref": "release"}))

    assert replaced is True
    assert [(source.name, source.ref) for source in registry.list(PluginScope.PROJECT)] == [
        ("corp", "release"),
        ("extra", "main"),
    ]


def test_add_is_idempotent(project_root: Path) -> None:
    registry = PluginRegistry(project_root=project_root)
    registry.add(PluginScope.PROJECT, CORP)
    before = (project_root / ".linthis.toml").read_text(encoding="utf-8")

    registry.add(PluginScope.PROJECT, CORP)

    assert (project_root / ".linthis.toml").read_text(encoding="utf-8") == before


def test_add_preserves_existing_settings(project_root: Path) -> None:
    config = project_root / ".linthis.toml"
    config.write_text('# team defaults\nmax_complexity = 12\n', encoding="utf-8")

    PluginRegistry(project_root=project_root).add(PluginScope.PROJECT, CORP)

    text = config.read_text(encoding="utf-8")
    assert text.startswith("# team defaults")
    assert tomllib.loads(text)["max_complexity"] == 12


def test_global_scope_is_separate(project_root: Path, linthis_home: Path) -> None:
    registry = PluginRegistry(project_root=project_root)

    registry.add(PluginScope.GLOBAL, CORP)

    assert registry.list(PluginScope.GLOBAL) == [CORP]
    assert registry.list(PluginScope.PROJECT) == []
    assert (linthis_home / "config.toml").is_file()


def test_remove_unknown_name_is_not_fatal(project_root: Path) -> None:
    registry = PluginRegistry(project_root=project_root)

    missing_file = registry.remove(PluginScope.PROJECT, "corp")
    registry.add(PluginScope.PROJECT, CORP)
    missing_name = registry.remove(PluginScope.PROJECT, "other")

    assert missing_file.found is False
    assert missing_name.found is False
    assert registry.list(PluginScope.PROJECT) == [CORP]


def test_remove_registered_plugin(project_root: Path) -> None:
    registry = PluginRegistry(project_root=project_root)
    registry.add(PluginScope.PROJECT, CORP)

    outcome = registry.remove(PluginScope.PROJECT, "corp")

    assert outcome.found is True
    assert outcome.path == project_root.resolve() / ".linthis.toml"
    assert registry.list(PluginScope.PROJECT) == []
