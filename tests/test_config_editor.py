# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for comment-preserving configuration editing."""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from linthis.config.editor import TomlDocument, coerce_scalar, ensure_array_field, format_value
from linthis.config.models import PluginSource
from linthis.errors import ConfigParseError, ScalarTypeError, UnknownFieldError

COMMENTED = """\
# Project lint settings
languages = ["python"]  # primary language

# keep generated code out
excludes = ["build"]
"""


def test_missing_file_loads_as_empty_document(tmp_path: Path) -> None:
    document = TomlDocument.load(tmp_path / "absent.toml")

    assert list(document.items()) == []
    assert document.path == tmp_path / "absent.toml"


def test_array_add_keeps_comments_and_skips_duplicates(tmp_path: Path) -> None:
    path = tmp_path / ".linthis.toml"
    path.write_text(COMMENTED, encoding="utf-8")
    document = TomlDocument.load(path)

    added = document.array_add("languages", ["rust", "python", "rust"])
    document.save()

    text = path.read_text(encoding="utf-8")
    assert added == ["rust"]
    assert "# Project lint settings" in text
    assert "# primary language" in text
    assert "# keep generated code out" in text
    assert tomllib.loads(text)["languages"] == ["python", "rust"]


def test_array_add_twice_is_idempotent(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    document = TomlDocument.load(path)
    document.array_add("includes", ["src/**"])
    document.save()
    first = path.read_text(encoding="utf-8")

    again = TomlDocument.load(path)
    assert again.array_add("includes", ["src/**"]) == []
    again.save()

    assert path.read_text(encoding="utf-8") == first


def test_array_remove_reports_removed_values() -> None:
    document = TomlDocument.loads('excludes = ["a", "b", "a", "c"]\n')

    removed = document.array_remove("excludes", ["a", "zzz"])

    assert removed == ["a", "a"]
    assert document.get("excludes") == ["b", "c"]
    assert document.array_remove("languages", ["x"]) == []


def test_array_helpers_follow_legacy_exclude_key() -> None:
    document = TomlDocument.loads('exclude = ["vendor", "build"]\n')

    assert document.array_key("excludes") == "exclude"
    assert document.array_remove("excludes", ["vendor"]) == ["vendor"]
    assert document.array_add("excludes", ["dist"]) == ["dist"]
    assert document.get("exclude") == ["build", "dist"]
    assert "excludes" not in document
    document.array_clear("excludes")
    assert document.get("exclude") == []
    assert TomlDocument.loads("").array_key("excludes") == "excludes"


def test_array_clear_and_unset() -> None:
    document = TomlDocument.loads('languages = ["go"]\npreset = "google"\n')

    document.array_clear("languages")

    assert document.get("languages") == []
    assert document.unset("preset") is True
    assert document.unset("preset") is False
    assert "preset" not in document


def test_set_creates_nested_tables() -> None:
    document = TomlDocument.loads("# header\n")

    document.set("plugin_auto_sync.mode", "auto")
    document.set("plugin_auto_sync.interval_days", 3)

    assert document.get("plugin_auto_sync") == {"mode": "auto", "interval_days": 3}
    assert document.get("plugin_auto_sync.mode") == "auto"
    assert document.to_text().startswith("# header")


def test_set_through_scalar_is_rejected() -> None:
    document = TomlDocument.loads("verbose = true\n")

    with pytest.raises(ScalarTypeError):
        document.set("verbose.deep", 1)


def test_array_operation_on_scalar_is_rejected() -> None:
    document = TomlDocument.loads("languages = 3\n")

    with pytest.raises(ScalarTypeError, match="not an array"):
        document.array_add("languages", ["python"])


def test_save_refuses_invalid_document(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("max_complexity = 10\n", encoding="utf-8")
    document = TomlDocument.load(path)
    document.set("max_complexity", 0)

    with pytest.raises(ConfigParseError):
        document.save()

    assert path.read_text(encoding="utf-8") == "max_complexity = 10\n"


def test_invalid_toml_raises_parse_error(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("languages = [\n", encoding="utf-8")

    with pytest.raises(ConfigParseError):
        TomlDocument.load(path)


def test_upsert_plugin_source_adds_then_replaces() -> None:
    document = TomlDocument.loads("")
    first = PluginSource(name="corp", url="https://example.com/corp.git")

    assert document.upsert_plugin_source(first) is False
    assert document.upsert_plugin_source(first.model_copy(update={"ref": "v2"})) is True

    assert document.plugin_sources() == [{"name": "corp", "url": "https://example.com/corp.git", "ref": "v2"}]
    assert document.validate().fragment.plugin_sources == [first.model_copy(update={"ref": "v2"})]


def test_upsert_plugin_source_extends_array_of_tables() -> None:
    document = TomlDocument.loads(
        '[[plugin.sources]]\nname = "one"\nurl = "https://example.com/one.git"\nref = "main"\n',
    )

    document.upsert_plugin_source(PluginSource(name="two", url="https://example.com/two.git"))

    parsed = tomllib.loads(document.to_text())
    assert [entry["name"] for entry in parsed["plugin"]["sources"]] == ["one", "two"]


def test_upsert_uses_plugins_alias_table_when_present() -> None:
    document = TomlDocument.loads('[plugins]\nsources = [{ name = "a", url = "https://example.com/a.git" }]\n')

    document.upsert_plugin_source(PluginSource(name="b", url="https://example.com/b.git"))

    parsed = tomllib.loads(document.to_text())
    assert "plugin" not in parsed
    assert [entry["name"] for entry in parsed["plugins"]["sources"]] == ["a", "b"]


def test_remove_plugin_source() -> None:
    document = TomlDocument.loads('[plugin]\nsources = [{ name = "a", url = "https://example.com/a.git" }]\n')

    assert document.remove_plugin_source("missing") is False
    assert document.remove_plugin_source("a") is True
    assert document.plugin_sources() == []


def test_ensure_array_field() -> None:
    assert ensure_array_field("exclude") == "excludes"
    assert ensure_array_field("languages") == "languages"
    with pytest.raises(UnknownFieldError, match="Known fields"):
        ensure_array_field("preset")


@pytest.mark.parametrize(
    ("field", "raw", "expected"),
    [
        ("max_complexity", "25", 25),
        ("verbose", "yes", True),
        ("verbose", "OFF", False),
        ("preset", "airbnb", "airbnb"),
        ("self_auto_update.mode", "disabled", "disabled"),
        ("plugin_auto_sync.interval_days", "14", 14),
        ("plugin_auto_sync.enabled", "false", False),
    ],
)
def test_coerce_scalar_accepts_valid_values(field: str, raw: str, expected: object) -> None:
    assert coerce_scalar(field, raw) == expected


@pytest.mark.parametrize(
    ("field", "raw", "message"),
    [
        ("max_complexity", "abc", "must be a positive integer"),
        ("max_complexity", "-1", "must be a positive integer"),
        ("verbose", "maybe", "must be true or false"),
        ("preset", "pep8", "must be one of: google, standard, airbnb"),
        ("self_auto_update.mode", "often", "must be one of: auto, prompt, disabled"),
    ],
)
def test_coerce_scalar_rejects_invalid_values(field: str, raw: str, message: str) -> None:
    with pytest.raises(ScalarTypeError, match=message):
        coerce_scalar(field, raw)


def test_coerce_scalar_rejects_unknown_field() -> None:
    with pytest.raises(UnknownFieldError):
        coerce_scalar("languages", "python")


def test_format_value_renders_toml_like_text() -> None:
    assert format_value(["a", "b"]) == '["a", "b"]'
    assert format_value(True) == "true"
    assert format_value(20) == "20"
    assert format_value({"mode": "auto"}) == '{ mode = "auto" }'
