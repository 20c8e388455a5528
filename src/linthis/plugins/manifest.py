# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Plugin manifest (``linthis-plugin.toml``) parsing and validation."""

from __future__ import annotations

import tomllib
from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import Any, Final

import tomlkit
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config.sources import format_validation_error
from ..constants import MANIFEST_FILENAME, PLUGIN_CONFIG_FILENAME
from ..errors import CacheCorruptionError
from ..filesystem import is_within

LANGUAGE_KEY_PREFIX: Final[str] = "language."


class PluginAuthor(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    email: str | None = None


class PluginMetadata(BaseModel):
    """The ``[plugin]`` table of a manifest."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    version: str
    description: str = ""
    linthis_version: str | None = None
    languages: list[str] = Field(default_factory=list)
    license: str | None = None
    authors: list[PluginAuthor] = Field(default_factory=list)
    config: str = PLUGIN_CONFIG_FILENAME

    @field_validator("name", "version")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("is required")
        return value.strip()


class PluginManifest(BaseModel):
    """Plugin metadata plus the per-language tool configuration files it ships.

    ``configs`` maps ``language -> tool -> path`` where ``path`` is relative to
    the plugin checkout.
    """

    model_config = ConfigDict(frozen=True)

    plugin: PluginMetadata
    configs: dict[str, dict[str, str]] = Field(default_factory=dict)

    @classmethod
    def load(cls, plugin_dir: Path) -> PluginManifest:
        """Read and parse the manifest stored in ``plugin_dir``.

        Raises:
            CacheCorruptionError: When the manifest is missing or malformed.
        """

        manifest_path = plugin_dir / MANIFEST_FILENAME
        if not manifest_path.is_file():
            raise CacheCorruptionError(plugin_dir, f"{MANIFEST_FILENAME} not found")
        try:
            text = manifest_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise CacheCorruptionError(plugin_dir, f"unable to read {MANIFEST_FILENAME}: {exc}") from exc
        return cls.parse(text, plugin_dir=plugin_dir)

    @classmethod
    def parse(cls, text: str, *, plugin_dir: Path) -> PluginManifest:
        try:
            data = tomllib.loads(text)
        except tomllib.TOMLDecodeError as exc:
            raise CacheCorruptionError(plugin_dir, f"invalid {MANIFEST_FILENAME}: {exc}") from exc
        if not isinstance(data.get("plugin"), Mapping):
            raise CacheCorruptionError(plugin_dir, "missing [plugin] section")
        payload: dict[str, Any] = {"plugin": data["plugin"], "configs": _collect_configs(data)}
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            raise CacheCorruptionError(plugin_dir, format_validation_error(exc)) from exc

    def validate_files(self, plugin_dir: Path) -> None:
        """Raise :class:`CacheCorruptionError` for a missing or escaping config file.

        Every path the manifest names, the layer file included, must resolve
        inside ``plugin_dir``.
        """

        if not is_within(plugin_dir / self.plugin.config, plugin_dir):
            raise CacheCorruptionError(plugin_dir, f"config path escapes the plugin directory: {self.plugin.config}")
        for language, tools in sorted(self.configs.items()):
            for tool, relative in sorted(tools.items()):
                if not is_within(plugin_dir / relative, plugin_dir):
                    raise CacheCorruptionError(
                        plugin_dir,
                        f"config path escapes the plugin directory: {relative} (for {language}/{tool})",
                    )
                if not (plugin_dir / relative).is_file():
                    raise CacheCorruptionError(
                        plugin_dir,
                        f"config file not found: {relative} (for {language}/{tool})",
                    )

    def config_for(self, language: str, tool: str | None = None) -> str | None:
        """Return the relative config path for ``language`` (and ``tool`` when given)."""

        tools = self.configs.get(language)
        if not tools:
            return None
        if tool is not None:
            return tools.get(tool)
        return next(iter(tools.values()))

    def supports_language(self, language: str) -> bool:
        return language in self.configs

    @classmethod
    def scaffold(cls, name: str) -> PluginManifest:
        """Return the manifest written by ``linthis plugin init``."""

        return cls(
            plugin=PluginMetadata(
                name=name,
                version="0.1.0",
                description=f"{name} configuration plugin for linthis",
                linthis_version=">=0.2.0",
                languages=["rust", "python", "typescript"],
                license="MIT",
                authors=[PluginAuthor(name="Your Name", email="you@example.com")],
            ),
        )

    def to_toml(self) -> str:
        document = tomlkit.document()
        plugin = tomlkit.table()
        for key, value in self.plugin.model_dump(exclude_none=True).items():
            if key == "authors":
                authors = tomlkit.array()
                for author in value:
                    entry = tomlkit.inline_table()
                    entry.update(author)
                    authors.append(entry)
                plugin[key] = authors
            else:
                plugin[key] = value
        document["plugin"] = plugin
        if self.configs:
            configs = tomlkit.table()
            for language, tools in self.configs.items():
                language_table = tomlkit.table()
                language_table.update(tools)
                configs[language] = language_table
            document["configs"] = configs
        return tomlkit.dumps(document)


def _language_sections(data: Mapping[str, Any]) -> Iterator[tuple[str, Any]]:
    """Yield ``(language, section)`` for both spellings of the extended form.

    ``[language.python.tools.ruff]`` nests under ``language`` while
    ``["language.python".tools.ruff]`` is a single dotted top-level key.
    """

    nested = data.get("language")
    if isinstance(nested, Mapping):
        yield from ((str(language), section) for language, section in nested.items())
    for key, section in data.items():
        if key.startswith(LANGUAGE_KEY_PREFIX) and len(key) > len(LANGUAGE_KEY_PREFIX):
            yield key[len(LANGUAGE_KEY_PREFIX) :], section


def _collect_configs(data: Mapping[str, Any]) -> dict[str, dict[str, str]]:
    configs: dict[str, dict[str, str]] = {}
    raw_configs = data.get("configs")
    if isinstance(raw_configs, Mapping):
        for language, tools in raw_configs.items():
            if isinstance(tools, Mapping):
                configs[str(language)] = {str(tool): str(path) for tool, path in tools.items()}
    # Extended form: tools.<tool>.files = [...], paths relative to <lang>/.
    for language, section in _language_sections(data):
        tools = section.get("tools") if isinstance(section, Mapping) else None
        if not isinstance(tools, Mapping):
            continue
        for tool, tool_config in tools.items():
            files = tool_config.get("files") if isinstance(tool_config, Mapping) else None
            if isinstance(files, list) and files and isinstance(files[0], str):
                configs.setdefault(language, {}).setdefault(str(tool), f"{language}/{files[0]}")
    return configs


__all__ = ["PluginAuthor", "PluginManifest", "PluginMetadata"]
