# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Concrete configuration layers (defaults, TOML files, plugins, CLI overrides)."""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final

from pydantic import ValidationError

from ..constants import DEFAULT_MAX_COMPLEXITY
from ..errors import ConfigParseError
from .models import ConfigFragment

DEFAULTS_NAME: Final[str] = "defaults"
CLI_NAME: Final[str] = "cli"
DEFAULTS_RANK: Final[int] = 0


@dataclass(frozen=True, slots=True)
class LayerRanks:
    """Precedence ranks for a resolution involving ``plugin_count`` plugin layers."""

    plugin_count: int

    def plugin(self, index: int) -> int:
        """Return the rank of the plugin at ``index`` (zero based, configured order)."""

        if not 0 <= index < self.plugin_count:
            raise IndexError(f"plugin index {index} outside 0..{self.plugin_count - 1}")
        return DEFAULTS_RANK + 1 + index

    @property
    def global_file(self) -> int:
        return self.plugin_count + 1

    @property
    def project_file(self) -> int:
        return self.plugin_count + 2

    @property
    def cli(self) -> int:
        return self.plugin_count + 3


def format_validation_error(error: ValidationError) -> str:
    """Collapse a pydantic validation error into a single readable line."""

    messages: list[str] = []
    for detail in error.errors():
        location = ".".join(str(part) for part in detail.get("loc", ()) if part != "__root__")
        message = detail.get("msg", "invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


def parse_fragment(data: Mapping[str, Any], *, origin: Path | None = None) -> ConfigFragment:
    """Validate ``data`` as a configuration fragment.

    Raises:
        ConfigParseError: When a value has the wrong type or a nested table
            carries unexpected keys.
    """

    try:
        return ConfigFragment.model_validate(dict(data))
    except ValidationError as exc:
        raise ConfigParseError(origin, format_validation_error(exc)) from exc


def parse_toml_text(text: str, *, origin: Path | None = None) -> dict[str, Any]:
    """Parse TOML ``text``; the parser message carries the line and column."""

    try:
        return tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigParseError(origin, f"invalid TOML: {exc}") from exc


@dataclass(frozen=True, slots=True)
class ConfigSource:
    """One configuration layer: a named, ranked and immutable fragment."""

    name: str
    rank: int
    fragment: ConfigFragment = field(default_factory=ConfigFragment)
    origin: Path | None = None

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        *,
        name: str,
        rank: int,
        origin: Path | None = None,
    ) -> ConfigSource:
        return cls(name=name, rank=rank, fragment=parse_fragment(data, origin=origin), origin=origin)

    @classmethod
    def from_text(cls, text: str, *, name: str, rank: int, origin: Path | None = None) -> ConfigSource:
        """Parse TOML ``text`` into a source."""

        return cls.from_mapping(parse_toml_text(text, origin=origin), name=name, rank=rank, origin=origin)

    @classmethod
    def from_file(cls, path: Path, *, rank: int, name: str | None = None) -> ConfigSource:
        """Load the TOML document at ``path``; a missing file yields an empty layer."""

        label = name or str(path)
        if not path.is_file():
            return cls(name=label, rank=rank, origin=path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigParseError(path, f"unable to read file: {exc}") from exc
        return cls.from_text(text, name=label, rank=rank, origin=path)

    @classmethod
    def defaults(cls) -> ConfigSource:
        """Return the built-in defaults layer."""

        return cls(
            name=DEFAULTS_NAME,
            rank=DEFAULTS_RANK,
            fragment=ConfigFragment(max_complexity=DEFAULT_MAX_COMPLEXITY),
        )

    @classmethod
    def cli_overrides(cls, fragment: ConfigFragment, *, rank: int) -> ConfigSource:
        return cls(name=CLI_NAME, rank=rank, fragment=fragment)

    def warnings(self) -> list[str]:
        """Return warnings describing keys this layer ignored."""

        return [f"{self.name}: unknown key '{key}' ignored" for key in self.fragment.unknown_keys()]

    def describe(self) -> str:
        if self.origin is not None:
            return f"{self.name} ({self.origin})"
        return self.name


__all__ = [
    "CLI_NAME",
    "ConfigSource",
    "DEFAULTS_NAME",
    "DEFAULTS_RANK",
    "LayerRanks",
    "format_validation_error",
    "parse_fragment",
    "parse_toml_text",
]
