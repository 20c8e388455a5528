# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Comment-preserving edits of linthis TOML configuration files.

The resolver reads configuration through :mod:`tomllib` and pydantic; this
module is the only writer. Every save re-parses and validates the rendered
document before it atomically replaces the file, so a rejected edit never
reaches disk.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path
from typing import Any, Final

import tomlkit
from tomlkit.exceptions import TOMLKitError
from tomlkit.items import AoT, Array
from tomlkit.toml_document import TOMLDocument

from ..errors import ConfigParseError, ScalarTypeError, UnknownFieldError
from ..filesystem import atomic_write_text
from .models import ARRAY_FIELDS, PERIODIC_SECTIONS, PluginSource, Preset, UpdateMode
from .sources import ConfigSource

PLUGIN_TABLE: Final[str] = "plugin"
PLUGIN_TABLE_ALIASES: Final[tuple[str, ...]] = ("plugin", "plugins")
SOURCES_KEY: Final[str] = "sources"
LEGACY_ARRAY_KEYS: Final[dict[str, str]] = {"excludes": "exclude"}

_TRUE_WORDS: Final[frozenset[str]] = frozenset({"true", "yes", "on", "1"})
_FALSE_WORDS: Final[frozenset[str]] = frozenset({"false", "no", "off", "0"})

SCALAR_KINDS: Final[dict[str, str]] = {
    "max_complexity": "positive_int",
    "preset": "preset",
    "verbose": "bool",
    **{f"{section}.enabled": "bool" for section in PERIODIC_SECTIONS},
    **{f"{section}.mode": "mode" for section in PERIODIC_SECTIONS},
    **{f"{section}.interval_days": "positive_int" for section in PERIODIC_SECTIONS},
}


def ensure_array_field(field: str) -> str:
    """Return ``field`` when it names an array setting, else raise :class:`UnknownFieldError`."""

    normalised = "excludes" if field == "exclude" else field
    if normalised not in ARRAY_FIELDS:
        raise UnknownFieldError(field, ARRAY_FIELDS)
    return normalised


def ensure_scalar_field(field: str) -> str:
    """Return ``field`` when it names a scalar setting, else raise :class:`UnknownFieldError`."""

    if field not in SCALAR_KINDS:
        raise UnknownFieldError(field, SCALAR_KINDS)
    return field


def coerce_scalar(field: str, raw: str) -> Any:
    """Convert the command-line text ``raw`` into the typed value stored for ``field``.

    Raises:
        UnknownFieldError: When ``field`` is not a scalar setting.
        ScalarTypeError: When ``raw`` cannot be converted.
    """

    kind = SCALAR_KINDS[ensure_scalar_field(field)]
    text = raw.strip()
    if kind == "positive_int":
        try:
            number = int(text)
        except ValueError:
            raise ScalarTypeError(field, "must be a positive integer") from None
        if number <= 0:
            raise ScalarTypeError(field, "must be a positive integer")
        return number
    if kind == "bool":
        lowered = text.lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
        raise ScalarTypeError(field, "must be true or false")
    choices = Preset if kind == "preset" else UpdateMode
    allowed = [member.value for member in choices]
    if text not in allowed:
        raise ScalarTypeError(field, f"must be one of: {', '.join(allowed)}")
    return text


def format_value(value: Any) -> str:
    """Render a plain Python value the way it is written in TOML."""

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    if isinstance(value, list):
        return "[" + ", ".join(format_value(item) for item in value) + "]"
    if isinstance(value, dict):
        inner = ", ".join(f"{key} = {format_value(item)}" for key, item in value.items())
        return "{ " + inner + " }" if inner else "{}"
    return str(value)


class TomlDocument:
    """A parsed configuration file that keeps comments and layout intact."""

    def __init__(self, document: TOMLDocument, *, path: Path | None = None) -> None:
        self._document = document
        self._path = path

    @classmethod
    def load(cls, path: Path) -> TomlDocument:
        """Load ``path``; a missing file yields an empty document bound to ``path``."""

        if not path.exists():
            return cls(tomlkit.document(), path=path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigParseError(path, f"unable to read file: {exc}") from exc
        return cls.loads(text, path=path)

    @classmethod
    def loads(cls, text: str, *, path: Path | None = None) -> TomlDocument:
        try:
            document = tomlkit.parse(text)
        except TOMLKitError as exc:
            raise ConfigParseError(path, f"invalid TOML: {exc}") from exc
        return cls(document, path=path)

    @property
    def path(self) -> Path | None:
        return self._path

    def __contains__(self, field: str) -> bool:
        return self._lookup(field) is not None

    def get(self, field: str) -> Any | None:
        """Return the plain value stored at the dotted ``field`` or ``None``."""

        item = self._lookup(field)
        if item is None:
            return None
        return item.unwrap() if hasattr(item, "unwrap") else item

    def items(self) -> Iterator[tuple[str, Any]]:
        """Yield top-level keys with their plain values in document order."""

        for key, item in self._document.items():
            yield key, item.unwrap() if hasattr(item, "unwrap") else item

    def set(self, field: str, value: Any) -> None:
        """Assign ``value`` at the dotted ``field``, creating parent tables as needed."""

        *parents, key = field.split(".")
        node: Any = self._document
        for part in parents:
            child = node.get(part)
            if child is None:
                node[part] = tomlkit.table()
                child = node[part]
            elif not isinstance(child, Mapping):
                raise ScalarTypeError(field, f"cannot be set because '{part}' is not a table")
            node = child
        node[key] = value

    def unset(self, field: str) -> bool:
        """Remove ``field``; returns ``False`` when it was not present."""

        parent_field, _, key = field.rpartition(".")
        parent = self._lookup(parent_field) if parent_field else self._document
        if not isinstance(parent, Mapping) or key not in parent:
            return False
        del parent[key]
        return True

    def array_key(self, field: str) -> str:
        """Return the key holding the array for ``field`` in this document.

        A file that still spells ``excludes`` as the legacy ``exclude`` keeps
        being edited under that key.
        """

        legacy = LEGACY_ARRAY_KEYS.get(field)
        if legacy is not None and field not in self and legacy in self:
            return legacy
        return field

    def array_add(self, field: str, values: Iterable[str]) -> list[str]:
        """Append the unseen ``values`` to the array at ``field`` and return them."""

        field = self.array_key(field)
        array = self._array(field)
        if array is None:
            self.set(field, tomlkit.array())
            array = self._array(field)
        if array is None:
            raise ScalarTypeError(field, "could not be created")
        present = [str(item) for item in array]
        added: list[str] = []
        for value in values:
            if value in present:
                continue
            array.append(value)
            present.append(value)
            added.append(value)
        return added

    def array_remove(self, field: str, values: Iterable[str]) -> list[str]:
        """Remove every occurrence of ``values`` from the array at ``field``."""

        field = self.array_key(field)
        array = self._array(field)
        if array is None:
            return []
        targets = set(values)
        removed: list[str] = []
        for index in reversed(range(len(array))):
            current = str(array[index])
            if current in targets:
                del array[index]
                removed.insert(0, current)
        return removed

    def array_clear(self, field: str) -> None:
        """Replace the array at ``field`` with an empty array."""

        field = self.array_key(field)
        self.set(field, tomlkit.array())

    def plugin_sources(self) -> list[dict[str, str]]:
        """Return the raw ``{name, url, ref}`` tables listed under ``[plugin] sources``."""

        entries = self._sources_item()
        if entries is None:
            return []
        return [
            {str(key): str(value) for key, value in entry.items()} for entry in entries if isinstance(entry, Mapping)
        ]

    def upsert_plugin_source(self, source: PluginSource) -> bool:
        """Add ``source`` or update the entry with the same name in place.

        Returns ``True`` when an existing entry was overwritten.
        """

        entries = self._ensure_sources_item()
        for entry in entries:
            if isinstance(entry, Mapping) and entry.get("name") == source.name:
                entry["url"] = source.url
                entry["ref"] = source.ref
                return True
        if isinstance(entries, AoT):
            table = tomlkit.table()
            table.update(source.to_toml_table())
            entries.append(table)
        else:
            inline = tomlkit.inline_table()
            inline.update(source.to_toml_table())
            entries.append(inline)
        return False

    def remove_plugin_source(self, name: str) -> bool:
        """Drop the entry named ``name``; returns ``False`` when none matched."""

        entries = self._sources_item()
        if entries is None:
            return False
        for index, entry in enumerate(entries):
            if isinstance(entry, Mapping) and entry.get("name") == name:
                del entries[index]
                return True
        return False

    def to_text(self) -> str:
        return tomlkit.dumps(self._document)

    def validate(self) -> ConfigSource:
        """Parse the rendered document as a configuration layer.

        Raises:
            ConfigParseError: When the edited document is not a valid configuration.
        """

        label = str(self._path) if self._path is not None else "<memory>"
        return ConfigSource.from_text(self.to_text(), name=label, rank=0, origin=self._path)

    def save(self, path: Path | None = None) -> Path:
        """Validate and atomically write the document, returning the written path."""

        target = path or self._path
        if target is None:
            raise ValueError("no destination path for configuration document")
        self.validate()
        atomic_write_text(target, self.to_text())
        self._path = target
        return target

    # Internal helpers -------------------------------------------------

    def _lookup(self, field: str) -> Any | None:
        node: Any = self._document
        for part in field.split("."):
            if not isinstance(node, Mapping):
                return None
            node = node.get(part)
            if node is None:
                return None
        return node

    def _array(self, field: str) -> Array | None:
        item = self._lookup(field)
        if item is None:
            return None
        if not isinstance(item, Array):
            raise ScalarTypeError(field, "is not an array")
        return item

    def _plugin_table(self) -> Any | None:
        for name in PLUGIN_TABLE_ALIASES:
            table = self._document.get(name)
            if table is not None:
                if not isinstance(table, Mapping):
                    raise ConfigParseError(self._path, f"'{name}' is not a table")
                return table
        return None

    def _sources_item(self) -> Array | AoT | None:
        table = self._plugin_table()
        if table is None:
            return None
        entries = table.get(SOURCES_KEY)
        if entries is None:
            return None
        if not isinstance(entries, (Array, AoT)):
            raise ConfigParseError(self._path, "'plugin.sources' is not an array")
        return entries

    def _ensure_sources_item(self) -> Array | AoT:
        if (entries := self._sources_item()) is not None:
            return entries
        table = self._plugin_table()
        if table is None:
            self._document[PLUGIN_TABLE] = tomlkit.table()
            table = self._document[PLUGIN_TABLE]
        array = tomlkit.array()
        array.multiline(True)
        table[SOURCES_KEY] = array
        return table[SOURCES_KEY]


__all__ = [
    "SCALAR_KINDS",
    "TomlDocument",
    "coerce_scalar",
    "ensure_array_field",
    "ensure_scalar_field",
    "format_value",
]
