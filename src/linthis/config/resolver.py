# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Layered configuration merging with predictable precedence and traceability."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from operator import attrgetter
from pathlib import Path
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

from ..errors import CacheCorruptionError, ConfigParseError
from ..logging import info, warn
from ..paths import global_config_path, project_config_path
from .models import (
    ARRAY_FIELDS,
    PERIODIC_SECTIONS,
    SCALAR_FIELDS,
    Config,
    ConfigFragment,
    PeriodicFragment,
    PluginScope,
    PluginSource,
)
from .sources import ConfigSource, LayerRanks


class FieldUpdate(BaseModel):
    """Description of a single configuration field mutation."""

    model_config = ConfigDict(validate_assignment=True)

    field: str
    source: str
    value: Any


class ConfigLoadResult(BaseModel):
    """Container bundling a resolved config with provenance metadata."""

    model_config = ConfigDict(validate_assignment=True)

    config: Config
    updates: list[FieldUpdate] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    snapshots: dict[str, dict[str, Any]] = Field(default_factory=dict)

    def source_of(self, field_name: str) -> str | None:
        """Return the name of the last layer that changed ``field_name``."""

        for update in reversed(self.updates):
            if update.field == field_name:
                return update.source
        return None


def union_preserving_order(current: Sequence[str], incoming: Iterable[str]) -> list[str]:
    """Return ``current`` extended with unseen ``incoming`` values, first-seen order kept."""

    merged: list[str] = []
    seen: set[str] = set()
    for value in (*current, *incoming):
        if value in seen:
            continue
        seen.add(value)
        merged.append(value)
    return merged


def merge_plugin_sources(current: Sequence[PluginSource], incoming: Iterable[PluginSource]) -> list[PluginSource]:
    """Merge plugin sources by name; a later entry replaces an earlier one in place."""

    merged = list(current)
    positions = {source.name: index for index, source in enumerate(merged)}
    for source in incoming:
        if source.name in positions:
            merged[positions[source.name]] = source
        else:
            positions[source.name] = len(merged)
            merged.append(source)
    return merged


@dataclass(slots=True)
class _Accumulator:
    """Mutable merge state; converted into :class:`Config` once every layer is applied."""

    values: dict[str, Any] = field(
        default_factory=lambda: {
            **{name: [] for name in ARRAY_FIELDS},
            **{name: None for name in SCALAR_FIELDS},
            "plugin_sources": [],
        },
    )
    periodic: dict[str, dict[str, Any]] = field(default_factory=lambda: {name: {} for name in PERIODIC_SECTIONS})

    def apply(self, fragment: ConfigFragment, *, source: str) -> list[FieldUpdate]:
        updates: list[FieldUpdate] = []
        for name in ARRAY_FIELDS:
            incoming = getattr(fragment, name)
            if incoming is None:
                continue
            merged = union_preserving_order(self.values[name], incoming)
            if merged != self.values[name]:
                self.values[name] = merged
                updates.append(FieldUpdate(field=name, source=source, value=list(merged)))
        for name in SCALAR_FIELDS:
            incoming = getattr(fragment, name)
            if incoming is None or incoming == self.values[name]:
                continue
            self.values[name] = incoming
            updates.append(FieldUpdate(field=name, source=source, value=_plain(incoming)))
        if (sources := fragment.plugin_sources) is not None:
            merged_sources = merge_plugin_sources(self.values["plugin_sources"], sources)
            if merged_sources != self.values["plugin_sources"]:
                self.values["plugin_sources"] = merged_sources
                updates.append(
                    FieldUpdate(
                        field="plugin_sources",
                        source=source,
                        value=[entry.to_toml_table() for entry in merged_sources],
                    ),
                )
        for section in PERIODIC_SECTIONS:
            periodic: PeriodicFragment | None = getattr(fragment, section)
            if periodic is None:
                continue
            target = self.periodic[section]
            for key, value in periodic.model_dump(exclude_none=True).items():
                if target.get(key) == value:
                    continue
                target[key] = value
                updates.append(FieldUpdate(field=f"{section}.{key}", source=source, value=_plain(value)))
        return updates

    def build(self) -> Config:
        payload = dict(self.values)
        for section, settings in self.periodic.items():
            payload[section] = dict(settings)
        return Config.model_validate(payload)


def _plain(value: Any) -> Any:
    return getattr(value, "value", value)


class ConfigResolver:
    """Merge an ordered collection of :class:`ConfigSource` layers into one :class:`Config`."""

    def resolve(self, sources: Iterable[ConfigSource]) -> Config:
        """Return the effective configuration for ``sources``."""

        return self.resolve_with_trace(sources).config

    def resolve_with_trace(self, sources: Iterable[ConfigSource]) -> ConfigLoadResult:
        """Return the effective configuration plus provenance details.

        Layers are applied in ascending rank; layers sharing a rank keep their
        relative input order. Array fields are unioned, defined scalars replace
        the accumulated value, and plugin sources are merged by name.
        """

        ordered = sorted(sources, key=attrgetter("rank"))
        accumulator = _Accumulator()
        updates: list[FieldUpdate] = []
        warnings: list[str] = []
        snapshots: dict[str, dict[str, Any]] = {}
        for source in ordered:
            updates.extend(accumulator.apply(source.fragment, source=source.name))
            warnings.extend(source.warnings())
            snapshots[source.name] = accumulator.build().to_dict()
        config = accumulator.build()
        snapshots["final"] = config.to_dict()
        return ConfigLoadResult(config=config, updates=updates, warnings=warnings, snapshots=snapshots)


class PluginLayerProvider(Protocol):
    """Locate the configuration file a cached plugin contributes."""

    def layer_config_path(self, source: PluginSource, scope: PluginScope) -> Path | None:
        """Return the plugin's config file, ``None`` when the plugin is not cached.

        Raises:
            CacheCorruptionError: When the cached checkout fails validation.
        """
        ...


@dataclass(frozen=True, slots=True)
class ScopedPluginSource:
    """A plugin source together with the scope that declared it."""

    source: PluginSource
    scope: PluginScope


class ConfigLoader:
    """Build the ordered layer list for a project root and resolve it."""

    def __init__(
        self,
        *,
        project_root: Path,
        global_config: Path | None = None,
        project_config: Path | None = None,
        cli_overrides: ConfigFragment | None = None,
        plugins: PluginLayerProvider | None = None,
        resolver: ConfigResolver | None = None,
    ) -> None:
        self._project_root = project_root.resolve()
        self._global_config = global_config if global_config is not None else global_config_path()
        if project_config is None:
            project_config = project_config_path(self._project_root)
        self._project_config = project_config
        self._cli_overrides = cli_overrides or ConfigFragment()
        self._plugins = plugins
        self._resolver = resolver or ConfigResolver()

    @property
    def global_config(self) -> Path:
        return self._global_config

    @property
    def project_config(self) -> Path:
        return self._project_config

    def declared_plugins(self) -> list[ScopedPluginSource]:
        """Return plugin sources declared by the global, project and CLI layers, merged by name."""

        global_source = ConfigSource.from_file(self._global_config, rank=0)
        project_source = ConfigSource.from_file(self._project_config, rank=0)
        return self._declared_plugins(global_source.fragment, project_source.fragment)

    def _declared_plugins(
        self,
        global_fragment: ConfigFragment,
        project_fragment: ConfigFragment,
    ) -> list[ScopedPluginSource]:
        layers = (
            (global_fragment, PluginScope.GLOBAL),
            (project_fragment, PluginScope.PROJECT),
            (self._cli_overrides, PluginScope.PROJECT),
        )
        merged: list[PluginSource] = []
        scopes: dict[str, PluginScope] = {}
        for fragment, scope in layers:
            if (sources := fragment.plugin_sources) is None:
                continue
            merged = merge_plugin_sources(merged, sources)
            for source in sources:
                scopes[source.name] = scope
        return [ScopedPluginSource(source=source, scope=scopes[source.name]) for source in merged]

    def build_sources(self) -> tuple[list[ConfigSource], list[str]]:
        """Return the ordered layers and any warnings raised while assembling them."""

        global_fragment = ConfigSource.from_file(self._global_config, rank=0).fragment
        project_fragment = ConfigSource.from_file(self._project_config, rank=0).fragment
        declared = self._declared_plugins(global_fragment, project_fragment)

        warnings: list[str] = []
        plugin_layers: list[ConfigSource] = []
        for entry in declared:
            path = self._plugin_layer_path(entry, warnings)
            if path is None:
                continue
            name = entry.source.name
            try:
                layer = ConfigSource.from_file(path, rank=0, name=f"plugin:{name}")
            except ConfigParseError as exc:
                self._exclude_plugin(name, str(exc), warnings)
                continue
            plugin_layers.append(layer)

        ranks = LayerRanks(plugin_count=len(plugin_layers))
        sources: list[ConfigSource] = [ConfigSource.defaults()]
        for index, layer in enumerate(plugin_layers):
            sources.append(replace(layer, rank=ranks.plugin(index)))
        sources.append(
            ConfigSource(
                name=str(self._global_config),
                rank=ranks.global_file,
                fragment=global_fragment,
                origin=self._global_config,
            ),
        )
        sources.append(
            ConfigSource(
                name=str(self._project_config),
                rank=ranks.project_file,
                fragment=project_fragment,
                origin=self._project_config,
            ),
        )
        sources.append(ConfigSource.cli_overrides(self._cli_overrides, rank=ranks.cli))
        return sources, warnings

    def _plugin_layer_path(self, entry: ScopedPluginSource, warnings: list[str]) -> Path | None:
        if self._plugins is None:
            return None
        name = entry.source.name
        try:
            path = self._plugins.layer_config_path(entry.source, entry.scope)
        except CacheCorruptionError as exc:
            self._exclude_plugin(name, exc.message, warnings)
            return None
        if path is None:
            info(f"Plugin '{name}' is not cached yet; run 'linthis plugin sync' to fetch it", use_emoji=True)
        return path

    @staticmethod
    def _exclude_plugin(name: str, reason: str, warnings: list[str]) -> None:
        message = f"Plugin '{name}' excluded: {reason}"
        warn(message, use_emoji=True)
        warnings.append(message)

    def load(self) -> Config:
        """Return the resolved configuration without provenance metadata."""

        return self.load_with_trace().config

    def load_with_trace(self) -> ConfigLoadResult:
        sources, warnings = self.build_sources()
        result = self._resolver.resolve_with_trace(sources)
        if warnings:
            result.warnings = [*warnings, *result.warnings]
        return result


def load_config(project_root: Path, *, plugins: PluginLayerProvider | None = None) -> Config:
    """Load configuration for ``project_root`` using the default layers."""
    return ConfigLoader(project_root=project_root, plugins=plugins).load()


__all__ = [
    "ConfigLoadResult",
    "ConfigLoader",
    "ConfigResolver",
    "FieldUpdate",
    "PluginLayerProvider",
    "ScopedPluginSource",
    "load_config",
    "merge_plugin_sources",
    "union_preserving_order",
]
