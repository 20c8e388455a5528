# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Per-scope plugin registrations stored in the scope's configuration file."""

from __future__ import annotations

from pathlib import Path

from ..config.editor import TomlDocument
from ..config.models import PluginScope, PluginSource
from ..config.sources import ConfigSource
from ..paths import global_config_path, project_config_path
from .models import RemoveOutcome


class PluginRegistry:
    """Add, remove and list the ``[plugin] sources`` of one configuration scope.

    The registry never merges scopes; the resolver combines the project and
    global layers.
    """

    def __init__(self, *, project_root: Path | None = None, global_config: Path | None = None) -> None:
        self._project_root = (project_root or Path.cwd()).resolve()
        self._global_config = global_config

    def config_path(self, scope: PluginScope) -> Path:
        """Return the configuration file backing ``scope``."""

        if scope is PluginScope.GLOBAL:
            return self._global_config if self._global_config is not None else global_config_path()
        return project_config_path(self._project_root)

    def list(self, scope: PluginScope) -> list[PluginSource]:
        """Return the plugins registered in ``scope`` in file order."""

        path = self.config_path(scope)
        source = ConfigSource.from_file(path, rank=0)
        return source.fragment.plugin_sources or []

    def get(self, scope: PluginScope, name: str) -> PluginSource | None:
        for source in self.list(scope):
            if source.name == name:
                return source
        return None

    def add(self, scope: PluginScope, source: PluginSource) -> bool:
        """Register ``source``; an entry with the same name is overwritten in place.

        Returns ``True`` when an existing entry was replaced.
        """

        document = TomlDocument.load(self.config_path(scope))
        replaced = document.upsert_plugin_source(source)
        document.save()
        return replaced

    def remove(self, scope: PluginScope, name: str) -> RemoveOutcome:
        """Drop ``name`` from ``scope``; an unknown name reports ``found=False``."""

        path = self.config_path(scope)
        if not path.is_file():
            return RemoveOutcome(name=name, scope=scope, found=False, path=path)
        document = TomlDocument.load(path)
        if not document.remove_plugin_source(name):
            return RemoveOutcome(name=name, scope=scope, found=False, path=path)
        document.save()
        return RemoveOutcome(name=name, scope=scope, found=True, path=path)


__all__ = ["PluginRegistry"]
