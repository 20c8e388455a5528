# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Helper services for the configuration CLI commands."""

from __future__ import annotations

import json
from collections.abc import Sequence
from pathlib import Path
from typing import Final

from ....config.editor import TomlDocument
from ....config.models import PluginScope
from ....config.resolver import ConfigLoader, ConfigLoadResult, FieldUpdate
from ....errors import LinthisError
from ....paths import global_config_path, project_config_path
from ...core import services
from ...core.shared import CLIError, CLILogger

JSON_FORMAT: Final[str] = "json"


def config_path_for(scope: PluginScope, *, project_root: Path | None = None) -> Path:
    """Return the configuration file edited for ``scope``."""

    if scope is PluginScope.GLOBAL:
        return global_config_path()
    return project_config_path((project_root or Path.cwd()).resolve())


def open_document(scope: PluginScope, *, logger: CLILogger, must_exist: bool) -> TomlDocument:
    """Load the scope's configuration file for editing.

    Raises:
        CLIError: When the file is required but missing, or cannot be parsed.
    """

    path = config_path_for(scope)
    if must_exist and not path.is_file():
        message = f"Config file does not exist: {path}"
        logger.fail(message)
        raise CLIError(message)
    try:
        return TomlDocument.load(path)
    except LinthisError as exc:
        logger.fail(str(exc))
        raise CLIError(str(exc)) from exc


def save_document(document: TomlDocument, *, logger: CLILogger) -> Path:
    """Validate and write ``document``, converting failures into :class:`CLIError`."""

    try:
        return document.save()
    except LinthisError as exc:
        logger.fail(f"Refusing to write invalid configuration: {exc}")
        raise CLIError(str(exc)) from exc
    except OSError as exc:
        logger.fail(f"Unable to write {document.path}: {exc}")
        raise CLIError(str(exc)) from exc


def load_config_with_trace(root: Path, *, logger: CLILogger) -> ConfigLoadResult:
    """Resolve the effective configuration for ``root`` including plugin layers."""

    plugin_services = services.build_plugin_services(logger, project_root=root)
    loader = ConfigLoader(project_root=root, plugins=plugin_services.cache)
    try:
        return loader.load_with_trace()
    except LinthisError as exc:
        logger.fail(str(exc))
        raise CLIError(str(exc)) from exc


def render_config(result: ConfigLoadResult) -> str:
    return json.dumps(result.config.to_dict(), indent=2, sort_keys=True)


def summarise_updates(updates: Sequence[FieldUpdate]) -> list[str]:
    """Return human readable descriptions of field updates."""

    return [f"- {update.field} <- {update.source} -> {json.dumps(update.value, default=str)}" for update in updates]


__all__ = [
    "JSON_FORMAT",
    "config_path_for",
    "load_config_with_trace",
    "open_document",
    "render_config",
    "save_document",
    "summarise_updates",
]
