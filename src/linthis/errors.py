# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy shared by configuration, plugin and update services."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path


class LinthisError(Exception):
    """Base class for every error raised by the linthis core."""


class ConfigParseError(LinthisError):
    """Raised when a configuration document cannot be parsed or validated."""

    def __init__(self, path: Path | str | None, message: str) -> None:
        self.path = Path(path) if path is not None else None
        self.message = message
        location = f"{self.path}: " if self.path is not None else ""
        super().__init__(f"{location}{message}")


class UnknownFieldError(LinthisError):
    """Raised when a command references a configuration field that does not exist."""

    def __init__(self, field: str, known: Iterable[str]) -> None:
        self.field = field
        self.known = tuple(sorted(known))
        super().__init__(f"Unknown field '{field}'. Known fields: {', '.join(self.known)}")


class ScalarTypeError(LinthisError):
    """Raised when a scalar field receives a value of the wrong type."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field} {message}")


class PluginNotFoundError(LinthisError):
    """Raised when a plugin name is not registered in the requested scope."""

    def __init__(self, name: str, scope: str) -> None:
        self.name = name
        self.scope = scope
        super().__init__(f"Plugin '{name}' is not registered in the {scope} configuration")


class VcsTransportError(LinthisError):
    """Raised when a clone, fetch or commit lookup fails."""

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        self.message = message.strip()
        super().__init__(f"git operation failed for '{url}': {self.message or 'unknown error'}")


class VersionLookupError(LinthisError):
    """Raised when the latest published version cannot be determined."""


class CacheCorruptionError(LinthisError):
    """Raised when a cached plugin checkout fails validation."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"Invalid plugin at '{path}': {message}")


__all__ = [
    "CacheCorruptionError",
    "ConfigParseError",
    "LinthisError",
    "PluginNotFoundError",
    "ScalarTypeError",
    "UnknownFieldError",
    "VcsTransportError",
    "VersionLookupError",
]
