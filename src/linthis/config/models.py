# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models for the linthis resolution engine."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Final

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictInt,
    StrictStr,
    field_validator,
    model_validator,
)

from ..constants import BUILTIN_PLUGINS, DEFAULT_INTERVAL_DAYS, DEFAULT_PLUGIN_REF

PositiveInt = Annotated[StrictInt, Field(gt=0)]


class Preset(str, Enum):
    """Enumerate the formatting presets a project may select."""

    GOOGLE = "google"
    STANDARD = "standard"
    AIRBNB = "airbnb"


class UpdateMode(str, Enum):
    """Enumerate how a periodic background check reacts when it becomes due.

    The same enumeration drives both the self-update and the plugin auto-sync
    behaviours.
    """

    AUTO = "auto"
    PROMPT = "prompt"
    DISABLED = "disabled"


class PluginScope(str, Enum):
    """Configuration context a plugin registration belongs to."""

    PROJECT = "project"
    GLOBAL = "global"


def name_from_url(url: str) -> str:
    """Return a short plugin name derived from a git URL.

    ``https://github.com/org/linthis-config.git`` and
    ``git@github.com:org/linthis-config.git`` both yield ``linthis-config``.
    """

    trimmed = url.strip().rstrip("/")
    if trimmed.endswith(".git"):
        trimmed = trimmed[: -len(".git")]
    tail = trimmed.replace(":", "/").rsplit("/", 1)[-1]
    return tail or "unknown"


def looks_like_url(value: str) -> bool:
    """Return ``True`` when ``value`` is a git URL rather than a plugin alias."""

    return "://" in value or value.startswith("git@") or value.startswith("/")


class PluginSource(BaseModel):
    """A git-hosted configuration plugin registered under a unique name."""

    model_config = ConfigDict(frozen=True)

    name: StrictStr
    url: StrictStr
    ref: StrictStr = DEFAULT_PLUGIN_REF

    @model_validator(mode="before")
    @classmethod
    def _resolve_builtin_alias(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        payload = dict(data)
        if payload.get("url"):
            return payload
        name = payload.get("name")
        if isinstance(name, str) and name in BUILTIN_PLUGINS:
            payload["url"] = BUILTIN_PLUGINS[name]
            return payload
        raise ValueError(f"plugin '{name}' has no url and is not a built-in plugin ({', '.join(BUILTIN_PLUGINS)})")

    @field_validator("name", "url", "ref")
    @classmethod
    def _require_text(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("must not be empty")
        return stripped

    @classmethod
    def from_spec(cls, spec: str, *, name: str | None = None, ref: str | None = None) -> PluginSource:
        """Build a source from a URL or built-in alias as typed on the command line."""

        payload: dict[str, str] = {}
        if looks_like_url(spec):
            payload["url"] = spec
            payload["name"] = name or name_from_url(spec)
        else:
            payload["name"] = name or spec
            if spec in BUILTIN_PLUGINS:
                payload["url"] = BUILTIN_PLUGINS[spec]
        if ref:
            payload["ref"] = ref
        return cls.model_validate(payload)

    def to_toml_table(self) -> dict[str, str]:
        """Return the ``{name, url, ref}`` mapping written to configuration files."""

        return {"name": self.name, "url": self.url, "ref": self.ref}


class PeriodicSettings(BaseModel):
    """Effective schedule for one periodic background behaviour."""

    model_config = ConfigDict(validate_assignment=True)

    enabled: bool = True
    mode: UpdateMode = UpdateMode.PROMPT
    interval_days: PositiveInt = DEFAULT_INTERVAL_DAYS

    @property
    def effective_mode(self) -> UpdateMode:
        """Return the mode, folding ``enabled = false`` into ``disabled``."""

        return self.mode if self.enabled else UpdateMode.DISABLED


class PeriodicFragment(BaseModel):
    """Partially populated :class:`PeriodicSettings` contributed by one layer."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    enabled: StrictBool | None = None
    mode: UpdateMode | None = None
    interval_days: PositiveInt | None = None


class PluginSection(BaseModel):
    """The ``[plugin]`` table of a configuration file."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    sources: list[PluginSource] = Field(default_factory=list)


class ConfigFragment(BaseModel):
    """One layer's partial view of :class:`Config`; ``None`` means "not defined here"."""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    languages: list[StrictStr] | None = None
    includes: list[StrictStr] | None = None
    excludes: list[StrictStr] | None = Field(default=None, validation_alias=AliasChoices("excludes", "exclude"))
    max_complexity: PositiveInt | None = None
    preset: Preset | None = None
    verbose: StrictBool | None = None
    plugin: PluginSection | None = Field(default=None, validation_alias=AliasChoices("plugin", "plugins"))
    self_auto_update: PeriodicFragment | None = None
    plugin_auto_sync: PeriodicFragment | None = None

    @model_validator(mode="before")
    @classmethod
    def _fold_legacy_excludes(cls, data: Any) -> Any:
        # Files may carry both the legacy ``exclude`` key and ``excludes``.
        if isinstance(data, dict) and "exclude" in data and "excludes" in data:
            payload = dict(data)
            legacy = payload.pop("exclude")
            current = payload["excludes"]
            if isinstance(legacy, list) and isinstance(current, list):
                payload["excludes"] = [*current, *legacy]
            return payload
        return data

    @property
    def plugin_sources(self) -> list[PluginSource] | None:
        return list(self.plugin.sources) if self.plugin is not None else None

    def unknown_keys(self) -> list[str]:
        """Return top-level keys that are not part of the configuration schema."""

        return sorted((self.model_extra or {}).keys())

    @classmethod
    def from_overrides(
        cls,
        *,
        plugin_sources: list[PluginSource] | None = None,
        **values: Any,
    ) -> ConfigFragment:
        """Build a fragment from keyword overrides, ignoring ``None`` values."""

        payload = {key: value for key, value in values.items() if value is not None}
        if plugin_sources is not None:
            payload["plugin"] = PluginSection(sources=plugin_sources)
        return cls.model_validate(payload)


class Config(BaseModel):
    """Merged, effective settings for one run."""

    model_config = ConfigDict(validate_assignment=True)

    languages: list[str] = Field(default_factory=list)
    includes: list[str] = Field(default_factory=list)
    excludes: list[str] = Field(default_factory=list)
    max_complexity: PositiveInt | None = None
    preset: Preset | None = None
    verbose: bool | None = None
    plugin_sources: list[PluginSource] = Field(default_factory=list)
    self_auto_update: PeriodicSettings = Field(default_factory=PeriodicSettings)
    plugin_auto_sync: PeriodicSettings = Field(default_factory=PeriodicSettings)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-compatible representation of the configuration."""

        return self.model_dump(mode="json")


ARRAY_FIELDS: Final[tuple[str, ...]] = ("languages", "includes", "excludes")
SCALAR_FIELDS: Final[tuple[str, ...]] = ("max_complexity", "preset", "verbose")
PERIODIC_SECTIONS: Final[tuple[str, ...]] = ("self_auto_update", "plugin_auto_sync")


__all__ = [
    "ARRAY_FIELDS",
    "Config",
    "ConfigFragment",
    "PERIODIC_SECTIONS",
    "PeriodicFragment",
    "PeriodicSettings",
    "PluginScope",
    "PluginSection",
    "PluginSource",
    "Preset",
    "SCALAR_FIELDS",
    "UpdateMode",
    "looks_like_url",
    "name_from_url",
]
