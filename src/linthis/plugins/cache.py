# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""On-disk cache of plugin checkouts with a JSON index."""

from __future__ import annotations

import hashlib
import json
import re
import shutil
import threading
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Final

from pydantic import TypeAdapter, ValidationError

from ..config.models import PluginScope, PluginSource
from ..constants import CACHE_INDEX_FILENAME
from ..errors import CacheCorruptionError, VcsTransportError
from ..filesystem import atomic_write_text, is_within
from ..logging import warn
from ..paths import plugin_cache_root
from ..periodic import Clock
from .manifest import PluginManifest
from .models import CleanChoice, CleanSelector, PluginCacheEntry, RemoteUpdate, SyncOutcome
from .vcs import DebugHook, VcsClient

INDEX_VERSION: Final[int] = 1
CORRUPT_SUFFIX: Final[str] = ".corrupt"
STAGING_SUFFIX: Final[str] = ".staging"
DIGEST_LENGTH: Final[int] = 12
_SLUG_RE: Final[re.Pattern[str]] = re.compile(r"[^A-Za-z0-9._-]+")
_ENTRIES_ADAPTER: Final[TypeAdapter[dict[str, PluginCacheEntry]]] = TypeAdapter(dict[str, PluginCacheEntry])


def slugify(name: str) -> str:
    return _SLUG_RE.sub("-", name).strip("-.") or "plugin"


def source_digest(source: PluginSource) -> str:
    """Return the short hash that keys a checkout by ``(name, url)``."""

    payload = f"{source.name}\0{source.url}".encode()
    return hashlib.sha256(payload).hexdigest()[:DIGEST_LENGTH]


class PluginCache:
    """Materialise plugin sources into per-scope directories under the cache root.

    Each checkout lives at ``<root>/<scope>/<slug(name)>-<digest>``. The index
    (``index.json``) records which directories the cache owns; only those are
    ever removed. Sync operations on the same directory are serialised by a
    per-directory lock so a thread pool can sync different plugins at once.
    """

    def __init__(
        self,
        *,
        vcs: VcsClient,
        root: Path | None = None,
        clock: Clock = time.time,
        debug: DebugHook | None = None,
        use_emoji: bool = True,
    ) -> None:
        self._vcs = vcs
        self._root = root if root is not None else plugin_cache_root()
        self._clock = clock
        self._debug = debug
        self._use_emoji = use_emoji
        self._index_lock = threading.RLock()
        self._locks_guard = threading.Lock()
        self._dir_locks: dict[str, threading.Lock] = {}

    @property
    def root(self) -> Path:
        return self._root

    @property
    def index_path(self) -> Path:
        return self._root / CACHE_INDEX_FILENAME

    def path_for(self, source: PluginSource, scope: PluginScope) -> Path:
        return self._root / scope.value / f"{slugify(source.name)}-{source_digest(source)}"

    # Index ------------------------------------------------------------

    def _index_key(self, path: Path) -> str:
        return path.relative_to(self._root).as_posix()

    def _load_index(self) -> dict[str, PluginCacheEntry]:
        path = self.index_path
        if not path.is_file():
            return {}
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(payload, dict) or payload.get("version") != INDEX_VERSION:
                raise ValueError("unsupported index layout")
            return _ENTRIES_ADAPTER.validate_python(payload.get("entries", {}))
        except (OSError, ValueError, ValidationError) as exc:
            self._quarantine_index(exc)
            return {}

    def _quarantine_index(self, exc: Exception) -> None:
        destination = self.index_path.with_name(self.index_path.name + CORRUPT_SUFFIX)
        try:
            self.index_path.replace(destination)
        except OSError as move_exc:
            warn(
                f"Plugin cache index is unreadable ({exc}) and could not be moved: {move_exc}",
                use_emoji=self._use_emoji,
            )
            return
        warn(f"Plugin cache index was corrupt ({exc}); moved to {destination}", use_emoji=self._use_emoji)

    def _save_index(self, entries: dict[str, PluginCacheEntry]) -> None:
        payload = {
            "version": INDEX_VERSION,
            "entries": {key: entry.model_dump(mode="json") for key, entry in sorted(entries.items())},
        }
        atomic_write_text(self.index_path, json.dumps(payload, indent=2) + "\n")

    def _record(self, entry: PluginCacheEntry) -> None:
        with self._index_lock:
            entries = self._load_index()
            entries[self._index_key(entry.local_path)] = entry
            self._save_index(entries)

    def _forget(self, key: str) -> None:
        with self._index_lock:
            entries = self._load_index()
            if entries.pop(key, None) is not None:
                self._save_index(entries)

    def entries(self, scope: PluginScope | None = None) -> list[PluginCacheEntry]:
        """Return recorded entries, optionally restricted to ``scope``."""

        with self._index_lock:
            entries = self._load_index()
        return [entry for _, entry in sorted(entries.items()) if scope is None or entry.scope is scope]

    def entry(self, source: PluginSource, scope: PluginScope) -> PluginCacheEntry | None:
        path = self.path_for(source, scope)
        with self._index_lock:
            return self._load_index().get(self._index_key(path))

    def _lock_for(self, path: Path) -> threading.Lock:
        key = str(path)
        with self._locks_guard:
            return self._dir_locks.setdefault(key, threading.Lock())

    # Sync -------------------------------------------------------------

    def sync(self, source: PluginSource, scope: PluginScope) -> SyncOutcome:
        """Clone or refresh ``source`` and classify the result.

        Transport errors, filesystem errors and invalid manifests are reported
        as failed outcomes; this method does not raise for them. When the ref
        changed, the previous checkout and its index entry stay in place until
        the replacement clone has succeeded.
        """

        path = self.path_for(source, scope)
        with self._lock_for(path):
            existing = self.entry(source, scope)
            try:
                if existing is not None and existing.source.ref != source.ref:
                    self._log(f"plugin={source.name} ref changed from {existing.source.ref} to {source.ref}")
                    self._replace_checkout(source, path)
                    existing = None
                else:
                    self._materialise(source, path)
                commit = self._vcs.current_commit(path)
                self._record(
                    PluginCacheEntry(
                        source=source,
                        scope=scope,
                        local_path=path,
                        last_synced_commit=commit,
                        last_synced_at=int(self._clock()),
                    ),
                )
            except VcsTransportError as exc:
                return SyncOutcome.failed(exc.message or str(exc))
            except OSError as exc:
                return SyncOutcome.failed(str(exc))
            try:
                self.check(path)
            except CacheCorruptionError as exc:
                return SyncOutcome.failed(exc.message, commit=commit)
            if existing is not None and existing.last_synced_commit == commit:
                return SyncOutcome.unchanged(commit)
            return SyncOutcome.updated(commit)

    def _replace_checkout(self, source: PluginSource, path: Path) -> None:
        staging = path.with_name(f".{path.name}{STAGING_SUFFIX}")
        self._remove_tree(staging)
        self._log(f"plugin={source.name} action=clone ref={source.ref} staging={staging}")
        try:
            self._vcs.clone(source.url, source.ref, staging)
        except VcsTransportError:
            self._remove_tree(staging)
            raise
        self._remove_tree(path)
        staging.replace(path)

    def _materialise(self, source: PluginSource, path: Path) -> None:
        if (path / ".git").exists():
            self._log(f"plugin={source.name} action=update ref={source.ref}")
            self._vcs.update(path, source.url, source.ref)
            return
        if path.exists():
            raise VcsTransportError(source.url, f"cache directory {path} exists but is not a git checkout")
        self._log(f"plugin={source.name} action=clone ref={source.ref}")
        self._vcs.clone(source.url, source.ref, path)

    def _remove_tree(self, path: Path) -> None:
        if path.exists() and is_within(path, self._root):
            shutil.rmtree(path)

    def _log(self, message: str) -> None:
        if self._debug is not None:
            self._debug(message)

    # Validation -------------------------------------------------------

    def check(self, path: Path) -> PluginManifest:
        """Return the manifest of the checkout at ``path``.

        Raises:
            CacheCorruptionError: When the manifest is missing, malformed or
                references files that do not exist.
        """

        if not path.is_dir():
            raise CacheCorruptionError(path, "plugin directory does not exist")
        manifest = PluginManifest.load(path)
        manifest.validate_files(path)
        return manifest

    def validate(self, path: Path) -> bool:
        try:
            self.check(path)
        except CacheCorruptionError:
            return False
        return True

    def config_path(
        self,
        source: PluginSource,
        scope: PluginScope,
        language: str,
        tool: str | None = None,
    ) -> Path | None:
        """Return the plugin's config file for ``language`` or ``None`` when absent."""

        path = self.path_for(source, scope)
        if not path.is_dir():
            return None
        relative = self.check(path).config_for(language, tool)
        return path / relative if relative is not None else None

    def layer_config_path(self, source: PluginSource, scope: PluginScope) -> Path | None:
        """Return the linthis configuration file the plugin contributes as a layer."""

        path = self.path_for(source, scope)
        if not path.is_dir():
            return None
        manifest = self.check(path)
        return path / manifest.plugin.config

    # Clean ------------------------------------------------------------

    def clean(self, scope: PluginScope | None, selector: CleanChoice) -> list[PluginCacheEntry]:
        """Delete recorded checkouts chosen by ``selector`` and return them.

        Only directories listed in the index and located under the cache root
        are deleted; an index entry pointing elsewhere is dropped untouched.
        """

        with self._index_lock:
            recorded = sorted(self._load_index().items())
        removed: list[PluginCacheEntry] = []
        for key, entry in recorded:
            if scope is not None and entry.scope is not scope:
                continue
            if selector is not CleanSelector.ALL and not selector(entry):
                continue
            path = entry.local_path
            with self._lock_for(path):
                if not is_within(path, self._root):
                    warn(f"Refusing to delete {path}: outside the plugin cache", use_emoji=self._use_emoji)
                    self._forget(key)
                    continue
                try:
                    if path.exists():
                        shutil.rmtree(path)
                except OSError as exc:
                    warn(f"Could not remove {path}: {exc}", use_emoji=self._use_emoji)
                    continue
                self._forget(key)
            removed.append(entry)
        return removed

    # Remote -----------------------------------------------------------

    def remote_updates(self, scope: PluginScope, sources: Iterable[PluginSource]) -> list[RemoteUpdate]:
        """Compare cached commits with the remote heads of each source's ref."""

        updates: list[RemoteUpdate] = []
        for source in sources:
            entry = self.entry(source, scope)
            cached = entry.last_synced_commit if entry is not None and entry.source.ref == source.ref else None
            try:
                remote = self._vcs.remote_commit(source.url, source.ref)
            except VcsTransportError as exc:
                updates.append(
                    RemoteUpdate(name=source.name, cached_commit=cached, remote_commit=None, error=exc.message),
                )
                continue
            if cached is not None and cached.startswith(remote):
                # Abbreviated commit refs resolve to themselves remotely.
                remote = cached
            updates.append(RemoteUpdate(name=source.name, cached_commit=cached, remote_commit=remote))
        return updates


__all__ = ["PluginCache", "slugify", "source_digest"]
