# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Version-control transport used to materialise plugin checkouts."""

from __future__ import annotations

import re
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Final, Protocol, runtime_checkable

from ..errors import VcsTransportError
from ..process_utils import run_command

GitRunner = Callable[[Sequence[str], Path | None], subprocess.CompletedProcess[str]]
DebugHook = Callable[[str], None]

GIT_EXECUTABLE: Final[str] = "git"
_COMMIT_HASH_RE: Final[re.Pattern[str]] = re.compile(r"^[0-9a-fA-F]{7,40}$")


def looks_like_commit(ref: str) -> bool:
    """Return ``True`` when ``ref`` has the shape of an abbreviated or full commit id."""

    return bool(_COMMIT_HASH_RE.match(ref))


@runtime_checkable
class VcsClient(Protocol):
    """Clone, refresh and inspect plugin repositories.

    Every method raises :class:`VcsTransportError` on failure.
    """

    def clone(self, url: str, ref: str, destination: Path) -> None:
        """Create a checkout of ``url`` at ``ref`` inside ``destination``."""
        ...

    def update(self, path: Path, url: str, ref: str) -> None:
        """Fetch ``ref`` into the checkout at ``path`` and hard-reset onto it."""
        ...

    def current_commit(self, path: Path) -> str:
        """Return the commit id checked out at ``path``."""
        ...

    def remote_commit(self, url: str, ref: str) -> str:
        """Return the commit id ``ref`` points to on the remote."""
        ...


def _default_runner(timeout: float | None) -> GitRunner:
    def runner(args: Sequence[str], cwd: Path | None) -> subprocess.CompletedProcess[str]:
        return run_command(args, cwd=cwd, timeout=timeout)

    return runner


class GitClient:
    """:class:`VcsClient` backed by the ``git`` executable."""

    def __init__(
        self,
        *,
        runner: GitRunner | None = None,
        timeout: float | None = None,
        debug: DebugHook | None = None,
    ) -> None:
        self._runner = runner or _default_runner(timeout)
        self._debug = debug

    def clone(self, url: str, ref: str, destination: Path) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        if looks_like_commit(ref):
            # A commit id cannot be passed to --branch; clone the default branch first.
            self._git(url, ["clone", "--depth", "1", url, str(destination)])
            self._git(url, ["fetch", "--depth", "1", "origin", ref], cwd=destination)
            self._git(url, ["checkout", ref], cwd=destination)
            return
        self._git(url, ["clone", "--depth", "1", "--single-branch", "--branch", ref, url, str(destination)])

    def update(self, path: Path, url: str, ref: str) -> None:
        self._git(url, ["fetch", "--depth", "1", "origin", ref], cwd=path)
        # FETCH_HEAD also covers refs a single-branch clone does not track.
        self._git(url, ["reset", "--hard", "FETCH_HEAD"], cwd=path)

    def current_commit(self, path: Path) -> str:
        completed = self._git(str(path), ["rev-parse", "HEAD"], cwd=path)
        return completed.stdout.strip()

    def remote_commit(self, url: str, ref: str) -> str:
        """Resolve ``ref`` with ``git ls-remote``.

        Only an exact name, ``refs/heads/<ref>`` or ``refs/tags/<ref>`` match;
        the peeled commit of an annotated tag wins over the tag object.
        """

        if looks_like_commit(ref):
            return ref
        completed = self._git(url, ["ls-remote", url, ref])
        advertised: dict[str, str] = {}
        for line in completed.stdout.splitlines():
            commit, _, name = line.partition("\t")
            if name.strip():
                advertised[name.strip()] = commit.strip()
        for candidate in (ref, f"refs/heads/{ref}", f"refs/tags/{ref}^{{}}", f"refs/tags/{ref}"):
            if candidate in advertised:
                return advertised[candidate]
        raise VcsTransportError(url, f"ref '{ref}' not found on remote")

    def _git(self, url: str, args: list[str], *, cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
        command = [GIT_EXECUTABLE, *args]
        if self._debug is not None:
            self._debug(f"command={' '.join(command)} cwd={cwd or '.'}")
        try:
            completed = self._runner(command, cwd)
        except FileNotFoundError as exc:
            raise VcsTransportError(url, f"git is not installed: {exc}") from exc
        except OSError as exc:
            raise VcsTransportError(url, str(exc)) from exc
        if completed.returncode != 0:
            raise VcsTransportError(url, completed.stderr or completed.stdout or f"exit status {completed.returncode}")
        return completed


__all__ = ["DebugHook", "GitClient", "GitRunner", "VcsClient", "looks_like_commit"]
