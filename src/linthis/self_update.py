# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Periodic and on-demand upgrades of the linthis distribution itself."""

from __future__ import annotations

import subprocess
import sys
from collections.abc import Callable, Sequence
from enum import Enum
from typing import Final, Protocol

from pydantic import BaseModel, ConfigDict

from . import __version__
from .config.models import UpdateMode
from .constants import PACKAGE_NAME
from .errors import VersionLookupError
from .logging import info, ok, warn
from .periodic import PeriodicTrigger
from .process_utils import SubprocessExecutionError, run_command
from .versioning import is_newer, parse_version

CommandRunner = Callable[[Sequence[str]], subprocess.CompletedProcess[str]]
Confirm = Callable[[str], bool]

AVAILABLE_VERSIONS_MARKER: Final[str] = "Available versions:"
LOOKUP_TIMEOUT_SECONDS: Final[float] = 30.0


class SelfUpdateStatus(str, Enum):
    """Outcome of one self-update attempt."""

    NOT_DUE = "not_due"
    UP_TO_DATE = "up_to_date"
    DECLINED = "declined"
    UPGRADED = "upgraded"
    UPGRADE_FAILED = "upgrade_failed"
    LOOKUP_FAILED = "lookup_failed"
    UPDATE_AVAILABLE = "update_available"


class SelfUpdateResult(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    status: SelfUpdateStatus
    current_version: str
    latest_version: str | None = None
    message: str | None = None

    @property
    def update_available(self) -> bool:
        return self.latest_version is not None and is_newer(self.latest_version, self.current_version)


class RemoteVersionLookup(Protocol):
    """Resolve the newest published version of the tool."""

    def latest_version(self) -> str:
        """Return the newest version string.

        Raises:
            VersionLookupError: When the index cannot be queried or parsed.
        """
        ...


class Upgrader(Protocol):
    """Install a newer release of the tool."""

    def upgrade(self) -> None:
        """Perform the upgrade, raising :class:`SubprocessExecutionError` on failure."""
        ...


def _default_runner(args: Sequence[str]) -> subprocess.CompletedProcess[str]:
    return run_command(args, timeout=LOOKUP_TIMEOUT_SECONDS)


def parse_available_versions(output: str) -> list[str]:
    """Extract the version list from ``pip index versions`` output, newest first."""

    for line in output.splitlines():
        if AVAILABLE_VERSIONS_MARKER in line:
            _, _, tail = line.partition(AVAILABLE_VERSIONS_MARKER)
            return [entry.strip() for entry in tail.split(",") if entry.strip()]
    return []


class PipVersionLookup:
    """Query the package index through ``pip index versions``."""

    def __init__(
        self,
        *,
        package: str = PACKAGE_NAME,
        runner: CommandRunner | None = None,
        python: str | None = None,
    ) -> None:
        self._package = package
        self._runner = runner or _default_runner
        self._python = python or sys.executable

    def latest_version(self) -> str:
        args = [self._python, "-m", "pip", "index", "versions", self._package]
        try:
            completed = self._runner(args)
        except (OSError, SubprocessExecutionError) as exc:
            raise VersionLookupError(f"unable to query the package index: {exc}") from exc
        if completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or "").strip()
            raise VersionLookupError(f"pip index versions exited with {completed.returncode}: {detail}")
        versions = parse_available_versions(completed.stdout or "")
        if not versions:
            raise VersionLookupError(f"no published versions found for '{self._package}'")
        latest = versions[0]
        if parse_version(latest) is None:
            raise VersionLookupError(f"unparsable version '{latest}' reported for '{self._package}'")
        return latest


class PipUpgrader:
    """Upgrade the package in the running interpreter's environment."""

    def __init__(
        self,
        *,
        package: str = PACKAGE_NAME,
        runner: CommandRunner | None = None,
        python: str | None = None,
    ) -> None:
        self._package = package
        self._runner: CommandRunner = runner or run_command
        self._python = python or sys.executable

    def upgrade(self) -> None:
        args = [self._python, "-m", "pip", "install", "--upgrade", self._package]
        completed = self._runner(args)
        if completed.returncode != 0:
            raise SubprocessExecutionError(args, completed.returncode, completed.stdout, completed.stderr)


class SelfUpdateManager:
    """Combine a :class:`PeriodicTrigger` with version lookup and upgrade actions."""

    def __init__(
        self,
        trigger: PeriodicTrigger,
        *,
        lookup: RemoteVersionLookup,
        upgrader: Upgrader,
        confirm: Confirm,
        current_version: str = __version__,
        use_emoji: bool = True,
    ) -> None:
        self._trigger = trigger
        self._lookup = lookup
        self._upgrader = upgrader
        self._confirm = confirm
        self._current = current_version
        self._use_emoji = use_emoji

    def run(self) -> SelfUpdateResult:
        """Run the periodic check when due.

        Every due run rewrites the stored timestamp, including lookup failures
        and declined prompts.
        """

        if not self._trigger.is_due:
            return SelfUpdateResult(status=SelfUpdateStatus.NOT_DUE, current_version=self._current)
        try:
            return self._run_due(prompt=self._trigger.mode is UpdateMode.PROMPT)
        finally:
            self._trigger.mark_checked()

    def run_now(self, *, check_only: bool = False) -> SelfUpdateResult:
        """Check immediately, bypassing the schedule and the confirmation prompt."""

        try:
            return self._run_due(prompt=False, check_only=check_only)
        finally:
            self._trigger.mark_checked()

    def _run_due(self, *, prompt: bool, check_only: bool = False) -> SelfUpdateResult:
        try:
            latest = self._lookup.latest_version()
        except VersionLookupError as exc:
            warn(f"Skipping self-update check: {exc}", use_emoji=self._use_emoji)
            return SelfUpdateResult(
                status=SelfUpdateStatus.LOOKUP_FAILED,
                current_version=self._current,
                message=str(exc),
            )
        if not is_newer(latest, self._current):
            return SelfUpdateResult(
                status=SelfUpdateStatus.UP_TO_DATE,
                current_version=self._current,
                latest_version=latest,
            )
        if check_only:
            info(f"A new version of linthis is available: {self._current} → {latest}", use_emoji=self._use_emoji)
            return SelfUpdateResult(
                status=SelfUpdateStatus.UPDATE_AVAILABLE,
                current_version=self._current,
                latest_version=latest,
            )
        question = f"A new version of linthis is available: {self._current} → {latest}. Update now?"
        if prompt and not self._confirm(question):
            return SelfUpdateResult(
                status=SelfUpdateStatus.DECLINED,
                current_version=self._current,
                latest_version=latest,
            )
        info("Upgrading linthis via pip...", use_emoji=self._use_emoji)
        try:
            self._upgrader.upgrade()
        except (OSError, SubprocessExecutionError) as exc:
            warn(f"Failed to upgrade linthis: {exc}", use_emoji=self._use_emoji)
            return SelfUpdateResult(
                status=SelfUpdateStatus.UPGRADE_FAILED,
                current_version=self._current,
                latest_version=latest,
                message=str(exc),
            )
        ok(f"linthis upgraded to {latest}", use_emoji=self._use_emoji)
        return SelfUpdateResult(
            status=SelfUpdateStatus.UPGRADED,
            current_version=self._current,
            latest_version=latest,
        )


__all__ = [
    "PipUpgrader",
    "PipVersionLookup",
    "RemoteVersionLookup",
    "SelfUpdateManager",
    "SelfUpdateResult",
    "SelfUpdateStatus",
    "Upgrader",
    "parse_available_versions",
]
