# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Implementation of the ``self-update`` command."""

from __future__ import annotations

import typer

from ....config.models import UpdateMode
from ....constants import DEFAULT_INTERVAL_DAYS
from ....errors import LinthisError
from ....periodic import PeriodicTrigger
from ....self_update import SelfUpdateStatus
from ....timestamps import TimestampKey
from ...core import services
from ...core.shared import build_cli_logger

FAILED_STATUSES = frozenset({SelfUpdateStatus.LOOKUP_FAILED, SelfUpdateStatus.UPGRADE_FAILED})


def self_update_command(
    check: bool = typer.Option(False, "--check", help="Only report whether a newer release exists."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show diagnostic output."),
) -> None:
    """Check the package index now and upgrade when a newer release is published.

    The schedule is bypassed but the last-check timestamp is refreshed, so the
    periodic check does not fire again right away.
    """

    logger = build_cli_logger(emoji=True, debug=verbose)
    try:
        trigger = PeriodicTrigger(
            services.build_timestamp_store(),
            TimestampKey.SELF_UPDATE,
            mode=UpdateMode.AUTO,
            interval_days=DEFAULT_INTERVAL_DAYS,
        )
        result = services.build_self_update_manager(trigger, logger).run_now(check_only=check)
    except LinthisError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=1) from exc
    logger.debug(f"status={result.status.value} current={result.current_version} latest={result.latest_version}")
    if result.status in FAILED_STATUSES:
        raise typer.Exit(code=1)
    if result.status is SelfUpdateStatus.UP_TO_DATE:
        logger.ok(f"linthis {result.current_version} is up to date")
