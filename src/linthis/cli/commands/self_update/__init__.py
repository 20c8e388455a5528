# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Self-update CLI command."""

from __future__ import annotations

from typer import Typer

from ...core.shared import register_command
from .command import self_update_command

__all__ = ["register"]


def register(app: Typer) -> None:
    """Register the ``self-update`` command on ``app``."""

    register_command(
        app,
        self_update_command,
        name="self-update",
        help_text="Check for and install a newer linthis release.",
    )
