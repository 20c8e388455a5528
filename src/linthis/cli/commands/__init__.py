# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""CLI command registry."""

from __future__ import annotations

import typer

from . import config, plugin, self_update

__all__ = ["register_commands"]


def register_commands(app: typer.Typer) -> None:
    """Register the built-in command groups on ``app``."""

    plugin.register(app)
    config.register(app)
    self_update.register(app)
