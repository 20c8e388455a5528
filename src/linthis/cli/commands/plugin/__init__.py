# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Plugin management CLI commands."""

from __future__ import annotations

from typer import Typer

from .command import plugin_app

__all__ = ["register"]


def register(app: Typer) -> None:
    """Attach plugin sub-commands to the CLI application.

    Args:
        app: Typer application receiving the plugin command group.
    """

    app.add_typer(plugin_app, name="plugin")
