# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI application entry point wiring commands and periodic checks."""

from __future__ import annotations

from pathlib import Path
from typing import Final

import typer

from .. import __version__
from .commands import register_commands
from .core.services import run_periodic_checks
from .core.shared import build_cli_logger
from .core.typer_ext import create_typer

NO_UPDATE_CHECK_ENV: Final[str] = "LINTHIS_NO_UPDATE_CHECK"
# Commands that manage plugins or the installation themselves skip the periodic checks.
UNCHECKED_COMMANDS: Final[frozenset[str]] = frozenset({"plugin", "self-update"})

app = create_typer(help="Configuration and plugin manager for the linthis lint orchestrator.", no_args_is_help=True)


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"linthis {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    no_update_check: bool = typer.Option(
        False,
        "--no-update-check",
        envvar=NO_UPDATE_CHECK_ENV,
        help="Skip the periodic self-update and plugin sync checks.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show diagnostic output of periodic checks."),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_print_version,
        is_eager=True,
        help="Print the linthis version and exit.",
    ),
) -> None:
    """Run the due periodic checks before the invoked command."""

    if no_update_check or ctx.invoked_subcommand in UNCHECKED_COMMANDS:
        return
    run_periodic_checks(Path.cwd(), build_cli_logger(emoji=True, debug=verbose))


register_commands(app)


def main() -> None:
    """Console script entry point."""

    app()


__all__ = ["app", "main"]
