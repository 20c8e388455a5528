# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Configuration editing and inspection commands."""

from __future__ import annotations

from pathlib import Path

import typer

from ....config.editor import coerce_scalar, ensure_array_field, format_value
from ....errors import LinthisError
from ...core.shared import GLOBAL_HELP, CLIError, build_cli_logger, register_command, scope_from_flag
from ...core.typer_ext import create_typer
from ._services import (
    JSON_FORMAT,
    config_path_for,
    load_config_with_trace,
    open_document,
    render_config,
    save_document,
    summarise_updates,
)

config_app = create_typer(help="Edit and inspect linthis configuration files.")


@register_command(config_app, name="add", help_text="Add values to an array field (languages, includes, excludes).")
def config_add(
    field: str = typer.Argument(..., help="Array field to extend."),
    values: list[str] = typer.Argument(..., help="Values to append."),
    global_scope: bool = typer.Option(False, "--global", "-g", help=GLOBAL_HELP),
) -> None:
    """Append values to an array field; values already present are skipped."""

    logger = build_cli_logger(emoji=True)
    scope = scope_from_flag(global_scope)
    try:
        name = ensure_array_field(field)
        document = open_document(scope, logger=logger, must_exist=False)
        added = document.array_add(name, values)
        for value in values:
            if value not in added:
                logger.warn(f"Value '{value}' already exists in '{name}'")
        if added:
            save_document(document, logger=logger)
    except CLIError as exc:
        raise typer.Exit(code=exc.exit_code) from exc
    except LinthisError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=1) from exc
    for value in added:
        logger.ok(f"Added '{value}' to {name} in {scope.value} configuration")


@register_command(config_app, name="remove", help_text="Remove values from an array field.")
def config_remove(
    field: str = typer.Argument(..., help="Array field to shrink."),
    values: list[str] = typer.Argument(..., help="Values to remove."),
    global_scope: bool = typer.Option(False, "--global", "-g", help=GLOBAL_HELP),
) -> None:
    """Remove values from an array field; unknown values only produce a warning."""

    logger = build_cli_logger(emoji=True)
    scope = scope_from_flag(global_scope)
    try:
        name = ensure_array_field(field)
        document = open_document(scope, logger=logger, must_exist=True)
        if document.array_key(name) not in document:
            logger.fail(f"Field '{name}' not found or is not an array")
            raise CLIError(f"missing field {name}")
        removed = document.array_remove(name, values)
        for value in values:
            if value not in removed:
                logger.warn(f"Value '{value}' not found in '{name}'")
        if removed:
            save_document(document, logger=logger)
    except CLIError as exc:
        raise typer.Exit(code=exc.exit_code) from exc
    except LinthisError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=1) from exc
    for value in dict.fromkeys(removed):
        logger.ok(f"Removed '{value}' from {name} in {scope.value} configuration")


@register_command(config_app, name="clear", help_text="Remove every value from an array field.")
def config_clear(
    field: str = typer.Argument(..., help="Array field to empty."),
    global_scope: bool = typer.Option(False, "--global", "-g", help=GLOBAL_HELP),
) -> None:
    logger = build_cli_logger(emoji=True)
    scope = scope_from_flag(global_scope)
    try:
        name = ensure_array_field(field)
        document = open_document(scope, logger=logger, must_exist=True)
        document.array_clear(name)
        save_document(document, logger=logger)
    except CLIError as exc:
        raise typer.Exit(code=exc.exit_code) from exc
    except LinthisError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=1) from exc
    logger.ok(f"Cleared all values from {name} in {scope.value} configuration")


@register_command(config_app, name="set", help_text="Set a scalar field such as max_complexity or preset.")
def config_set(
    field: str = typer.Argument(..., help="Scalar field, e.g. 'preset' or 'self_auto_update.mode'."),
    value: str = typer.Argument(..., help="New value."),
    global_scope: bool = typer.Option(False, "--global", "-g", help=GLOBAL_HELP),
) -> None:
    """Set a scalar field after checking the value against the field's type."""

    logger = build_cli_logger(emoji=True)
    scope = scope_from_flag(global_scope)
    try:
        typed = coerce_scalar(field, value)
        document = open_document(scope, logger=logger, must_exist=False)
        document.set(field, typed)
        save_document(document, logger=logger)
    except CLIError as exc:
        raise typer.Exit(code=exc.exit_code) from exc
    except LinthisError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=1) from exc
    logger.ok(f"Set {field} = {format_value(typed)} in {scope.value} configuration")


@register_command(config_app, name="unset", help_text="Remove a field from the configuration file.")
def config_unset(
    field: str = typer.Argument(..., help="Field to remove."),
    global_scope: bool = typer.Option(False, "--global", "-g", help=GLOBAL_HELP),
) -> None:
    """Remove a field; a field that is not set only produces a warning."""

    logger = build_cli_logger(emoji=True)
    scope = scope_from_flag(global_scope)
    try:
        document = open_document(scope, logger=logger, must_exist=True)
        if not document.unset(field):
            logger.warn(f"Field '{field}' not found in configuration")
            return
        save_document(document, logger=logger)
    except CLIError as exc:
        raise typer.Exit(code=exc.exit_code) from exc
    logger.ok(f"Unset {field} in {scope.value} configuration")


@register_command(config_app, name="get", help_text="Print the value of a field.")
def config_get(
    field: str = typer.Argument(..., help="Field to read; use dots for nested keys."),
    global_scope: bool = typer.Option(False, "--global", "-g", help=GLOBAL_HELP),
) -> None:
    logger = build_cli_logger(emoji=True)
    scope = scope_from_flag(global_scope)
    try:
        document = open_document(scope, logger=logger, must_exist=True)
    except CLIError as exc:
        raise typer.Exit(code=exc.exit_code) from exc
    value = document.get(field)
    if value is None:
        logger.fail(f"Field '{field}' not found")
        raise typer.Exit(code=1)
    logger.echo(format_value(value))


@register_command(config_app, name="list", help_text="List the fields stored in a configuration file.")
def config_list(
    global_scope: bool = typer.Option(False, "--global", "-g", help=GLOBAL_HELP),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Print the file verbatim, comments included."),
) -> None:
    """List the top-level fields of the project or global configuration file."""

    logger = build_cli_logger(emoji=True)
    scope = scope_from_flag(global_scope)
    path = config_path_for(scope)
    if not path.is_file():
        logger.warn(f"No {scope.value} configuration file found at {path}")
        raise typer.Exit(code=1)
    try:
        document = open_document(scope, logger=logger, must_exist=True)
    except CLIError as exc:
        raise typer.Exit(code=exc.exit_code) from exc
    logger.echo(f"{scope.value.capitalize()} configuration ({path})")
    logger.echo("")
    if verbose:
        logger.echo(document.to_text().rstrip("\n"))
        return
    entries = list(document.items())
    if not entries:
        logger.echo("  (empty)")
        return
    for key, value in entries:
        logger.echo(f"{key} = {format_value(value)}")


@register_command(config_app, name="show", help_text="Print the effective configuration for the project.")
def config_show(
    root: Path | None = typer.Option(None, "--root", "-r", help="Project root (default: current directory)."),
    trace: bool = typer.Option(True, help="Show which source last set each field."),
    output_format: str = typer.Option(
        JSON_FORMAT,
        "--format",
        "-f",
        case_sensitive=False,
        help="Output format (currently only 'json').",
    ),
) -> None:
    """Print the merged configuration of every layer, with provenance."""

    logger = build_cli_logger(emoji=True)
    if output_format.lower() != JSON_FORMAT:
        raise typer.BadParameter("Only JSON output is supported at the moment")
    try:
        result = load_config_with_trace(root or Path.cwd(), logger=logger)
    except CLIError as exc:
        raise typer.Exit(code=exc.exit_code) from exc

    logger.echo(render_config(result))
    if trace and result.updates:
        logger.echo("\n# Overrides")
        for update in summarise_updates(result.updates):
            logger.echo(update)
    if result.warnings:
        logger.echo("\n# Warnings")
        for warning in result.warnings:
            logger.warn(f"- {warning}")


__all__ = ["config_app"]
