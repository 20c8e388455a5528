# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Plugin management commands."""

from __future__ import annotations

from pathlib import Path
from typing import Final

import typer
from pydantic import ValidationError

from ....config.models import PluginScope, PluginSource
from ....config.sources import format_validation_error
from ....constants import MANIFEST_FILENAME
from ....errors import CacheCorruptionError, LinthisError
from ....filesystem import atomic_write_text
from ....plugins.manifest import PluginManifest
from ....plugins.models import CleanSelector, PluginCacheEntry, SyncOutcome, SyncStatus
from ....plugins.scheduler import ProgressHook
from ...core import services
from ...core.shared import GLOBAL_HELP, CLIError, CLILogger, build_cli_logger, register_command, scope_from_flag
from ...core.typer_ext import create_typer

plugin_app = create_typer(help="Manage git-hosted configuration plugins.")

SHORT_COMMIT: Final[int] = 7

PLUGIN_CONFIG_TEMPLATE: Final[str] = """\
# Settings contributed by this plugin. Project and global configuration
# files override every value defined here.

# languages = ["python", "rust"]
# excludes = ["vendor/**"]
# max_complexity = 20
# preset = "google"
"""

PLUGIN_README_TEMPLATE: Final[str] = """\
# {name}

Configuration plugin for linthis.

Register it with:

    linthis plugin add <git-url> --name {name}
"""


def _source_from_args(source: str, name: str | None, ref: str | None) -> PluginSource:
    try:
        return PluginSource.from_spec(source, name=name, ref=ref)
    except ValidationError as exc:
        raise CLIError(f"Invalid plugin source '{source}': {format_validation_error(exc)}") from exc


def _short(commit: str | None) -> str:
    return commit[:SHORT_COMMIT] if commit else "-"


def _progress_reporter(logger: CLILogger) -> ProgressHook:
    def report(name: str, outcome: SyncOutcome) -> None:
        if outcome.status is SyncStatus.FAILED:
            logger.warn(f"{name}: failed ({outcome.reason})")
        elif outcome.status is SyncStatus.UPDATED:
            logger.ok(f"{name}: updated to {_short(outcome.commit)}")
        else:
            logger.echo(f"{name}: unchanged at {_short(outcome.commit)}")

    return report


@register_command(plugin_app, name="add", help_text="Register a plugin in the project or global configuration.")
def plugin_add(
    source: str = typer.Argument(..., help="Git URL of the plugin, or the name of a built-in plugin."),
    name: str | None = typer.Option(None, "--name", "-n", help="Name to register the plugin under."),
    ref: str | None = typer.Option(None, "--ref", "-r", help="Branch, tag or commit to track (default: main)."),
    global_scope: bool = typer.Option(False, "--global", "-g", help=GLOBAL_HELP),
) -> None:
    """Register a plugin; adding an existing name replaces its url and ref."""

    logger = build_cli_logger(emoji=True)
    scope = scope_from_flag(global_scope)
    try:
        plugin = _source_from_args(source, name, ref)
        plugin_services = services.build_plugin_services(logger)
        replaced = plugin_services.registry.add(scope, plugin)
        path = plugin_services.registry.config_path(scope)
    except CLIError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=exc.exit_code) from exc
    except LinthisError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=1) from exc
    verb = "Updated" if replaced else "Added"
    logger.ok(f"{verb} plugin '{plugin.name}' ({plugin.url}@{plugin.ref}) in {path}")
    logger.echo("Run 'linthis plugin sync' to fetch it.")


@register_command(plugin_app, name="remove", help_text="Unregister a plugin.")
def plugin_remove(
    name: str = typer.Argument(..., help="Registered plugin name."),
    global_scope: bool = typer.Option(False, "--global", "-g", help=GLOBAL_HELP),
    purge: bool = typer.Option(False, "--purge", help="Also delete the cached checkout."),
) -> None:
    """Remove a plugin registration; an unknown name is reported but is not an error."""

    logger = build_cli_logger(emoji=True)
    scope = scope_from_flag(global_scope)
    plugin_services = services.build_plugin_services(logger)
    try:
        outcome = plugin_services.registry.remove(scope, name)
    except LinthisError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=1) from exc
    if not outcome.found:
        logger.warn(f"Plugin '{name}' is not registered in the {scope.value} configuration")
        return
    logger.ok(f"Removed plugin '{name}' from {outcome.path}")
    if purge:
        removed = plugin_services.cache.clean(scope, lambda entry: entry.source.name == name)
        for entry in removed:
            logger.ok(f"Deleted cached checkout {entry.local_path}")


@register_command(plugin_app, name="list", help_text="List registered plugins and their cache state.")
def plugin_list(
    global_scope: bool = typer.Option(False, "--global", "-g", help=GLOBAL_HELP),
    all_scopes: bool = typer.Option(False, "--all", "-a", help="List project and global plugins."),
) -> None:
    """List registered plugins together with their last synced commit."""

    logger = build_cli_logger(emoji=True)
    scopes = list(PluginScope) if all_scopes else [scope_from_flag(global_scope)]
    plugin_services = services.build_plugin_services(logger)
    try:
        listed = [(scope, plugin_services.registry.list(scope)) for scope in scopes]
    except LinthisError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=1) from exc
    for scope, sources in listed:
        if not sources:
            logger.info(f"No plugins registered in the {scope.value} configuration")
            continue
        logger.echo(f"{scope.value.capitalize()} plugins:")
        for source in sources:
            entry = plugin_services.cache.entry(source, scope)
            state = f"synced {_short(entry.last_synced_commit)}" if entry is not None else "not cached"
            logger.echo(f"  {source.name}  {source.url}@{source.ref}  ({state})")


@register_command(plugin_app, name="sync", help_text="Fetch or update registered plugins.")
def plugin_sync(
    names: list[str] | None = typer.Argument(None, help="Plugins to sync (default: all registered)."),
    global_scope: bool = typer.Option(False, "--global", "-g", help=GLOBAL_HELP),
    jobs: int | None = typer.Option(None, "--jobs", "-j", min=1, help="Parallel git operations."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show git commands as they run."),
) -> None:
    """Sync plugins; one failing plugin never stops the others."""

    logger = build_cli_logger(emoji=True, debug=verbose)
    scope = scope_from_flag(global_scope)
    plugin_services = services.build_plugin_services(logger, jobs=jobs, progress=_progress_reporter(logger))
    try:
        if names:
            report = plugin_services.scheduler.sync_named(scope, names)
        else:
            report = plugin_services.scheduler.sync_all(scope)
    except LinthisError as exc:
        logger.fail(str(exc))
        raise typer.Exit(code=1) from exc
    if not report.results and not report.missing:
        logger.info(f"No plugins registered in the {scope.value} configuration")
        return
    summary = f"Plugin sync finished: {report.summary()}"
    if report.exit_code():
        logger.fail(summary)
        raise typer.Exit(code=report.exit_code())
    logger.ok(summary)


@register_command(plugin_app, name="clean", help_text="Delete cached plugin checkouts.")
def plugin_clean(
    global_scope: bool = typer.Option(False, "--global", "-g", help=GLOBAL_HELP),
    remove_all: bool = typer.Option(False, "--all", "-a", help="Delete every checkout without asking."),
) -> None:
    """Delete cached checkouts of the selected scope, asking for each one unless ``--all`` is given."""

    logger = build_cli_logger(emoji=True)
    scope = scope_from_flag(global_scope)
    plugin_services = services.build_plugin_services(logger)

    def ask(entry: PluginCacheEntry) -> bool:
        return typer.confirm(f"Delete cached plugin '{entry.source.name}' ({entry.local_path})?", default=False)

    removed = plugin_services.cache.clean(scope, CleanSelector.ALL if remove_all else ask)
    if not removed:
        logger.info("No cached plugins removed")
        return
    for entry in removed:
        logger.ok(f"Deleted {entry.source.name} ({entry.local_path})")


@register_command(plugin_app, name="validate", help_text="Check plugin manifests and referenced config files.")
def plugin_validate(
    path: Path | None = typer.Argument(None, help="Plugin directory to validate (default: cached plugins)."),
    global_scope: bool = typer.Option(False, "--global", "-g", help=GLOBAL_HELP),
) -> None:
    """Validate a plugin directory, or every cached plugin of the selected scope."""

    logger = build_cli_logger(emoji=True)
    plugin_services = services.build_plugin_services(logger)
    cache = plugin_services.cache
    if path is not None:
        targets = [(str(path), path)]
    else:
        scope = scope_from_flag(global_scope)
        try:
            sources = plugin_services.registry.list(scope)
        except LinthisError as exc:
            logger.fail(str(exc))
            raise typer.Exit(code=1) from exc
        targets = [(source.name, cache.path_for(source, scope)) for source in sources]
        if not targets:
            logger.info(f"No plugins registered in the {scope.value} configuration")
            return

    invalid = 0
    for label, target in targets:
        try:
            manifest = cache.check(target)
        except CacheCorruptionError as exc:
            invalid += 1
            logger.fail(f"{label}: {exc.message}")
            continue
        logger.ok(f"{label}: {manifest.plugin.name} {manifest.plugin.version} is valid")
    if invalid:
        raise typer.Exit(code=1)


@register_command(plugin_app, name="init", help_text="Create a new plugin skeleton.")
def plugin_init(
    name: str = typer.Argument(..., help="Name of the new plugin."),
    directory: Path | None = typer.Option(None, "--dir", "-d", help="Parent directory (default: current directory)."),
) -> None:
    """Write a manifest, a configuration layer and a README for a new plugin."""

    logger = build_cli_logger(emoji=True)
    target = (directory or Path.cwd()) / name
    if target.exists() and any(target.iterdir()):
        logger.fail(f"{target} already exists and is not empty")
        raise typer.Exit(code=1)
    manifest = PluginManifest.scaffold(name)
    try:
        atomic_write_text(target / MANIFEST_FILENAME, manifest.to_toml())
        atomic_write_text(target / manifest.plugin.config, PLUGIN_CONFIG_TEMPLATE)
        atomic_write_text(target / "README.md", PLUGIN_README_TEMPLATE.format(name=name))
    except OSError as exc:
        logger.fail(f"Unable to create plugin at {target}: {exc}")
        raise typer.Exit(code=1) from exc
    logger.ok(f"Created plugin '{name}' at {target}")


__all__ = ["plugin_app"]
