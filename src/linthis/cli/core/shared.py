# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared utilities for CLI commands (logging, errors, registration)."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Final

import typer
from rich.console import Console
from rich.text import Text

from ...config.models import PluginScope
from ...logging import fail as core_fail
from ...logging import info as core_info
from ...logging import ok as core_ok
from ...logging import warn as core_warn

GLOBAL_HELP: Final[str] = "Operate on the global configuration (~/.linthis/config.toml)."


class CLIError(RuntimeError):
    """Error raised when a CLI command fails and should exit with a status code."""

    def __init__(self, message: str, *, exit_code: int = 1) -> None:
        """Initialise the error with a message and exit code.

        Args:
            message: Human-readable error message shown to the user.
            exit_code: Exit status associated with the failure.
        """

        super().__init__(message)
        self.exit_code = exit_code


@dataclass(slots=True)
class CLILogger:
    """Adapter around project logging helpers respecting CLI emoji settings."""

    console: Console
    use_emoji: bool
    debug_enabled: bool = False
    _key_value_re: re.Pattern[str] = re.compile(r"([\w-]+)=(\".*?\"|\S+)")

    def fail(self, message: str) -> None:
        core_fail(message, use_emoji=self.use_emoji)

    def warn(self, message: str) -> None:
        core_warn(message, use_emoji=self.use_emoji)

    def ok(self, message: str) -> None:
        core_ok(message, use_emoji=self.use_emoji)

    def info(self, message: str) -> None:
        core_info(message, use_emoji=self.use_emoji)

    def echo(self, message: str) -> None:
        """Write ``message`` to stdout using Typer's echo helper."""

        typer.echo(message)

    def debug(self, message: str) -> None:
        """Emit a debug message when debug logging is enabled.

        ``key=value`` pairs are highlighted so git invocations stay readable.
        """

        if not self.debug_enabled:
            return
        text = Text("[debug] ", style="bold cyan")
        cursor = 0
        for match in self._key_value_re.finditer(message):
            start, end = match.span()
            if start > cursor:
                text.append(message[cursor:start], style="dim")
            key, raw_value = match.group(1), match.group(2)
            text.append(key, style="bold magenta")
            text.append("=", style="dim")
            text.append(raw_value, style="bold blue" if key in {"command", "cmd"} else "bold green")
            cursor = end
        if cursor < len(message):
            text.append(message[cursor:], style="dim")
        self.console.print(text)


def build_cli_logger(*, emoji: bool, debug: bool = False, no_color: bool = False) -> CLILogger:
    """Return a ``CLILogger`` configured for the provided emoji preference.

    Args:
        emoji: Whether log output may include emoji glyphs.
        debug: Whether debug logging should be enabled.
        no_color: Whether terminal colour output should be disabled.

    Returns:
        CLILogger: Logger instance bound to a dedicated Rich console.
    """

    console = Console(no_color=no_color, highlight=False)
    return CLILogger(console=console, use_emoji=emoji, debug_enabled=debug)


def confirm(question: str) -> bool:
    """Ask a yes/no question on the terminal; an empty answer means yes."""

    return typer.confirm(question, default=True)


def scope_from_flag(global_scope: bool) -> PluginScope:
    return PluginScope.GLOBAL if global_scope else PluginScope.PROJECT


CommandCallable = Callable[..., int | None]
CommandDecoratorCallable = Callable[[CommandCallable], CommandCallable]


@dataclass(slots=True)
class _CommandDecorator:
    """Callable helper registering Typer commands without nested closures."""

    app: typer.Typer
    name: str | None
    help_text: str | None

    def __call__(self, func: CommandCallable) -> CommandCallable:
        decorator: CommandDecoratorCallable = self.app.command(name=self.name, help=self.help_text)
        return decorator(func)


def register_command(
    app: typer.Typer,
    callback: CommandCallable | None = None,
    *,
    name: str | None = None,
    help_text: str | None = None,
) -> CommandDecoratorCallable | CommandCallable:
    """Register a command on ``app`` with consistent metadata handling.

    Args:
        app: Typer application receiving the command registration.
        callback: Optional callable to register immediately.
        name: Optional explicit command name.
        help_text: Help text shown in CLI usage output.

    Returns:
        CommandDecoratorCallable | CommandCallable: Either the registered callback or
        a decorator for deferred registration.
    """

    decorator = _CommandDecorator(app=app, name=name, help_text=help_text)
    if callback is not None:
        return decorator(callback)
    return decorator


__all__ = [
    "CLIError",
    "CLILogger",
    "GLOBAL_HELP",
    "build_cli_logger",
    "confirm",
    "register_command",
    "scope_from_flag",
]
