"""Options shared by every subcommand that needs :class:`RunnerSettings`."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import click

from qjsmcp.cli_commands._output import console
from qjsmcp.config import RunnerSettings, SettingsLoader, build_settings
from qjsmcp.errors import ConfigError

if TYPE_CHECKING:
    from collections.abc import Callable

F = TypeVar("F", bound="Callable[..., Any]")

_SETTINGS_OPTIONS = [
    click.option(
        "--config", "-c", "config_path",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        envvar="QJSMCP_CONFIG",
        help="YAML settings file.",
    ),
    click.option(
        "--wasm-path",
        type=click.Path(dir_okay=False, path_type=Path),
        envvar="QJSMCP_WASM_PATH",
        help="QuickJS WASI module to load.",
    ),
    click.option("--timeout", type=float, envvar="QJSMCP_TIMEOUT", help="Per-snippet timeout in seconds."),
    click.option("--memory-limit-mb", type=int, envvar="QJSMCP_MEMORY_LIMIT_MB", help="Guest memory cap."),
    click.option("--max-fuel", type=int, envvar="QJSMCP_MAX_FUEL", help="Instruction budget per run."),
    click.option("--max-workers", type=int, envvar="QJSMCP_MAX_WORKERS", help="Concurrent executions."),
    click.option(
        "--log-level",
        type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
        envvar="QJSMCP_LOG_LEVEL",
        help="Log level (logs go to stderr).",
    ),
]


def settings_options(func: F) -> F:
    """Attach the shared settings options to a click command."""
    for option in reversed(_SETTINGS_OPTIONS):
        func = option(func)
    return func


def resolve_settings(config_path: Path | None, **overrides: Any) -> RunnerSettings:
    """Build settings from the optional YAML file plus CLI overrides; exit 1 on error."""
    if overrides.get("log_level"):
        overrides["log_level"] = overrides["log_level"].upper()
    try:
        if config_path is not None:
            return SettingsLoader(config_path).load(**overrides)
        return build_settings(**overrides)
    except ConfigError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)
