"""``qjsmcp check`` — validate the sandbox module without serving."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any

import click

from qjsmcp.cli_commands._output import console, format_size
from qjsmcp.cli_commands._settings import resolve_settings, settings_options
from qjsmcp.errors import ModuleLoadError
from qjsmcp.sandbox.module_cache import load_module

if TYPE_CHECKING:
    from pathlib import Path


@click.command()
@settings_options
def check(config_path: Path | None, **overrides: Any) -> None:
    """Load and compile the sandbox module, then report its size."""
    settings = resolve_settings(config_path, **overrides)

    try:
        compiled = load_module(settings)
    except ModuleLoadError as exc:
        console.print(f"[red]Module error:[/red] {exc}")
        sys.exit(1)

    console.print("[green]Sandbox module OK.[/green]")
    console.print(f"  Path: {compiled.path}")
    console.print(f"  Size: {format_size(compiled.size_bytes)}")
    console.print(f"  Timeout: {settings.timeout}s")
    console.print(f"  Fuel metering: {'on' if compiled.fuel_metering else 'off'}")
