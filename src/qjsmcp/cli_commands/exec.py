"""``qjsmcp exec`` — run one snippet locally and print the classified result."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Any

import click

from qjsmcp.cli_commands._output import console, print_tool_result
from qjsmcp.cli_commands._settings import resolve_settings, settings_options
from qjsmcp.errors import ModuleLoadError
from qjsmcp.sandbox.classifier import classify
from qjsmcp.sandbox.invoker import SandboxInvoker
from qjsmcp.sandbox.module_cache import load_module
from qjsmcp.utils.logging import configure_logging

if TYPE_CHECKING:
    from pathlib import Path


@click.command("exec")
@click.argument("code", required=False)
@click.option(
    "--file", "-f", "script",
    type=click.File("r", encoding="utf-8"),
    help="Read the snippet from a file ('-' for stdin).",
)
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON.")
@settings_options
def exec_cmd(
    code: str | None,
    script: Any,
    as_json: bool,
    config_path: Path | None,
    **overrides: Any,
) -> None:
    """Execute CODE in the sandbox (or the contents of --file)."""
    if code is None and script is None:
        raise click.UsageError("Provide CODE or --file.")
    if code is not None and script is not None:
        raise click.UsageError("CODE and --file are mutually exclusive.")
    source = code if code is not None else script.read()

    settings = resolve_settings(config_path, **overrides)
    configure_logging(settings.log_level if overrides.get("log_level") else "WARNING")

    try:
        compiled = load_module(settings)
    except ModuleLoadError as exc:
        console.print(f"[red]Module error:[/red] {exc}")
        sys.exit(1)

    with SandboxInvoker(compiled, settings) as invoker:
        result = classify(invoker.run_sync(source))

    print_tool_result(result, as_json=as_json)
    if result.is_error:
        sys.exit(1)
