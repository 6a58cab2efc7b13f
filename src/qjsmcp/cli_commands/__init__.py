"""CLI subcommand registration."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all subcommands on the CLI group."""
    from qjsmcp.cli_commands.check import check
    from qjsmcp.cli_commands.exec import exec_cmd
    from qjsmcp.cli_commands.serve import serve

    cli.add_command(serve)
    cli.add_command(exec_cmd)
    cli.add_command(check)
