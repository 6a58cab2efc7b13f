"""qjsmcp CLI entrypoint."""

from __future__ import annotations

import click

from qjsmcp import __version__


@click.group()
@click.version_option(version=__version__, prog_name="qjsmcp")
def main() -> None:
    """qjsmcp — QuickJS WebAssembly sandbox exposed over MCP."""


# Register subcommands
from qjsmcp.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
