"""``qjsmcp serve`` — load the sandbox module and serve MCP requests."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import click

from qjsmcp.adapter import TOOL_NAME, ToolAdapter, build_server
from qjsmcp.cli_commands._settings import resolve_settings, settings_options
from qjsmcp.errors import ModuleLoadError
from qjsmcp.sandbox.invoker import SandboxInvoker
from qjsmcp.sandbox.module_cache import load_module
from qjsmcp.utils.logging import configure_logging
from qjsmcp.utils.telemetry import configure_telemetry

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


@click.command()
@settings_options
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    default="stdio",
    show_default=True,
    envvar="QJSMCP_TRANSPORT",
    help="MCP transport to serve on.",
)
@click.option("--host", default="127.0.0.1", show_default=True, help="Bind host for HTTP transports.")
@click.option("--port", type=int, default=8000, show_default=True, help="Bind port for HTTP transports.")
def serve(
    config_path: Path | None,
    transport: str,
    host: str,
    port: int,
    **overrides: Any,
) -> None:
    """Serve the run_javascript_code tool over MCP."""
    settings = resolve_settings(config_path, **overrides)
    configure_logging(settings.log_level)

    if settings.telemetry.enabled:
        try:
            configure_telemetry(settings.telemetry)
        except ImportError as exc:
            logger.warning("Telemetry disabled: %s", exc)

    try:
        compiled = load_module(settings)
    except ModuleLoadError as exc:
        logger.error("Fatal Error: could not load or compile the QuickJS WASM module: %s", exc)
        logger.error("Please ensure the module exists at: %s", exc.path)
        sys.exit(1)

    with SandboxInvoker(compiled, settings) as invoker:
        server = build_server(ToolAdapter(invoker), host=host, port=port, log_level=settings.log_level)
        logger.info("Serving tool '%s' over %s", TOOL_NAME, transport)
        try:
            server.run(transport=transport)  # type: ignore[arg-type]
        except KeyboardInterrupt:
            logger.info("Shutting down")
        except Exception:
            logger.exception("Failed to start MCP server")
            sys.exit(1)
