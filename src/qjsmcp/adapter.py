"""Tool adapter — exposes the sandbox as the ``run_javascript_code`` MCP tool."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Annotated, Any

from mcp.server.fastmcp import FastMCP
from mcp.types import CallToolResult, TextContent
from pydantic import Field

from qjsmcp.sandbox.classifier import classify
from qjsmcp.sandbox.models import OutcomeKind, ToolResult
from qjsmcp.utils.telemetry import ATTR_OUTCOME, ATTR_TOOL_NAME, get_tracer

if TYPE_CHECKING:
    from qjsmcp.sandbox.invoker import SandboxInvoker

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

SERVER_NAME = "MCP QuickJS Runner"
SERVER_INSTRUCTIONS = (
    "Provides a tool to execute JavaScript code in a QuickJS WebAssembly sandbox. "
    "Each call runs in a fresh interpreter; nothing persists between calls."
)
TOOL_NAME = "run_javascript_code"
TOOL_DESCRIPTION = (
    "Executes the provided JavaScript code in a secure WASM sandbox (QuickJS). "
    "Returns stdout and stderr."
)
INTERNAL_ERROR_MESSAGE = "Internal server error during execution"


class ToolAdapter:
    """Bridges MCP tool calls to :class:`SandboxInvoker` and the classifier.

    Never raises: every failure, expected or not, becomes an error
    :class:`ToolResult` so one bad request cannot take down the server.
    """

    def __init__(self, invoker: SandboxInvoker) -> None:
        self._invoker = invoker

    async def run_javascript_code(self, javascript_code: str) -> ToolResult:
        """Execute *javascript_code* and return the classified result."""
        logger.info("Received request to run tool '%s'", TOOL_NAME)
        with _tracer.start_as_current_span("tool.call") as span:
            span.set_attribute(ATTR_TOOL_NAME, TOOL_NAME)
            try:
                outcome = await self._invoker.run(javascript_code)
                result = classify(outcome)
            except Exception as exc:
                logger.exception("Unhandled error in tool '%s' handler", TOOL_NAME)
                result = ToolResult(
                    content_text=f"{INTERNAL_ERROR_MESSAGE}: {exc}",
                    is_error=True,
                    kind=OutcomeKind.INTERNAL_ERROR,
                )
            span.set_attribute(ATTR_OUTCOME, result.kind.value)

        if result.is_error:
            logger.warning("Tool '%s' execution finished with errors (%s)", TOOL_NAME, result.kind.value)
        else:
            logger.info("Tool '%s' execution finished successfully", TOOL_NAME)
        return result


def to_call_tool_result(result: ToolResult) -> CallToolResult:
    """Convert a :class:`ToolResult` to the MCP response shape."""
    return CallToolResult(
        content=[TextContent(type="text", text=result.content_text)],
        isError=result.is_error,
    )


def build_server(adapter: ToolAdapter, **settings: Any) -> FastMCP:
    """Create a FastMCP server with the JavaScript tool registered.

    Extra keyword arguments (``host``, ``port``, ``log_level``...) are
    forwarded to :class:`FastMCP`.
    """
    server = FastMCP(SERVER_NAME, instructions=SERVER_INSTRUCTIONS, **settings)

    async def run_javascript_code(
        javascript_code: Annotated[str, Field(description="The JavaScript code to execute in the sandbox.")],
    ) -> CallToolResult:
        return to_call_tool_result(await adapter.run_javascript_code(javascript_code))

    server.add_tool(
        run_javascript_code,
        name=TOOL_NAME,
        description=TOOL_DESCRIPTION,
        structured_output=False,
    )
    logger.info("Tool '%s' registered", TOOL_NAME)
    return server
