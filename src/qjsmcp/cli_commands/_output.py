"""Shared CLI output formatters."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from qjsmcp.sandbox.models import ToolResult  # noqa: TC001

console = Console()


def print_tool_result(result: ToolResult, *, as_json: bool = False) -> None:
    """Pretty-print a classified result."""
    if as_json:
        console.print_json(result.model_dump_json())
        return

    style = "red" if result.is_error else "green"
    console.print(
        Panel(
            Text(result.content_text),
            title=f"[{style}]{result.kind.value}[/{style}]",
            title_align="left",
            border_style=style,
        )
    )


def format_size(n: int) -> str:
    return f"{n / 1024 / 1024:.2f} MB"
