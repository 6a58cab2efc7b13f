"""Sandbox subsystem — QuickJS WASI execution with captured output."""

from qjsmcp.sandbox.capture import CaptureChannel, open_capture
from qjsmcp.sandbox.classifier import classify
from qjsmcp.sandbox.invoker import SandboxInvoker
from qjsmcp.sandbox.models import ExecutionOutcome, Invocation, OutcomeKind, ToolResult
from qjsmcp.sandbox.module_cache import CompiledModule, EpochTicker, load_module

__all__ = [
    "CaptureChannel",
    "CompiledModule",
    "EpochTicker",
    "ExecutionOutcome",
    "Invocation",
    "OutcomeKind",
    "SandboxInvoker",
    "ToolResult",
    "classify",
    "load_module",
    "open_capture",
]
