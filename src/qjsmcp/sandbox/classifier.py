"""Result classifier — turns a raw :class:`ExecutionOutcome` into a verdict.

Rules, first match wins:

1. startup error          -> error
2. deadline exceeded      -> error
3. non-zero exit status   -> error
4. exit 0 with stderr     -> error (any diagnostic output flags the run)
5. otherwise              -> success
"""

from __future__ import annotations

from qjsmcp.errors import SandboxTimeoutError
from qjsmcp.sandbox.models import ExecutionOutcome, OutcomeKind, ToolResult

STDOUT_LABEL = "--- stdout ---"
STDERR_LABEL = "--- stderr ---"
ERROR_LABEL = "--- Execution Error ---"
NO_OUTPUT_MARKER = "--- Execution Success (No Output) ---"


def classify(outcome: ExecutionOutcome) -> ToolResult:
    """Map *outcome* to a :class:`ToolResult`."""
    if outcome.startup_error:
        return _error(outcome, OutcomeKind.STARTUP_ERROR, outcome.startup_error)

    if outcome.timed_out:
        timeout = outcome.timeout if outcome.timeout is not None else 0.0
        return _error(outcome, OutcomeKind.TIMEOUT, SandboxTimeoutError(timeout).detail)

    if outcome.exit_status is None:
        return _error(outcome, OutcomeKind.STARTUP_ERROR, "Sandbox finished without an exit status")

    if outcome.exit_status != 0:
        return _error(outcome, OutcomeKind.NON_ZERO_EXIT, f"Process exited with code {outcome.exit_status}")

    if outcome.stderr.strip():
        return ToolResult(
            content_text=format_content(outcome.stdout, outcome.stderr),
            is_error=True,
            kind=OutcomeKind.STDERR_SIGNAL,
        )

    text = format_content(outcome.stdout, "")
    return ToolResult(
        content_text=text or NO_OUTPUT_MARKER,
        is_error=False,
        kind=OutcomeKind.SUCCESS,
    )


def format_content(stdout: str, stderr: str, error: str | None = None) -> str:
    """Join the present streams and error message under labeled delimiters."""
    parts: list[str] = []
    if stdout:
        parts.append(f"{STDOUT_LABEL}\n{stdout}")
    if stderr:
        parts.append(f"{STDERR_LABEL}\n{stderr}")
    if error:
        parts.append(f"{ERROR_LABEL}\n{error}")
    return "\n".join(p.rstrip("\n") for p in parts).strip()


def _error(outcome: ExecutionOutcome, kind: OutcomeKind, message: str) -> ToolResult:
    return ToolResult(
        content_text=format_content(outcome.stdout, outcome.stderr, message),
        is_error=True,
        kind=kind,
    )
