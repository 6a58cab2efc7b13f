"""Shared error types for the sandbox runner."""

from __future__ import annotations

from pathlib import Path


class RunnerError(Exception):
    """Base error for all runner failures."""


class ModuleLoadError(RunnerError):
    """The sandbox WebAssembly module could not be read, validated, or compiled.

    Fatal: the server refuses to start without a module.
    """

    def __init__(self, path: Path | str, detail: str = "") -> None:
        self.path = Path(path)
        self.detail = detail
        msg = f"Cannot load sandbox module {self.path}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)


class ConfigError(RunnerError):
    """Runner settings failed to parse or validate."""


class SandboxError(RunnerError):
    """A per-request sandbox operation failed (capture, start, or timeout)."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Sandbox error" + (f": {detail}" if detail else ""))


class CaptureSetupError(SandboxError):
    """Output capture files could not be allocated."""

    def __init__(self, detail: str = "") -> None:
        super().__init__(
            f"cannot allocate output capture: {detail}" if detail else "cannot allocate output capture"
        )


class SandboxStartError(SandboxError):
    """The WebAssembly instance raised while being instantiated or started."""


class SandboxTimeoutError(SandboxError):
    """Sandbox execution exceeded the configured timeout."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Execution timed out after {timeout}s")
