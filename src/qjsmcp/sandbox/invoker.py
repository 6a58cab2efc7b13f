"""SandboxInvoker — runs one snippet in a fresh QuickJS WASI instance.

Each ``run()`` call:
1. Opens a :class:`~qjsmcp.sandbox.capture.CaptureChannel`.
2. Builds a new ``Store`` + ``WasiConfig`` with ``qjs -e <code>`` as argv and
   the capture files bound as stdout/stderr.
3. Calls ``_start`` in a worker thread under an epoch deadline.
4. Reads back both streams, whatever the exit path.
5. Releases the capture directory before returning.

The :class:`~qjsmcp.sandbox.module_cache.CompiledModule` is the only state
shared between runs and is never written to.
"""

from __future__ import annotations

import asyncio
import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING

import wasmtime

from qjsmcp.errors import CaptureSetupError, SandboxError, SandboxStartError
from qjsmcp.sandbox.capture import open_capture
from qjsmcp.sandbox.models import ExecutionOutcome, Invocation
from qjsmcp.sandbox.module_cache import EpochTicker
from qjsmcp.utils.telemetry import (
    ATTR_CODE_LENGTH,
    ATTR_EXIT_STATUS,
    ATTR_INVOCATION_ID,
    ATTR_STDERR_LENGTH,
    ATTR_STDOUT_LENGTH,
    ATTR_TIMED_OUT,
    ATTR_TIMEOUT,
    get_tracer,
)

if TYPE_CHECKING:
    from qjsmcp.config import RunnerSettings
    from qjsmcp.sandbox.capture import CaptureChannel
    from qjsmcp.sandbox.module_cache import CompiledModule

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

PROGRAM_NAME = "qjs"


@dataclass(frozen=True)
class _RunStatus:
    exit_status: int | None = None
    startup_error: str | None = None
    timed_out: bool = False


class SandboxInvoker:
    """Executes JavaScript snippets against a shared compiled module.

    Blocking execution happens on a bounded thread pool so the event loop
    keeps serving other requests while a script runs.

    Usage::

        with SandboxInvoker(compiled, settings) as invoker:
            outcome = await invoker.run('console.log("hi")')
    """

    def __init__(self, module: CompiledModule, settings: RunnerSettings) -> None:
        self._module = module
        self._settings = settings
        self._ticker = EpochTicker(module)
        self._executor = ThreadPoolExecutor(
            max_workers=settings.max_workers,
            thread_name_prefix="qjsmcp-sandbox",
        )
        self._closed = False

    def __enter__(self) -> SandboxInvoker:
        self._ensure_open()
        self._ticker.start()
        return self

    def __exit__(self, *_: object) -> None:
        self.close()

    @property
    def module(self) -> CompiledModule:
        return self._module

    @property
    def settings(self) -> RunnerSettings:
        return self._settings

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Wait for in-flight runs, then stop the worker pool and epoch ticker."""
        self._closed = True
        self._executor.shutdown(wait=True)
        self._ticker.stop()

    async def run(self, code: str, *, timeout: float | None = None) -> ExecutionOutcome:
        """Run *code* on the worker pool and return the raw outcome.

        Raises:
            SandboxError: The invoker has been closed.
        """
        self._ensure_open()
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self._run_with_timeout, code, timeout)

    def run_sync(self, code: str, *, timeout: float | None = None) -> ExecutionOutcome:
        """Run *code* on the calling thread.  Blocks until the guest finishes."""
        self._ensure_open()
        return self._run_with_timeout(code, timeout)

    def _ensure_open(self) -> None:
        if self._closed:
            raise SandboxError("invoker is closed")

    def _run_with_timeout(self, code: str, timeout: float | None) -> ExecutionOutcome:
        # Runs already queued when close() starts still finish before the ticker stops.
        self._ticker.start()
        invocation = Invocation(code=code)
        effective_timeout = timeout or self._settings.timeout

        with _tracer.start_as_current_span("sandbox.run") as span:
            span.set_attribute(ATTR_INVOCATION_ID, invocation.invocation_id)
            span.set_attribute(ATTR_CODE_LENGTH, len(code))
            span.set_attribute(ATTR_TIMEOUT, effective_timeout)

            outcome = self._invoke(invocation, effective_timeout)

            if outcome.exit_status is not None:
                span.set_attribute(ATTR_EXIT_STATUS, outcome.exit_status)
            span.set_attribute(ATTR_TIMED_OUT, outcome.timed_out)
            span.set_attribute(ATTR_STDOUT_LENGTH, len(outcome.stdout))
            span.set_attribute(ATTR_STDERR_LENGTH, len(outcome.stderr))
            return outcome

    def _invoke(self, invocation: Invocation, timeout: float) -> ExecutionOutcome:
        logger.info(
            "[%s] Executing code starting with: %r",
            invocation.invocation_id,
            invocation.code[:50],
        )
        started = time.monotonic()
        try:
            with open_capture(self._settings.capture_dir, max_chars=self._settings.max_output_chars) as channel:
                status = self._execute(invocation, channel, timeout)
                stdout, stderr = channel.finalize()
        except CaptureSetupError as exc:
            logger.error("[%s] %s", invocation.invocation_id, exc)
            return ExecutionOutcome(startup_error=str(exc), timeout=timeout)

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            "[%s] Execution finished in %dms (exit=%s, timed_out=%s)",
            invocation.invocation_id,
            duration_ms,
            status.exit_status,
            status.timed_out,
        )
        return ExecutionOutcome(
            stdout=stdout,
            stderr=stderr,
            exit_status=status.exit_status,
            startup_error=status.startup_error,
            timed_out=status.timed_out,
            timeout=timeout,
            duration_ms=duration_ms,
        )

    def _execute(self, invocation: Invocation, channel: CaptureChannel, timeout: float) -> _RunStatus:
        """Instantiate and start a fresh instance; never raises for guest failures."""
        problem = self._argument_problem(invocation.code)
        if problem:
            return self._start_failed(invocation, SandboxStartError(problem))
        try:
            store = self._build_store(channel, invocation.code, timeout)
        except ValueError as exc:
            return self._start_failed(invocation, SandboxStartError(f"cannot prepare sandbox arguments: {exc}"))
        try:
            linker = wasmtime.Linker(self._module.engine)
            linker.define_wasi()
            instance = linker.instantiate(store, self._module.module)
            start = instance.exports(store)["_start"]
            start(store)  # type: ignore[operator]
        except wasmtime.ExitTrap as exc:
            return _RunStatus(exit_status=exc.code)
        except wasmtime.Trap as exc:
            if exc.trap_code == wasmtime.TrapCode.INTERRUPT:
                logger.warning("[%s] Execution timed out after %ss", invocation.invocation_id, timeout)
                return _RunStatus(timed_out=True)
            if exc.trap_code == wasmtime.TrapCode.OUT_OF_FUEL:
                detail = f"fuel budget of {self._settings.max_fuel} instructions exhausted"
            else:
                detail = exc.message
            return self._start_failed(invocation, SandboxStartError(detail))
        except wasmtime.WasmtimeError as exc:
            if "interrupt" in str(exc).lower():
                logger.warning("[%s] Execution timed out after %ss", invocation.invocation_id, timeout)
                return _RunStatus(timed_out=True)
            return self._start_failed(invocation, SandboxStartError(str(exc)))
        return _RunStatus(exit_status=0)

    def _argument_problem(self, code: str) -> str | None:
        """Return why *code* or the configured env cannot reach the guest intact, if so.

        WASI argv and environ entries are NUL-terminated UTF-8, so an embedded
        NUL would silently cut the value short.
        """
        if "\x00" in code:
            return "script contains a NUL byte, which cannot be passed as an inline argument"
        for key, value in self._settings.env.items():
            if "\x00" in key or "\x00" in value:
                return f"environment variable {key!r} contains a NUL byte"
        try:
            code.encode("utf-8")
        except UnicodeEncodeError as exc:
            return f"script is not valid UTF-8 text: {exc.reason} at position {exc.start}"
        return None

    def _build_store(self, channel: CaptureChannel, code: str, timeout: float) -> wasmtime.Store:
        settings = self._settings
        store = wasmtime.Store(self._module.engine)
        store.set_limits(memory_size=settings.memory_limit_bytes)
        store.set_epoch_deadline(self._module.deadline_ticks(timeout))
        if self._module.fuel_metering and settings.max_fuel is not None:
            store.set_fuel(settings.max_fuel)

        wasi = wasmtime.WasiConfig()
        wasi.argv = [PROGRAM_NAME, "-e", code]
        env = dict(os.environ) if settings.inherit_env else {}
        env.update(settings.env)
        wasi.env = list(env.items())
        if settings.inherit_stdin:
            wasi.inherit_stdin()
        wasi.stdout_file = str(channel.stdout_path)
        wasi.stderr_file = str(channel.stderr_path)
        store.set_wasi(wasi)
        return store

    @staticmethod
    def _start_failed(invocation: Invocation, error: SandboxStartError) -> _RunStatus:
        logger.warning("[%s] WASI start threw: %s", invocation.invocation_id, error.detail)
        return _RunStatus(startup_error=str(error))
