"""Module cache — compile the QuickJS WASI binary once per process.

The resulting :class:`CompiledModule` is immutable and shared by every
invocation.  Deadlines are implemented with wasmtime epoch interruption, so
the engine is built with ``epoch_interruption`` enabled and an
:class:`EpochTicker` advances the epoch for as long as the server runs.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import wasmtime

from qjsmcp.errors import ModuleLoadError

if TYPE_CHECKING:
    from qjsmcp.config import RunnerSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledModule:
    """Validated, compiled sandbox program shared read-only across runs."""

    engine: wasmtime.Engine
    module: wasmtime.Module
    path: Path
    size_bytes: int
    epoch_interval: float
    fuel_metering: bool = False

    def deadline_ticks(self, timeout: float) -> int:
        """Number of epoch ticks that cover *timeout* seconds (at least one)."""
        return max(1, int(timeout / self.epoch_interval + 0.999999))


def load_module(settings: RunnerSettings) -> CompiledModule:
    """Read, validate, and compile the module at ``settings.wasm_path``.

    Raises:
        ModuleLoadError: If the file is missing, unreadable, or not a valid
            WebAssembly module.
    """
    path = Path(settings.wasm_path)
    logger.info("Loading WASM from: %s", path)
    try:
        wasm_bytes = path.read_bytes()
    except OSError as exc:
        raise ModuleLoadError(path, str(exc)) from exc

    config = wasmtime.Config()
    config.epoch_interruption = True
    fuel_metering = settings.max_fuel is not None
    if fuel_metering:
        config.consume_fuel = True
    engine = wasmtime.Engine(config)

    logger.info("Compiling WASM (%.2f MB)...", len(wasm_bytes) / 1024 / 1024)
    started = time.monotonic()
    try:
        wasmtime.Module.validate(engine, wasm_bytes)
        module = wasmtime.Module(engine, wasm_bytes)
    except wasmtime.WasmtimeError as exc:
        raise ModuleLoadError(path, str(exc)) from exc

    if not any(export.name == "_start" for export in module.exports):
        raise ModuleLoadError(path, "module does not export a WASI '_start' entry point")

    logger.info("WASM module compiled in %.0fms", (time.monotonic() - started) * 1000)
    return CompiledModule(
        engine=engine,
        module=module,
        path=path,
        size_bytes=len(wasm_bytes),
        epoch_interval=settings.epoch_interval,
        fuel_metering=fuel_metering,
    )


class EpochTicker:
    """Background thread advancing the engine epoch every ``interval`` seconds.

    Usage::

        with EpochTicker(compiled):
            ...  # serve requests
    """

    def __init__(self, compiled: CompiledModule) -> None:
        self._engine = compiled.engine
        self._interval = compiled.epoch_interval
        self._stop = threading.Event()
        self._lock = threading.Lock()
        self._thread: threading.Thread | None = None

    def __enter__(self) -> EpochTicker:
        self.start()
        return self

    def __exit__(self, *_: object) -> None:
        self.stop()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.running:
                return
            self._stop.clear()
            self._thread = threading.Thread(target=self._tick, name="qjsmcp-epoch", daemon=True)
            self._thread.start()

    def stop(self) -> None:
        with self._lock:
            self._stop.set()
            if self._thread is not None:
                self._thread.join()
                self._thread = None

    def _tick(self) -> None:
        while not self._stop.wait(self._interval):
            self._engine.increment_epoch()
