"""Shared fixtures: settings and compiled stand-in sandbox programs."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from qjsmcp.config import RunnerSettings
from qjsmcp.sandbox.invoker import SandboxInvoker
from qjsmcp.sandbox.module_cache import CompiledModule, load_module
from tests.wasi_programs import Step, build_wasm


@pytest.fixture
def capture_root(tmp_path: Path) -> Path:
    return tmp_path / "captures"


@pytest.fixture
def settings(tmp_path: Path, capture_root: Path) -> RunnerSettings:
    return RunnerSettings(
        wasm_path=tmp_path / "qjs-wasi.wasm",
        timeout=5.0,
        capture_dir=capture_root,
        max_workers=4,
    )


@pytest.fixture
def compile_program(
    tmp_path: Path, settings: RunnerSettings
) -> Callable[..., tuple[CompiledModule, RunnerSettings]]:
    """Assemble *steps* into a module and load it like the real binary."""
    counter = iter(range(1_000_000))

    def _compile(*steps: Step, **overrides: Any) -> tuple[CompiledModule, RunnerSettings]:
        path = tmp_path / f"program-{next(counter)}.wasm"
        path.write_bytes(build_wasm(*steps))
        cfg = settings.model_copy(update={"wasm_path": path, **overrides})
        return load_module(cfg), cfg

    return _compile


@pytest.fixture
def make_invoker(
    compile_program: Callable[..., tuple[CompiledModule, RunnerSettings]],
) -> Iterator[Callable[..., SandboxInvoker]]:
    invokers: list[SandboxInvoker] = []

    def _make(*steps: Step, **overrides: Any) -> SandboxInvoker:
        compiled, cfg = compile_program(*steps, **overrides)
        invoker = SandboxInvoker(compiled, cfg)
        invokers.append(invoker)
        return invoker

    yield _make

    for invoker in invokers:
        invoker.close()
