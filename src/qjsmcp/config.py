"""Runner settings and the YAML settings loader."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from qjsmcp.errors import ConfigError

DEFAULT_WASM_PATH = Path(__file__).resolve().parent / "qjs-wasi.wasm"


class TelemetrySettings(BaseModel):
    """Optional telemetry configuration."""

    enabled: bool = False
    otlp_endpoint: str | None = None
    export_to_console: bool = False


class RunnerSettings(BaseModel):
    """Configuration for the sandbox runner and its MCP server."""

    wasm_path: Path = Field(default=DEFAULT_WASM_PATH, description="Path to the QuickJS WASI module.")
    timeout: float = Field(default=30.0, gt=0, description="Max execution time per snippet in seconds.")
    memory_limit_mb: int = Field(default=256, gt=0, description="Linear memory cap per instance.")
    max_fuel: int | None = Field(default=None, gt=0, description="Instruction budget per run (disabled when unset).")
    max_workers: int = Field(default=4, gt=0, description="Concurrent sandbox executions.")
    max_output_chars: int = Field(default=50_000, gt=0, description="Per-stream cap on returned output.")
    inherit_stdin: bool = Field(default=False, description="Bind the host stdin into the sandbox.")
    inherit_env: bool = Field(default=False, description="Expose the host environment to scripts.")
    env: dict[str, str] = Field(default_factory=dict, description="Environment variables for scripts.")
    capture_dir: Path | None = Field(default=None, description="Parent directory for capture files.")
    epoch_interval: float = Field(default=0.01, gt=0, description="Seconds per engine epoch tick.")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    @property
    def memory_limit_bytes(self) -> int:
        return self.memory_limit_mb * 1024 * 1024


class SettingsLoader:
    """Load and validate a settings YAML file into :class:`RunnerSettings`."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self, **overrides: Any) -> RunnerSettings:
        """Read YAML, interpolate env vars, apply *overrides*, and validate.

        ``None`` overrides are ignored so unset CLI options keep the file's
        values.  Relative ``wasm_path`` and ``capture_dir`` entries resolve
        against the YAML file's directory.

        Raises:
            ConfigError: On read, YAML parse, or validation failures.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read {self._path}: {exc}") from exc

        expanded = os.path.expandvars(raw)

        try:
            data: Any = yaml.safe_load(expanded)
        except yaml.YAMLError as exc:
            raise ConfigError(f"YAML parse error: {exc}") from exc

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Settings YAML must be a mapping")

        base_dir = self._path.parent
        for key in ("wasm_path", "capture_dir"):
            value = data.get(key)
            if isinstance(value, str) and not Path(value).is_absolute():
                data[key] = str(base_dir / value)

        return build_settings(data, **overrides)


def build_settings(data: dict[str, Any] | None = None, **overrides: Any) -> RunnerSettings:
    """Merge *overrides* over *data* and validate the result."""
    merged = dict(data or {})
    merged.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return RunnerSettings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
