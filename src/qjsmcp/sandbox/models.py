"""Data models for the sandbox subsystem."""

from __future__ import annotations

import uuid
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class OutcomeKind(str, Enum):
    """How a single execution ended, as seen by the caller."""

    SUCCESS = "success"
    STARTUP_ERROR = "startup_error"
    TIMEOUT = "timeout"
    NON_ZERO_EXIT = "non_zero_exit"
    STDERR_SIGNAL = "stderr_signal"
    INTERNAL_ERROR = "internal_error"


class Invocation(BaseModel):
    """One request to execute a snippet. Never reused across runs."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="JavaScript source passed inline to the interpreter.")
    invocation_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])


class ExecutionOutcome(BaseModel):
    """Raw result of one sandboxed run, before classification."""

    model_config = ConfigDict(frozen=True)

    stdout: str = Field(default="", description="Captured stdout.")
    stderr: str = Field(default="", description="Captured stderr.")
    exit_status: int | None = Field(default=None, description="Program exit status, if it finished.")
    startup_error: str | None = Field(default=None, description="Host-level failure description.")
    timed_out: bool = Field(default=False, description="Whether the run hit its deadline.")
    timeout: float | None = Field(default=None, description="Deadline that applied, in seconds.")
    duration_ms: int = Field(default=0, description="Wall-clock time spent in the sandbox.")


class ToolResult(BaseModel):
    """Caller-facing verdict handed to the transport."""

    model_config = ConfigDict(frozen=True)

    content_text: str
    is_error: bool
    kind: OutcomeKind
