"""Tests for sandbox data models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from qjsmcp.sandbox.models import ExecutionOutcome, Invocation, OutcomeKind, ToolResult


class TestInvocation:
    def test_fresh_ids(self) -> None:
        a = Invocation(code="1")
        b = Invocation(code="1")
        assert a.invocation_id != b.invocation_id

    def test_frozen(self) -> None:
        inv = Invocation(code="1")
        with pytest.raises(ValidationError):
            inv.code = "2"  # type: ignore[misc]


class TestExecutionOutcome:
    def test_defaults(self) -> None:
        outcome = ExecutionOutcome()
        assert outcome.stdout == ""
        assert outcome.stderr == ""
        assert outcome.exit_status is None
        assert outcome.startup_error is None
        assert outcome.timed_out is False

    def test_frozen(self) -> None:
        outcome = ExecutionOutcome(exit_status=0)
        with pytest.raises(ValidationError):
            outcome.exit_status = 1  # type: ignore[misc]


class TestToolResult:
    def test_json_round_trip_keeps_kind(self) -> None:
        result = ToolResult(content_text="x", is_error=True, kind=OutcomeKind.TIMEOUT)
        data = result.model_dump(mode="json")
        assert data == {"content_text": "x", "is_error": True, "kind": "timeout"}
