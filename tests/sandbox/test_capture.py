"""Tests for CaptureChannel."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from qjsmcp.errors import CaptureSetupError
from qjsmcp.sandbox.capture import CAPTURE_PREFIX, CaptureChannel, open_capture, truncate


class TestCaptureChannel:
    def test_open_creates_unique_empty_files(self, tmp_path: Path) -> None:
        a = CaptureChannel.open(tmp_path)
        b = CaptureChannel.open(tmp_path)
        try:
            assert a.root != b.root
            assert a.root.name.startswith(CAPTURE_PREFIX)
            assert a.stdout_path.read_bytes() == b""
            assert a.stderr_path.read_bytes() == b""
        finally:
            a.release()
            b.release()

    def test_open_creates_missing_parent(self, tmp_path: Path) -> None:
        parent = tmp_path / "nested" / "captures"
        with open_capture(parent) as channel:
            assert channel.root.parent == parent

    def test_finalize_reads_both_streams(self, tmp_path: Path) -> None:
        with open_capture(tmp_path) as channel:
            channel.stdout_path.write_text("hello\n")
            channel.stderr_path.write_text("oops\n")
            assert channel.finalize() == ("hello\n", "oops\n")

    def test_finalize_replaces_invalid_utf8(self, tmp_path: Path) -> None:
        with open_capture(tmp_path) as channel:
            channel.stdout_path.write_bytes(b"ok \xff\xfe")
            stdout, _ = channel.finalize()
        assert stdout.startswith("ok ")
        assert "�" in stdout

    def test_finalize_truncates(self, tmp_path: Path) -> None:
        with open_capture(tmp_path, max_chars=10) as channel:
            channel.stdout_path.write_text("a" * 100)
            stdout, stderr = channel.finalize()
        assert stdout.startswith("a" * 10)
        assert "[truncated" in stdout
        assert stderr == ""

    def test_release_is_idempotent(self, tmp_path: Path) -> None:
        channel = CaptureChannel.open(tmp_path)
        channel.release()
        channel.release()
        assert channel.released is True
        assert not channel.root.exists()

    def test_context_manager_releases_on_error(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            with open_capture(tmp_path) as channel:
                root = channel.root
                raise ValueError("boom")
        assert not root.exists()

    def test_open_failure_raises_capture_setup_error(self, tmp_path: Path) -> None:
        with patch("qjsmcp.sandbox.capture.tempfile.mkdtemp", side_effect=OSError("no space")):
            with pytest.raises(CaptureSetupError, match="no space"):
                CaptureChannel.open(tmp_path)

    def test_file_creation_failure_cleans_up(self, tmp_path: Path) -> None:
        with patch.object(Path, "touch", side_effect=OSError("read-only")):
            with pytest.raises(CaptureSetupError, match="read-only"):
                CaptureChannel.open(tmp_path)
        assert list(tmp_path.iterdir()) == []


class TestTruncate:
    def test_short_text_unchanged(self) -> None:
        assert truncate("abc", 10) == "abc"

    def test_no_limit(self) -> None:
        assert truncate("abc" * 100, None) == "abc" * 100

    def test_reports_total_size(self) -> None:
        out = truncate("x" * 2048, 16)
        assert out.startswith("x" * 16 + "\n")
        assert "2.0KB total" in out
