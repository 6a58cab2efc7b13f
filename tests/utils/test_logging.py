"""Tests for logging setup."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from qjsmcp.utils.logging import configure_logging


class TestConfigureLogging:
    def test_installs_single_stderr_handler(self) -> None:
        root = logging.getLogger()
        original_level = root.level
        try:
            configure_logging("DEBUG")
            configure_logging("WARNING")
            ours = [h for h in root.handlers if h.get_name() == "qjsmcp-stderr"]
            assert len(ours) == 1
            assert isinstance(ours[0], RichHandler)
            assert ours[0].console.stderr is True
            assert root.level == logging.WARNING
        finally:
            for h in [h for h in root.handlers if h.get_name() == "qjsmcp-stderr"]:
                root.removeHandler(h)
            root.setLevel(original_level)
