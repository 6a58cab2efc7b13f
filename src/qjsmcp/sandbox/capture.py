"""Output capture — per-invocation stdout/stderr files for the WASI instance.

wasmtime binds guest output streams to host file paths, not to in-process
buffers, so each invocation gets its own temporary directory holding one
file per stream.  The directory is removed when the channel is released.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from qjsmcp.errors import CaptureSetupError

logger = logging.getLogger(__name__)

CAPTURE_PREFIX = "qjsmcp-"


class CaptureChannel:
    """A pair of capture files scoped to a single invocation.

    Prefer :func:`open_capture`, which guarantees :meth:`release`.
    """

    def __init__(self, root: Path, max_chars: int | None = None) -> None:
        self._root = root
        self._max_chars = max_chars
        self.stdout_path = root / "stdout"
        self.stderr_path = root / "stderr"
        self._released = False

    @classmethod
    def open(cls, parent: Path | None = None, *, max_chars: int | None = None) -> CaptureChannel:
        """Allocate a fresh, uniquely named capture directory.

        Raises:
            CaptureSetupError: If the directory or files cannot be created.
        """
        try:
            if parent is not None:
                parent.mkdir(parents=True, exist_ok=True)
            root = Path(tempfile.mkdtemp(prefix=CAPTURE_PREFIX, dir=parent))
        except OSError as exc:
            raise CaptureSetupError(str(exc)) from exc

        channel = cls(root, max_chars=max_chars)
        try:
            channel.stdout_path.touch()
            channel.stderr_path.touch()
        except OSError as exc:
            channel.release()
            raise CaptureSetupError(str(exc)) from exc
        return channel

    @property
    def root(self) -> Path:
        return self._root

    @property
    def released(self) -> bool:
        return self._released

    def finalize(self) -> tuple[str, str]:
        """Read back both streams.  Call only after the guest stopped writing."""
        return self._read(self.stdout_path), self._read(self.stderr_path)

    def release(self) -> None:
        """Remove the capture directory.  Safe to call more than once."""
        if self._released:
            return
        self._released = True
        shutil.rmtree(self._root, ignore_errors=True)
        if self._root.exists():
            logger.warning("Capture directory %s could not be removed", self._root)

    def _read(self, path: Path) -> str:
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return ""
        return truncate(data.decode("utf-8", errors="replace"), self._max_chars)


@contextmanager
def open_capture(parent: Path | None = None, *, max_chars: int | None = None) -> Iterator[CaptureChannel]:
    """Open a :class:`CaptureChannel` and release it on every exit path."""
    channel = CaptureChannel.open(parent, max_chars=max_chars)
    try:
        yield channel
    finally:
        channel.release()


def truncate(text: str, limit: int | None) -> str:
    """Cap *text* at *limit* characters, noting the full size."""
    if limit is None or len(text) <= limit:
        return text
    return text[:limit] + f"\n[truncated: {_humanize_bytes(len(text.encode()))} total, showing first {limit} chars]"


def _humanize_bytes(n: int) -> str:
    v = float(n)
    for unit in ("B", "KB", "MB"):
        if v < 1024:
            return f"{v:.0f}{unit}" if unit == "B" else f"{v:.1f}{unit}"
        v /= 1024
    return f"{v:.1f}GB"
