"""Redirection of the process-wide standard streams for one test at a time."""

import io
import logging
import sys
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TextIO

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class CapturedOutput:
    """Lines captured during one capture window, filled when it closes."""

    stdout: Sequence[str] = field(default_factory=tuple)
    stderr: Sequence[str] = field(default_factory=tuple)


class _CaptureBuffer(io.BytesIO):
    """Byte buffer whose contents stay readable after it is closed."""

    def __init__(self) -> None:
        super().__init__()
        self._final: bytes | None = None

    def close(self) -> None:
        if not self.closed:
            self._final = self.getvalue()
        super().close()

    def contents(self) -> bytes:
        if self._final is not None:
            return self._final
        return self.getvalue()


def _new_buffer() -> tuple[_CaptureBuffer, io.TextIOWrapper]:
    raw = _CaptureBuffer()
    stream = io.TextIOWrapper(
        raw, encoding="utf-8", errors="replace", write_through=True
    )
    return raw, stream


def _drain(raw: _CaptureBuffer) -> Sequence[str]:
    # write_through leaves nothing pending in the text layer, so the bytes are
    # complete even when the test closed or detached the stream.
    text = raw.contents().decode("utf-8", errors="replace")
    return tuple(line for line in text.splitlines() if line)


class OutputInterceptor:
    """Swaps ``sys.stdout`` and ``sys.stderr`` for per-test buffers.

    Only one test can be under capture at any instant. Callers must run test
    bodies sequentially; concurrent tests would write into each other's
    buffers.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current_test_id: str | None = None
        self._saved: tuple[TextIO, TextIO] | None = None
        self._stdout_raw, self._stdout = _new_buffer()
        self._stderr_raw, self._stderr = _new_buffer()

    @property
    def current_test_id(self) -> str | None:
        return self._current_test_id

    def begin(self, test_id: str) -> None:
        """Start capturing output for ``test_id``.

        A window left open by a previous test is discarded; the streams that
        were active before it are kept as the ones to restore.
        """
        with self._lock:
            if self._current_test_id is not None:
                log.warning(
                    "Capture for %s was never closed, discarding its output",
                    self._current_test_id,
                )
            else:
                self._saved = (sys.stdout, sys.stderr)

            self._stdout_raw, self._stdout = _new_buffer()
            self._stderr_raw, self._stderr = _new_buffer()
            self._current_test_id = test_id
            sys.stdout = self._stdout
            sys.stderr = self._stderr

    def end(self, test_id: str) -> tuple[Sequence[str], Sequence[str]]:
        """Restore the original streams and return captured stdout/stderr lines.

        Returns two empty sequences if ``test_id`` is not under capture.
        """
        with self._lock:
            if self._current_test_id is None or self._current_test_id != test_id:
                return (), ()

            if self._saved is not None:
                sys.stdout, sys.stderr = self._saved
            self._saved = None
            self._current_test_id = None

            return _drain(self._stdout_raw), _drain(self._stderr_raw)

    @contextmanager
    def capturing(self, test_id: str) -> Iterator[CapturedOutput]:
        """Capture output for the duration of the block.

        The original streams are restored however the block exits.
        """
        captured = CapturedOutput()
        self.begin(test_id)
        try:
            yield captured
        finally:
            captured.stdout, captured.stderr = self.end(test_id)
