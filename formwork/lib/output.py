"""Per-submission capture of stray ``print`` output.

``sys.stdout`` is replaced once by a proxy that writes to the buffer of the
current context, or to the wrapped stream when nothing is capturing. Each
asyncio task carries its own context, so overlapping submissions never see
each other's output and the real stream is never swapped out mid-await.
"""

from __future__ import annotations

import contextlib
import contextvars
import io
import sys
from typing import Any, Iterator

capture_buffer_var: contextvars.ContextVar[io.StringIO | None] = contextvars.ContextVar(
    "formwork_capture_buffer", default=None
)


class ContextStdout:
    def __init__(self, stream: Any):
        self.stream = stream

    def write(self, text: str) -> int:
        buffer = capture_buffer_var.get()
        return (buffer if buffer is not None else self.stream).write(text)

    def writelines(self, lines: Any) -> None:
        for line in lines:
            self.write(line)

    def flush(self) -> None:
        if capture_buffer_var.get() is None:
            self.stream.flush()

    def __getattr__(self, name: str) -> Any:
        return getattr(self.stream, name)


@contextlib.contextmanager
def capture_output() -> Iterator[io.StringIO]:
    """Collect what the current context prints while the block runs."""
    if not isinstance(sys.stdout, ContextStdout):
        sys.stdout = ContextStdout(sys.stdout)
    buffer = io.StringIO()
    token = capture_buffer_var.set(buffer)
    try:
        yield buffer
    finally:
        capture_buffer_var.reset(token)
