"""
User-visible output.

All messages meant for the user (locators, errors, prompts) go through an
Output instance instead of a process-wide writer. During an edit session the
Output is switched to an in-memory buffer so messages do not interleave with
the editor's screen; the switch and every write share one lock, so a save
reported from the watcher thread can never race the switch.
"""
from __future__ import annotations

import io
import threading
from contextlib import contextmanager
from typing import Iterator, Optional, TextIO

import typer

__all__ = ["Output"]


class Output:
    """
    Thread-safe destination for user-visible messages.

    Args:
        stream: Text stream to write to; None means stderr, resolved at write time
    """

    def __init__(self, stream: Optional[TextIO] = None):
        self._stream = stream
        self._buffer: Optional[io.StringIO] = None
        self._lock = threading.Lock()

    @property
    def is_buffered(self) -> bool:
        with self._lock:
            return self._buffer is not None

    def echo(self, message: str) -> None:
        """Write one line to the current destination."""
        with self._lock:
            if self._buffer is not None:
                self._buffer.write(message + "\n")
            else:
                self._write_direct(message)

    def prompt(self, message: str) -> None:
        """Write one line to the real stream, even while buffered."""
        with self._lock:
            self._write_direct(message)

    @contextmanager
    def buffered(self) -> Iterator[Output]:
        """
        Hold messages in memory until the block exits.

        On exit the buffer is flushed to the real stream in the order the
        messages were written, then direct mode is restored.
        """
        with self._lock:
            if self._buffer is not None:
                raise RuntimeError("output is already buffered")
            self._buffer = io.StringIO()
        try:
            yield self
        finally:
            with self._lock:
                held = self._buffer.getvalue()
                self._buffer = None
                if held:
                    self._write_direct(held, nl=False)

    def _write_direct(self, message: str, nl: bool = True) -> None:
        if self._stream is None:
            typer.echo(message, err=True, nl=nl)
        else:
            typer.echo(message, file=self._stream, nl=nl)
