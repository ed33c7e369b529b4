"""
Interactive edit session.

Opens a paste in an external editor and publishes every saved revision as a
new paste chained to the previous one:

    Spawning -> Editing -> (Saving)* -> Exiting -> Done

A FileWatcher thread polls the temporary file while the editor runs and
performs the saves; the main thread only waits for the editor to exit. The
watcher is the sole writer of the current paste until it has been stopped.
"""
from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
import sys
import tempfile
import threading
import time
from dataclasses import dataclass
from typing import IO, Callable, Optional

from .errors import EditorError, EditSessionError
from .models import Paste, WriteOptions
from .operations.printers import Output
from .service import PastilaService

logger = logging.getLogger(__name__)

__all__ = ["FileSnapshot", "FileWatcher", "EditSession", "has_changed", "QUICK_EXIT_PROMPT"]

QUICK_EXIT_PROMPT = "Your editor exited too quickly. Does it run in background? Press any key to continue"


@dataclass(frozen=True)
class FileSnapshot:
    """Size and modification time of a file at one poll."""
    size: int
    mtime_ns: int

    @classmethod
    def of(cls, path: str) -> FileSnapshot:
        stat = os.stat(path)
        return cls(size=stat.st_size, mtime_ns=stat.st_mtime_ns)


def has_changed(previous: FileSnapshot, current: FileSnapshot) -> bool:
    """A non-empty file whose size or modification time moved since ``previous``."""
    if current.size == 0:
        return False
    return current.size != previous.size or current.mtime_ns != previous.mtime_ns


class FileWatcher:
    """
    Polls a file and calls ``on_change`` when it changes.

    The handler runs on the watcher thread, one call at a time; the next poll
    starts only after it returns. ``stop()`` cancels the loop and waits for
    the thread to acknowledge by exiting.
    """

    def __init__(self, path: str, on_change: Callable[[FileSnapshot], None],
                 poll_interval: float = 0.01):
        self.path = path
        self.on_change = on_change
        self.poll_interval = poll_interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._snapshot: Optional[FileSnapshot] = None

    def start(self) -> None:
        """Take the baseline snapshot and start polling."""
        if self._thread is not None:
            raise RuntimeError("watcher already started")
        self._snapshot = FileSnapshot.of(self.path)
        self._thread = threading.Thread(target=self._run, name="pastila-file-watcher", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Cancel polling and wait until the watcher thread has exited."""
        self._stop.set()
        if self._thread is not None:
            self._thread.join()

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                current = FileSnapshot.of(self.path)
            except FileNotFoundError:
                # Some editors replace the file on save; it reappears shortly.
                current = None
            except OSError as e:
                logger.warning(f"Stopped watching {self.path}: {e}")
                return

            if current is not None and has_changed(self._snapshot, current):
                self._snapshot = current
                try:
                    self.on_change(current)
                except Exception:
                    # Keep polling after a failed handler call.
                    logger.exception(f"Change handler failed for {self.path}")

            self._stop.wait(self.poll_interval)


def _read_key() -> None:
    sys.stdin.read(1)


class EditSession:
    """
    Edit a paste in an external editor, saving each revision as a new paste.

    Args:
        service: Service used for the saves
        paste: Paste to start from; its content stream is consumed
        output: Destination of user-visible messages
        editor: Editor command; the temp file path is appended as last argument
        poll_interval: Seconds between temp file checks
        quick_exit_threshold: Successful editor exits faster than this trigger
            the "runs in background?" prompt
        wait_for_key: Blocks until the user confirms the prompt
    """

    def __init__(self, service: PastilaService, paste: Paste, output: Output,
                 editor: str = "vi", poll_interval: float = 0.01,
                 quick_exit_threshold: float = 1.0,
                 wait_for_key: Callable[[], object] = _read_key):
        self.service = service
        self.output = output
        self.editor = editor
        self.poll_interval = poll_interval
        self.quick_exit_threshold = quick_exit_threshold
        self.wait_for_key = wait_for_key
        self.saves = 0
        self._original = paste
        self._current = paste
        self._path: Optional[str] = None

    @property
    def current(self) -> Paste:
        return self._current

    def run(self) -> Paste:
        """
        Run the session until the editor exits.

        Returns:
            The last saved paste, or the original one if nothing was saved

        Raises:
            EditSessionError: If the temporary file cannot be prepared
            EditorError: If the editor cannot be started
        """
        handle = self._materialize()
        self._path = handle.name
        try:
            watcher = FileWatcher(handle.name, self._save, poll_interval=self.poll_interval)
            with self.output.buffered():
                watcher.start()
                try:
                    returncode = self._edit(handle.name)
                finally:
                    watcher.stop()

            if returncode != 0:
                self.output.echo(f"Editor exited with status {returncode}")
        finally:
            self._release(handle)

        logger.debug(f"Edit session finished after {self.saves} save(s)")
        return self._current

    def _materialize(self) -> IO[bytes]:
        """Copy the paste content into a fresh temporary file."""
        prefix = f"pastila-{self._original.hash.hex()}" if self._original.hash else "pastila-"
        try:
            handle = tempfile.NamedTemporaryFile(prefix=prefix, delete=False)
        except OSError as e:
            raise EditSessionError(f"failed to create temporary file: {e}") from e

        try:
            shutil.copyfileobj(self._original.content, handle)
            handle.flush()
        except OSError as e:
            self._release(handle)
            raise EditSessionError(f"failed to write paste to temporary file: {e}") from e

        logger.debug(f"Materialized paste into {handle.name}")
        return handle

    def _edit(self, path: str) -> int:
        """Start the editor on ``path`` and wait for it to exit."""
        command = shlex.split(self.editor) + [path]
        started_at = time.monotonic()
        try:
            process = subprocess.Popen(command)
        except OSError as e:
            raise EditorError(f"failed to start editor {self.editor!r}: {e}") from e

        returncode = process.wait()
        elapsed = time.monotonic() - started_at
        logger.debug(f"Editor exited with {returncode} after {elapsed:.2f}s")

        # Launchers like "code" return at once and leave the real editor running.
        if returncode == 0 and elapsed < self.quick_exit_threshold:
            self.output.prompt(QUICK_EXIT_PROMPT)
            self.wait_for_key()

        return returncode

    def _save(self, snapshot: FileSnapshot) -> None:
        """Publish the file content as a paste chained to the current one."""
        try:
            with open(self._path, "rb") as fh:
                data = fh.read()
            paste = self.service.write(data, WriteOptions().with_previous_paste(self._current))
        except Exception as e:
            logger.warning(f"Save failed: {e}")
            self.output.echo(f"Failed to save: {e}")
            return

        self._current = paste
        self.saves += 1
        self.output.echo(paste.url)

    def _release(self, handle: IO[bytes]) -> None:
        """Close, then delete the temporary file."""
        try:
            handle.close()
        except OSError as e:
            self.output.echo(f"Failed to close temporary file: {e}")
        try:
            os.remove(handle.name)
        except FileNotFoundError:
            pass
        except OSError as e:
            self.output.echo(f"Failed to remove temporary file: {e}")
