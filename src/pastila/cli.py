"""
Pastila CLI

Reads and writes pastes on the pastila.nl copy-paste service:
- pastila URL        read a paste and copy it to stdout
- pastila -e URL     read a paste and edit it, saving each revision
- cmd | pastila      write stdin as a new (encrypted) paste
- pastila -f FILE    write a file as a new paste

Read content goes to stdout, messages go to stderr. When writing, the new
URL is printed to stdout (to stderr with --tee).
"""
from __future__ import annotations

import io
import logging
import os
import shutil
import stat
import sys
from pathlib import Path
from typing import BinaryIO, Optional

import typer

from .cli_context import CLIContext
from .editor import EditSession
from .models import Paste, WriteOptions
from .operations import run_and_exit
from .transform import generate_key

app = typer.Typer(
    name="pastila",
    help="Read and write from the pastila.nl copy-paste service. "
         "See https://github.com/ClickHouse/pastila for more information.",
    add_completion=False,
)

URL_READ_LIMIT = 1024


def _stdin_if_available() -> Optional[BinaryIO]:
    """
    Return stdin as a binary stream when something is piped or redirected in.

    An interactive terminal (or /dev/null) is not content to write.
    """
    stream = sys.stdin
    if stream is None:
        return None
    try:
        mode = os.fstat(stream.fileno()).st_mode
    except (AttributeError, OSError, ValueError):
        # In-memory streams (test runners) have no descriptor.
        return None if stream.isatty() else typer.get_binary_stream("stdin")
    if stat.S_ISFIFO(mode) or stat.S_ISREG(mode):
        return typer.get_binary_stream("stdin")
    return None


def _resolve_key(plain: bool, key: Optional[str]) -> Optional[bytes]:
    """
    Work out the encryption key of a new paste.

    --plain disables encryption; --key is a key file path or the key itself;
    otherwise a fresh random 16-byte key is generated.
    """
    if plain:
        return None
    if not key:
        return generate_key()
    if os.path.isfile(key):
        try:
            return Path(key).read_bytes()
        except OSError as e:
            raise ValueError(f"Failed to read key from file {key}: {e}") from e
    return key.encode("utf-8")


def _read_file(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise ValueError(f"Failed to open file {path}: {e}") from e


def _read_url_from_stdin(stdin: Optional[BinaryIO]) -> str:
    if stdin is None:
        raise ValueError('No URL provided in stdin, but "-" was passed as URL')
    url = stdin.read(URL_READ_LIMIT).decode("utf-8", errors="replace").strip()
    if not url:
        raise ValueError("Failed to read pastila URL from stdin")
    return url


def _edit(context: CLIContext, paste: Paste) -> Paste:
    settings = context.settings
    session = EditSession(
        context.service,
        paste,
        context.output,
        editor=settings.editor,
        poll_interval=settings.poll_interval_s,
        quick_exit_threshold=settings.quick_exit_threshold_s,
    )
    result = session.run()
    if session.saves:
        typer.echo(result.url)
    return result


def _read(context: CLIContext, url: str, edit: bool, summary: bool) -> None:
    with context.service.read(url) as paste:
        if edit:
            with _edit(context, paste):
                pass
        else:
            stdout = typer.get_binary_stream("stdout")
            shutil.copyfileobj(paste, stdout)
            stdout.flush()

        if summary:
            context.output.echo(f"Query ID: {paste.query_id}")


def _write(context: CLIContext, data: bytes, key: Optional[bytes], tee: bool) -> None:
    if tee:
        stdout = typer.get_binary_stream("stdout")
        stdout.write(data)
        stdout.flush()

    with context.service.write(data, WriteOptions().with_key(key)) as paste:
        if tee:
            context.output.echo(paste.url)
        else:
            typer.echo(paste.url)


@app.command()
def pastila(
    ctx: typer.Context,
    url: Optional[str] = typer.Argument(None, help='Pastila URL, or "-" to read the URL from stdin'),
    file: Optional[Path] = typer.Option(None, "-f", "--file", help="Content file path"),
    plain: bool = typer.Option(False, "--plain", help="Do not encrypt content. Default is to encrypt content."),
    key: Optional[str] = typer.Option(None, "--key", help="Key to encrypt content, or a path of a file holding it. A random 16-byte key is generated if not provided."),
    summary: bool = typer.Option(False, "-s", "--summary", help="Show query summary after reading from pastila"),
    edit: bool = typer.Option(False, "-e", "--edit", help="Launch editor to write content. If URL is provided, editor will be launched after reading from pastila. Uses the EDITOR environment variable, vi otherwise."),
    tee: bool = typer.Option(False, "--tee", help="Write content to stdout and to pastila. URL will be printed to stderr."),
    verbose: bool = typer.Option(False, "--verbose", help="Show debug logging"),
) -> None:
    """Read a paste from URL, or write stdin / FILE as a new paste."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )

    stdin = _stdin_if_available()

    if not url and file is None and stdin is None and not edit:
        typer.echo(ctx.get_help(), err=True)
        raise typer.Exit(code=1)

    def _pastila() -> None:
        context = CLIContext.from_env()
        try:
            target = _read_url_from_stdin(stdin) if url == "-" else url

            if target:
                _read(context, target, edit=edit, summary=summary)
                return

            key_bytes = _resolve_key(plain, key)

            if edit:
                initial = Paste.blank(key_bytes)
                if file is not None:
                    initial.content = io.BytesIO(_read_file(file))
                with _edit(context, initial):
                    pass
                return

            data = _read_file(file) if file is not None else stdin.read()
            _write(context, data, key_bytes, tee=tee)
        finally:
            context.close()

    run_and_exit(_pastila)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
