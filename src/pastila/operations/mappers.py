"""
Error mapping and CLI utilities.

Provides centralized exception-to-exit-code mapping and a CLI command wrapper
so the Typer command does not need its own try/except blocks.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

import typer

from .printers import Output

logger = logging.getLogger(__name__)

T = TypeVar('T')

EXIT_CODES = {
    "NotFound": 1,
    "InvalidLocator": 2,
    "ValueError": 2,
    "KeyRequired": 3,
    "InvalidKey": 3,
    "BackendStatusError": 4,
    "TransportError": 4,
    "EditSessionError": 5,
    "EditorError": 5,
}

FALLBACK_EXIT_CODE = 1


def exit_code_for(exc: BaseException) -> int:
    """
    Map exception to standardized exit code.

    Returns:
    - 1: Paste not found (NotFound) or unknown error
    - 2: Invalid locator or configuration (InvalidLocator, ValueError)
    - 3: Key problems (KeyRequired, InvalidKey)
    - 4: Backend failures (BackendStatusError, TransportError)
    - 5: Edit session could not run (EditSessionError, EditorError)
    """
    return EXIT_CODES.get(type(exc).__name__, FALLBACK_EXIT_CODE)


def run_and_exit(func: Callable[[], T], output: Optional[Output] = None) -> T:
    """
    Unified error wrapper for CLI commands.

    Executes the given function; any exception is reported through
    ``output`` and turned into ``typer.Exit`` with the mapped code.

    Raises:
        typer.Exit: With appropriate exit code if function raises exception
    """
    try:
        return func()
    except typer.Exit:
        raise
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        (output or Output()).echo(str(e))
        raise typer.Exit(code=exit_code_for(e)) from e
