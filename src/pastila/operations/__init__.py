"""
Operations package - CLI support layer.

Holds the thread-safe Output used for user-visible messages and the
exception-to-exit-code mapping used by the CLI.
"""
from .mappers import EXIT_CODES, exit_code_for, run_and_exit
from .printers import Output

__all__ = ["EXIT_CODES", "Output", "exit_code_for", "run_and_exit"]
