"""
Unified CLI Error Handling
==========================

Provides consistent error handling, exit codes and logging setup across
all CLI tools.
"""

import logging
import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from mcpu.errors import AssemblerError, McpuError

# --terminator choices
TERMINATORS = {
    "semicolon": ";",
    "newline": "\n",
}


class ExitCode(IntEnum):
    """Standard exit codes for CLI tools."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Assembly error, VM fault or exhausted step budget
    INVALID_ARGS = 2     # Invalid arguments or missing files
    INTERNAL_ERROR = 3   # Unexpected internal error


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: str | None = None
) -> NoReturn:
    """
    Unified exception handler for all CLI tools.

    Formats the error message appropriately, optionally prints traceback
    in verbose mode, and exits with the correct exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors
        error_type: Optional prefix for the error message (e.g., "Runtime")

    Raises:
        SystemExit: Always exits with an appropriate exit code
    """
    if isinstance(error, AssemblerError):
        # Already formatted as "file:line:col: error: ..."
        click.echo(str(error), err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    elif isinstance(error, McpuError):
        prefix = f"{error_type} error: " if error_type else "Error: "
        click.echo(f"{prefix}{error}", err=True)
        sys.exit(ExitCode.BUILD_ERROR)

    elif isinstance(error, click.BadParameter):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, (FileNotFoundError, PermissionError)):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)


def parse_address(value: str) -> int:
    """
    Parse an address option (0x hex or decimal) in 0-255.

    Raises:
        click.BadParameter: If the value is not a valid address
    """
    try:
        if value.lower().startswith("0x"):
            address = int(value, 16)
        else:
            address = int(value)
    except ValueError:
        raise click.BadParameter(f"invalid address '{value}'")
    if not 0 <= address <= 0xFF:
        raise click.BadParameter(f"address must be 0-255 (0x00-0xFF), got {value}")
    return address
