"""
mcrun - MCPU Virtual Machine Command-Line Interface
===================================================

Assembles a source file (or loads a raw binary), runs it, and prints the
final memory with the PC, SP and stop reason.

Usage Examples
--------------
Run a source file:
    $ mcrun add.asm

Classic space-separated decimal dump:
    $ mcrun add.asm --format decimal

Run a binary with faults reported:
    $ mcrun add.bin --binary --strict
"""

import logging
import sys
from pathlib import Path

import click

from mcpu import __version__
from mcpu.assembler import Assembler
from mcpu.cli.errors import ExitCode, TERMINATORS, handle_cli_exception, setup_logging
from mcpu.errors import VMFault
from mcpu.vm import VM, VMConfig, ExecutionPolicy, StopReason

logger = logging.getLogger(__name__)


def format_memory(memory: bytes, fmt: str) -> str:
    """
    Format a memory dump.

    'decimal' gives every byte in decimal separated by spaces; 'hex' gives
    16 bytes per row prefixed with the row address.
    """
    if fmt == "decimal":
        return " ".join(str(b) for b in memory)

    rows = []
    for i in range(0, len(memory), 16):
        chunk = memory[i:i + 16]
        rows.append(f"{i:02X}: " + " ".join(f"{b:02X}" for b in chunk))
    return "\n".join(rows)


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--binary",
    is_flag=True,
    help="INPUT_FILE is a raw binary image instead of assembly source",
)
@click.option(
    "--terminator",
    type=click.Choice(sorted(TERMINATORS)),
    default="semicolon",
    show_default=True,
    help="Statement terminator of the source",
)
@click.option(
    "--max-steps",
    type=click.IntRange(min=0),
    default=1_000_000,
    show_default=True,
    help="Maximum instructions to execute",
)
@click.option(
    "--strict",
    is_flag=True,
    help="Fault on illegal opcodes, overflow and stack wraparound",
)
@click.option(
    "--protect-registers",
    is_flag=True,
    help="Fault on STORE into the PC/SP cells",
)
@click.option(
    "--format", "fmt",
    type=click.Choice(["hex", "decimal"]),
    default="hex",
    show_default=True,
    help="Memory dump format",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="mcrun")
def main(
    input_file: Path,
    binary: bool,
    terminator: str,
    max_steps: int,
    strict: bool,
    protect_registers: bool,
    fmt: str,
    verbose: bool,
) -> None:
    """
    Run an MCPU program and dump the final memory.

    INPUT_FILE is an assembly source file, or a binary image with --binary.

    \b
    Examples:
        mcrun add.asm
        mcrun add.asm --format decimal
        mcrun add.bin --binary --strict --max-steps 1000
    """
    setup_logging(verbose)

    config = VMConfig(
        policy=ExecutionPolicy.STRICT if strict else ExecutionPolicy.LENIENT,
        protect_registers=protect_registers,
    )
    vm = VM(config)

    try:
        if binary:
            program = input_file.read_bytes()
        else:
            program = Assembler(terminator=TERMINATORS[terminator]).assemble_file(input_file)

        vm.load(program)
        event = vm.run(max_steps)

    except VMFault as e:
        logger.warning(f"Fault: {e}")
        click.echo(format_memory(vm.memory.snapshot(), fmt))
        click.echo(f"PC=0x{vm.pc:02X} SP=0x{vm.sp:02X} faulted")
        handle_cli_exception(e, verbose=verbose, error_type="Runtime")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose)

    click.echo(format_memory(vm.memory.snapshot(), fmt))
    click.echo(f"PC=0x{vm.pc:02X} SP=0x{vm.sp:02X} {event} ({event.steps} steps)")

    if event.reason is StopReason.MAX_STEPS:
        click.echo(f"Error: program still running after {max_steps} steps", err=True)
        sys.exit(ExitCode.BUILD_ERROR)


if __name__ == "__main__":
    main()
