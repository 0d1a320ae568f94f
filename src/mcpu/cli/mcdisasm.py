"""
mcdisasm - MCPU Disassembler Command-Line Interface
===================================================

Usage Examples
--------------
Disassemble a binary:
    $ mcdisasm add.bin

Start at an address and limit the count:
    $ mcdisasm add.bin --address 0x2 --count 4

Output to file:
    $ mcdisasm add.bin -o add.dis
"""

import sys
from pathlib import Path
from typing import Optional

import click

from mcpu import __version__
from mcpu.cli.errors import ExitCode, handle_cli_exception, parse_address
from mcpu.disassembler import Disassembler


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-a", "--address",
    type=str,
    default="0",
    help="Address to start at (hex with 0x prefix or decimal). Default: 0",
)
@click.option(
    "-c", "--count",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of instructions to disassemble (default: all)",
)
@click.version_option(version=__version__, prog_name="mcdisasm")
def main(
    input_file: Path,
    output: Optional[Path],
    address: str,
    count: Optional[int],
) -> None:
    """
    Disassemble an MCPU binary image.

    INPUT_FILE is the binary image; address 0 is its first byte.
    """
    try:
        start = parse_address(address)
        data = input_file.read_bytes()
    except Exception as e:
        handle_cli_exception(e)

    if start > 0 and start >= len(data):
        click.echo(f"Error: address 0x{start:02X} is beyond the {len(data)}-byte image", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    lines = [
        f"; Disassembly of {input_file.name}",
        f"; Size: {len(data)} bytes",
        "",
    ]
    instructions = Disassembler().disassemble(data, start_address=start, count=count)
    lines.extend(str(instr) for instr in instructions)
    result = "\n".join(lines) + "\n"

    if output:
        output.write_text(result, encoding="utf-8")
    else:
        click.echo(result, nl=False)


if __name__ == "__main__":
    main()
