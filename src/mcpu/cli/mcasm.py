"""
mcasm - MCPU Assembler Command-Line Interface
=============================================

Usage Examples
--------------
Basic assembly:
    $ mcasm add.asm

With output file:
    $ mcasm add.asm -o add.bin

Generate all output files:
    $ mcasm add.asm -o add.bin -l add.lst -s add.sym

One statement per line instead of ';':
    $ mcasm --terminator newline add.asm
"""

from pathlib import Path
from typing import Optional

import click

from mcpu import __version__
from mcpu.assembler import Assembler
from mcpu.cli.errors import TERMINATORS, handle_cli_exception, setup_logging


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
    help="Output binary image (default: INPUT.bin)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "--terminator",
    type=click.Choice(sorted(TERMINATORS)),
    default="semicolon",
    show_default=True,
    help="Statement terminator",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="mcasm")
def main(
    input_file: Path,
    output: Optional[Path],
    listing: Optional[Path],
    symbols: Optional[Path],
    terminator: str,
    verbose: bool,
) -> None:
    """
    Assemble MCPU source code into a raw binary image.

    INPUT_FILE is the assembly source file to assemble.

    \b
    Examples:
        mcasm add.asm              # Outputs add.bin
        mcasm add.asm -o out.bin   # Specify output file
        mcasm add.asm -l add.lst   # Also write a listing
    """
    setup_logging(verbose)
    output_file = output if output is not None else input_file.with_suffix(".bin")

    try:
        asm = Assembler(terminator=TERMINATORS[terminator])
        asm.assemble_file(input_file)
        asm.write_binary(output_file)

        if listing:
            asm.write_listing(listing)
        if symbols:
            asm.write_symbols(symbols)

        if verbose:
            code = asm.get_code()
            click.echo(f"Assembly complete: {len(code)} bytes to {output_file}")
            click.echo(f"Defined {len(asm.get_symbols())} symbols")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
