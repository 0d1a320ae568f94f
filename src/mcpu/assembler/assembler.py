"""
MCPU Assembler - Main Interface
===============================

This module provides the main Assembler class, the primary interface for
assembling MCPU source code. It runs the lexer and the code generator
and writes the resulting image, listing and symbol files.

Example Usage
-------------
>>> from mcpu.assembler import Assembler
>>>
>>> asm = Assembler()
>>> asm.assemble_string("DW A 0x1;DW B 0x2;PUSH A;LOAD;PUSH B;LOAD;ADD;HALT;")
b'\\x01\\x02\\x03\\x00\\x01\\x03\\x01\\x01\\x05\\x00'
>>> asm.get_symbols()
{'A': 0, 'B': 1}
>>> asm.write_binary("add.bin")

Command-Line Usage
------------------
The assembler can also be invoked from the command line:

    $ mcasm add.asm -o add.bin -l add.lst -s add.sym

Options:
    -o, --output FILE      Output binary image
    -l, --listing FILE     Generate listing file
    -s, --symbols FILE     Generate symbol file
    --terminator KIND      Statement terminator: semicolon or newline
    -v, --verbose          Verbose output
"""

from pathlib import Path
import logging

from mcpu.assembler.lexer import Lexer, Token
from mcpu.assembler.codegen import CodeGenerator
from mcpu.isa import MEMORY_SIZE

logger = logging.getLogger(__name__)


class Assembler:
    """
    Main MCPU assembler class.

    Each assemble call starts from an empty symbol table; results of the
    most recent call stay available through the get_* and write_* methods.

    Attributes:
        terminator: Statement terminator, ';' or '\\n'
        capacity: Maximum program size in bytes
    """

    def __init__(self, terminator: str = ";", capacity: int = MEMORY_SIZE):
        """
        Initialize the assembler.

        Args:
            terminator: Statement terminator, ';' (default) or '\\n'
            capacity: Maximum program size in bytes (1-256)

        Raises:
            ValueError: If terminator or capacity is not supported
        """
        if terminator not in Lexer.TERMINATORS:
            raise ValueError(f"terminator must be ';' or '\\n', got {terminator!r}")

        self.terminator = terminator
        self.capacity = capacity
        self._codegen = CodeGenerator(capacity=capacity)

    # =========================================================================
    # Assembly Methods
    # =========================================================================

    def tokenize(self, source: str, filename: str = "<input>") -> list[Token]:
        """Tokenize source with this assembler's terminator."""
        return Lexer(source, filename, self.terminator).tokenize()

    def assemble_string(self, source: str, filename: str = "<input>") -> bytes:
        """
        Assemble source code from a string.

        Args:
            source: Assembly source code
            filename: Virtual filename for error messages

        Returns:
            The program image

        Raises:
            LexError: On an illegal character
            AssembleError: On a grammar, symbol or capacity error
        """
        logger.info(f"Assembling {filename}")
        self._codegen.reset()

        tokens = self.tokenize(source, filename)
        self._codegen.set_source(source)
        code = self._codegen.generate(tokens)

        logger.info(f"Generated {len(code)} bytes of code")
        return code

    def assemble_file(self, filepath: str | Path) -> bytes:
        """
        Assemble source code from a file.

        Raises:
            AssemblerError: If assembly fails
            FileNotFoundError: If source file not found
        """
        filepath = Path(filepath)
        source = filepath.read_text()
        return self.assemble_string(source, str(filepath))

    # =========================================================================
    # Output Methods
    # =========================================================================

    def get_code(self) -> bytes:
        """Get the program image from the last assembly."""
        return self._codegen.get_code()

    def get_symbols(self) -> dict[str, int]:
        """Get the label table from the last assembly."""
        return self._codegen.get_symbols()

    def get_listing(self) -> str:
        """Get the assembly listing from the last assembly."""
        return self._codegen.get_listing()

    def write_binary(self, filepath: str | Path) -> None:
        """
        Write the raw program image.

        The image is loaded at address 0 by the virtual machine, so no
        header is written.
        """
        code = self.get_code()
        Path(filepath).write_bytes(code)
        logger.info(f"Wrote {len(code)} bytes to {filepath}")

    def write_listing(self, filepath: str | Path) -> None:
        """
        Write assembly listing file.

        The listing file shows:
        - Addresses
        - Generated bytes
        - Source statements
        - Symbol table
        """
        self._codegen.write_listing(filepath)
        logger.info(f"Wrote listing to {filepath}")

    def write_symbols(self, filepath: str | Path) -> None:
        """Write symbol table file."""
        self._codegen.write_symbols(filepath)
        logger.info(f"Wrote symbols to {filepath}")


# =============================================================================
# Convenience Functions
# =============================================================================

def parse(text: str, filename: str = "<input>", terminator: str = ";") -> bytes:
    """
    Tokenize and assemble source text in one step.

    Args:
        text: Assembly source code
        filename: Virtual filename for error messages
        terminator: Statement terminator, ';' (default) or '\\n'

    Returns:
        The program image

    Raises:
        AssemblerError: If the source fails to lex or assemble
    """
    return Assembler(terminator=terminator).assemble_string(text, filename)


def assemble_file(filepath: str | Path, terminator: str = ";") -> bytes:
    """Assemble a source file and return the program image."""
    return Assembler(terminator=terminator).assemble_file(filepath)
