"""
MCPU - Assembler and Virtual Machine for a Minimal Stack CPU
============================================================

This package provides a small toolchain for the MCPU, an 8-bit stack
machine with 256 bytes of memory whose program counter and stack pointer
live in the two topmost memory cells.

Main Components
---------------
- **assembler**: Lexer and single-pass code generator (mcasm)
    Converts assembly source into a raw byte image loaded at address 0

- **vm**: The virtual machine (mcrun)
    Executes an image with lenient or strict fault handling

- **disassembler**: Image back to assembly text (mcdisasm)

- **isa**: Opcode, condition and memory-layout tables shared by all three

Quick Start
-----------
Assemble and run a program:
    >>> from mcpu import parse, VM
    >>> vm = VM()
    >>> vm.load(parse("PUSH 0x6;JP;DW A 0x1;DW B 0x2;PUSH A;LOAD;PUSH B;LOAD;ADD;HALT;"))
    >>> vm.run()
    StopEvent(reason=<StopReason.HALTED: 1>, steps=8, pc=14)
    >>> vm.read(vm.sp + 1)
    3

Or use the command-line tools:
    $ mcasm add.asm -o add.bin
    $ mcrun add.asm --format decimal
    $ mcdisasm add.bin

Version History
---------------
1.0.0 - Initial release with assembler, virtual machine and disassembler
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from mcpu.assembler import Assembler, Token, TokenType, tokenize, assemble, parse
from mcpu.vm import VM, VMConfig, ExecutionPolicy, StopEvent, StopReason
from mcpu.disassembler import Disassembler
from mcpu.isa import MEMORY_SIZE, PC_ADDRESS, SP_ADDRESS, STACK_TOP, Opcode, Condition
from mcpu.errors import (
    McpuError,
    AssemblerError,
    LexError,
    AssembleError,
    UndefinedSymbolError,
    DuplicateSymbolError,
    CapacityError,
    VMError,
    LoadError,
    VMFault,
    IllegalOpcodeError,
    IllegalConditionError,
    ArithmeticOverflowError,
    StackOverflowError,
    StackUnderflowError,
    ReservedRegisterError,
)

__all__ = [
    "__version__",
    # Assembler
    "Assembler",
    "Token",
    "TokenType",
    "tokenize",
    "assemble",
    "parse",
    # Virtual machine
    "VM",
    "VMConfig",
    "ExecutionPolicy",
    "StopEvent",
    "StopReason",
    # Disassembler
    "Disassembler",
    # Machine constants
    "MEMORY_SIZE",
    "PC_ADDRESS",
    "SP_ADDRESS",
    "STACK_TOP",
    "Opcode",
    "Condition",
    # Errors
    "McpuError",
    "AssemblerError",
    "LexError",
    "AssembleError",
    "UndefinedSymbolError",
    "DuplicateSymbolError",
    "CapacityError",
    "VMError",
    "LoadError",
    "VMFault",
    "IllegalOpcodeError",
    "IllegalConditionError",
    "ArithmeticOverflowError",
    "StackOverflowError",
    "StackUnderflowError",
    "ReservedRegisterError",
]
