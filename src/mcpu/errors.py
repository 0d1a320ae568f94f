"""
MCPU Error Hierarchy
====================

This module defines the exception hierarchy for the whole toolchain.
All exceptions inherit from McpuError, allowing callers to catch every
toolchain error with a single except clause if desired.

Exception Hierarchy
-------------------
McpuError (base)
├── AssemblerError (assembler-related)
│   ├── LexError - character the lexer cannot accept
│   └── AssembleError - token that does not fit the instruction grammar
│       ├── UndefinedSymbolError - PUSH of a label not declared yet
│       ├── DuplicateSymbolError - label declared twice
│       └── CapacityError - program does not fit in memory
└── VMError (virtual machine)
    ├── LoadError - program image cannot be loaded
    └── VMFault - strict-mode execution fault
        ├── IllegalOpcodeError
        ├── IllegalConditionError
        ├── ArithmeticOverflowError
        ├── StackOverflowError
        ├── StackUnderflowError
        └── ReservedRegisterError

Error messages follow this format:
    filename:line:column: error: description
    source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from mcpu.assembler.lexer import Token


# =============================================================================
# Base Exception Class
# =============================================================================

class McpuError(Exception):
    """
    Base exception for all MCPU errors.

        try:
            vm.load(parse(source))
            vm.run()
        except McpuError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A location in assembly source, used for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        offset: 0-based character offset from the start of the source
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    offset: int
    line: int = 1
    column: int = 1

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Assembler Exceptions
# =============================================================================

class AssemblerError(McpuError):
    """
    Base exception for assembler errors.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The source text of the offending line (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            prog.asm:1:6: error: unexpected character '-'
                PUSH -0x1;
                     ^
        """
        parts = []

        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class LexError(AssemblerError):
    """
    A character the lexer cannot accept at its position.

    Raised for characters outside the language (punctuation, tabs, a
    newline when statements end with ';'), for characters out of sequence
    (a prefix inside a literal, a separator right after '0x') and for
    literals that do not fit in a byte.

    Attributes:
        position: 0-based offset of the offending character
        character: The offending character or literal text
    """

    def __init__(
        self,
        position: int,
        character: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
        reason: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        self.position = position
        self.character = character
        if reason is None:
            reason = f"unexpected {describe_character(character)}"
        super().__init__(
            f"{reason} at position {position}",
            location=location,
            hint=hint,
            source_line=source_line,
        )


def describe_character(character: str) -> str:
    """Describe a character for error messages, spelling out newlines."""
    if character == "":
        return "end of input"
    if character == "\n":
        return "newline '\\n'"
    if len(character) == 1:
        return f"character {character!r}"
    return f"text {character!r}"


class AssembleError(AssemblerError):
    """
    A token that does not fit the instruction grammar.

    Grammar errors reference the offending token rather than a raw
    offset. ``token`` is None when the input ended where a token was
    still expected.

    Attributes:
        token: The offending token (or None at end of input)
        expected: Description of the token kind or shape that was required
    """

    def __init__(
        self,
        token: Optional["Token"],
        expected: str,
        message: Optional[str] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.token = token
        self.expected = expected
        if message is None:
            found = token.describe() if token is not None else "end of input"
            message = f"unexpected {found}, expected {expected}"
        super().__init__(
            message,
            location=token.location if token is not None else None,
            hint=hint,
            source_line=source_line,
        )


class UndefinedSymbolError(AssembleError):
    """
    PUSH of a label that has not been declared yet.

    Labels are bound by DW in a single forward pass, so a label is only
    visible to statements that follow its declaration. Similar names
    already in the symbol table are offered as a hint.
    """

    def __init__(
        self,
        token: "Token",
        source_line: Optional[str] = None,
        similar_symbols: Optional[list[str]] = None,
    ):
        self.symbol = str(token.value)
        self.similar_symbols = similar_symbols or []

        hint = None
        if self.similar_symbols:
            suggestions = ", ".join(f"'{s}'" for s in self.similar_symbols[:3])
            hint = f"did you mean {suggestions}?"
        else:
            hint = "labels must be declared with DW before they are used"

        super().__init__(
            token,
            expected="a label declared earlier with DW",
            message=f"undefined symbol '{self.symbol}'",
            hint=hint,
            source_line=source_line,
        )


class DuplicateSymbolError(AssembleError):
    """
    Label declared more than once.

    Includes the address the label was first bound to.
    """

    def __init__(
        self,
        token: "Token",
        original_address: int,
        source_line: Optional[str] = None,
    ):
        self.symbol = str(token.value)
        self.original_address = original_address

        super().__init__(
            token,
            expected="a new label name",
            message=f"duplicate symbol '{self.symbol}'",
            hint=f"'{self.symbol}' is already bound to 0x{original_address:02X}",
            source_line=source_line,
        )


class CapacityError(AssembleError):
    """
    Program does not fit in the machine's memory.

    Raised on the statement whose bytes would cross the capacity limit,
    instead of silently truncating the image.
    """

    def __init__(
        self,
        token: Optional["Token"],
        size: int,
        capacity: int,
        source_line: Optional[str] = None,
    ):
        self.size = size
        self.capacity = capacity

        super().__init__(
            token,
            expected=f"at most {capacity} bytes of program",
            message=f"program needs {size} bytes but memory holds {capacity}",
            source_line=source_line,
        )


# =============================================================================
# Virtual Machine Exceptions
# =============================================================================

class VMError(McpuError):
    """Base exception for virtual machine errors."""
    pass


class LoadError(VMError):
    """
    Program image cannot be loaded.

    Raised when an image is larger than memory, or when it would overwrite
    the reserved PC/SP cells while those are protected.
    """
    pass


class VMFault(VMError):
    """
    Execution fault reported by the strict execution policy.

    The lenient policy absorbs the same conditions silently (no-op or
    wraparound). A fault halts the machine; ``reset()`` clears it.

    Attributes:
        pc: Address of the faulting instruction
        opcode: Opcode byte of the faulting instruction
    """

    def __init__(self, message: str, pc: int, opcode: int):
        self.pc = pc
        self.opcode = opcode
        super().__init__(f"{message} (pc=0x{pc:02X}, opcode=0x{opcode:02X})")


class IllegalOpcodeError(VMFault):
    """Opcode byte with no instruction assigned."""

    def __init__(self, pc: int, opcode: int):
        super().__init__(f"illegal opcode 0x{opcode:02X}", pc, opcode)


class IllegalConditionError(VMFault):
    """JP followed by a condition code outside 0-6."""

    def __init__(self, pc: int, opcode: int, code: int):
        self.code = code
        super().__init__(f"illegal jump condition 0x{code:02X}", pc, opcode)


class ArithmeticOverflowError(VMFault):
    """Signed ADD/SUB result outside -128..127."""

    def __init__(self, pc: int, opcode: int, result: int):
        self.result = result
        super().__init__(f"signed overflow, result {result}", pc, opcode)


class StackOverflowError(VMFault):
    """
    Push with the stack pointer already at address 0.

    Address 0 is never used as a stack slot under the strict policy: the
    push would leave SP wrapped onto the PC cell, so it faults before
    writing. The usable stack runs from STACK_TOP down to address 1.
    """

    def __init__(self, pc: int, opcode: int):
        super().__init__("stack overflow", pc, opcode)


class StackUnderflowError(VMFault):
    """Pop from an empty stack."""

    def __init__(self, pc: int, opcode: int):
        super().__init__("stack underflow", pc, opcode)


class ReservedRegisterError(VMFault):
    """STORE into the PC or SP cell while registers are protected."""

    def __init__(self, pc: int, opcode: int, address: int):
        self.address = address
        super().__init__(
            f"store to reserved register cell 0x{address:02X}", pc, opcode
        )
