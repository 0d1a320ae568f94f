"""
MCPU Code Generator
===================

This module turns the lexer's token list into MCPU machine code.

Single Pass
-----------
Tokens are consumed strictly left to right. Each mnemonic dictates the
exact operand shape it requires, so every statement is a fixed-length
pattern of one to three tokens followed by END_OF_STATEMENT:

    DW name literal ;     DW literal ;
    HALT ;  LOAD ;  STORE ;  POP ;  ADD ;  SUB ;  AND ;  OR ;  XOR ;
    PUSH name ;           PUSH literal ;
    JP ;                  JP condition ;

There is no backtracking and no pre-scan. DW binds its label to the
address of the byte it emits, and the binding is visible only to the
statements that follow. A PUSH of a label that is not bound yet is an
error, not a forward reference to patch later.

Assembler State
---------------
The symbol table, the running address and the emitted bytes live in an
AssemblerState object owned by a single generate() call; nothing is
shared between runs. The results become visible through get_code() and
the other accessors only when the whole pass succeeds.

Output
------
- Raw binary image (loaded at address 0)
- Listing with addresses, bytes and statement text
- Symbol table file
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence
import logging

from mcpu.errors import (
    AssembleError,
    UndefinedSymbolError,
    DuplicateSymbolError,
    CapacityError,
)
from mcpu.assembler.lexer import Token, TokenType
from mcpu.isa import (
    MEMORY_SIZE,
    DECLARE_WORD,
    OPCODE_TABLE,
    Condition,
    InstructionInfo,
    OperandKind,
    get_condition,
    get_instruction_info,
)

logger = logging.getLogger(__name__)


# Expected-shape descriptions used in grammar errors
MNEMONIC_SHAPE = "a mnemonic (" + ", ".join([DECLARE_WORD, *OPCODE_TABLE]) + ")"
END_SHAPE = "end of statement"
LITERAL_SHAPE = "a hex literal (0xHH)"
VALUE_SHAPE = "a label or a hex literal"
CONDITION_SHAPE = "a condition (gt, lt, geq, leq, eq, neq) or end of statement"


# =============================================================================
# Symbol Table Entry
# =============================================================================

@dataclass
class Symbol:
    """
    Symbol table entry.

    Attributes:
        name: Label name as written (case-sensitive)
        address: Address of the byte the label was declared on
        token: The label's token in the DW statement
    """
    name: str
    address: int
    token: Token


@dataclass
class ListingEntry:
    """One assembled statement: where it went and what it became."""
    address: int
    code: bytes
    text: str
    line: int


# =============================================================================
# Assembler State
# =============================================================================

@dataclass
class AssemblerState:
    """
    State threaded through one generation pass.

    Attributes:
        symbols: Labels bound so far
        address: Address the next emitted byte will occupy
        code: Bytes emitted so far
        listing: One entry per statement
    """
    symbols: dict[str, Symbol] = field(default_factory=dict)
    address: int = 0
    code: bytearray = field(default_factory=bytearray)
    listing: list[ListingEntry] = field(default_factory=list)


# =============================================================================
# Code Generator
# =============================================================================

class CodeGenerator:
    """
    Generates MCPU machine code from tokens.

    Usage:
        codegen = CodeGenerator()
        code = codegen.generate(tokens)
        symbols = codegen.get_symbols()

    Attributes:
        capacity: Maximum program size in bytes
    """

    def __init__(self, capacity: int = MEMORY_SIZE, source: Optional[str] = None):
        """
        Initialize the code generator.

        Args:
            capacity: Maximum program size in bytes (1-256)
            source: Source text the tokens came from, used to quote the
                    offending line in error messages

        Raises:
            ValueError: If capacity is outside 1-256
        """
        if not 1 <= capacity <= MEMORY_SIZE:
            raise ValueError(f"capacity must be 1-{MEMORY_SIZE}, got {capacity}")

        self.capacity = capacity
        self._source = source
        self._tokens: Sequence[Token] = ()
        self._pos = 0
        self._state = AssemblerState()

    # =========================================================================
    # Public Interface
    # =========================================================================

    def generate(self, tokens: Sequence[Token]) -> bytes:
        """
        Assemble a token sequence into machine code.

        Args:
            tokens: Tokens from the lexer, in source order

        Returns:
            The program image

        Raises:
            AssembleError: On the first token that does not fit the grammar
        """
        self._tokens = tokens
        self._pos = 0
        self.reset()
        state = AssemblerState()

        while self._pos < len(self._tokens):
            self._statement(state)

        self._state = state
        logger.debug(
            f"Generated {len(state.code)} bytes, "
            f"{len(state.symbols)} symbols"
        )
        return bytes(state.code)

    def reset(self) -> None:
        """Discard the code, symbols and listing of the last generate() call."""
        self._state = AssemblerState()

    def set_source(self, source: Optional[str]) -> None:
        """Set the source text used for error context."""
        self._source = source

    def get_code(self) -> bytes:
        """Return the code from the last generate() call."""
        return bytes(self._state.code)

    def get_symbols(self) -> dict[str, int]:
        """Return a dictionary of label names to addresses."""
        return {name: sym.address for name, sym in self._state.symbols.items()}

    def get_listing(self) -> str:
        """
        Get the assembly listing as a string.

        Returns:
            The listing showing addresses, generated bytes, and statements,
            followed by the symbol table.
        """
        lines = []
        lines.append("MCPU Assembler Listing")
        lines.append("=" * 48)
        lines.append("")
        lines.append("Addr  Code    Line  Source")
        lines.append("-" * 48)
        for entry in self._state.listing:
            code = " ".join(f"{b:02X}" for b in entry.code)
            lines.append(f"{entry.address:02X}    {code:<6}  {entry.line:4d}  {entry.text}")
        lines.append("")
        lines.append("Symbol Table")
        lines.append("-" * 24)
        for name, sym in sorted(self._state.symbols.items()):
            lines.append(f"{name:16s} = 0x{sym.address:02X}")
        return "\n".join(lines)

    def write_listing(self, filepath: str | Path) -> None:
        """Write the assembly listing file."""
        with open(filepath, "w") as f:
            f.write(self.get_listing())
            f.write("\n")

    def write_symbols(self, filepath: str | Path) -> None:
        """
        Write symbol table file.

        Format: name address (one per line, in address order)
        """
        symbols = sorted(self._state.symbols.values(), key=lambda s: (s.address, s.name))
        with open(filepath, "w") as f:
            f.write("# Symbol table\n")
            f.write("# Generated by mcasm\n")
            for sym in symbols:
                f.write(f"{sym.name} 0x{sym.address:02X}\n")

    # =========================================================================
    # Token Access
    # =========================================================================

    def _next(self, expected: str) -> Token:
        """Consume the next token; end of input is an error naming `expected`."""
        if self._pos >= len(self._tokens):
            raise AssembleError(None, expected)
        token = self._tokens[self._pos]
        self._pos += 1
        return token

    def _expect(self, token_type: TokenType, expected: str) -> Token:
        """Consume the next token, which must be of `token_type`."""
        token = self._next(expected)
        if token.type is not token_type:
            raise self._grammar_error(token, expected)
        return token

    def _expect_end(self) -> Token:
        """Consume the END_OF_STATEMENT closing the current statement."""
        return self._expect(TokenType.END_OF_STATEMENT, END_SHAPE)

    # =========================================================================
    # Statements
    # =========================================================================

    def _statement(self, state: AssemblerState) -> None:
        """Assemble one statement starting at the current token."""
        token = self._next(MNEMONIC_SHAPE)
        if token.type is not TokenType.WORD:
            raise self._grammar_error(token, MNEMONIC_SHAPE)

        mnemonic = str(token.value).upper()
        if mnemonic == DECLARE_WORD:
            self._declare_word(state, token)
            return

        info = get_instruction_info(mnemonic)
        if info is None:
            raise self._grammar_error(
                token,
                MNEMONIC_SHAPE,
                message=f"unknown mnemonic '{token.value}'",
            )

        match info.operand:
            case OperandKind.NONE:
                self._expect_end()
                self._emit(state, token, [info.opcode])
            case OperandKind.VALUE:
                self._push(state, token, info)
            case OperandKind.CONDITION:
                self._jump(state, token, info)

    def _declare_word(self, state: AssemblerState, token: Token) -> None:
        """DW name literal ; or DW literal ;"""
        operand = self._next(VALUE_SHAPE)

        if operand.type is TokenType.WORD:
            literal = self._expect(TokenType.NUMBER, LITERAL_SHAPE)
            self._expect_end()
            self._bind(state, operand)
            self._emit(state, token, [literal.value])
        elif operand.type is TokenType.NUMBER:
            self._expect_end()
            self._emit(state, token, [operand.value])
        else:
            raise self._grammar_error(operand, VALUE_SHAPE)

    def _push(self, state: AssemblerState, token: Token, info: InstructionInfo) -> None:
        """PUSH name ; or PUSH literal ;"""
        operand = self._next(VALUE_SHAPE)

        if operand.type is TokenType.NUMBER:
            self._expect_end()
            self._emit(state, token, [info.opcode, operand.value])
        elif operand.type is TokenType.WORD:
            self._expect_end()
            symbol = state.symbols.get(str(operand.value))
            if symbol is None:
                raise UndefinedSymbolError(
                    operand,
                    source_line=self._source_line(operand),
                    similar_symbols=self._find_similar_symbols(state, str(operand.value)),
                )
            self._emit(state, token, [info.opcode, symbol.address])
        else:
            raise self._grammar_error(operand, VALUE_SHAPE)

    def _jump(self, state: AssemblerState, token: Token, info: InstructionInfo) -> None:
        """JP ; or JP condition ;"""
        operand = self._next(CONDITION_SHAPE)

        if operand.type is TokenType.END_OF_STATEMENT:
            self._emit(state, token, [info.opcode, Condition.ALWAYS])
            return

        condition = None
        if operand.type is TokenType.WORD:
            condition = get_condition(str(operand.value))
        if condition is None:
            raise self._grammar_error(operand, CONDITION_SHAPE)

        self._expect_end()
        self._emit(state, token, [info.opcode, condition])

    # =========================================================================
    # Emission and Symbols
    # =========================================================================

    def _emit(self, state: AssemblerState, token: Token, data: list[int]) -> None:
        """Append a statement's bytes and advance the instruction counter."""
        size = state.address + len(data)
        if size > self.capacity:
            raise CapacityError(token, size, self.capacity, self._source_line(token))

        state.listing.append(ListingEntry(
            address=state.address,
            code=bytes(data),
            text=self._statement_text(token),
            line=token.line,
        ))
        state.code.extend(data)
        state.address = size

    def _bind(self, state: AssemblerState, token: Token) -> None:
        """Bind a DW label to the current address."""
        name = str(token.value)
        if name in state.symbols:
            raise DuplicateSymbolError(
                token,
                state.symbols[name].address,
                source_line=self._source_line(token),
            )
        state.symbols[name] = Symbol(name, state.address, token)
        logger.debug(f"Bound '{name}' to 0x{state.address:02X}")

    def _find_similar_symbols(self, state: AssemblerState, name: str) -> list[str]:
        """
        Find declared labels with names close to `name` for error hints.

        Matches case differences and names within edit distance 2.
        """
        name_lower = name.lower()
        similar = []

        for sym in state.symbols:
            sym_lower = sym.lower()
            if sym_lower == name_lower or (
                abs(len(sym) - len(name)) <= 1
                and _edit_distance(name_lower, sym_lower) <= 2
            ):
                similar.append(sym)

        return similar[:3]

    # =========================================================================
    # Error Context
    # =========================================================================

    def _grammar_error(
        self,
        token: Token,
        expected: str,
        message: Optional[str] = None,
    ) -> AssembleError:
        return AssembleError(
            token,
            expected,
            message=message,
            source_line=self._source_line(token),
        )

    def _source_line(self, token: Token) -> Optional[str]:
        """Source text of the line containing `token`, if source is known."""
        if self._source is None:
            return None
        start = self._source.rfind("\n", 0, token.offset) + 1
        end = self._source.find("\n", token.offset)
        if end == -1:
            end = len(self._source)
        return self._source[start:end]

    def _statement_text(self, token: Token) -> str:
        """Reconstruct the text of the statement starting at `token`."""
        index = self._pos - 1
        while index > 0 and self._tokens[index] is not token:
            index -= 1
        words = []
        for tok in self._tokens[index:self._pos]:
            if tok.type is TokenType.END_OF_STATEMENT:
                break
            words.append(tok.text)
        return " ".join(words)


def _edit_distance(s1: str, s2: str) -> int:
    """Calculate Levenshtein edit distance between two strings."""
    if len(s1) < len(s2):
        s1, s2 = s2, s1

    distances = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        new_distances = [i + 1]
        for j, c2 in enumerate(s2):
            if c1 == c2:
                new_distances.append(distances[j])
            else:
                new_distances.append(1 + min(distances[j], distances[j + 1], new_distances[-1]))
        distances = new_distances
    return distances[-1]


# =============================================================================
# Convenience Function
# =============================================================================

def assemble(tokens: Sequence[Token], capacity: int = MEMORY_SIZE) -> bytes:
    """
    Assemble a token sequence into machine code.

    Args:
        tokens: Tokens from the lexer
        capacity: Maximum program size in bytes

    Returns:
        The program image

    Raises:
        AssembleError: If the tokens do not form a valid program
    """
    return CodeGenerator(capacity=capacity).generate(tokens)
