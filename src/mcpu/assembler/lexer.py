"""
MCPU Assembly Language Lexer
============================

This module implements the lexer (tokenizer) for MCPU assembly language.
It converts source text into the flat token list the code generator
consumes.

Token Types
-----------
- WORD: Mnemonics, condition words and labels (ASCII letters and digits)
- NUMBER: Hexadecimal byte literal written as 0xHH
- END_OF_STATEMENT: The statement terminator (';' or a line break)

Syntax
------
Tokens are separated by single spaces. Every statement, including the
last one, ends with the terminator. There are no comments and no other
punctuation; any other character is an error.

| Input        | Tokens                                      |
|--------------|---------------------------------------------|
| PUSH 0x8;    | WORD 'PUSH', NUMBER $08, END_OF_STATEMENT   |
| DW A 0xFF;   | WORD 'DW', WORD 'A', NUMBER $FF, END_...    |
| JP eq;       | WORD 'JP', WORD 'eq', END_OF_STATEMENT      |

State Machine
-------------
The lexer is a finite-state machine with one dispatch per character:

    STATEMENT_START --letter/digit--> WORD
    STATEMENT_START --"0x"----------> HEX_PREFIX
    HEX_PREFIX      --hex digit-----> HEX_DIGITS
    HEX_DIGITS      --hex digit-----> HEX_DIGITS
    any state       --space---------> STATEMENT_START (token closed)
    any state       --terminator----> STATEMENT_START (token closed, EOS)

A separator in HEX_PREFIX is an error: a literal needs at least one digit.

Example
-------
>>> from mcpu.assembler.lexer import Lexer
>>> for token in Lexer("PUSH 0x8;ADD;").tokenize():
...     print(token)
Token(WORD, 'PUSH', @0)
Token(NUMBER, $08, @5)
Token(END_OF_STATEMENT, @8)
Token(WORD, 'ADD', @9)
Token(END_OF_STATEMENT, @12)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional
import logging
import string

from mcpu.errors import LexError, SourceLocation, describe_character

logger = logging.getLogger(__name__)


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types of the MCPU assembly language."""
    WORD = auto()              # Mnemonic, condition or label
    NUMBER = auto()            # 0xHH literal
    END_OF_STATEMENT = auto()  # ';' or line break


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token from the source code.

    Attributes:
        type: The TokenType classification
        value: Text for words, int (0-255) for numbers, None otherwise
        offset: 0-based offset where the token begins
        line: Line number in source (1-indexed)
        column: Column number in source (1-indexed)
        filename: Name of the source file
    """
    type: TokenType
    value: str | int | None
    offset: int
    line: int = 1
    column: int = 1
    filename: str = "<input>"

    def __repr__(self) -> str:
        if self.type is TokenType.NUMBER:
            return f"Token({self.type.name}, ${self.value:02X}, @{self.offset})"
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, @{self.offset})"
        return f"Token({self.type.name}, @{self.offset})"

    @property
    def location(self) -> SourceLocation:
        """Return a SourceLocation for error reporting."""
        return SourceLocation(self.filename, self.offset, self.line, self.column)

    @property
    def text(self) -> str:
        """Canonical source spelling of the token."""
        if self.type is TokenType.NUMBER:
            return f"0x{self.value:02X}"
        if self.type is TokenType.WORD:
            return str(self.value)
        return ""

    def describe(self) -> str:
        """Describe the token for grammar error messages."""
        if self.type is TokenType.WORD:
            return f"word '{self.value}'"
        if self.type is TokenType.NUMBER:
            return f"number 0x{self.value:02X}"
        return "end of statement"


# =============================================================================
# Lexer States
# =============================================================================

class LexerState(Enum):
    """What the lexer is in the middle of."""
    STATEMENT_START = auto()  # Between tokens
    WORD = auto()             # Accumulating a word
    HEX_PREFIX = auto()       # Saw '0x', no digit yet
    HEX_DIGITS = auto()       # Accumulating literal digits


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes MCPU assembly source code.

    Usage:
        lexer = Lexer(source_text, filename)
        tokens = lexer.tokenize()

    Attributes:
        source: The source code being tokenized
        filename: Name of the source file (for error reporting)
        terminator: Statement terminator, ';' or '\\n'
    """

    WORD_CHARS = string.ascii_letters + string.digits
    HEX_DIGITS = string.hexdigits
    SEPARATOR = " "
    HEX_PREFIX = "0x"
    TERMINATORS = (";", "\n")

    def __init__(self, source: str, filename: str = "<input>", terminator: str = ";"):
        """
        Initialize the lexer with source code.

        Args:
            source: The assembly source code to tokenize
            filename: Name of the source file (for error messages)
            terminator: Statement terminator, ';' (default) or '\\n'

        Raises:
            ValueError: If terminator is not one of the supported characters
        """
        if terminator not in self.TERMINATORS:
            raise ValueError(f"terminator must be ';' or '\\n', got {terminator!r}")

        self.source = source
        self.filename = filename
        self.terminator = terminator

        self._pos = 0
        self._line = 1
        self._column = 1
        self._line_start_pos = 0

        self._state = LexerState.STATEMENT_START
        self._tokens: list[Token] = []

        # Span of the token being accumulated
        self._chars: list[str] = []
        self._start: Optional[tuple[int, int, int]] = None

        self._handlers = {
            LexerState.STATEMENT_START: self._on_statement_start,
            LexerState.WORD: self._on_word,
            LexerState.HEX_PREFIX: self._on_hex,
            LexerState.HEX_DIGITS: self._on_hex,
        }

    def tokenize(self) -> list[Token]:
        """
        Convert the whole source into tokens.

        Returns:
            Tokens in source order

        Raises:
            LexError: On the first character that is not legal at its position
        """
        while not self._at_end():
            char = self._peek()

            if char == "\r" and self.terminator == "\n" and self._peek(1) == "\n":
                # CRLF line ending: the '\n' terminates the statement
                self._advance()
                continue

            if char == self.SEPARATOR:
                self._close_token()
                self._advance()
            elif char == self.terminator:
                self._close_token()
                self._tokens.append(self._make_token(TokenType.END_OF_STATEMENT, None))
                self._advance()
            else:
                self._handlers[self._state](char)

        if self._state is LexerState.HEX_PREFIX:
            raise self._error(
                "", reason="expected hexadecimal digits after '0x', found end of input"
            )
        self._close_token()

        logger.debug(f"Tokenized {self.filename}: {len(self._tokens)} tokens")
        return self._tokens

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        """Check if we've reached the end of source."""
        return self._pos >= len(self.source)

    def _peek(self, offset: int = 0) -> str:
        """Look at the character at current position + offset; '' past the end."""
        pos = self._pos + offset
        if pos >= len(self.source):
            return ""
        return self.source[pos]

    def _advance(self) -> str:
        """Consume the current character, updating line and column."""
        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
            self._line_start_pos = self._pos
        else:
            self._column += 1

        return char

    # =========================================================================
    # State Handlers
    # =========================================================================

    def _on_statement_start(self, char: str) -> None:
        """First character of a token."""
        if char == "0" and self._peek(1) == "x":
            self._begin_token()
            self._advance()
            self._advance()
            self._state = LexerState.HEX_PREFIX
            return

        if char and char in self.WORD_CHARS:
            self._begin_token()
            self._chars.append(self._advance())
            self._state = LexerState.WORD
            return

        raise self._error(char)

    def _on_word(self, char: str) -> None:
        """Character inside a word."""
        if char and char in self.WORD_CHARS:
            self._chars.append(self._advance())
            return
        raise self._error(char)

    def _on_hex(self, char: str) -> None:
        """Character after the 0x prefix."""
        if char and char in self.HEX_DIGITS:
            self._chars.append(self._advance())
            self._state = LexerState.HEX_DIGITS
            return
        if self._state is LexerState.HEX_PREFIX:
            raise self._error(char, reason=(
                f"expected hexadecimal digits after '0x', found {describe_character(char)}"
            ))
        raise self._error(char, hint="literals hold hexadecimal digits 0-9, a-f")

    # =========================================================================
    # Token Creation
    # =========================================================================

    def _begin_token(self) -> None:
        """Record where the token being accumulated starts."""
        self._chars = []
        self._start = (self._pos, self._line, self._column)

    def _close_token(self) -> None:
        """Emit the token being accumulated, if any, and return to STATEMENT_START."""
        state = self._state
        self._state = LexerState.STATEMENT_START

        if state is LexerState.STATEMENT_START:
            return

        if state is LexerState.HEX_PREFIX:
            char = self._peek()
            raise self._error(char, reason=(
                f"expected hexadecimal digits after '0x', found {describe_character(char)}"
            ))

        text = "".join(self._chars)
        offset, line, column = self._start

        if state is LexerState.WORD:
            self._tokens.append(
                Token(TokenType.WORD, text, offset, line, column, self.filename)
            )
            return

        value = int(text, 16)
        if value > 0xFF:
            raise LexError(
                offset,
                self.HEX_PREFIX + text,
                location=SourceLocation(self.filename, offset, line, column),
                source_line=self._current_line(),
                reason=f"literal 0x{text} does not fit in a byte",
                hint="literals range from 0x0 to 0xFF",
            )
        self._tokens.append(
            Token(TokenType.NUMBER, value, offset, line, column, self.filename)
        )

    def _make_token(self, token_type: TokenType, value: str | int | None) -> Token:
        """Create a token at the current position."""
        return Token(token_type, value, self._pos, self._line, self._column, self.filename)

    def _error(
        self,
        char: str,
        reason: Optional[str] = None,
        hint: Optional[str] = None,
    ) -> LexError:
        """Create a LexError for the character at the current position."""
        location = SourceLocation(self.filename, self._pos, self._line, self._column)
        if char == "\n" and self.terminator != "\n":
            hint = hint or "statements end with ';', not a line break"
        return LexError(
            self._pos,
            char,
            location=location,
            source_line=self._current_line(),
            reason=reason,
            hint=hint,
        )

    def _current_line(self) -> str:
        """Source text of the current line, for error context."""
        line_end = self.source.find("\n", self._line_start_pos)
        if line_end == -1:
            line_end = len(self.source)
        return self.source[self._line_start_pos:line_end]


# =============================================================================
# Convenience Function
# =============================================================================

def tokenize(source: str, filename: str = "<input>", terminator: str = ";") -> list[Token]:
    """
    Tokenize MCPU assembly source.

    Args:
        source: Assembly source text
        filename: Virtual filename for errors
        terminator: Statement terminator, ';' (default) or '\\n'

    Returns:
        Tokens in source order

    Raises:
        LexError: If the source contains an illegal character
    """
    return Lexer(source, filename, terminator).tokenize()
