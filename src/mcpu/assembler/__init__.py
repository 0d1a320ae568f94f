"""
MCPU Assembler
==============

This package converts MCPU assembly source into the byte image the
virtual machine loads at address 0.

Main Components
---------------
- **Lexer**: Tokenizes source into words, hex literals and statement ends
- **CodeGenerator**: Single forward pass from tokens to bytes
- **Assembler**: Runs both stages and writes binary, listing and symbols

Example Usage
-------------
>>> from mcpu.assembler import parse
>>> parse("PUSH 0x8;PUSH 0x1;ADD;HALT;")
b'\\x03\\x08\\x03\\x01\\x05\\x00'
"""

from mcpu.assembler.lexer import Lexer, LexerState, Token, TokenType, tokenize
from mcpu.assembler.codegen import (
    AssemblerState,
    CodeGenerator,
    ListingEntry,
    Symbol,
    assemble,
)
from mcpu.assembler.assembler import Assembler, assemble_file, parse

__all__ = [
    "Assembler",
    "AssemblerState",
    "CodeGenerator",
    "Lexer",
    "LexerState",
    "ListingEntry",
    "Symbol",
    "Token",
    "TokenType",
    "assemble",
    "assemble_file",
    "parse",
    "tokenize",
]
