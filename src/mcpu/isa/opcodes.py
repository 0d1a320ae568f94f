"""
MCPU Instruction Set Definition
===============================

This module defines the MCPU instruction set: opcodes, operand kinds,
instruction sizes and jump condition codes. The assembler encodes with
these tables, the virtual machine decodes with them and the disassembler
inverts them.

Machine Model
-------------
- 256 bytes of memory, 8-bit addresses
- Program counter and stack pointer live in the two topmost cells
- Stack grows downward from just below the register cells

Instruction Encoding
--------------------
Every instruction is one opcode byte, optionally followed by one operand
byte:

| Mnemonic | Opcode | Operand        | Size |
|----------|--------|----------------|------|
| HALT     | $00    | -              | 1    |
| LOAD     | $01    | -              | 1    |
| STORE    | $02    | -              | 1    |
| PUSH     | $03    | value/address  | 2    |
| POP      | $04    | -              | 1    |
| ADD      | $05    | -              | 1    |
| SUB      | $06    | -              | 1    |
| AND      | $07    | -              | 1    |
| OR       | $08    | -              | 1    |
| XOR      | $09    | -              | 1    |
| JP       | $0A    | condition code | 2    |

The DW directive is not an instruction: it emits its literal byte as-is.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Optional


# =============================================================================
# Memory Layout
# =============================================================================

MEMORY_SIZE = 256

# Reserved register cells at the top of the address space
PC_ADDRESS = 0xFF
SP_ADDRESS = 0xFE

# First free stack slot (just below the register cells)
STACK_TOP = 0xFD

RESERVED_ADDRESSES = frozenset({PC_ADDRESS, SP_ADDRESS})


# =============================================================================
# Opcodes and Conditions
# =============================================================================

class Opcode(IntEnum):
    """Opcode byte of each instruction."""
    HALT = 0x00
    LOAD = 0x01
    STORE = 0x02
    PUSH = 0x03
    POP = 0x04
    ADD = 0x05
    SUB = 0x06
    AND = 0x07
    OR = 0x08
    XOR = 0x09
    JP = 0x0A


class Condition(IntEnum):
    """
    Jump condition codes, encoded in the byte following JP.

    Each condition compares the popped value, read as a signed byte,
    against zero. ALWAYS jumps without popping a value.
    """
    ALWAYS = 0x00
    GT = 0x01
    LT = 0x02
    GEQ = 0x03
    LEQ = 0x04
    EQ = 0x05
    NEQ = 0x06

    def holds(self, value: int) -> bool:
        """Evaluate the condition for a signed comparison value."""
        match self:
            case Condition.ALWAYS:
                return True
            case Condition.GT:
                return value > 0
            case Condition.LT:
                return value < 0
            case Condition.GEQ:
                return value >= 0
            case Condition.LEQ:
                return value <= 0
            case Condition.EQ:
                return value == 0
            case Condition.NEQ:
                return value != 0
        return False


class OperandKind(Enum):
    """What follows the opcode byte in the instruction stream."""
    NONE = auto()       # No operand
    VALUE = auto()      # Immediate value or label address (PUSH)
    CONDITION = auto()  # Condition code (JP)


# =============================================================================
# Instruction Information
# =============================================================================

@dataclass(frozen=True)
class InstructionInfo:
    """
    Encoding information for one mnemonic.

    Attributes:
        mnemonic: Canonical (upper-case) mnemonic
        opcode: The opcode byte
        operand: Kind of operand following the opcode
    """
    mnemonic: str
    opcode: Opcode
    operand: OperandKind = OperandKind.NONE

    @property
    def size(self) -> int:
        """Total instruction size in bytes."""
        return 1 if self.operand is OperandKind.NONE else 2

    def __repr__(self) -> str:
        return f"InstructionInfo({self.mnemonic}, opcode=${self.opcode:02X}, size={self.size})"


OPCODE_TABLE: dict[str, InstructionInfo] = {
    "HALT": InstructionInfo("HALT", Opcode.HALT),
    "LOAD": InstructionInfo("LOAD", Opcode.LOAD),
    "STORE": InstructionInfo("STORE", Opcode.STORE),
    "PUSH": InstructionInfo("PUSH", Opcode.PUSH, OperandKind.VALUE),
    "POP": InstructionInfo("POP", Opcode.POP),
    "ADD": InstructionInfo("ADD", Opcode.ADD),
    "SUB": InstructionInfo("SUB", Opcode.SUB),
    "AND": InstructionInfo("AND", Opcode.AND),
    "OR": InstructionInfo("OR", Opcode.OR),
    "XOR": InstructionInfo("XOR", Opcode.XOR),
    "JP": InstructionInfo("JP", Opcode.JP, OperandKind.CONDITION),
}

# Reverse table for decoding
OPCODE_INFO: dict[int, InstructionInfo] = {
    info.opcode: info for info in OPCODE_TABLE.values()
}

# Directive that declares a data byte
DECLARE_WORD = "DW"

# Condition words accepted after JP (lower-case in source by convention)
CONDITION_WORDS: dict[str, Condition] = {
    "gt": Condition.GT,
    "lt": Condition.LT,
    "geq": Condition.GEQ,
    "leq": Condition.LEQ,
    "eq": Condition.EQ,
    "neq": Condition.NEQ,
}

CONDITION_NAMES: dict[int, str] = {
    code: word for word, code in CONDITION_WORDS.items()
}


# =============================================================================
# Lookup Functions
# =============================================================================

def get_instruction_info(mnemonic: str) -> Optional[InstructionInfo]:
    """
    Look up encoding information by mnemonic (case-insensitive).

    Returns:
        InstructionInfo if the mnemonic is an instruction, None otherwise
    """
    return OPCODE_TABLE.get(mnemonic.upper())


def decode_opcode(opcode: int) -> Optional[InstructionInfo]:
    """Look up encoding information by opcode byte."""
    return OPCODE_INFO.get(opcode)


def get_condition(word: str) -> Optional[Condition]:
    """Look up a JP condition word (case-insensitive)."""
    return CONDITION_WORDS.get(word.lower())


def to_signed(value: int) -> int:
    """Reinterpret a byte as a two's-complement signed value (-128..127)."""
    value &= 0xFF
    return value - 0x100 if value & 0x80 else value
