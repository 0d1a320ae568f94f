"""
MCPU Instruction Set Package
============================

Instruction set definitions shared by the assembler, the virtual machine
and the disassembler. Encoding and decoding use the same tables, so the
three tools always agree on opcode numbers and instruction sizes.

Usage:
    from mcpu.isa import Opcode, Condition, get_instruction_info
"""

from mcpu.isa.opcodes import (
    # Memory layout
    MEMORY_SIZE,
    PC_ADDRESS,
    SP_ADDRESS,
    STACK_TOP,
    RESERVED_ADDRESSES,
    # Core types
    Opcode,
    Condition,
    OperandKind,
    InstructionInfo,
    # Tables
    OPCODE_TABLE,
    OPCODE_INFO,
    DECLARE_WORD,
    CONDITION_WORDS,
    CONDITION_NAMES,
    # Lookup functions
    get_instruction_info,
    decode_opcode,
    get_condition,
    to_signed,
)

__all__ = [
    "MEMORY_SIZE",
    "PC_ADDRESS",
    "SP_ADDRESS",
    "STACK_TOP",
    "RESERVED_ADDRESSES",
    "Opcode",
    "Condition",
    "OperandKind",
    "InstructionInfo",
    "OPCODE_TABLE",
    "OPCODE_INFO",
    "DECLARE_WORD",
    "CONDITION_WORDS",
    "CONDITION_NAMES",
    "get_instruction_info",
    "decode_opcode",
    "get_condition",
    "to_signed",
]
