"""
MCPU Disassembler
=================

Turns MCPU machine code back into assembly text. The output uses the
assembler's own syntax, so a disassembly of code-only bytes assembles
back to the same image.

Decoding:
    - Known opcodes print as their mnemonic; PUSH shows its operand byte
    - JP shows its condition word, or nothing for the unconditional form
    - Bytes that are not opcodes print as DW 0xHH (data, or garbage)

DW labels are not recoverable from the bytes alone; pass a symbol table
(address -> name) to annotate PUSH operands that match a label.

Usage:
    disasm = Disassembler({0x00: "A"})
    print(disasm.disassemble_to_text(image))
"""

from dataclasses import dataclass
from typing import Optional

from mcpu.isa import (
    CONDITION_NAMES,
    DECLARE_WORD,
    Condition,
    OperandKind,
    decode_opcode,
)


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DisassembledInstruction:
    """
    A single disassembled instruction or data byte.

    Attributes:
        address: Memory address of the first byte
        opcode: The opcode byte
        mnemonic: Instruction mnemonic, or DW for a data byte
        operand_str: Formatted operand (may be empty)
        size: Number of bytes consumed
        raw_bytes: All bytes comprising this instruction
        comment: Optional comment (label name, decoding note)
    """
    address: int
    opcode: int
    mnemonic: str
    operand_str: str
    size: int
    raw_bytes: bytes
    comment: str = ""

    @property
    def text(self) -> str:
        """Assembly text without address or bytes."""
        if self.operand_str:
            return f"{self.mnemonic} {self.operand_str}"
        return self.mnemonic

    def __str__(self) -> str:
        """Format as listing line: ADDRESS: BYTES  MNEMONIC OPERAND"""
        hex_bytes = " ".join(f"{b:02X}" for b in self.raw_bytes).ljust(5)
        if self.comment:
            return f"{self.address:02X}: {hex_bytes}  {self.text:<10} ; {self.comment}"
        return f"{self.address:02X}: {hex_bytes}  {self.text}"


# =============================================================================
# Disassembler
# =============================================================================

class Disassembler:
    """
    MCPU machine code disassembler.

    Attributes:
        symbol_table: Address to label name, used for PUSH comments
    """

    def __init__(self, symbol_table: Optional[dict[int, str]] = None):
        self._symbol_table: dict[int, str] = dict(symbol_table or {})

    def add_symbol(self, address: int, name: str) -> None:
        """Add a label to the symbol table."""
        self._symbol_table[address] = name

    def disassemble_one(self, data: bytes, address: int = 0) -> DisassembledInstruction:
        """
        Disassemble the instruction starting at `address`.

        Args:
            data: The memory image (address 0 is data[0])
            address: Address of the instruction

        Returns:
            DisassembledInstruction with decoded information

        Raises:
            ValueError: If address is beyond the end of data
        """
        if address >= len(data):
            raise ValueError(f"Address {address} beyond data length {len(data)}")

        opcode = data[address]
        info = decode_opcode(opcode)

        if info is None:
            return DisassembledInstruction(
                address=address,
                opcode=opcode,
                mnemonic=DECLARE_WORD,
                operand_str=f"0x{opcode:02X}",
                size=1,
                raw_bytes=bytes([opcode]),
            )

        if address + info.size > len(data):
            return DisassembledInstruction(
                address=address,
                opcode=opcode,
                mnemonic=info.mnemonic,
                operand_str="???",
                size=1,
                raw_bytes=bytes([opcode]),
                comment="incomplete instruction",
            )

        raw_bytes = bytes(data[address:address + info.size])
        operand_str, comment = self._format_operand(info.operand, raw_bytes[1:])

        return DisassembledInstruction(
            address=address,
            opcode=opcode,
            mnemonic=info.mnemonic,
            operand_str=operand_str,
            size=info.size,
            raw_bytes=raw_bytes,
            comment=comment,
        )

    def _format_operand(self, kind: OperandKind, operand: bytes) -> tuple[str, str]:
        """Return (operand text, comment) for an operand byte."""
        if kind is OperandKind.NONE:
            return "", ""

        value = operand[0]
        if kind is OperandKind.VALUE:
            return f"0x{value:02X}", self._symbol_table.get(value, "")

        if value == Condition.ALWAYS:
            return "", ""
        if value in CONDITION_NAMES:
            return CONDITION_NAMES[value], ""
        return f"0x{value:02X}", "unknown condition"

    def disassemble(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None,
    ) -> list[DisassembledInstruction]:
        """
        Disassemble consecutive instructions.

        Args:
            data: The memory image
            start_address: Address to start at
            count: Maximum number of instructions (None = to the end)

        Returns:
            List of DisassembledInstruction objects
        """
        result = []
        address = start_address

        while address < len(data):
            if count is not None and len(result) >= count:
                break
            instr = self.disassemble_one(data, address)
            result.append(instr)
            address += instr.size

        return result

    def disassemble_to_text(
        self,
        data: bytes,
        start_address: int = 0,
        count: Optional[int] = None,
    ) -> str:
        """Disassemble and return a multi-line listing."""
        instructions = self.disassemble(data, start_address, count)
        return "\n".join(str(instr) for instr in instructions)
