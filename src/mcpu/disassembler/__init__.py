"""
MCPU Disassembler Package
=========================

Usage:
    from mcpu.disassembler import Disassembler

    disasm = Disassembler()
    for instr in disasm.disassemble(image):
        print(instr)
"""

from mcpu.disassembler.disassembler import Disassembler, DisassembledInstruction

__all__ = [
    "Disassembler",
    "DisassembledInstruction",
]
