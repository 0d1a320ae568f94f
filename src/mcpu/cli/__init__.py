"""
MCPU Command-Line Interface
===========================

This package provides command-line tools for the MCPU:

- **mcasm**: Assembler
- **mcrun**: Assemble (or load) and run a program in the virtual machine
- **mcdisasm**: Disassembler

Each tool is implemented as a Click-based CLI application.
"""

__all__ = ["mcasm", "mcrun", "mcdisasm"]
