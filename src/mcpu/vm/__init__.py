"""
MCPU Virtual Machine
====================

A 256-byte stack machine that runs the images produced by the assembler.

Example:
    >>> from mcpu.vm import VM, VMConfig, ExecutionPolicy
    >>> vm = VM(VMConfig(policy=ExecutionPolicy.STRICT))
    >>> vm.load(bytes([0x03, 0x01, 0x03, 0x01, 0x05, 0x00]))
    >>> vm.run()
    StopEvent(reason=<StopReason.HALTED: 1>, steps=4, pc=6)
"""

from mcpu.vm.machine import VM, VMConfig, ExecutionPolicy
from mcpu.vm.memory import Memory
from mcpu.vm.events import StopEvent, StopReason

__all__ = [
    "VM",
    "VMConfig",
    "ExecutionPolicy",
    "Memory",
    "StopEvent",
    "StopReason",
]
