"""
Stop Events
===========

Describes why VM.run() returned. Faults are not stop events: they are
raised as VMFault exceptions and leave the machine halted.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class StopReason(Enum):
    """Why execution stopped."""
    HALTED = auto()      # HALT opcode executed
    EARLY_HALT = auto()  # early_halt() or the instruction hook stopped the run
    MAX_STEPS = auto()   # Step budget exhausted while still running


@dataclass
class StopEvent:
    """
    Information about why execution stopped.

    Attributes:
        reason: Why execution stopped
        steps: Instructions executed by this run() call
        pc: Program counter when execution stopped
    """
    reason: StopReason
    steps: int = 0
    pc: Optional[int] = None

    def __str__(self) -> str:
        match self.reason:
            case StopReason.HALTED:
                return "Halted"
            case StopReason.EARLY_HALT:
                return "Stopped early"
            case StopReason.MAX_STEPS:
                return f"Step budget exhausted after {self.steps} steps"
        return "Unknown"
