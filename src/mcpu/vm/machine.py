"""
MCPU Virtual Machine
====================

Executes MCPU machine code in a 256-byte memory. The program counter and
stack pointer are ordinary memory cells at the top of the address space,
so programs can read and write them like any other byte.

Usage:
    >>> from mcpu.vm import VM
    >>> from mcpu.assembler import parse
    >>> vm = VM()
    >>> vm.load(parse("PUSH 0x1;PUSH 0x1;ADD;HALT;"))
    >>> event = vm.run()
    >>> vm.read(vm.sp + 1)
    2

Execution Model
---------------
step() fetches the opcode at PC, executes it (consuming the operand byte
of PUSH and JP), then advances PC past the instruction. A taken jump sets
PC to its target instead. The advance reads the PC cell after the
instruction ran, so a STORE into the PC cell is followed by the advance
from the stored value.

Execution Policies
------------------
LENIENT (default): unknown opcodes and condition codes are no-ops, ADD
and SUB wrap around, the stack pointer wraps silently.

STRICT: each of those conditions raises a VMFault subclass and halts the
machine. A faulted machine stays faulted until reset(). The lowest stack
slot is address 1: a push with SP at 0 faults instead of writing address 0,
because the decrement would wrap SP onto the PC cell.

Register protection is a separate switch: with protect_registers=True a
STORE into the PC or SP cell raises ReservedRegisterError, and load()
rejects images that reach those cells.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Optional
import logging

from mcpu.errors import (
    LoadError,
    VMFault,
    IllegalOpcodeError,
    IllegalConditionError,
    ArithmeticOverflowError,
    StackOverflowError,
    StackUnderflowError,
    ReservedRegisterError,
)
from mcpu.isa import (
    MEMORY_SIZE,
    PC_ADDRESS,
    SP_ADDRESS,
    STACK_TOP,
    RESERVED_ADDRESSES,
    Condition,
    Opcode,
    decode_opcode,
    to_signed,
)
from mcpu.vm.events import StopEvent, StopReason
from mcpu.vm.memory import Memory

logger = logging.getLogger(__name__)


class ExecutionPolicy(Enum):
    """How the VM treats illegal opcodes, overflow and stack wraparound."""
    LENIENT = auto()
    STRICT = auto()


@dataclass(frozen=True)
class VMConfig:
    """
    Configuration for VM construction.

    Attributes:
        policy: LENIENT (no-op/wrap) or STRICT (raise VMFault)
        protect_registers: Reject STOREs and loads touching the PC/SP cells

    Example:
        >>> vm = VM(VMConfig(policy=ExecutionPolicy.STRICT))
    """
    policy: ExecutionPolicy = ExecutionPolicy.LENIENT
    protect_registers: bool = False


class VM:
    """
    The MCPU stack machine.

    Attributes:
        config: Execution policy and register protection
        memory: The 256-byte memory, including the register cells
        running: False after HALT, early_halt() or a fault
        fault: The fault that halted the machine, if any; step() and run()
            raise it again until reset()
        on_instruction: Hook called by run() before each instruction as
            on_instruction(pc, opcode); returning False stops the run
    """

    def __init__(self, config: Optional[VMConfig] = None):
        self.config = config or VMConfig()
        self.memory = Memory(MEMORY_SIZE)
        self.running = True
        self.fault: Optional[VMFault] = None
        self.on_instruction: Optional[Callable[[int, int], bool]] = None
        self._early_halt = False

        self._handlers: dict[int, Callable[[int, int], Optional[int]]] = {
            Opcode.HALT: self._op_halt,
            Opcode.LOAD: self._op_load,
            Opcode.STORE: self._op_store,
            Opcode.PUSH: self._op_push,
            Opcode.POP: self._op_pop,
            Opcode.ADD: self._op_add,
            Opcode.SUB: self._op_sub,
            Opcode.AND: self._op_and,
            Opcode.OR: self._op_or,
            Opcode.XOR: self._op_xor,
            Opcode.JP: self._op_jump,
        }

        self.pc = 0
        self.sp = STACK_TOP

    # ========================================
    # Register Properties
    # ========================================

    @property
    def pc(self) -> int:
        """Program counter, stored in the PC cell."""
        return self.memory.read(PC_ADDRESS)

    @pc.setter
    def pc(self, value: int) -> None:
        self.memory.write(PC_ADDRESS, value)

    @property
    def sp(self) -> int:
        """Stack pointer, stored in the SP cell. Points one below the top value."""
        return self.memory.read(SP_ADDRESS)

    @sp.setter
    def sp(self, value: int) -> None:
        self.memory.write(SP_ADDRESS, value)

    @property
    def strict(self) -> bool:
        return self.config.policy is ExecutionPolicy.STRICT

    # ========================================
    # Memory Access
    # ========================================

    def read(self, address: int) -> int:
        """Read byte at address (masked to 8 bits)."""
        return self.memory.read(address & 0xFF)

    def write(self, address: int, value: int) -> None:
        """Write byte at address; address and value are masked to 8 bits."""
        self.memory.write(address & 0xFF, value & 0xFF)

    # ========================================
    # Control
    # ========================================

    def load(self, program: bytes) -> None:
        """
        Copy a program image to address 0.

        PC, SP and the running flag are not reset, but an image long enough
        to reach the register cells overwrites them.

        Raises:
            LoadError: If the image is larger than memory, or reaches the
                       register cells while they are protected
        """
        if len(program) > MEMORY_SIZE:
            raise LoadError(
                f"program is {len(program)} bytes, memory holds {MEMORY_SIZE}"
            )
        if self.config.protect_registers and len(program) > min(RESERVED_ADDRESSES):
            raise LoadError(
                f"program is {len(program)} bytes and would overwrite the "
                f"register cells at 0x{min(RESERVED_ADDRESSES):02X}-0x{PC_ADDRESS:02X}"
            )
        self.memory.load(bytes(program), 0)
        logger.debug(f"Loaded {len(program)} bytes")

    def reset(self) -> None:
        """Set running, PC=0 and SP=STACK_TOP; memory contents are kept."""
        self.running = True
        self.fault = None
        self._early_halt = False
        self.pc = 0
        self.sp = STACK_TOP
        logger.debug("Reset")

    def early_halt(self) -> None:
        """Stop the machine from outside the fetch loop."""
        if self.running:
            logger.debug(f"Early halt at pc=0x{self.pc:02X}")
        self.running = False
        self._early_halt = True

    def step(self) -> None:
        """
        Execute exactly one instruction. Does nothing when halted.

        Raises:
            VMFault: Under the strict policy, or on a protected-register store.
                The fault is raised again by every later step() or run()
                until reset().
        """
        if self.fault is not None:
            raise self.fault
        if not self.running:
            return

        pc = self.pc
        opcode = self.read(pc)
        info = decode_opcode(opcode)

        if info is None:
            if self.strict:
                self._fault(IllegalOpcodeError(pc, opcode))
            # Unknown opcode: no-op, one byte
            self.pc = self.pc + 1
            return

        operand = self.read(pc + 1) if info.size == 2 else 0
        try:
            target = self._handlers[opcode](pc, operand)
        except VMFault as fault:
            self._fault(fault)
            return

        if target is None:
            self.pc = self.pc + info.size
        else:
            self.pc = target

    def run(self, max_steps: Optional[int] = None) -> StopEvent:
        """
        Step until halted or until max_steps instructions have run.

        Without a budget, a program that never halts never returns.

        Args:
            max_steps: Instruction budget, or None for no limit

        Returns:
            StopEvent describing why execution stopped

        Raises:
            VMFault: If an instruction faults, or if the machine faulted
                earlier and has not been reset
        """
        if self.fault is not None:
            raise self.fault

        steps = 0
        while self.running:
            if max_steps is not None and steps >= max_steps:
                logger.debug(f"Step budget of {max_steps} exhausted at pc=0x{self.pc:02X}")
                return StopEvent(StopReason.MAX_STEPS, steps, self.pc)

            if self.on_instruction is not None:
                if not self.on_instruction(self.pc, self.read(self.pc)):
                    self.early_halt()
                    break

            self.step()
            steps += 1

        reason = StopReason.EARLY_HALT if self._early_halt else StopReason.HALTED
        logger.debug(f"{reason.name} after {steps} steps at pc=0x{self.pc:02X}")
        return StopEvent(reason, steps, self.pc)

    def _fault(self, fault: VMFault) -> None:
        """Halt the machine and raise `fault`."""
        self.running = False
        self.fault = fault
        logger.debug(f"Fault: {fault}")
        raise fault

    # ========================================
    # Stack
    # ========================================

    def _push(self, value: int, pc: int, opcode: int) -> None:
        """Write at SP, then decrement SP."""
        sp = self.sp
        if sp == 0 and self.strict:
            raise StackOverflowError(pc, opcode)
        self.write(sp, value)
        self.sp = sp - 1

    def _pop(self, pc: int, opcode: int) -> int:
        """Increment SP, then read at SP."""
        sp = self.sp
        if sp >= STACK_TOP and self.strict:
            raise StackUnderflowError(pc, opcode)
        sp = (sp + 1) & 0xFF
        self.sp = sp
        return self.read(sp)

    # ========================================
    # Instructions
    # ========================================
    # Each handler returns the jump target, or None to advance past the
    # instruction.

    def _op_halt(self, pc: int, operand: int) -> Optional[int]:
        self.running = False
        return None

    def _op_load(self, pc: int, operand: int) -> Optional[int]:
        address = self._pop(pc, Opcode.LOAD)
        self._push(self.read(address), pc, Opcode.LOAD)
        return None

    def _op_store(self, pc: int, operand: int) -> Optional[int]:
        address = self._pop(pc, Opcode.STORE)
        value = self._pop(pc, Opcode.STORE)
        if self.config.protect_registers and address in RESERVED_ADDRESSES:
            raise ReservedRegisterError(pc, Opcode.STORE, address)
        self.write(address, value)
        return None

    def _op_push(self, pc: int, operand: int) -> Optional[int]:
        self._push(operand, pc, Opcode.PUSH)
        return None

    def _op_pop(self, pc: int, operand: int) -> Optional[int]:
        self._pop(pc, Opcode.POP)
        return None

    def _arithmetic(self, pc: int, opcode: Opcode, result: int) -> None:
        """Push a signed ADD/SUB result, wrapping or faulting on overflow."""
        if not -128 <= result <= 127 and self.strict:
            raise ArithmeticOverflowError(pc, opcode, result)
        self._push(result & 0xFF, pc, opcode)

    def _op_add(self, pc: int, operand: int) -> Optional[int]:
        a = to_signed(self._pop(pc, Opcode.ADD))
        b = to_signed(self._pop(pc, Opcode.ADD))
        self._arithmetic(pc, Opcode.ADD, b + a)
        return None

    def _op_sub(self, pc: int, operand: int) -> Optional[int]:
        # Second-popped minus top
        top = to_signed(self._pop(pc, Opcode.SUB))
        second = to_signed(self._pop(pc, Opcode.SUB))
        self._arithmetic(pc, Opcode.SUB, second - top)
        return None

    def _op_and(self, pc: int, operand: int) -> Optional[int]:
        a = self._pop(pc, Opcode.AND)
        b = self._pop(pc, Opcode.AND)
        self._push(b & a, pc, Opcode.AND)
        return None

    def _op_or(self, pc: int, operand: int) -> Optional[int]:
        a = self._pop(pc, Opcode.OR)
        b = self._pop(pc, Opcode.OR)
        self._push(b | a, pc, Opcode.OR)
        return None

    def _op_xor(self, pc: int, operand: int) -> Optional[int]:
        a = self._pop(pc, Opcode.XOR)
        b = self._pop(pc, Opcode.XOR)
        self._push(b ^ a, pc, Opcode.XOR)
        return None

    def _op_jump(self, pc: int, operand: int) -> Optional[int]:
        """Pop the target; conditional forms then pop the value to test."""
        try:
            condition = Condition(operand)
        except ValueError:
            if self.strict:
                raise IllegalConditionError(pc, Opcode.JP, operand)
            # Unknown condition code: no-op, nothing popped
            return None

        target = self._pop(pc, Opcode.JP)
        if condition is Condition.ALWAYS:
            return target

        value = to_signed(self._pop(pc, Opcode.JP))
        return target if condition.holds(value) else None

    # ========================================
    # Inspection
    # ========================================

    def stack(self) -> list[int]:
        """Values on the stack, top first."""
        return [self.read(address) for address in range(self.sp + 1, STACK_TOP + 1)]

    def __repr__(self) -> str:
        state = "running" if self.running else "halted"
        return f"VM(pc=0x{self.pc:02X}, sp=0x{self.sp:02X}, {state})"
