#!/usr/bin/env python3
"""
MCPU Virtual Machine Demo
=========================

This script demonstrates how to:
1. Assemble a program from source
2. Load and run it in the VM
3. Inspect the stack, registers and memory
4. Use the strict policy and the instruction hook

Usage:
    python examples/vm_demo.py
"""

from mcpu import VM, VMConfig, ExecutionPolicy, Disassembler, McpuError
from mcpu.assembler import Assembler


# Data is placed after a jump so the VM does not execute it
ADD_PROGRAM = "PUSH 0x6;JP;DW A 0x1;DW B 0x2;PUSH A;LOAD;PUSH B;LOAD;ADD;HALT;"

# Counts 5 down to 0, keeping the counter at 0x20
COUNTDOWN = """\
PUSH 0x5
PUSH 0x20
STORE
PUSH 0x20
LOAD
PUSH 0x1
SUB
PUSH 0x20
STORE
PUSH 0x20
LOAD
PUSH 0x5
JP neq
HALT
"""


def main():
    # ==========================================================================
    # 1. Assemble
    # ==========================================================================
    asm = Assembler()
    code = asm.assemble_string(ADD_PROGRAM, "add.asm")

    print(f"Assembled {len(code)} bytes: {code.hex(' ')}")
    print(f"  Symbols: {asm.get_symbols()}")
    print()
    print(Disassembler({v: k for k, v in asm.get_symbols().items()}).disassemble_to_text(code))
    print()

    # ==========================================================================
    # 2. Run
    # ==========================================================================
    vm = VM()
    vm.load(code)
    event = vm.run()

    print(f"{event} after {event.steps} steps")
    print(f"  PC=0x{vm.pc:02X} SP=0x{vm.sp:02X}")
    print(f"  Stack, top first: {vm.stack()}")

    # ==========================================================================
    # 3. Reset keeps the program
    # ==========================================================================
    vm.reset()
    print(f"After reset: {vm!r}, first bytes {vm.memory.read_bytes(0, 4).hex(' ')}")
    print()

    # ==========================================================================
    # 4. Loops, hooks and step budgets
    # ==========================================================================
    loop = Assembler(terminator="\n").assemble_string(COUNTDOWN, "countdown.asm")
    vm = VM()
    vm.load(loop)

    trace = []
    vm.on_instruction = lambda pc, opcode: trace.append(pc) is None
    event = vm.run(max_steps=1000)
    print(f"Countdown: {event}, {event.steps} steps, counter={vm.read(0x20)}")
    print(f"  Loop entries: {trace.count(0x05)}")

    # ==========================================================================
    # 5. Strict policy
    # ==========================================================================
    vm = VM(VMConfig(policy=ExecutionPolicy.STRICT))
    vm.load(bytes([0x03, 0x7F, 0x03, 0x01, 0x05, 0x00]))
    try:
        vm.run()
    except McpuError as e:
        print(f"Strict run stopped: {e}")


if __name__ == "__main__":
    main()
