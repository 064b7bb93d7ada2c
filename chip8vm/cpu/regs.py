"""
CHIP-8 Virtual Machine — CPU Register Set + Call Stack

Register model:
  V0–VF  — 16 general 8-bit registers (arithmetic wraps mod 256)
           VF doubles as the carry / borrow / collision flag and is
           overwritten as a side effect of 8XY4–8XYE and DXYN
  I      — 16-bit address register (sprites, BCD, bulk transfer)
  PC     — 16-bit program counter, starts at $200, steps by 2
  SP     — number of return addresses on the stack (0–16)
  stack  — 16 return-address slots, separate from addressable memory
"""

from ..errors import StackOverflow, StackUnderflow


VF = 0xF
STACK_DEPTH = 16
RESET_PC = 0x200


class Registers:
    """CHIP-8 register file.

    Timers live in periph.timer; they are decayed by the clock, not by
    instruction execution.
    """

    __slots__ = ('V', 'I', 'PC', 'SP', 'stack')

    def __init__(self):
        self.V = bytearray(16)
        self.I: int = 0
        self.PC: int = RESET_PC
        self.SP: int = 0
        self.stack = [0] * STACK_DEPTH

    # --- Stack operations ---

    def push(self, address: int):
        """Push a return address. A 17th nested call is an error."""
        if self.SP >= STACK_DEPTH:
            raise StackOverflow(
                f"Call stack overflow at PC=${self.PC:04X} (depth {STACK_DEPTH})")
        self.stack[self.SP] = address & 0xFFFF
        self.SP += 1

    def pop(self) -> int:
        if self.SP == 0:
            raise StackUnderflow(f"Return with empty call stack at PC=${self.PC:04X}")
        self.SP -= 1
        return self.stack[self.SP]

    # --- Display ---

    def display(self) -> str:
        """Format register state for debugging."""
        v = ' '.join(f"V{i:X}={self.V[i]:02X}" for i in range(16))
        return f"PC={self.PC:04X} I={self.I:04X} SP={self.SP:X} {v}"

    def reset(self):
        """Reset CPU to power-on state."""
        self.V[:] = bytes(16)
        self.I = 0
        self.PC = RESET_PC
        self.SP = 0
        self.stack = [0] * STACK_DEPTH
