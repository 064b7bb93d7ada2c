"""
CHIP-8 Virtual Machine — Exception Types

Every fatal condition the engine or its tooling can report derives from
Chip8Error so hosts can catch the whole family in one place.

Fatal during execution (latched as the emulator's fault):
  IllegalOpcode   — no masked lookup matched the instruction word
  StackOverflow   — CALL with all 16 stack slots in use
  StackUnderflow  — RET with an empty stack

Rejected before execution:
  ProgramTooLarge      — strict load of an image over 3584 bytes
  InvalidKey           — host key event outside 0..15
  InvalidStartAddress  — disassembly start outside $200..$FFF
"""


class Chip8Error(Exception):
    """Base class for all CHIP-8 VM errors."""
    pass


class IllegalOpcode(Chip8Error):
    """Raised when an instruction word matches no entry in the opcode table."""

    def __init__(self, address: int, opcode: int):
        self.address = address
        self.opcode = opcode
        super().__init__(f"Unknown opcode ${opcode:04X} at ${address:04X}")


class StackError(Chip8Error):
    """Call stack misuse. The legacy machine leaves this undefined; we stop."""
    pass


class StackOverflow(StackError):
    pass


class StackUnderflow(StackError):
    pass


class ProgramTooLarge(Chip8Error):

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"Program is {size} bytes, program region holds {limit} bytes")


class InvalidKey(Chip8Error, ValueError):
    """Raised for key indices outside the 16-key pad."""

    def __init__(self, key):
        self.key = key
        super().__init__(f"Key index must be between 0 and 15, got {key!r}")


class InvalidStartAddress(Chip8Error, ValueError):

    def __init__(self, address: int):
        self.address = address
        super().__init__(
            f"Initial address must be between 0x200 and 0xFFF, got 0x{address:X}")
