"""
CHIP-8 Virtual Machine — ALU Helpers

Pure 8-bit arithmetic used by the 8XYn and FX33 handlers.

IMPORTANT: the handlers write VF *before* they write VX and re-read the
register file between the two writes. When X or Y is F the flag write is
visible to the result computation. That ordering is what the programs
written for this interpreter variant expect, so the flag and the result are
exposed as separate functions instead of one (result, flags) tuple.

Flag conventions:
  add:  VF = 1 when the unsigned sum exceeds 255
  sub:  VF = 1 when minuend > subtrahend (strictly; equal operands give 0)
  shift: VF = bit 0 of VX for both directions, the shifted value comes from VY
"""


def add8(a: int, b: int) -> tuple:
    """Add two bytes. Returns (result, carry)."""
    total = a + b
    return (total & 0xFF, 1 if total > 0xFF else 0)


def sub8(a: int, b: int) -> int:
    return (a - b) & 0xFF


def no_borrow(a: int, b: int) -> int:
    """VF value for a - b."""
    return 1 if a > b else 0


def shr8(value: int) -> int:
    return (value >> 1) & 0xFF


def shl8(value: int) -> int:
    return (value << 1) & 0xFF


def lsb(value: int) -> int:
    return value & 1


def bcd(value: int) -> tuple:
    """Split a byte into (hundreds, tens, units)."""
    return (value // 100, (value % 100) // 10, value % 10)
