"""
chip8vm — CHIP-8 Virtual Machine
=================================
An interpreter for the CHIP-8 instruction set: 16 byte registers, a 64×32
monochrome framebuffer, a 16-key pad and two 60 Hz countdown timers.

Architecture:
    ┌────────────┐  elapsed   ┌─────────┐  budget   ┌──────────────────┐
    │    Host    │──────────>│  Clock  │─────────>│ Chip8Emulator    │
    │ (cli / UI) │<──────────│ (timer) │          │ fetch/decode/exec│
    └────────────┘  events    └─────────┘          └──────────────────┘
                                                     │  │   │    │
                                   Registers  Memory  Framebuffer  Keypad

    - cpu/regs.py:      V0–VF, I, PC, call stack
    - cpu/decoder.py:   opcode table + masked lookup ladder
    - cpu/alu.py:       8-bit arithmetic and flag helpers
    - mem/memory.py:    4K map, font glyphs, write-protected reserved area
    - periph/:          framebuffer, keypad, clock and countdown timers
    - tools/:           static disassembler sharing the opcode table
"""

__version__ = "0.1.0"

from .config import EmulatorConfig, Speed
from .emu import Chip8Emulator, Event, StopReason
from .errors import (
    Chip8Error, IllegalOpcode, StackError, StackOverflow, StackUnderflow,
    ProgramTooLarge, InvalidKey, InvalidStartAddress,
)
from .tools.disassembler import Chip8Disassembler, DisassembledInstruction
