"""
CHIP-8 Virtual Machine — Opcode Decoder / Dispatch Table

Every CHIP-8 instruction is one 16-bit big-endian word. The top nibble picks
an operation family; parameters sit in fixed nibble positions:

  X    bits 8–11   register index
  Y    bits 4–7    register index
  N    bits 0–3    4-bit immediate
  NN   bits 0–7    8-bit immediate
  NNN  bits 0–11   12-bit address

The table below is keyed by the instruction word with its parameter nibbles
zeroed (8XY4 → $8004, FX33 → $F033). Resolution tries three masks in strict
order, $F0FF, $F00F, $F000, and the first hit wins. The order matters: $8001
and $8000 differ only in the low nibble, so the coarse $F000 mask may only be
tried after the finer ones have missed.

The table is shared with tools.disassembler, so execution and listings can
never disagree about the encoding.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from ..errors import IllegalOpcode


MASKS = (0xF0FF, 0xF00F, 0xF000)


# ──────────────────────────────────────────────
# Field extraction
# ──────────────────────────────────────────────

def reg_x(opcode: int) -> int:
    return (opcode >> 8) & 0xF


def reg_y(opcode: int) -> int:
    return (opcode >> 4) & 0xF


def nibble(opcode: int) -> int:
    return opcode & 0xF


def byte(opcode: int) -> int:
    return opcode & 0xFF


def address(opcode: int) -> int:
    return opcode & 0xFFF


@dataclass(frozen=True)
class Instruction:
    """One entry of the opcode table."""
    key: int            # opcode with parameter nibbles zeroed
    pattern: str        # e.g. '8XY4'
    mnemonic: str
    operands: str       # str.format template over x, y, n, nn, nnn
    handler: str        # name of the Chip8Emulator method executing it

    def format_operands(self, opcode: int) -> str:
        return self.operands.format(
            x=reg_x(opcode), y=reg_y(opcode), n=nibble(opcode),
            nn=byte(opcode), nnn=address(opcode))

    def format(self, opcode: int) -> str:
        return f"{self.mnemonic} {self.format_operands(opcode)}".strip()


# ──────────────────────────────────────────────
# Opcode table
# ──────────────────────────────────────────────
# Format: Instruction(key, pattern, mnemonic, operand template, handler)

I = Instruction

OPCODE_TABLE = (
    # ── Display / flow ──
    I(0x00E0, '00E0', 'CLS',  '',                          '_op_cls'),
    I(0x00EE, '00EE', 'RET',  '',                          '_op_ret'),
    I(0x1000, '1NNN', 'JP',   '{nnn:04X}',                 '_op_jp'),
    I(0x2000, '2NNN', 'CALL', '{nnn:04X}',                 '_op_call'),

    # ── Conditional skips ──
    I(0x3000, '3XNN', 'SE',   'V{x:X}, {nn:02X}',          '_op_se_byte'),
    I(0x4000, '4XNN', 'SNE',  'V{x:X}, {nn:02X}',          '_op_sne_byte'),
    I(0x5000, '5XY0', 'SE',   'V{x:X}, V{y:X}',            '_op_se_reg'),

    # ── Register loads ──
    I(0x6000, '6XNN', 'LD',   'V{x:X}, {nn:02X}',          '_op_ld_byte'),
    I(0x7000, '7XNN', 'ADD',  'V{x:X}, {nn:02X}',          '_op_add_byte'),

    # ── Register-register ALU ──
    I(0x8000, '8XY0', 'LD',   'V{x:X}, V{y:X}',            '_op_ld_reg'),
    I(0x8001, '8XY1', 'OR',   'V{x:X}, V{y:X}',            '_op_or'),
    I(0x8002, '8XY2', 'AND',  'V{x:X}, V{y:X}',            '_op_and'),
    I(0x8003, '8XY3', 'XOR',  'V{x:X}, V{y:X}',            '_op_xor'),
    I(0x8004, '8XY4', 'ADD',  'V{x:X}, V{y:X}',            '_op_add_reg'),
    I(0x8005, '8XY5', 'SUB',  'V{x:X}, V{y:X}',            '_op_sub'),
    I(0x8006, '8XY6', 'SHR',  'V{x:X}, V{y:X}',            '_op_shr'),
    I(0x8007, '8XY7', 'SUBN', 'V{x:X}, V{y:X}',            '_op_subn'),
    I(0x800E, '8XYE', 'SHL',  'V{x:X}, V{y:X}',            '_op_shl'),
    I(0x9000, '9XY0', 'SNE',  'V{x:X}, V{y:X}',            '_op_sne_reg'),

    # ── Address register / jumps ──
    I(0xA000, 'ANNN', 'LD',   'I, {nnn:04X}',              '_op_ld_i'),
    I(0xB000, 'BNNN', 'JP',   'V0, {nnn:04X}',             '_op_jp_v0'),
    I(0xC000, 'CXNN', 'RND',  'V{x:X}, {nn:02X}',          '_op_rnd'),
    I(0xD000, 'DXYN', 'DRW',  'V{x:X}, V{y:X}, {n:X}',     '_op_drw'),

    # ── Keypad ──
    I(0xE09E, 'EX9E', 'SKP',  'V{x:X}',                    '_op_skp'),
    I(0xE0A1, 'EXA1', 'SKNP', 'V{x:X}',                    '_op_sknp'),

    # ── Timers / memory ──
    I(0xF007, 'FX07', 'LD',   'V{x:X}, DT',                '_op_ld_vx_dt'),
    I(0xF00A, 'FX0A', 'LD',   'V{x:X}, K',                 '_op_ld_vx_k'),
    I(0xF015, 'FX15', 'LD',   'DT, V{x:X}',                '_op_ld_dt'),
    I(0xF018, 'FX18', 'LD',   'ST, V{x:X}',                '_op_ld_st'),
    I(0xF01E, 'FX1E', 'ADD',  'I, V{x:X}',                 '_op_add_i'),
    I(0xF029, 'FX29', 'LD',   'F, V{x:X}',                 '_op_ld_f'),
    I(0xF033, 'FX33', 'LD',   'B, V{x:X}',                 '_op_ld_b'),
    I(0xF055, 'FX55', 'LD',   '[I], V{x:X}',               '_op_store'),
    I(0xF065, 'FX65', 'LD',   'V{x:X}, [I]',               '_op_load'),
)

del I

OPCODES: Dict[int, Instruction] = {ins.key: ins for ins in OPCODE_TABLE}


def lookup(opcode: int) -> Optional[Instruction]:
    """Masked lookup ladder. Returns None when no mask hits."""
    for mask in MASKS:
        ins = OPCODES.get(opcode & mask)
        if ins is not None:
            return ins
    return None


def decode_opcode(opcode: int, pc: int = 0) -> Instruction:
    """Decode an instruction word fetched from pc.

    Raises IllegalOpcode (carrying pc and the raw word) when no mask hits.
    """
    ins = lookup(opcode & 0xFFFF)
    if ins is None:
        raise IllegalOpcode(pc, opcode & 0xFFFF)
    return ins
