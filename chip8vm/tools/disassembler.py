"""
CHIP-8 Disassembler — Static Listing of a Program Image
=======================================================
Decodes instruction words with the same opcode table the emulator executes
(cpu/decoder.py), so a listing always agrees with execution byte-for-byte.
Nothing is executed: data embedded in a program (sprites, tables) is listed
as whatever instruction its bytes happen to encode, or UNKNOWN.

API Usage:
    from chip8vm.tools.disassembler import Chip8Disassembler

    dis = Chip8Disassembler()
    for line in dis.listing(rom_bytes):
        print(line)            # "0200\t00E0\tCLS"

    # Start part-way into the image (address as loaded, $200..$FFF)
    results = dis.disassemble(rom_bytes, start_address=0x220)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..cpu.decoder import Instruction, lookup
from ..errors import InvalidStartAddress
from ..mem.memory import PROGRAM_START, ADDRESS_MASK


LISTING_HEADER = "Address\tOpcode\tInstruction"


@dataclass
class DisassembledInstruction:
    """One decoded instruction word."""
    address: int
    opcode: int
    instruction: Optional[Instruction]   # None for words no mask matches

    @property
    def mnemonic(self) -> str:
        return self.instruction.mnemonic if self.instruction else "UNKNOWN"

    @property
    def operands(self) -> str:
        return self.instruction.format_operands(self.opcode) if self.instruction else ""

    @property
    def text(self) -> str:
        return f"{self.mnemonic} {self.operands}".strip()

    def format(self) -> str:
        """Tab-separated listing line: address, raw word, instruction."""
        return f"{self.address:04X}\t{self.opcode:04X}\t{self.text}"


class Chip8Disassembler:

    def disassemble(self, data: bytes,
                    start_address: int = PROGRAM_START) -> List[DisassembledInstruction]:
        """Decode a program image as it would sit in memory from $200.

        start_address selects where decoding begins; it must lie inside the
        program region. A trailing odd byte is decoded as if padded with $00.
        """
        if not PROGRAM_START <= start_address <= ADDRESS_MASK:
            raise InvalidStartAddress(start_address)

        data = bytes(data)
        results = []
        offset = start_address - PROGRAM_START
        pc = start_address
        while offset < len(data):
            hi = data[offset]
            lo = data[offset + 1] if offset + 1 < len(data) else 0x00
            opcode = (hi << 8) | lo
            results.append(DisassembledInstruction(pc, opcode, lookup(opcode)))
            offset += 2
            pc += 2
        return results

    def listing(self, data: bytes, start_address: int = PROGRAM_START) -> List[str]:
        """Header line followed by one formatted line per instruction word."""
        lines = [LISTING_HEADER]
        lines.extend(r.format() for r in self.disassemble(data, start_address))
        return lines
