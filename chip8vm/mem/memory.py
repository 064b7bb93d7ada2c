"""
CHIP-8 Virtual Machine — 4K Memory Map with Region Routing

Memory map:
  $000–$04F  Font glyphs (16 digits × 5 bytes)
  $050–$1FF  Reserved (interpreter area, zero-filled)
  $200–$FFF  Program region (3584 bytes)

The address bus is 12 bits wide: every access is taken modulo $1000, so
I-relative transfers that run off the top of memory wrap to $000.

The reserved region behaves like ROM from the program's point of view.
Writes from executing code are silently dropped (logged at DEBUG); bulk
loading bypasses the protection so the font can be installed.
"""

import logging


logger = logging.getLogger(__name__)

MEMORY_SIZE = 0x1000
ADDRESS_MASK = MEMORY_SIZE - 1
PROGRAM_START = 0x200
MAX_PROGRAM_SIZE = MEMORY_SIZE - PROGRAM_START   # 3584 bytes

FONT_GLYPH_SIZE = 5

# Hex digit sprites 0–F, 4 pixels wide, 5 rows each. Byte values are part of
# the compatibility contract for programs using FX29.
FONT = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])


class MemoryRegion:
    """A named span of the 4K address space."""
    def __init__(self, name: str, start: int, end: int, writable: bool):
        self.name = name
        self.start = start
        self.end = end  # inclusive
        self.writable = writable

    def contains(self, addr: int) -> bool:
        return self.start <= addr <= self.end


REGIONS = (
    MemoryRegion('FONT',     0x000, 0x04F, writable=False),
    MemoryRegion('RESERVED', 0x050, PROGRAM_START - 1, writable=False),
    MemoryRegion('PROGRAM',  PROGRAM_START, ADDRESS_MASK, writable=True),
)


def region_of(addr: int) -> MemoryRegion:
    addr &= ADDRESS_MASK
    return next(region for region in REGIONS if region.contains(addr))


class Memory:
    """4K byte-addressable memory.

    Program writes are routed through REGIONS; read-only regions drop them.
    """

    def __init__(self):
        self._mem = bytearray(MEMORY_SIZE)

    def __len__(self) -> int:
        return MEMORY_SIZE

    # --- Core read/write ---

    def read8(self, addr: int) -> int:
        return self._mem[addr & ADDRESS_MASK]

    def write8(self, addr: int, value: int) -> bool:
        """Write an 8-bit value on behalf of executing code.

        Returns False when the target region is read-only and the write
        was dropped.
        """
        addr &= ADDRESS_MASK
        value &= 0xFF

        region = region_of(addr)
        if not region.writable:
            logger.debug("Dropped write of $%02X to %s address $%03X",
                         value, region.name, addr)
            return False

        self._mem[addr] = value
        return True

    def read16(self, addr: int) -> int:
        """Read 16-bit value (big-endian). Used for instruction fetch."""
        hi = self.read8(addr)
        lo = self.read8(addr + 1)
        return (hi << 8) | lo

    def read_block(self, addr: int, length: int) -> bytes:
        return bytes(self.read8(addr + i) for i in range(length))

    # --- Bulk load ---

    def clear(self):
        self._mem[:] = bytes(MEMORY_SIZE)

    def load_binary(self, data: bytes, base_addr: int):
        """Load binary data into memory at base_addr.

        Bypasses write protection. Used for installing the font and
        program images.
        """
        for i, byte in enumerate(data):
            self._mem[(base_addr + i) & ADDRESS_MASK] = byte

    def load_font(self):
        self.load_binary(FONT, 0x000)

    def load_program(self, data: bytes) -> int:
        """Copy a program image to $200. Returns the number of bytes copied.

        Images longer than the program region are cut at MAX_PROGRAM_SIZE;
        the caller decides whether that is an error.
        """
        data = bytes(data[:MAX_PROGRAM_SIZE])
        self.load_binary(data, PROGRAM_START)
        return len(data)

