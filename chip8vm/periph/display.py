"""
CHIP-8 Virtual Machine — Monochrome Framebuffer

64×32 single-bit pixels, row-major. The only ways a program changes the
picture are 00E0 (clear) and DXYN (XOR sprite blit).

Sprite blits work one byte per row, bit 7 leftmost. Clipping, not wrapping:
  - pixels at or past the right edge are dropped for that row
  - rows at or past the bottom edge are not drawn
Collision is per row: a row collides when the XOR turned off a pixel that was
on, i.e. (old | sprite_byte) != (old ^ sprite_byte).
"""

from typing import Iterable, List


SCREEN_WIDTH = 64
SCREEN_HEIGHT = 32


class Framebuffer:
    """Bit grid owned by the emulator. Callers read it, only the CPU writes it."""

    def __init__(self, width: int = SCREEN_WIDTH, height: int = SCREEN_HEIGHT):
        self.width = width
        self.height = height
        self._pixels = bytearray(width * height)   # 0 or 1 per cell

    def clear(self):
        self._pixels[:] = bytes(self.width * self.height)

    # --- Pixel access ---

    def get_pixel(self, x: int, y: int) -> bool:
        return self._pixels[y * self.width + x] == 1

    def set_pixel(self, x: int, y: int, on: bool):
        self._pixels[y * self.width + x] = 1 if on else 0

    # --- Byte access (8 pixels from column x) ---

    def get_byte(self, x: int, y: int) -> int:
        """Read 8 pixels starting at (x, y) as a byte. Off-screen bits read 0."""
        row = y * self.width
        value = 0
        for i in range(8):
            pos_x = x + i
            if pos_x >= self.width:
                break
            value |= self._pixels[row + pos_x] << (7 - i)
        return value

    def set_byte(self, x: int, y: int, value: int):
        """Write 8 pixels starting at (x, y), stopping at the right edge."""
        row = y * self.width
        for i in range(8):
            pos_x = x + i
            if pos_x >= self.width:
                break
            self._pixels[row + pos_x] = (value >> (7 - i)) & 1

    # --- Sprites ---

    def draw_sprite(self, x: int, y: int, rows: Iterable[int]) -> bool:
        """XOR-blit sprite rows at (x, y). Returns True if any row collided.

        x and y must already be on screen; DXYN wraps the start position
        before calling.
        """
        collision = False
        for i, sprite_byte in enumerate(rows):
            pos_y = y + i
            if pos_y >= self.height:
                break
            old = self.get_byte(x, pos_y)
            new = sprite_byte ^ old
            self.set_byte(x, pos_y, new)
            if (sprite_byte | old) != new:
                collision = True
        return collision

    # --- Inspection ---

    def lit_count(self) -> int:
        return sum(self._pixels)

    def rows(self) -> List[tuple]:
        """Pixel rows as tuples of bools, top row first."""
        w = self.width
        return [tuple(bool(p) for p in self._pixels[r * w:(r + 1) * w])
                for r in range(self.height)]

    def snapshot(self) -> bytes:
        return bytes(self._pixels)

    def render(self, on: str = '#', off: str = '.') -> str:
        """Text rendering, one line per pixel row."""
        w = self.width
        return '\n'.join(
            ''.join(on if p else off for p in self._pixels[r * w:(r + 1) * w])
            for r in range(self.height))
