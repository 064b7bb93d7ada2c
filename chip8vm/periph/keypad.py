"""
CHIP-8 Virtual Machine — 16-Key Hex Keypad

Key state is a flat table of 16 booleans. Only the host changes it (key down
/ key up events); executing code only reads it, through EX9E / EXA1 and the
lowest-index scan of FX0A.

There is no locking here. A host delivering key events on another thread
must serialize them with Chip8Emulator.advance().
"""

from typing import List, Optional

from ..errors import InvalidKey


KEY_COUNT = 16


class Keypad:

    def __init__(self):
        self._keys = [False] * KEY_COUNT

    @staticmethod
    def _check(key) -> int:
        if isinstance(key, bool) or not isinstance(key, int) or not 0 <= key < KEY_COUNT:
            raise InvalidKey(key)
        return key

    def press(self, key: int):
        self._keys[self._check(key)] = True

    def release(self, key: int):
        self._keys[self._check(key)] = False

    def is_pressed(self, key: int) -> bool:
        return self._keys[self._check(key)]

    def first_pressed(self) -> Optional[int]:
        """Lowest pressed key index, or None if nothing is held."""
        for index, down in enumerate(self._keys):
            if down:
                return index
        return None

    def pressed(self) -> List[int]:
        return [i for i, down in enumerate(self._keys) if down]

    def reset(self):
        self._keys = [False] * KEY_COUNT
