"""
CHIP-8 Virtual Machine — Emulator Configuration

Speed levels are instructions per second. The CHIP-8 has no defined clock,
so these are the presets offered to users; NORMAL runs most programs at the
pace they were written for.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union


class Speed(IntEnum):
    SLOW = 150
    MODERATE = 500
    NORMAL = 840
    FAST = 1500
    ULTRA_FAST = 3000

    @classmethod
    def parse(cls, text: Union[str, int]) -> int:
        """Parse a speed preset name ('fast', 'ultra-fast') or a positive integer rate."""
        if isinstance(text, int):
            value = text
        else:
            key = text.strip().upper().replace('-', '_')
            if key in cls.__members__:
                return cls.__members__[key]
            try:
                value = int(key, 0)
            except ValueError:
                names = ', '.join(m.name.lower() for m in cls)
                raise ValueError(
                    f"Unknown speed {text!r} (expected one of: {names}, or a number)")
        if value <= 0:
            raise ValueError(f"Speed must be positive, got {value}")
        return value


@dataclass
class EmulatorConfig:
    """Engine settings that survive program reloads."""
    cycles_per_second: int = Speed.NORMAL
    timer_hz: int = 60
    strict_load: bool = False     # raise ProgramTooLarge instead of truncating
    seed: Optional[int] = None    # seeds the CXNN random source
    trace: bool = False           # record one line per executed instruction
