"""
CHIP-8 Virtual Machine — Main Emulator Class

Integrates:
  - CPU registers + call stack (cpu/regs.py)
  - Opcode table and masked decode (cpu/decoder.py)
  - ALU helpers (cpu/alu.py)
  - 4K memory map with font (mem/memory.py)
  - Framebuffer, keypad, clock and timers (periph/)

Execution model (one advance() call):
  1. Clock turns elapsed host time into an instruction budget
  2. For each instruction: fetch the word at PC, decode, execute
  3. Stop the batch early on halt (self-jump)
  4. Clock decays DT and ST; ST reaching zero raises SOUND_OFF

Stop reasons (latched until the next load_program):
  - HALT:     1NNN jumped to its own address
  - ILLEGAL:  instruction word matched no table entry
  - STACK:    call stack overflow or underflow
"""

import logging
import random
import time
from collections import deque
from enum import Enum
from typing import Callable, Dict, List, Optional

from .config import EmulatorConfig, Speed
from .cpu import alu
from .cpu.decoder import (
    OPCODE_TABLE, decode_opcode,
    reg_x, reg_y, nibble, byte, address,
)
from .cpu.regs import Registers, VF
from .errors import Chip8Error, IllegalOpcode, ProgramTooLarge, StackError
from .mem.memory import Memory, MAX_PROGRAM_SIZE, FONT_GLYPH_SIZE
from .periph.display import Framebuffer
from .periph.keypad import Keypad
from .periph.timer import Clock, CountdownTimer


logger = logging.getLogger(__name__)

TRACE_DEPTH = 1000


class StopReason(Enum):
    HALT = 'HALT'
    ILLEGAL = 'ILLEGAL'
    STACK = 'STACK'
    TIMEOUT = 'TIMEOUT'


class Event(Enum):
    DISPLAY_UPDATED = 'display_updated'
    SOUND_ON = 'sound_on'
    SOUND_OFF = 'sound_off'


class Chip8Emulator:
    """CHIP-8 virtual machine.

    Usage:
        emu = Chip8Emulator()
        emu.add_listener(Event.DISPLAY_UPDATED, redraw)
        emu.load_program(rom_bytes, Speed.NORMAL)
        while running:
            emu.tick()              # or emu.advance(seconds_since_last_call)
            emu.key_down(0xA)
    """

    def __init__(self, config: Optional[EmulatorConfig] = None,
                 rng: Optional[random.Random] = None):
        self.config = config or EmulatorConfig()

        # Core components
        self.regs = Registers()
        self.mem = Memory()
        self.display = Framebuffer()
        self.keypad = Keypad()
        self.delay_timer = CountdownTimer('DT')
        self.sound_timer = CountdownTimer('ST')
        self.clock = Clock(Speed.parse(self.config.cycles_per_second),
                           self.config.timer_hz)
        self.rng = rng or random.Random(self.config.seed)

        # Notification listeners: event → [callback(emulator)]
        self._listeners: Dict[Event, List[Callable]] = {event: [] for event in Event}

        self.stop_reason: Optional[StopReason] = None
        self.fault: Optional[Chip8Error] = None

        self.trace = self.config.trace
        self.trace_output = deque(maxlen=TRACE_DEPTH)

        # Instruction dispatch table: masked opcode → bound handler
        self._dispatch = self._build_dispatch()

        self.reset()

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def reset(self):
        """Return every component to power-on state and reinstall the font."""
        self.mem.clear()
        self.mem.load_font()
        self.regs.reset()
        self.display.clear()
        self.keypad.reset()
        self.delay_timer.reset()
        self.sound_timer.reset()
        self.clock.reset()
        self.stop_reason = None
        self.fault = None
        self.trace_output.clear()

    def load_program(self, program: bytes, speed=None):
        """Reset the machine and load a raw program image at $200.

        speed is a Speed member or an instructions-per-second count; when
        omitted the current rate is kept.

        Oversized images are truncated to the program region (warning
        logged), or rejected with ProgramTooLarge under strict_load. Both
        happen before anything is reset or executed.
        """
        data = bytes(program)
        if len(data) > MAX_PROGRAM_SIZE:
            if self.config.strict_load:
                raise ProgramTooLarge(len(data), MAX_PROGRAM_SIZE)
            logger.warning("Program is %d bytes, truncating to %d",
                           len(data), MAX_PROGRAM_SIZE)

        if speed is not None:
            self.clock = Clock(Speed.parse(speed), self.config.timer_hz)

        self.reset()
        loaded = self.mem.load_program(data)
        logger.info("Loaded %d-byte program at $200 (%d instructions/s)",
                    loaded, self.clock.cycles_per_second)

    # ══════════════════════════════════════════════
    # Host inputs
    # ══════════════════════════════════════════════

    def key_down(self, key: int):
        self.keypad.press(key)

    def key_up(self, key: int):
        self.keypad.release(key)

    # ══════════════════════════════════════════════
    # Notifications
    # ══════════════════════════════════════════════

    def add_listener(self, event: Event, callback: Callable):
        """Register callback(emulator) for an event. Called synchronously."""
        self._listeners[event].append(callback)

    def remove_listener(self, event: Event, callback: Optional[Callable] = None):
        """Remove a listener. If callback is None, removes all for that event."""
        if callback is None:
            self._listeners[event] = []
        else:
            self._listeners[event] = [
                cb for cb in self._listeners[event] if cb != callback
            ]

    def _emit(self, event: Event):
        for cb in list(self._listeners[event]):
            cb(self)

    # ══════════════════════════════════════════════
    # State
    # ══════════════════════════════════════════════

    @property
    def halted(self) -> bool:
        return self.stop_reason is StopReason.HALT

    @property
    def stopped(self) -> bool:
        return self.stop_reason is not None

    @property
    def sound_active(self) -> bool:
        return self.sound_timer.active

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def advance(self, elapsed: float) -> int:
        """Run the instructions due for `elapsed` seconds, then decay timers.

        Returns the number of instructions executed. A stopped engine
        (halted or faulted) does nothing and returns 0. IllegalOpcode and
        StackError propagate after being latched as the fault.
        """
        if self.stop_reason is not None:
            return 0

        executed = 0
        for _ in range(self.clock.cycles_due(elapsed)):
            self._execute_one()
            executed += 1
            if self.stop_reason is not None:
                break

        ticks = self.clock.timer_ticks(elapsed)
        self.delay_timer.decay(ticks)
        if self.sound_timer.decay(ticks):
            self._emit(Event.SOUND_OFF)

        return executed

    def tick(self, now: Optional[float] = None) -> int:
        """Timestamp-driven advance(). now defaults to time.monotonic().

        The first tick after a load counts as zero elapsed time.
        """
        if now is None:
            now = time.monotonic()
        return self.advance(self.clock.elapsed_since(now))

    def step(self) -> Optional[StopReason]:
        """Execute one instruction, ignoring the clock.

        Returns the StopReason if the engine is stopped afterwards, else None.
        """
        if self.stop_reason is None:
            self._execute_one()
        return self.stop_reason

    def run(self, max_steps: int) -> StopReason:
        """Step until stopped or max_steps instructions have run.

        Faults are reported through the return value (and self.fault)
        instead of being raised.
        """
        for _ in range(max_steps):
            try:
                reason = self.step()
            except Chip8Error:
                return self.stop_reason
            if reason is not None:
                return reason
        return StopReason.TIMEOUT

    def _execute_one(self):
        pc = self.regs.PC
        opcode = self.mem.read16(pc)
        try:
            ins = decode_opcode(opcode, pc)
            if self.trace:
                line = f"${pc:04X}: {opcode:04X}  {ins.format(opcode):18s} {self.regs.display()}"
                self.trace_output.append(line)
                logger.debug(line)
            self._dispatch[ins.key](opcode)
        except IllegalOpcode as e:
            self._set_fault(StopReason.ILLEGAL, e)
            raise
        except StackError as e:
            self._set_fault(StopReason.STACK, e)
            raise

    def _set_fault(self, reason: StopReason, error: Chip8Error):
        self.stop_reason = reason
        self.fault = error
        logger.error("Execution stopped (%s): %s", reason.value, error)

    def _next(self, skip: bool = False):
        self.regs.PC = (self.regs.PC + (4 if skip else 2)) & 0xFFFF

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(opcode)
    # Each handler owns its PC update; notifications go out after it.

    def _build_dispatch(self) -> dict:
        """Bind every opcode table entry to its handler on this instance."""
        return {ins.key: getattr(self, ins.handler) for ins in OPCODE_TABLE}

    # ── Display / flow ──

    def _op_cls(self, op: int):
        self.display.clear()
        self._next()

    def _op_ret(self, op: int):
        self.regs.PC = self.regs.pop()

    def _op_jp(self, op: int):
        target = address(op)
        if target == self.regs.PC:
            self.stop_reason = StopReason.HALT
            logger.info("Halted: self-jump at $%04X", target)
        self.regs.PC = target

    def _op_call(self, op: int):
        self.regs.push(self.regs.PC + 2)
        self.regs.PC = address(op)

    # ── Conditional skips ──

    def _op_se_byte(self, op: int):
        self._next(self.regs.V[reg_x(op)] == byte(op))

    def _op_sne_byte(self, op: int):
        self._next(self.regs.V[reg_x(op)] != byte(op))

    def _op_se_reg(self, op: int):
        V = self.regs.V
        self._next(V[reg_x(op)] == V[reg_y(op)])

    def _op_sne_reg(self, op: int):
        V = self.regs.V
        self._next(V[reg_x(op)] != V[reg_y(op)])

    # ── Register loads ──

    def _op_ld_byte(self, op: int):
        self.regs.V[reg_x(op)] = byte(op)
        self._next()

    def _op_add_byte(self, op: int):
        # No carry flag for 7XNN
        x = reg_x(op)
        self.regs.V[x] = (self.regs.V[x] + byte(op)) & 0xFF
        self._next()

    # ── Register-register ALU ──
    # VF is written before VX; both writes read the live register file.

    def _op_ld_reg(self, op: int):
        V = self.regs.V
        V[reg_x(op)] = V[reg_y(op)]
        self._next()

    def _op_or(self, op: int):
        V = self.regs.V
        V[reg_x(op)] |= V[reg_y(op)]
        self._next()

    def _op_and(self, op: int):
        V = self.regs.V
        V[reg_x(op)] &= V[reg_y(op)]
        self._next()

    def _op_xor(self, op: int):
        V = self.regs.V
        V[reg_x(op)] ^= V[reg_y(op)]
        self._next()

    def _op_add_reg(self, op: int):
        V = self.regs.V
        x = reg_x(op)
        result, carry = alu.add8(V[x], V[reg_y(op)])
        V[VF] = carry
        V[x] = result
        self._next()

    def _op_sub(self, op: int):
        V = self.regs.V
        x, y = reg_x(op), reg_y(op)
        V[VF] = alu.no_borrow(V[x], V[y])
        V[x] = alu.sub8(V[x], V[y])
        self._next()

    def _op_shr(self, op: int):
        # Shifts VY into VX; VF takes bit 0 of the old VX.
        V = self.regs.V
        x = reg_x(op)
        V[VF] = alu.lsb(V[x])
        V[x] = alu.shr8(V[reg_y(op)])
        self._next()

    def _op_subn(self, op: int):
        V = self.regs.V
        x, y = reg_x(op), reg_y(op)
        V[VF] = alu.no_borrow(V[y], V[x])
        V[x] = alu.sub8(V[y], V[x])
        self._next()

    def _op_shl(self, op: int):
        # Same VY-source quirk as SHR, and VF is bit 0 of VX here too.
        V = self.regs.V
        x = reg_x(op)
        V[VF] = alu.lsb(V[x])
        V[x] = alu.shl8(V[reg_y(op)])
        self._next()

    # ── Address register / jumps ──

    def _op_ld_i(self, op: int):
        self.regs.I = address(op)
        self._next()

    def _op_jp_v0(self, op: int):
        self.regs.PC = (self.regs.V[0] + address(op)) & 0xFFFF

    def _op_rnd(self, op: int):
        self.regs.V[reg_x(op)] = self.rng.randrange(256) & byte(op)
        self._next()

    def _op_drw(self, op: int):
        regs = self.regs
        V = regs.V
        x = V[reg_x(op)] % self.display.width
        y = V[reg_y(op)] % self.display.height
        rows = [self.mem.read8(regs.I + i) for i in range(nibble(op))]

        V[VF] = 1 if self.display.draw_sprite(x, y, rows) else 0
        self._next()
        self._emit(Event.DISPLAY_UPDATED)

    # ── Keypad ──
    # Programs address keys with the low nibble of VX.

    def _op_skp(self, op: int):
        self._next(self.keypad.is_pressed(self.regs.V[reg_x(op)] & 0xF))

    def _op_sknp(self, op: int):
        self._next(not self.keypad.is_pressed(self.regs.V[reg_x(op)] & 0xF))

    def _op_ld_vx_k(self, op: int):
        # PC stays put until a key is down, so this instruction repeats.
        key = self.keypad.first_pressed()
        if key is not None:
            self.regs.V[reg_x(op)] = key
            self._next()

    # ── Timers ──

    def _op_ld_vx_dt(self, op: int):
        self.regs.V[reg_x(op)] = self.delay_timer.value
        self._next()

    def _op_ld_dt(self, op: int):
        self.delay_timer.set(self.regs.V[reg_x(op)])
        self._next()

    def _op_ld_st(self, op: int):
        value = self.regs.V[reg_x(op)]
        self.sound_timer.set(value)
        self._next()
        if value > 0:
            self._emit(Event.SOUND_ON)

    # ── I register / memory ──

    def _op_add_i(self, op: int):
        self.regs.I = (self.regs.I + self.regs.V[reg_x(op)]) & 0xFFFF
        self._next()

    def _op_ld_f(self, op: int):
        self.regs.I = self.regs.V[reg_x(op)] * FONT_GLYPH_SIZE
        self._next()

    def _op_ld_b(self, op: int):
        base = self.regs.I
        for offset, digit in enumerate(alu.bcd(self.regs.V[reg_x(op)])):
            self.mem.write8(base + offset, digit)
        self._next()

    def _op_store(self, op: int):
        regs = self.regs
        for i in range(reg_x(op) + 1):
            self.mem.write8(regs.I + i, regs.V[i])
        self._next()

    def _op_load(self, op: int):
        regs = self.regs
        for i in range(reg_x(op) + 1):
            regs.V[i] = self.mem.read8(regs.I + i)
        self._next()
