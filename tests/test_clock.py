"""
Clock, countdown timers and the advance() batch loop.
"""

import pytest

from chip8vm import Chip8Emulator, EmulatorConfig, Event, Speed
from chip8vm.periph.timer import Clock, CountdownTimer


def _spin_loop() -> bytes:
    """$200 LD V0, 00; $202 JP 200. Never halts."""
    return bytes([0x60, 0x00, 0x12, 0x00])


class TestClock:

    def test_cycles_due(self):
        clock = Clock(840)
        assert clock.cycles_due(0.1) == 84
        assert clock.cycles_due(1.0) == 840
        assert clock.cycles_due(0.0) == 0
        assert clock.cycles_due(-1.0) == 0

    def test_cycles_due_floors(self):
        clock = Clock(150)
        assert clock.cycles_due(0.01) == 1

    def test_timer_ticks(self):
        clock = Clock(840)
        assert clock.timer_ticks(0.1) == 6
        assert clock.timer_ticks(0.01) == 0
        assert clock.timer_ticks(1.0) == 60

    def test_first_timestamp_is_zero_elapsed(self):
        clock = Clock(840)
        assert clock.elapsed_since(1000.0) == 0.0
        assert clock.elapsed_since(1000.5) == 0.5
        clock.reset()
        assert clock.elapsed_since(5000.0) == 0.0

    def test_backwards_time_counts_as_zero(self):
        clock = Clock(840)
        clock.elapsed_since(10.0)
        assert clock.elapsed_since(9.0) == 0.0

    def test_rejects_non_positive_rate(self):
        with pytest.raises(ValueError):
            Clock(0)

    def test_nan_elapsed_is_no_time(self):
        clock = Clock(840)
        assert clock.cycles_due(float('nan')) == 0
        assert clock.timer_ticks(float('nan')) == 0


class TestCountdownTimer:

    def test_decay(self):
        t = CountdownTimer('DT')
        t.set(10)
        assert t.decay(6) is False
        assert t.value == 4

    def test_decay_clamps_and_reports_once(self):
        t = CountdownTimer('ST')
        t.set(2)
        assert t.decay(6) is True
        assert t.value == 0
        assert t.decay(6) is False

    def test_set_masks_to_byte(self):
        t = CountdownTimer('DT')
        t.set(0x1FF)
        assert t.value == 0xFF


class TestSpeed:

    def test_presets(self):
        assert Speed.parse('slow') == 150
        assert Speed.parse('Normal') == 840
        assert Speed.parse('ultra-fast') == 3000
        assert Speed.parse(Speed.MODERATE) == 500

    def test_numbers(self):
        assert Speed.parse('1000') == 1000
        assert Speed.parse(1234) == 1234

    @pytest.mark.parametrize("bad", ['warp', '0', '-5', 0])
    def test_invalid(self, bad):
        with pytest.raises(ValueError):
            Speed.parse(bad)


class TestAdvance:

    def test_nan_elapsed_executes_nothing(self):
        emu = Chip8Emulator()
        emu.load_program(_spin_loop())
        emu.delay_timer.set(10)
        assert emu.advance(float('nan')) == 0
        assert emu.regs.PC == 0x200
        assert emu.delay_timer.value == 10

    def test_zero_elapsed_executes_nothing(self):
        emu = Chip8Emulator()
        emu.load_program(_spin_loop())
        emu.delay_timer.set(10)
        assert emu.advance(0) == 0
        assert emu.regs.PC == 0x200
        assert emu.delay_timer.value == 10

    def test_batch_size_follows_rate(self):
        emu = Chip8Emulator()
        emu.load_program(_spin_loop(), Speed.NORMAL)
        assert emu.advance(0.1) == 84
        emu.load_program(_spin_loop(), Speed.ULTRA_FAST)
        assert emu.advance(0.1) == 300

    def test_delay_timer_decay(self):
        emu = Chip8Emulator()
        emu.load_program(_spin_loop())
        emu.delay_timer.set(10)
        emu.advance(0.1)
        assert emu.delay_timer.value == 4

    def test_delay_timer_never_negative(self):
        emu = Chip8Emulator()
        emu.load_program(_spin_loop())
        emu.delay_timer.set(2)
        emu.advance(0.1)
        assert emu.delay_timer.value == 0

    def test_sound_off_fires_once(self):
        """$200 LD V0,5; $202 LD ST,V0; $204 LD V0,0; $206 JP 204"""
        events = []
        emu = Chip8Emulator()
        emu.load_program(bytes([0x60, 0x05, 0xF0, 0x18, 0x60, 0x00, 0x12, 0x04]))
        emu.add_listener(Event.SOUND_ON, lambda e: events.append('on'))
        emu.add_listener(Event.SOUND_OFF, lambda e: events.append('off'))
        emu.step()
        emu.step()
        assert emu.sound_active
        emu.advance(0.05)     # 3 ticks: ST 5 → 2
        assert emu.sound_timer.value == 2
        emu.advance(0.1)      # 6 ticks: ST 2 → 0
        emu.advance(0.1)
        assert events == ['on', 'off']
        assert not emu.sound_active

    def test_instructions_see_mid_batch_writes(self):
        """FX55 rewrites the next instruction; the batch executes the new word.

        $200 LD V0, 61   $202 LD V1, 77   $204 LD I, 208
        $206 LD [I], V1  $208 LD V5, 00  (overwritten with 61 77 → LD V1, 77)
        $20A JP 20A
        """
        program = bytes([0x60, 0x61, 0x61, 0x77, 0xA2, 0x08, 0xF1, 0x55,
                         0x65, 0x00, 0x12, 0x0A])
        emu = Chip8Emulator()
        emu.load_program(program)
        emu.advance(1.0)
        assert emu.mem.read16(0x208) == 0x6177
        assert emu.regs.V[5] == 0
        assert emu.halted

    def test_tick_uses_timestamps(self):
        emu = Chip8Emulator()
        emu.load_program(_spin_loop())
        assert emu.tick(10.0) == 0
        assert emu.tick(10.5) == 420

    def test_reload_forgets_last_timestamp(self):
        emu = Chip8Emulator()
        emu.load_program(_spin_loop())
        emu.tick(10.0)
        emu.load_program(_spin_loop())
        assert emu.tick(500.0) == 0

    def test_custom_timer_rate(self):
        emu = Chip8Emulator(EmulatorConfig(timer_hz=30))
        emu.load_program(_spin_loop())
        emu.delay_timer.set(10)
        emu.advance(0.1)
        assert emu.delay_timer.value == 7
