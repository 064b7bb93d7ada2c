"""
Command-line front end: headless run and disassembly.
"""

import pytest

from chip8vm.cli import main, parse_int_arg


# $200 LD V0,00  $202 LD V1,00  $204 LD I,000  $206 DRW V0,V1,5  $208 JP 208
DRAW_ZERO = bytes([0x60, 0x00, 0x61, 0x00, 0xA0, 0x00, 0xD0, 0x15, 0x12, 0x08])


@pytest.fixture
def rom(tmp_path):
    def write(data: bytes, name: str = "prog.ch8"):
        path = tmp_path / name
        path.write_bytes(data)
        return str(path)
    return write


class TestRun:

    def test_halting_program(self, rom, capsys):
        assert main(["run", rom(DRAW_ZERO), "--seconds", "1"]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out[0].startswith("####....")
        assert out[1].startswith("#..#....")
        assert out[4].startswith("####....")
        assert "draws=1" in out[33]
        assert out[-1] == "Stopped: HALT after 5 instructions"

    def test_custom_pixels(self, rom, capsys):
        main(["run", rom(DRAW_ZERO), "--on", "X", "--off", " "])
        out = capsys.readouterr().out.splitlines()
        assert out[0].rstrip() == "XXXX"

    def test_illegal_opcode(self, rom, capsys):
        assert main(["-q", "run", rom(bytes([0xFF, 0xFF]))]) == 1
        out = capsys.readouterr().out
        assert "Stopped: ILLEGAL after 0 instructions" in out
        assert "$FFFF" in out

    def test_timeout(self, rom, capsys):
        # $200 LD V0,00  $202 JP 200
        assert main(["run", rom(bytes([0x60, 0x00, 0x12, 0x00])),
                     "--speed", "slow", "--seconds", "1", "--fps", "10"]) == 0
        out = capsys.readouterr().out
        assert "Ran 150 instructions in 1s simulated" in out

    def test_held_key(self, rom, capsys):
        # $200 LD V2,K  $202 JP 202
        assert main(["run", rom(bytes([0xF2, 0x0A, 0x12, 0x02])), "--press", "b"]) == 0
        out = capsys.readouterr().out
        assert "V2=0B" in out
        assert "Stopped: HALT" in out

    def test_missing_file(self, tmp_path, capsys):
        assert main(["-q", "run", str(tmp_path / "nope.ch8")]) == 1

    def test_bad_speed(self, rom):
        with pytest.raises(SystemExit):
            main(["run", rom(DRAW_ZERO), "--speed", "warp"])


class TestDisasm:

    def test_listing(self, rom, capsys):
        assert main(["disasm", rom(DRAW_ZERO)]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out[0] == "Address\tOpcode\tInstruction"
        assert out[4] == "0206\tD015\tDRW V0, V1, 5"
        assert out[5] == "0208\t1208\tJP 0208"

    def test_start_address(self, rom, capsys):
        assert main(["disasm", rom(DRAW_ZERO), "0x206"]) == 0
        out = capsys.readouterr().out.splitlines()
        assert out[1] == "0206\tD015\tDRW V0, V1, 5"
        assert len(out) == 3

    def test_invalid_start(self, rom, capsys):
        assert main(["-q", "disasm", rom(DRAW_ZERO), "1FF"]) == 1
        assert capsys.readouterr().out == ""


class TestArgs:

    @pytest.mark.parametrize("text,value", [("0x2A0", 0x2A0), ("$2A0", 0x2A0), ("2a0", 0x2A0)])
    def test_parse_int_arg(self, text, value):
        assert parse_int_arg(text) == value
