#!/usr/bin/env python3
"""
chip8vm — CHIP-8 Virtual Machine CLI

Usage:
    chip8vm run <program.ch8> [--speed normal|fast|...|N] [--seconds 5]
                              [--fps 30] [--press KEY ...] [--seed N] [--trace]
    chip8vm disasm <program.ch8> [START]

`run` drives the emulator headlessly against a simulated clock, holding the
given keys down the whole time, then prints the framebuffer as text plus the
register file and why execution stopped.

`disasm` prints a tab-separated listing. START is the address (as loaded) to
begin decoding at; hex with optional 0x or $ prefix.

Examples:
    chip8vm run pong.ch8 --seconds 2
    chip8vm run maze.ch8 --speed ultra-fast --seed 7 --on '█' --off ' '
    chip8vm disasm pong.ch8 0x2A0
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .config import EmulatorConfig, Speed
from .emu import Chip8Emulator, Event, StopReason
from .errors import Chip8Error, InvalidStartAddress
from .log_setup import setup_logging
from .tools.disassembler import Chip8Disassembler


logger = logging.getLogger("chip8vm.cli")

DEFAULT_FPS = 30


def parse_int_arg(value: str) -> int:
    """Parse an address argument: hex with 0x or $ prefix, or bare hex."""
    value = value.strip()
    if value.lower().startswith("0x"):
        return int(value, 16)
    if value.startswith("$"):
        return int(value[1:], 16)
    return int(value, 16)


def parse_key_arg(value: str) -> int:
    try:
        key = int(value, 16)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid key {value!r} (expected 0-F)")
    if not 0 <= key <= 0xF:
        raise argparse.ArgumentTypeError(f"invalid key {value!r} (expected 0-F)")
    return key


def parse_speed_arg(value: str) -> int:
    try:
        return Speed.parse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chip8vm",
        description="CHIP-8 virtual machine and disassembler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--version', action='version',
                        version=f'chip8vm {__version__}')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Debug logging')
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Only log errors')
    parser.add_argument('--log-file', type=str,
                        help='Also write a full DEBUG log to this file')

    sub = parser.add_subparsers(dest='command', required=True)

    run = sub.add_parser('run', help='Run a program headlessly')
    run.add_argument('program', help='Raw CHIP-8 program image')
    run.add_argument('--speed', type=parse_speed_arg, default=Speed.NORMAL,
                     help='Speed preset (slow, moderate, normal, fast, ultra-fast) '
                          'or instructions per second (default: normal)')
    run.add_argument('--seconds', type=float, default=1.0,
                     help='Simulated run time in seconds (default: 1)')
    run.add_argument('--fps', type=int, default=DEFAULT_FPS,
                     help=f'Host frames per simulated second (default: {DEFAULT_FPS})')
    run.add_argument('--press', type=parse_key_arg, nargs='*', default=[],
                     metavar='KEY', help='Hex keys held down during the run')
    run.add_argument('--seed', type=int, help='Seed for the RND instruction')
    run.add_argument('--trace', action='store_true',
                     help='Log every executed instruction (DEBUG)')
    run.add_argument('--on', default='#', help='Character for lit pixels')
    run.add_argument('--off', default='.', help='Character for dark pixels')

    dis = sub.add_parser('disasm', help='Disassemble a program image')
    dis.add_argument('program', help='Raw CHIP-8 program image')
    dis.add_argument('start', nargs='?', type=parse_int_arg, default=0x200,
                     help='Start address in hex (default: 200)')

    return parser


def cmd_run(args) -> int:
    try:
        program = Path(args.program).read_bytes()
    except OSError as e:
        logger.error("Cannot read program: %s", e)
        return 1

    config = EmulatorConfig(cycles_per_second=args.speed, seed=args.seed,
                            trace=args.trace)
    emu = Chip8Emulator(config)

    counts = {event: 0 for event in Event}
    for event in Event:
        emu.add_listener(event, lambda _emu, event=event: counts.__setitem__(event, counts[event] + 1))

    emu.load_program(program)
    for key in args.press:
        emu.key_down(key)

    fps = max(1, args.fps)
    frames = int(args.seconds * fps)
    executed = 0
    try:
        for _ in range(frames):
            executed += emu.advance(1.0 / fps)
            if emu.stopped:
                break
    except Chip8Error as e:
        print(emu.display.render(args.on, args.off))
        print(emu.regs.display())
        print(f"Stopped: {emu.stop_reason.value} after {executed} instructions ({e})")
        return 1

    print(emu.display.render(args.on, args.off))
    print(emu.regs.display())
    print(f"DT={emu.delay_timer.value:02X} ST={emu.sound_timer.value:02X} "
          f"draws={counts[Event.DISPLAY_UPDATED]} "
          f"sound_on={counts[Event.SOUND_ON]} sound_off={counts[Event.SOUND_OFF]}")
    if emu.halted:
        print(f"Stopped: {StopReason.HALT.value} after {executed} instructions")
    else:
        print(f"Ran {executed} instructions in {args.seconds:g}s simulated")
    return 0


def cmd_disasm(args) -> int:
    try:
        program = Path(args.program).read_bytes()
    except OSError as e:
        logger.error("Cannot read program: %s", e)
        return 1

    try:
        lines = Chip8Disassembler().listing(program, args.start)
    except InvalidStartAddress as e:
        logger.error("%s", e)
        return 1

    for line in lines:
        print(line)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.quiet:
        level = logging.ERROR
    elif args.verbose or getattr(args, 'trace', False):
        level = logging.DEBUG
    else:
        level = logging.WARNING
    setup_logging(level, log_file=args.log_file)

    if args.command == 'run':
        return cmd_run(args)
    return cmd_disasm(args)


if __name__ == "__main__":
    sys.exit(main())
