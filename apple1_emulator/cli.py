"""
apple1 — headless Apple-1 runner

Usage:
    python -m apple1_emulator [--ram 16384] [--rom wozmon.rom] [--basic basic.rom]
                              [--load FILE ADDR] [--type TEXT] [--ticks N]
                              [--save FILE START END] [--trace] [--realtime]

Boots the machine, types TEXT into the keyboard latch one key at a time
(a newline or '\\r' is the Return key), runs for N ticks and prints the
screen. Addresses are hex.

Examples:
    python -m apple1_emulator --type "FF00.FF0F\\n"
    python -m apple1_emulator --load prog.bin 0300 --type "300R\\n" --ticks 120
    python -m apple1_emulator --basic basic.rom --type "E000R\\n"
"""

import argparse
import logging
import sys

from . import __version__
from .config import DEFAULT_RAM_SIZE, MachineConfig
from .emu import Apple1Emulator
from .log_setup import setup_logging
from .mem.memory import BASIC_SIZE, MAX_RAM_SIZE, MemoryConfigError, TransferError
from .mem.transfer import parse_hex_address, load_file, save_file
from .pacer import Pacer
from .roms import WOZMON, load_rom_file

log = logging.getLogger(__name__)

# Ticks to wait for the monitor to pick up one key before giving up
KEY_TIMEOUT_TICKS = 60


def banner(config: MachineConfig, debug: bool = False) -> str:
    """Power-on text shown above the monitor prompt."""
    text = (f"Apple-1 emulator {__version__}\n"
            f"{config.ram_kb}K RAM\n")
    if debug:
        text += "Running in debug mode\n"
    return text


def _type_text(pacer: Pacer, text: str):
    emu = pacer.emulator
    for ch in text:
        if ch in '\r\n':
            emu.key_pressed('return')
        else:
            emu.text_input(ch)
        for _ in range(KEY_TIMEOUT_TICKS):
            if not emu.pia.key_waiting:
                break
            pacer.run(1)
        else:
            log.warning("Key %r was never read by the running program", ch)
    # Let the echo of the last key reach the screen
    pacer.run(1)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="apple1",
        description="Headless Apple-1 emulator (6502 + Woz Monitor)",
    )
    parser.add_argument("--ram", "-r", type=int, default=DEFAULT_RAM_SIZE,
                        help=f"RAM size in bytes (default: {DEFAULT_RAM_SIZE}, max {MAX_RAM_SIZE})")
    parser.add_argument("--rom", default=None,
                        help="Monitor ROM image (default: built-in Woz Monitor)")
    parser.add_argument("--basic", default=None,
                        help="Integer BASIC image mapped at $E000")
    parser.add_argument("--reset", default="FF00",
                        help="Reset vector address (hex, default FF00)")
    parser.add_argument("--load", nargs=2, action="append", default=[],
                        metavar=("FILE", "ADDR"),
                        help="Load a raw binary into RAM before running (repeatable)")
    parser.add_argument("--type", dest="text", default="",
                        help="Keys to type after boot; \\n is Return")
    parser.add_argument("--ticks", type=int, default=10,
                        help="Ticks to run after typing (default: 10)")
    parser.add_argument("--save", nargs=3, default=None,
                        metavar=("FILE", "START", "END"),
                        help="Save RAM START..END to FILE when done")
    parser.add_argument("--realtime", action="store_true",
                        help="Pace ticks at 60 Hz instead of running flat out")
    parser.add_argument("--trace", action="store_true",
                        help="Print an instruction trace to stderr")
    parser.add_argument("--log-dir", default=None,
                        help="Also write a debug log file into this directory")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Show INFO log messages on the console")
    parser.add_argument("--version", action="version",
                        version=f"apple1 {__version__}")

    args = parser.parse_args(argv)

    setup_logging(console_level=logging.INFO if args.verbose else logging.WARNING,
                  log_dir=args.log_dir)

    try:
        config = MachineConfig(
            ram_size=args.ram,
            reset_address=parse_hex_address(args.reset),
            trace=args.trace,
        ).validate()
        rom = load_rom_file(args.rom, 256) if args.rom else WOZMON
        basic = load_rom_file(args.basic, BASIC_SIZE) if args.basic else b''

        emu = Apple1Emulator.from_config(config, rom=rom, basic=basic)
        for path, addr in args.load:
            load_file(emu.mem, path, parse_hex_address(addr))

        sleep = None if args.realtime else (lambda seconds: None)
        pacer = Pacer(emu, config.steps_per_tick, config.tick_hz, sleep=sleep)

        emu.display.write(banner(config, debug=args.trace or args.verbose))
        pacer.run(1)
        _type_text(pacer, args.text.replace('\\n', '\n'))
        pacer.run(args.ticks)

        if args.save:
            path, start, end = args.save
            save_file(emu.mem, path, parse_hex_address(start), parse_hex_address(end))

    except MemoryConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except TransferError as e:
        print(f"Transfer error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(emu.display.text())
    if args.trace:
        print(emu.get_trace(), file=sys.stderr)
    if args.verbose:
        print(f"[apple1] {emu.status_line()} cycles={emu.regs.cycles} "
              f"illegal={emu.illegal_opcodes} rejected_writes={emu.mem.rejected_writes}",
              file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
