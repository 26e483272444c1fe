"""
Apple-1 Virtual Emulator — Keyboard / Display PIA

The Apple-1 talks to its keyboard and terminal section through a 6820
PIA polled by the monitor. Only the behaviour the ROMs rely on is
modelled, at register level rather than pin level.

Register map:
  $D010  KBD    — keyboard data (bit 7 set while a key is latched)
  $D011  KBDCR  — keyboard control (bit 7 = key available)
  $D012  DSP    — display data (write = output char, read = busy bit)
  $D013  DSPCR  — display control (read = busy bit)

Display busy quirk: every DSP write schedules the next "ready" instant
`display_delay_ns` into the future, unless a key is waiting, in which
case the display is ready immediately. BASIC's output loop polls the
busy bit, so this throttles it without a real video timing model.
"""

import logging
from typing import Optional

from .clock import MonotonicClock
from .display import DisplayPort

log = logging.getLogger(__name__)

CR = 0x0D
UNDERSCORE = 0x5F

# 17 Windows file-time ticks (100 ns each)
DEFAULT_DISPLAY_DELAY_NS = 1700


class PIAPeripheral:
    """Keyboard latch plus display output/busy emulation.

    Usage:
        pia = PIAPeripheral(screen)
        pia.register(mem)
        pia.latch_key('A')     # host text-input event
    """

    KBD   = 0xD010
    KBDCR = 0xD011
    DSP   = 0xD012
    DSPCR = 0xD013

    def __init__(self, display: DisplayPort, clock=None,
                 display_delay_ns: int = DEFAULT_DISPLAY_DELAY_NS):
        self.display = display
        self.clock = clock if clock is not None else MonotonicClock()
        self.display_delay_ns = display_delay_ns
        self.keyboard_latch: Optional[str] = None
        # Ready from power-on: any clock reading is later than this
        self.next_ready = -1

    def register(self, memory):
        """Register I/O handlers for all four PIA registers."""
        memory.register_io_handler(self.KBD, self._read_kbd, self._ignore_write)
        memory.register_io_handler(self.KBDCR, self._read_kbdcr, self._ignore_write)
        memory.register_io_handler(self.DSP, self._read_display_status, self._write_dsp)
        memory.register_io_handler(self.DSPCR, self._read_display_status, self._ignore_write)

    # --- Keyboard ---

    def _read_kbd(self, addr: int) -> int:
        if self.keyboard_latch is None:
            return 0x00
        ch = self.keyboard_latch
        self.keyboard_latch = None
        return (ord(ch) | 0x80) & 0xFF

    def _read_kbdcr(self, addr: int) -> int:
        return 0x80 if self.keyboard_latch is not None else 0x00

    # --- Display ---

    def _write_dsp(self, addr: int, value: int):
        ch = value & 0x7F
        display = self.display

        if ch == CR:
            display.advance_line()
        if ch == UNDERSCORE:
            display.erase_previous_column()
        else:
            if 32 <= ch <= 95:
                display.emit_glyph(chr(ch))
            if display.cursor_column >= display.columns:
                display.advance_line()

        delay = 0 if self.keyboard_latch is not None else self.display_delay_ns
        self.next_ready = self.clock.now() + delay

    def _read_display_status(self, addr: int) -> int:
        return 0x00 if self.clock.now() > self.next_ready else 0x80

    def _ignore_write(self, addr: int, value: int):
        # Wozmon programs KBDCR/DSPCR at startup; nothing to model
        log.debug("PIA write $%02X to $%04X ignored", value, addr)

    # --- External API ---

    def latch_key(self, ch: str):
        """Latch one character from the host text-input path."""
        if len(ch) != 1:
            raise ValueError(f"expected a single character, got {ch!r}")
        self.keyboard_latch = ch

    @property
    def key_waiting(self) -> bool:
        return self.keyboard_latch is not None
