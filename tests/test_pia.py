"""
Apple-1 Virtual Emulator — Keyboard / Display PIA Tests

Display timing is driven by ManualClock so the busy → ready transition
is exact. The screen is a real TextScreen; a recording display is used
where the call sequence itself matters.
"""

import pytest

from apple1_emulator.mem.memory import AddressSpace
from apple1_emulator.periph.clock import ManualClock
from apple1_emulator.periph.display import DisplayPort, TextScreen
from apple1_emulator.periph.pia import PIAPeripheral

KBD, KBDCR, DSP, DSPCR = 0xD010, 0xD011, 0xD012, 0xD013


class RecordingDisplay(DisplayPort):
    """Logs every DisplayPort call; tracks the column like a real screen."""

    def __init__(self, columns=40):
        self.calls = []
        self._x = 0
        self._columns = columns

    @property
    def cursor_column(self):
        return self._x

    @property
    def columns(self):
        return self._columns

    def emit_glyph(self, ch):
        self.calls.append(('glyph', ch))
        self._x += 1

    def advance_line(self):
        self.calls.append(('line',))
        self._x = 0

    def erase_previous_column(self):
        self.calls.append(('erase',))
        if self._x > 1:
            self._x -= 1


def _machine(display=None, clock=None):
    display = display if display is not None else TextScreen()
    clock = clock if clock is not None else ManualClock()
    mem = AddressSpace(16384)
    pia = PIAPeripheral(display, clock)
    pia.register(mem)
    return mem, pia, display, clock


def _type_out(mem, text):
    for ch in text:
        mem.write(DSP, ord(ch) | 0x80)


# ─── Keyboard ─────────────────────

class TestKeyboard:
    def test_latched_key_read_once(self):
        """Latch 'A' → KBDCR=$80, KBD=$C1, then both read $00"""
        mem, pia, _, _ = _machine()
        pia.latch_key('A')
        assert mem.read(KBDCR) == 0x80
        assert mem.read(KBD) == 0xC1
        assert mem.read(KBD) == 0x00
        assert mem.read(KBDCR) == 0x00

    def test_no_key(self):
        mem, _, _, _ = _machine()
        assert mem.read(KBDCR) == 0x00
        assert mem.read(KBD) == 0x00

    def test_later_key_overwrites(self):
        mem, pia, _, _ = _machine()
        pia.latch_key('A')
        pia.latch_key('B')
        assert mem.read(KBD) == 0xC2

    def test_return_key_value(self):
        mem, pia, _, _ = _machine()
        pia.latch_key('\r')
        assert mem.read(KBD) == 0x8D

    def test_latch_rejects_strings(self):
        _, pia, _, _ = _machine()
        with pytest.raises(ValueError):
            pia.latch_key('AB')

    def test_control_register_writes_ignored(self):
        mem, pia, _, _ = _machine()
        pia.latch_key('Z')
        mem.write(KBDCR, 0xA7)
        mem.write(KBD, 0x00)
        assert pia.key_waiting
        assert mem.rejected_writes == 0


# ─── Display output ─────────────────────

class TestDisplayOutput:
    def test_glyph_emitted(self):
        mem, _, screen, _ = _machine()
        _type_out(mem, 'HI')
        assert screen.line(0) == 'HI'
        assert screen.cursor_x == 2

    def test_carriage_return_at_column_5(self):
        mem, _, screen, _ = _machine()
        _type_out(mem, 'HELLO')
        mem.write(DSP, 0x8D)
        assert screen.cursor_x == 0
        assert screen.cursor_y == 1
        assert screen.line(0) == 'HELLO'

    def test_underscore_erases(self):
        mem, _, screen, _ = _machine()
        _type_out(mem, 'AB')
        mem.write(DSP, 0xDF)
        assert screen.cursor_x == 1
        assert screen.line(0) == 'A'

    def test_underscore_never_emits(self):
        display = RecordingDisplay()
        mem, _, _, _ = _machine(display)
        mem.write(DSP, 0xDF)
        assert display.calls == [('erase',)]

    def test_lowercase_not_drawn(self):
        display = RecordingDisplay()
        mem, _, _, _ = _machine(display)
        mem.write(DSP, ord('a'))
        mem.write(DSP, 0x7F)
        assert display.calls == []

    def test_carriage_return_single_line_advance(self):
        display = RecordingDisplay()
        mem, _, _, _ = _machine(display)
        _type_out(mem, 'X')
        mem.write(DSP, 0x8D)
        assert display.calls == [('glyph', 'X'), ('line',)]

    def test_wrap_at_40_columns(self):
        mem, _, screen, _ = _machine()
        _type_out(mem, 'A' * 40)
        assert screen.cursor_x == 0
        assert screen.cursor_y == 1
        assert screen.line(0) == 'A' * 40

    def test_scroll_on_last_row(self):
        mem, _, screen, _ = _machine(TextScreen(columns=40, rows=2))
        _type_out(mem, 'ONE\rTWO\rTHREE')
        assert screen.lines() == ['TWO', 'THREE']


# ─── Display busy / ready ─────────────────────

class TestDisplayStatus:
    def test_ready_at_power_on(self):
        mem, _, _, _ = _machine()
        assert mem.read(DSP) == 0x00

    def test_busy_then_ready(self):
        mem, _, _, clock = _machine(clock=ManualClock(start=1000))
        mem.write(DSP, 0xC1)
        assert mem.read(DSP) == 0x80
        clock.advance(1700)
        assert mem.read(DSP) == 0x80
        clock.advance(1)
        assert mem.read(DSP) == 0x00

    def test_control_register_mirrors_status(self):
        mem, _, _, clock = _machine()
        mem.write(DSP, 0xC1)
        assert mem.read(DSPCR) == 0x80
        clock.advance(2000)
        assert mem.read(DSPCR) == 0x00

    def test_waiting_key_skips_delay(self):
        mem, pia, _, clock = _machine()
        pia.latch_key('A')
        mem.write(DSP, 0xC1)
        clock.advance(1)
        assert mem.read(DSP) == 0x00

    def test_custom_delay(self):
        display = TextScreen()
        clock = ManualClock()
        mem = AddressSpace(16384)
        PIAPeripheral(display, clock, display_delay_ns=50).register(mem)
        mem.write(DSP, 0xC1)
        clock.advance(51)
        assert mem.read(DSP) == 0x00
