"""
Apple-1 Virtual Emulator — Frame Pacer

Drives the CPU at roughly its native speed from a fixed-rate host tick:
each tick runs `steps_per_tick` instructions, then sleeps away whatever
is left of the tick period. While paused, ticks do nothing.

Clock and sleep are injectable; tests pass a ManualClock and a sleep
that just records the requested durations.
"""

import logging
import time

from .config import STEPS_PER_TICK, TICK_HZ
from .periph.clock import MonotonicClock

log = logging.getLogger(__name__)


class Pacer:
    """Fixed-rate step loop around an Apple1Emulator."""

    def __init__(self, emulator, steps_per_tick: int = STEPS_PER_TICK,
                 tick_hz: int = TICK_HZ, clock=None, sleep=None):
        if tick_hz <= 0:
            raise ValueError(f"tick_hz must be positive: {tick_hz}")
        self.emulator = emulator
        self.steps_per_tick = steps_per_tick
        self.tick_ns = 1_000_000_000 // tick_hz
        self.clock = clock if clock is not None else MonotonicClock()
        self.sleep = sleep if sleep is not None else time.sleep
        self.paused = False
        self.ticks = 0
        self.overruns = 0

    def pause(self):
        self.paused = True
        log.info("Emulation paused at PC=$%04X", self.emulator.regs.PC)

    def resume(self):
        self.paused = False
        log.info("Emulation resumed")

    def run_tick(self) -> int:
        """Run one tick worth of instructions. Returns steps executed."""
        if self.paused:
            return 0
        step = self.emulator.step
        for _ in range(self.steps_per_tick):
            step()
        self.ticks += 1
        return self.steps_per_tick

    def run(self, ticks: int):
        """Run `ticks` ticks, sleeping between them to hold the tick rate."""
        for _ in range(ticks):
            started = self.clock.now()
            self.run_tick()
            elapsed = self.clock.now() - started
            remaining = self.tick_ns - elapsed
            if remaining > 0:
                self.sleep(remaining / 1e9)
            else:
                self.overruns += 1
                log.debug("Tick overran by %d ns", -remaining)
