"""
Apple-1 Virtual Emulator — Time Sources

The display busy/ready quirk is derived from wall-clock time. The PIA
asks an injected clock for "now" so tests can drive exact ready/busy
transitions with ManualClock instead of sleeping.

All values are integer nanoseconds from an arbitrary monotonic origin.
"""

import time


class MonotonicClock:
    """Real time source backed by time.monotonic_ns()."""

    def now(self) -> int:
        return time.monotonic_ns()


class ManualClock:
    """Deterministic time source for tests and headless runs.

    Each now() call returns the current time and then advances it by
    `step` ns. step=0 gives a frozen clock that only moves on advance().
    """

    def __init__(self, start: int = 0, step: int = 0):
        self.time = start
        self.step = step

    def now(self) -> int:
        current = self.time
        self.time += self.step
        return current

    def advance(self, ns: int):
        self.time += ns
