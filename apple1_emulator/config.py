"""
Apple-1 Virtual Emulator — Machine Configuration
================================================

Defaults match a stock Apple-1 with the 16 KB RAM expansion, driven by a
60 Hz host frame loop. Override individual fields through MachineConfig.
"""

from dataclasses import dataclass

from .mem.memory import MAX_RAM_SIZE, MemoryConfigError, DEFAULT_RESET_ADDRESS
from .periph.pia import DEFAULT_DISPLAY_DELAY_NS
from .periph.display import DEFAULT_COLUMNS, DEFAULT_ROWS


# =============================================================================
#  MEMORY
# =============================================================================
DEFAULT_RAM_SIZE = 16384      # 16 KB


# =============================================================================
#  CLOCK / PACING
# =============================================================================
TICK_HZ = 60                  # host frame rate
STEPS_PER_TICK = 17050        # ~1 MHz / 60 Hz, one step() per count


@dataclass
class MachineConfig:
    """Everything needed to build an Apple1Emulator."""

    ram_size: int = DEFAULT_RAM_SIZE
    reset_address: int = DEFAULT_RESET_ADDRESS
    columns: int = DEFAULT_COLUMNS
    rows: int = DEFAULT_ROWS
    steps_per_tick: int = STEPS_PER_TICK
    tick_hz: int = TICK_HZ
    display_delay_ns: int = DEFAULT_DISPLAY_DELAY_NS
    trace: bool = False

    def validate(self):
        """Raise MemoryConfigError if any field is out of range."""
        if not 0 <= self.ram_size <= MAX_RAM_SIZE:
            raise MemoryConfigError(
                f"Requested RAM exceeds max RAM allowed: {self.ram_size} > {MAX_RAM_SIZE}")
        if not 0 <= self.reset_address <= 0xFFFF:
            raise MemoryConfigError(f"Reset address out of range: {self.reset_address:#x}")
        if self.columns < 1 or self.rows < 1:
            raise MemoryConfigError(f"Bad screen size: {self.columns}x{self.rows}")
        if self.steps_per_tick < 0 or self.tick_hz <= 0:
            raise MemoryConfigError(
                f"Bad pacing: {self.steps_per_tick} steps at {self.tick_hz} Hz")
        if self.display_delay_ns < 0:
            raise MemoryConfigError(f"Negative display delay: {self.display_delay_ns}")
        return self

    @property
    def ram_kb(self) -> int:
        return self.ram_size // 1024
