"""
Apple-1 Virtual Emulator
========================
A software Apple-1: MOS 6502 CPU, RAM, Woz Monitor / Integer BASIC ROM
images and the keyboard/display PIA, driven one instruction at a time.

Architecture:
    ┌──────────┐    ┌──────────────┐    ┌─────────────┐    ┌─────────────┐
    │ Pacer    │───>│ Apple1Emu    │───>│ AddressSpace│───>│ PIA         │
    │ (60 Hz)  │    │ (6502 step)  │    │ (RAM/ROM)   │    │ (kbd/video) │
    └──────────┘    └──────────────┘    └─────────────┘    └─────────────┘

    - cpu/:       registers, opcode table, ALU helpers
    - mem/:       address decoding, RAM file transfer
    - periph/:    PIA, display port, time sources
    - emu.py:     instruction execution, breakpoints, trace, host input
    - pacer.py:   fixed-rate host loop
"""

__version__ = "0.1.0"

from .config import MachineConfig
from .emu import Apple1Emulator, StopReason
from .mem.memory import AddressSpace, MemoryConfigError, TransferError
from .periph.clock import ManualClock, MonotonicClock
from .periph.display import DisplayPort, TextScreen
from .pacer import Pacer
from .roms import WOZMON, load_rom_file
