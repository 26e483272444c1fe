"""
Apple-1 Virtual Emulator — Address Space with Region Decode

Memory map (decode order, first match wins):
  $0000–RAM-1  RAM (ram_size bytes, at most $D00F)
  $D010–$D013  PIA registers — routed to the registered I/O handlers
  $E000–$EFFF  Integer BASIC ROM (4096 bytes), read-only
  $FF00–$FFFB  Monitor ROM (252 bytes), read-only
  $FFFC–$FFFD  Reset vector, synthesized from reset_address
  elsewhere    Unmapped: reads return $00, writes are rejected

Rejected writes never raise. They are logged and counted so a runaway
program cannot take the emulator down.
"""

import logging
from typing import Callable, Dict, Optional

log = logging.getLogger(__name__)

MAX_RAM_SIZE = 0xD00F

IO_START = 0xD010
IO_END = 0xD013

BASIC_START = 0xE000
BASIC_END = 0xEFFF
BASIC_SIZE = BASIC_END - BASIC_START + 1

ROM_START = 0xFF00
ROM_END = 0xFFFB
ROM_SIZE = ROM_END - ROM_START + 1

RESET_VECTOR = 0xFFFC
DEFAULT_RESET_ADDRESS = 0xFF00


class MemoryConfigError(Exception):
    """Raised when a machine cannot be built from the requested layout."""
    pass


class TransferError(Exception):
    """Raised when a bulk RAM load/save is rejected. RAM is left untouched."""
    pass


def _fit_image(name: str, data: bytes, size: int, truncate: bool) -> bytes:
    data = bytes(data)
    if len(data) > size:
        if not truncate:
            raise MemoryConfigError(
                f"{name} image is {len(data)} bytes, region holds {size}")
        data = data[:size]
    return data + bytes(size - len(data))


class AddressSpace:
    """64K address space for the Apple-1.

    RAM is a bytearray sized at construction. The two ROM images are
    immutable bytes; a primary ROM longer than its 252-byte region (the
    usual 256-byte monitor dump, which carries its own vectors) is
    truncated, since the vectors are synthesized here instead.

    I/O window reads/writes are routed to handler callbacks registered
    by the PIA via register_io_handler().
    """

    def __init__(self, ram_size: int, rom: bytes = b'', basic: bytes = b'',
                 reset_address: int = DEFAULT_RESET_ADDRESS):
        if ram_size > MAX_RAM_SIZE:
            raise MemoryConfigError(
                f"Requested RAM exceeds max RAM allowed: {ram_size} > {MAX_RAM_SIZE}")
        if ram_size < 0:
            raise MemoryConfigError(f"RAM size must not be negative: {ram_size}")

        self.ram = bytearray(ram_size)
        self.rom = _fit_image('ROM', rom, ROM_SIZE, truncate=True)
        self.basic = _fit_image('BASIC', basic, BASIC_SIZE, truncate=False)
        self.reset_address = reset_address & 0xFFFF

        # I/O register handlers: addr → read_fn(addr) -> int / write_fn(addr, value)
        self._io_read_handlers: Dict[int, Callable] = {}
        self._io_write_handlers: Dict[int, Callable] = {}

        self.rejected_writes = 0

    @property
    def ram_size(self) -> int:
        return len(self.ram)

    # --- Core read/write ---

    def read(self, addr: int) -> int:
        """Read 8-bit value from address."""
        addr &= 0xFFFF

        if addr < len(self.ram):
            return self.ram[addr]
        if IO_START <= addr <= IO_END:
            handler = self._io_read_handlers.get(addr)
            return handler(addr) & 0xFF if handler else 0x00
        if BASIC_START <= addr <= BASIC_END:
            return self.basic[addr - BASIC_START]
        if ROM_START <= addr <= ROM_END:
            return self.rom[addr - ROM_START]
        if addr == RESET_VECTOR:
            return self.reset_address & 0xFF
        if addr == RESET_VECTOR + 1:
            return (self.reset_address >> 8) & 0xFF
        return 0x00

    def write(self, addr: int, value: int):
        """Write 8-bit value to address.

        Only RAM and the PIA accept writes. Anything else (ROM, vectors,
        unmapped space) is logged and dropped.
        """
        addr &= 0xFFFF
        value &= 0xFF

        if addr < len(self.ram):
            self.ram[addr] = value
            return
        if IO_START <= addr <= IO_END:
            handler = self._io_write_handlers.get(addr)
            if handler:
                handler(addr, value)
            return

        self.rejected_writes += 1
        log.error("Cannot write at $%04X", addr)

    def read16(self, addr: int) -> int:
        """Read 16-bit value (little-endian, 6502 native byte order)."""
        lo = self.read(addr)
        hi = self.read((addr + 1) & 0xFFFF)
        return (hi << 8) | lo

    # --- I/O handler registration ---

    def register_io_handler(self, addr: int,
                            read_fn: Optional[Callable] = None,
                            write_fn: Optional[Callable] = None):
        """Register read/write handlers for an I/O register address.

        Args:
            addr: I/O register address ($D010–$D013)
            read_fn: Callable(addr) -> int (8-bit value)
            write_fn: Callable(addr, value) -> None
        """
        if not IO_START <= addr <= IO_END:
            raise ValueError(f"${addr:04X} is outside the I/O window")
        if read_fn:
            self._io_read_handlers[addr] = read_fn
        if write_fn:
            self._io_write_handlers[addr] = write_fn

    # --- Bulk load/save ---

    def load_ram(self, address: int, data: bytes):
        """Copy data into RAM starting at address.

        Bypasses the bus (no I/O side effects). All-or-nothing: a
        rejected load leaves RAM untouched.
        """
        data = bytes(data)
        if address < 0 or address > len(self.ram):
            log.error("Address out of range: $%04X", address)
            raise TransferError(f"Address out of range: ${address:04X}")
        if not data:
            log.error("Nothing to load")
            raise TransferError("Nothing to load")
        if address + len(data) > len(self.ram):
            log.error("Data too large: %d bytes at $%04X", len(data), address)
            raise TransferError(
                f"Data too large: {len(data)} bytes at ${address:04X} "
                f"overruns {len(self.ram)} bytes of RAM")

        self.ram[address:address + len(data)] = data
        log.info("Loaded %d bytes at $%04X", len(data), address)

    def save_ram(self, start: int, end: int) -> bytes:
        """Return a copy of RAM from start to end inclusive."""
        if end >= len(self.ram) or start < 0:
            log.error("Address out of range: $%04X-$%04X", start, end)
            raise TransferError(f"Address out of range: ${start:04X}-${end:04X}")
        if start > end:
            log.error("Start $%04X is past end $%04X", start, end)
            raise TransferError(f"Start ${start:04X} is past end ${end:04X}")
        return bytes(self.ram[start:end + 1])

    # --- Hex dump ---

    def peek(self, addr: int) -> int:
        """Side-effect-free read: the I/O window reads back as $00."""
        addr &= 0xFFFF
        if IO_START <= addr <= IO_END:
            return 0x00
        return self.read(addr)

    def hexdump(self, start: int, length: int = 256) -> str:
        """Produce a hex dump of memory for debugging."""
        lines = []
        for offset in range(0, length, 16):
            addr = (start + offset) & 0xFFFF
            row = [self.peek((addr + i) & 0xFFFF) for i in range(16)]
            hex_bytes = ' '.join(f'{b:02X}' for b in row)
            ascii_bytes = ''.join(
                chr(b & 0x7F) if 0x20 <= (b & 0x7F) < 0x7F else '.'
                for b in row
            )
            lines.append(f'{addr:04X}  {hex_bytes}  {ascii_bytes}')
        return '\n'.join(lines)
