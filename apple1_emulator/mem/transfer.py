"""
Apple-1 Virtual Emulator — Binary Load/Save Between Files and RAM

Host-side helpers behind the "Load into RAM" / "Save from RAM" menu.
Addresses are typed by the user as hex (1–4 digits, no prefix needed).
Every check runs before anything is written, so a rejected transfer
leaves both RAM and the output file untouched.
"""

import logging
import string
from pathlib import Path
from typing import Optional, Union

from .memory import AddressSpace, TransferError

log = logging.getLogger(__name__)

PathLike = Union[str, Path]


def parse_hex_address(text: str) -> int:
    """Parse a user-typed 16-bit hex address ('E000', '$0280', '0x300')."""
    cleaned = text.strip().upper()
    if cleaned.startswith('$'):
        cleaned = cleaned[1:]
    elif cleaned.startswith('0X'):
        cleaned = cleaned[2:]
    # int(_, 16) alone would also take "+300" and "1_0"
    if not 1 <= len(cleaned) <= 4 or any(c not in string.hexdigits for c in cleaned):
        log.error("Invalid number: %r", text)
        raise TransferError(f"Invalid number: {text!r}")
    return int(cleaned, 16)


def load_file(mem: AddressSpace, path: Optional[PathLike], address: int) -> int:
    """Load a raw binary file into RAM at address. Returns bytes loaded."""
    if path is None:
        log.error("File not chosen")
        raise TransferError("File not chosen")
    data = Path(path).read_bytes()
    if not data:
        log.error("File is empty: %s", path)
        raise TransferError(f"File is empty: {path}")
    mem.load_ram(address, data)
    return len(data)


def save_file(mem: AddressSpace, path: Optional[PathLike],
              start: int, end: int) -> int:
    """Save RAM start..end inclusive to a raw binary file. Returns bytes saved."""
    if path is None:
        log.error("File not chosen")
        raise TransferError("File not chosen")
    region = mem.save_ram(start, end)
    Path(path).write_bytes(region)
    log.info("Saved %d bytes ($%04X-$%04X) to %s", len(region), start, end, path)
    return len(region)
