"""
Apple-1 Virtual Emulator — Built-in ROM Images

WOZMON is the 256-byte Woz Monitor normally found at $FF00–$FFFF. Only the
first 252 bytes land in the monitor ROM region; the trailing NMI/RESET/IRQ
vector bytes are superseded by the synthesized reset vector.

Integer BASIC is not bundled. Pass its 4096-byte image in from a file.
"""

from pathlib import Path

from .mem.memory import MemoryConfigError

WOZMON = b"\xd8X\xa0\x7f\x8c\x12\xd0\xa9\xa7\x8d\x11\xd0\x8d\x13\xd0\xc9\xdf\xf0\x13\xc9\x9b\xf0\x03\xc8\x10\x0f\xa9\xdc \xef\xff\xa9\x8d \xef\xff\xa0\x01\x880\xf6\xad\x11\xd0\x10\xfb\xad\x10\xd0\x99\x00\x02 \xef\xff\xc9\x8d\xd0\xd4\xa0\xff\xa9\x00\xaa\n\x85+\xc8\xb9\x00\x02\xc9\x8d\xf0\xd4\xc9\xae\x90\xf4\xf0\xf0\xc9\xba\xf0\xeb\xc9\xd2\xf0;\x86(\x86)\x84*\xb9\x00\x02I\xb0\xc9\n\x90\x06i\x88\xc9\xfa\x90\x11\n\n\n\n\xa2\x04\n&(&)\xca\xd0\xf8\xc8\xd0\xe0\xc4*\xf0\x97$+P\x10\xa5(\x81&\xe6&\xd0\xb5\xe6'LD\xffl$\x000+\xa2\x02\xb5'\x95%\x95#\xca\xd0\xf7\xd0\x14\xa9\x8d \xef\xff\xa5% \xdc\xff\xa5$ \xdc\xff\xa9\xba \xef\xff\xa9\xa0 \xef\xff\xa1$ \xdc\xff\x86+\xa5$\xc5(\xa5%\xe5)\xb0\xc1\xe6$\xd0\x02\xe6%\xa5$)\x07\x10\xc8HJJJJ \xe5\xffh)\x0f\t\xb0\xc9\xba\x90\x02i\x06,\x12\xd00\xfb\x8d\x12\xd0`\x00\x00\x00\x0f\x00\xff\x00\x00"


def load_rom_file(path, size: int) -> bytes:
    """Read a ROM image from disk, checking it fits its region."""
    p = Path(path)
    if not p.is_file():
        raise MemoryConfigError(f"ROM image not found: {p}")
    data = p.read_bytes()
    if len(data) > size:
        raise MemoryConfigError(
            f"ROM image {p.name} is {len(data)} bytes, region holds {size}")
    return data
