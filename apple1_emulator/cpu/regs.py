"""
Apple-1 Virtual Emulator — 6502 Register Set + Status Flag Management

Register model for the MOS 6502:
  A   — 8-bit accumulator
  X   — 8-bit index register
  Y   — 8-bit index register
  S   — 8-bit stack pointer (stack lives in page 1, $0100–$01FF)
  PC  — 16-bit program counter
  P   — 8-bit processor status: N V - B D I Z C
        bit 7: N (Negative — bit 7 of result)
        bit 6: V (Overflow — signed overflow)
        bit 5: -  (unused, reads back as 1)
        bit 4: B (Break — only meaningful in the pushed copy)
        bit 3: D (Decimal mode for ADC/SBC)
        bit 2: I (IRQ disable)
        bit 1: Z (Zero — result is zero)
        bit 0: C (Carry)
"""

# Status bit masks
FLAG_N = 0x80
FLAG_V = 0x40
FLAG_U = 0x20
FLAG_B = 0x10
FLAG_D = 0x08
FLAG_I = 0x04
FLAG_Z = 0x02
FLAG_C = 0x01

STACK_BASE = 0x0100

# Power-on / reset defaults
RESET_STATUS = FLAG_U | FLAG_I
RESET_SP = 0xFD


class Registers:
    """6502 CPU register set.

    The cycle counter and the last fetched opcode ride along here so the
    host can show them in a debug overlay without reaching into the core.
    """

    __slots__ = ('A', 'X', 'Y', 'S', 'PC', 'P', 'cycles', 'opcode')

    def __init__(self):
        self.A: int = 0
        self.X: int = 0
        self.Y: int = 0
        self.S: int = RESET_SP
        self.PC: int = 0
        self.P: int = RESET_STATUS
        self.cycles: int = 0
        self.opcode: int = 0

    # --- Status flag access ---

    def set_NZ(self, flags: int):
        """Set N, Z. Preserves V, D, I, C."""
        self.P = (self.P & ~(FLAG_N | FLAG_Z) & 0xFF) | (flags & (FLAG_N | FLAG_Z))

    def set_NZC(self, flags: int):
        """Set N, Z, C. Preserves V, D, I."""
        mask = FLAG_N | FLAG_Z | FLAG_C
        self.P = (self.P & ~mask & 0xFF) | (flags & mask)

    def set_NVZ(self, flags: int):
        """Set N, V, Z (BIT). Preserves D, I, C."""
        mask = FLAG_N | FLAG_V | FLAG_Z
        self.P = (self.P & ~mask & 0xFF) | (flags & mask)

    def set_NVZC(self, flags: int):
        """Set N, V, Z, C. Preserves D, I."""
        mask = FLAG_N | FLAG_V | FLAG_Z | FLAG_C
        self.P = (self.P & ~mask & 0xFF) | (flags & mask)

    def set_flag(self, flag: int, on: bool):
        if on:
            self.P |= flag
        else:
            self.P &= ~flag & 0xFF

    @property
    def carry(self) -> bool:
        return bool(self.P & FLAG_C)

    @property
    def zero(self) -> bool:
        return bool(self.P & FLAG_Z)

    @property
    def negative(self) -> bool:
        return bool(self.P & FLAG_N)

    @property
    def overflow(self) -> bool:
        return bool(self.P & FLAG_V)

    @property
    def decimal(self) -> bool:
        return bool(self.P & FLAG_D)

    @property
    def irq_disabled(self) -> bool:
        return bool(self.P & FLAG_I)

    # --- Stack operations ---

    def push8(self, memory, value: int):
        """Push 8-bit value (write at $0100+S, then S decrements)."""
        memory.write(STACK_BASE | self.S, value & 0xFF)
        self.S = (self.S - 1) & 0xFF

    def push16(self, memory, value: int):
        """Push 16-bit value, high byte first."""
        self.push8(memory, (value >> 8) & 0xFF)
        self.push8(memory, value & 0xFF)

    def pull8(self, memory) -> int:
        """Pull 8-bit value (S increments, then read at $0100+S)."""
        self.S = (self.S + 1) & 0xFF
        return memory.read(STACK_BASE | self.S)

    def pull16(self, memory) -> int:
        lo = self.pull8(memory)
        hi = self.pull8(memory)
        return (hi << 8) | lo

    # --- Display ---

    def display(self) -> str:
        """Format register state for debugging."""
        flag_chars = []
        for i, c in enumerate('NV-BDIZC'):
            if self.P & (0x80 >> i):
                flag_chars.append(c)
            else:
                flag_chars.append('.')
        return (f"PC={self.PC:04X} A={self.A:02X} X={self.X:02X} "
                f"Y={self.Y:02X} S={self.S:02X} P={self.P:02X} "
                f"[{''.join(flag_chars)}]")

    def reset(self, pc: int = 0):
        """Reset CPU to power-on state. PC comes from the reset vector."""
        self.A = 0
        self.X = 0
        self.Y = 0
        self.S = RESET_SP
        self.P = RESET_STATUS
        self.PC = pc & 0xFFFF
        self.cycles = 0
        self.opcode = 0
