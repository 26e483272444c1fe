"""
Apple-1 Virtual Emulator — ALU Operations

Flag arithmetic for the NMOS 6502. Every function returns a tuple
(result_byte, flag_bits); the caller decides which flag group to apply
(NZ, NZC, NVZC) through the Registers setters.

Overflow formulas are the standard two's complement ones:
  add: V = ~(A ^ M) & (A ^ R) & 0x80   (same-sign operands, result differs)
  sub: V =  (A ^ M) & (A ^ R) & 0x80   (different-sign operands, result differs)

Decimal mode follows NMOS behaviour: N, V and Z are computed from the
binary (unadjusted) ALU result, only the accumulator and C are adjusted.
"""

from .regs import FLAG_N, FLAG_V, FLAG_Z, FLAG_C


def test_nz8(val: int) -> int:
    """Test 8-bit value for N and Z flags only."""
    flags = 0
    if val & 0x80:
        flags |= FLAG_N
    if not (val & 0xFF):
        flags |= FLAG_Z
    return flags


# ══════════════════════════════════════════════
# Add / subtract
# ══════════════════════════════════════════════

def adc8(a: int, b: int, carry: int) -> tuple:
    """Binary add with carry. Sets N, V, Z, C."""
    result = a + b + carry
    flags = test_nz8(result)
    if result > 0xFF:
        flags |= FLAG_C
    if ~(a ^ b) & (a ^ result) & 0x80:
        flags |= FLAG_V
    return (result & 0xFF, flags)


def adc8_decimal(a: int, b: int, carry: int) -> tuple:
    """BCD add with carry (D flag set)."""
    half = 0
    adjust_lo = adjust_hi = 0
    lo = (a & 0x0F) + (b & 0x0F) + carry
    if lo > 9:
        adjust_lo = 6
        half = 1
    hi = ((a >> 4) & 0x0F) + ((b >> 4) & 0x0F) + half
    decimal_carry = 0
    if hi > 9:
        adjust_hi = 6
        decimal_carry = 1

    lo &= 0x0F
    hi &= 0x0F
    binary = (hi << 4) | lo

    flags = test_nz8(binary)
    if decimal_carry:
        flags |= FLAG_C
    if ~(a ^ b) & (a ^ binary) & 0x80:
        flags |= FLAG_V
    result = (((hi + adjust_hi) & 0x0F) << 4) | ((lo + adjust_lo) & 0x0F)
    return (result, flags)


def sbc8(a: int, b: int, carry: int) -> tuple:
    """Binary subtract with borrow (C=1 means no borrow). Sets N, V, Z, C."""
    result = a + (~b & 0xFF) + carry
    flags = test_nz8(result)
    if result > 0xFF:
        flags |= FLAG_C
    if (a ^ b) & (a ^ result) & 0x80:
        flags |= FLAG_V
    return (result & 0xFF, flags)


def sbc8_decimal(a: int, b: int, carry: int) -> tuple:
    """BCD subtract with borrow (D flag set)."""
    inverted = ~b & 0xFF
    half = 1
    adjust_lo = adjust_hi = 0
    lo = (a & 0x0F) + (inverted & 0x0F) + carry
    if lo <= 0x0F:
        half = 0
        adjust_lo = 10
    hi = ((a >> 4) & 0x0F) + ((inverted >> 4) & 0x0F) + half
    if hi <= 0x0F:
        adjust_hi = 10 << 4

    binary = a + inverted + carry
    flags = 0
    if binary > 0xFF:
        flags |= FLAG_C
    binary &= 0xFF
    flags |= test_nz8(binary)
    if (a ^ b) & (a ^ binary) & 0x80:
        flags |= FLAG_V
    result = (((binary + adjust_hi) >> 4) & 0x0F) << 4
    result |= (binary + adjust_lo) & 0x0F
    return (result, flags)


def cmp8(reg: int, val: int) -> int:
    """Compare register with memory. Returns N, Z, C flags (no result)."""
    diff = (reg - val) & 0xFF
    flags = test_nz8(diff)
    if reg >= val:
        flags |= FLAG_C
    return flags


def bit8(a: int, val: int) -> int:
    """BIT test. Z from A AND M, N and V copied from M bits 7 and 6."""
    flags = val & (FLAG_N | FLAG_V)
    if not (a & val):
        flags |= FLAG_Z
    return flags


# ══════════════════════════════════════════════
# Shift / rotate
# ══════════════════════════════════════════════

def asl8(val: int) -> tuple:
    """Arithmetic shift left. Sets N, Z, C."""
    result = (val << 1) & 0xFF
    flags = test_nz8(result)
    if val & 0x80:
        flags |= FLAG_C
    return (result, flags)


def lsr8(val: int) -> tuple:
    """Logical shift right. N always clear. Sets Z, C."""
    result = (val & 0xFF) >> 1
    flags = test_nz8(result)
    if val & 0x01:
        flags |= FLAG_C
    return (result, flags)


def rol8(val: int, carry: int) -> tuple:
    """Rotate left through carry. Sets N, Z, C."""
    result = ((val << 1) | carry) & 0xFF
    flags = test_nz8(result)
    if val & 0x80:
        flags |= FLAG_C
    return (result, flags)


def ror8(val: int, carry: int) -> tuple:
    """Rotate right through carry. Sets N, Z, C."""
    result = ((val >> 1) | (carry << 7)) & 0xFF
    flags = test_nz8(result)
    if val & 0x01:
        flags |= FLAG_C
    return (result, flags)


def twos_complement_8(val: int) -> int:
    """Convert unsigned 8-bit to signed Python int (for REL branches)."""
    if val & 0x80:
        return val - 256
    return val
