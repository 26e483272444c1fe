"""
Apple-1 Virtual Emulator — 6502 Opcode Table

Maps each opcode byte to (mnemonic, addressing_mode, cycle_count,
page_penalty). The table covers the 151 documented NMOS 6502 opcodes;
the remaining 105 values are filled with an ILLEGAL entry that the
emulator executes as a one-byte, one-cycle no-op.

page_penalty marks read instructions that take one extra cycle when
the indexed effective address crosses a page boundary (abs,X abs,Y
and (zp),Y). Branch penalties are handled by the branch handler.

Addressing modes:
  IMP   Implied (no operand)
  ACC   Accumulator (operates on A)
  IMM   Immediate 8-bit
  ZP    Zero page ($00–$FF)
  ZPX   Zero page indexed by X (wraps within page 0)
  ZPY   Zero page indexed by Y (wraps within page 0)
  ABS   Absolute (16-bit address)
  ABSX  Absolute indexed by X
  ABSY  Absolute indexed by Y
  IND   Indirect (JMP only, NMOS page-wrap bug)
  INDX  Indexed indirect ($zp,X)
  INDY  Indirect indexed ($zp),Y
  REL   Relative (signed 8-bit branch offset)
"""

from collections import namedtuple

# ──────────────────────────────────────────────
# Addressing mode constants
# ──────────────────────────────────────────────

IMP  = 'IMP'
ACC  = 'ACC'
IMM  = 'IMM'
ZP   = 'ZP'
ZPX  = 'ZPX'
ZPY  = 'ZPY'
ABS  = 'ABS'
ABSX = 'ABSX'
ABSY = 'ABSY'
IND  = 'IND'
INDX = 'INDX'
INDY = 'INDY'
REL  = 'REL'

# Operand bytes following the opcode, per mode
OPERAND_LENGTH = {
    IMP: 0, ACC: 0,
    IMM: 1, ZP: 1, ZPX: 1, ZPY: 1, INDX: 1, INDY: 1, REL: 1,
    ABS: 2, ABSX: 2, ABSY: 2, IND: 2,
}

ILLEGAL = 'ILLEGAL'

Opcode = namedtuple('Opcode', ['mnemonic', 'mode', 'cycles', 'page_penalty'])


# ──────────────────────────────────────────────
# Main opcode table
# ──────────────────────────────────────────────
# Format: opcode -> (mnemonic, addressing_mode, cycle_count, page_penalty)

OPCODES = {
    # ── Load ──
    0xA9: ('LDA', IMM,  2, False),
    0xA5: ('LDA', ZP,   3, False),
    0xB5: ('LDA', ZPX,  4, False),
    0xAD: ('LDA', ABS,  4, False),
    0xBD: ('LDA', ABSX, 4, True),
    0xB9: ('LDA', ABSY, 4, True),
    0xA1: ('LDA', INDX, 6, False),
    0xB1: ('LDA', INDY, 5, True),

    0xA2: ('LDX', IMM,  2, False),
    0xA6: ('LDX', ZP,   3, False),
    0xB6: ('LDX', ZPY,  4, False),
    0xAE: ('LDX', ABS,  4, False),
    0xBE: ('LDX', ABSY, 4, True),

    0xA0: ('LDY', IMM,  2, False),
    0xA4: ('LDY', ZP,   3, False),
    0xB4: ('LDY', ZPX,  4, False),
    0xAC: ('LDY', ABS,  4, False),
    0xBC: ('LDY', ABSX, 4, True),

    # ── Store ──
    0x85: ('STA', ZP,   3, False),
    0x95: ('STA', ZPX,  4, False),
    0x8D: ('STA', ABS,  4, False),
    0x9D: ('STA', ABSX, 5, False),
    0x99: ('STA', ABSY, 5, False),
    0x81: ('STA', INDX, 6, False),
    0x91: ('STA', INDY, 6, False),

    0x86: ('STX', ZP,   3, False),
    0x96: ('STX', ZPY,  4, False),
    0x8E: ('STX', ABS,  4, False),

    0x84: ('STY', ZP,   3, False),
    0x94: ('STY', ZPX,  4, False),
    0x8C: ('STY', ABS,  4, False),

    # ── Arithmetic ──
    0x69: ('ADC', IMM,  2, False),
    0x65: ('ADC', ZP,   3, False),
    0x75: ('ADC', ZPX,  4, False),
    0x6D: ('ADC', ABS,  4, False),
    0x7D: ('ADC', ABSX, 4, True),
    0x79: ('ADC', ABSY, 4, True),
    0x61: ('ADC', INDX, 6, False),
    0x71: ('ADC', INDY, 5, True),

    0xE9: ('SBC', IMM,  2, False),
    0xE5: ('SBC', ZP,   3, False),
    0xF5: ('SBC', ZPX,  4, False),
    0xED: ('SBC', ABS,  4, False),
    0xFD: ('SBC', ABSX, 4, True),
    0xF9: ('SBC', ABSY, 4, True),
    0xE1: ('SBC', INDX, 6, False),
    0xF1: ('SBC', INDY, 5, True),

    # ── Logic ──
    0x29: ('AND', IMM,  2, False),
    0x25: ('AND', ZP,   3, False),
    0x35: ('AND', ZPX,  4, False),
    0x2D: ('AND', ABS,  4, False),
    0x3D: ('AND', ABSX, 4, True),
    0x39: ('AND', ABSY, 4, True),
    0x21: ('AND', INDX, 6, False),
    0x31: ('AND', INDY, 5, True),

    0x09: ('ORA', IMM,  2, False),
    0x05: ('ORA', ZP,   3, False),
    0x15: ('ORA', ZPX,  4, False),
    0x0D: ('ORA', ABS,  4, False),
    0x1D: ('ORA', ABSX, 4, True),
    0x19: ('ORA', ABSY, 4, True),
    0x01: ('ORA', INDX, 6, False),
    0x11: ('ORA', INDY, 5, True),

    0x49: ('EOR', IMM,  2, False),
    0x45: ('EOR', ZP,   3, False),
    0x55: ('EOR', ZPX,  4, False),
    0x4D: ('EOR', ABS,  4, False),
    0x5D: ('EOR', ABSX, 4, True),
    0x59: ('EOR', ABSY, 4, True),
    0x41: ('EOR', INDX, 6, False),
    0x51: ('EOR', INDY, 5, True),

    0x24: ('BIT', ZP,   3, False),
    0x2C: ('BIT', ABS,  4, False),

    # ── Compare ──
    0xC9: ('CMP', IMM,  2, False),
    0xC5: ('CMP', ZP,   3, False),
    0xD5: ('CMP', ZPX,  4, False),
    0xCD: ('CMP', ABS,  4, False),
    0xDD: ('CMP', ABSX, 4, True),
    0xD9: ('CMP', ABSY, 4, True),
    0xC1: ('CMP', INDX, 6, False),
    0xD1: ('CMP', INDY, 5, True),

    0xE0: ('CPX', IMM,  2, False),
    0xE4: ('CPX', ZP,   3, False),
    0xEC: ('CPX', ABS,  4, False),

    0xC0: ('CPY', IMM,  2, False),
    0xC4: ('CPY', ZP,   3, False),
    0xCC: ('CPY', ABS,  4, False),

    # ── Increment / decrement ──
    0xE6: ('INC', ZP,   5, False),
    0xF6: ('INC', ZPX,  6, False),
    0xEE: ('INC', ABS,  6, False),
    0xFE: ('INC', ABSX, 7, False),

    0xC6: ('DEC', ZP,   5, False),
    0xD6: ('DEC', ZPX,  6, False),
    0xCE: ('DEC', ABS,  6, False),
    0xDE: ('DEC', ABSX, 7, False),

    0xE8: ('INX', IMP,  2, False),
    0xC8: ('INY', IMP,  2, False),
    0xCA: ('DEX', IMP,  2, False),
    0x88: ('DEY', IMP,  2, False),

    # ── Shift / rotate ──
    0x0A: ('ASL', ACC,  2, False),
    0x06: ('ASL', ZP,   5, False),
    0x16: ('ASL', ZPX,  6, False),
    0x0E: ('ASL', ABS,  6, False),
    0x1E: ('ASL', ABSX, 7, False),

    0x4A: ('LSR', ACC,  2, False),
    0x46: ('LSR', ZP,   5, False),
    0x56: ('LSR', ZPX,  6, False),
    0x4E: ('LSR', ABS,  6, False),
    0x5E: ('LSR', ABSX, 7, False),

    0x2A: ('ROL', ACC,  2, False),
    0x26: ('ROL', ZP,   5, False),
    0x36: ('ROL', ZPX,  6, False),
    0x2E: ('ROL', ABS,  6, False),
    0x3E: ('ROL', ABSX, 7, False),

    0x6A: ('ROR', ACC,  2, False),
    0x66: ('ROR', ZP,   5, False),
    0x76: ('ROR', ZPX,  6, False),
    0x6E: ('ROR', ABS,  6, False),
    0x7E: ('ROR', ABSX, 7, False),

    # ── Branch ──
    0x10: ('BPL', REL,  2, False),
    0x30: ('BMI', REL,  2, False),
    0x50: ('BVC', REL,  2, False),
    0x70: ('BVS', REL,  2, False),
    0x90: ('BCC', REL,  2, False),
    0xB0: ('BCS', REL,  2, False),
    0xD0: ('BNE', REL,  2, False),
    0xF0: ('BEQ', REL,  2, False),

    # ── Jump / call ──
    0x4C: ('JMP', ABS,  3, False),
    0x6C: ('JMP', IND,  5, False),
    0x20: ('JSR', ABS,  6, False),
    0x60: ('RTS', IMP,  6, False),
    0x40: ('RTI', IMP,  6, False),
    0x00: ('BRK', IMP,  7, False),

    # ── Stack ──
    0x48: ('PHA', IMP,  3, False),
    0x08: ('PHP', IMP,  3, False),
    0x68: ('PLA', IMP,  4, False),
    0x28: ('PLP', IMP,  4, False),

    # ── Transfer ──
    0xAA: ('TAX', IMP,  2, False),
    0xA8: ('TAY', IMP,  2, False),
    0x8A: ('TXA', IMP,  2, False),
    0x98: ('TYA', IMP,  2, False),
    0xBA: ('TSX', IMP,  2, False),
    0x9A: ('TXS', IMP,  2, False),

    # ── Status flags ──
    0x18: ('CLC', IMP,  2, False),
    0x38: ('SEC', IMP,  2, False),
    0x58: ('CLI', IMP,  2, False),
    0x78: ('SEI', IMP,  2, False),
    0xB8: ('CLV', IMP,  2, False),
    0xD8: ('CLD', IMP,  2, False),
    0xF8: ('SED', IMP,  2, False),

    # ── Control ──
    0xEA: ('NOP', IMP,  2, False),
}

ILLEGAL_ENTRY = Opcode(ILLEGAL, IMP, 1, False)

# Dense 256-entry table, built once at import
OPCODE_TABLE = tuple(
    Opcode(*OPCODES[op]) if op in OPCODES else ILLEGAL_ENTRY
    for op in range(0x100)
)


def lookup(opcode: int) -> Opcode:
    """Return the table entry for an opcode byte."""
    return OPCODE_TABLE[opcode & 0xFF]


def is_legal(opcode: int) -> bool:
    return (opcode & 0xFF) in OPCODES


def disassemble(read, pc: int) -> tuple:
    """Disassemble one instruction at pc.

    read is a Callable(addr) -> int. Pass a side-effect-free reader
    (AddressSpace.peek) so tracing never acknowledges a key press.
    Returns (text, length).
    """
    entry = lookup(read(pc))
    length = 1 + OPERAND_LENGTH[entry.mode]
    b1 = read((pc + 1) & 0xFFFF) if length > 1 else 0
    b2 = read((pc + 2) & 0xFFFF) if length > 2 else 0
    word = b1 | (b2 << 8)
    mode = entry.mode

    if entry.mnemonic == ILLEGAL:
        text = '???'
    else:
        if mode == IMP:
            operand = ''
        elif mode == ACC:
            operand = 'A'
        elif mode == IMM:
            operand = f'#${b1:02X}'
        elif mode == ZP:
            operand = f'${b1:02X}'
        elif mode == ZPX:
            operand = f'${b1:02X},X'
        elif mode == ZPY:
            operand = f'${b1:02X},Y'
        elif mode == ABS:
            operand = f'${word:04X}'
        elif mode == ABSX:
            operand = f'${word:04X},X'
        elif mode == ABSY:
            operand = f'${word:04X},Y'
        elif mode == IND:
            operand = f'(${word:04X})'
        elif mode == INDX:
            operand = f'(${b1:02X},X)'
        elif mode == INDY:
            operand = f'(${b1:02X}),Y'
        else:  # REL
            offset = b1 - 256 if b1 & 0x80 else b1
            operand = f'${(pc + 2 + offset) & 0xFFFF:04X}'
        text = f'{entry.mnemonic} {operand}'.rstrip()

    return text, length
