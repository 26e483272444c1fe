"""
Apple-1 Virtual Emulator — 6502 Instruction Tests

Each test hand-assembles a few bytes into RAM at $0300, points PC at
them and single-steps. Cycle counts follow the MOS 6500 programming
manual, including page-crossing and taken-branch penalties.
"""

import logging

import pytest

from apple1_emulator.emu import Apple1Emulator
from apple1_emulator.cpu.regs import FLAG_B, FLAG_I, FLAG_U
from apple1_emulator.cpu import decoder
from apple1_emulator.periph.clock import ManualClock

ORG = 0x0300


def _emu(program, org=ORG):
    """Emulator with program loaded at org and PC pointing at it."""
    emu = Apple1Emulator(clock=ManualClock())
    emu.mem.load_ram(org, bytes(program))
    emu.regs.PC = org
    return emu


def _steps(emu, n):
    for _ in range(n):
        emu.step()


# ═══════════════════════════════════════════════
# Test Group 1: Individual Instructions
# ═══════════════════════════════════════════════

class TestLoadStore:
    def test_lda_immediate(self):
        """LDA #$05 → A=$05, PC+2, 2 cycles"""
        emu = _emu([0xA9, 0x05])
        emu.step()
        assert emu.regs.A == 0x05
        assert emu.regs.PC == 0x0302
        assert emu.regs.cycles == 2
        assert not emu.regs.zero
        assert not emu.regs.negative

    def test_lda_zero(self):
        """LDA #$00 → Z=1"""
        emu = _emu([0xA9, 0x00])
        emu.step()
        assert emu.regs.zero
        assert not emu.regs.negative

    def test_lda_negative(self):
        """LDA #$80 → N=1"""
        emu = _emu([0xA9, 0x80])
        emu.step()
        assert emu.regs.negative

    def test_sta_zero_page(self):
        """LDA #$42; STA $10 → mem[$10]=$42"""
        emu = _emu([0xA9, 0x42, 0x85, 0x10])
        _steps(emu, 2)
        assert emu.mem.read(0x0010) == 0x42
        assert emu.regs.cycles == 5

    def test_zero_page_x_wraps(self):
        """LDX #$FF; LDA $80,X → reads $7F"""
        emu = _emu([0xA2, 0xFF, 0xB5, 0x80])
        emu.mem.write(0x007F, 0x33)
        _steps(emu, 2)
        assert emu.regs.A == 0x33

    def test_ldx_zero_page_y(self):
        """LDY #$02; LDX $10,Y → reads $12"""
        emu = _emu([0xA0, 0x02, 0xB6, 0x10])
        emu.mem.write(0x0012, 0x99)
        _steps(emu, 2)
        assert emu.regs.X == 0x99

    def test_indexed_indirect(self):
        """LDX #$04; LDA ($10,X) → pointer at $14 → $0400"""
        emu = _emu([0xA2, 0x04, 0xA1, 0x10])
        emu.mem.write(0x0014, 0x00)
        emu.mem.write(0x0015, 0x04)
        emu.mem.write(0x0400, 0x5A)
        _steps(emu, 2)
        assert emu.regs.A == 0x5A
        assert emu.regs.cycles == 2 + 6

    def test_sty_stx_absolute(self):
        emu = _emu([0xA0, 0x11, 0x8C, 0x00, 0x04, 0xA2, 0x22, 0x8E, 0x01, 0x04])
        _steps(emu, 4)
        assert emu.mem.read(0x0400) == 0x11
        assert emu.mem.read(0x0401) == 0x22


class TestPagePenalty:
    def test_absolute_x_no_cross(self):
        """LDX #$01; LDA $0400,X → 4 cycles"""
        emu = _emu([0xA2, 0x01, 0xBD, 0x00, 0x04])
        _steps(emu, 2)
        assert emu.regs.cycles == 2 + 4

    def test_absolute_x_cross(self):
        """LDX #$01; LDA $04FF,X → $0500, 5 cycles"""
        emu = _emu([0xA2, 0x01, 0xBD, 0xFF, 0x04])
        emu.mem.write(0x0500, 0x77)
        _steps(emu, 2)
        assert emu.regs.A == 0x77
        assert emu.regs.cycles == 2 + 5

    def test_absolute_y_cross(self):
        emu = _emu([0xA0, 0x10, 0xB9, 0xF8, 0x04])
        _steps(emu, 2)
        assert emu.regs.cycles == 2 + 5

    def test_indirect_y_cross(self):
        """LDY #$01; LDA ($10),Y with ($10)=$04FF → $0500, 6 cycles"""
        emu = _emu([0xA0, 0x01, 0xB1, 0x10])
        emu.mem.write(0x0010, 0xFF)
        emu.mem.write(0x0011, 0x04)
        emu.mem.write(0x0500, 0x66)
        _steps(emu, 2)
        assert emu.regs.A == 0x66
        assert emu.regs.cycles == 2 + 6

    def test_store_never_penalised(self):
        """LDX #$01; STA $04FF,X → always 5 cycles"""
        emu = _emu([0xA2, 0x01, 0x9D, 0xFF, 0x04])
        _steps(emu, 2)
        assert emu.regs.cycles == 2 + 5


class TestArithmetic:
    def test_adc_signed_overflow(self):
        """CLC; LDA #$50; ADC #$50 → $A0, V=1, N=1, C=0"""
        emu = _emu([0x18, 0xA9, 0x50, 0x69, 0x50])
        _steps(emu, 3)
        assert emu.regs.A == 0xA0
        assert emu.regs.overflow
        assert emu.regs.negative
        assert not emu.regs.carry

    def test_adc_carry_out(self):
        """CLC; LDA #$FF; ADC #$01 → $00, Z=1, C=1"""
        emu = _emu([0x18, 0xA9, 0xFF, 0x69, 0x01])
        _steps(emu, 3)
        assert emu.regs.A == 0x00
        assert emu.regs.zero
        assert emu.regs.carry

    def test_sbc_no_borrow(self):
        """SEC; LDA #$05; SBC #$03 → $02, C=1"""
        emu = _emu([0x38, 0xA9, 0x05, 0xE9, 0x03])
        _steps(emu, 3)
        assert emu.regs.A == 0x02
        assert emu.regs.carry

    def test_sbc_borrow(self):
        """SEC; LDA #$03; SBC #$05 → $FE, C=0, N=1"""
        emu = _emu([0x38, 0xA9, 0x03, 0xE9, 0x05])
        _steps(emu, 3)
        assert emu.regs.A == 0xFE
        assert not emu.regs.carry
        assert emu.regs.negative

    def test_decimal_adc(self):
        """SED; CLC; LDA #$09; ADC #$01 → $10"""
        emu = _emu([0xF8, 0x18, 0xA9, 0x09, 0x69, 0x01])
        _steps(emu, 4)
        assert emu.regs.A == 0x10
        assert not emu.regs.carry

    def test_decimal_adc_carry(self):
        """SED; CLC; LDA #$99; ADC #$01 → $00, C=1"""
        emu = _emu([0xF8, 0x18, 0xA9, 0x99, 0x69, 0x01])
        _steps(emu, 4)
        assert emu.regs.A == 0x00
        assert emu.regs.carry

    def test_decimal_sbc(self):
        """SED; SEC; LDA #$10; SBC #$01 → $09, C=1"""
        emu = _emu([0xF8, 0x38, 0xA9, 0x10, 0xE9, 0x01])
        _steps(emu, 4)
        assert emu.regs.A == 0x09
        assert emu.regs.carry

    def test_inc_dec_memory(self):
        emu = _emu([0xE6, 0x10, 0xE6, 0x10, 0xC6, 0x11])
        emu.mem.write(0x0010, 0xFF)
        emu.mem.write(0x0011, 0x01)
        emu.step()
        assert emu.mem.read(0x0010) == 0x00
        assert emu.regs.zero
        emu.step()
        assert emu.mem.read(0x0010) == 0x01
        emu.step()
        assert emu.mem.read(0x0011) == 0x00
        assert emu.regs.zero

    def test_inx_wraps(self):
        emu = _emu([0xA2, 0xFF, 0xE8])
        _steps(emu, 2)
        assert emu.regs.X == 0x00
        assert emu.regs.zero

    def test_dey_wraps(self):
        emu = _emu([0xA0, 0x00, 0x88])
        _steps(emu, 2)
        assert emu.regs.Y == 0xFF
        assert emu.regs.negative


class TestLogicCompare:
    def test_and_ora_eor(self):
        emu = _emu([0xA9, 0xF0, 0x29, 0x3C, 0x09, 0x01, 0x49, 0xFF])
        _steps(emu, 2)
        assert emu.regs.A == 0x30
        emu.step()
        assert emu.regs.A == 0x31
        emu.step()
        assert emu.regs.A == 0xCE

    def test_bit_copies_n_v(self):
        """LDA #$01; BIT $10 with $10=$C0 → N=1, V=1, Z=1"""
        emu = _emu([0xA9, 0x01, 0x24, 0x10])
        emu.mem.write(0x0010, 0xC0)
        _steps(emu, 2)
        assert emu.regs.negative
        assert emu.regs.overflow
        assert emu.regs.zero
        assert emu.regs.A == 0x01

    def test_cmp_equal(self):
        emu = _emu([0xA9, 0x10, 0xC9, 0x10])
        _steps(emu, 2)
        assert emu.regs.zero
        assert emu.regs.carry

    def test_cmp_less(self):
        emu = _emu([0xA9, 0x10, 0xC9, 0x20])
        _steps(emu, 2)
        assert emu.regs.negative
        assert not emu.regs.carry
        assert not emu.regs.zero

    def test_cpx_cpy(self):
        emu = _emu([0xA2, 0x05, 0xE0, 0x04, 0xA0, 0x05, 0xC0, 0x06])
        _steps(emu, 2)
        assert emu.regs.carry
        _steps(emu, 2)
        assert not emu.regs.carry


class TestShiftRotate:
    def test_asl_accumulator(self):
        """LDA #$81; ASL A → $02, C=1"""
        emu = _emu([0xA9, 0x81, 0x0A])
        _steps(emu, 2)
        assert emu.regs.A == 0x02
        assert emu.regs.carry
        assert emu.regs.cycles == 4

    def test_lsr_memory(self):
        """LSR $10 with $10=$01 → $00, Z=1, C=1"""
        emu = _emu([0x46, 0x10])
        emu.mem.write(0x0010, 0x01)
        emu.step()
        assert emu.mem.read(0x0010) == 0x00
        assert emu.regs.zero
        assert emu.regs.carry
        assert emu.regs.cycles == 5

    def test_ror_through_carry(self):
        """SEC; LDA #$00; ROR A → $80, N=1, C=0"""
        emu = _emu([0x38, 0xA9, 0x00, 0x6A])
        _steps(emu, 3)
        assert emu.regs.A == 0x80
        assert emu.regs.negative
        assert not emu.regs.carry

    def test_rol_through_carry(self):
        """SEC; LDA #$80; ROL A → $01, C=1"""
        emu = _emu([0x38, 0xA9, 0x80, 0x2A])
        _steps(emu, 3)
        assert emu.regs.A == 0x01
        assert emu.regs.carry


# ═══════════════════════════════════════════════
# Test Group 2: Control Flow
# ═══════════════════════════════════════════════

class TestBranches:
    def test_branch_not_taken(self):
        """LDA #$01; BEQ +2 → falls through, 2 cycles"""
        emu = _emu([0xA9, 0x01, 0xF0, 0x02])
        _steps(emu, 2)
        assert emu.regs.PC == 0x0304
        assert emu.regs.cycles == 2 + 2

    def test_branch_taken_same_page(self):
        """LDA #$00; BEQ +2 → $0306, 3 cycles"""
        emu = _emu([0xA9, 0x00, 0xF0, 0x02])
        _steps(emu, 2)
        assert emu.regs.PC == 0x0306
        assert emu.regs.cycles == 2 + 3

    def test_branch_taken_cross_page(self):
        """At $0400: LDA #$00; BEQ -6 → $03FE, 4 cycles"""
        emu = _emu([0xA9, 0x00, 0xF0, 0xFA], org=0x0400)
        _steps(emu, 2)
        assert emu.regs.PC == 0x03FE
        assert emu.regs.cycles == 2 + 4

    def test_bne_loop(self):
        """LDX #$03; loop: DEX; BNE loop → X=0"""
        emu = _emu([0xA2, 0x03, 0xCA, 0xD0, 0xFD])
        _steps(emu, 1 + 2 * 3)
        assert emu.regs.X == 0
        assert emu.regs.PC == 0x0305

    @pytest.mark.parametrize("setup,opcode", [
        (0x38, 0xB0),  # SEC; BCS
        (0x18, 0x90),  # CLC; BCC
        (0xB8, 0x50),  # CLV; BVC
    ])
    def test_flag_branches(self, setup, opcode):
        emu = _emu([setup, opcode, 0x10])
        _steps(emu, 2)
        assert emu.regs.PC == 0x0313

    def test_bmi_bpl(self):
        emu = _emu([0xA9, 0x80, 0x10, 0x10, 0x30, 0x10])
        _steps(emu, 3)
        assert emu.regs.PC == 0x0316


class TestJumps:
    def test_jmp_absolute(self):
        emu = _emu([0x4C, 0x34, 0x12])
        emu.step()
        assert emu.regs.PC == 0x1234
        assert emu.regs.cycles == 3

    def test_jmp_indirect(self):
        emu = _emu([0x6C, 0x00, 0x04])
        emu.mem.write(0x0400, 0x78)
        emu.mem.write(0x0401, 0x56)
        emu.step()
        assert emu.regs.PC == 0x5678

    def test_jmp_indirect_page_wrap_bug(self):
        """JMP ($04FF) takes the high byte from $0400, not $0500"""
        emu = _emu([0x6C, 0xFF, 0x04])
        emu.mem.write(0x04FF, 0x34)
        emu.mem.write(0x0400, 0x12)
        emu.mem.write(0x0500, 0x56)
        emu.step()
        assert emu.regs.PC == 0x1234
        assert emu.regs.cycles == 5

    def test_jsr_rts(self):
        """JSR $0310 pushes $0302; RTS returns to $0303"""
        emu = _emu([0x20, 0x10, 0x03])
        emu.mem.write(0x0310, 0x60)
        emu.step()
        assert emu.regs.PC == 0x0310
        assert emu.regs.S == 0xFB
        assert emu.mem.read(0x01FD) == 0x03
        assert emu.mem.read(0x01FC) == 0x02
        assert emu.regs.cycles == 6
        emu.step()
        assert emu.regs.PC == 0x0303
        assert emu.regs.S == 0xFD
        assert emu.regs.cycles == 12

    def test_brk_and_rti(self):
        """BRK vectors through $FFFE (reads $0000); RTI returns past the pad byte"""
        emu = _emu([0x00, 0xEA])
        emu.mem.write(0x0000, 0x40)  # RTI
        emu.step()
        assert emu.regs.PC == 0x0000
        assert emu.regs.S == 0xFA
        assert emu.mem.read(0x01FB) == 0x24 | FLAG_B | FLAG_U
        assert emu.regs.irq_disabled
        assert emu.regs.cycles == 7
        emu.step()
        assert emu.regs.PC == 0x0302
        assert emu.regs.P == 0x24
        assert emu.regs.S == 0xFD


class TestStackTransfer:
    def test_pha_pla(self):
        emu = _emu([0xA9, 0x42, 0x48, 0xA9, 0x00, 0x68])
        _steps(emu, 4)
        assert emu.regs.A == 0x42
        assert emu.regs.S == 0xFD
        assert not emu.regs.zero

    def test_php_sets_break_bits(self):
        emu = _emu([0x08])
        emu.step()
        assert emu.mem.read(0x01FD) == 0x34

    def test_plp_clears_break_keeps_unused(self):
        emu = _emu([0xA9, 0xFF, 0x48, 0x28])
        _steps(emu, 3)
        assert emu.regs.P == 0xFF & ~FLAG_B

    def test_transfers(self):
        """LDA #$80; TAX; TAY; TSX; TXS"""
        emu = _emu([0xA9, 0x80, 0xAA, 0xA8, 0xBA, 0x9A])
        _steps(emu, 3)
        assert emu.regs.X == 0x80
        assert emu.regs.Y == 0x80
        assert emu.regs.negative
        emu.step()
        assert emu.regs.X == 0xFD
        emu.step()
        assert emu.regs.S == 0xFD

    def test_flag_instructions(self):
        emu = _emu([0x38, 0xF8, 0x78, 0x18, 0xD8, 0x58])
        _steps(emu, 3)
        assert emu.regs.carry
        assert emu.regs.decimal
        assert emu.regs.irq_disabled
        _steps(emu, 3)
        assert not emu.regs.carry
        assert not emu.regs.decimal
        assert not emu.regs.irq_disabled


# ═══════════════════════════════════════════════
# Test Group 3: Illegal opcodes, reset, decoder
# ═══════════════════════════════════════════════

class TestIllegalOpcode:
    def test_one_byte_one_cycle_noop(self, caplog):
        emu = _emu([0x02, 0xA9, 0x07])
        with caplog.at_level(logging.DEBUG, logger="apple1_emulator.emu"):
            emu.step()
        assert emu.regs.PC == 0x0301
        assert emu.regs.cycles == 1
        assert emu.illegal_opcodes == 1
        assert emu.opcode == 0x02
        assert "Illegal opcode $02" in caplog.text
        emu.step()
        assert emu.regs.A == 0x07


class TestReset:
    def test_reset_state(self):
        emu = _emu([0xA9, 0x05, 0xA2, 0x01])
        _steps(emu, 2)
        emu.reset()
        assert emu.regs.PC == 0xFF00
        assert emu.regs.S == 0xFD
        assert emu.regs.P == 0x24
        assert emu.regs.A == 0 and emu.regs.X == 0
        assert emu.regs.cycles == 0
        assert emu.regs.P & FLAG_I

    def test_custom_reset_address(self):
        emu = Apple1Emulator(reset_address=0x0280, clock=ManualClock())
        assert emu.regs.PC == 0x0280

    def test_reset_keeps_ram(self):
        emu = _emu([0xEA])
        emu.reset()
        assert emu.mem.read(ORG) == 0xEA

    def test_boot_from_zero_page(self):
        """Reset vector $0000, A9 05 at $0000 → reset; step → A=$05, PC=$0002, 2 cycles"""
        emu = Apple1Emulator(reset_address=0x0000, clock=ManualClock())
        emu.mem.load_ram(0x0000, bytes([0xA9, 0x05]))
        emu.reset()
        assert emu.regs.PC == 0x0000
        emu.step()
        assert emu.regs.A == 0x05
        assert emu.regs.PC == 0x0002
        assert emu.regs.cycles == 2

    def test_reset_vector_ignores_ram_contents(self):
        emu = Apple1Emulator(ram_size=0xD00F, reset_address=0x0280, clock=ManualClock())
        emu.mem.load_ram(0x0000, bytes([0xFF]) * 0xD00F)
        assert emu.mem.read16(0xFFFC) == 0x0280
        emu.reset()
        assert emu.regs.PC == 0x0280


class TestDecoder:
    def test_table_counts(self):
        legal = [op for op in range(256) if decoder.is_legal(op)]
        assert len(legal) == 151

    @pytest.mark.parametrize("program,text", [
        ([0xA9, 0x05], "LDA #$05"),
        ([0x6C, 0xFF, 0x04], "JMP ($04FF)"),
        ([0xB1, 0x10], "LDA ($10),Y"),
        ([0x0A], "ASL A"),
        ([0xF0, 0xFE], "BEQ $0300"),
        ([0x02], "???"),
    ])
    def test_disassemble(self, program, text):
        emu = _emu(program)
        assert decoder.disassemble(emu.mem.peek, ORG)[0] == text
