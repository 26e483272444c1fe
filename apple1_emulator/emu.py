"""
Apple-1 Virtual Emulator — Main Emulator Class

This is the top-level class that integrates:
  - CPU registers (cpu/regs.py)
  - Opcode table (cpu/decoder.py)
  - ALU operations (cpu/alu.py)
  - Address space (mem/memory.py)
  - Keyboard/display PIA (periph/pia.py)

Execution model, one instruction per step():
  1. Fetch opcode at PC, advance PC
  2. Resolve the effective address for the addressing mode
  3. Execute instruction handler → update registers, memory, flags
  4. Add base cycles plus page-crossing / branch penalties

Undefined opcodes execute as a one-byte, one-cycle no-op. They are
counted and logged at DEBUG, never raised.

Termination reasons for run():
  - TIMEOUT:  cycle budget used up
  - BREAK:    breakpoint address hit
"""

import logging
from enum import Enum
from typing import Optional, Set

from .cpu.regs import Registers, FLAG_B, FLAG_C, FLAG_D, FLAG_I, FLAG_U, FLAG_V
from .cpu.decoder import (
    OPCODE_TABLE, ILLEGAL, disassemble,
    IMP, ACC, IMM, ZP, ZPX, ZPY, ABS, ABSX, ABSY, IND, INDX, INDY, REL,
)
from .cpu import alu
from .mem.memory import AddressSpace, RESET_VECTOR, DEFAULT_RESET_ADDRESS
from .periph.display import DisplayPort, TextScreen
from .periph.pia import PIAPeripheral, DEFAULT_DISPLAY_DELAY_NS
from .config import DEFAULT_RAM_SIZE, MachineConfig
from .roms import WOZMON

log = logging.getLogger(__name__)

IRQ_VECTOR = 0xFFFE


class StopReason(Enum):
    TIMEOUT = 'TIMEOUT'
    BREAK = 'BREAK'


class Apple1Emulator:
    """Apple-1: 6502 CPU + RAM + Woz Monitor/BASIC ROMs + keyboard/display PIA.

    Usage:
        emu = Apple1Emulator()              # 16K RAM, Wozmon, TextScreen
        emu.run(max_cycles=100_000)
        emu.text_input('FF00')
        print(emu.display.text())
    """

    DEFAULT_MAX_CYCLES = 10_000_000

    def __init__(self, ram_size: int = DEFAULT_RAM_SIZE, rom: bytes = WOZMON,
                 basic: bytes = b'', reset_address: int = DEFAULT_RESET_ADDRESS,
                 display: Optional[DisplayPort] = None, clock=None,
                 display_delay_ns: int = DEFAULT_DISPLAY_DELAY_NS):
        # Core components
        self.regs = Registers()
        self.mem = AddressSpace(ram_size, rom, basic, reset_address)

        # Peripherals
        self.display = display if display is not None else TextScreen()
        self.pia = PIAPeripheral(self.display, clock, display_delay_ns)
        self.pia.register(self.mem)

        self.illegal_opcodes = 0
        self._extra_cycles = 0

        # Breakpoints: set of PC addresses that trigger BREAK
        self._breakpoints: Set[int] = set()

        # Trace output
        self._trace = False
        self._trace_output = []

        # Opcode → (table entry, handler), built once
        self._dispatch = self._build_dispatch()

        self.reset()

    @classmethod
    def from_config(cls, config: MachineConfig, rom: bytes = WOZMON,
                    basic: bytes = b'', display: Optional[DisplayPort] = None,
                    clock=None) -> 'Apple1Emulator':
        """Build a machine from a validated MachineConfig."""
        config.validate()
        if display is None:
            display = TextScreen(config.columns, config.rows)
        emu = cls(ram_size=config.ram_size, rom=rom, basic=basic,
                  reset_address=config.reset_address, display=display,
                  clock=clock, display_delay_ns=config.display_delay_ns)
        emu.enable_trace(config.trace)
        log.info("Apple-1 built: %dK RAM, reset $%04X",
                 config.ram_kb, config.reset_address)
        return emu

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def reset(self):
        """CPU reset: PC from $FFFC/$FFFD, I flag set, S=$FD, A/X/Y cleared.

        Memory and PIA state are left alone.
        """
        self.regs.reset(self.mem.read16(RESET_VECTOR))
        log.info("CPU reset, PC=$%04X", self.regs.PC)

    def step(self):
        """Execute exactly one instruction."""
        regs = self.regs
        pc = regs.PC

        if self._trace:
            text, _ = disassemble(self.mem.peek, pc)
            self._trace_output.append(f"${pc:04X}: {text:14s} {regs.display()}")

        opcode = self.mem.read(pc)
        regs.opcode = opcode
        regs.PC = (pc + 1) & 0xFFFF

        entry, handler = self._dispatch[opcode]
        self._extra_cycles = 0
        addr = self._resolve(entry)
        handler(entry.mode, addr)

        regs.cycles += entry.cycles + self._extra_cycles

    def run(self, max_cycles: int = None) -> StopReason:
        """Run until the cycle budget is spent or a breakpoint is reached."""
        if max_cycles is None:
            max_cycles = self.DEFAULT_MAX_CYCLES
        start = self.regs.cycles

        while self.regs.cycles - start < max_cycles:
            if self.regs.PC in self._breakpoints:
                return StopReason.BREAK
            self.step()

        return StopReason.TIMEOUT

    @property
    def opcode(self) -> int:
        """Opcode byte of the most recently executed instruction."""
        return self.regs.opcode

    # ══════════════════════════════════════════════
    # Effective address resolution
    # ══════════════════════════════════════════════

    def _fetch8(self) -> int:
        """Fetch 8-bit value at PC, advance PC."""
        val = self.mem.read(self.regs.PC)
        self.regs.PC = (self.regs.PC + 1) & 0xFFFF
        return val

    def _fetch16(self) -> int:
        """Fetch 16-bit value at PC (little-endian), advance PC by 2."""
        val = self.mem.read16(self.regs.PC)
        self.regs.PC = (self.regs.PC + 2) & 0xFFFF
        return val

    def _zp_pointer(self, zp: int) -> int:
        """16-bit pointer stored in zero page; the high byte wraps to $00."""
        return self.mem.read(zp) | (self.mem.read((zp + 1) & 0xFF) << 8)

    def _indexed(self, base: int, index: int, penalty: bool) -> int:
        addr = (base + index) & 0xFFFF
        if penalty and (base & 0xFF00) != (addr & 0xFF00):
            self._extra_cycles += 1
        return addr

    def _resolve(self, entry) -> Optional[int]:
        """Consume operand bytes and return the effective address.

        Returns None for implied/accumulator modes. For IMM the address
        is that of the operand byte itself; for REL it is the branch
        target. Never touches the target location, so stores to the
        PIA do not trigger read side effects.
        """
        mode = entry.mode
        regs = self.regs

        if mode == IMP or mode == ACC:
            return None
        elif mode == IMM:
            addr = regs.PC
            regs.PC = (regs.PC + 1) & 0xFFFF
            return addr
        elif mode == ZP:
            return self._fetch8()
        elif mode == ZPX:
            return (self._fetch8() + regs.X) & 0xFF
        elif mode == ZPY:
            return (self._fetch8() + regs.Y) & 0xFF
        elif mode == ABS:
            return self._fetch16()
        elif mode == ABSX:
            return self._indexed(self._fetch16(), regs.X, entry.page_penalty)
        elif mode == ABSY:
            return self._indexed(self._fetch16(), regs.Y, entry.page_penalty)
        elif mode == IND:
            # NMOS bug: the high byte is fetched without carrying into the page
            ptr = self._fetch16()
            lo = self.mem.read(ptr)
            hi = self.mem.read((ptr & 0xFF00) | ((ptr + 1) & 0x00FF))
            return (hi << 8) | lo
        elif mode == INDX:
            return self._zp_pointer((self._fetch8() + regs.X) & 0xFF)
        elif mode == INDY:
            base = self._zp_pointer(self._fetch8())
            return self._indexed(base, regs.Y, entry.page_penalty)
        elif mode == REL:
            offset = alu.twos_complement_8(self._fetch8())
            return (regs.PC + offset) & 0xFFFF
        else:
            raise ValueError(f"Unknown addressing mode: {mode}")

    def _read_operand(self, mode: str, addr: Optional[int]) -> int:
        if mode == ACC:
            return self.regs.A
        return self.mem.read(addr)

    def _write_operand(self, mode: str, addr: Optional[int], value: int):
        if mode == ACC:
            self.regs.A = value
        else:
            self.mem.write(addr, value)

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(mode, addr)
    # addr is the resolved effective address (None for IMP/ACC)

    def _build_dispatch(self) -> tuple:
        """Bind every opcode table entry to its handler."""
        handlers = {
            # ── Load/Store ──
            'LDA': self._op_lda,
            'LDX': self._op_ldx,
            'LDY': self._op_ldy,
            'STA': self._op_sta,
            'STX': self._op_stx,
            'STY': self._op_sty,

            # ── Arithmetic ──
            'ADC': self._op_adc,
            'SBC': self._op_sbc,
            'INC': self._op_inc,
            'DEC': self._op_dec,
            'INX': self._op_inx,
            'INY': self._op_iny,
            'DEX': self._op_dex,
            'DEY': self._op_dey,

            # ── Logic ──
            'AND': self._op_and,
            'ORA': self._op_ora,
            'EOR': self._op_eor,
            'BIT': self._op_bit,

            # ── Compare ──
            'CMP': self._op_cmp,
            'CPX': self._op_cpx,
            'CPY': self._op_cpy,

            # ── Shift/Rotate ──
            'ASL': self._op_asl,
            'LSR': self._op_lsr,
            'ROL': self._op_rol,
            'ROR': self._op_ror,

            # ── Branch ──
            'BPL': self._op_bpl,
            'BMI': self._op_bmi,
            'BVC': self._op_bvc,
            'BVS': self._op_bvs,
            'BCC': self._op_bcc,
            'BCS': self._op_bcs,
            'BNE': self._op_bne,
            'BEQ': self._op_beq,

            # ── Jump/Call ──
            'JMP': self._op_jmp,
            'JSR': self._op_jsr,
            'RTS': self._op_rts,
            'RTI': self._op_rti,
            'BRK': self._op_brk,

            # ── Stack ──
            'PHA': self._op_pha,
            'PHP': self._op_php,
            'PLA': self._op_pla,
            'PLP': self._op_plp,

            # ── Transfer ──
            'TAX': self._op_tax,
            'TAY': self._op_tay,
            'TXA': self._op_txa,
            'TYA': self._op_tya,
            'TSX': self._op_tsx,
            'TXS': self._op_txs,

            # ── Status flags ──
            'CLC': self._op_clc,
            'SEC': self._op_sec,
            'CLI': self._op_cli,
            'SEI': self._op_sei,
            'CLV': self._op_clv,
            'CLD': self._op_cld,
            'SED': self._op_sed,

            # ── Control ──
            'NOP': self._op_nop,
            ILLEGAL: self._op_illegal,
        }
        return tuple((entry, handlers[entry.mnemonic]) for entry in OPCODE_TABLE)

    # ── Load/Store handlers ──

    def _op_lda(self, mode, addr):
        self.regs.A = self.mem.read(addr)
        self.regs.set_NZ(alu.test_nz8(self.regs.A))

    def _op_ldx(self, mode, addr):
        self.regs.X = self.mem.read(addr)
        self.regs.set_NZ(alu.test_nz8(self.regs.X))

    def _op_ldy(self, mode, addr):
        self.regs.Y = self.mem.read(addr)
        self.regs.set_NZ(alu.test_nz8(self.regs.Y))

    def _op_sta(self, mode, addr):
        self.mem.write(addr, self.regs.A)

    def _op_stx(self, mode, addr):
        self.mem.write(addr, self.regs.X)

    def _op_sty(self, mode, addr):
        self.mem.write(addr, self.regs.Y)

    # ── Arithmetic handlers ──

    def _op_adc(self, mode, addr):
        val = self.mem.read(addr)
        if self.regs.decimal:
            result, flags = alu.adc8_decimal(self.regs.A, val, int(self.regs.carry))
        else:
            result, flags = alu.adc8(self.regs.A, val, int(self.regs.carry))
        self.regs.A = result
        self.regs.set_NVZC(flags)

    def _op_sbc(self, mode, addr):
        val = self.mem.read(addr)
        if self.regs.decimal:
            result, flags = alu.sbc8_decimal(self.regs.A, val, int(self.regs.carry))
        else:
            result, flags = alu.sbc8(self.regs.A, val, int(self.regs.carry))
        self.regs.A = result
        self.regs.set_NVZC(flags)

    def _op_inc(self, mode, addr):
        result = (self.mem.read(addr) + 1) & 0xFF
        self.mem.write(addr, result)
        self.regs.set_NZ(alu.test_nz8(result))

    def _op_dec(self, mode, addr):
        result = (self.mem.read(addr) - 1) & 0xFF
        self.mem.write(addr, result)
        self.regs.set_NZ(alu.test_nz8(result))

    def _op_inx(self, mode, addr):
        self.regs.X = (self.regs.X + 1) & 0xFF
        self.regs.set_NZ(alu.test_nz8(self.regs.X))

    def _op_iny(self, mode, addr):
        self.regs.Y = (self.regs.Y + 1) & 0xFF
        self.regs.set_NZ(alu.test_nz8(self.regs.Y))

    def _op_dex(self, mode, addr):
        self.regs.X = (self.regs.X - 1) & 0xFF
        self.regs.set_NZ(alu.test_nz8(self.regs.X))

    def _op_dey(self, mode, addr):
        self.regs.Y = (self.regs.Y - 1) & 0xFF
        self.regs.set_NZ(alu.test_nz8(self.regs.Y))

    # ── Logic handlers ──

    def _op_and(self, mode, addr):
        self.regs.A &= self.mem.read(addr)
        self.regs.set_NZ(alu.test_nz8(self.regs.A))

    def _op_ora(self, mode, addr):
        self.regs.A |= self.mem.read(addr)
        self.regs.set_NZ(alu.test_nz8(self.regs.A))

    def _op_eor(self, mode, addr):
        self.regs.A ^= self.mem.read(addr)
        self.regs.set_NZ(alu.test_nz8(self.regs.A))

    def _op_bit(self, mode, addr):
        self.regs.set_NVZ(alu.bit8(self.regs.A, self.mem.read(addr)))

    # ── Compare handlers ──

    def _op_cmp(self, mode, addr):
        self.regs.set_NZC(alu.cmp8(self.regs.A, self.mem.read(addr)))

    def _op_cpx(self, mode, addr):
        self.regs.set_NZC(alu.cmp8(self.regs.X, self.mem.read(addr)))

    def _op_cpy(self, mode, addr):
        self.regs.set_NZC(alu.cmp8(self.regs.Y, self.mem.read(addr)))

    # ── Shift/Rotate handlers ──

    def _op_asl(self, mode, addr):
        result, flags = alu.asl8(self._read_operand(mode, addr))
        self._write_operand(mode, addr, result)
        self.regs.set_NZC(flags)

    def _op_lsr(self, mode, addr):
        result, flags = alu.lsr8(self._read_operand(mode, addr))
        self._write_operand(mode, addr, result)
        self.regs.set_NZC(flags)

    def _op_rol(self, mode, addr):
        result, flags = alu.rol8(self._read_operand(mode, addr), int(self.regs.carry))
        self._write_operand(mode, addr, result)
        self.regs.set_NZC(flags)

    def _op_ror(self, mode, addr):
        result, flags = alu.ror8(self._read_operand(mode, addr), int(self.regs.carry))
        self._write_operand(mode, addr, result)
        self.regs.set_NZC(flags)

    # ── Branch handlers ──

    def _branch(self, condition: bool, target: int):
        """Taken branches cost +1 cycle, +1 more when crossing a page."""
        if condition:
            self._extra_cycles += 1
            if (self.regs.PC & 0xFF00) != (target & 0xFF00):
                self._extra_cycles += 1
            self.regs.PC = target

    def _op_bpl(self, mode, addr):
        self._branch(not self.regs.negative, addr)

    def _op_bmi(self, mode, addr):
        self._branch(self.regs.negative, addr)

    def _op_bvc(self, mode, addr):
        self._branch(not self.regs.overflow, addr)

    def _op_bvs(self, mode, addr):
        self._branch(self.regs.overflow, addr)

    def _op_bcc(self, mode, addr):
        self._branch(not self.regs.carry, addr)

    def _op_bcs(self, mode, addr):
        self._branch(self.regs.carry, addr)

    def _op_bne(self, mode, addr):
        self._branch(not self.regs.zero, addr)

    def _op_beq(self, mode, addr):
        self._branch(self.regs.zero, addr)

    # ── Jump/Call handlers ──

    def _op_jmp(self, mode, addr):
        self.regs.PC = addr

    def _op_jsr(self, mode, addr):
        # Return address pushed is the last byte of the JSR instruction
        self.regs.push16(self.mem, (self.regs.PC - 1) & 0xFFFF)
        self.regs.PC = addr

    def _op_rts(self, mode, addr):
        self.regs.PC = (self.regs.pull16(self.mem) + 1) & 0xFFFF

    def _op_rti(self, mode, addr):
        self.regs.P = (self.regs.pull8(self.mem) & ~FLAG_B & 0xFF) | FLAG_U
        self.regs.PC = self.regs.pull16(self.mem)

    def _op_brk(self, mode, addr):
        """Software interrupt — skip the padding byte, push PC and P, jump via $FFFE.

        The IRQ vector is unmapped on the Apple-1, so BRK lands at $0000.
        """
        pc = (self.regs.PC + 1) & 0xFFFF
        self.regs.push16(self.mem, pc)
        self.regs.push8(self.mem, self.regs.P | FLAG_B | FLAG_U)
        self.regs.set_flag(FLAG_I, True)
        self.regs.PC = self.mem.read16(IRQ_VECTOR)

    # ── Stack handlers ──

    def _op_pha(self, mode, addr):
        self.regs.push8(self.mem, self.regs.A)

    def _op_php(self, mode, addr):
        self.regs.push8(self.mem, self.regs.P | FLAG_B | FLAG_U)

    def _op_pla(self, mode, addr):
        self.regs.A = self.regs.pull8(self.mem)
        self.regs.set_NZ(alu.test_nz8(self.regs.A))

    def _op_plp(self, mode, addr):
        self.regs.P = (self.regs.pull8(self.mem) & ~FLAG_B & 0xFF) | FLAG_U

    # ── Transfer handlers ──

    def _op_tax(self, mode, addr):
        self.regs.X = self.regs.A
        self.regs.set_NZ(alu.test_nz8(self.regs.X))

    def _op_tay(self, mode, addr):
        self.regs.Y = self.regs.A
        self.regs.set_NZ(alu.test_nz8(self.regs.Y))

    def _op_txa(self, mode, addr):
        self.regs.A = self.regs.X
        self.regs.set_NZ(alu.test_nz8(self.regs.A))

    def _op_tya(self, mode, addr):
        self.regs.A = self.regs.Y
        self.regs.set_NZ(alu.test_nz8(self.regs.A))

    def _op_tsx(self, mode, addr):
        self.regs.X = self.regs.S
        self.regs.set_NZ(alu.test_nz8(self.regs.X))

    def _op_txs(self, mode, addr):
        self.regs.S = self.regs.X

    # ── Status flag handlers ──

    def _op_clc(self, mode, addr):
        self.regs.set_flag(FLAG_C, False)

    def _op_sec(self, mode, addr):
        self.regs.set_flag(FLAG_C, True)

    def _op_cli(self, mode, addr):
        self.regs.set_flag(FLAG_I, False)

    def _op_sei(self, mode, addr):
        self.regs.set_flag(FLAG_I, True)

    def _op_clv(self, mode, addr):
        self.regs.set_flag(FLAG_V, False)

    def _op_cld(self, mode, addr):
        self.regs.set_flag(FLAG_D, False)

    def _op_sed(self, mode, addr):
        self.regs.set_flag(FLAG_D, True)

    # ── Control ──

    def _op_nop(self, mode, addr):
        pass

    def _op_illegal(self, mode, addr):
        self.illegal_opcodes += 1
        log.debug("Illegal opcode $%02X at $%04X treated as NOP",
                  self.regs.opcode, (self.regs.PC - 1) & 0xFFFF)

    # ══════════════════════════════════════════════
    # Keyboard input (host text-input path)
    # ══════════════════════════════════════════════

    def text_input(self, text: str):
        """Latch typed characters, upper-cased. Only the last one survives
        until the CPU reads it; '_' is reserved for backspace."""
        for ch in text:
            if ch == '_' or ord(ch) > 0x7F:
                continue
            self.pia.latch_key(ch.upper())

    def key_pressed(self, key: str):
        """Handle a non-text key: 'return', 'backspace' or 'escape'."""
        key = key.lower()
        if key == 'return':
            self.pia.latch_key('\r')
        elif key == 'backspace':
            self.pia.latch_key('_')
        elif key == 'escape':
            self.reset()

    # ══════════════════════════════════════════════
    # Breakpoint API
    # ══════════════════════════════════════════════

    def add_breakpoint(self, addr: int):
        """Add a breakpoint at PC address. run() stops when PC hits this."""
        self._breakpoints.add(addr & 0xFFFF)

    def remove_breakpoint(self, addr: int):
        self._breakpoints.discard(addr & 0xFFFF)

    def clear_breakpoints(self):
        self._breakpoints.clear()

    # ══════════════════════════════════════════════
    # Trace / Debug
    # ══════════════════════════════════════════════

    def enable_trace(self, enable: bool = True):
        """Record a disassembly line with register state before each step."""
        self._trace = enable

    def get_trace(self) -> str:
        return '\n'.join(self._trace_output)

    def clear_trace(self):
        self._trace_output.clear()

    def status_line(self) -> str:
        """One-line debug overlay text: PC and last opcode."""
        return f"(PC: {self.regs.PC:04X}, opcode: {self.regs.opcode:02X})"
