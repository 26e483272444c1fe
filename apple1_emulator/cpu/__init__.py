"""6502 CPU core: registers, opcode table, ALU."""
