"""Shared architecture constants for the RISC-V instruction codec.

Every base-set instruction occupies one 32-bit word regardless of the
register width; only the operation set and the shift-amount width change
between RV32, RV64 and RV128.
"""

from enum import Enum, IntEnum

# Width of one instruction word in bits.
WORD_BITS = 32
WORD_MASK = (1 << WORD_BITS) - 1

# Hex digits needed to spell a full word.
HEX_DIGITS = WORD_BITS // 4

# General purpose registers x0..x31; the count is the same for every width.
REGISTER_COUNT = 32


class Xlen(IntEnum):
    """Register width of the base integer ISA."""

    RV32 = 32
    RV64 = 64
    RV128 = 128

    @property
    def shamt_bits(self) -> int:
        # 5, 6 and 7 bits respectively
        return self.bit_length() - 1


class Format(str, Enum):
    """Instruction layout classes."""

    R = "R"
    I = "I"  # noqa: E741
    S = "S"
    B = "B"
    U = "U"
    J = "J"
    SYSTEM = "SYSTEM"
    FENCE = "FENCE"


class Opcode(IntEnum):
    """Major opcodes, bits [6:0] of the instruction word."""

    LOAD = 0b0000011
    MISC_MEM = 0b0001111
    OP_IMM = 0b0010011
    AUIPC = 0b0010111
    OP_IMM_32 = 0b0011011
    STORE = 0b0100011
    AMO = 0b0101111
    OP = 0b0110011
    LUI = 0b0110111
    OP_32 = 0b0111011
    OP_IMM_64 = 0b1011011
    BRANCH = 0b1100011
    JALR = 0b1100111
    JAL = 0b1101111
    SYSTEM = 0b1110011
    OP_64 = 0b1111011


# Memory ordering flags of FENCE, most significant bit first.
FENCE_FLAGS = "iorw"
