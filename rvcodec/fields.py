"""Bit-field addressing for 32-bit instruction words.

Fields are named by inclusive ``(hi, lo)`` bit indices counted from bit 0 at
the least significant end, matching the architecture manual.  The word itself
is kept as an unsigned integer; bit strings only appear when a field is
rendered into a :class:`Fragment`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Mapping, Sequence, Tuple

from .constants import WORD_BITS, Format


@dataclass(frozen=True, slots=True)
class BitRange:
    hi: int
    lo: int
    name: str

    def __post_init__(self) -> None:
        if not 0 <= self.lo <= self.hi < WORD_BITS:
            raise ValueError(f"Bad bit range {self.name}[{self.hi}:{self.lo}]")

    @property
    def width(self) -> int:
        return self.hi - self.lo + 1

    @property
    def mask(self) -> int:
        return (1 << self.width) - 1

    def extract(self, word: int) -> int:
        return (word >> self.lo) & self.mask

    def insert(self, word: int, value: int) -> int:
        """Return ``word`` with this field replaced by the low bits of ``value``."""
        cleared = word & ~(self.mask << self.lo)
        return cleared | ((value & self.mask) << self.lo)

    def bits(self, word: int) -> str:
        return format(self.extract(word), f"0{self.width}b")


@dataclass(frozen=True, slots=True)
class Fragment:
    """One field of a translated word with its rendered value."""

    value: str
    bits: str
    start: int
    field: str

    @property
    def end(self) -> int:
        return self.start + len(self.bits) - 1


@dataclass
class FieldCtx:
    """
    Mutable view over one instruction word.

    Decoders read fields and ``record`` the rendered value of each; encoders
    ``put`` fields into an initially empty word.  ``abi`` and ``strict`` are
    carried so strategies can render registers and police immediates without
    reaching for global state.
    """

    word: int = 0
    abi: bool = False
    strict: bool = False
    _fragments: List[Fragment] = field(default_factory=list, init=False)

    def get(self, rng: BitRange) -> int:
        return rng.extract(self.word)

    def put(self, rng: BitRange, value: int) -> None:
        self.word = rng.insert(self.word, value)

    def record(self, rng: BitRange, value: str) -> None:
        self._fragments.append(
            Fragment(value=value, bits=rng.bits(self.word), start=rng.lo, field=rng.name)
        )

    def record_layout(self, layout: Sequence[BitRange], values: Mapping[str, str]) -> None:
        for rng in layout:
            self.record(rng, values[rng.name])

    def snapshot_fragments(self) -> Tuple[Fragment, ...]:
        return tuple(sorted(self._fragments, key=lambda f: f.start, reverse=True))


def check_tiles_word(layout: Sequence[BitRange]) -> None:
    """Check that ``layout`` (MSB first) covers the word with no gap or overlap."""
    expected_hi = WORD_BITS - 1
    for rng in layout:
        if rng.hi != expected_hi:
            raise ValueError(f"{rng.name} starts at {rng.hi}, expected {expected_hi}")
        expected_hi = rng.lo - 1
    if expected_hi != -1:
        raise ValueError(f"Layout stops at bit {expected_hi + 1}")


OPCODE = BitRange(6, 0, "opcode")
RD = BitRange(11, 7, "rd")
FUNCT3 = BitRange(14, 12, "funct3")
RS1 = BitRange(19, 15, "rs1")
RS2 = BitRange(24, 20, "rs2")
FUNCT7 = BitRange(31, 25, "funct7")
FUNCT12 = BitRange(31, 20, "funct12")

I_IMM = BitRange(31, 20, "imm[11:0]")

S_IMM_HI = BitRange(31, 25, "imm[11:5]")
S_IMM_LO = BitRange(11, 7, "imm[4:0]")

B_IMM_12 = BitRange(31, 31, "imm[12]")
B_IMM_10_5 = BitRange(30, 25, "imm[10:5]")
B_IMM_4_1 = BitRange(11, 8, "imm[4:1]")
B_IMM_11 = BitRange(7, 7, "imm[11]")

U_IMM = BitRange(31, 12, "imm[31:12]")

J_IMM_20 = BitRange(31, 31, "imm[20]")
J_IMM_10_1 = BitRange(30, 21, "imm[10:1]")
J_IMM_11 = BitRange(20, 20, "imm[11]")
J_IMM_19_12 = BitRange(19, 12, "imm[19:12]")

FENCE_FM = BitRange(31, 28, "fm")
FENCE_PRED = BitRange(27, 24, "pred")
FENCE_SUCC = BitRange(23, 20, "succ")

# Atomics split funct7 into the operation and the acquire/release bits.
AMO_FUNCT5 = BitRange(31, 27, "funct5")
AMO_AQ = BitRange(26, 26, "aq")
AMO_RL = BitRange(25, 25, "rl")

# Bit 30 distinguishes logical from arithmetic right shifts.
SHTYP_BIT = 30

# Shift immediates split imm[11:0] into a fixed high part and the shift
# amount; the split point depends on how many shamt bits the width needs.
SHIFT_FIELDS: Mapping[int, Tuple[BitRange, BitRange]] = MappingProxyType(
    {
        width: (
            BitRange(31, 20 + width, f"imm[11:{width}]"),
            BitRange(19 + width, 20, f"shamt[{width - 1}:0]"),
        )
        for width in (5, 6, 7)
    }
)


_BASE_I = (RS1, FUNCT3, RD, OPCODE)

LAYOUTS: Mapping[Format, Tuple[BitRange, ...]] = MappingProxyType(
    {
        Format.R: (FUNCT7, RS2, RS1, FUNCT3, RD, OPCODE),
        Format.I: (I_IMM,) + _BASE_I,
        Format.S: (S_IMM_HI, RS2, RS1, FUNCT3, S_IMM_LO, OPCODE),
        Format.B: (B_IMM_12, B_IMM_10_5, RS2, RS1, FUNCT3, B_IMM_4_1, B_IMM_11, OPCODE),
        Format.U: (U_IMM, RD, OPCODE),
        Format.J: (J_IMM_20, J_IMM_10_1, J_IMM_11, J_IMM_19_12, RD, OPCODE),
        Format.SYSTEM: (FUNCT12,) + _BASE_I,
        Format.FENCE: (FENCE_FM, FENCE_PRED, FENCE_SUCC) + _BASE_I,
    }
)


AMO_LAYOUT = (AMO_FUNCT5, AMO_AQ, AMO_RL, RS2, RS1, FUNCT3, RD, OPCODE)


def shift_layout(shamt_bits: int) -> Tuple[BitRange, ...]:
    return SHIFT_FIELDS[shamt_bits] + _BASE_I


for _layout in [*LAYOUTS.values(), AMO_LAYOUT, *(shift_layout(w) for w in SHIFT_FIELDS)]:
    check_tiles_word(_layout)


__all__ = [
    "AMO_LAYOUT",
    "BitRange",
    "FieldCtx",
    "Fragment",
    "LAYOUTS",
    "SHIFT_FIELDS",
    "check_tiles_word",
    "shift_layout",
]
