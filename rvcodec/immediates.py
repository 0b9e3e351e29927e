"""Signed immediate reconstruction across split bit-fields."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Tuple

from . import fields as F
from .errors import CodecError, ErrorKind

_NUMBER_RE = re.compile(r"[+-]?(0x[0-9a-f]+|0b[01]+|0o[0-7]+|[0-9]+)", re.IGNORECASE)


def sign_extend(value: int, bits: int) -> int:
    """Interpret the low ``bits`` of ``value`` as two's complement."""
    value &= (1 << bits) - 1
    if value & (1 << (bits - 1)):
        return value - (1 << bits)
    return value


def parse_immediate(token: str) -> int:
    if not _NUMBER_RE.fullmatch(token):
        raise CodecError(
            ErrorKind.INVALID_IMMEDIATE, f"Not a number: {token!r}", token=token
        )
    sign = -1 if token.startswith("-") else 1
    digits = token.lstrip("+-").lower()
    if digits[:2] in ("0x", "0b", "0o"):
        return sign * int(digits, 0)
    # int(..., 0) rejects leading zeros in decimal
    return sign * int(digits, 10)


def check_unsigned(value: int, bits: int, field: str, token: str) -> int:
    if not 0 <= value < (1 << bits):
        raise CodecError(
            ErrorKind.IMMEDIATE_OUT_OF_RANGE,
            f"{token} does not fit the {bits}-bit unsigned {field}",
            field=field,
            token=token,
        )
    return value


@dataclass(frozen=True, slots=True)
class ImmPiece:
    """Word field ``field`` holds immediate bits starting at ``lo``."""

    field: F.BitRange
    lo: int


@dataclass(frozen=True, slots=True)
class ImmediateLayout:
    name: str
    pieces: Tuple[ImmPiece, ...]
    width: int
    # low immediate bits that are implicitly zero and never stored
    align: int = 0

    def gather(self, word: int) -> int:
        raw = 0
        for piece in self.pieces:
            raw |= piece.field.extract(word) << piece.lo
        return raw

    def decode(self, word: int) -> int:
        return sign_extend(self.gather(word), self.width)

    def scatter(self, word: int, value: int) -> int:
        for piece in self.pieces:
            word = piece.field.insert(word, value >> piece.lo)
        return word

    def fit(self, value: int, token: str, strict: bool) -> int:
        """
        Validate ``value`` for this layout.

        By default out-of-range values are truncated to their low-order bits
        when scattered.  In strict mode a value must fit the field either as a
        signed or as an unsigned quantity, and implicit low bits must be zero.
        """
        if not strict:
            return value
        if not -(1 << (self.width - 1)) <= value < (1 << self.width):
            raise CodecError(
                ErrorKind.IMMEDIATE_OUT_OF_RANGE,
                f"{token} does not fit the {self.width}-bit {self.name} immediate",
                field=self.name,
                token=token,
            )
        if value & ((1 << self.align) - 1):
            raise CodecError(
                ErrorKind.IMMEDIATE_OUT_OF_RANGE,
                f"{token} is not a multiple of {1 << self.align}",
                field=self.name,
                token=token,
            )
        return value


I_IMMEDIATE = ImmediateLayout("I", (ImmPiece(F.I_IMM, 0),), width=12)

S_IMMEDIATE = ImmediateLayout(
    "S", (ImmPiece(F.S_IMM_HI, 5), ImmPiece(F.S_IMM_LO, 0)), width=12
)

# imm[12] | imm[11] | imm[10:5] | imm[4:1], imm[0] = 0
B_IMMEDIATE = ImmediateLayout(
    "B",
    (
        ImmPiece(F.B_IMM_12, 12),
        ImmPiece(F.B_IMM_11, 11),
        ImmPiece(F.B_IMM_10_5, 5),
        ImmPiece(F.B_IMM_4_1, 1),
    ),
    width=13,
    align=1,
)

U_IMMEDIATE = ImmediateLayout("U", (ImmPiece(F.U_IMM, 12),), width=32, align=12)

# imm[20] | imm[19:12] | imm[11] | imm[10:1], imm[0] = 0
J_IMMEDIATE = ImmediateLayout(
    "J",
    (
        ImmPiece(F.J_IMM_20, 20),
        ImmPiece(F.J_IMM_19_12, 12),
        ImmPiece(F.J_IMM_11, 11),
        ImmPiece(F.J_IMM_10_1, 1),
    ),
    width=21,
    align=1,
)


__all__ = [
    "B_IMMEDIATE",
    "I_IMMEDIATE",
    "ImmediateLayout",
    "J_IMMEDIATE",
    "S_IMMEDIATE",
    "U_IMMEDIATE",
    "check_unsigned",
    "parse_immediate",
    "sign_extend",
]
