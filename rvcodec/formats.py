"""
Per-format decode/encode strategies.

Each format contributes a ``decode(ctx, opcode, isa)`` that reads an
instruction word held in a :class:`FieldCtx` and returns a :class:`Decoded`,
and an ``encode(ctx, spec, operands, isa)`` that packs parsed operands into
``ctx.word``.  Opcode and funct3 are packed by the dispatcher before the
strategy runs.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable, Dict, NamedTuple, Optional, Sequence, Tuple

from . import fields as F
from .asm import MemOperand, Operand
from .config import IsaOption
from .constants import FENCE_FLAGS, Format, Opcode, Xlen
from .errors import CodecError, ErrorKind
from .fields import FieldCtx, Fragment
from .immediates import (
    B_IMMEDIATE,
    I_IMMEDIATE,
    J_IMMEDIATE,
    S_IMMEDIATE,
    U_IMMEDIATE,
    ImmediateLayout,
    check_unsigned,
    parse_immediate,
)
from .optable import LR_FUNCT5, OpSpec, has_funct3, ordering_suffix, resolve
from .registers import to_alias, to_index

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Decoded:
    word: int
    op: OpSpec
    operands: Tuple[str, ...]
    fragments: Tuple[Fragment, ...]
    # smallest base set that holds the instruction, e.g. "RV64I"
    isa: str
    xlen: Xlen
    # the same fragments, mnemonic fields first, then operand by operand
    asm_fragments: Tuple[Fragment, ...] = ()
    # ".aq"/".rl"/".aqrl" on atomics
    ordering: str = ""

    @property
    def mnemonic(self) -> str:
        return self.op.mnemonic + self.ordering

    @property
    def assembly(self) -> str:
        if not self.operands:
            return self.mnemonic
        return f"{self.mnemonic} {', '.join(self.operands)}"


# W and D shifts have a fixed shamt width; OP_IMM follows the register width.
_FIXED_SHAMT_BITS = {Opcode.OP_IMM_32: 5, Opcode.OP_IMM_64: 6}
_SHIFT_OPCODES = frozenset({Opcode.OP_IMM, Opcode.OP_IMM_32, Opcode.OP_IMM_64})


def shamt_bits(opcode: Opcode, xlen: Xlen) -> int:
    return _FIXED_SHAMT_BITS.get(opcode, xlen.shamt_bits)


def xlen_for_shamt(shamt: int) -> Xlen:
    if shamt < 32:
        return Xlen.RV32
    if shamt < 64:
        return Xlen.RV64
    return Xlen.RV128


def _allowed(
    spec: Optional[OpSpec],
    ctx: FieldCtx,
    opcode: Opcode,
    isa: IsaOption,
    discriminator: F.BitRange = F.FUNCT7,
) -> OpSpec:
    funct3 = ctx.get(F.FUNCT3)
    if spec is None:
        if has_funct3(opcode, funct3):
            raise CodecError(
                ErrorKind.INVALID_FUNCT,
                f"No {opcode.name} operation with funct3={funct3:03b} "
                f"{discriminator.name}={discriminator.bits(ctx.word)}",
                field=discriminator.name,
            )
        raise CodecError(
            ErrorKind.INVALID_FUNCT,
            f"No {opcode.name} operation with funct3={funct3:03b}",
            field="funct3",
        )
    if spec.xlen > isa.max_xlen:
        raise CodecError(
            ErrorKind.INVALID_FUNCT,
            f"{spec.mnemonic} requires RV{int(spec.xlen)}, configured for {isa.value}",
            field="funct3",
        )
    return spec


def _asm_order(
    fragments: Sequence[Fragment], operand_fields: Sequence[Sequence[str]]
) -> Tuple[Fragment, ...]:
    """Reorder ``fragments`` to follow the assembly text.

    ``operand_fields`` names, per operand, the fields it is spelled from in
    reading order.  Fields not named there carry the mnemonic and come first.
    """
    rank: Dict[str, Tuple[int, int]] = {}
    for i, names in enumerate(operand_fields, start=1):
        for j, name in enumerate(names):
            rank[name] = (i, j)
    return tuple(sorted(fragments, key=lambda f: rank.get(f.field, (0, 0))))


def _imm_fields(layout: ImmediateLayout) -> Tuple[str, ...]:
    pieces = sorted(layout.pieces, key=lambda piece: piece.lo, reverse=True)
    return tuple(piece.field.name for piece in pieces)


def _finish(
    ctx: FieldCtx,
    spec: OpSpec,
    operands: Sequence[str],
    isa: IsaOption,
    operand_fields: Sequence[Sequence[str]] = (),
    needed: Xlen = Xlen.RV32,
    ordering: str = "",
) -> Decoded:
    minimal = max(spec.xlen, needed)
    fragments = ctx.snapshot_fragments()
    return Decoded(
        word=ctx.word,
        op=spec,
        operands=tuple(operands),
        fragments=fragments,
        isa=spec.isa_label(minimal),
        xlen=isa.xlen or minimal,
        asm_fragments=_asm_order(fragments, operand_fields),
        ordering=ordering,
    )


def _reg(ctx: FieldCtx, rng: F.BitRange) -> str:
    return to_alias(ctx.get(rng), ctx.abi)


def _reserved_zero(ctx: FieldCtx, spec_name: str, *ranges: F.BitRange) -> None:
    for rng in ranges:
        value = ctx.get(rng)
        if value:
            raise CodecError(
                ErrorKind.RESERVED_FIELD_VIOLATION,
                f"{spec_name} requires {rng.name} to be zero, got {rng.bits(ctx.word)}",
                field=rng.name,
            )


def _expect(spec: OpSpec, operands: Sequence[Operand], shape: str) -> Tuple[Any, ...]:
    """Check operands against ``shape``: ``r`` plain token, ``m`` offset(base)."""
    actual = "".join("m" if isinstance(op, MemOperand) else "r" for op in operands)
    if actual == shape:
        return tuple(operands)
    wanted = ", ".join("offset(base)" if c == "m" else "operand" for c in shape) or "no operands"
    raise CodecError(
        ErrorKind.INVALID_OPERAND_COUNT,
        f"{spec.mnemonic} takes {wanted}; got {len(operands)} operand(s)",
        token=spec.mnemonic,
    )


def _imm(ctx: FieldCtx, layout: ImmediateLayout, token: str) -> None:
    value = layout.fit(parse_immediate(token), token, ctx.strict)
    ctx.word = layout.scatter(ctx.word, value)


def _common(spec: OpSpec, **values: str) -> Dict[str, str]:
    values.setdefault("opcode", spec.mnemonic)
    values.setdefault("funct3", spec.mnemonic)
    return values


# R-format


def _decode_r(ctx: FieldCtx, opcode: Opcode, isa: IsaOption) -> Decoded:
    if opcode is Opcode.AMO:
        return _decode_amo(ctx, opcode, isa)
    spec = _allowed(resolve(opcode, ctx.get(F.FUNCT3), ctx.get(F.FUNCT7)), ctx, opcode, isa)
    rd, rs1, rs2 = _reg(ctx, F.RD), _reg(ctx, F.RS1), _reg(ctx, F.RS2)
    ctx.record_layout(
        F.LAYOUTS[Format.R],
        _common(spec, funct7=spec.mnemonic, rs2=rs2, rs1=rs1, rd=rd),
    )
    return _finish(ctx, spec, (rd, rs1, rs2), isa, (("rd",), ("rs1",), ("rs2",)))


def _encode_r(ctx: FieldCtx, spec: OpSpec, operands: Sequence[Operand], isa: IsaOption) -> None:
    if spec.is_atomic:
        _encode_amo(ctx, spec, operands, isa)
        return
    rd, rs1, rs2 = (to_index(op) for op in _expect(spec, operands, "rrr"))
    ctx.put(F.RD, rd)
    ctx.put(F.RS1, rs1)
    ctx.put(F.RS2, rs2)
    ctx.put(F.FUNCT7, spec.funct7 or 0)


# Atomics: R-format with funct7 split into funct5, aq and rl.  The address
# operand is written (rs1); lr has no rs2.


def _decode_amo(ctx: FieldCtx, opcode: Opcode, isa: IsaOption) -> Decoded:
    resolved = resolve(opcode, ctx.get(F.FUNCT3), ctx.get(F.AMO_FUNCT5))
    spec = _allowed(resolved, ctx, opcode, isa, F.AMO_FUNCT5)
    rd, rs1 = _reg(ctx, F.RD), _reg(ctx, F.RS1)
    address = f"({rs1})"
    if spec.funct5 == LR_FUNCT5:
        _reserved_zero(ctx, spec.mnemonic, F.RS2)
        rs2 = spec.mnemonic
        operands: Tuple[str, ...] = (rd, address)
        operand_fields: Tuple[Tuple[str, ...], ...] = (("rd",), ("rs1",))
    else:
        rs2 = _reg(ctx, F.RS2)
        operands = (rd, rs2, address)
        operand_fields = (("rd",), ("rs2",), ("rs1",))

    aq, rl = ctx.get(F.AMO_AQ), ctx.get(F.AMO_RL)
    ctx.record_layout(
        F.AMO_LAYOUT,
        _common(spec, funct5=spec.mnemonic, aq=str(aq), rl=str(rl), rs2=rs2, rs1=rs1, rd=rd),
    )
    return _finish(
        ctx, spec, operands, isa, operand_fields, ordering=ordering_suffix(aq, rl)
    )


def _encode_amo(ctx: FieldCtx, spec: OpSpec, operands: Sequence[Operand], isa: IsaOption) -> None:
    if spec.funct5 == LR_FUNCT5:
        rd, mem = _expect(spec, operands, "rm")
        rs2 = 0
    else:
        rd, rs2_token, mem = _expect(spec, operands, "rrm")
        rs2 = to_index(rs2_token)
    if parse_immediate(mem.offset) != 0:
        raise CodecError(
            ErrorKind.IMMEDIATE_OUT_OF_RANGE,
            f"{spec.mnemonic} takes no address offset, got {mem.offset}",
            field="offset",
            token=mem.offset,
        )
    ctx.put(F.RD, to_index(rd))
    ctx.put(F.RS1, to_index(mem.base))
    ctx.put(F.RS2, rs2)
    ctx.put(F.AMO_FUNCT5, spec.funct5 or 0)


# I-format


def _decode_i(ctx: FieldCtx, opcode: Opcode, isa: IsaOption) -> Decoded:
    spec = resolve(opcode, ctx.get(F.FUNCT3))
    if spec is None and opcode in _SHIFT_OPCODES:
        return _decode_shift(ctx, opcode, isa)
    spec = _allowed(spec, ctx, opcode, isa)
    rd, rs1 = _reg(ctx, F.RD), _reg(ctx, F.RS1)
    imm = I_IMMEDIATE.decode(ctx.word)
    ctx.record_layout(
        F.LAYOUTS[Format.I],
        _common(spec, **{"imm[11:0]": str(imm), "rs1": rs1, "rd": rd}),
    )
    if opcode is Opcode.LOAD:
        return _finish(ctx, spec, (rd, f"{imm}({rs1})"), isa, (("rd",), ("imm[11:0]", "rs1")))
    return _finish(ctx, spec, (rd, rs1, str(imm)), isa, (("rd",), ("rs1",), ("imm[11:0]",)))


def _decode_shift(ctx: FieldCtx, opcode: Opcode, isa: IsaOption) -> Decoded:
    # Auto-detection reads the widest shamt field and infers the width after.
    bits = shamt_bits(opcode, isa.max_xlen)
    high_rng, shamt_rng = F.SHIFT_FIELDS[bits]
    shtyp_mask = 1 << (F.SHTYP_BIT - high_rng.lo)
    high = ctx.get(high_rng)

    spec = resolve(opcode, ctx.get(F.FUNCT3), 1 if high & shtyp_mask else 0)
    if spec is None and has_funct3(opcode, ctx.get(F.FUNCT3)):
        raise CodecError(
            ErrorKind.INVALID_FUNCT,
            f"No {opcode.name} shift with {high_rng.name}={high_rng.bits(ctx.word)}",
            field=high_rng.name,
        )
    spec = _allowed(spec, ctx, opcode, isa)
    if high & ~shtyp_mask:
        raise CodecError(
            ErrorKind.INVALID_FUNCT,
            f"{spec.mnemonic} requires {high_rng.name} to be "
            f"{format(shtyp_mask if spec.shtyp else 0, f'0{high_rng.width}b')}, "
            f"got {high_rng.bits(ctx.word)}",
            field=high_rng.name,
        )

    shamt = ctx.get(shamt_rng)
    needed = xlen_for_shamt(shamt) if opcode is Opcode.OP_IMM else spec.xlen
    layout_bits = shamt_bits(opcode, isa.xlen or max(spec.xlen, needed))
    high_rng, shamt_rng = F.SHIFT_FIELDS[layout_bits]
    logger.debug("%s: shamt=%d rendered with %d-bit layout", spec.mnemonic, shamt, layout_bits)

    rd, rs1 = _reg(ctx, F.RD), _reg(ctx, F.RS1)
    ctx.record_layout(
        F.shift_layout(layout_bits),
        _common(
            spec,
            **{high_rng.name: spec.mnemonic, shamt_rng.name: str(shamt), "rs1": rs1, "rd": rd},
        ),
    )
    return _finish(
        ctx, spec, (rd, rs1, str(shamt)), isa, (("rd",), ("rs1",), (shamt_rng.name,)), needed
    )


def _encode_i(ctx: FieldCtx, spec: OpSpec, operands: Sequence[Operand], isa: IsaOption) -> None:
    if spec.is_shift:
        _encode_shift(ctx, spec, operands, isa)
        return

    if spec.opcode is Opcode.LOAD or (spec.opcode is Opcode.JALR and len(operands) == 2):
        rd, mem = _expect(spec, operands, "rm")
        rs1, offset = mem.base, mem.offset
    else:
        rd, rs1, offset = _expect(spec, operands, "rrr")

    ctx.put(F.RD, to_index(rd))
    ctx.put(F.RS1, to_index(rs1))
    _imm(ctx, I_IMMEDIATE, offset)


def _encode_shift(ctx: FieldCtx, spec: OpSpec, operands: Sequence[Operand], isa: IsaOption) -> None:
    rd, rs1, token = _expect(spec, operands, "rrr")
    bits = shamt_bits(spec.opcode, isa.max_xlen)
    high_rng, shamt_rng = F.SHIFT_FIELDS[bits]

    ctx.put(F.RD, to_index(rd))
    ctx.put(F.RS1, to_index(rs1))
    shamt = check_unsigned(parse_immediate(token), bits, shamt_rng.name, token)
    ctx.put(shamt_rng, shamt)
    ctx.put(high_rng, (spec.shtyp or 0) << (F.SHTYP_BIT - high_rng.lo))


# S-format


def _decode_s(ctx: FieldCtx, opcode: Opcode, isa: IsaOption) -> Decoded:
    spec = _allowed(resolve(opcode, ctx.get(F.FUNCT3)), ctx, opcode, isa)
    rs1, rs2 = _reg(ctx, F.RS1), _reg(ctx, F.RS2)
    imm = str(S_IMMEDIATE.decode(ctx.word))
    ctx.record_layout(
        F.LAYOUTS[Format.S],
        _common(spec, **{"imm[11:5]": imm, "rs2": rs2, "rs1": rs1, "imm[4:0]": imm}),
    )
    return _finish(
        ctx, spec, (rs2, f"{imm}({rs1})"), isa, (("rs2",), _imm_fields(S_IMMEDIATE) + ("rs1",))
    )


def _encode_s(ctx: FieldCtx, spec: OpSpec, operands: Sequence[Operand], isa: IsaOption) -> None:
    rs2, mem = _expect(spec, operands, "rm")
    ctx.put(F.RS2, to_index(rs2))
    ctx.put(F.RS1, to_index(mem.base))
    _imm(ctx, S_IMMEDIATE, mem.offset)


# B-format


def _decode_b(ctx: FieldCtx, opcode: Opcode, isa: IsaOption) -> Decoded:
    spec = _allowed(resolve(opcode, ctx.get(F.FUNCT3)), ctx, opcode, isa)
    rs1, rs2 = _reg(ctx, F.RS1), _reg(ctx, F.RS2)
    imm = str(B_IMMEDIATE.decode(ctx.word))
    values = {piece.field.name: imm for piece in B_IMMEDIATE.pieces}
    ctx.record_layout(F.LAYOUTS[Format.B], _common(spec, rs2=rs2, rs1=rs1, **values))
    return _finish(
        ctx, spec, (rs1, rs2, imm), isa, (("rs1",), ("rs2",), _imm_fields(B_IMMEDIATE))
    )


def _encode_b(ctx: FieldCtx, spec: OpSpec, operands: Sequence[Operand], isa: IsaOption) -> None:
    rs1, rs2, offset = _expect(spec, operands, "rrr")
    ctx.put(F.RS1, to_index(rs1))
    ctx.put(F.RS2, to_index(rs2))
    _imm(ctx, B_IMMEDIATE, offset)


# U- and J-format share the "rd, imm" shape


def _upper_decoder(fmt: Format, layout: ImmediateLayout):
    def decode(ctx: FieldCtx, opcode: Opcode, isa: IsaOption) -> Decoded:
        spec = resolve(opcode)
        assert spec is not None, opcode
        rd = _reg(ctx, F.RD)
        imm = str(layout.decode(ctx.word))
        values = {piece.field.name: imm for piece in layout.pieces}
        ctx.record_layout(F.LAYOUTS[fmt], dict(values, rd=rd, opcode=spec.mnemonic))
        return _finish(ctx, spec, (rd, imm), isa, (("rd",), _imm_fields(layout)))

    return decode


def _upper_encoder(layout: ImmediateLayout):
    def encode(ctx: FieldCtx, spec: OpSpec, operands: Sequence[Operand], isa: IsaOption) -> None:
        rd, imm = _expect(spec, operands, "rr")
        ctx.put(F.RD, to_index(rd))
        _imm(ctx, layout, imm)

    return encode


# SYSTEM


def _decode_system(ctx: FieldCtx, opcode: Opcode, isa: IsaOption) -> Decoded:
    _reserved_zero(ctx, "SYSTEM", F.RD, F.RS1, F.FUNCT3)
    funct12 = ctx.get(F.FUNCT12)
    spec = resolve(opcode, 0, funct12)
    if spec is None:
        raise CodecError(
            ErrorKind.INVALID_FUNCT,
            f"No SYSTEM operation with funct12={funct12:012b}",
            field="funct12",
        )
    ctx.record_layout(
        F.LAYOUTS[Format.SYSTEM], {rng.name: spec.mnemonic for rng in F.LAYOUTS[Format.SYSTEM]}
    )
    return _finish(ctx, spec, (), isa)


def _encode_system(ctx: FieldCtx, spec: OpSpec, operands: Sequence[Operand], isa: IsaOption) -> None:
    _expect(spec, operands, "")
    ctx.put(F.FUNCT12, spec.funct12 or 0)


# FENCE


def render_fence_flags(value: int) -> str:
    flags = "".join(
        flag for i, flag in enumerate(FENCE_FLAGS) if value & (1 << (len(FENCE_FLAGS) - 1 - i))
    )
    return flags or "0"


def parse_fence_flags(token: str) -> int:
    if token == "0":
        return 0
    value = 0
    for char in token:
        pos = FENCE_FLAGS.find(char)
        bit = 1 << (len(FENCE_FLAGS) - 1 - pos)
        if pos < 0 or value & bit:
            raise CodecError(
                ErrorKind.INVALID_IMMEDIATE,
                f"Bad fence flag set {token!r}; expected a subset of {FENCE_FLAGS!r}",
                token=token,
            )
        value |= bit
    return value


def _decode_fence(ctx: FieldCtx, opcode: Opcode, isa: IsaOption) -> Decoded:
    _reserved_zero(ctx, "FENCE", F.FENCE_FM, F.RS1, F.FUNCT3, F.RD)
    spec = resolve(opcode, 0)
    assert spec is not None
    pred = render_fence_flags(ctx.get(F.FENCE_PRED))
    succ = render_fence_flags(ctx.get(F.FENCE_SUCC))
    values = {rng.name: spec.mnemonic for rng in F.LAYOUTS[Format.FENCE]}
    values.update(pred=pred, succ=succ)
    ctx.record_layout(F.LAYOUTS[Format.FENCE], values)
    return _finish(ctx, spec, (pred, succ), isa, (("pred",), ("succ",)))


def _encode_fence(ctx: FieldCtx, spec: OpSpec, operands: Sequence[Operand], isa: IsaOption) -> None:
    pred, succ = _expect(spec, operands, "rr")
    ctx.put(F.FENCE_PRED, parse_fence_flags(pred))
    ctx.put(F.FENCE_SUCC, parse_fence_flags(succ))


DecodeFunc = Callable[[FieldCtx, Opcode, IsaOption], Decoded]
EncodeFunc = Callable[[FieldCtx, OpSpec, Sequence[Operand], IsaOption], None]


class FormatStrategy(NamedTuple):
    decode: DecodeFunc
    encode: EncodeFunc


STRATEGIES: Dict[Format, FormatStrategy] = {
    Format.R: FormatStrategy(_decode_r, _encode_r),
    Format.I: FormatStrategy(_decode_i, _encode_i),
    Format.S: FormatStrategy(_decode_s, _encode_s),
    Format.B: FormatStrategy(_decode_b, _encode_b),
    Format.U: FormatStrategy(_upper_decoder(Format.U, U_IMMEDIATE), _upper_encoder(U_IMMEDIATE)),
    Format.J: FormatStrategy(_upper_decoder(Format.J, J_IMMEDIATE), _upper_encoder(J_IMMEDIATE)),
    Format.SYSTEM: FormatStrategy(_decode_system, _encode_system),
    Format.FENCE: FormatStrategy(_decode_fence, _encode_fence),
}


__all__ = [
    "Decoded",
    "FormatStrategy",
    "STRATEGIES",
    "parse_fence_flags",
    "render_fence_flags",
    "shamt_bits",
    "xlen_for_shamt",
]
