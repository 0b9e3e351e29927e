from __future__ import annotations

from typing import List

from hypothesis import strategies as st

from rvcodec.constants import FENCE_FLAGS, Format, Opcode, Xlen
from rvcodec.formats import shamt_bits
from rvcodec.optable import LR_FUNCT5, OPERATIONS, ORDERING_SUFFIXES, OpSpec
from rvcodec.registers import ABI_NAMES

SPECS: List[OpSpec] = sorted(OPERATIONS.values(), key=lambda spec: spec.mnemonic)

registers = st.integers(0, 31)


def _signed(bits: int) -> st.SearchStrategy[int]:
    return st.integers(-(1 << (bits - 1)), (1 << (bits - 1)) - 1)


@st.composite
def fence_flags(draw) -> str:
    chosen = [flag for flag in FENCE_FLAGS if draw(st.booleans())]
    return "".join(chosen) or "0"


@st.composite
def canonical_assembly(draw, spec: OpSpec | None = None) -> str:
    """Assembly text exactly as the codec renders it (numeric registers)."""
    if spec is None:
        spec = draw(st.sampled_from(SPECS))
    m = spec.mnemonic
    rd, rs1, rs2 = (f"x{draw(registers)}" for _ in range(3))

    if spec.is_atomic:
        m += draw(st.sampled_from(sorted(ORDERING_SUFFIXES)))
        if spec.funct5 == LR_FUNCT5:
            return f"{m} {rd}, ({rs1})"
        return f"{m} {rd}, {rs2}, ({rs1})"
    if spec.fmt is Format.R:
        return f"{m} {rd}, {rs1}, {rs2}"
    if spec.fmt is Format.I:
        if spec.is_shift:
            shamt = draw(st.integers(0, (1 << shamt_bits(spec.opcode, Xlen.RV128)) - 1))
            return f"{m} {rd}, {rs1}, {shamt}"
        imm = draw(_signed(12))
        if spec.opcode is Opcode.LOAD:
            return f"{m} {rd}, {imm}({rs1})"
        return f"{m} {rd}, {rs1}, {imm}"
    if spec.fmt is Format.S:
        return f"{m} {rs2}, {draw(_signed(12))}({rs1})"
    if spec.fmt is Format.B:
        return f"{m} {rs1}, {rs2}, {draw(_signed(12)) * 2}"
    if spec.fmt is Format.U:
        return f"{m} {rd}, {draw(_signed(20)) * 4096}"
    if spec.fmt is Format.J:
        return f"{m} {rd}, {draw(_signed(20)) * 2}"
    if spec.fmt is Format.FENCE:
        return f"{m} {draw(fence_flags())}, {draw(fence_flags())}"
    return m


@st.composite
def instruction_words(draw) -> int:
    """32-bit words carrying a known opcode; the other fields are random."""
    opcode = draw(st.sampled_from(list(Opcode)))
    upper = draw(st.integers(0, (1 << 25) - 1))
    return (upper << 7) | opcode


@st.composite
def abi_register_triples(draw) -> tuple[tuple[int, int, int], tuple[str, str, str]]:
    indices = (draw(registers), draw(registers), draw(registers))
    names = tuple(draw(st.sampled_from([f"x{i}", ABI_NAMES[i]])) for i in indices)
    return indices, names  # type: ignore[return-value]
