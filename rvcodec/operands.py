"""
Placeholder operand strings for an external mnemonic search component.

Nothing in the codec reads this table; it only pairs each mnemonic with a
hint such as ``"rd, rs1, imm"``.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Pattern, Tuple

from .constants import Opcode
from .optable import OPERATIONS, OpSpec

OPCODE_OPERANDS: Mapping[Opcode, str] = MappingProxyType(
    {
        Opcode.SYSTEM: "",
        Opcode.AUIPC: "rd, imm",
        Opcode.LUI: "rd, imm",
        Opcode.BRANCH: "rs1, rs2, offset",
        Opcode.JAL: "rd, offset",
        Opcode.JALR: "rd, rs1, offset",
        Opcode.OP: "rd, rs1, rs2",
        Opcode.OP_32: "rd, rs1, rs2",
        Opcode.OP_64: "rd, rs1, rs2",
        Opcode.OP_IMM: "rd, rs1, imm",
        Opcode.OP_IMM_32: "rd, rs1, imm",
        Opcode.OP_IMM_64: "rd, rs1, imm",
        Opcode.LOAD: "rd, offset(rs1)",
        Opcode.STORE: "rs2, offset(rs1)",
        Opcode.AMO: "rd, rs2, (rs1)",
        Opcode.MISC_MEM: "iorw, iorw",
    }
)

# Checked in order; first match wins over the opcode default.
OPERAND_EXCEPTIONS: Tuple[Tuple[Pattern[str], str], ...] = (
    (re.compile(r"^s(ll|rl|ra)i[wd]?$"), "rd, rs1, shamt"),
    (re.compile(r"^lr\."), "rd, (rs1)"),
)


def _hint(spec: OpSpec) -> str:
    for pattern, hint in OPERAND_EXCEPTIONS:
        if pattern.search(spec.mnemonic):
            return hint
    return OPCODE_OPERANDS[spec.opcode]


def build_canonical_operands(
    operations: Iterable[OpSpec], overrides: Optional[Mapping[str, str]] = None
) -> Mapping[str, str]:
    table = {spec.mnemonic: _hint(spec) for spec in operations}
    table.update(overrides or {})
    return MappingProxyType(table)


CANONICAL_OPERANDS = build_canonical_operands(OPERATIONS.values())


def canonical_operands(mnemonic: str) -> Optional[str]:
    return CANONICAL_OPERANDS.get(mnemonic.lower())


__all__ = [
    "CANONICAL_OPERANDS",
    "OPCODE_OPERANDS",
    "OPERAND_EXCEPTIONS",
    "build_canonical_operands",
    "canonical_operands",
]
