from __future__ import annotations

import pytest

from rvcodec import CodecError, ErrorKind
from rvcodec.asm import MemOperand, ParsedAssembly, parse_assembly


def test_plain_operands() -> None:
    assert parse_assembly("ADD x1, X2,x3") == ParsedAssembly("add", ("x1", "x2", "x3"))


def test_no_operands() -> None:
    assert parse_assembly("ecall") == ParsedAssembly("ecall", ())


def test_memory_operand() -> None:
    parsed = parse_assembly("lw a0, -12(s0)")
    assert parsed.operands == ("a0", MemOperand(offset="-12", base="s0"))
    assert str(parsed.operands[1]) == "-12(s0)"


def test_missing_offset_means_zero() -> None:
    parsed = parse_assembly("lr.w x1, ( x2 )")
    assert parsed == ParsedAssembly("lr.w", ("x1", MemOperand(offset="0", base="x2")))
    assert parse_assembly("lw x1, (x2)").operands[1] == MemOperand(offset="0", base="x2")


def test_whitespace_inside_memory_operand() -> None:
    parsed = parse_assembly("sw x1 , 0x10 ( sp )")
    assert parsed.operands == ("x1", MemOperand(offset="0x10", base="sp"))


@pytest.mark.parametrize(
    "text", ["add x1,", ", x1", "lw x1, ()", "lw x1, 4(x2))", "add x1 x2", "lr.w x1, (x2"]
)
def test_parse_errors_are_malformed_input(text: str) -> None:
    with pytest.raises(CodecError) as exc_info:
        parse_assembly(text)
    assert exc_info.value.kind is ErrorKind.MALFORMED_INPUT_FORMAT
