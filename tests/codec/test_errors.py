from __future__ import annotations

from typing import List, NamedTuple, Optional

import pytest

from rvcodec import (
    CodecConfig,
    CodecError,
    Err,
    ErrorKind,
    IsaOption,
    Ok,
    convert,
    decode,
    encode,
    translate,
)


class ErrorCase(NamedTuple):
    test_id: str
    text: str
    kind: ErrorKind
    field: Optional[str] = None
    config: CodecConfig = CodecConfig()


error_cases: List[ErrorCase] = [
    # input shape
    ErrorCase("empty", "", ErrorKind.MALFORMED_INPUT_FORMAT),
    ErrorCase("short_binary", "1010", ErrorKind.MALFORMED_INPUT_FORMAT),
    ErrorCase("short_hex", "0x1234567", ErrorKind.MALFORMED_INPUT_FORMAT),
    ErrorCase("binary_33_bits", "0" * 33, ErrorKind.MALFORMED_INPUT_FORMAT),
    ErrorCase("punctuation", "!!", ErrorKind.MALFORMED_INPUT_FORMAT),
    ErrorCase("double_comma", "add x1,, x2", ErrorKind.MALFORMED_INPUT_FORMAT),
    ErrorCase("unclosed_paren", "lw x1, 4(x2", ErrorKind.MALFORMED_INPUT_FORMAT),
    # decode
    ErrorCase(
        "unknown_opcode",
        "00000000000000000000000001111111",
        ErrorKind.INVALID_OPCODE,
        field="opcode",
    ),
    ErrorCase(
        "wide_opcode_on_rv32",
        "00000000011100110000001010111011",
        ErrorKind.INVALID_OPCODE,
        field="opcode",
        config=CodecConfig(isa=IsaOption.RV32I),
    ),
    ErrorCase(
        "rv128_opcode_on_rv64",
        "01000000011100110000001011111011",
        ErrorKind.INVALID_OPCODE,
        config=CodecConfig(isa=IsaOption.RV64I),
    ),
    ErrorCase(
        "r_bad_funct7",
        "00000100001100010000000010110011",
        ErrorKind.INVALID_FUNCT,
        field="funct7",
    ),
    ErrorCase(
        "branch_bad_funct3",
        "00000000000000000010000001100011",
        ErrorKind.INVALID_FUNCT,
        field="funct3",
    ),
    ErrorCase(
        "jalr_bad_funct3",
        "00000000000000000001000011100111",
        ErrorKind.INVALID_FUNCT,
        field="funct3",
    ),
    ErrorCase(
        "ld_on_rv32",
        "00000000000000010011000010000011",
        ErrorKind.INVALID_FUNCT,
        config=CodecConfig(isa=IsaOption.RV32I),
    ),
    ErrorCase(
        "shift_reserved_high_bit",
        "00100000010100001101001110010011",
        ErrorKind.INVALID_FUNCT,
        field="imm[11:7]",
    ),
    ErrorCase(
        "slli_with_arithmetic_bit",
        "01000000010100001001001110010011",
        ErrorKind.INVALID_FUNCT,
        field="imm[11:7]",
    ),
    ErrorCase(
        "rv32_shamt_overflow",
        "00000010000000001101001110010011",
        ErrorKind.INVALID_FUNCT,
        field="imm[11:5]",
        config=CodecConfig(isa=IsaOption.RV32I),
    ),
    ErrorCase(
        "system_rd",
        "00000000000000000000000011110011",
        ErrorKind.RESERVED_FIELD_VIOLATION,
        field="rd",
    ),
    ErrorCase(
        "system_rs1",
        "00000000000000001000000001110011",
        ErrorKind.RESERVED_FIELD_VIOLATION,
        field="rs1",
    ),
    ErrorCase(
        "system_funct3",
        "00000000000000000001000001110011",
        ErrorKind.RESERVED_FIELD_VIOLATION,
        field="funct3",
    ),
    ErrorCase(
        "system_funct12",
        "00000000001000000000000001110011",
        ErrorKind.INVALID_FUNCT,
        field="funct12",
    ),
    ErrorCase(
        "fence_mode",
        "10000011001100000000000000001111",
        ErrorKind.RESERVED_FIELD_VIOLATION,
        field="fm",
    ),
    ErrorCase(
        "fence_rd",
        "00000011001100000000000010001111",
        ErrorKind.RESERVED_FIELD_VIOLATION,
        field="rd",
    ),
    ErrorCase(
        "fence_rs1",
        "00000011001100001000000000001111",
        ErrorKind.RESERVED_FIELD_VIOLATION,
        field="rs1",
    ),
    ErrorCase(
        "fence_funct3",
        "00000000000000000001000000001111",
        ErrorKind.RESERVED_FIELD_VIOLATION,
        field="funct3",
    ),
    ErrorCase(
        "lr_with_rs2",
        "0x101120af",
        ErrorKind.RESERVED_FIELD_VIOLATION,
        field="rs2",
    ),
    ErrorCase("amo_bad_funct5", "0x283120af", ErrorKind.INVALID_FUNCT, field="funct5"),
    ErrorCase("amo_bad_funct3", "0x003110af", ErrorKind.INVALID_FUNCT, field="funct3"),
    ErrorCase(
        "amo_double_on_rv32",
        "0x003130af",
        ErrorKind.INVALID_FUNCT,
        config=CodecConfig(isa=IsaOption.RV32I),
    ),
    # encode
    ErrorCase("unknown_mnemonic", "frob x1, x2", ErrorKind.INVALID_OPERATION),
    ErrorCase(
        "wide_mnemonic_on_rv32",
        "addw x1, x2, x3",
        ErrorKind.INVALID_OPERATION,
        config=CodecConfig(isa=IsaOption.RV32I),
    ),
    ErrorCase("too_few_operands", "add x1, x2", ErrorKind.INVALID_OPERAND_COUNT),
    ErrorCase("too_many_operands", "lui x1, 4096, x2", ErrorKind.INVALID_OPERAND_COUNT),
    ErrorCase("ecall_with_operand", "ecall x1", ErrorKind.INVALID_OPERAND_COUNT),
    ErrorCase("load_without_memory_syntax", "lw x1, x2", ErrorKind.INVALID_OPERAND_COUNT),
    ErrorCase("memory_syntax_on_alu", "add x1, 0(x2)", ErrorKind.INVALID_OPERAND_COUNT),
    ErrorCase("register_out_of_range", "add x1, x2, x32", ErrorKind.INVALID_REGISTER_TOKEN),
    ErrorCase("register_unknown", "add x1, x2, q9", ErrorKind.INVALID_REGISTER_TOKEN),
    ErrorCase("register_leading_zero", "add x01, x2, x3", ErrorKind.INVALID_REGISTER_TOKEN),
    ErrorCase("memory_base_register", "sw x1, 4(x99)", ErrorKind.INVALID_REGISTER_TOKEN),
    ErrorCase("ordering_on_plain_op", "add.aq x1, x2, x3", ErrorKind.INVALID_OPERATION),
    ErrorCase(
        "amo_double_encode_on_rv32",
        "amoadd.d x1, x3, (x2)",
        ErrorKind.INVALID_OPERATION,
        config=CodecConfig(isa=IsaOption.RV32I),
    ),
    ErrorCase("amo_without_parens", "amoadd.w x1, x3, x2", ErrorKind.INVALID_OPERAND_COUNT),
    ErrorCase("lr_with_source", "lr.w x1, x3, (x2)", ErrorKind.INVALID_OPERAND_COUNT),
    ErrorCase(
        "amo_with_offset",
        "amoadd.w x1, x3, 4(x2)",
        ErrorKind.IMMEDIATE_OUT_OF_RANGE,
        field="offset",
    ),
    ErrorCase("bad_immediate", "addi x1, x2, abc", ErrorKind.INVALID_IMMEDIATE),
    ErrorCase("bad_fence_flag", "fence rx, rw", ErrorKind.INVALID_IMMEDIATE),
    ErrorCase("repeated_fence_flag", "fence rr, w", ErrorKind.INVALID_IMMEDIATE),
    ErrorCase(
        "shamt_overflow_auto",
        "slli x1, x2, 128",
        ErrorKind.IMMEDIATE_OUT_OF_RANGE,
        field="shamt[6:0]",
    ),
    ErrorCase(
        "shamt_overflow_rv32",
        "slli x1, x2, 32",
        ErrorKind.IMMEDIATE_OUT_OF_RANGE,
        field="shamt[4:0]",
        config=CodecConfig(isa=IsaOption.RV32I),
    ),
    ErrorCase("shamt_overflow_word", "slliw x1, x2, 32", ErrorKind.IMMEDIATE_OUT_OF_RANGE),
    ErrorCase("shamt_negative", "srai x1, x2, -1", ErrorKind.IMMEDIATE_OUT_OF_RANGE),
    ErrorCase(
        "strict_i_overflow",
        "addi x1, x0, 4096",
        ErrorKind.IMMEDIATE_OUT_OF_RANGE,
        field="I",
        config=CodecConfig(strict_immediates=True),
    ),
    ErrorCase(
        "strict_odd_branch",
        "beq x1, x2, 3",
        ErrorKind.IMMEDIATE_OUT_OF_RANGE,
        field="B",
        config=CodecConfig(strict_immediates=True),
    ),
    ErrorCase(
        "strict_lui_low_bits",
        "lui x1, 4097",
        ErrorKind.IMMEDIATE_OUT_OF_RANGE,
        field="U",
        config=CodecConfig(strict_immediates=True),
    ),
]


@pytest.mark.parametrize("case", error_cases, ids=lambda c: c.test_id)
def test_error_kind(case: ErrorCase) -> None:
    with pytest.raises(CodecError) as exc_info:
        convert(case.text, case.config)
    assert exc_info.value.kind is case.kind
    if case.field is not None:
        assert exc_info.value.field == case.field


@pytest.mark.parametrize("case", error_cases, ids=lambda c: c.test_id)
def test_translate_returns_tagged_error(case: ErrorCase) -> None:
    result = translate(case.text, case.config)
    assert isinstance(result, Err)
    assert not result.ok
    assert result.kind is case.kind
    with pytest.raises(CodecError):
        result.unwrap()


def test_translate_returns_ok() -> None:
    result = translate("addi x15, x1, -50")
    assert isinstance(result, Ok)
    assert result.ok
    assert result.unwrap().hex == "0xfce08793"


def test_decode_rejects_assembly_input() -> None:
    with pytest.raises(CodecError) as exc_info:
        decode("add x1, x2, x3")
    assert exc_info.value.kind is ErrorKind.MALFORMED_INPUT_FORMAT


def test_encode_rejects_binary_input() -> None:
    with pytest.raises(CodecError) as exc_info:
        encode("00000000001100010000000010110011")
    assert exc_info.value.kind is ErrorKind.MALFORMED_INPUT_FORMAT


def test_error_names_offending_token() -> None:
    with pytest.raises(CodecError) as exc_info:
        encode("add x1, x2, q9")
    assert exc_info.value.token == "q9"
    assert str(exc_info.value).startswith("InvalidRegisterToken:")
