from __future__ import annotations

import pytest

from rvcodec.cli import RvCodecCLI


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch):
    for name in ("RVCODEC_ISA", "RVCODEC_ABI", "RVCODEC_STRICT_IMMEDIATES"):
        monkeypatch.delenv(name, raising=False)
    yield


def _run(*argv: str):
    _, code = RvCodecCLI.run(["rvcodec", *argv], exit=False)
    return code


def test_translates_each_argument(capsys) -> None:
    assert _run("addi x15, x1, -50", "0xff442503") == 0
    out = capsys.readouterr().out
    assert "addi x15, x1, -50" in out
    assert "0xfce08793" in out
    assert "lw x10, -12(x8)" in out
    assert "11111111010001000010010100000011" in out


def test_abi_and_fragments(capsys) -> None:
    assert _run("--abi", "--fragments", "add x8, x29, x16") == 0
    out = capsys.readouterr().out
    assert "add s0, t4, a6" in out
    assert "funct7" in out
    assert "opcode" in out


def test_isa_switch(capsys) -> None:
    assert _run("--isa", "rv32i", "addw x1, x2, x3") == 1
    err = capsys.readouterr().err
    assert "error[InvalidOperation]" in err


def test_env_config_is_used(monkeypatch, capsys) -> None:
    monkeypatch.setenv("RVCODEC_ABI", "1")
    assert _run("0xff442503") == 0
    assert "lw a0, -12(s0)" in capsys.readouterr().out


def test_failure_sets_exit_code(capsys) -> None:
    assert _run("ecall", "bogus x1") == 1
    captured = capsys.readouterr()
    assert "ecall" in captured.out
    assert "error[InvalidOperation]" in captured.err


def test_list_mnemonics(capsys) -> None:
    assert _run("--list", "sra") == 0
    lines = capsys.readouterr().out.splitlines()
    assert [line.split()[0] for line in lines] == ["sra", "srad", "srai", "sraid", "sraiw", "sraw"]
    assert lines[2].endswith("rd, rs1, shamt")


def test_fragments_in_assembly_order(capsys) -> None:
    assert _run("--fragments", "--asm-order", "lr.w.aq x1, (x2)") == 0
    out = capsys.readouterr().out
    assert out.splitlines()[0] == "lr.w.aq x1, (x2)"
    fields = [line.split("]", 1)[1].split()[0] for line in out.splitlines() if "] " in line]
    assert fields == ["funct5", "aq", "rl", "rs2", "funct3", "opcode", "rd", "rs1"]
