"""
Static operation table.

Built once at import time and exposed read-only.  Decoding resolves an
operation through an inverse index keyed by ``(opcode, funct3,
discriminator)`` where the discriminator is funct7 for R-format, the shift
type bit for shift immediates, funct12 for SYSTEM and funct5 for atomics.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from .config import IsaOption
from .constants import Format, Opcode, Xlen
from .errors import CodecError, ErrorKind

OPCODE_FORMATS: Mapping[Opcode, Format] = MappingProxyType(
    {
        Opcode.LOAD: Format.I,
        Opcode.MISC_MEM: Format.FENCE,
        Opcode.OP_IMM: Format.I,
        Opcode.AUIPC: Format.U,
        Opcode.OP_IMM_32: Format.I,
        Opcode.STORE: Format.S,
        Opcode.AMO: Format.R,
        Opcode.OP: Format.R,
        Opcode.LUI: Format.U,
        Opcode.OP_32: Format.R,
        Opcode.OP_IMM_64: Format.I,
        Opcode.BRANCH: Format.B,
        Opcode.JALR: Format.I,
        Opcode.JAL: Format.J,
        Opcode.SYSTEM: Format.SYSTEM,
        Opcode.OP_64: Format.R,
    }
)

# Opcodes that only exist on wider registers.
OPCODE_XLEN: Mapping[Opcode, Xlen] = MappingProxyType(
    {
        Opcode.OP_IMM_32: Xlen.RV64,
        Opcode.OP_32: Xlen.RV64,
        Opcode.OP_IMM_64: Xlen.RV128,
        Opcode.OP_64: Xlen.RV128,
    }
)

FunctKey = Tuple[int, Optional[int], Optional[int]]


@dataclass(frozen=True, slots=True)
class OpSpec:
    mnemonic: str
    fmt: Format
    opcode: Opcode
    funct3: Optional[int] = None
    funct7: Optional[int] = None
    funct12: Optional[int] = None
    funct5: Optional[int] = None
    shtyp: Optional[int] = None
    extension: str = "I"
    xlen: Xlen = Xlen.RV32

    @property
    def is_shift(self) -> bool:
        return self.shtyp is not None

    @property
    def is_atomic(self) -> bool:
        return self.funct5 is not None

    @property
    def discriminator(self) -> Optional[int]:
        for value in (self.funct7, self.funct12, self.funct5):
            if value is not None:
                return value
        return self.shtyp

    @property
    def key(self) -> FunctKey:
        return (int(self.opcode), self.funct3, self.discriminator)

    def isa_label(self, xlen: Xlen) -> str:
        return f"RV{int(xlen)}{self.extension}"


_ALU_OPS = (
    ("add", 0b000, 0b0000000),
    ("sub", 0b000, 0b0100000),
    ("sll", 0b001, 0b0000000),
    ("slt", 0b010, 0b0000000),
    ("sltu", 0b011, 0b0000000),
    ("xor", 0b100, 0b0000000),
    ("srl", 0b101, 0b0000000),
    ("sra", 0b101, 0b0100000),
    ("or", 0b110, 0b0000000),
    ("and", 0b111, 0b0000000),
)
_WIDE_ALU_OPS = ("add", "sub", "sll", "srl", "sra")

MULDIV_FUNCT7 = 0b0000001
_MULDIV_OPS = (
    ("mul", 0b000),
    ("mulh", 0b001),
    ("mulhsu", 0b010),
    ("mulhu", 0b011),
    ("div", 0b100),
    ("divu", 0b101),
    ("rem", 0b110),
    ("remu", 0b111),
)
_WIDE_MULDIV_OPS = ("mul", "div", "divu", "rem", "remu")

_IMM_SHIFTS = (("sll", 0b001, 0), ("srl", 0b101, 0), ("sra", 0b101, 1))

LR_FUNCT5 = 0b00010
_AMO_OPS = (
    ("lr", LR_FUNCT5),
    ("sc", 0b00011),
    ("amoswap", 0b00001),
    ("amoadd", 0b00000),
    ("amoxor", 0b00100),
    ("amoand", 0b01100),
    ("amoor", 0b01000),
    ("amomin", 0b10000),
    ("amomax", 0b10100),
    ("amominu", 0b11000),
    ("amomaxu", 0b11100),
)
_AMO_WIDTHS = ((".w", 0b010, Xlen.RV32), (".d", 0b011, Xlen.RV64), (".q", 0b100, Xlen.RV128))

# Acquire/release suffixes of atomic mnemonics and their (aq, rl) bits.
ORDERING_SUFFIXES: Mapping[str, Tuple[int, int]] = MappingProxyType(
    {"": (0, 0), ".aq": (1, 0), ".rl": (0, 1), ".aqrl": (1, 1)}
)


def _build_operations() -> List[OpSpec]:
    specs: List[OpSpec] = []

    def add(mnemonic: str, opcode: Opcode, funct3: Optional[int] = None, **kw) -> None:
        kw.setdefault("xlen", OPCODE_XLEN.get(opcode, Xlen.RV32))
        specs.append(OpSpec(mnemonic, OPCODE_FORMATS[opcode], opcode, funct3, **kw))

    add("lui", Opcode.LUI)
    add("auipc", Opcode.AUIPC)
    add("jal", Opcode.JAL)
    add("jalr", Opcode.JALR, 0b000)

    for name, funct3 in (
        ("beq", 0b000), ("bne", 0b001), ("blt", 0b100),
        ("bge", 0b101), ("bltu", 0b110), ("bgeu", 0b111),
    ):  # fmt: skip
        add(name, Opcode.BRANCH, funct3)

    for name, funct3, xlen in (
        ("lb", 0b000, Xlen.RV32),
        ("lh", 0b001, Xlen.RV32),
        ("lw", 0b010, Xlen.RV32),
        ("ld", 0b011, Xlen.RV64),
        ("lbu", 0b100, Xlen.RV32),
        ("lhu", 0b101, Xlen.RV32),
        ("lwu", 0b110, Xlen.RV64),
        ("ldu", 0b111, Xlen.RV128),
    ):
        add(name, Opcode.LOAD, funct3, xlen=xlen)

    for name, funct3, xlen in (
        ("sb", 0b000, Xlen.RV32),
        ("sh", 0b001, Xlen.RV32),
        ("sw", 0b010, Xlen.RV32),
        ("sd", 0b011, Xlen.RV64),
        ("sq", 0b100, Xlen.RV128),
    ):
        add(name, Opcode.STORE, funct3, xlen=xlen)

    for name, funct3 in (
        ("addi", 0b000), ("slti", 0b010), ("sltiu", 0b011),
        ("xori", 0b100), ("ori", 0b110), ("andi", 0b111),
    ):  # fmt: skip
        add(name, Opcode.OP_IMM, funct3)

    for suffix, imm_opcode, reg_opcode in (
        ("", Opcode.OP_IMM, Opcode.OP),
        ("w", Opcode.OP_IMM_32, Opcode.OP_32),
        ("d", Opcode.OP_IMM_64, Opcode.OP_64),
    ):
        if suffix:
            add(f"addi{suffix}", imm_opcode, 0b000)
        for base, funct3, shtyp in _IMM_SHIFTS:
            add(f"{base}i{suffix}", imm_opcode, funct3, shtyp=shtyp)
        for base, funct3, funct7 in _ALU_OPS:
            if suffix and base not in _WIDE_ALU_OPS:
                continue
            add(f"{base}{suffix}", reg_opcode, funct3, funct7=funct7)
        for base, funct3 in _MULDIV_OPS:
            if suffix and base not in _WIDE_MULDIV_OPS:
                continue
            add(
                f"{base}{suffix}",
                reg_opcode,
                funct3,
                funct7=MULDIV_FUNCT7,
                extension="M",
            )

    for suffix, funct3, xlen in _AMO_WIDTHS:
        for base, funct5 in _AMO_OPS:
            add(
                f"{base}{suffix}",
                Opcode.AMO,
                funct3,
                funct5=funct5,
                extension="A",
                xlen=xlen,
            )

    add("fence", Opcode.MISC_MEM, 0b000)
    add("ecall", Opcode.SYSTEM, 0b000, funct12=0)
    add("ebreak", Opcode.SYSTEM, 0b000, funct12=1)
    return specs


def _index(specs: List[OpSpec]) -> Tuple[Dict[str, OpSpec], Dict[FunctKey, OpSpec]]:
    by_name: Dict[str, OpSpec] = {}
    by_funct: Dict[FunctKey, OpSpec] = {}
    for spec in specs:
        if spec.mnemonic in by_name:
            raise ValueError(f"Duplicate mnemonic {spec.mnemonic}")
        if spec.key in by_funct:
            raise ValueError(
                f"{spec.mnemonic} collides with {by_funct[spec.key].mnemonic}"
            )
        by_name[spec.mnemonic] = spec
        by_funct[spec.key] = spec
    return by_name, by_funct


_by_name, _by_funct = _index(_build_operations())

OPERATIONS: Mapping[str, OpSpec] = MappingProxyType(_by_name)
FUNCT_INDEX: Mapping[FunctKey, OpSpec] = MappingProxyType(_by_funct)

del _by_name, _by_funct

_FUNCT3_KEYS = frozenset((opcode, funct3) for opcode, funct3, _ in FUNCT_INDEX)


def resolve(
    opcode: int, funct3: Optional[int] = None, discriminator: Optional[int] = None
) -> Optional[OpSpec]:
    return FUNCT_INDEX.get((opcode, funct3, discriminator))


def has_funct3(opcode: int, funct3: int) -> bool:
    """True if any operation uses this opcode with this funct3."""
    return (opcode, funct3) in _FUNCT3_KEYS


def lookup(mnemonic: str, isa: IsaOption = IsaOption.AUTO) -> OpSpec:
    spec = OPERATIONS.get(mnemonic)
    if spec is None:
        raise CodecError(
            ErrorKind.INVALID_OPERATION, f"Unknown mnemonic {mnemonic!r}", token=mnemonic
        )
    if spec.xlen > isa.max_xlen:
        raise CodecError(
            ErrorKind.INVALID_OPERATION,
            f"{mnemonic} requires RV{int(spec.xlen)}, configured for {isa.value}",
            token=mnemonic,
        )
    return spec


def split_ordering(mnemonic: str) -> Tuple[str, int, int]:
    """Split an atomic mnemonic such as ``amoadd.w.aqrl`` into base, aq and rl."""
    for suffix, (aq, rl) in ORDERING_SUFFIXES.items():
        if not suffix or not mnemonic.endswith(suffix):
            continue
        base = mnemonic[: -len(suffix)]
        spec = OPERATIONS.get(base)
        if spec is not None and spec.is_atomic:
            return base, aq, rl
    return mnemonic, 0, 0


def ordering_suffix(aq: int, rl: int) -> str:
    for suffix, bits in ORDERING_SUFFIXES.items():
        if bits == (aq, rl):
            return suffix
    raise ValueError(f"Bad ordering bits aq={aq} rl={rl}")


def iter_mnemonics(isa: IsaOption = IsaOption.AUTO) -> Iterator[str]:
    limit = isa.max_xlen
    for name in sorted(OPERATIONS):
        if OPERATIONS[name].xlen <= limit:
            yield name


__all__ = [
    "FUNCT_INDEX",
    "LR_FUNCT5",
    "ORDERING_SUFFIXES",
    "OPCODE_FORMATS",
    "OPCODE_XLEN",
    "OPERATIONS",
    "OpSpec",
    "has_funct3",
    "iter_mnemonics",
    "lookup",
    "ordering_suffix",
    "resolve",
    "split_ordering",
]
