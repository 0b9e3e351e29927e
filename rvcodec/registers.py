from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping, Tuple

from .constants import REGISTER_COUNT
from .errors import CodecError, ErrorKind

ABI_NAMES: Tuple[str, ...] = (
    "zero", "ra", "sp", "gp", "tp", "t0", "t1", "t2",
    "s0", "s1", "a0", "a1", "a2", "a3", "a4", "a5",
    "a6", "a7", "s2", "s3", "s4", "s5", "s6", "s7",
    "s8", "s9", "s10", "s11", "t3", "t4", "t5", "t6",
)  # fmt: skip

assert len(ABI_NAMES) == REGISTER_COUNT

ABI_INDEX: Mapping[str, int] = MappingProxyType(
    {name: index for index, name in enumerate(ABI_NAMES)}
)

# Accepted on input only; s0 stays the rendered name for x8.
_SYNONYMS: Mapping[str, int] = MappingProxyType({"fp": 8})

_NUMERIC_RE = re.compile(r"x(0|[1-9][0-9]?)")


def to_alias(index: int, abi: bool = False) -> str:
    if not 0 <= index < REGISTER_COUNT:
        raise ValueError(f"Register index out of range: {index}")
    return ABI_NAMES[index] if abi else f"x{index}"


def to_index(token: str) -> int:
    name = token.strip().lower()
    match = _NUMERIC_RE.fullmatch(name)
    if match:
        index = int(match.group(1))
        if index < REGISTER_COUNT:
            return index
    elif name in ABI_INDEX:
        return ABI_INDEX[name]
    elif name in _SYNONYMS:
        return _SYNONYMS[name]
    raise CodecError(
        ErrorKind.INVALID_REGISTER_TOKEN, f"Unknown register {token!r}", token=token
    )


__all__ = ["ABI_INDEX", "ABI_NAMES", "to_alias", "to_index"]
