"""
Instruction facade.

Classifies one input string as binary, hexadecimal or assembly, runs the
format dispatcher in the matching direction and exposes every representation
of the result.  ``decode``/``encode``/``convert`` raise :class:`CodecError`;
``translate`` returns an :class:`Ok` or :class:`Err` instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import re
from typing import Optional, Tuple

from .asm import parse_assembly
from .config import CodecConfig
from .constants import HEX_DIGITS, WORD_BITS, Format, Xlen
from .dispatcher import FormatDispatcher
from .errors import CodecError, Err, ErrorKind, Ok, Result
from .fields import Fragment
from .formats import Decoded

logger = logging.getLogger(__name__)

_BINARY_RE = re.compile(rf"[01]{{{WORD_BITS}}}")
_HEX_RE = re.compile(rf"(?:0x)?([0-9a-f]{{{HEX_DIGITS}}})", re.IGNORECASE)
_ASSEMBLY_RE = re.compile(r"[a-z][a-z0-9.]*(\s.*)?", re.IGNORECASE | re.DOTALL)


class InputForm(str, Enum):
    BINARY = "binary"
    HEX = "hex"
    ASSEMBLY = "assembly"


def classify(text: str) -> InputForm:
    """Return the first input form ``text`` matches, in priority order."""
    if _BINARY_RE.fullmatch(text):
        return InputForm.BINARY
    if _HEX_RE.fullmatch(text):
        return InputForm.HEX
    if _ASSEMBLY_RE.fullmatch(text):
        return InputForm.ASSEMBLY
    raise CodecError(
        ErrorKind.MALFORMED_INPUT_FORMAT,
        f"{text!r} is not a {WORD_BITS}-bit binary string, "
        f"a {HEX_DIGITS}-digit hex word or an assembly instruction",
        token=text,
    )


def word_from_text(text: str, form: InputForm) -> int:
    if form is InputForm.BINARY:
        return int(text, 2)
    match = _HEX_RE.fullmatch(text)
    assert match is not None, text
    return int(match.group(1), 16)


@dataclass(frozen=True, slots=True)
class Instruction:
    word: int
    assembly: str
    mnemonic: str
    format: Format
    isa: str
    isa_width: Xlen
    # bit order, most significant field first
    fragments: Tuple[Fragment, ...]
    source: InputForm
    # assembly order: mnemonic fields, then each operand's fields
    asm_fragments: Tuple[Fragment, ...] = ()

    @property
    def binary(self) -> str:
        return format(self.word, f"0{WORD_BITS}b")

    @property
    def hex(self) -> str:
        return f"0x{self.hex_digits}"

    @property
    def hex_digits(self) -> str:
        return format(self.word, f"0{HEX_DIGITS}x")

    @classmethod
    def from_decoded(cls, decoded: Decoded, source: InputForm) -> "Instruction":
        return cls(
            word=decoded.word,
            assembly=decoded.assembly,
            mnemonic=decoded.mnemonic,
            format=decoded.op.fmt,
            isa=decoded.isa,
            isa_width=decoded.xlen,
            fragments=decoded.fragments,
            source=source,
            asm_fragments=decoded.asm_fragments,
        )

    def __str__(self) -> str:
        return self.assembly


def _translate(text: str, config: CodecConfig, *allowed: InputForm) -> Instruction:
    text = text.strip()
    form = classify(text)
    if form not in allowed:
        raise CodecError(
            ErrorKind.MALFORMED_INPUT_FORMAT,
            f"Expected {' or '.join(f.value for f in allowed)} input, got {form.value}",
            token=text,
        )
    dispatcher = FormatDispatcher(config)
    if form is InputForm.ASSEMBLY:
        decoded = dispatcher.assemble(parse_assembly(text))
    else:
        decoded = dispatcher.decode(word_from_text(text, form))
    logger.debug("%s input %r -> %s", form.value, text, decoded.assembly)
    return Instruction.from_decoded(decoded, form)


def decode(text: str, config: Optional[CodecConfig] = None) -> Instruction:
    """Decode a binary or hex instruction word."""
    return _translate(text, config or CodecConfig(), InputForm.BINARY, InputForm.HEX)


def encode(text: str, config: Optional[CodecConfig] = None) -> Instruction:
    """Encode one line of assembly."""
    return _translate(text, config or CodecConfig(), InputForm.ASSEMBLY)


def convert(text: str, config: Optional[CodecConfig] = None) -> Instruction:
    """Translate any accepted input form."""
    return _translate(text, config or CodecConfig(), *InputForm)


def translate(text: str, config: Optional[CodecConfig] = None) -> Result[Instruction]:
    try:
        return Ok(convert(text, config))
    except CodecError as e:
        logger.debug("rejected %r: %s", text, e)
        return Err(e)


__all__ = [
    "InputForm",
    "Instruction",
    "classify",
    "convert",
    "decode",
    "encode",
    "translate",
]
