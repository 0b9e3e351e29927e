"""Translate single RISC-V instructions between binary, hex and assembly."""

__version__ = "0.1.0"

from .config import CodecConfig, IsaOption, load_codec_config  # noqa: E402
from .constants import Format, Opcode, Xlen  # noqa: E402
from .errors import CodecError, Err, ErrorKind, Ok, Result  # noqa: E402
from .fields import Fragment  # noqa: E402
from .instruction import (  # noqa: E402
    InputForm,
    Instruction,
    classify,
    convert,
    decode,
    encode,
    translate,
)
from .operands import CANONICAL_OPERANDS, canonical_operands  # noqa: E402
from .optable import OPERATIONS, iter_mnemonics  # noqa: E402
from .registers import to_alias, to_index  # noqa: E402

__all__ = [
    "CANONICAL_OPERANDS",
    "CodecConfig",
    "CodecError",
    "Err",
    "ErrorKind",
    "Format",
    "Fragment",
    "InputForm",
    "Instruction",
    "IsaOption",
    "OPERATIONS",
    "Ok",
    "Opcode",
    "Result",
    "Xlen",
    "canonical_operands",
    "classify",
    "convert",
    "decode",
    "encode",
    "iter_mnemonics",
    "load_codec_config",
    "to_alias",
    "to_index",
    "translate",
]
