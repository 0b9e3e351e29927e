from __future__ import annotations

import logging

from . import fields as F
from .asm import ParsedAssembly
from .config import CodecConfig
from .constants import WORD_MASK, Opcode, Xlen
from .errors import CodecError, ErrorKind
from .fields import FieldCtx
from .formats import STRATEGIES, Decoded
from .optable import OPCODE_FORMATS, OPCODE_XLEN, lookup, split_ordering

logger = logging.getLogger(__name__)


class FormatDispatcher:
    """Route instruction words and parsed assembly to the format strategies."""

    def __init__(self, config: CodecConfig) -> None:
        self.config = config

    def decode(self, word: int) -> Decoded:
        if not 0 <= word <= WORD_MASK:
            raise ValueError(f"Instruction word out of range: {word:#x}")
        raw = F.OPCODE.extract(word)
        try:
            opcode = Opcode(raw)
        except ValueError:
            raise CodecError(
                ErrorKind.INVALID_OPCODE, f"Unknown opcode {raw:07b}", field="opcode"
            ) from None

        isa = self.config.isa
        needed = OPCODE_XLEN.get(opcode, Xlen.RV32)
        if needed > isa.max_xlen:
            raise CodecError(
                ErrorKind.INVALID_OPCODE,
                f"Opcode {opcode.name} requires RV{int(needed)}, configured for {isa.value}",
                field="opcode",
            )

        fmt = OPCODE_FORMATS[opcode]
        logger.debug("decode %08x: opcode %s -> %s-format", word, opcode.name, fmt.value)
        ctx = FieldCtx(word=word, abi=self.config.abi)
        return STRATEGIES[fmt].decode(ctx, opcode, isa)

    def encode(self, parsed: ParsedAssembly) -> int:
        mnemonic, aq, rl = split_ordering(parsed.mnemonic)
        spec = lookup(mnemonic, self.config.isa)
        logger.debug("encode %s: %s-format", spec.mnemonic, spec.fmt.value)
        ctx = FieldCtx(strict=self.config.strict_immediates)
        ctx.put(F.OPCODE, spec.opcode)
        if spec.is_atomic:
            ctx.put(F.AMO_AQ, aq)
            ctx.put(F.AMO_RL, rl)
        if spec.funct3 is not None:
            ctx.put(F.FUNCT3, spec.funct3)
        STRATEGIES[spec.fmt].encode(ctx, spec, parsed.operands, self.config.isa)
        return ctx.word

    def assemble(self, parsed: ParsedAssembly) -> Decoded:
        """Encode ``parsed`` and decode the result into canonical form."""
        return self.decode(self.encode(parsed))


__all__ = ["FormatDispatcher"]
