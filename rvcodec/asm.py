from __future__ import annotations

from dataclasses import dataclass
import os
from typing import List, Tuple, Union

from lark import Lark, Token, Transformer
from lark.exceptions import LarkError

from .errors import CodecError, ErrorKind


@dataclass(frozen=True, slots=True)
class MemOperand:
    offset: str
    base: str

    def __str__(self) -> str:
        return f"{self.offset}({self.base})"


Operand = Union[str, MemOperand]


@dataclass(frozen=True, slots=True)
class ParsedAssembly:
    mnemonic: str
    operands: Tuple[Operand, ...] = ()


grammar_path = os.path.join(os.path.dirname(__file__), "asm.lark")
with open(grammar_path, "r") as f:
    asm_grammar = f.read()

# The basic lexer keeps "ecall" from being split into a mnemonic and operand.
asm_parser = Lark(asm_grammar, parser="earley", lexer="basic", maybe_placeholders=False)


class AsmTransformer(Transformer):
    def start(self, items: List[object]) -> ParsedAssembly:
        mnemonic = str(items[0]).lower()
        operands: Tuple[Operand, ...] = items[1] if len(items) > 1 else ()  # type: ignore[assignment]
        return ParsedAssembly(mnemonic=mnemonic, operands=operands)

    def operand_list(self, items: List[Operand]) -> Tuple[Operand, ...]:
        return tuple(items)

    def plain(self, items: List[Token]) -> str:
        return str(items[0]).lower()

    def memory(self, items: List[Token]) -> MemOperand:
        return MemOperand(offset=str(items[0]).lower(), base=str(items[1]).lower())

    def bare_memory(self, items: List[Token]) -> MemOperand:
        return MemOperand(offset="0", base=str(items[0]).lower())


def parse_assembly(text: str) -> ParsedAssembly:
    try:
        tree = asm_parser.parse(text.strip())
        return AsmTransformer().transform(tree)
    except LarkError as e:
        raise CodecError(
            ErrorKind.MALFORMED_INPUT_FORMAT,
            f"Cannot parse assembly {text!r}",
            token=text,
        ) from e


__all__ = ["MemOperand", "Operand", "ParsedAssembly", "parse_assembly"]
