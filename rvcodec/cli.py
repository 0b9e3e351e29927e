from __future__ import annotations

import dataclasses
import logging
import sys

from plumbum import cli

from . import __version__
from .config import IsaOption, load_codec_config
from .errors import CodecError
from .instruction import Instruction, convert
from .operands import canonical_operands
from .optable import iter_mnemonics


def _print_instruction(inst: Instruction, show_fragments: bool, asm_order: bool) -> None:
    print(inst.assembly)
    print(f"  binary: {inst.binary}")
    print(f"  hex:    {inst.hex}")
    print(f"  format: {inst.format.value} ({inst.isa}, xlen={int(inst.isa_width)})")
    if show_fragments:
        for frag in inst.asm_fragments if asm_order else inst.fragments:
            span = f"{frag.end}:{frag.start}" if frag.end != frag.start else str(frag.start)
            print(f"    [{span:>5}] {frag.field:<12} {frag.bits:<20} {frag.value}")


class RvCodecCLI(cli.Application):
    """Translate RISC-V instructions between binary, hexadecimal and assembly."""

    PROGNAME = "rvcodec"
    VERSION = __version__

    abi = cli.Flag(["-a", "--abi"], help="Render registers with ABI names (a0, sp, ...)")
    isa = cli.SwitchAttr(
        ["-i", "--isa"],
        cli.Set(*(option.value for option in IsaOption), case_sensitive=False),
        default=None,
        help="Register width (default: $RVCODEC_ISA or auto)",
    )
    strict = cli.Flag(
        ["--strict-immediates"], help="Reject immediates that do not fit their field"
    )
    show_fragments = cli.Flag(["-f", "--fragments"], help="Print the decoded bit-fields")
    asm_order = cli.Flag(
        ["-o", "--asm-order"],
        help="Print fragments in assembly operand order instead of bit order",
    )
    list_prefix = cli.SwitchAttr(
        ["-l", "--list"],
        str,
        default=None,
        help="List mnemonics starting with PREFIX with their operand hints",
    )
    verbose = cli.Flag(["-v", "--verbose"], help="Enable debug logging")

    def main(self, *instructions) -> int:
        if self.verbose:
            logging.basicConfig(level=logging.DEBUG)

        try:
            config = load_codec_config()
        except ValueError as e:
            print(f"error: {e}", file=sys.stderr)
            return 2
        overrides = {}
        if self.isa is not None:
            overrides["isa"] = IsaOption(self.isa.lower())
        if self.abi:
            overrides["abi"] = True
        if self.strict:
            overrides["strict_immediates"] = True
        config = dataclasses.replace(config, **overrides)

        if self.list_prefix is not None:
            prefix = self.list_prefix.lower()
            for mnemonic in iter_mnemonics(config.isa):
                if mnemonic.startswith(prefix):
                    print(f"{mnemonic:<8} {canonical_operands(mnemonic)}")
            if not instructions:
                return 0

        if not instructions:
            self.help()
            return 1

        failed = False
        for text in instructions:
            try:
                inst = convert(text, config)
            except CodecError as e:
                print(f"error[{e.kind.value}]: {e.message}", file=sys.stderr)
                failed = True
                continue
            _print_instruction(inst, self.show_fragments, self.asm_order)
        return 1 if failed else 0


def main() -> None:
    RvCodecCLI.run()


if __name__ == "__main__":
    main()
