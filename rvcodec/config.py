from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import os
from typing import Optional

from .constants import Xlen


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    normalized = raw.strip().casefold()
    return normalized not in {"0", "false", "off", ""}


class IsaOption(str, Enum):
    """Register-width selector: auto-detect or a fixed base set."""

    AUTO = "auto"
    RV32I = "rv32i"
    RV64I = "rv64i"
    RV128I = "rv128i"

    @property
    def explicit(self) -> bool:
        return self is not IsaOption.AUTO

    @property
    def xlen(self) -> Optional[Xlen]:
        """Fixed register width, or None when auto-detecting."""
        return _ISA_XLEN.get(self)

    @property
    def max_xlen(self) -> Xlen:
        return self.xlen or Xlen.RV128


_ISA_XLEN = {
    IsaOption.RV32I: Xlen.RV32,
    IsaOption.RV64I: Xlen.RV64,
    IsaOption.RV128I: Xlen.RV128,
}


@dataclass(frozen=True)
class CodecConfig:
    isa: IsaOption = IsaOption.AUTO
    abi: bool = False
    strict_immediates: bool = False


def load_codec_config() -> CodecConfig:
    raw_isa = os.getenv("RVCODEC_ISA", IsaOption.AUTO.value).strip().casefold()
    try:
        isa = IsaOption(raw_isa or IsaOption.AUTO.value)
    except ValueError as e:
        choices = ", ".join(option.value for option in IsaOption)
        raise ValueError(f"RVCODEC_ISA must be one of {choices}, got {raw_isa!r}") from e
    return CodecConfig(
        isa=isa,
        abi=_env_flag("RVCODEC_ABI", default=False),
        strict_immediates=_env_flag("RVCODEC_STRICT_IMMEDIATES", default=False),
    )


__all__ = ["CodecConfig", "IsaOption", "load_codec_config"]
