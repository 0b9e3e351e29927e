from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar, Union


class ErrorKind(str, Enum):
    """Attributed reasons a translation can fail."""

    MALFORMED_INPUT_FORMAT = "MalformedInputFormat"
    INVALID_OPCODE = "InvalidOpcode"
    INVALID_OPERATION = "InvalidOperation"
    INVALID_FUNCT = "InvalidFunct"
    RESERVED_FIELD_VIOLATION = "ReservedFieldViolation"
    INVALID_REGISTER_TOKEN = "InvalidRegisterToken"
    INVALID_OPERAND_COUNT = "InvalidOperandCount"
    INVALID_IMMEDIATE = "InvalidImmediate"
    IMMEDIATE_OUT_OF_RANGE = "ImmediateOutOfRange"


class CodecError(Exception):
    """Terminal translation failure naming the offending field or token."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        field: Optional[str] = None,
        token: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.field = field
        self.token = token

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"

    def __repr__(self) -> str:
        return (
            f"CodecError({self.kind.value!r}, {self.message!r}, "
            f"field={self.field!r}, token={self.token!r})"
        )


T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True, slots=True)
class Err:
    error: CodecError

    @property
    def ok(self) -> bool:
        return False

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    def unwrap(self):
        raise self.error


Result = Union[Ok[T], Err]


__all__ = ["CodecError", "Err", "ErrorKind", "Ok", "Result"]
