"""Typed operand values and the tag-driven operand decoder.

Every operand in the instruction stream starts with a one byte type tag which
selects how many bytes follow and how they are interpreted.  The decoder only
knows about raw encodings; reinterpretations that depend on the declared
parameter type (pointers, model ids) live in :mod:`scmdisasm.commands`.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Callable, Dict, Tuple, Union

from .errors import DecodeError


class Location(Enum):
    """Storage class of a variable operand."""

    # Written directly into the bytecode.  The decoder never produces it.
    IMMEDIATE = "immediate"
    # Variable local to the running script.
    LOCAL = "local"
    # Variable shared between scripts.
    GLOBAL = "global"


@dataclass(frozen=True)
class Integer:
    value: int

    def render(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Real:
    value: float

    def render(self) -> str:
        return f"{self.value}f"


@dataclass(frozen=True)
class String:
    value: str

    def render(self) -> str:
        return f'"{self.value}"'


@dataclass(frozen=True)
class Model:
    value: int

    def render(self) -> str:
        return f"#{self.value}"


@dataclass(frozen=True)
class Pointer:
    """Jump target embedded in an instruction.

    Negative offsets address the current script (the magnitude is the byte
    offset); non-negative ones point into the global address space.
    """

    offset: int

    @property
    def is_local(self) -> bool:
        return self.offset < 0

    @property
    def absolute(self) -> int:
        return abs(self.offset)

    def render(self) -> str:
        if self.is_local:
            return f"0x{self.absolute:x}"
        return f"Global(0x{self.absolute:x})"


@dataclass(frozen=True)
class Variable:
    index: int
    location: Location

    def render(self) -> str:
        if self.location is Location.IMMEDIATE:
            raise ValueError("immediate values are not variables")
        return f"{self.location.value}_0x{self.index:x}"


@dataclass(frozen=True)
class Array:
    """Array access; the six payload bytes are skipped."""

    def render(self) -> str:
        return "arr"


@dataclass(frozen=True)
class Buffer:
    value: str

    def render(self) -> str:
        return f'"{self.value}"'


@dataclass(frozen=True)
class VarArgs:
    values: Tuple["Value", ...] = ()

    def render(self) -> str:
        return ", ".join(value.render() for value in self.values)


Value = Union[Integer, Real, String, Model, Pointer, Variable, Array, Buffer, VarArgs]


END_TAG = 0x00
ARRAY_PAYLOAD_SIZE = 6


def read_exact(stream: BinaryIO, size: int) -> bytes:
    """Read ``size`` bytes or raise :class:`DecodeError` on a short read."""

    data = stream.read(size)
    if len(data) != size:
        raise DecodeError(
            f"unexpected end of stream (wanted {size} byte(s), got {len(data)})"
        )
    return data


def unpack(stream: BinaryIO, fmt: str):
    return struct.unpack(fmt, read_exact(stream, struct.calcsize(fmt)))[0]


def read_tag(stream: BinaryIO) -> int:
    return unpack(stream, "<B")


def _truncate(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("latin-1")


def _int32(stream: BinaryIO) -> Value:
    return Integer(unpack(stream, "<i"))


def _int8(stream: BinaryIO) -> Value:
    return Integer(unpack(stream, "<b"))


def _int16(stream: BinaryIO) -> Value:
    return Integer(unpack(stream, "<h"))


def _real(stream: BinaryIO) -> Value:
    return Real(unpack(stream, "<f"))


def _global_var(stream: BinaryIO) -> Value:
    return Variable(unpack(stream, "<H"), Location.GLOBAL)


def _local_var(stream: BinaryIO) -> Value:
    return Variable(unpack(stream, "<H"), Location.LOCAL)


def _array(stream: BinaryIO) -> Value:
    read_exact(stream, ARRAY_PAYLOAD_SIZE)
    return Array()


def _short_string(stream: BinaryIO) -> Value:
    return String(_truncate(read_exact(stream, 8)))


def _long_string(stream: BinaryIO) -> Value:
    return String(_truncate(read_exact(stream, 16)))


def _sized_string(stream: BinaryIO) -> Value:
    length = unpack(stream, "<B")
    return String(_truncate(read_exact(stream, length)))


_DECODERS: Dict[int, Callable[[BinaryIO], Value]] = {
    0x01: _int32,
    0x02: _global_var,
    0x03: _local_var,
    0x04: _int8,
    0x05: _int16,
    0x06: _real,
    0x07: _array,
    0x08: _array,
    0x09: _short_string,
    0x0A: _global_var,
    0x0B: _local_var,
    0x0C: _array,
    0x0D: _array,
    0x0E: _sized_string,
    0x0F: _long_string,
    0x10: _global_var,
    0x11: _local_var,
    0x12: _array,
    0x13: _array,
}


def decode_value(tag: int, stream: BinaryIO) -> Value:
    """Decode the payload that follows ``tag``."""

    decoder = _DECODERS.get(tag)
    if decoder is None:
        raise DecodeError(f"unknown type id '{tag}'")
    return decoder(stream)


def read_value(stream: BinaryIO) -> Value:
    """Read a tag byte and the value it announces."""

    return decode_value(read_tag(stream), stream)


__all__ = [
    "Location",
    "Integer",
    "Real",
    "String",
    "Model",
    "Pointer",
    "Variable",
    "Array",
    "Buffer",
    "VarArgs",
    "Value",
    "END_TAG",
    "decode_value",
    "read_value",
    "read_tag",
    "read_exact",
    "unpack",
]
