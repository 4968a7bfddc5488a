"""Decoding of single variable-length instructions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO, List, Tuple

from .commands import OPCODE_MASK, CommandTable
from .constants import BRANCHING_OPCODES, GOTO, INVERT_FLAG, RETURN
from .errors import DecodeError
from .values import Pointer, Value, unpack


@dataclass(frozen=True)
class Instruction:
    opcode: int
    name: str
    offset: int
    inverted: bool
    args: Tuple[Value, ...]
    size: int

    @property
    def next_offset(self) -> int:
        return self.offset + self.size

    def successors(self) -> List[int]:
        """Return the offsets control may reach after this instruction.

        ``return`` goes back to the address on the call stack, which is
        already covered when the matching ``gosub`` is explored.  ``goto``
        never falls through; every other instruction does.  Branching
        commands additionally reach every local pointer they reference.
        """

        if self.opcode == RETURN:
            return []

        offsets: List[int] = []
        if self.opcode != GOTO:
            offsets.append(self.next_offset)

        if self.opcode in BRANCHING_OPCODES:
            for arg in self.args:
                if isinstance(arg, Pointer) and arg.is_local:
                    offsets.append(arg.absolute)
        return offsets

    def format(self) -> str:
        args = ", ".join(arg.render() for arg in self.args)
        prefix = "!" if self.inverted else ""
        return f"{self.offset:08x} {self.opcode:04x} {prefix}{self.name}({args})"

    def __str__(self) -> str:
        return self.format()


def read_instruction(table: CommandTable, stream: BinaryIO) -> Instruction:
    """Decode the instruction at the current stream position.

    The most significant bit of the opcode word is set when the boolean result
    of the command is inverted.  Without a schema the operand list, and with
    it the start of the next instruction, is unknown, so unknown opcodes are
    a decode failure.
    """

    offset = stream.tell()
    try:
        word = unpack(stream, "<H")
        opcode = word & OPCODE_MASK
        inverted = bool(word & INVERT_FLAG)

        command = table.lookup(opcode)
        if command is None:
            raise DecodeError(f"unknown opcode 0x{opcode:x}")

        args: List[Value] = []
        for param in command.params:
            value = param.read(stream)
            if value is not None:
                args.append(value)
    except DecodeError as exc:
        exc.offset = offset
        raise

    return Instruction(
        opcode=opcode,
        name=command.name,
        offset=offset,
        inverted=inverted,
        args=tuple(args),
        size=stream.tell() - offset,
    )


__all__ = ["Instruction", "read_instruction"]
