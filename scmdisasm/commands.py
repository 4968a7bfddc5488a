"""Command schema table: which operands follow each opcode."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from .errors import DecodeError, SchemaError
from .values import (
    END_TAG,
    Buffer,
    Integer,
    Location,
    Model,
    Pointer,
    Value,
    VarArgs,
    decode_value,
    read_exact,
    read_tag,
)

logger = logging.getLogger(__name__)

DEFAULT_COMMANDS_PATH = Path(__file__).resolve().parent / "data" / "commands.json"

# Raw size of the long buffer operand (only used by opcode 05B6).
BUFFER_SIZE = 128

OPCODE_MASK = 0x7FFF


class ParamType(Enum):
    """Declared type of a command parameter."""

    INTEGER = "integer"
    STRING = "string"
    REAL = "real"
    MODEL = "model"
    # A pointer to a script location.
    POINTER = "pointer"
    # Null byte terminating an argument list.
    END = "end"
    # Untagged long buffer.
    BUFFER = "buffer"
    # Any type; typically used for variadic arguments.
    ANY = "any"


@dataclass(frozen=True)
class Param:
    param_type: ParamType
    location: Location = Location.IMMEDIATE
    is_variadic: bool = False
    is_output: bool = False

    def read(self, stream: BinaryIO) -> Optional[Value]:
        """Decode the operand(s) described by this parameter.

        Returns ``None`` for a bare end marker, which carries no value.
        """

        if self.param_type is ParamType.BUFFER:
            raw = read_exact(stream, BUFFER_SIZE)
            return Buffer(raw.split(b"\0", 1)[0].decode("latin-1"))

        if self.is_variadic:
            values = []
            while True:
                tag = read_tag(stream)
                if tag == END_TAG:
                    return VarArgs(tuple(values))
                values.append(self._reinterpret(decode_value(tag, stream)))

        if self.param_type is ParamType.END:
            tag = read_tag(stream)
            if tag != END_TAG:
                raise DecodeError(f"expected end of argument list, found type id '{tag}'")
            return None

        return self._reinterpret(decode_value(read_tag(stream), stream))

    def _reinterpret(self, value: Value) -> Value:
        if isinstance(value, Integer):
            if self.param_type is ParamType.POINTER:
                return Pointer(value.value)
            if self.param_type is ParamType.MODEL:
                return Model(value.value)
        return value

    @classmethod
    def from_json(cls, entry: Mapping[str, Any]) -> "Param":
        if not isinstance(entry, Mapping):
            raise SchemaError(f"invalid parameter entry {entry!r}")
        try:
            param_type = ParamType(str(entry["type"]).lower())
            location = Location(str(entry.get("location", "immediate")).lower())
        except (KeyError, ValueError) as exc:
            raise SchemaError(f"invalid parameter entry {dict(entry)!r}") from exc
        return cls(
            param_type=param_type,
            location=location,
            is_variadic=bool(entry.get("variadic", False)),
            is_output=bool(entry.get("output", False)),
        )

    def describe(self) -> str:
        text = self.param_type.value
        if self.is_output:
            text = f"out {text}"
        if self.is_variadic:
            text += "..."
        return text


@dataclass(frozen=True)
class Command:
    """Schema for a single opcode."""

    opcode: int
    name: str
    returns: bool = False
    params: Tuple[Param, ...] = ()

    @classmethod
    def from_json(cls, entry: Mapping[str, Any]) -> "Command":
        if not isinstance(entry, Mapping):
            raise SchemaError(f"invalid command entry {entry!r}")
        if "opcode" not in entry or "name" not in entry:
            raise SchemaError(f"command entry requires opcode and name: {dict(entry)!r}")
        opcode = _parse_opcode(entry["opcode"])
        params = entry.get("params") or []
        if not isinstance(params, list):
            raise SchemaError(f"params of {entry['name']} must be a list")
        return cls(
            opcode=opcode,
            name=str(entry["name"]),
            returns=bool(entry.get("returns", False)),
            params=tuple(Param.from_json(param) for param in params),
        )

    def describe(self) -> str:
        """Render as ``0247 request_model(model)``; conditions end in ``?``."""

        params = ", ".join(param.describe() for param in self.params)
        marker = "?" if self.returns else ""
        return f"{self.opcode:04x} {self.name}({params}){marker}"


class CommandTable:
    """Resolve opcodes to :class:`Command` schemas.

    The table is immutable once built.  Most callers obtain the shared
    instance through :meth:`default`, which is populated from the bundled
    ``data/commands.json`` the first time it is requested.  Tests and the CLI
    can build their own table from any iterable of commands or from an
    alternate JSON file and pass it explicitly to the analysis functions.
    """

    def __init__(self, commands: Iterable[Command] = ()) -> None:
        table: Dict[int, Command] = {}
        for command in commands:
            if command.opcode in table:
                raise SchemaError(f"duplicate opcode 0x{command.opcode:04x}")
            table[command.opcode] = command
        self._commands = table
        self._by_name = {command.name: command for command in table.values()}

    @classmethod
    def load(cls, path: Path) -> "CommandTable":
        """Load a table from a JSON schema document."""

        try:
            data = json.loads(Path(path).read_text("utf-8"))
        except (OSError, ValueError) as exc:
            raise SchemaError(f"unable to read command schema {path}: {exc}") from exc
        return cls.from_json(data)

    @classmethod
    def from_json(cls, data: Any) -> "CommandTable":
        if isinstance(data, Mapping):
            data = data.get("commands")
        if not isinstance(data, list):
            raise SchemaError("command schema must contain a list of commands")
        return cls(Command.from_json(entry) for entry in data)

    @classmethod
    def default(cls) -> "CommandTable":
        """Return the process-wide table built from the bundled resource."""

        global _default_table
        table = _default_table
        if table is not None:
            return table
        with _default_lock:
            if _default_table is None:
                try:
                    _default_table = cls.load(DEFAULT_COMMANDS_PATH)
                except SchemaError as exc:
                    logger.error("error loading commands: %s", exc)
                    _default_table = cls()
                else:
                    logger.debug(
                        "loaded %d command schemas from %s",
                        len(_default_table),
                        DEFAULT_COMMANDS_PATH,
                    )
            return _default_table

    def lookup(self, opcode: int) -> Optional[Command]:
        return self._commands.get(opcode)

    def lookup_by_name(self, name: str) -> Optional[Command]:
        return self._by_name.get(name)

    def __contains__(self, opcode: object) -> bool:
        return opcode in self._commands

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands.values())

    def __len__(self) -> int:
        return len(self._commands)


_default_table: Optional[CommandTable] = None
_default_lock = threading.Lock()


def _parse_opcode(raw: Any) -> int:
    """Opcodes are written as hex strings (``"0x0051"`` or ``"0051"``) or ints."""

    if isinstance(raw, bool):
        raise SchemaError(f"invalid opcode {raw!r}")
    if isinstance(raw, int):
        opcode = raw
    elif isinstance(raw, str):
        token = raw.strip().lower()
        if token.startswith("0x"):
            token = token[2:]
        try:
            opcode = int(token, 16)
        except ValueError as exc:
            raise SchemaError(f"invalid opcode {raw!r}") from exc
    else:
        raise SchemaError(f"invalid opcode {raw!r}")

    if not (0 <= opcode <= OPCODE_MASK):
        raise SchemaError(f"opcode {raw!r} outside of 0x0000-0x7FFF")
    return opcode


__all__ = [
    "BUFFER_SIZE",
    "DEFAULT_COMMANDS_PATH",
    "OPCODE_MASK",
    "Command",
    "CommandTable",
    "Param",
    "ParamType",
]
