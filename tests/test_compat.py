import struct

import pytest

from scmdisasm.commands import Command, CommandTable, Param, ParamType
from scmdisasm.compat import (
    CompatIssue,
    check_bytecode,
    check_script,
    classify,
    classify_opcode,
)
from scmdisasm.errors import CheckError
from scmdisasm.explorer import explore


def _op(opcode: int) -> bytes:
    return struct.pack("<H", opcode)


def _bare_table(*opcodes: int) -> CommandTable:
    return CommandTable(Command(opcode, f"op_{opcode:04x}") for opcode in opcodes)


def test_return_only_script_is_compatible() -> None:
    data = bytes([0x51, 0x00])

    assert len(explore(CommandTable.default(), data)) == 1
    assert check_bytecode(data) is None


def test_not_implemented_opcode_without_operands() -> None:
    assert check_bytecode(_op(0x0DD5), _bare_table(0x0DD5)) is CompatIssue.NOT_IMPL


def test_android_opcode_without_operands() -> None:
    assert check_bytecode(_op(0x0DD2), _bare_table(0x0DD2)) is CompatIssue.ANDROID_SPECIFIC


def test_bundled_schema_flags_get_platform() -> None:
    # get_platform with a local output variable
    data = _op(0x0DD5) + b"\x03\x00\x00" + _op(0x0051)
    assert check_bytecode(data) is CompatIssue.NOT_IMPL


def test_bundled_schema_flags_context_call() -> None:
    data = _op(0x0DD2) + b"\x01" + struct.pack("<i", 0x1234) + _op(0x0051)
    assert check_bytecode(data) is CompatIssue.ANDROID_SPECIFIC


def _model_loading_script(tail: bytes) -> bytes:
    model = b"\x05" + struct.pack("<h", 355)
    return (
        _op(0x0001) + b"\x04\x00"  # 0: wait 0
        + _op(0x0247) + model  # 4: request_model
        + _op(0x0001) + b"\x04\x00"  # 9: wait 0
        + _op(0x00D6) + b"\x04\x00"  # 13: andor
        + _op(0x0248) + model  # 17: has_model_loaded
        + _op(0x004D) + b"\x01" + struct.pack("<i", -9)  # 22: back to 9
        + _op(0x0AB0) + b"\x04\x72"  # 29: is_key_pressed
        + tail  # 33
    )


def test_bundled_schema_reaches_android_opcode_in_ordinary_script() -> None:
    data = _model_loading_script(
        _op(0x0DD2) + b"\x01" + struct.pack("<i", 0x1234) + _op(0x0051)
    )
    instructions = explore(CommandTable.default(), data)

    assert sorted(instructions) == [0, 4, 9, 13, 17, 22, 29, 33, 40]
    assert instructions[4].name == "request_model"
    assert instructions[29].name == "is_key_pressed"
    assert check_bytecode(data) is CompatIssue.ANDROID_SPECIFIC


def test_bundled_schema_reaches_platform_query_in_ordinary_script() -> None:
    data = _model_loading_script(
        _op(0x00E1) + b"\x04\x00\x04\x10"  # is_button_pressed 0 16
        + _op(0x0DD5) + b"\x03\x00\x00"
        + _op(0x0051)
    )
    assert check_bytecode(data) is CompatIssue.NOT_IMPL


def test_inverted_flag_does_not_hide_opcode() -> None:
    assert check_bytecode(_op(0x8DE6), _bare_table(0x0DE6)) is CompatIssue.NOT_IMPL


@pytest.mark.parametrize(
    "opcode, expected",
    [
        (0x0DCF, None),
        (0x0DD0, CompatIssue.ANDROID_SPECIFIC),
        (0x0DD4, CompatIssue.ANDROID_SPECIFIC),
        (0x0DD5, CompatIssue.NOT_IMPL),
        (0x0DD6, CompatIssue.NOT_IMPL),
        (0x0DD7, CompatIssue.ANDROID_SPECIFIC),
        (0x0DDB, CompatIssue.ANDROID_SPECIFIC),
        (0x0DDC, None),
        (0x0DDD, None),
        (0x0DDE, CompatIssue.ANDROID_SPECIFIC),
        (0x0DDF, None),
        (0x0DE0, None),
        (0x0DE1, CompatIssue.NOT_IMPL),
        (0x0DF6, CompatIssue.NOT_IMPL),
        (0x0DF7, None),
        (0x0051, None),
    ],
)
def test_opcode_ranges(opcode: int, expected) -> None:
    assert classify_opcode(opcode) is expected


def test_unreachable_flagged_opcode_is_ignored() -> None:
    table = CommandTable(
        [
            Command(0x0002, "goto", params=(Param(ParamType.POINTER),)),
            Command(0x0051, "return"),
            Command(0x0DD5, "get_platform"),
        ]
    )
    # goto 0x9 skips over the flagged command at offset 7
    data = _op(0x0002) + b"\x01" + struct.pack("<i", -9) + _op(0x0DD5) + _op(0x0051)

    assert check_bytecode(data, table) is None


def test_empty_map_is_compatible() -> None:
    assert classify({}) is None
    assert check_bytecode(b"") is None
    assert check_bytecode(b"\xff\xff") is None


def test_bytearray_input_is_accepted() -> None:
    assert check_bytecode(bytearray(_op(0x0051))) is None


def test_non_bytes_input_cannot_be_checked() -> None:
    with pytest.raises(CheckError):
        check_bytecode("51 00")  # type: ignore[arg-type]
    assert check_script(None) is CompatIssue.CHECK_FAILED  # type: ignore[arg-type]


def test_issue_descriptions() -> None:
    assert str(CompatIssue.ANDROID_SPECIFIC) == "Script uses Android-specific code."
    assert str(CompatIssue.NOT_IMPL) == "Script uses features not yet present on iOS."
    assert str(CompatIssue.CHECK_FAILED) == "Unable to complete script check on this script."


def test_check_is_idempotent() -> None:
    data = _op(0x004D) + b"\x01" + struct.pack("<i", -9) + _op(0x0051) + _op(0x0DD5) + b"\x03\x01\x00"
    table = CommandTable.default()

    first = explore(table, data)
    second = explore(table, data)

    assert len(first) == len(second) == 3
    assert check_bytecode(data, table) is check_bytecode(data, table) is CompatIssue.NOT_IMPL
