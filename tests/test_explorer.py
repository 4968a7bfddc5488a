import logging
import struct

from scmdisasm.commands import Command, CommandTable, Param, ParamType
from scmdisasm.explorer import ControlFlowExplorer, explore


def _op(opcode: int) -> bytes:
    return struct.pack("<H", opcode)


def _ptr(offset: int) -> bytes:
    return b"\x01" + struct.pack("<i", offset)


def _wait(ms: int = 0) -> bytes:
    return _op(0x0001) + b"\x04" + struct.pack("<b", ms)


def _table() -> CommandTable:
    pointer = (Param(ParamType.POINTER),)
    return CommandTable(
        [
            Command(0x0001, "wait", params=(Param(ParamType.INTEGER),)),
            Command(0x0002, "goto", params=pointer),
            Command(0x004C, "goto_if_true", params=pointer),
            Command(0x004D, "goto_if_false", params=pointer),
            Command(0x004E, "terminate_this_script"),
            Command(0x0050, "gosub", params=pointer),
            Command(0x0051, "return"),
        ]
    )


def _assert_reachable(graph) -> None:
    reached = {0}
    pending = [0]
    while pending:
        offset = pending.pop()
        for successor in graph.successors(offset):
            if successor not in reached:
                reached.add(successor)
                pending.append(successor)
    assert set(graph.instructions) <= reached


def test_single_return() -> None:
    graph = ControlFlowExplorer(_table()).run(_op(0x0051))

    assert list(graph.instructions) == [0]
    assert graph.successors(0) == []
    assert graph.failures == {}


def test_goto_skips_fallthrough_bytes() -> None:
    # goto 0x9; junk; return
    data = _op(0x0002) + _ptr(-9) + b"\xff\xff" + _op(0x0051)

    graph = ControlFlowExplorer(_table()).run(data)

    assert sorted(graph.instructions) == [0, 9]
    assert 7 not in graph.instructions
    assert 7 not in graph.failures
    _assert_reachable(graph)


def test_global_pointer_truncates_path() -> None:
    data = _op(0x0002) + _ptr(0x20) + _op(0x0051)

    graph = ControlFlowExplorer(_table()).run(data)

    assert list(graph.instructions) == [0]
    assert graph.successors(0) == []


def test_bad_operand_only_drops_its_offset(caplog) -> None:
    # goto_if_false 0xB; wait <bad tag>; return
    data = _op(0x004D) + _ptr(-11) + _op(0x0001) + b"\x20\x00" + _op(0x0051)
    assert data[11:] == _op(0x0051)

    with caplog.at_level(logging.WARNING, logger="scmdisasm.explorer"):
        graph = ControlFlowExplorer(_table()).run(data)

    assert sorted(graph.instructions) == [0, 11]
    assert list(graph.failures) == [7]
    assert "unknown type id" in graph.failures[7]
    assert any("encountered error at 0x7" in r.getMessage() for r in caplog.records)
    _assert_reachable(graph)


def test_backward_loop_terminates() -> None:
    # 0: wait; 4: wait; 8: goto 0x4
    data = _wait() + _wait() + _op(0x0002) + _ptr(-4)

    instructions = explore(_table(), data)

    assert sorted(instructions) == [0, 4, 8]


def test_gosub_reaches_subroutine_and_return_site() -> None:
    # 0: gosub 0xA; 7: terminate; 9: pad; 10: wait; 14: return
    data = _op(0x0050) + _ptr(-10) + _op(0x004E) + b"\x00" + _wait(1) + _op(0x0051)

    graph = ControlFlowExplorer(_table()).run(data)

    assert sorted(graph.instructions) == [0, 7, 10, 14]
    assert sorted(graph.successors(0)) == [7, 10]
    assert list(graph.failures) == [9]


def test_truncated_tail_is_dropped() -> None:
    graph = ControlFlowExplorer(_table()).run(_wait())

    assert list(graph.instructions) == [0]
    assert list(graph.failures) == [4]


def test_empty_script_yields_empty_map() -> None:
    graph = ControlFlowExplorer(_table()).run(b"")

    assert graph.instructions == {}
    assert list(graph.failures) == [0]


def test_branches_converging_on_one_offset_decode_it_once() -> None:
    # 0: goto_if_true 0xE; 7: goto_if_false 0xE; 14: return
    data = _op(0x004C) + _ptr(-14) + _op(0x004D) + _ptr(-14) + _op(0x0051)

    graph = ControlFlowExplorer(_table()).run(data)

    assert sorted(graph.instructions) == [0, 7, 14]
    _assert_reachable(graph)


def test_exploration_is_deterministic() -> None:
    data = _op(0x004C) + _ptr(-14) + _op(0x004D) + _ptr(-16) + _op(0x0051) + _wait() + _op(0x0051)

    first = explore(_table(), data)
    second = explore(_table(), data)

    assert sorted(first) == [0, 7, 14, 16, 20]
    assert sorted(first) == sorted(second)
    assert [first[k] for k in sorted(first)] == [second[k] for k in sorted(second)]


def test_duration_is_logged(caplog) -> None:
    with caplog.at_level(logging.INFO, logger="scmdisasm.explorer"):
        graph = ControlFlowExplorer(_table()).run(_op(0x0051))

    assert graph.elapsed >= 0.0
    assert any("disassembly took" in r.getMessage() for r in caplog.records)
