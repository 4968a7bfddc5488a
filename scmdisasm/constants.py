"""Opcode numbers the analyser treats specially."""

from __future__ import annotations

from typing import FrozenSet

# ---------------------------------------------------------------------------
# Control flow
# ---------------------------------------------------------------------------

INVERT_FLAG = 0x8000

GOTO = 0x0002
GOTO_IF_TRUE = 0x004C
GOTO_IF_FALSE = 0x004D
GOSUB = 0x0050
RETURN = 0x0051
SWITCH_START = 0x0871
SWITCH_CONTINUE = 0x0872

# Instructions that may branch to every local pointer operand they carry.
BRANCHING_OPCODES: FrozenSet[int] = frozenset(
    {GOTO, GOTO_IF_TRUE, GOTO_IF_FALSE, GOSUB, SWITCH_START, SWITCH_CONTINUE}
)


# ---------------------------------------------------------------------------
# Compatibility ranges
# ---------------------------------------------------------------------------

# Android CLEO extensions that the iOS runtime does not provide yet.  This set
# is consulted before the Android-only range below, so 0DD5 and 0DD6 are
# reported as missing features rather than platform code.
NOT_IMPLEMENTED_OPCODES: FrozenSet[int] = frozenset(
    {0x0DD5, 0x0DD6, *range(0x0DE1, 0x0DF6 + 1)}
)

# Commands relying on Android memory addresses or symbol names.
ANDROID_SPECIFIC_OPCODES: FrozenSet[int] = frozenset(
    {*range(0x0DD0, 0x0DDB + 1), 0x0DDE}
)


__all__ = [
    "INVERT_FLAG",
    "GOTO",
    "GOTO_IF_TRUE",
    "GOTO_IF_FALSE",
    "GOSUB",
    "RETURN",
    "SWITCH_START",
    "SWITCH_CONTINUE",
    "BRANCHING_OPCODES",
    "NOT_IMPLEMENTED_OPCODES",
    "ANDROID_SPECIFIC_OPCODES",
]
