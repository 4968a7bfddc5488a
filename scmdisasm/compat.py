"""Compatibility classification of disassembled scripts."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Mapping, Optional

from .commands import CommandTable
from .constants import ANDROID_SPECIFIC_OPCODES, NOT_IMPLEMENTED_OPCODES
from .errors import CheckError
from .explorer import ControlFlowExplorer
from .instruction import Instruction

logger = logging.getLogger(__name__)


class CompatIssue(Enum):
    """Reasons a script may be marked as potentially incompatible."""

    # Hardcoded Android memory addresses or symbol names.
    ANDROID_SPECIFIC = "Script uses Android-specific code."
    # A command the runtime does not implement yet.
    NOT_IMPL = "Script uses features not yet present on iOS."
    # Produced by callers when the check itself could not run.
    CHECK_FAILED = "Unable to complete script check on this script."

    def __str__(self) -> str:
        return self.value


def classify_opcode(opcode: int) -> Optional[CompatIssue]:
    if opcode in NOT_IMPLEMENTED_OPCODES:
        return CompatIssue.NOT_IMPL
    if opcode in ANDROID_SPECIFIC_OPCODES:
        return CompatIssue.ANDROID_SPECIFIC
    return None


def classify(instructions: Mapping[int, Instruction]) -> Optional[CompatIssue]:
    """Return the issue of the first flagged instruction, if any.

    An empty map (for instance when nothing at offset zero decodes) yields
    ``None``: the check simply has nothing to object to.
    """

    for instruction in instructions.values():
        issue = classify_opcode(instruction.opcode)
        if issue is not None:
            logger.debug(
                "0x%04x at 0x%x flagged as %s",
                instruction.opcode,
                instruction.offset,
                issue.name,
            )
            return issue
    return None


def check_bytecode(
    data: bytes, table: Optional[CommandTable] = None
) -> Optional[CompatIssue]:
    """Disassemble ``data`` and classify the reachable instructions."""

    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise CheckError(f"script body must be bytes, not {type(data).__name__}")

    graph = ControlFlowExplorer(table).run(bytes(data))
    logger.info("finished disassembly")
    return classify(graph.instructions)


def check_script(
    data: bytes, table: Optional[CommandTable] = None
) -> Optional[CompatIssue]:
    """Like :func:`check_bytecode` but reports a failed check as an issue."""

    try:
        return check_bytecode(data, table)
    except CheckError as exc:
        logger.warning("script check failed: %s", exc)
        return CompatIssue.CHECK_FAILED


__all__ = [
    "CompatIssue",
    "check_bytecode",
    "check_script",
    "classify",
    "classify_opcode",
]
