"""Reachability-driven disassembly of a script body."""

from __future__ import annotations

import io
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .commands import CommandTable
from .errors import DecodeError
from .instruction import Instruction, read_instruction

logger = logging.getLogger(__name__)

ENTRY_OFFSET = 0


@dataclass
class ControlFlowGraph:
    """Instructions reachable from the entry point and the edges between them."""

    instructions: Dict[int, Instruction] = field(default_factory=dict)
    edges: Dict[int, List[int]] = field(default_factory=dict)
    failures: Dict[int, str] = field(default_factory=dict)
    elapsed: float = 0.0

    def block_order(self) -> List[Instruction]:
        return [self.instructions[offset] for offset in sorted(self.instructions)]

    def successors(self, offset: int) -> List[int]:
        return self.edges.get(offset, [])


class ControlFlowExplorer:
    """Decode every instruction reachable from offset zero.

    Exploration works in rounds: each round decodes the current frontier and
    collects the successors of every new instruction into the next frontier.
    Offsets that were already decoded, or that already failed to decode, are
    skipped, so cyclic control flow terminates.  A decode failure only drops
    the offending offset: the game would never execute that path if the
    script is well formed, and junk bytes behind unconditional jumps are a
    common obfuscation trick.
    """

    def __init__(self, table: Optional[CommandTable] = None) -> None:
        self.table = table if table is not None else CommandTable.default()

    def run(self, data: bytes) -> ControlFlowGraph:
        start = time.perf_counter()
        graph = ControlFlowGraph()
        stream = io.BytesIO(data)

        frontier: List[int] = [ENTRY_OFFSET]
        while frontier:
            discovered: List[int] = []
            for offset in frontier:
                if offset in graph.instructions or offset in graph.failures:
                    continue

                stream.seek(offset)
                try:
                    instruction = read_instruction(self.table, stream)
                except DecodeError as exc:
                    logger.warning("encountered error at 0x%x: %s", offset, exc)
                    graph.failures[offset] = str(exc)
                    continue

                successors = instruction.successors()
                graph.instructions[offset] = instruction
                graph.edges[offset] = successors
                discovered.extend(successors)
            frontier = discovered

        graph.elapsed = time.perf_counter() - start
        logger.info(
            "disassembly took %.6fs (%d instruction(s), %d undecodable offset(s))",
            graph.elapsed,
            len(graph.instructions),
            len(graph.failures),
        )
        return graph


def explore(table: CommandTable, data: bytes) -> Dict[int, Instruction]:
    """Return the instruction map of ``data`` keyed by starting offset."""

    return ControlFlowExplorer(table).run(data).instructions


__all__ = ["ENTRY_OFFSET", "ControlFlowExplorer", "ControlFlowGraph", "explore"]
