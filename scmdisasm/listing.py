"""Instruction listing utilities."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Optional

from .explorer import ControlFlowGraph
from .instruction import Instruction


def render_listing(
    instructions: Mapping[int, Instruction],
    *,
    failures: Optional[Mapping[int, str]] = None,
    max_instructions: Optional[int] = None,
) -> str:
    lines: List[str] = []
    for idx, offset in enumerate(sorted(instructions)):
        if max_instructions is not None and idx >= max_instructions:
            lines.append("; ... truncated ...")
            break
        lines.append(instructions[offset].format())

    for offset in sorted(failures or {}):
        lines.append(f"; undecodable offset 0x{offset:x}: {failures[offset]}")
    return "\n".join(lines) + "\n"


def render_graph(graph: ControlFlowGraph, **kwargs) -> str:
    return render_listing(graph.instructions, failures=graph.failures, **kwargs)


def write_listing(graph: ControlFlowGraph, output_path: Path, **kwargs) -> None:
    output_path.write_text(render_graph(graph, **kwargs), "utf-8")


__all__ = ["render_graph", "render_listing", "write_listing"]
