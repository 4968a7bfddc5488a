#!/usr/bin/env python3
"""Command-line interface for the CLEO script compatibility checker."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional, Sequence

from scmdisasm import (
    CommandTable,
    ControlFlowExplorer,
    ControlFlowGraph,
    LoadedScript,
    LoaderError,
    SchemaError,
    ScriptLoader,
    render_graph,
)
from scmdisasm.cheats import find_cheat
from scmdisasm.commands import OPCODE_MASK
from scmdisasm.listing import write_listing
from scmdisasm.loader import LoadedResource

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "inputs",
        nargs="*",
        type=Path,
        help="Script files (.csa/.csi), language files (.fxt) or directories",
    )
    parser.add_argument(
        "--commands",
        type=Path,
        default=None,
        help="Alternate command schema JSON (defaults to the bundled table)",
    )
    parser.add_argument(
        "--listing",
        action="store_true",
        help="Print the reachable disassembly of every script",
    )
    parser.add_argument(
        "--listing-out",
        type=Path,
        default=None,
        help="Write a <script>.lst disassembly for every script into this directory",
    )
    parser.add_argument(
        "--max-instructions",
        type=int,
        default=None,
        help="Truncate listings after this many instructions",
    )
    parser.add_argument(
        "--describe",
        action="append",
        default=[],
        metavar="COMMAND",
        help="Print the operand schema of a command (name or hex opcode)",
    )
    parser.add_argument(
        "--cheat",
        action="append",
        default=[],
        metavar="CODE",
        help="Look up a cheat code and print what it does",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print totals after checking all inputs",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v info, -vv debug)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Write log output to this file instead of stderr",
    )
    args = parser.parse_args(argv)
    if not (args.inputs or args.describe or args.cheat):
        parser.error("nothing to do: give input paths, --describe or --cheat")
    return args


def configure_logging(verbosity: int, log_file: Optional[Path]) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        filename=str(log_file) if log_file else None,
        format="%(levelname)s %(name)s: %(message)s",
    )


def validate_inputs(paths: Sequence[Path]) -> None:
    for path in paths:
        if not path.exists():
            raise SystemExit(f"missing input file: {path}")


def load_table(path: Optional[Path]) -> CommandTable:
    if path is None:
        return CommandTable.default()
    try:
        return CommandTable.load(path)
    except SchemaError as exc:
        raise SystemExit(f"invalid command schema: {exc}")


def collect(loader: ScriptLoader, paths: Sequence[Path]) -> List[LoadedResource]:
    resources: List[LoadedResource] = []
    for path in paths:
        if path.is_dir():
            resources.extend(loader.load_all(path))
            continue
        try:
            resources.append(loader.load_path(path))
        except (LoaderError, OSError) as exc:
            print(f"{path}: unable to load ({exc})")
    return resources


def describe_commands(table: CommandTable, tokens: Sequence[str]) -> int:
    missing = 0
    for token in tokens:
        command = table.lookup_by_name(token)
        if command is None:
            try:
                command = table.lookup(int(token, 16) & OPCODE_MASK)
            except ValueError:
                command = None
        if command is None:
            print(f"{token}: unknown command")
            missing += 1
        else:
            print(command.describe())
    return missing


def describe_cheats(codes: Sequence[str]) -> int:
    missing = 0
    for code in codes:
        cheat = find_cheat(code)
        if cheat is None:
            print(f"{code}: unknown cheat code")
            missing += 1
        else:
            print(f"{cheat.code}: {cheat.description} (#{cheat.index})")
    return missing


def write_script_listing(
    graph: ControlFlowGraph, script: LoadedScript, out_dir: Path, **kwargs
) -> None:
    out_dir.mkdir(parents=True, exist_ok=True)
    output_path = out_dir / f"{script.path.name}.lst"
    write_listing(graph, output_path, **kwargs)
    logger.info("wrote listing %s", output_path)


def main(argv: Optional[Sequence[str]] = None) -> int:
    start_time = time.perf_counter()
    args = parse_args(argv)
    configure_logging(args.verbose, args.log_file)
    validate_inputs(args.inputs)

    table = load_table(args.commands)
    failed = describe_commands(table, args.describe) + describe_cheats(args.cheat)

    loader = ScriptLoader(table)
    resources = collect(loader, args.inputs)

    scripts = [item for item in resources if isinstance(item, LoadedScript)]
    flagged = 0
    for script in scripts:
        status = "compatible" if script.compatible else str(script.issue)
        print(f"{script.path}: {status}")
        if not script.compatible:
            flagged += 1
        if args.listing or args.listing_out:
            graph = ControlFlowExplorer(table).run(script.data)
            if args.listing:
                sys.stdout.write(render_graph(graph, max_instructions=args.max_instructions))
            if args.listing_out:
                write_script_listing(
                    graph, script, args.listing_out, max_instructions=args.max_instructions
                )

    if args.summary:
        total_time = time.perf_counter() - start_time
        print(f"scripts: {len(scripts)}")
        print(f"flagged: {flagged}")
        print(f"language entries: {len(loader.language)}")
        print(f"total execution time: {total_time:.2f}s")

    return 1 if flagged or failed else 0


if __name__ == "__main__":
    sys.exit(main())
