"""Public package exports for the CLEO script compatibility checker."""

from .commands import Command, CommandTable, Param, ParamType
from .compat import CompatIssue, check_bytecode, check_script, classify
from .errors import CheckError, DecodeError, LoaderError, SchemaError, ScmError
from .explorer import ControlFlowExplorer, ControlFlowGraph, explore
from .instruction import Instruction, read_instruction
from .listing import render_graph, render_listing
from .loader import LoadedLanguage, LoadedScript, ScriptLoader

__all__ = [
    "Command",
    "CommandTable",
    "Param",
    "ParamType",
    "CompatIssue",
    "check_bytecode",
    "check_script",
    "classify",
    "CheckError",
    "DecodeError",
    "LoaderError",
    "SchemaError",
    "ScmError",
    "ControlFlowExplorer",
    "ControlFlowGraph",
    "explore",
    "Instruction",
    "read_instruction",
    "render_graph",
    "render_listing",
    "LoadedLanguage",
    "LoadedScript",
    "ScriptLoader",
]
