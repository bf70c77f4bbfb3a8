"""
Command-line layer: argument parsing, per-command context and dispatch.
"""

from .context import CommandContext
from .dispatcher import CommandDispatcher
from .parser import CMDNAME, CliArgumentParser, build_parser

__all__ = [
    "CMDNAME",
    "CliArgumentParser",
    "CommandContext",
    "CommandDispatcher",
    "build_parser",
]
