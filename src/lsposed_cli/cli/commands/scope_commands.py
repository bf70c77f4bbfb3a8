"""
Scope listing and editing commands.
"""

import argparse

from lsposed_cli.core.errors import ExitCode
from lsposed_cli.core.models import ScopeEntry, ScopeMode

from ..context import CommandContext


def cmd_scope_ls(ctx: CommandContext, args: argparse.Namespace) -> int:
    scope = ctx.engine().current_scope(args.module)
    if ctx.json_output:
        ctx.print_json({"module": args.module, "scope": [str(entry) for entry in scope]})
        return ExitCode.NOERROR
    for entry in scope:
        ctx.print_line(str(entry))
    return ExitCode.NOERROR


def cmd_scope_set(ctx: CommandContext, args: argparse.Namespace) -> int:
    # Parse everything before touching the daemon so a typo never half-applies.
    entries = [ScopeEntry.parse(text) for text in args.entries]
    mode = ScopeMode(args.mode)

    change = ctx.engine().set_scope(args.module, entries, mode, ignore_invalid=args.ignore)

    if ctx.json_output:
        ctx.print_json({"ok": True, **change.to_dict()})
        return ExitCode.NOERROR

    for entry in change.dropped:
        ctx.print_err(f"Ignored {entry}: not installed")
    if change.auto_disabled:
        ctx.print_err(f"{args.module}: scope has fewer than 2 entries, module disabled")
    if change.reboot_required:
        ctx.print_err("Reboot is required")
    return ExitCode.NOERROR
