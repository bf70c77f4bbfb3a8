"""
Module / verbose log command.
"""

import argparse

from lsposed_cli.core.errors import ExitCode, RemoteOperationError
from lsposed_cli.core.logs import CancellationToken, LogFollower

from ..context import CommandContext


def cmd_log(ctx: CommandContext, args: argparse.Namespace) -> int:
    client = ctx.client()

    if args.set_verbose is not None:
        enabled = args.set_verbose == "on"
        client.set_verbose_log(enabled)
        if ctx.json_output:
            ctx.print_json({"ok": True, "verboseLog": enabled})
        else:
            ctx.print_line(f"Verbose log: {args.set_verbose}")
        return ExitCode.NOERROR

    if args.clear:
        result = client.clear_logs(args.verbose)
        if not result.success:
            raise RemoteOperationError(result.detail or "failed to clear log")
        if not args.follow:
            return ExitCode.NOERROR

    path = client.verbose_log_path() if args.verbose else client.module_log_path()
    token = CancellationToken()
    follower = LogFollower(
        path,
        follow=args.follow,
        poll_interval=ctx.settings.log_poll_interval,
        token=token,
    )
    try:
        for line in follower.lines():
            ctx.print_line(line)
    except KeyboardInterrupt:
        token.cancel()
    return ExitCode.NOERROR
