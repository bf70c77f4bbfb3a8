"""
Credential commands: verify a PIN for the shell session, or revoke it.
"""

import argparse
import shlex

from lsposed_cli.core.constants import ENV_CLI_PIN
from lsposed_cli.core.errors import ExitCode, LspCliError

from ..context import CommandContext


def _export_line(pin: str) -> str:
    return f"export {ENV_CLI_PIN}={shlex.quote(pin)}"


def cmd_login(ctx: CommandContext, args: argparse.Namespace) -> int:
    ctx.client()
    pin = ctx.session.credential
    if pin is None:
        raise LspCliError(
            "could not retrieve the PIN used for authentication",
            hint="pass --pin or set LSPOSED_CLI_PIN",
            exit_code=ExitCode.USAGE,
        )

    export = _export_line(pin)
    if ctx.json_output:
        ctx.print_json({"ok": True, "authenticated": True, "export": export})
    elif args.for_eval:
        ctx.print_line(export)
    else:
        ctx.print_err("Authentication successful.")
        ctx.print_err("To avoid typing the PIN for each command, run:")
        ctx.print_line(f"  {export}")
    return ExitCode.NOERROR


def cmd_revoke_pin(ctx: CommandContext, args: argparse.Namespace) -> int:
    ctx.client().revoke_current_pin()
    if ctx.json_output:
        ctx.print_json({"ok": True, "revoked": True})
    else:
        ctx.print_line("CLI PIN revoked. Enable the CLI in the Manager app to set a new one.")
    return ExitCode.NOERROR
