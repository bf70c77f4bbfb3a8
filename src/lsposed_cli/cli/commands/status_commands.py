"""
Framework status command.
"""

import argparse
import platform

from lsposed_cli.core.errors import ExitCode

from ..context import CommandContext


def _system_info() -> dict[str, str]:
    uname = platform.uname()
    return {
        "system": uname.system,
        "release": uname.release,
        "machine": uname.machine,
    }


def cmd_status(ctx: CommandContext, args: argparse.Namespace) -> int:
    status = ctx.client().framework_status()
    system = _system_info()
    if ctx.json_output:
        payload = status.model_dump()
        payload.update(system)
        ctx.print_json(payload)
        return ExitCode.NOERROR

    ctx.print_line(f"API version: {status.api_version}")
    ctx.print_line(f"Injection Interface: {status.injection_interface}")
    ctx.print_line(f"Framework version: {status.version_name}({status.version_code})")
    if status.verbose_log is not None:
        ctx.print_line(f"Verbose log: {'on' if status.verbose_log else 'off'}")
    ctx.print_line(f"System: {system['system']} {system['release']}")
    ctx.print_line(f"Machine: {system['machine']}")
    return ExitCode.NOERROR
