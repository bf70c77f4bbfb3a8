"""
Module listing and enable/disable commands.
"""

import argparse

from lsposed_cli.core.errors import (
    ExitCode,
    RemoteOperationError,
    ValidationFailure,
    failure_reason,
)
from lsposed_cli.core.models import BatchReport

from ..context import CommandContext

LIST_FORMAT = "%-40s %10d %-8s"


def cmd_modules_ls(ctx: CommandContext, args: argparse.Namespace) -> int:
    engine = ctx.engine()
    enabled = set(ctx.client().enabled_modules())

    rows = []
    for pkg in engine.packages.registered_modules():
        is_enabled = pkg.package_name in enabled
        if args.enabled and not is_enabled:
            continue
        if args.disabled and is_enabled:
            continue
        rows.append((pkg.package_name, pkg.uid, is_enabled))

    if ctx.json_output:
        ctx.print_json([
            {"package": name, "uid": uid, "enabled": is_enabled}
            for name, uid, is_enabled in rows
        ])
        return ExitCode.NOERROR

    for name, uid, is_enabled in rows:
        ctx.print_line(LIST_FORMAT % (name, uid, "enable" if is_enabled else "disable"))
    return ExitCode.NOERROR


def cmd_modules_set(ctx: CommandContext, args: argparse.Namespace) -> int:
    engine = ctx.engine()
    report = BatchReport()
    reboot = False

    for module in dict.fromkeys(args.modules):
        try:
            result = engine.enable(module) if args.enable else engine.disable(module)
        except ValidationFailure as e:
            if args.ignore and not engine.packages.is_registered_module(module):
                ctx.print_err(f"Skipped {module}: not a valid xposed module")
                continue
            report.fail(module, failure_reason(e, module), e.exit_code)
            continue
        except RemoteOperationError as e:
            report.fail(module, failure_reason(e, module), e.exit_code)
            continue
        reboot = reboot or result.reboot_required
        report.succeed(module, result.to_dict())

    return ctx.report_batch(report, reboot_required=reboot)
