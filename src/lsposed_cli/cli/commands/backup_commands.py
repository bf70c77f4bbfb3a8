"""
Backup and restore commands.
"""

import argparse
from pathlib import Path

from lsposed_cli.core.errors import ExitCode
from lsposed_cli.core.snapshot import (
    SnapshotCodec,
    read_snapshot,
    resolve_backup_path,
    write_snapshot,
)

from ..context import CommandContext


def _codec(ctx: CommandContext) -> SnapshotCodec:
    return SnapshotCodec(ctx.client(), ctx.engine())


def cmd_backup(ctx: CommandContext, args: argparse.Namespace) -> int:
    snapshot, report = _codec(ctx).export(args.modules or None)
    path = write_snapshot(snapshot, resolve_backup_path(args.file, ctx.settings.backup_dir))
    if not ctx.json_output:
        ctx.print_line(f"Backup written to {path} ({len(snapshot.modules)} modules)")
    return ctx.report_batch(report, extra={"file": str(path)})


def cmd_restore(ctx: CommandContext, args: argparse.Namespace) -> int:
    # Format errors surface here, before any module is touched.
    snapshot = read_snapshot(Path(args.file).expanduser())
    report = _codec(ctx).restore(snapshot, args.modules or None, ignore_invalid=args.ignore)
    reboot = any(item.data and item.data.get("rebootRequired") for item in report.items)
    rc = ctx.report_batch(report, reboot_required=reboot)
    if rc == ExitCode.NOERROR and not ctx.json_output:
        ctx.print_line(f"Restored {report.succeeded} modules from {args.file}")
    return rc
