import argparse
import sys
from typing import NoReturn

from lsposed_cli.core.errors import ExitCode
from lsposed_cli.version import __version__

from .commands.auth_commands import cmd_login, cmd_revoke_pin
from .commands.backup_commands import cmd_backup, cmd_restore
from .commands.log_commands import cmd_log
from .commands.modules_commands import cmd_modules_ls, cmd_modules_set
from .commands.scope_commands import cmd_scope_ls, cmd_scope_set
from .commands.status_commands import cmd_status

CMDNAME = "lsposed-cli"


class CliArgumentParser(argparse.ArgumentParser):
    """argparse exits with 2 on bad usage, which would collide with EMPTY_SCOPE."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(int(ExitCode.USAGE), f"{self.prog}: error: {message}\n")


def _global_options(suppress_defaults: bool) -> argparse.ArgumentParser:
    # Shared by the root and every subcommand so `-p`/`-j` work in any position.
    default = argparse.SUPPRESS if suppress_defaults else None
    opts = argparse.ArgumentParser(add_help=False)
    opts.add_argument("-p", "--pin", default=default, help="Authentication PIN for the CLI.")
    opts.add_argument(
        "-j", "--json",
        action="store_true",
        default=argparse.SUPPRESS if suppress_defaults else False,
        help="Output results in JSON format.",
    )
    return opts


def build_parser() -> argparse.ArgumentParser:
    common = _global_options(suppress_defaults=True)
    parser = CliArgumentParser(
        prog=CMDNAME,
        description="LSPosed daemon command-line client",
        parents=[_global_options(suppress_defaults=False)],
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command", required=True, metavar="<command>")

    status = sub.add_parser("status", parents=[common], help="Show framework and system status")
    status.set_defaults(handler=cmd_status)

    login = sub.add_parser(
        "login",
        parents=[common],
        help="Verify the PIN and print the command that sets the session environment variable",
    )
    login.add_argument("--for-eval", action="store_true", help="Output only the export command for use with eval().")
    login.set_defaults(handler=cmd_login)

    revoke = sub.add_parser("revoke-pin", parents=[common], help="Revoke the current CLI PIN, disabling CLI access")
    revoke.set_defaults(handler=cmd_revoke_pin)

    # modules
    modules = sub.add_parser("modules", parents=[common], help="List, enable or disable modules")
    modules_sub = modules.add_subparsers(dest="modules_command", required=True, metavar="<subcommand>")
    modules_ls = modules_sub.add_parser("ls", parents=[common], help="List registered modules")
    ls_group = modules_ls.add_mutually_exclusive_group()
    ls_group.add_argument("-e", "--enabled", action="store_true", help="list only enabled modules")
    ls_group.add_argument("-d", "--disabled", action="store_true", help="list only disabled modules")
    modules_ls.set_defaults(handler=cmd_modules_ls)

    modules_set = modules_sub.add_parser("set", parents=[common], help="Enable or disable modules")
    set_group = modules_set.add_mutually_exclusive_group(required=True)
    set_group.add_argument("-e", "--enable", action="store_true", help="enable modules")
    set_group.add_argument("-d", "--disable", action="store_true", help="disable modules")
    modules_set.add_argument("-i", "--ignore", action="store_true", help="ignore not installed packages")
    modules_set.add_argument("modules", nargs="+", metavar="<module name>")
    modules_set.set_defaults(handler=cmd_modules_set)

    # scope
    scope = sub.add_parser("scope", parents=[common], help="Show or change module scope")
    scope_sub = scope.add_subparsers(dest="scope_command", required=True, metavar="<subcommand>")
    scope_ls = scope_sub.add_parser("ls", parents=[common], help="List the scope of a module")
    scope_ls.add_argument("module", metavar="<module name>")
    scope_ls.set_defaults(handler=cmd_scope_ls)

    scope_set = scope_sub.add_parser("set", parents=[common], help="Set, append to or remove from a module scope")
    mode_group = scope_set.add_mutually_exclusive_group()
    mode_group.add_argument("-s", "--set", dest="mode", action="store_const", const="replace",
                            help="set a new scope (default)")
    mode_group.add_argument("-a", "--append", dest="mode", action="store_const", const="append",
                            help="append packages to scope")
    mode_group.add_argument("-d", "--remove", dest="mode", action="store_const", const="remove",
                            help="remove packages from scope")
    scope_set.add_argument("-i", "--ignore", action="store_true", help="ignore not installed packages")
    scope_set.add_argument("module", metavar="<module name>")
    scope_set.add_argument("entries", nargs="+", metavar="<package/userId>")
    scope_set.set_defaults(handler=cmd_scope_set, mode="replace")

    # log
    log = sub.add_parser("log", parents=[common], help="Print or follow the module log")
    log.add_argument("-f", "--follow", action="store_true", help="Follow update of log, as tail -f")
    log.add_argument("-v", "--verbose", action="store_true", help="Get verbose log")
    log.add_argument("-c", "--clear", action="store_true", help="Clear log")
    log.add_argument("--set-verbose", choices=["on", "off"], default=None,
                     help="Turn verbose logging on or off in the daemon")
    log.set_defaults(handler=cmd_log)

    # backup / restore
    backup = sub.add_parser("backup", parents=[common], help="Back up module state and scope")
    backup.add_argument("modules", nargs="*", metavar="<module name>", help="module's name, default all")
    backup.add_argument("-f", "--file", default=None, help="output file")
    backup.set_defaults(handler=cmd_backup)

    restore = sub.add_parser("restore", parents=[common], help="Restore module state and scope from a backup")
    restore.add_argument("modules", nargs="*", metavar="<module name>", help="module's name, default all")
    restore.add_argument("-f", "--file", required=True, help="input file")
    restore.add_argument("-i", "--ignore", action="store_true", help="ignore not installed packages")
    restore.set_defaults(handler=cmd_restore)

    return parser
