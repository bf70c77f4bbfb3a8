"""
Runs one parsed command and maps its outcome to a process exit status.
"""

import argparse
import logging
from typing import Callable

from lsposed_cli.core.errors import ExitCode, LspCliError

from .context import CommandContext

logger = logging.getLogger("lsposed_cli.dispatcher")

Handler = Callable[[CommandContext, argparse.Namespace], int]


class CommandDispatcher:
    """
    One command, one exit status.

    Failures are rendered once here: typed errors keep their own status,
    an OS-level failure outside the transport (for example an unreadable
    log or backup file) is a remote error. RPCs are never retried here.
    """

    def __init__(self, ctx: CommandContext):
        self.ctx = ctx

    def dispatch(self, args: argparse.Namespace) -> int:
        handler: Handler = args.handler
        try:
            return int(handler(self.ctx, args))
        except LspCliError as e:
            logger.debug("command failed: %s", e.code)
            self.ctx.print_error(e)
            return int(e.exit_code)
        except OSError as e:
            entity = e.filename or "I/O"
            error = LspCliError(f"{entity}: {e.strerror or e}")
            self.ctx.print_error(error)
            return int(ExitCode.REMOTE_ERROR)
        finally:
            self.ctx.session.close()
