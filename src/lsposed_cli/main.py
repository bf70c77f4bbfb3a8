import argparse
import sys
from typing import List, Optional

from lsposed_cli.core.credentials import CredentialResolver
from lsposed_cli.core.service_registry import ServiceRegistry
from lsposed_cli.core.session import Session, SessionHandshake
from lsposed_cli.core.settings import settings
from lsposed_cli.core.utils.logging import configure_logging

from lsposed_cli.cli import CommandContext, CommandDispatcher, build_parser


def build_session(args: argparse.Namespace) -> Session:
    resolver = CredentialResolver(explicit=getattr(args, "pin", None))
    return Session(
        SessionHandshake(resolver, registry=ServiceRegistry(settings)),
        retain_credential=args.command == "login",
    )


def main(argv: Optional[List[str]] = None) -> int:
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    ctx = CommandContext(
        session=build_session(args),
        json_output=bool(getattr(args, "json", False)),
        settings=settings,
    )
    return CommandDispatcher(ctx).dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())
