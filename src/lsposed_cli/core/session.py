"""
Session handshake with the daemon.

``SessionHandshake.connect()`` walks
Unauthenticated -> CredentialObtained -> HandshakeSent -> {Authenticated, Rejected}
and returns a typed outcome instead of exiting the process. Transport
failures propagate as ``DaemonUnreachableError`` and are never reported as
authentication problems.
"""

import getpass
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, TextIO, Union

from lsposed_cli.core.constants import PIN_PROMPT
from lsposed_cli.core.control_client import ControlClient
from lsposed_cli.core.credentials import CredentialResolver, CredentialSource
from lsposed_cli.core.errors import (
    AuthenticationFailedError,
    AuthenticationRequiredError,
    LspCliError,
)
from lsposed_cli.core.service_registry import ServiceRegistry
from lsposed_cli.core.utils.logging import get_logger

logger = get_logger("lsposed_cli.session")

AUTH_REQUIRED_MESSAGE = (
    "Authentication required. Use --pin, set LSPOSED_CLI_PIN, or use an interactive shell."
)
AUTH_FAILED_MESSAGE = (
    "Authentication failed. The provided PIN is incorrect or CLI is disabled in the Manager app."
)


class HandshakeState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    CREDENTIAL_OBTAINED = "credential_obtained"
    HANDSHAKE_SENT = "handshake_sent"
    AUTHENTICATED = "authenticated"
    REJECTED = "rejected"


class AuthErrorKind(str, Enum):
    CREDENTIAL_REQUIRED = "credential_required"
    CREDENTIAL_REJECTED = "credential_rejected"


@dataclass
class Authenticated:
    client: ControlClient
    credential: Optional[str]
    source: CredentialSource


@dataclass
class AuthError:
    kind: AuthErrorKind
    message: str

    def to_exception(self) -> LspCliError:
        if self.kind is AuthErrorKind.CREDENTIAL_REQUIRED:
            return AuthenticationRequiredError(self.message)
        return AuthenticationFailedError(self.message)


HandshakeResult = Union[Authenticated, AuthError]
PromptFn = Callable[[], Optional[str]]


def stdin_is_interactive(stream: Optional[TextIO] = None) -> bool:
    stream = stream or sys.stdin
    try:
        return bool(stream and stream.isatty())
    except (AttributeError, ValueError):
        return False


def prompt_for_pin(stderr: Optional[TextIO] = None) -> Optional[str]:
    """Read the PIN with echo off; ``None`` when the user aborts input."""
    err = stderr or sys.stderr
    print("Authentication required.", file=err)
    try:
        return getpass.getpass(PIN_PROMPT, stream=err)
    except (EOFError, KeyboardInterrupt):
        print(file=err)
        return None


class SessionHandshake:
    def __init__(
        self,
        resolver: CredentialResolver,
        registry: Optional[ServiceRegistry] = None,
        prompt: Optional[PromptFn] = None,
        interactive: Optional[Callable[[], bool]] = None,
    ):
        self.resolver = resolver
        self.registry = registry or ServiceRegistry()
        self.prompt = prompt or prompt_for_pin
        self.interactive = interactive or stdin_is_interactive
        self.state = HandshakeState.UNAUTHENTICATED

    def connect(self) -> HandshakeResult:
        resolved = self.resolver.resolve()
        credential = resolved.value
        source = resolved.source
        self.state = HandshakeState.CREDENTIAL_OBTAINED
        logger.debug("credential resolved", source=source.value, present=credential is not None)

        service = self.registry.lookup()
        channel = service.channel
        try:
            self.state = HandshakeState.HANDSHAKE_SENT
            handle = service.request_control_handle(credential)

            # A single interactive retry, only when nothing was supplied at all.
            if handle is None and credential is None and self.interactive():
                entered = self.prompt()
                if entered is not None:
                    credential = entered
                    source = CredentialSource.PROMPT
                    handle = service.request_control_handle(credential)
        except BaseException:
            channel.close()
            raise

        if handle is not None:
            self.state = HandshakeState.AUTHENTICATED
            logger.debug("control handle obtained", source=source.value)
            return Authenticated(ControlClient(channel, handle), credential, source)

        channel.close()
        self.state = HandshakeState.REJECTED
        if credential is None:
            logger.info("handshake rejected without credential")
            return AuthError(AuthErrorKind.CREDENTIAL_REQUIRED, AUTH_REQUIRED_MESSAGE)
        logger.info("handshake rejected", source=source.value)
        return AuthError(AuthErrorKind.CREDENTIAL_REJECTED, AUTH_FAILED_MESSAGE)


class Session:
    """
    Process-lifetime holder of the control handle.

    The credential is forgotten once the handle is obtained unless
    ``retain_credential`` is set, which only ``login`` needs.
    """

    def __init__(self, handshake: SessionHandshake, retain_credential: bool = False):
        self.handshake = handshake
        self.retain_credential = retain_credential
        self._auth: Optional[Authenticated] = None

    @property
    def connected(self) -> bool:
        return self._auth is not None

    @property
    def credential(self) -> Optional[str]:
        return self._auth.credential if self._auth else None

    def connect(self) -> ControlClient:
        if self._auth is None:
            outcome = self.handshake.connect()
            if isinstance(outcome, AuthError):
                raise outcome.to_exception()
            if not self.retain_credential:
                outcome.credential = None
            self._auth = outcome
        return self._auth.client

    def close(self) -> None:
        if self._auth is not None:
            self._auth.client.close()
            self._auth = None
