from unittest.mock import MagicMock

import pytest

from lsposed_cli.core.credentials import CredentialResolver, CredentialSource
from lsposed_cli.core.errors import (
    AuthenticationFailedError,
    AuthenticationRequiredError,
    DaemonUnreachableError,
    ExitCode,
)
from lsposed_cli.core.session import (
    AuthError,
    AuthErrorKind,
    Authenticated,
    HandshakeState,
    Session,
    SessionHandshake,
)


class _FakeService:
    """Application service that only accepts ``accepted`` as credential."""

    def __init__(self, accepted=None, open_access=False):
        self.accepted = accepted
        self.open_access = open_access
        self.requests = []
        self.channel = MagicMock()

    def request_control_handle(self, credential):
        self.requests.append(credential)
        if self.open_access or (credential is not None and credential == self.accepted):
            return "handle-1"
        return None


def _handshake(service, explicit=None, environ=None, prompt=None, interactive=False):
    registry = MagicMock()
    registry.lookup.return_value = service
    prompt_fn = prompt or MagicMock(return_value=None)
    return SessionHandshake(
        CredentialResolver(explicit, environ=environ or {}),
        registry=registry,
        prompt=prompt_fn,
        interactive=lambda: interactive,
    ), prompt_fn


def test_explicit_credential_accepted():
    service = _FakeService(accepted="1234")
    hs, prompt = _handshake(service, explicit="1234")
    outcome = hs.connect()
    assert isinstance(outcome, Authenticated)
    assert outcome.source is CredentialSource.ARGUMENT
    assert outcome.client.handle == "handle-1"
    assert hs.state is HandshakeState.AUTHENTICATED
    prompt.assert_not_called()


def test_argument_shadows_environment():
    service = _FakeService(accepted="1234")
    hs, _ = _handshake(service, explicit="1234", environ={"LSPOSED_CLI_PIN": "0000"})
    assert isinstance(hs.connect(), Authenticated)
    assert service.requests == ["1234"]


def test_rejected_explicit_credential_is_auth_failure_without_prompt():
    service = _FakeService(accepted="1234")
    hs, prompt = _handshake(service, explicit="0000", interactive=True)
    outcome = hs.connect()
    assert isinstance(outcome, AuthError)
    assert outcome.kind is AuthErrorKind.CREDENTIAL_REJECTED
    assert service.requests == ["0000"]
    prompt.assert_not_called()
    service.channel.close.assert_called_once()


def test_rejected_environment_credential_is_auth_failure():
    service = _FakeService(accepted="1234")
    hs, _ = _handshake(service, environ={"LSPOSED_CLI_PIN": "0000"})
    outcome = hs.connect()
    assert outcome.kind is AuthErrorKind.CREDENTIAL_REJECTED


def test_no_credential_non_interactive_is_guidance_error():
    service = _FakeService(accepted="1234")
    hs, prompt = _handshake(service, interactive=False)
    outcome = hs.connect()
    assert outcome.kind is AuthErrorKind.CREDENTIAL_REQUIRED
    assert "--pin" in outcome.message
    assert "LSPOSED_CLI_PIN" in outcome.message
    prompt.assert_not_called()


def test_interactive_prompt_retries_exactly_once():
    service = _FakeService(accepted="1234")
    prompt = MagicMock(return_value="1234")
    hs, _ = _handshake(service, prompt=prompt, interactive=True)
    outcome = hs.connect()
    assert isinstance(outcome, Authenticated)
    assert outcome.source is CredentialSource.PROMPT
    assert service.requests == [None, "1234"]
    prompt.assert_called_once()


def test_wrong_interactive_pin_is_auth_failure_after_single_retry():
    service = _FakeService(accepted="1234")
    prompt = MagicMock(return_value="9999")
    hs, _ = _handshake(service, prompt=prompt, interactive=True)
    outcome = hs.connect()
    assert outcome.kind is AuthErrorKind.CREDENTIAL_REJECTED
    assert service.requests == [None, "9999"]
    prompt.assert_called_once()


def test_aborted_prompt_is_guidance_error():
    service = _FakeService(accepted="1234")
    prompt = MagicMock(return_value=None)
    hs, _ = _handshake(service, prompt=prompt, interactive=True)
    outcome = hs.connect()
    assert outcome.kind is AuthErrorKind.CREDENTIAL_REQUIRED
    assert service.requests == [None]


def test_daemon_without_pin_needs_no_credential():
    service = _FakeService(open_access=True)
    hs, prompt = _handshake(service, interactive=True)
    outcome = hs.connect()
    assert isinstance(outcome, Authenticated)
    assert outcome.credential is None
    prompt.assert_not_called()


def test_transport_failure_is_not_an_auth_error():
    registry = MagicMock()
    registry.lookup.side_effect = DaemonUnreachableError("no daemon")
    hs = SessionHandshake(CredentialResolver("1234", environ={}), registry=registry)
    with pytest.raises(DaemonUnreachableError) as exc:
        hs.connect()
    assert exc.value.exit_code == ExitCode.NO_DAEMON


def test_transport_failure_during_request_closes_channel():
    service = _FakeService()
    service.request_control_handle = MagicMock(side_effect=DaemonUnreachableError("hung up"))
    hs, _ = _handshake(service, explicit="1234")
    with pytest.raises(DaemonUnreachableError):
        hs.connect()
    service.channel.close.assert_called_once()


def test_auth_error_maps_to_distinct_exit_codes():
    required = AuthError(AuthErrorKind.CREDENTIAL_REQUIRED, "x").to_exception()
    failed = AuthError(AuthErrorKind.CREDENTIAL_REJECTED, "y").to_exception()
    assert isinstance(required, AuthenticationRequiredError)
    assert isinstance(failed, AuthenticationFailedError)
    assert required.exit_code != failed.exit_code


def test_session_caches_client_and_raises_on_rejection():
    service = _FakeService(accepted="1234")
    hs, _ = _handshake(service, explicit="1234")
    session = Session(hs, retain_credential=True)
    first = session.connect()
    assert session.connect() is first
    assert session.credential == "1234"
    assert len(service.requests) == 1
    session.close()
    assert not session.connected

    rejected, _ = _handshake(_FakeService(accepted="1234"), explicit="0000")
    with pytest.raises(AuthenticationFailedError):
        Session(rejected).connect()


def test_session_forgets_prompted_credential_by_default():
    service = _FakeService(accepted="1234")
    hs, _ = _handshake(service, prompt=MagicMock(return_value="1234"), interactive=True)
    session = Session(hs)
    session.connect()
    assert session.connected
    assert session.credential is None
