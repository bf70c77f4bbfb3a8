from lsposed_cli.core.credentials import CredentialResolver, CredentialSource


def test_explicit_argument_wins_over_environment():
    resolved = CredentialResolver("1234", environ={"LSPOSED_CLI_PIN": "9999"}).resolve()
    assert resolved.value == "1234"
    assert resolved.source is CredentialSource.ARGUMENT
    assert resolved.was_explicitly_provided


def test_environment_used_when_no_argument():
    resolved = CredentialResolver(None, environ={"LSPOSED_CLI_PIN": "9999"}).resolve()
    assert resolved.value == "9999"
    assert resolved.source is CredentialSource.ENVIRONMENT


def test_nothing_supplied_resolves_to_none():
    resolved = CredentialResolver(None, environ={}).resolve()
    assert resolved.value is None
    assert resolved.source is CredentialSource.NONE
    assert not resolved.was_explicitly_provided


def test_empty_argument_is_still_an_explicit_credential():
    resolved = CredentialResolver("", environ={"LSPOSED_CLI_PIN": "9999"}).resolve()
    assert resolved.value == ""
    assert resolved.source is CredentialSource.ARGUMENT


def test_reads_process_environment_by_default(monkeypatch):
    monkeypatch.setenv("LSPOSED_CLI_PIN", "4242")
    assert CredentialResolver().resolve().value == "4242"


def test_repr_never_contains_secret():
    resolved = CredentialResolver("s3cret-pin", environ={}).resolve()
    assert "s3cret-pin" not in repr(resolved)
