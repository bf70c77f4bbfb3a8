from unittest.mock import MagicMock

import pytest

from lsposed_cli.core.control_client import ControlClient
from lsposed_cli.core.errors import ExitCode, ProtocolError, RemoteProtocolError
from lsposed_cli.core.models import ScopeEntry


def _client(*results):
    channel = MagicMock()
    channel.call.side_effect = list(results)
    return ControlClient(channel, "ctl-1"), channel


def test_every_call_carries_the_handle():
    client, channel = _client(["com.mod.alpha"])
    assert client.enabled_modules() == ["com.mod.alpha"]
    channel.call.assert_called_once_with("enabledModules", {"handle": "ctl-1"})


def test_installed_packages_decodes_descriptors():
    client, channel = _client([
        {"packageName": "com.mod.alpha", "uid": 1010200, "metaData": {"xposedmodule": True}},
        {"packageName": "com.foo", "uid": 10100},
    ])
    packages = client.installed_packages()
    assert [p.package_name for p in packages] == ["com.mod.alpha", "com.foo"]
    assert packages[0].is_module and packages[0].user_id == 10
    assert not packages[1].is_module
    params = channel.call.call_args[0][1]
    assert params["withMetaData"] is True


def test_refusal_reason_comes_from_the_same_reply():
    client, _ = _client({"ok": False, "detail": "scope is empty"})
    result = client.enable_module("com.mod.beta")
    assert not result
    assert result.detail == "scope is empty"


def test_get_module_scope_success_and_failure():
    client, _ = _client(
        {"ok": True, "scope": [{"packageName": "android", "userId": 0}]},
        {"ok": False, "detail": "not a module"},
    )
    scope, result = client.get_module_scope("com.mod.alpha")
    assert scope == [ScopeEntry(package_name="android", user_id=0)]
    assert result.success

    scope, result = client.get_module_scope("com.nope")
    assert scope is None
    assert result.detail == "not a module"


def test_set_module_scope_sends_wire_entries():
    client, channel = _client(True)
    client.set_module_scope("com.mod.alpha", [ScopeEntry(package_name="com.foo", user_id=10)])
    params = channel.call.call_args[0][1]
    assert params["scope"] == [{"packageName": "com.foo", "userId": 10}]


def test_malformed_reply_is_protocol_error():
    client, _ = _client({"unexpected": 1})
    with pytest.raises(RemoteProtocolError):
        client.enable_module("com.mod.alpha")

    client, _ = _client("not-a-list")
    with pytest.raises(RemoteProtocolError):
        client.enabled_modules()


def test_log_path_reply():
    client, _ = _client({"path": "/data/adb/lspd/log/modules.log"}, {})
    assert str(client.module_log_path()).endswith("modules.log")
    with pytest.raises(RemoteProtocolError):
        client.verbose_log_path()


def test_framework_status():
    client, _ = _client(93, "Zygisk", "1.9.2", 7024, False)
    status = client.framework_status()
    assert status.api_version == 93
    assert status.injection_interface == "Zygisk"
    assert status.version_code == 7024
    assert status.verbose_log is False


def test_garbled_frame_after_handshake_is_remote_error():
    client, _ = _client(ProtocolError("undecodable daemon reply"))
    with pytest.raises(RemoteProtocolError) as exc:
        client.enabled_modules()
    assert exc.value.exit_code == ExitCode.REMOTE_ERROR


def test_malformed_scope_entry_is_remote_error():
    client, _ = _client({"ok": True, "scope": [{"userId": 0}]})
    with pytest.raises(RemoteProtocolError) as exc:
        client.get_module_scope("com.mod.alpha")
    assert exc.value.exit_code == ExitCode.REMOTE_ERROR
