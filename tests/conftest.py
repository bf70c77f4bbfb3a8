import pytest

from .fakes import FakeControlClient, module_package, app_package


@pytest.fixture(autouse=True)
def lspcli_env(monkeypatch, tmp_path):
    monkeypatch.setenv("LSPCLI_DAEMON_HOST", "127.0.0.1")
    monkeypatch.setenv("LSPCLI_DAEMON_PORT", "48790")
    monkeypatch.setenv("LSPCLI_LOG_POLL_INTERVAL_MS", "10")
    monkeypatch.setenv("LSPCLI_BACKUP_DIR", str(tmp_path))
    monkeypatch.delenv("LSPOSED_CLI_PIN", raising=False)


@pytest.fixture
def fake_client():
    """Daemon with two modules and a handful of installed apps for user 0 and 10."""
    return FakeControlClient(
        packages=[
            module_package("com.mod.alpha"),
            module_package("com.mod.beta"),
            app_package("android", uid=1000),
            app_package("com.foo", uid=10100),
            app_package("com.bar", uid=10101),
            app_package("com.foo", uid=10 * 100000 + 10100),
        ],
        scopes={
            "com.mod.alpha": [("com.mod.alpha", 0), ("com.foo", 0)],
            "com.mod.beta": [],
        },
        enabled=["com.mod.alpha"],
    )
