from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from lsposed_cli.version import __version__
from lsposed_cli.core.constants import (
    DAEMON_CONNECT_TIMEOUT_SECONDS,
    DAEMON_RPC_TIMEOUT_SECONDS,
    DEFAULT_CLI_UUID,
    DEFAULT_DAEMON_HOST,
    DEFAULT_DAEMON_PORT,
    LOG_POLL_INTERVAL_SECONDS,
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LSPCLI_",
        case_sensitive=True,
        extra="ignore",
    )

    VERSION: str = __version__

    # --- DAEMON ENDPOINT ---
    DAEMON_HOST: str = DEFAULT_DAEMON_HOST
    DAEMON_PORT: int = DEFAULT_DAEMON_PORT
    CONNECT_TIMEOUT_SEC: float = DAEMON_CONNECT_TIMEOUT_SECONDS
    RPC_TIMEOUT_SEC: float = DAEMON_RPC_TIMEOUT_SECONDS
    CALLER_UUID: str = DEFAULT_CLI_UUID

    # --- LOGGING ---
    LOG_LEVEL: str = "WARNING"
    LOG_JSON: bool = False
    # Polling backoff for `log --follow`.
    LOG_POLL_INTERVAL_MS: int = int(LOG_POLL_INTERVAL_SECONDS * 1000)

    # --- BACKUP ---
    BACKUP_DIR: Optional[str] = None

    @property
    def log_poll_interval(self) -> float:
        return max(self.LOG_POLL_INTERVAL_MS, 1) / 1000.0

    @property
    def backup_dir(self) -> Path:
        if self.BACKUP_DIR:
            return Path(self.BACKUP_DIR).expanduser()
        return Path.cwd()


settings = Settings()
