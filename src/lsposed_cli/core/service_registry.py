"""
Daemon endpoint lookup.

The control interface is never addressed directly: the client first performs
the fixed capability exchange against the platform service entry, which hands
back an application-service token. Only that token may ask for a control
handle.
"""

import logging
from typing import Optional

from lsposed_cli.core.constants import (
    CLI_CALLER_PREFIX,
    SERVICE_INTERFACE_TOKEN,
    SERVICE_NAME,
    SERVICE_PROTOCOL_VERSION,
    SERVICE_TRANSACTION_CODE,
)
from lsposed_cli.core.errors import DaemonUnreachableError, LspCliError
from lsposed_cli.core.settings import Settings, settings as default_settings
from lsposed_cli.core.transport import RpcChannel

logger = logging.getLogger("lsposed_cli.service_registry")


def caller_name(caller_uuid: str) -> str:
    return f"{CLI_CALLER_PREFIX}:{caller_uuid}"


class ApplicationService:
    """Application-service side of the daemon, reachable after the exchange."""

    def __init__(self, channel: RpcChannel, token: str):
        self.channel = channel
        self.token = token

    def request_control_handle(self, credential: Optional[str]) -> Optional[str]:
        """Ask for a control handle; ``None`` when the daemon refuses."""
        result = self.channel.call(
            "requestControlHandle",
            {"service": self.token, "credential": credential},
        )
        if isinstance(result, dict):
            handle = result.get("handle")
        else:
            handle = result
        if handle is None or handle == "":
            return None
        return str(handle)


class ServiceRegistry:
    def __init__(self, settings_obj: Optional[Settings] = None):
        self.settings = settings_obj or default_settings

    def open_channel(self) -> RpcChannel:
        return RpcChannel.open(
            self.settings.DAEMON_HOST,
            self.settings.DAEMON_PORT,
            connect_timeout=self.settings.CONNECT_TIMEOUT_SEC,
            rpc_timeout=self.settings.RPC_TIMEOUT_SEC,
        )

    def lookup(self) -> ApplicationService:
        """
        Perform the capability exchange and return the application service.

        Every failure here is a transport-level "no daemon" condition, even
        when the daemon answered with an error: authentication has not been
        attempted yet.
        """
        channel = self.open_channel()
        try:
            result = channel.call(
                "service/exchange",
                {
                    "service": SERVICE_NAME,
                    "interface": SERVICE_INTERFACE_TOKEN,
                    "code": SERVICE_TRANSACTION_CODE,
                    "version": SERVICE_PROTOCOL_VERSION,
                    "caller": caller_name(self.settings.CALLER_UUID),
                },
            )
        except DaemonUnreachableError:
            channel.close()
            raise
        except LspCliError as e:
            channel.close()
            raise DaemonUnreachableError(f"capability exchange failed: {e.message}") from e

        token = result.get("service") if isinstance(result, dict) else None
        if not token:
            channel.close()
            raise DaemonUnreachableError("daemon did not return a service binder")
        logger.debug("capability exchange succeeded on %s", channel.endpoint)
        return ApplicationService(channel, str(token))
