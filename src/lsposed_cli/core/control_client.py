"""
RPC surface of the daemon control interface.

A ``ControlClient`` is the capability handle obtained by the session
handshake. Every mutating or module-scoped call returns a ``RemoteResult``
built from the same reply that carried the outcome, so a refusal reason can
never be overwritten by a later call.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, TypeAlias

from lsposed_cli.core.errors import ProtocolError, RemoteProtocolError
from lsposed_cli.core.models import (
    FrameworkStatus,
    PackageDescriptor,
    RemoteResult,
    ScopeEntry,
)
from lsposed_cli.core.transport import RpcChannel

logger = logging.getLogger("lsposed_cli.control_client")

ScopeReply: TypeAlias = Tuple[Optional[List[ScopeEntry]], RemoteResult]


def _expect_list(method: str, value: object) -> list:
    if not isinstance(value, list):
        raise RemoteProtocolError(f"daemon reply to '{method}' is not a list")
    return value


def _expect_dict(method: str, value: object) -> dict:
    if not isinstance(value, dict):
        raise RemoteProtocolError(f"daemon reply to '{method}' is not an object")
    return value


class ControlClient:
    def __init__(self, channel: RpcChannel, handle: str):
        self._channel = channel
        self._handle = handle

    @property
    def handle(self) -> str:
        return self._handle

    def _call(self, method: str, **params: object) -> object:
        payload: dict[str, object] = {"handle": self._handle}
        payload.update(params)
        logger.debug("rpc %s", method)
        try:
            return self._channel.call(method, payload)
        except ProtocolError as e:
            # past the handshake a garbled reply is a remote error
            raise RemoteProtocolError(e.message) from e

    # --- modules ----------------------------------------------------------

    def enabled_modules(self) -> List[str]:
        raw = _expect_list("enabledModules", self._call("enabledModules"))
        return [str(pkg) for pkg in raw]

    def installed_packages(self, filter_no_process: bool = False) -> List[PackageDescriptor]:
        raw = _expect_list(
            "getInstalledPackagesFromAllUsers",
            self._call(
                "getInstalledPackagesFromAllUsers",
                withMetaData=True,
                filterNoProcess=filter_no_process,
            ),
        )
        return [PackageDescriptor.from_wire(item) for item in raw]

    def enable_module(self, package: str) -> RemoteResult:
        return RemoteResult.from_wire(self._call("enableModule", packageName=package))

    def disable_module(self, package: str) -> RemoteResult:
        return RemoteResult.from_wire(self._call("disableModule", packageName=package))

    # --- scope ------------------------------------------------------------

    def get_module_scope(self, package: str) -> ScopeReply:
        """Return ``(scope, result)``; scope is ``None`` when the call failed."""
        raw = _expect_dict("getModuleScope", self._call("getModuleScope", packageName=package))
        result = RemoteResult.from_wire(raw)
        scope_raw = raw.get("scope")
        if not result.success or scope_raw is None:
            return None, result
        return [ScopeEntry.from_wire(item) for item in _expect_list("getModuleScope", scope_raw)], result

    def set_module_scope(self, package: str, entries: List[ScopeEntry]) -> RemoteResult:
        return RemoteResult.from_wire(
            self._call(
                "setModuleScope",
                packageName=package,
                scope=[entry.to_wire() for entry in entries],
            )
        )

    def get_auto_include(self, package: str) -> Tuple[bool, RemoteResult]:
        raw = _expect_dict("getAutoInclude", self._call("getAutoInclude", packageName=package))
        result = RemoteResult.from_wire(raw)
        return bool(raw.get("value", False)) and result.success, result

    def set_auto_include(self, package: str, value: bool) -> RemoteResult:
        return RemoteResult.from_wire(
            self._call("setAutoInclude", packageName=package, value=bool(value))
        )

    # --- credential -------------------------------------------------------

    def revoke_current_pin(self) -> None:
        self._call("revokeCurrentPin")

    # --- logs -------------------------------------------------------------

    def clear_logs(self, verbose: bool) -> RemoteResult:
        return RemoteResult.from_wire(self._call("clearLogs", verbose=bool(verbose)))

    def _log_path(self, method: str) -> Path:
        raw = self._call(method)
        path = raw.get("path") if isinstance(raw, dict) else raw
        if not path or not isinstance(path, str):
            raise RemoteProtocolError(f"daemon reply to '{method}' carries no log path")
        return Path(path)

    def module_log_path(self) -> Path:
        return self._log_path("getModulesLog")

    def verbose_log_path(self) -> Path:
        return self._log_path("getVerboseLog")

    def is_verbose_log(self) -> bool:
        return bool(self._call("isVerboseLog"))

    def set_verbose_log(self, enabled: bool) -> None:
        self._call("setVerboseLog", enabled=bool(enabled))

    # --- status -----------------------------------------------------------

    def framework_status(self) -> FrameworkStatus:
        try:
            return FrameworkStatus(
                api_version=int(self._call("getXposedApiVersion")),
                injection_interface=str(self._call("getApi")),
                version_name=str(self._call("getXposedVersionName")),
                version_code=int(self._call("getXposedVersionCode")),
                verbose_log=self.is_verbose_log(),
            )
        except (TypeError, ValueError) as e:
            raise RemoteProtocolError(f"malformed status field from daemon: {e}") from e

    def close(self) -> None:
        self._channel.close()
