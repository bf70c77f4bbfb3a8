"""In-memory stand-ins for the daemon side of the control interface."""

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from lsposed_cli.core.models import FrameworkStatus, PackageDescriptor, RemoteResult, ScopeEntry


def module_package(name: str, uid: int = 10200) -> PackageDescriptor:
    return PackageDescriptor(package_name=name, uid=uid, meta_data=["xposedmodule", "xposeddescription"])


def app_package(name: str, uid: int = 10100) -> PackageDescriptor:
    return PackageDescriptor(package_name=name, uid=uid, meta_data=[])


class FakeControlClient:
    """Same surface as ``ControlClient``, backed by dicts; records every call."""

    def __init__(
        self,
        packages: Iterable[PackageDescriptor] = (),
        scopes: Optional[Dict[str, List[Tuple[str, int]]]] = None,
        enabled: Iterable[str] = (),
        auto_include: Optional[Dict[str, bool]] = None,
    ):
        self.packages = list(packages)
        self.scopes: Dict[str, List[ScopeEntry]] = {
            name: [ScopeEntry(package_name=p, user_id=u) for p, u in entries]
            for name, entries in (scopes or {}).items()
        }
        self.enabled = list(enabled)
        self.auto_include = dict(auto_include or {})
        self.calls: List[str] = []
        self.refuse: Dict[str, str] = {}
        self.log_path: Optional[Path] = None
        self.verbose_path: Optional[Path] = None
        self.verbose = False
        self.cleared: List[bool] = []
        self.revoked = False
        self.closed = False

    def _refused(self, method: str) -> Optional[RemoteResult]:
        if method in self.refuse:
            return RemoteResult(success=False, detail=self.refuse[method])
        return None

    @property
    def mutations(self) -> List[str]:
        return [c for c in self.calls if c.split(":")[0] in {
            "enableModule", "disableModule", "setModuleScope", "setAutoInclude",
        }]

    def enabled_modules(self) -> List[str]:
        self.calls.append("enabledModules")
        return list(self.enabled)

    def installed_packages(self, filter_no_process: bool = False) -> List[PackageDescriptor]:
        self.calls.append("getInstalledPackagesFromAllUsers")
        return list(self.packages)

    def enable_module(self, package: str) -> RemoteResult:
        self.calls.append(f"enableModule:{package}")
        refused = self._refused("enableModule")
        if refused is not None:
            return refused
        if package not in self.enabled:
            self.enabled.append(package)
        return RemoteResult(success=True)

    def disable_module(self, package: str) -> RemoteResult:
        self.calls.append(f"disableModule:{package}")
        refused = self._refused("disableModule")
        if refused is not None:
            return refused
        if package in self.enabled:
            self.enabled.remove(package)
        return RemoteResult(success=True)

    def get_module_scope(self, package: str):
        self.calls.append(f"getModuleScope:{package}")
        refused = self._refused("getModuleScope")
        if refused is not None:
            return None, refused
        return list(self.scopes.get(package, [])), RemoteResult(success=True)

    def set_module_scope(self, package: str, entries: List[ScopeEntry]) -> RemoteResult:
        self.calls.append(f"setModuleScope:{package}")
        refused = self._refused("setModuleScope")
        if refused is not None:
            return refused
        self.scopes[package] = list(entries)
        return RemoteResult(success=True)

    def get_auto_include(self, package: str):
        self.calls.append(f"getAutoInclude:{package}")
        return self.auto_include.get(package, False), RemoteResult(success=True)

    def set_auto_include(self, package: str, value: bool) -> RemoteResult:
        self.calls.append(f"setAutoInclude:{package}")
        self.auto_include[package] = value
        return RemoteResult(success=True)

    def revoke_current_pin(self) -> None:
        self.calls.append("revokeCurrentPin")
        self.revoked = True

    def clear_logs(self, verbose: bool) -> RemoteResult:
        self.calls.append("clearLogs")
        self.cleared.append(verbose)
        return RemoteResult(success=True)

    def module_log_path(self) -> Path:
        return self.log_path

    def verbose_log_path(self) -> Path:
        return self.verbose_path

    def is_verbose_log(self) -> bool:
        return self.verbose

    def set_verbose_log(self, enabled: bool) -> None:
        self.calls.append("setVerboseLog")
        self.verbose = enabled

    def framework_status(self) -> FrameworkStatus:
        return FrameworkStatus(
            api_version=93,
            injection_interface="Zygisk",
            version_name="1.9.2",
            version_code=7024,
            verbose_log=self.verbose,
        )

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """Session stand-in handing out a ready client."""

    def __init__(self, client: FakeControlClient, credential: Optional[str] = None, error=None):
        self.client = client
        self.credential = credential
        self.error = error
        self.closed = False

    def connect(self):
        if self.error is not None:
            raise self.error
        return self.client

    def close(self) -> None:
        self.closed = True
