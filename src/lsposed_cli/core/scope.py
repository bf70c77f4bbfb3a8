"""
Module enablement and scope rules.

The daemon enforces the same rules on its side; running them here first lets
a command refuse a request before anything is written and report exactly
which module or scope entry was at fault.

Rules:
  * every operation requires a registered module (``xposedmodule`` marker);
  * a module may only be enabled with at least two scope entries;
  * a scope edit that leaves fewer than two entries disables the module;
  * dropping the ``android`` entry, or requesting it, needs a reboot.
"""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple, Type

from lsposed_cli.core.constants import MIN_ENABLED_SCOPE_SIZE
from lsposed_cli.core.control_client import ControlClient
from lsposed_cli.core.errors import (
    EmptyScopeError,
    EnableDisableError,
    InvalidScopeEntryError,
    ModuleNotRecognizedError,
    ScopeQueryError,
    ScopeUpdateError,
    ValidationFailure,
)
from lsposed_cli.core.models import (
    EnableResult,
    PackageDescriptor,
    ScopeChange,
    ScopeEntry,
    ScopeMode,
)

logger = logging.getLogger("lsposed_cli.scope")


def dedupe_entries(entries: Iterable[ScopeEntry]) -> List[ScopeEntry]:
    """Collapse duplicate keys, keeping the first occurrence order."""
    seen: set[tuple[str, int]] = set()
    out: List[ScopeEntry] = []
    for entry in entries:
        if entry.key in seen:
            continue
        seen.add(entry.key)
        out.append(entry)
    return out


def contains_system(entries: Iterable[ScopeEntry]) -> bool:
    return any(entry.is_system for entry in entries)


def apply_mode(
    before: Sequence[ScopeEntry],
    entries: Sequence[ScopeEntry],
    mode: ScopeMode,
) -> List[ScopeEntry]:
    if mode is ScopeMode.REPLACE:
        return dedupe_entries(entries)
    if mode is ScopeMode.APPEND:
        return dedupe_entries([*before, *entries])
    removed = {entry.key for entry in entries}
    return [entry for entry in dedupe_entries(before) if entry.key not in removed]


def reboot_advised(
    before: Sequence[ScopeEntry],
    after: Sequence[ScopeEntry],
    requested: Sequence[ScopeEntry],
    mode: ScopeMode,
) -> bool:
    if contains_system(before) and not contains_system(after):
        return True
    return mode in (ScopeMode.REPLACE, ScopeMode.APPEND) and contains_system(requested)


class InstalledPackages:
    """Installed-application registry as seen during one command."""

    def __init__(self, packages: Iterable[PackageDescriptor]):
        self._packages = list(packages)
        self._installed = {(pkg.package_name, pkg.user_id) for pkg in self._packages}
        self._modules = {pkg.package_name for pkg in self._packages if pkg.is_module}

    @classmethod
    def from_client(cls, client: ControlClient) -> "InstalledPackages":
        return cls(client.installed_packages())

    def is_registered_module(self, package: str) -> bool:
        return package in self._modules

    def is_installed(self, package: str, user_id: int) -> bool:
        return (package, user_id) in self._installed

    def registered_modules(self) -> List[PackageDescriptor]:
        seen: set[str] = set()
        out: List[PackageDescriptor] = []
        for pkg in self._packages:
            if pkg.is_module and pkg.package_name not in seen:
                seen.add(pkg.package_name)
                out.append(pkg)
        return out


class ScopeInvariantEngine:
    def __init__(self, client: ControlClient, packages: Optional[InstalledPackages] = None):
        self.client = client
        self._packages = packages

    @property
    def packages(self) -> InstalledPackages:
        if self._packages is None:
            self._packages = InstalledPackages.from_client(self.client)
        return self._packages

    def require_module(self, package: str, error_cls: Type[ValidationFailure] = ValidationFailure) -> None:
        if not self.packages.is_registered_module(package):
            raise ModuleNotRecognizedError(package, exit_code=error_cls.exit_code)

    def current_scope(
        self,
        package: str,
        error_cls: Type[ValidationFailure] = ScopeQueryError,
    ) -> List[ScopeEntry]:
        self.require_module(package, error_cls)
        scope, result = self.client.get_module_scope(package)
        if scope is None:
            raise error_cls(package, result.detail or "failed to query scope")
        return scope

    # --- enablement -------------------------------------------------------

    def enable(self, package: str) -> EnableResult:
        scope = self.current_scope(package, EnableDisableError)
        if len(scope) < MIN_ENABLED_SCOPE_SIZE:
            raise EmptyScopeError(package)
        result = self.client.enable_module(package)
        if not result.success:
            raise EnableDisableError(package, result.detail or "failed to enable")
        logger.info("enabled module %s", package)
        return EnableResult(package, True, reboot_required=contains_system(scope))

    def disable(self, package: str) -> EnableResult:
        self.require_module(package, EnableDisableError)
        scope, _ = self.client.get_module_scope(package)
        result = self.client.disable_module(package)
        if not result.success:
            raise EnableDisableError(package, result.detail or "failed to disable")
        logger.info("disabled module %s", package)
        return EnableResult(package, False, reboot_required=contains_system(scope or []))

    # --- scope ------------------------------------------------------------

    def validate_entries(
        self,
        entries: Sequence[ScopeEntry],
        ignore_invalid: bool = False,
    ) -> Tuple[List[ScopeEntry], List[ScopeEntry]]:
        """Split entries into installed ones and dropped ones.

        Raises on the first entry that is not installed unless
        ``ignore_invalid`` is set.
        """
        valid: List[ScopeEntry] = []
        dropped: List[ScopeEntry] = []
        for entry in entries:
            if self.packages.is_installed(entry.package_name, entry.user_id):
                valid.append(entry)
            elif ignore_invalid:
                dropped.append(entry)
            else:
                raise InvalidScopeEntryError(str(entry), "is not a valid package name")
        return dedupe_entries(valid), dropped

    def set_scope(
        self,
        package: str,
        entries: Sequence[ScopeEntry],
        mode: ScopeMode = ScopeMode.REPLACE,
        ignore_invalid: bool = False,
    ) -> ScopeChange:
        before = self.current_scope(package, ScopeUpdateError)
        valid, dropped = self.validate_entries(entries, ignore_invalid)
        if dropped:
            logger.info("dropped %d uninstalled scope entries for %s", len(dropped), package)

        after = apply_mode(before, valid, mode)
        change = ScopeChange(
            module=package,
            mode=mode,
            before=list(before),
            after=after,
            dropped=dropped,
            reboot_required=reboot_advised(before, after, valid, mode),
        )

        result = self.client.set_module_scope(package, after)
        if not result.success:
            raise ScopeUpdateError(package, result.detail or f"failed to set scope for {package}")

        if len(after) < MIN_ENABLED_SCOPE_SIZE:
            disabled = self.client.disable_module(package)
            if not disabled.success:
                raise ScopeUpdateError(
                    package,
                    disabled.detail or "scope updated but the module could not be disabled",
                )
            change.auto_disabled = True
            logger.info("scope of %s below minimum, module disabled", package)
        return change

    # --- auto include -----------------------------------------------------

    def get_auto_include(self, package: str) -> bool:
        self.require_module(package)
        value, result = self.client.get_auto_include(package)
        if not result.success:
            raise ValidationFailure(package, result.detail or "failed to read auto-include")
        return value

    def set_auto_include(self, package: str, value: bool) -> None:
        self.require_module(package)
        result = self.client.set_auto_include(package, value)
        if not result.success:
            raise ValidationFailure(package, result.detail or "failed to set auto-include")
