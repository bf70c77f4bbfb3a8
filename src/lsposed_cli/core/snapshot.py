"""
Backup/restore codec for module enablement and scope.

Document (gzip-compressed JSON)::

    {"version": 2,
     "modules": [{"package": "...", "enable": true, "autoInclude": false,
                  "scope": [{"package": "...", "userId": 0}, ...]}]}

Version 1 documents list scope entries as bare package strings (user 0) and
carry no ``autoInclude``. Documents newer than ``BACKUP_VERSION`` are refused
before anything is applied.
"""

import gzip
import json
import logging
import zlib
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from lsposed_cli.core.constants import (
    BACKUP_FILE_PREFIX,
    BACKUP_FILE_SUFFIX,
    BACKUP_VERSION,
    GZIP_SUFFIX,
)
from lsposed_cli.core.control_client import ControlClient
from lsposed_cli.core.errors import (
    RemoteOperationError,
    ScopeQueryError,
    SnapshotFormatError,
    ValidationFailure,
    failure_reason,
)
from lsposed_cli.core.models import (
    BackupSnapshot,
    BatchReport,
    ModuleState,
    ScopeEntry,
    ScopeMode,
)
from lsposed_cli.core.scope import ScopeInvariantEngine

logger = logging.getLogger("lsposed_cli.snapshot")


def default_backup_name(now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now()).isoformat()
    return f"{BACKUP_FILE_PREFIX}{stamp}{BACKUP_FILE_SUFFIX}{GZIP_SUFFIX}"


def resolve_backup_path(file: Optional[str], backup_dir: Path) -> Path:
    if not file:
        return backup_dir / default_backup_name()
    path = Path(file).expanduser()
    if not path.name.endswith(GZIP_SUFFIX):
        path = path.with_name(path.name + GZIP_SUFFIX)
    return path


def to_document(snapshot: BackupSnapshot) -> Dict[str, Any]:
    return {
        "version": snapshot.version,
        "modules": [
            {
                "package": module.package,
                "enable": module.enabled,
                "autoInclude": module.auto_include,
                "scope": [
                    {"package": entry.package_name, "userId": entry.user_id}
                    for entry in module.scope
                ],
            }
            for module in snapshot.modules
        ],
    }


def _parse_scope(raw: Any, version: int, package: str) -> List[ScopeEntry]:
    if not isinstance(raw, list):
        raise SnapshotFormatError(f"module '{package}': scope is not a list")
    entries: List[ScopeEntry] = []
    for item in raw:
        try:
            if version == 1:
                if not isinstance(item, str):
                    raise TypeError("expected a package name")
                entries.append(ScopeEntry(package_name=item, user_id=0))
            else:
                if not isinstance(item, dict):
                    raise TypeError("expected {package, userId}")
                user_id = item.get("userId")
                if isinstance(user_id, bool) or not isinstance(user_id, int):
                    raise TypeError("userId must be an integer")
                entries.append(ScopeEntry(package_name=item.get("package"), user_id=user_id))
        except (TypeError, ValidationError) as e:
            raise SnapshotFormatError(f"module '{package}': bad scope entry {item!r}: {e}") from None
    return entries


def from_document(doc: Any) -> BackupSnapshot:
    """Validate a decoded document completely; no partial result on error."""
    if not isinstance(doc, dict):
        raise SnapshotFormatError("backup document is not a JSON object")
    version = doc.get("version")
    if isinstance(version, bool) or not isinstance(version, int):
        raise SnapshotFormatError("backup document has no integer version")
    if version > BACKUP_VERSION or version < 1:
        raise SnapshotFormatError(
            f"Unknown backup file version {version}",
            hint=f"this client restores versions 1..{BACKUP_VERSION}",
        )
    raw_modules = doc.get("modules")
    if not isinstance(raw_modules, list):
        raise SnapshotFormatError("backup document has no module list")

    modules: List[ModuleState] = []
    for raw in raw_modules:
        if not isinstance(raw, dict) or not isinstance(raw.get("package"), str) or not raw.get("package"):
            raise SnapshotFormatError(f"malformed module entry {raw!r}")
        package = raw["package"]
        enabled = raw.get("enable")
        if not isinstance(enabled, bool):
            raise SnapshotFormatError(f"module '{package}': 'enable' must be a boolean")
        auto_include = raw.get("autoInclude", False)
        if not isinstance(auto_include, bool):
            raise SnapshotFormatError(f"module '{package}': 'autoInclude' must be a boolean")
        modules.append(
            ModuleState(
                package=package,
                enabled=enabled,
                auto_include=auto_include,
                scope=_parse_scope(raw.get("scope", []), version, package),
            )
        )
    return BackupSnapshot(version=version, modules=modules)


def dumps(snapshot: BackupSnapshot) -> bytes:
    text = json.dumps(to_document(snapshot), ensure_ascii=False, separators=(",", ":"))
    return gzip.compress(text.encode("utf-8"))


def loads(data: bytes) -> BackupSnapshot:
    try:
        text = gzip.decompress(data).decode("utf-8")
    except (OSError, EOFError, zlib.error, UnicodeDecodeError) as e:
        raise SnapshotFormatError(f"backup is not a gzip-compressed document: {e}") from e
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotFormatError(f"backup document is not valid JSON: {e}") from e
    return from_document(doc)


def write_snapshot(snapshot: BackupSnapshot, path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(dumps(snapshot))
    return path


def read_snapshot(path: Path) -> BackupSnapshot:
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise SnapshotFormatError(f"{path}: {e.strerror or e}") from e
    return loads(data)


class SnapshotCodec:
    version = BACKUP_VERSION

    def __init__(self, client: ControlClient, engine: Optional[ScopeInvariantEngine] = None):
        self.client = client
        self.engine = engine or ScopeInvariantEngine(client)

    def export(self, modules: Optional[Sequence[str]] = None) -> Tuple[BackupSnapshot, BatchReport]:
        """Capture the state of ``modules`` (default: every registered module)."""
        report = BatchReport()
        if modules:
            names = list(dict.fromkeys(modules))
        else:
            names = [pkg.package_name for pkg in self.engine.packages.registered_modules()]
        enabled = set(self.client.enabled_modules())

        states: List[ModuleState] = []
        for name in names:
            try:
                scope = self.engine.current_scope(name, ScopeQueryError)
                auto_include = self.engine.get_auto_include(name)
            except (ValidationFailure, RemoteOperationError) as e:
                report.fail(name, failure_reason(e, name), e.exit_code)
                continue
            states.append(
                ModuleState(
                    package=name,
                    enabled=name in enabled,
                    auto_include=auto_include,
                    scope=scope,
                )
            )
            report.succeed(name, {"enabled": name in enabled, "scope": len(scope)})
        logger.info("exported %d modules", len(states))
        return BackupSnapshot(version=self.version, modules=states), report

    def restore(
        self,
        snapshot: BackupSnapshot,
        modules: Optional[Sequence[str]] = None,
        ignore_invalid: bool = False,
    ) -> BatchReport:
        """
        Apply each module state independently.

        Order per module: scope (replace), auto-include, then enablement, so
        the enable check sees the restored scope. A failing module is
        reported and the rest still run; earlier modules stay applied.
        """
        if snapshot.version > self.version:
            raise SnapshotFormatError(f"Unknown backup file version {snapshot.version}")
        wanted = set(modules) if modules else None
        report = BatchReport()
        for state in snapshot.modules:
            if wanted is not None and state.package not in wanted:
                continue
            try:
                change = self.engine.set_scope(
                    state.package,
                    state.scope,
                    ScopeMode.REPLACE,
                    ignore_invalid=ignore_invalid,
                )
                self.engine.set_auto_include(state.package, state.auto_include)
                if state.enabled:
                    self.engine.enable(state.package)
                else:
                    self.engine.disable(state.package)
            except (ValidationFailure, RemoteOperationError) as e:
                logger.warning("restore of %s failed: %s", state.package, e.message)
                report.fail(state.package, failure_reason(e, state.package), e.exit_code)
                continue
            report.succeed(
                state.package,
                {
                    "enabled": state.enabled,
                    "scope": len(change.after),
                    "dropped": [str(entry) for entry in change.dropped],
                    "rebootRequired": change.reboot_required,
                },
            )
        return report
