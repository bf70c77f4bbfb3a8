from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from lsposed_cli.core.constants import (
    MODULE_METADATA_MARKER,
    PER_USER_RANGE,
    SYSTEM_SCOPE_PACKAGE,
)
from lsposed_cli.core.errors import RemoteProtocolError, UsageError


class ScopeEntry(BaseModel):
    """One target application identity: ``(package name, user id)``."""

    model_config = ConfigDict(frozen=True)
    package_name: str = Field(min_length=1)
    user_id: int = 0

    @property
    def key(self) -> tuple[str, int]:
        return self.package_name, self.user_id

    @property
    def is_system(self) -> bool:
        return self.package_name == SYSTEM_SCOPE_PACKAGE

    @classmethod
    def parse(cls, text: str) -> "ScopeEntry":
        """Parse the ``pkg/userId`` text form; a bare ``pkg`` means user 0."""
        raw = (text or "").strip()
        package, sep, user = raw.partition("/")
        package = package.strip()
        if not package:
            raise UsageError(f"invalid scope entry '{text}'", hint="use <package>/<userId>")
        if not sep:
            return cls(package_name=package, user_id=0)
        try:
            user_id = int(user.strip())
        except ValueError:
            raise UsageError(
                f"invalid user id in scope entry '{text}'",
                hint="use <package>/<userId>",
            ) from None
        if user_id < 0:
            raise UsageError(f"negative user id in scope entry '{text}'")
        return cls(package_name=package, user_id=user_id)

    @classmethod
    def from_wire(cls, data: Any) -> "ScopeEntry":
        if not isinstance(data, dict):
            raise RemoteProtocolError(f"malformed scope entry from daemon: {data!r}")
        try:
            return cls(package_name=data.get("packageName") or "", user_id=int(data.get("userId", 0)))
        except (TypeError, ValueError, ValidationError) as e:
            raise RemoteProtocolError(f"malformed scope entry from daemon: {data!r}") from e

    def to_wire(self) -> Dict[str, Any]:
        return {"packageName": self.package_name, "userId": self.user_id}

    def __str__(self) -> str:
        return f"{self.package_name}/{self.user_id}"


class PackageDescriptor(BaseModel):
    package_name: str
    uid: int = 0
    meta_data: List[str] = Field(default_factory=list)

    @property
    def user_id(self) -> int:
        return self.uid // PER_USER_RANGE if self.uid >= 0 else 0

    @property
    def is_module(self) -> bool:
        return MODULE_METADATA_MARKER in self.meta_data

    @classmethod
    def from_wire(cls, data: Any) -> "PackageDescriptor":
        if not isinstance(data, dict):
            raise RemoteProtocolError(f"malformed package descriptor from daemon: {data!r}")
        meta = data.get("metaData") or []
        if isinstance(meta, dict):
            meta = list(meta.keys())
        try:
            return cls(
                package_name=str(data.get("packageName") or ""),
                uid=int(data.get("uid", 0)),
                meta_data=[str(k) for k in meta],
            )
        except (TypeError, ValueError, ValidationError) as e:
            raise RemoteProtocolError(f"malformed package descriptor from daemon: {data!r}") from e


class RemoteResult(BaseModel):
    """Outcome of one daemon call, success flag and detail in a single reply."""

    model_config = ConfigDict(frozen=True)
    success: bool
    detail: str = ""

    @classmethod
    def from_wire(cls, data: Any) -> "RemoteResult":
        if isinstance(data, bool):
            return cls(success=data)
        if not isinstance(data, dict) or "ok" not in data:
            raise RemoteProtocolError(f"malformed result from daemon: {data!r}")
        return cls(success=bool(data.get("ok")), detail=str(data.get("detail") or ""))

    def __bool__(self) -> bool:
        return self.success


class FrameworkStatus(BaseModel):
    api_version: int
    injection_interface: str
    version_name: str
    version_code: int
    verbose_log: Optional[bool] = None


class ModuleState(BaseModel):
    package: str
    enabled: bool = False
    auto_include: bool = False
    scope: List[ScopeEntry] = Field(default_factory=list)


class BackupSnapshot(BaseModel):
    version: int
    modules: List[ModuleState] = Field(default_factory=list)


class ScopeMode(str, Enum):
    REPLACE = "replace"
    APPEND = "append"
    REMOVE = "remove"


@dataclass
class ScopeChange:
    module: str
    mode: ScopeMode
    before: List[ScopeEntry]
    after: List[ScopeEntry]
    dropped: List[ScopeEntry] = field(default_factory=list)
    reboot_required: bool = False
    auto_disabled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module": self.module,
            "mode": self.mode.value,
            "before": [str(e) for e in self.before],
            "after": [str(e) for e in self.after],
            "dropped": [str(e) for e in self.dropped],
            "rebootRequired": self.reboot_required,
            "autoDisabled": self.auto_disabled,
        }


@dataclass
class EnableResult:
    module: str
    enabled: bool
    reboot_required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module": self.module,
            "enabled": self.enabled,
            "rebootRequired": self.reboot_required,
        }


@dataclass
class BatchItem:
    entity: str
    ok: bool
    reason: str = ""
    exit_code: int = 0
    data: Optional[Dict[str, Any]] = None


@dataclass
class BatchReport:
    items: List[BatchItem] = field(default_factory=list)

    def succeed(self, entity: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.items.append(BatchItem(entity=entity, ok=True, data=data))

    def fail(self, entity: str, reason: str, exit_code: int) -> None:
        self.items.append(BatchItem(entity=entity, ok=False, reason=reason, exit_code=int(exit_code)))

    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.items if item.ok)

    @property
    def failed(self) -> int:
        return sum(1 for item in self.items if not item.ok)

    @property
    def ok(self) -> bool:
        return self.failed == 0

    def first_failure_code(self) -> int:
        for item in self.items:
            if not item.ok:
                return item.exit_code
        return 0

    def summary(self) -> str:
        return f"{self.succeeded} succeeded, {self.failed} failed"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "items": [
                {k: v for k, v in {
                    "entity": item.entity,
                    "ok": item.ok,
                    "reason": item.reason or None,
                    "data": item.data,
                }.items() if v is not None}
                for item in self.items
            ],
        }
