"""
Error taxonomy for the LSPosed CLI.

Every failure a command can surface is an ``LspCliError`` carrying the exit
status the dispatcher reports for it. Transport, authentication, remote,
validation and snapshot-format failures are kept apart so automation can
branch on the exit status alone.
"""

from enum import IntEnum
from typing import Optional


class ExitCode(IntEnum):
    NOERROR = 0
    USAGE = 1
    EMPTY_SCOPE = 2
    ENABLE_DISABLE = 3
    SET_SCOPE = 4
    LS_SCOPE = 5
    NO_DAEMON = 6
    REMOTE_ERROR = 7
    AUTH_FAILED = 8
    AUTH_REQUIRED = 9


class LspCliError(RuntimeError):
    code = "ERR_INTERNAL"
    exit_code = ExitCode.REMOTE_ERROR

    def __init__(
        self,
        message: str,
        hint: str = "",
        exit_code: Optional[ExitCode] = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        if exit_code is not None:
            self.exit_code = exit_code

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"code": self.code, "message": self.message}
        if self.hint:
            payload["hint"] = self.hint
        return payload


class UsageError(LspCliError):
    code = "ERR_USAGE"
    exit_code = ExitCode.USAGE


# --- Transport -------------------------------------------------------------

class DaemonUnreachableError(LspCliError):
    """The daemon endpoint could not be reached or hung up mid-call."""

    code = "ERR_NO_DAEMON"
    exit_code = ExitCode.NO_DAEMON


class ProtocolError(DaemonUnreachableError):
    """The daemon answered with something that is not a valid reply."""

    code = "ERR_PROTOCOL"


# --- Authentication --------------------------------------------------------

class AuthenticationRequiredError(LspCliError):
    code = "ERR_AUTH_REQUIRED"
    exit_code = ExitCode.AUTH_REQUIRED


class AuthenticationFailedError(LspCliError):
    code = "ERR_AUTH_FAILED"
    exit_code = ExitCode.AUTH_FAILED


# --- Remote ----------------------------------------------------------------

class RemoteOperationError(LspCliError):
    """The daemon rejected a call with a JSON-RPC error object."""

    code = "ERR_REMOTE"
    exit_code = ExitCode.REMOTE_ERROR

    def __init__(self, message: str, remote_code: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.remote_code = remote_code


class RemoteProtocolError(RemoteOperationError):
    """A control reply after the handshake did not have the expected shape."""

    code = "ERR_REMOTE_PROTOCOL"


# --- Validation ------------------------------------------------------------

class ValidationFailure(LspCliError):
    """A request was refused for a reason tied to one entity.

    Non-fatal inside batch commands: the failing module or entry is reported
    and the batch moves on.
    """

    code = "ERR_VALIDATION"
    exit_code = ExitCode.REMOTE_ERROR

    def __init__(self, entity: str, reason: str, **kwargs):
        super().__init__(f"{entity}: {reason}", **kwargs)
        self.entity = entity
        self.reason = reason

    def to_dict(self) -> dict[str, object]:
        payload = super().to_dict()
        payload["entity"] = self.entity
        payload["reason"] = self.reason
        return payload


class ModuleNotRecognizedError(ValidationFailure):
    code = "ERR_MODULE_NOT_RECOGNIZED"

    def __init__(self, module: str, **kwargs):
        super().__init__(module, "not a valid xposed module", **kwargs)


class InvalidScopeEntryError(ValidationFailure):
    code = "ERR_SCOPE_ENTRY_INVALID"
    exit_code = ExitCode.SET_SCOPE


class EmptyScopeError(ValidationFailure):
    code = "ERR_EMPTY_SCOPE"
    exit_code = ExitCode.EMPTY_SCOPE

    def __init__(self, module: str, **kwargs):
        super().__init__(module, "scope list is empty, module not enabled", **kwargs)


class EnableDisableError(ValidationFailure):
    code = "ERR_ENABLE_DISABLE"
    exit_code = ExitCode.ENABLE_DISABLE


class ScopeUpdateError(ValidationFailure):
    code = "ERR_SET_SCOPE"
    exit_code = ExitCode.SET_SCOPE


class ScopeQueryError(ValidationFailure):
    code = "ERR_LS_SCOPE"
    exit_code = ExitCode.LS_SCOPE


def failure_reason(error: LspCliError, entity: str) -> str:
    """Reason text for a batch line already prefixed with ``entity``."""
    if isinstance(error, ValidationFailure) and error.entity == entity:
        return error.reason
    return error.message


# --- Snapshot format -------------------------------------------------------

class SnapshotFormatError(LspCliError):
    """The backup document cannot be restored; nothing was applied."""

    code = "ERR_SNAPSHOT_FORMAT"
    exit_code = ExitCode.REMOTE_ERROR
