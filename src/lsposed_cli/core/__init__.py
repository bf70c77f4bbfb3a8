from .control_client import ControlClient
from .credentials import CredentialResolver, CredentialSource, ResolvedCredential
from .errors import ExitCode, LspCliError
from .models import BackupSnapshot, ModuleState, ScopeEntry, ScopeMode
from .scope import InstalledPackages, ScopeInvariantEngine
from .session import AuthError, Authenticated, Session, SessionHandshake
from .settings import settings
from .snapshot import SnapshotCodec

__all__ = [
    "ControlClient",
    "CredentialResolver",
    "CredentialSource",
    "ResolvedCredential",
    "ExitCode",
    "LspCliError",
    "BackupSnapshot",
    "ModuleState",
    "ScopeEntry",
    "ScopeMode",
    "InstalledPackages",
    "ScopeInvariantEngine",
    "AuthError",
    "Authenticated",
    "Session",
    "SessionHandshake",
    "settings",
    "SnapshotCodec",
]
