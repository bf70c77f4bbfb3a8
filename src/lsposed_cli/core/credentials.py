import os
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from lsposed_cli.core.constants import ENV_CLI_PIN


class CredentialSource(str, Enum):
    ARGUMENT = "argument"
    ENVIRONMENT = "environment"
    PROMPT = "prompt"
    NONE = "none"


@dataclass(frozen=True)
class ResolvedCredential:
    value: Optional[str]
    source: CredentialSource

    @property
    def was_explicitly_provided(self) -> bool:
        return self.source in (CredentialSource.ARGUMENT, CredentialSource.ENVIRONMENT)

    def __repr__(self) -> str:
        # never echo the secret
        return f"ResolvedCredential(source={self.source.value!r}, present={self.value is not None})"


class CredentialResolver:
    """
    Pick the session credential: explicit argument, then environment.

    The interactive prompt is not part of resolution; the handshake only
    falls back to it after the daemon refused an absent credential.
    """

    def __init__(self, explicit: Optional[str] = None, environ: Optional[Mapping[str, str]] = None):
        self.explicit = explicit
        self.environ = os.environ if environ is None else environ

    def resolve(self) -> ResolvedCredential:
        if self.explicit is not None:
            return ResolvedCredential(self.explicit, CredentialSource.ARGUMENT)
        env_value = self.environ.get(ENV_CLI_PIN)
        if env_value is not None:
            return ResolvedCredential(env_value, CredentialSource.ENVIRONMENT)
        return ResolvedCredential(None, CredentialSource.NONE)
