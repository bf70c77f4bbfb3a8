"""
Centralized constants for the LSPosed CLI.

Wire identities, protocol limits and scope rules shared by the handshake,
the control client and the scope engine.
"""

# ============================================================================
# Daemon Endpoint
# ============================================================================

DEFAULT_DAEMON_HOST = "127.0.0.1"
"""Default host of the daemon control bridge."""

DEFAULT_DAEMON_PORT = 47790
"""Default port of the daemon control bridge."""

DAEMON_CONNECT_TIMEOUT_SECONDS = 5.0
"""Timeout for opening the control connection."""

DAEMON_RPC_TIMEOUT_SECONDS = 30.0
"""Timeout for a single blocking RPC reply."""

MAX_FRAME_BYTES = 4 * 1024 * 1024
"""Upper bound for one framed JSON-RPC body."""

MAX_FRAME_HEADER_LINES = 64
"""Upper bound for header lines preceding one framed body."""


# ============================================================================
# Capability Exchange
# ============================================================================

SERVICE_NAME = "activity"
"""Platform service the capability exchange is addressed to."""

SERVICE_INTERFACE_TOKEN = "LSPosed"
"""Constant identity token written before the exchange."""

SERVICE_TRANSACTION_CODE = 1598837584
"""Fixed transaction code of the capability exchange."""

SERVICE_PROTOCOL_VERSION = 2
"""Exchange protocol revision announced by this client."""

CLI_CALLER_PREFIX = "lsp-cli"
"""Caller name prefix; the full name is ``lsp-cli:<uuid>``."""

DEFAULT_CLI_UUID = "2c5d1a8e-4b0f-4e3c-9d6a-7f1e8b3c0a52"
"""Caller uuid baked into this build; the daemon only answers matching callers."""


# ============================================================================
# Credentials
# ============================================================================

ENV_CLI_PIN = "LSPOSED_CLI_PIN"
"""Environment variable carrying the session credential."""

PIN_PROMPT = "Enter CLI PIN: "
"""Prompt shown when the credential is read interactively."""


# ============================================================================
# Modules and Scope
# ============================================================================

MODULE_METADATA_MARKER = "xposedmodule"
"""Metadata key a package must expose to count as a registered module."""

SYSTEM_SCOPE_PACKAGE = "android"
"""Sentinel scope entry denoting the system-identity process."""

MIN_ENABLED_SCOPE_SIZE = 2
"""A module needs itself plus at least one real target to stay enabled."""

PER_USER_RANGE = 100000
"""uid = userId * PER_USER_RANGE + appId."""


# ============================================================================
# Backup
# ============================================================================

BACKUP_VERSION = 2
"""Current snapshot document version."""

BACKUP_FILE_PREFIX = "LSPosed_"
BACKUP_FILE_SUFFIX = ".lsp"
GZIP_SUFFIX = ".gz"


# ============================================================================
# Logs
# ============================================================================

LOG_POLL_INTERVAL_SECONDS = 0.5
"""Sleep between reads while following a log with no new data."""
