"""
LSPosed daemon administrative client.

Exposes the session handshake, the control client and the scope/snapshot
logic used by the ``lsposed-cli`` command.
"""

from lsposed_cli.version import __version__

__all__ = ["__version__"]
