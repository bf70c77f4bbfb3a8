"""
Framed JSON-RPC channel to the LSPosed daemon bridge.

One loopback connection per process carries the capability exchange, the
handshake and every control call that follows. Messages use the
``Content-Length`` framing of the daemon bridge; calls are synchronous and
block until the reply with the matching id arrives.
"""

import ipaddress
import json
import logging
import socket
from typing import BinaryIO, Optional, TypeAlias

from lsposed_cli.core.constants import MAX_FRAME_BYTES, MAX_FRAME_HEADER_LINES
from lsposed_cli.core.errors import DaemonUnreachableError, ProtocolError, RemoteOperationError

logger = logging.getLogger("lsposed_cli.transport")

JsonMap: TypeAlias = dict[str, object]


def is_loopback(host: str) -> bool:
    h = (host or "").strip().lower()
    if h == "localhost":
        return True
    try:
        return ipaddress.ip_address(h).is_loopback
    except ValueError:
        return False


def enforce_loopback(host: str) -> None:
    """Refuse any daemon endpoint that is not on this machine."""
    if not is_loopback(host):
        raise DaemonUnreachableError(
            f"refusing non-loopback daemon host '{host}'",
            hint="the daemon bridge only listens on 127.0.0.1",
        )


def encode_frame(payload: JsonMap) -> bytes:
    body = json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    header = f"Content-Length: {len(body)}\r\n\r\n".encode("ascii")
    return header + body


def read_frame(stream: BinaryIO, max_size: int = MAX_FRAME_BYTES) -> Optional[JsonMap]:
    """Read one framed message; ``None`` on a clean EOF before any header."""
    headers: dict[bytes, bytes] = {}
    saw_header = False
    for _ in range(MAX_FRAME_HEADER_LINES):
        line = stream.readline()
        if not line:
            if saw_header:
                raise DaemonUnreachableError("daemon closed the connection mid-frame")
            return None
        line = line.strip()
        if not line:
            if saw_header:
                break
            continue
        saw_header = True
        if b":" in line:
            k, v = line.split(b":", 1)
            headers[k.strip().lower()] = v.strip()
    else:
        raise ProtocolError("too many header lines in daemon reply")

    try:
        content_length = int(headers.get(b"content-length", b"0"))
    except (TypeError, ValueError):
        raise ProtocolError("invalid content-length in daemon reply") from None
    if content_length <= 0:
        raise ProtocolError("missing content-length in daemon reply")
    if content_length > max_size:
        raise ProtocolError(f"daemon reply too large ({content_length} bytes)")

    body = stream.read(content_length)
    if len(body) < content_length:
        raise DaemonUnreachableError("daemon closed the connection mid-frame")
    try:
        parsed = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ProtocolError(f"undecodable daemon reply: {e}") from e
    if not isinstance(parsed, dict):
        raise ProtocolError("daemon reply is not a JSON object")
    return parsed


class RpcChannel:
    """Blocking request/reply channel over one socket."""

    def __init__(self, sock: socket.socket, endpoint: str = ""):
        self._sock = sock
        self._reader = sock.makefile("rb")
        self._next_id = 1
        self.endpoint = endpoint
        self.closed = False

    @classmethod
    def open(
        cls,
        host: str,
        port: int,
        connect_timeout: float,
        rpc_timeout: Optional[float] = None,
    ) -> "RpcChannel":
        enforce_loopback(host)
        endpoint = f"{host}:{port}"
        try:
            sock = socket.create_connection((host, int(port)), timeout=connect_timeout)
        except OSError as e:
            raise DaemonUnreachableError(
                f"could not connect to daemon at {endpoint}: {e}",
                hint="is the LSPosed daemon running?",
            ) from e
        sock.settimeout(rpc_timeout)
        logger.debug("connected to daemon bridge at %s", endpoint)
        return cls(sock, endpoint=endpoint)

    def call(self, method: str, params: Optional[JsonMap] = None) -> object:
        if self.closed:
            raise DaemonUnreachableError("control channel already closed")
        req_id = self._next_id
        self._next_id += 1
        request: JsonMap = {"jsonrpc": "2.0", "id": req_id, "method": method}
        if params:
            request["params"] = params
        try:
            self._sock.sendall(encode_frame(request))
            while True:
                reply = read_frame(self._reader)
                if reply is None:
                    raise DaemonUnreachableError(f"daemon closed the connection during '{method}'")
                if reply.get("id") == req_id:
                    break
                # Notifications and stale replies are not ours.
                logger.debug("skipping unrelated daemon message id=%r", reply.get("id"))
        except OSError as e:
            raise DaemonUnreachableError(f"daemon connection failed during '{method}': {e}") from e

        err = reply.get("error")
        if isinstance(err, dict):
            remote_code = err.get("code")
            raise RemoteOperationError(
                str(err.get("message") or f"daemon rejected '{method}'"),
                remote_code=remote_code if isinstance(remote_code, int) else None,
            )
        if "result" not in reply:
            raise ProtocolError(f"daemon reply to '{method}' has neither result nor error")
        return reply["result"]

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        for closeable in (self._reader, self._sock):
            try:
                closeable.close()
            except OSError:
                logger.debug("error while closing daemon channel", exc_info=True)
