import logging
import threading
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from lsposed_cli.core.constants import LOG_POLL_INTERVAL_SECONDS

logger = logging.getLogger("lsposed_cli.logs")


class CancellationToken:
    """Stop signal for blocking loops, usable from another thread or a signal handler."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: float) -> bool:
        """Sleep up to ``timeout``; True when cancelled meanwhile."""
        return self._event.wait(timeout)


class LogFollower:
    """
    Line reader over a daemon log, optionally following appended data.

    Without ``follow`` the reader stops at EOF. With ``follow`` it sleeps
    ``poll_interval`` whenever no new data is available and retries until
    the token is cancelled.
    """

    def __init__(
        self,
        path: Path,
        follow: bool = False,
        poll_interval: float = LOG_POLL_INTERVAL_SECONDS,
        token: Optional[CancellationToken] = None,
    ):
        self.path = Path(path)
        self.follow = follow
        self.poll_interval = poll_interval
        self.token = token or CancellationToken()

    def lines(self) -> Iterator[str]:
        with self.path.open("rb") as stream:
            yield from self._read(stream)

    def _read(self, stream: BinaryIO) -> Iterator[str]:
        pending = b""
        while not self.token.cancelled:
            chunk = stream.readline()
            if chunk:
                pending += chunk
                if pending.endswith(b"\n"):
                    yield pending.rstrip(b"\r\n").decode("utf-8", errors="replace")
                    pending = b""
                continue
            if not self.follow:
                break
            if self.token.wait(self.poll_interval):
                break
        if pending:
            # partial trailing line at EOF or cancellation
            yield pending.rstrip(b"\r\n").decode("utf-8", errors="replace")
