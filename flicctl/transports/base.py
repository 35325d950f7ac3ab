"""Transport interfaces."""

from __future__ import annotations

from typing import Protocol


class Transport(Protocol):
    def send(self, data: bytes) -> None:
        """Write all of ``data`` or raise ``TransportWriteError``."""

    def receive(self, max_bytes: int) -> bytes:
        """Return up to ``max_bytes``; ``b""`` means the peer closed the stream."""

    def close(self) -> None:
        """Release the underlying connection."""
