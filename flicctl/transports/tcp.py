"""TCP stream transport implementation using Python sockets."""

from __future__ import annotations

import logging
import socket

from flicctl.core.errors import (
    TransportConnectError,
    TransportReadError,
    TransportWriteError,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_PORT = 5551


class TCPTransport:
    """Blocking stream connection to the button server.

    ``timeout_s`` applies to connecting only; once connected, reads block
    until data arrives because the protocol has no keepalive or timeouts.
    """

    def __init__(self, sock: socket.socket) -> None:
        self._socket: socket.socket | None = sock

    @classmethod
    def connect(cls, host: str, port: int = DEFAULT_PORT, *, timeout_s: float = 5.0) -> TCPTransport:
        try:
            sock = socket.create_connection((host, port), timeout=timeout_s)
        except TimeoutError as exc:
            raise TransportConnectError(f"Connecting to {host}:{port} timed out") from exc
        except OSError as exc:
            raise TransportConnectError(f"Could not connect to {host}:{port}: {exc}") from exc
        sock.settimeout(None)
        LOGGER.info("Connected to %s:%d", host, port)
        return cls(sock)

    @property
    def connected(self) -> bool:
        return self._socket is not None

    def _require_socket(self) -> socket.socket:
        if self._socket is None:
            raise TransportWriteError("Transport is closed")
        return self._socket

    def send(self, data: bytes) -> None:
        sock = self._require_socket()
        view = memoryview(data)
        while view:
            try:
                sent = sock.send(view)
            except InterruptedError:
                continue
            except OSError as exc:
                raise TransportWriteError(f"TCP send failed: {exc}") from exc
            if sent == 0:
                raise TransportWriteError("TCP send made no progress; connection is broken")
            view = view[sent:]

    def receive(self, max_bytes: int) -> bytes:
        if self._socket is None:
            raise TransportReadError("Transport is closed")
        try:
            return self._socket.recv(max_bytes)
        except OSError as exc:
            raise TransportReadError(f"TCP receive failed: {exc}") from exc

    def close(self) -> None:
        if self._socket is None:
            return
        try:
            self._socket.close()
        finally:
            self._socket = None

    def __enter__(self) -> TCPTransport:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
