from __future__ import annotations

import socket

import pytest

from flicctl.core.errors import TransportConnectError, TransportReadError, TransportWriteError
from flicctl.transports.tcp import TCPTransport


class ChunkySocket:
    """Socket double that accepts at most ``limit`` bytes per send call."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self.written = bytearray()
        self.closed = False
        self.interrupted = False

    def send(self, data) -> int:
        if not self.interrupted:
            self.interrupted = True
            raise InterruptedError
        chunk = bytes(data[: self.limit])
        self.written.extend(chunk)
        return len(chunk)

    def recv(self, max_bytes: int) -> bytes:
        return b""

    def close(self) -> None:
        self.closed = True


class BrokenSocket(ChunkySocket):
    def send(self, data) -> int:
        return 0

    def recv(self, max_bytes: int) -> bytes:
        raise ConnectionResetError("reset by peer")


def test_send_loops_until_everything_is_written() -> None:
    sock = ChunkySocket(limit=3)
    transport = TCPTransport(sock)

    transport.send(b"\x05\x00\x07\x01\x00\x00\x00")

    assert bytes(sock.written) == b"\x05\x00\x07\x01\x00\x00\x00"


def test_send_without_progress_is_write_error() -> None:
    transport = TCPTransport(BrokenSocket(limit=1))
    with pytest.raises(TransportWriteError):
        transport.send(b"\x01\x00\x00")


def test_receive_error_is_read_error() -> None:
    transport = TCPTransport(BrokenSocket(limit=1))
    with pytest.raises(TransportReadError):
        transport.receive(16)


def test_closed_transport_rejects_io() -> None:
    sock = ChunkySocket(limit=8)
    transport = TCPTransport(sock)
    transport.close()
    transport.close()

    assert sock.closed
    assert not transport.connected
    with pytest.raises(TransportWriteError):
        transport.send(b"\x00")
    with pytest.raises(TransportReadError):
        transport.receive(1)


def test_connect_failure_is_connect_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def refuse(address, timeout=None):
        raise ConnectionRefusedError("refused")

    monkeypatch.setattr(socket, "create_connection", refuse)

    with pytest.raises(TransportConnectError):
        TCPTransport.connect("localhost", 5551)


def test_connect_timeout_is_connect_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def hang(address, timeout=None):
        raise TimeoutError("timed out")

    monkeypatch.setattr(socket, "create_connection", hang)

    with pytest.raises(TransportConnectError, match="timed out"):
        TCPTransport.connect("localhost", 5551, timeout_s=0.1)


def test_round_trip_over_socketpair() -> None:
    left, right = socket.socketpair()
    try:
        transport = TCPTransport(left)
        transport.send(b"\x03\x00\x0a\x05\x00")
        assert right.recv(16) == b"\x03\x00\x0a\x05\x00"

        right.sendall(b"\x02\x00\x0b\x01")
        assert transport.receive(16) == b"\x02\x00\x0b\x01"

        right.close()
        assert transport.receive(16) == b""
    finally:
        left.close()
