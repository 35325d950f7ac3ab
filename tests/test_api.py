from __future__ import annotations

import struct

from flicctl import api


class FakeTransport:
    def __init__(self, incoming: bytes) -> None:
        self.incoming = incoming
        self.sent: list[bytes] = []

    def send(self, data: bytes) -> None:
        self.sent.append(data)

    def receive(self, max_bytes: int) -> bytes:
        data, self.incoming = self.incoming[:max_bytes], self.incoming[max_bytes:]
        return data

    def close(self) -> None:
        pass


def test_public_surface_exports_are_importable() -> None:
    for name in api.__all__:
        assert hasattr(api, name), name


def test_public_client_session_flow() -> None:
    addr = api.parse("80:e4:da:71:23:45")
    incoming = b"".join(
        api.encode_frame(record)
        for record in (
            struct.pack("<BIBB", 1, 1, 0, 1),
            struct.pack("<BIB", 3, 1, 0),
        )
    )
    client = api.FlicClient(FakeTransport(incoming))
    client.create_connection_channel(1, addr)
    client.remove_connection_channel(1)

    descriptions = [api.describe_event(received) for received in client.events()]

    assert descriptions[0].startswith("Create connection channel response for channel 1 (80:e4:da:71:23:45)")
    assert descriptions[1] == "Connection channel 1 (80:e4:da:71:23:45) removed: Removed by this client"
    assert 1 not in client.session.connections


def test_errors_share_one_base() -> None:
    for name in ("MalformedAddress", "TruncatedRecord", "RecordTooLarge", "ConnectionClosed", "DuplicateId"):
        assert issubclass(getattr(api, name), api.FlicctlError)
