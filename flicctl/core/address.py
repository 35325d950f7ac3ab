"""Bluetooth device address codec.

On the wire an address is 6 raw bytes, least significant octet first.
For display it is ``xx:xx:xx:xx:xx:xx`` with the most significant octet first.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from flicctl.core.errors import MalformedAddress

ADDRESS_SIZE = 6
_ADDRESS_RE = re.compile(r"^[0-9a-fA-F]{2}(?::[0-9a-fA-F]{2}){5}$")


@dataclass(frozen=True)
class BdAddr:
    wire: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.wire, (bytes, bytearray)) or len(self.wire) != ADDRESS_SIZE:
            raise MalformedAddress(f"Address must be exactly {ADDRESS_SIZE} bytes")
        object.__setattr__(self, "wire", bytes(self.wire))

    @classmethod
    def parse(cls, text: str) -> BdAddr:
        return parse(text)

    def __str__(self) -> str:
        return format_address(self)


def parse(text: str) -> BdAddr:
    """Parse the 17-character colon-hex form into wire order."""
    if len(text) != 17 or not _ADDRESS_RE.match(text):
        raise MalformedAddress(f"Invalid Bluetooth address '{text}', expected xx:xx:xx:xx:xx:xx")
    octets = bytes.fromhex(text.replace(":", ""))
    return BdAddr(octets[::-1])


def format_address(address: BdAddr) -> str:
    return ":".join(f"{octet:02x}" for octet in reversed(address.wire))
