"""Command records sent from the client to the server.

Every record is packed with no padding and little-endian integers, opcode first.
Addresses travel in wire order (least significant octet first).
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar, Union

from flicctl.core.address import BdAddr
from flicctl.core.errors import EncodeError
from flicctl.core.model import LatencyMode
from flicctl.protocol.opcodes import CommandOpcode

DEFAULT_AUTO_DISCONNECT_TIME = 0x1FF


@dataclass(frozen=True)
class GetInfo:
    OPCODE: ClassVar[CommandOpcode] = CommandOpcode.GET_INFO
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<B")

    def values(self) -> tuple:
        return ()


@dataclass(frozen=True)
class CreateScanner:
    OPCODE: ClassVar[CommandOpcode] = CommandOpcode.CREATE_SCANNER
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<BI")

    scan_id: int

    def values(self) -> tuple:
        return (self.scan_id,)


@dataclass(frozen=True)
class RemoveScanner:
    OPCODE: ClassVar[CommandOpcode] = CommandOpcode.REMOVE_SCANNER
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<BI")

    scan_id: int

    def values(self) -> tuple:
        return (self.scan_id,)


@dataclass(frozen=True)
class CreateConnectionChannel:
    OPCODE: ClassVar[CommandOpcode] = CommandOpcode.CREATE_CONNECTION_CHANNEL
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<BI6sBh")

    conn_id: int
    bd_addr: BdAddr
    latency_mode: LatencyMode = LatencyMode.NORMAL
    auto_disconnect_time: int = DEFAULT_AUTO_DISCONNECT_TIME

    def values(self) -> tuple:
        return (self.conn_id, self.bd_addr.wire, int(self.latency_mode), self.auto_disconnect_time)


@dataclass(frozen=True)
class RemoveConnectionChannel:
    OPCODE: ClassVar[CommandOpcode] = CommandOpcode.REMOVE_CONNECTION_CHANNEL
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<BI")

    conn_id: int

    def values(self) -> tuple:
        return (self.conn_id,)


@dataclass(frozen=True)
class ForceDisconnect:
    OPCODE: ClassVar[CommandOpcode] = CommandOpcode.FORCE_DISCONNECT
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<B6s")

    bd_addr: BdAddr

    def values(self) -> tuple:
        return (self.bd_addr.wire,)


@dataclass(frozen=True)
class ChangeModeParameters:
    OPCODE: ClassVar[CommandOpcode] = CommandOpcode.CHANGE_MODE_PARAMETERS
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<BIBh")

    conn_id: int
    latency_mode: LatencyMode = LatencyMode.NORMAL
    auto_disconnect_time: int = DEFAULT_AUTO_DISCONNECT_TIME

    def values(self) -> tuple:
        return (self.conn_id, int(self.latency_mode), self.auto_disconnect_time)


@dataclass(frozen=True)
class Ping:
    OPCODE: ClassVar[CommandOpcode] = CommandOpcode.PING
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<BI")

    ping_id: int

    def values(self) -> tuple:
        return (self.ping_id,)


@dataclass(frozen=True)
class GetButtonInfo:
    OPCODE: ClassVar[CommandOpcode] = CommandOpcode.GET_BUTTON_INFO
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<B6s")

    bd_addr: BdAddr

    def values(self) -> tuple:
        return (self.bd_addr.wire,)


@dataclass(frozen=True)
class CreateScanWizard:
    OPCODE: ClassVar[CommandOpcode] = CommandOpcode.CREATE_SCAN_WIZARD
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<BI")

    scan_wizard_id: int

    def values(self) -> tuple:
        return (self.scan_wizard_id,)


@dataclass(frozen=True)
class CancelScanWizard:
    OPCODE: ClassVar[CommandOpcode] = CommandOpcode.CANCEL_SCAN_WIZARD
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<BI")

    scan_wizard_id: int

    def values(self) -> tuple:
        return (self.scan_wizard_id,)


@dataclass(frozen=True)
class DeleteButton:
    OPCODE: ClassVar[CommandOpcode] = CommandOpcode.DELETE_BUTTON
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<B6s")

    bd_addr: BdAddr

    def values(self) -> tuple:
        return (self.bd_addr.wire,)


@dataclass(frozen=True)
class CreateBatteryStatusListener:
    OPCODE: ClassVar[CommandOpcode] = CommandOpcode.CREATE_BATTERY_STATUS_LISTENER
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<BI6s")

    listener_id: int
    bd_addr: BdAddr

    def values(self) -> tuple:
        return (self.listener_id, self.bd_addr.wire)


@dataclass(frozen=True)
class RemoveBatteryStatusListener:
    OPCODE: ClassVar[CommandOpcode] = CommandOpcode.REMOVE_BATTERY_STATUS_LISTENER
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<BI")

    listener_id: int

    def values(self) -> tuple:
        return (self.listener_id,)


Command = Union[
    GetInfo,
    CreateScanner,
    RemoveScanner,
    CreateConnectionChannel,
    RemoveConnectionChannel,
    ForceDisconnect,
    ChangeModeParameters,
    Ping,
    GetButtonInfo,
    CreateScanWizard,
    CancelScanWizard,
    DeleteButton,
    CreateBatteryStatusListener,
    RemoveBatteryStatusListener,
]


def encode_command(command: Command) -> bytes:
    """Serialize a command record into its exact wire layout (without length prefix)."""
    try:
        return command.LAYOUT.pack(int(command.OPCODE), *command.values())
    except (struct.error, TypeError, ValueError) as exc:
        raise EncodeError(f"Cannot encode {type(command).__name__}: {exc}") from exc
