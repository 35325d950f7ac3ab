"""Event records received from the server and their decoder.

Records are parsed field by field with a bounds check before every read.
Five records carry data beyond their fixed header:

- ``AdvertisementPacket`` and ``ScanWizardFoundPublicButton`` hold a name in a
  16-byte buffer whose meaningful length is given by a preceding length byte.
- ``GetInfoResponse`` ends with a 16-bit count followed by that many addresses.
- ``GetButtonInfoResponse`` ends with a chain of length-prefixed fields.
- ``UnrecognizedEvent`` keeps the raw bytes of any opcode this client does not know.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from typing import Callable, ClassVar, Union

from flicctl.core.address import ADDRESS_SIZE, BdAddr
from flicctl.core.errors import BoundsViolation, InvalidTelemetry, TruncatedRecord, UnknownOpcode
from flicctl.core.model import (
    BdAddrType,
    BluetoothControllerState,
    ClickType,
    ConnectionStatus,
    CreateConnectionChannelError,
    DisconnectReason,
    RemovedReason,
    ScanWizardResult,
    Unknown,
    decode_enum,
)
from flicctl.protocol.opcodes import EventOpcode

LOGGER = logging.getLogger(__name__)

NAME_CAPACITY = 16

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_I32 = struct.Struct("<i")
_U32 = struct.Struct("<I")


class _Reader:
    """Sequential little-endian reader over one record body."""

    def __init__(self, record: bytes, name: str) -> None:
        self._data = record
        self._pos = 1  # opcode already consumed by the dispatcher
        self._name = name

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def require(self, count: int, what: str) -> None:
        if count > self.remaining:
            raise TruncatedRecord(
                f"{self._name}: {what} needs {count} bytes at offset {self._pos}, "
                f"only {self.remaining} available"
            )

    def unpack(self, layout: struct.Struct, what: str = "header") -> tuple:
        self.require(layout.size, what)
        values = layout.unpack_from(self._data, self._pos)
        self._pos += layout.size
        return values

    def take(self, count: int, what: str) -> bytes:
        self.require(count, what)
        chunk = self._data[self._pos : self._pos + count]
        self._pos += count
        return bytes(chunk)

    def u8(self, what: str) -> int:
        return self.unpack(_U8, what)[0]

    def address(self, what: str = "address") -> BdAddr:
        return BdAddr(self.take(ADDRESS_SIZE, what))

    def prefixed(self, what: str) -> bytes:
        """Read a one-byte length followed by that many bytes."""
        length = self.u8(f"{what} length")
        return self.take(length, what)


def _text(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace")


def _fixed_name(record_name: str, length: int, buffer: bytes) -> str:
    if length > NAME_CAPACITY:
        raise BoundsViolation(
            f"{record_name}: name length {length} exceeds capacity {NAME_CAPACITY}"
        )
    return _text(buffer[:length])


@dataclass(frozen=True)
class AdvertisementPacket:
    OPCODE: ClassVar[EventOpcode] = EventOpcode.ADVERTISEMENT_PACKET
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<I6sB16sbBBBB")

    scan_id: int
    bd_addr: BdAddr
    name: str
    rssi: int
    is_private: bool
    already_verified: bool
    already_connected_to_this_device: bool
    already_connected_to_other_device: bool


@dataclass(frozen=True)
class CreateConnectionChannelResponse:
    OPCODE: ClassVar[EventOpcode] = EventOpcode.CREATE_CONNECTION_CHANNEL_RESPONSE
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<IBB")

    conn_id: int
    error: CreateConnectionChannelError | Unknown
    connection_status: ConnectionStatus | Unknown


@dataclass(frozen=True)
class ConnectionStatusChanged:
    OPCODE: ClassVar[EventOpcode] = EventOpcode.CONNECTION_STATUS_CHANGED
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<IBB6s")

    conn_id: int
    connection_status: ConnectionStatus | Unknown
    disconnect_reason: DisconnectReason | Unknown
    bd_addr: BdAddr


@dataclass(frozen=True)
class ConnectionChannelRemoved:
    OPCODE: ClassVar[EventOpcode] = EventOpcode.CONNECTION_CHANNEL_REMOVED
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<IB")

    conn_id: int
    removed_reason: RemovedReason | Unknown


@dataclass(frozen=True)
class ButtonEvent:
    """Common layout of the four button event records."""

    OPCODE: ClassVar[EventOpcode]
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<IBBI")

    conn_id: int
    click_type: ClickType | Unknown
    was_queued: bool
    time_diff: int


@dataclass(frozen=True)
class ButtonUpOrDown(ButtonEvent):
    OPCODE: ClassVar[EventOpcode] = EventOpcode.BUTTON_UP_OR_DOWN


@dataclass(frozen=True)
class ButtonClickOrHold(ButtonEvent):
    OPCODE: ClassVar[EventOpcode] = EventOpcode.BUTTON_CLICK_OR_HOLD


@dataclass(frozen=True)
class ButtonSingleOrDoubleClick(ButtonEvent):
    OPCODE: ClassVar[EventOpcode] = EventOpcode.BUTTON_SINGLE_OR_DOUBLE_CLICK


@dataclass(frozen=True)
class ButtonSingleOrDoubleClickOrHold(ButtonEvent):
    OPCODE: ClassVar[EventOpcode] = EventOpcode.BUTTON_SINGLE_OR_DOUBLE_CLICK_OR_HOLD


@dataclass(frozen=True)
class NewVerifiedButton:
    OPCODE: ClassVar[EventOpcode] = EventOpcode.NEW_VERIFIED_BUTTON

    bd_addr: BdAddr


@dataclass(frozen=True)
class GetInfoResponse:
    OPCODE: ClassVar[EventOpcode] = EventOpcode.GET_INFO_RESPONSE
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<B6sBBhBB")

    bluetooth_controller_state: BluetoothControllerState | Unknown
    my_bd_addr: BdAddr
    my_bd_addr_type: BdAddrType | Unknown
    max_pending_connections: int
    max_concurrently_connected_buttons: int
    current_pending_connection_count: int
    currently_no_space_for_new_connection: bool
    verified_buttons: tuple[BdAddr, ...]


@dataclass(frozen=True)
class NoSpaceForNewConnection:
    OPCODE: ClassVar[EventOpcode] = EventOpcode.NO_SPACE_FOR_NEW_CONNECTION

    max_concurrently_connected_buttons: int


@dataclass(frozen=True)
class GotSpaceForNewConnection:
    OPCODE: ClassVar[EventOpcode] = EventOpcode.GOT_SPACE_FOR_NEW_CONNECTION

    max_concurrently_connected_buttons: int


@dataclass(frozen=True)
class BluetoothControllerStateChange:
    OPCODE: ClassVar[EventOpcode] = EventOpcode.BLUETOOTH_CONTROLLER_STATE_CHANGE

    state: BluetoothControllerState | Unknown


@dataclass(frozen=True)
class PingResponse:
    OPCODE: ClassVar[EventOpcode] = EventOpcode.PING_RESPONSE

    ping_id: int


@dataclass(frozen=True)
class GetButtonInfoResponse:
    OPCODE: ClassVar[EventOpcode] = EventOpcode.GET_BUTTON_INFO_RESPONSE

    bd_addr: BdAddr
    uuid: bytes
    name: str
    color: int
    serial_number: str
    flic_version: int
    firmware_version: int

    @property
    def uuid_hex(self) -> str:
        return self.uuid.hex()


@dataclass(frozen=True)
class ScanWizardFoundPrivateButton:
    OPCODE: ClassVar[EventOpcode] = EventOpcode.SCAN_WIZARD_FOUND_PRIVATE_BUTTON

    scan_wizard_id: int


@dataclass(frozen=True)
class ScanWizardFoundPublicButton:
    OPCODE: ClassVar[EventOpcode] = EventOpcode.SCAN_WIZARD_FOUND_PUBLIC_BUTTON
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<I6sB16s")

    scan_wizard_id: int
    bd_addr: BdAddr
    name: str


@dataclass(frozen=True)
class ScanWizardButtonConnected:
    OPCODE: ClassVar[EventOpcode] = EventOpcode.SCAN_WIZARD_BUTTON_CONNECTED

    scan_wizard_id: int


@dataclass(frozen=True)
class ScanWizardCompleted:
    OPCODE: ClassVar[EventOpcode] = EventOpcode.SCAN_WIZARD_COMPLETED
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<IB")

    scan_wizard_id: int
    result: ScanWizardResult | Unknown


@dataclass(frozen=True)
class ButtonDeleted:
    OPCODE: ClassVar[EventOpcode] = EventOpcode.BUTTON_DELETED
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<6sB")

    bd_addr: BdAddr
    deleted_by_this_client: bool


@dataclass(frozen=True)
class BatteryStatusUpdate:
    OPCODE: ClassVar[EventOpcode] = EventOpcode.BATTERY_STATUS
    LAYOUT: ClassVar[struct.Struct] = struct.Struct("<IbQ")

    listener_id: int
    battery_percentage: int
    timestamp: int


@dataclass(frozen=True)
class UnrecognizedEvent:
    """An event whose opcode is outside the set this client knows."""

    opcode: int
    raw: bytes


Event = Union[
    AdvertisementPacket,
    CreateConnectionChannelResponse,
    ConnectionStatusChanged,
    ConnectionChannelRemoved,
    ButtonUpOrDown,
    ButtonClickOrHold,
    ButtonSingleOrDoubleClick,
    ButtonSingleOrDoubleClickOrHold,
    NewVerifiedButton,
    GetInfoResponse,
    NoSpaceForNewConnection,
    GotSpaceForNewConnection,
    BluetoothControllerStateChange,
    PingResponse,
    GetButtonInfoResponse,
    ScanWizardFoundPrivateButton,
    ScanWizardFoundPublicButton,
    ScanWizardButtonConnected,
    ScanWizardCompleted,
    ButtonDeleted,
    BatteryStatusUpdate,
    UnrecognizedEvent,
]


def _advertisement(reader: _Reader) -> AdvertisementPacket:
    (
        scan_id,
        addr,
        name_length,
        name_buffer,
        rssi,
        is_private,
        already_verified,
        connected_here,
        connected_elsewhere,
    ) = reader.unpack(AdvertisementPacket.LAYOUT)
    return AdvertisementPacket(
        scan_id=scan_id,
        bd_addr=BdAddr(addr),
        name=_fixed_name("AdvertisementPacket", name_length, name_buffer),
        rssi=rssi,
        is_private=bool(is_private),
        already_verified=bool(already_verified),
        already_connected_to_this_device=bool(connected_here),
        already_connected_to_other_device=bool(connected_elsewhere),
    )


def _create_connection_channel_response(reader: _Reader) -> CreateConnectionChannelResponse:
    conn_id, error, status = reader.unpack(CreateConnectionChannelResponse.LAYOUT)
    return CreateConnectionChannelResponse(
        conn_id=conn_id,
        error=decode_enum(CreateConnectionChannelError, error),
        connection_status=decode_enum(ConnectionStatus, status),
    )


def _connection_status_changed(reader: _Reader) -> ConnectionStatusChanged:
    conn_id, status, reason, addr = reader.unpack(ConnectionStatusChanged.LAYOUT)
    return ConnectionStatusChanged(
        conn_id=conn_id,
        connection_status=decode_enum(ConnectionStatus, status),
        disconnect_reason=decode_enum(DisconnectReason, reason),
        bd_addr=BdAddr(addr),
    )


def _connection_channel_removed(reader: _Reader) -> ConnectionChannelRemoved:
    conn_id, reason = reader.unpack(ConnectionChannelRemoved.LAYOUT)
    return ConnectionChannelRemoved(conn_id=conn_id, removed_reason=decode_enum(RemovedReason, reason))


def _button(event_cls: type[ButtonEvent]) -> Callable[[_Reader], ButtonEvent]:
    def _decode(reader: _Reader) -> ButtonEvent:
        conn_id, click_type, was_queued, time_diff = reader.unpack(ButtonEvent.LAYOUT)
        return event_cls(
            conn_id=conn_id,
            click_type=decode_enum(ClickType, click_type),
            was_queued=bool(was_queued),
            time_diff=time_diff,
        )

    return _decode


def _new_verified_button(reader: _Reader) -> NewVerifiedButton:
    return NewVerifiedButton(bd_addr=reader.address())


def _get_info_response(reader: _Reader) -> GetInfoResponse:
    (
        controller_state,
        my_addr,
        my_addr_type,
        max_pending,
        max_concurrent,
        pending_count,
        no_space,
    ) = reader.unpack(GetInfoResponse.LAYOUT)
    (count,) = reader.unpack(_U16, "verified button count")
    reader.require(count * ADDRESS_SIZE, f"{count} verified button addresses")
    buttons = tuple(reader.address("verified button address") for _ in range(count))
    return GetInfoResponse(
        bluetooth_controller_state=decode_enum(BluetoothControllerState, controller_state),
        my_bd_addr=BdAddr(my_addr),
        my_bd_addr_type=decode_enum(BdAddrType, my_addr_type),
        max_pending_connections=max_pending,
        max_concurrently_connected_buttons=max_concurrent,
        current_pending_connection_count=pending_count,
        currently_no_space_for_new_connection=bool(no_space),
        verified_buttons=buttons,
    )


def _no_space(reader: _Reader) -> NoSpaceForNewConnection:
    return NoSpaceForNewConnection(max_concurrently_connected_buttons=reader.u8("header"))


def _got_space(reader: _Reader) -> GotSpaceForNewConnection:
    return GotSpaceForNewConnection(max_concurrently_connected_buttons=reader.u8("header"))


def _controller_state_change(reader: _Reader) -> BluetoothControllerStateChange:
    return BluetoothControllerStateChange(
        state=decode_enum(BluetoothControllerState, reader.u8("header"))
    )


def _ping_response(reader: _Reader) -> PingResponse:
    return PingResponse(ping_id=reader.unpack(_U32)[0])


def _get_button_info_response(reader: _Reader) -> GetButtonInfoResponse:
    addr = reader.address()
    uuid = reader.prefixed("uuid")
    name = _text(reader.prefixed("name"))
    (color,) = reader.unpack(_I32, "color")
    serial = _text(reader.prefixed("serial number"))
    flic_version = reader.u8("flic version")
    (firmware_version,) = reader.unpack(_U32, "firmware version")
    return GetButtonInfoResponse(
        bd_addr=addr,
        uuid=uuid,
        name=name,
        color=color,
        serial_number=serial,
        flic_version=flic_version,
        firmware_version=firmware_version,
    )


def _wizard_found_private(reader: _Reader) -> ScanWizardFoundPrivateButton:
    return ScanWizardFoundPrivateButton(scan_wizard_id=reader.unpack(_U32)[0])


def _wizard_found_public(reader: _Reader) -> ScanWizardFoundPublicButton:
    wizard_id, addr, name_length, name_buffer = reader.unpack(ScanWizardFoundPublicButton.LAYOUT)
    return ScanWizardFoundPublicButton(
        scan_wizard_id=wizard_id,
        bd_addr=BdAddr(addr),
        name=_fixed_name("ScanWizardFoundPublicButton", name_length, name_buffer),
    )


def _wizard_button_connected(reader: _Reader) -> ScanWizardButtonConnected:
    return ScanWizardButtonConnected(scan_wizard_id=reader.unpack(_U32)[0])


def _wizard_completed(reader: _Reader) -> ScanWizardCompleted:
    wizard_id, result = reader.unpack(ScanWizardCompleted.LAYOUT)
    return ScanWizardCompleted(scan_wizard_id=wizard_id, result=decode_enum(ScanWizardResult, result))


def _button_deleted(reader: _Reader) -> ButtonDeleted:
    addr, by_this_client = reader.unpack(ButtonDeleted.LAYOUT)
    return ButtonDeleted(bd_addr=BdAddr(addr), deleted_by_this_client=bool(by_this_client))


def _battery_status(reader: _Reader) -> BatteryStatusUpdate:
    listener_id, percentage, timestamp = reader.unpack(BatteryStatusUpdate.LAYOUT)
    if percentage < 0:
        raise InvalidTelemetry(
            f"Battery percentage {percentage} for listener {listener_id} is negative"
        )
    return BatteryStatusUpdate(listener_id=listener_id, battery_percentage=percentage, timestamp=timestamp)


_DECODERS: dict[EventOpcode, Callable[[_Reader], Event]] = {
    EventOpcode.ADVERTISEMENT_PACKET: _advertisement,
    EventOpcode.CREATE_CONNECTION_CHANNEL_RESPONSE: _create_connection_channel_response,
    EventOpcode.CONNECTION_STATUS_CHANGED: _connection_status_changed,
    EventOpcode.CONNECTION_CHANNEL_REMOVED: _connection_channel_removed,
    EventOpcode.BUTTON_UP_OR_DOWN: _button(ButtonUpOrDown),
    EventOpcode.BUTTON_CLICK_OR_HOLD: _button(ButtonClickOrHold),
    EventOpcode.BUTTON_SINGLE_OR_DOUBLE_CLICK: _button(ButtonSingleOrDoubleClick),
    EventOpcode.BUTTON_SINGLE_OR_DOUBLE_CLICK_OR_HOLD: _button(ButtonSingleOrDoubleClickOrHold),
    EventOpcode.NEW_VERIFIED_BUTTON: _new_verified_button,
    EventOpcode.GET_INFO_RESPONSE: _get_info_response,
    EventOpcode.NO_SPACE_FOR_NEW_CONNECTION: _no_space,
    EventOpcode.GOT_SPACE_FOR_NEW_CONNECTION: _got_space,
    EventOpcode.BLUETOOTH_CONTROLLER_STATE_CHANGE: _controller_state_change,
    EventOpcode.PING_RESPONSE: _ping_response,
    EventOpcode.GET_BUTTON_INFO_RESPONSE: _get_button_info_response,
    EventOpcode.SCAN_WIZARD_FOUND_PRIVATE_BUTTON: _wizard_found_private,
    EventOpcode.SCAN_WIZARD_FOUND_PUBLIC_BUTTON: _wizard_found_public,
    EventOpcode.SCAN_WIZARD_BUTTON_CONNECTED: _wizard_button_connected,
    EventOpcode.SCAN_WIZARD_COMPLETED: _wizard_completed,
    EventOpcode.BUTTON_DELETED: _button_deleted,
    EventOpcode.BATTERY_STATUS: _battery_status,
}


def decode_event(record: bytes, *, strict: bool = False) -> Event:
    """Decode one complete, already framed record.

    Unknown opcodes produce an :class:`UnrecognizedEvent` carrying the raw
    bytes, or raise :class:`UnknownOpcode` when ``strict`` is set.
    Bytes past the end of a known layout are ignored.
    """
    if not record:
        raise TruncatedRecord("Empty record has no opcode")

    opcode = record[0]
    try:
        decoder = _DECODERS[EventOpcode(opcode)]
    except ValueError:
        if strict:
            raise UnknownOpcode(opcode, bytes(record)) from None
        return UnrecognizedEvent(opcode=opcode, raw=bytes(record))

    reader = _Reader(record, EventOpcode(opcode).name)
    event = decoder(reader)
    if reader.remaining:
        LOGGER.debug("Ignoring %d trailing bytes after %s", reader.remaining, type(event).__name__)
    return event
