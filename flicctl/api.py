"""Stable public API for building tooling on top of flicctl.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from flicctl.core.address import BdAddr, format_address, parse
from flicctl.core.client import FlicClient, ReceivedEvent
from flicctl.core.config import ClientConfig, load_config
from flicctl.core.errors import (
    AddressError,
    BoundsViolation,
    CodecError,
    ConfigError,
    ConfigValidationError,
    ConnectionClosed,
    DuplicateId,
    EncodeError,
    FlicctlError,
    FramingError,
    InvalidTelemetry,
    MalformedAddress,
    RecordTooLarge,
    SessionError,
    TransportConnectError,
    TransportError,
    TransportReadError,
    TransportWriteError,
    TruncatedRecord,
    UnknownId,
    UnknownOpcode,
)
from flicctl.core.model import (
    BdAddrType,
    BluetoothControllerState,
    ClickType,
    ConnectionStatus,
    CreateConnectionChannelError,
    DisconnectReason,
    LatencyMode,
    RemovedReason,
    ScanWizardResult,
    Unknown,
)
from flicctl.core.render import describe_event
from flicctl.core.session import EventContext, PairingProgress, SessionState, WizardStage
from flicctl.protocol.commands import Command, encode_command
from flicctl.protocol.events import Event, UnrecognizedEvent, decode_event
from flicctl.protocol.framing import FrameDecoder, encode_frame
from flicctl.transports.base import Transport
from flicctl.transports.tcp import TCPTransport

__all__ = [
    "FlicctlError",
    "AddressError",
    "MalformedAddress",
    "CodecError",
    "UnknownOpcode",
    "TruncatedRecord",
    "BoundsViolation",
    "InvalidTelemetry",
    "EncodeError",
    "FramingError",
    "RecordTooLarge",
    "TransportError",
    "TransportConnectError",
    "TransportReadError",
    "TransportWriteError",
    "ConnectionClosed",
    "SessionError",
    "DuplicateId",
    "UnknownId",
    "ConfigError",
    "ConfigValidationError",
    "BdAddr",
    "parse",
    "format_address",
    "BdAddrType",
    "BluetoothControllerState",
    "ClickType",
    "ConnectionStatus",
    "CreateConnectionChannelError",
    "DisconnectReason",
    "LatencyMode",
    "RemovedReason",
    "ScanWizardResult",
    "Unknown",
    "Command",
    "encode_command",
    "Event",
    "UnrecognizedEvent",
    "decode_event",
    "FrameDecoder",
    "encode_frame",
    "EventContext",
    "PairingProgress",
    "SessionState",
    "WizardStage",
    "Transport",
    "TCPTransport",
    "ClientConfig",
    "load_config",
    "FlicClient",
    "Client",
    "ReceivedEvent",
    "describe_event",
]

Client = FlicClient
