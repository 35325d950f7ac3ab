"""Protocol enumerations shared by the codec, session and presentation layers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TypeVar

E = TypeVar("E", bound=IntEnum)


@dataclass(frozen=True)
class Unknown:
    """An enum byte outside the values this client knows about."""

    value: int

    def __str__(self) -> str:
        return f"Unknown({self.value})"


class CreateConnectionChannelError(IntEnum):
    NO_ERROR = 0
    MAX_PENDING_CONNECTIONS_REACHED = 1


class ConnectionStatus(IntEnum):
    DISCONNECTED = 0
    CONNECTED = 1
    READY = 2


class DisconnectReason(IntEnum):
    UNSPECIFIED = 0
    CONNECTION_ESTABLISHMENT_FAILED = 1
    TIMED_OUT = 2
    BONDING_KEYS_MISMATCH = 3


class RemovedReason(IntEnum):
    REMOVED_BY_THIS_CLIENT = 0
    FORCE_DISCONNECTED_BY_THIS_CLIENT = 1
    FORCE_DISCONNECTED_BY_OTHER_CLIENT = 2
    BUTTON_IS_PRIVATE = 3
    VERIFY_TIMEOUT = 4
    INTERNET_BACKEND_ERROR = 5
    INVALID_DATA = 6
    COULDNT_LOAD_DEVICE = 7
    DELETED_BY_THIS_CLIENT = 8
    DELETED_BY_OTHER_CLIENT = 9
    BUTTON_BELONGS_TO_OTHER_PARTNER = 10
    DELETED_FROM_BUTTON = 11


class ClickType(IntEnum):
    BUTTON_DOWN = 0
    BUTTON_UP = 1
    BUTTON_CLICK = 2
    BUTTON_SINGLE_CLICK = 3
    BUTTON_DOUBLE_CLICK = 4
    BUTTON_HOLD = 5


class BdAddrType(IntEnum):
    PUBLIC = 0
    RANDOM = 1


class LatencyMode(IntEnum):
    NORMAL = 0
    LOW = 1
    HIGH = 2


class BluetoothControllerState(IntEnum):
    DETACHED = 0
    RESETTING = 1
    ATTACHED = 2


class ScanWizardResult(IntEnum):
    SUCCESS = 0
    CANCELLED_BY_USER = 1
    FAILED_TIMEOUT = 2
    BUTTON_IS_PRIVATE = 3
    BLUETOOTH_UNAVAILABLE = 4
    INTERNET_BACKEND_ERROR = 5
    INVALID_DATA = 6
    BUTTON_BELONGS_TO_OTHER_PARTNER = 7
    BUTTON_ALREADY_CONNECTED_TO_OTHER_DEVICE = 8


class BatteryStatus(IntEnum):
    OK = 0
    LOW = 1
    CRITICAL = 2


def decode_enum(enum_cls: type[E], raw: int) -> E | Unknown:
    """Map a wire byte to ``enum_cls`` or to :class:`Unknown` when out of range."""
    try:
        return enum_cls(raw)
    except ValueError:
        return Unknown(raw)


def enum_label(value: IntEnum | Unknown) -> str:
    if isinstance(value, Unknown):
        return str(value)
    return value.name.replace("_", " ").capitalize()
