"""Opcode tables for command and event records.

The opcode is always the first byte of a record.
"""

from __future__ import annotations

from enum import IntEnum


class CommandOpcode(IntEnum):
    GET_INFO = 0
    CREATE_SCANNER = 1
    REMOVE_SCANNER = 2
    CREATE_CONNECTION_CHANNEL = 3
    REMOVE_CONNECTION_CHANNEL = 4
    FORCE_DISCONNECT = 5
    CHANGE_MODE_PARAMETERS = 6
    PING = 7
    GET_BUTTON_INFO = 8
    CREATE_SCAN_WIZARD = 9
    CANCEL_SCAN_WIZARD = 10
    DELETE_BUTTON = 11
    CREATE_BATTERY_STATUS_LISTENER = 12
    REMOVE_BATTERY_STATUS_LISTENER = 13


class EventOpcode(IntEnum):
    ADVERTISEMENT_PACKET = 0
    CREATE_CONNECTION_CHANNEL_RESPONSE = 1
    CONNECTION_STATUS_CHANGED = 2
    CONNECTION_CHANNEL_REMOVED = 3
    BUTTON_UP_OR_DOWN = 4
    BUTTON_CLICK_OR_HOLD = 5
    BUTTON_SINGLE_OR_DOUBLE_CLICK = 6
    BUTTON_SINGLE_OR_DOUBLE_CLICK_OR_HOLD = 7
    NEW_VERIFIED_BUTTON = 8
    GET_INFO_RESPONSE = 9
    NO_SPACE_FOR_NEW_CONNECTION = 10
    GOT_SPACE_FOR_NEW_CONNECTION = 11
    BLUETOOTH_CONTROLLER_STATE_CHANGE = 12
    PING_RESPONSE = 13
    GET_BUTTON_INFO_RESPONSE = 14
    SCAN_WIZARD_FOUND_PRIVATE_BUTTON = 15
    SCAN_WIZARD_FOUND_PUBLIC_BUTTON = 16
    SCAN_WIZARD_BUTTON_CONNECTED = 17
    SCAN_WIZARD_COMPLETED = 18
    BUTTON_DELETED = 19
    BATTERY_STATUS = 20
