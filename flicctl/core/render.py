"""Human-readable one-line descriptions of received events."""

from __future__ import annotations

from typing import Callable

from flicctl.core.client import ReceivedEvent
from flicctl.core.model import ClickType, ConnectionStatus, ScanWizardResult, Unknown, enum_label
from flicctl.core.session import EventContext
from flicctl.protocol import events as evt


def _channel(conn_id: int, context: EventContext) -> str:
    if context.address is not None:
        return f"channel {conn_id} ({context.address})"
    if context.unknown_identifier:
        return f"channel {conn_id} (untracked)"
    return f"channel {conn_id}"


def _click(click_type: ClickType | Unknown) -> str:
    if isinstance(click_type, Unknown):
        return str(click_type)
    return click_type.name.removeprefix("BUTTON_").replace("_", " ")


def _flag(value: bool) -> str:
    return "yes" if value else "no"


def _advertisement(event: evt.AdvertisementPacket, context: EventContext) -> str:
    name = event.name or "<no name>"
    return (
        f"Advertisement: {event.bd_addr} name={name} rssi={event.rssi} dBm "
        f"private={_flag(event.is_private)} verified={_flag(event.already_verified)}"
    )


def _channel_response(event: evt.CreateConnectionChannelResponse, context: EventContext) -> str:
    return (
        f"Create connection channel response for {_channel(event.conn_id, context)}: "
        f"{enum_label(event.error)}, status {enum_label(event.connection_status)}"
    )


def _status_changed(event: evt.ConnectionStatusChanged, context: EventContext) -> str:
    text = f"Connection status of {_channel(event.conn_id, context)}: {enum_label(event.connection_status)}"
    if event.connection_status == ConnectionStatus.DISCONNECTED:
        text += f" (reason: {enum_label(event.disconnect_reason)})"
    return text


def _channel_removed(event: evt.ConnectionChannelRemoved, context: EventContext) -> str:
    return f"Connection {_channel(event.conn_id, context)} removed: {enum_label(event.removed_reason)}"


def _button(event: evt.ButtonEvent, context: EventContext) -> str:
    queued = ", queued" if event.was_queued else ""
    return (
        f"Button {_click(event.click_type)} on {_channel(event.conn_id, context)} "
        f"(age {event.time_diff} s{queued})"
    )


def _new_verified(event: evt.NewVerifiedButton, context: EventContext) -> str:
    return f"New verified button: {event.bd_addr}"


def _info(event: evt.GetInfoResponse, context: EventContext) -> str:
    buttons = ", ".join(str(addr) for addr in event.verified_buttons) or "none"
    return (
        f"Server info: controller {enum_label(event.bluetooth_controller_state)}, "
        f"address {event.my_bd_addr} ({enum_label(event.my_bd_addr_type)}), "
        f"max pending {event.max_pending_connections}, "
        f"max connected {event.max_concurrently_connected_buttons}, "
        f"pending {event.current_pending_connection_count}, "
        f"no space {_flag(event.currently_no_space_for_new_connection)}, "
        f"verified buttons: {buttons}"
    )


def _no_space(event: evt.NoSpaceForNewConnection, context: EventContext) -> str:
    return f"No space for new connection (max {event.max_concurrently_connected_buttons})"


def _got_space(event: evt.GotSpaceForNewConnection, context: EventContext) -> str:
    return f"Got space for new connection (max {event.max_concurrently_connected_buttons})"


def _controller(event: evt.BluetoothControllerStateChange, context: EventContext) -> str:
    return f"Bluetooth controller state changed to {enum_label(event.state)}"


def _pong(event: evt.PingResponse, context: EventContext) -> str:
    return f"Ping response {event.ping_id}"


def _button_info(event: evt.GetButtonInfoResponse, context: EventContext) -> str:
    if not event.uuid.strip(b"\x00"):
        return f"Button {event.bd_addr} is not verified"
    return (
        f"Button info {event.bd_addr}: uuid={event.uuid_hex} name={event.name or '<no name>'} "
        f"serial={event.serial_number} color=0x{event.color & 0xFFFFFFFF:08x} "
        f"flic_version={event.flic_version} firmware={event.firmware_version}"
    )


def _wizard_private(event: evt.ScanWizardFoundPrivateButton, context: EventContext) -> str:
    return "Pairing: found private button, hold it down for 7 seconds to make it public"


def _wizard_public(event: evt.ScanWizardFoundPublicButton, context: EventContext) -> str:
    return f"Pairing: found public button {event.bd_addr} ({event.name}), connecting"


def _wizard_connected(event: evt.ScanWizardButtonConnected, context: EventContext) -> str:
    return "Pairing: connected, now pairing and verifying"


def _wizard_completed(event: evt.ScanWizardCompleted, context: EventContext) -> str:
    text = f"Pairing completed: {enum_label(event.result)}"
    if event.result == ScanWizardResult.SUCCESS and context.address is not None:
        text += f" ({context.address})"
    return text


def _button_deleted(event: evt.ButtonDeleted, context: EventContext) -> str:
    by = "this client" if event.deleted_by_this_client else "another client"
    return f"Button {event.bd_addr} deleted by {by}"


def _battery(event: evt.BatteryStatusUpdate, context: EventContext) -> str:
    target = f" ({context.address})" if context.address is not None else ""
    return f"Battery of listener {event.listener_id}{target}: {event.battery_percentage}%"


def _unrecognized(event: evt.UnrecognizedEvent, context: EventContext) -> str:
    return f"Unrecognized event opcode {event.opcode}: {event.raw.hex()}"


_RENDERERS: dict[type, Callable[..., str]] = {
    evt.AdvertisementPacket: _advertisement,
    evt.CreateConnectionChannelResponse: _channel_response,
    evt.ConnectionStatusChanged: _status_changed,
    evt.ConnectionChannelRemoved: _channel_removed,
    evt.ButtonUpOrDown: _button,
    evt.ButtonClickOrHold: _button,
    evt.ButtonSingleOrDoubleClick: _button,
    evt.ButtonSingleOrDoubleClickOrHold: _button,
    evt.NewVerifiedButton: _new_verified,
    evt.GetInfoResponse: _info,
    evt.NoSpaceForNewConnection: _no_space,
    evt.GotSpaceForNewConnection: _got_space,
    evt.BluetoothControllerStateChange: _controller,
    evt.PingResponse: _pong,
    evt.GetButtonInfoResponse: _button_info,
    evt.ScanWizardFoundPrivateButton: _wizard_private,
    evt.ScanWizardFoundPublicButton: _wizard_public,
    evt.ScanWizardButtonConnected: _wizard_connected,
    evt.ScanWizardCompleted: _wizard_completed,
    evt.ButtonDeleted: _button_deleted,
    evt.BatteryStatusUpdate: _battery,
    evt.UnrecognizedEvent: _unrecognized,
}


def describe_event(received: ReceivedEvent) -> str:
    renderer = _RENDERERS[type(received.event)]
    return renderer(received.event, received.context)
