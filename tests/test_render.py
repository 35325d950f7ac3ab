from __future__ import annotations

from flicctl.core.address import parse
from flicctl.core.client import ReceivedEvent
from flicctl.core.model import ClickType, ConnectionStatus, DisconnectReason, ScanWizardResult, Unknown
from flicctl.core.render import describe_event
from flicctl.core.session import NO_CONTEXT, EventContext, PairingProgress
from flicctl.protocol import events as evt

ADDR = parse("80:e4:da:71:23:45")


def test_button_event_mentions_click_and_address() -> None:
    context = EventContext(kind="connection channel", identifier=7, tracked=True, target=ADDR)
    event = evt.ButtonSingleOrDoubleClick(
        conn_id=7, click_type=ClickType.BUTTON_SINGLE_CLICK, was_queued=True, time_diff=3
    )
    text = describe_event(ReceivedEvent(event, context))
    assert text == "Button SINGLE CLICK on channel 7 (80:e4:da:71:23:45) (age 3 s, queued)"


def test_untracked_channel_is_flagged() -> None:
    context = EventContext(kind="connection channel", identifier=9, tracked=False)
    event = evt.ButtonUpOrDown(conn_id=9, click_type=Unknown(42), was_queued=False, time_diff=0)
    assert describe_event(ReceivedEvent(event, context)) == "Button Unknown(42) on channel 9 (untracked) (age 0 s)"


def test_disconnect_includes_reason() -> None:
    event = evt.ConnectionStatusChanged(
        conn_id=7,
        connection_status=ConnectionStatus.DISCONNECTED,
        disconnect_reason=DisconnectReason.TIMED_OUT,
        bd_addr=ADDR,
    )
    context = EventContext(kind="connection channel", identifier=7, tracked=True, target=ADDR)
    text = describe_event(ReceivedEvent(event, context))
    assert text.endswith("Disconnected (reason: Timed out)")


def test_ping_and_unrecognized() -> None:
    assert describe_event(ReceivedEvent(evt.PingResponse(ping_id=5), NO_CONTEXT)) == "Ping response 5"
    unrecognized = evt.UnrecognizedEvent(opcode=255, raw=b"\xff\x01")
    assert describe_event(ReceivedEvent(unrecognized, NO_CONTEXT)) == "Unrecognized event opcode 255: ff01"


def test_wizard_completion_shows_paired_address() -> None:
    progress = PairingProgress(bd_addr=ADDR, name="F0001")
    context = EventContext(kind="scan wizard", identifier=1, tracked=True, target=progress)
    event = evt.ScanWizardCompleted(scan_wizard_id=1, result=ScanWizardResult.SUCCESS)
    assert describe_event(ReceivedEvent(event, context)) == "Pairing completed: Success (80:e4:da:71:23:45)"


def test_battery_report() -> None:
    context = EventContext(kind="battery status listener", identifier=2, tracked=True, target=ADDR)
    event = evt.BatteryStatusUpdate(listener_id=2, battery_percentage=87, timestamp=0)
    assert describe_event(ReceivedEvent(event, context)) == "Battery of listener 2 (80:e4:da:71:23:45): 87%"


def test_unverified_button_info() -> None:
    event = evt.GetButtonInfoResponse(
        bd_addr=ADDR, uuid=b"", name="", color=0, serial_number="", flic_version=0, firmware_version=0
    )
    assert describe_event(ReceivedEvent(event, NO_CONTEXT)) == "Button 80:e4:da:71:23:45 is not verified"
