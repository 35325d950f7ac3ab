from __future__ import annotations

import pytest

from flicctl.core.address import parse
from flicctl.core.errors import DuplicateId, SessionError, UnknownId
from flicctl.core.model import (
    ClickType,
    ConnectionStatus,
    CreateConnectionChannelError,
    RemovedReason,
    ScanWizardResult,
    Unknown,
)
from flicctl.core.session import IdRegistry, SessionState, WizardStage
from flicctl.protocol import commands as cmd
from flicctl.protocol import events as evt

X = parse("80:e4:da:71:23:45")
Y = parse("80:e4:da:71:23:46")


def test_registry_allocate_duplicate_release() -> None:
    registry: IdRegistry = IdRegistry("connection channel")
    registry.allocate(7, X)

    with pytest.raises(DuplicateId):
        registry.allocate(7, Y)
    assert registry.resolve(7) == X

    assert registry.release(7) == X
    with pytest.raises(UnknownId):
        registry.release(7)
    assert registry.resolve(7) is None


def test_registry_errors_are_session_errors() -> None:
    registry: IdRegistry = IdRegistry("scanner")
    with pytest.raises(SessionError):
        registry.release(1)


def test_create_connection_channel_allocates() -> None:
    session = SessionState()
    session.apply_command(cmd.CreateConnectionChannel(conn_id=7, bd_addr=X))
    assert session.connections.resolve(7) == X

    with pytest.raises(DuplicateId):
        session.check_command(cmd.CreateConnectionChannel(conn_id=7, bd_addr=Y))


def test_remove_commands_require_tracked_identifiers() -> None:
    session = SessionState()
    for command in (
        cmd.RemoveConnectionChannel(conn_id=1),
        cmd.ChangeModeParameters(conn_id=1),
        cmd.RemoveScanner(scan_id=1),
        cmd.RemoveBatteryStatusListener(listener_id=1),
        cmd.CancelScanWizard(scan_wizard_id=1),
    ):
        with pytest.raises(UnknownId):
            session.check_command(command)


def test_commands_without_identifiers_pass() -> None:
    session = SessionState()
    session.apply_command(cmd.GetInfo())
    session.apply_command(cmd.Ping(ping_id=1))
    session.apply_command(cmd.Ping(ping_id=1))
    session.apply_command(cmd.ForceDisconnect(bd_addr=X))


def test_scanner_and_listener_release_on_remove_command() -> None:
    session = SessionState()
    session.apply_command(cmd.CreateScanner(scan_id=1))
    session.apply_command(cmd.CreateBatteryStatusListener(listener_id=2, bd_addr=X))

    session.apply_command(cmd.RemoveScanner(scan_id=1))
    session.apply_command(cmd.RemoveBatteryStatusListener(listener_id=2))
    assert 1 not in session.scanners
    assert 2 not in session.listeners


def test_remove_connection_channel_waits_for_server() -> None:
    session = SessionState()
    session.apply_command(cmd.CreateConnectionChannel(conn_id=7, bd_addr=X))
    session.apply_command(cmd.RemoveConnectionChannel(conn_id=7))
    assert 7 in session.connections

    context = session.apply_event(
        evt.ConnectionChannelRemoved(conn_id=7, removed_reason=RemovedReason.REMOVED_BY_THIS_CLIENT)
    )
    assert context.tracked
    assert context.address == X
    assert 7 not in session.connections


def test_failed_create_response_releases_channel() -> None:
    session = SessionState()
    session.apply_command(cmd.CreateConnectionChannel(conn_id=7, bd_addr=X))
    session.apply_event(
        evt.CreateConnectionChannelResponse(
            conn_id=7,
            error=CreateConnectionChannelError.MAX_PENDING_CONNECTIONS_REACHED,
            connection_status=ConnectionStatus.DISCONNECTED,
        )
    )
    assert 7 not in session.connections


def test_successful_create_response_keeps_channel() -> None:
    session = SessionState()
    session.apply_command(cmd.CreateConnectionChannel(conn_id=7, bd_addr=X))
    session.apply_event(
        evt.CreateConnectionChannelResponse(
            conn_id=7,
            error=CreateConnectionChannelError.NO_ERROR,
            connection_status=ConnectionStatus.CONNECTED,
        )
    )
    assert session.connections.resolve(7) == X


def test_unknown_create_error_releases_channel() -> None:
    session = SessionState()
    session.apply_command(cmd.CreateConnectionChannel(conn_id=7, bd_addr=X))
    session.apply_event(
        evt.CreateConnectionChannelResponse(
            conn_id=7, error=Unknown(9), connection_status=ConnectionStatus.DISCONNECTED
        )
    )
    assert 7 not in session.connections


def test_button_event_resolves_to_channel_address() -> None:
    session = SessionState()
    session.apply_command(cmd.CreateConnectionChannel(conn_id=7, bd_addr=X))
    event = evt.ButtonSingleOrDoubleClick(
        conn_id=7, click_type=ClickType.BUTTON_SINGLE_CLICK, was_queued=False, time_diff=0
    )
    context = session.apply_event(event)
    assert context.kind == "connection channel"
    assert context.identifier == 7
    assert context.address == X
    assert 7 in session.connections


def test_event_for_untracked_identifier_is_reported_not_raised() -> None:
    session = SessionState()
    event = evt.ButtonUpOrDown(conn_id=99, click_type=ClickType.BUTTON_DOWN, was_queued=False, time_diff=0)
    context = session.apply_event(event)
    assert context.unknown_identifier
    assert context.address is None
    assert len(session.connections) == 0


def test_event_without_identifier_has_empty_context() -> None:
    session = SessionState()
    context = session.apply_event(evt.PingResponse(ping_id=1))
    assert context.kind is None
    assert not context.unknown_identifier


def test_wizard_progress_and_completion() -> None:
    session = SessionState()
    session.apply_command(cmd.CreateScanWizard(scan_wizard_id=3))
    assert session.active_wizard == 3

    session.apply_event(evt.ScanWizardFoundPrivateButton(scan_wizard_id=3))
    assert session.wizards.resolve(3).stage is WizardStage.FOUND_PRIVATE_BUTTON

    session.apply_event(evt.ScanWizardFoundPublicButton(scan_wizard_id=3, bd_addr=X, name="F0001"))
    progress = session.wizards.resolve(3)
    assert progress.stage is WizardStage.FOUND_PUBLIC_BUTTON
    assert progress.bd_addr == X
    assert progress.name == "F0001"

    session.apply_event(evt.ScanWizardButtonConnected(scan_wizard_id=3))
    assert progress.stage is WizardStage.BUTTON_CONNECTED

    context = session.apply_event(evt.ScanWizardCompleted(scan_wizard_id=3, result=ScanWizardResult.SUCCESS))
    assert context.address == X
    assert 3 not in session.wizards
    assert session.active_wizard is None


def test_cancel_wizard_keeps_it_until_completed() -> None:
    session = SessionState()
    session.apply_command(cmd.CreateScanWizard(scan_wizard_id=3))
    session.apply_command(cmd.CancelScanWizard(scan_wizard_id=3))
    assert 3 in session.wizards


def test_battery_update_resolves_listener_address() -> None:
    session = SessionState()
    session.apply_command(cmd.CreateBatteryStatusListener(listener_id=2, bd_addr=Y))
    context = session.resolve_event(evt.BatteryStatusUpdate(listener_id=2, battery_percentage=50, timestamp=0))
    assert context.address == Y
