"""Client-side identifier bookkeeping and event correlation.

Identifiers are chosen by the caller; the server never assigns them. A
:class:`SessionState` belongs to exactly one connection and is never shared.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from flicctl.core.address import BdAddr
from flicctl.core.errors import DuplicateId, UnknownId
from flicctl.core.model import CreateConnectionChannelError
from flicctl.protocol import commands as cmd
from flicctl.protocol import events as evt

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


class WizardStage(Enum):
    STARTED = "started"
    FOUND_PRIVATE_BUTTON = "found private button"
    FOUND_PUBLIC_BUTTON = "found public button"
    BUTTON_CONNECTED = "button connected"


@dataclass
class PairingProgress:
    """Last progress reported by the server for one scan wizard.

    Informational only; the server decides the actual pairing flow.
    """

    stage: WizardStage = WizardStage.STARTED
    bd_addr: BdAddr | None = None
    name: str | None = None


class IdRegistry(Generic[T]):
    """Map of caller-chosen 32-bit identifiers to their targets."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._entries: dict[int, T] = {}

    def __contains__(self, ident: object) -> bool:
        return ident in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._entries))

    def check_available(self, ident: int) -> None:
        if ident in self._entries:
            raise DuplicateId(f"{self.kind} id {ident} is already in use")

    def check_tracked(self, ident: int) -> None:
        if ident not in self._entries:
            raise UnknownId(f"{self.kind} id {ident} is not tracked")

    def allocate(self, ident: int, target: T) -> None:
        self.check_available(ident)
        self._entries[ident] = target
        LOGGER.debug("Allocated %s id %d", self.kind, ident)

    def release(self, ident: int) -> T:
        self.check_tracked(ident)
        LOGGER.debug("Released %s id %d", self.kind, ident)
        return self._entries.pop(ident)

    def resolve(self, ident: int) -> T | None:
        return self._entries.get(ident)

    def items(self) -> list[tuple[int, T]]:
        return list(self._entries.items())


@dataclass(frozen=True)
class EventContext:
    """What an inbound event refers to, as far as this session knows."""

    kind: str | None = None
    identifier: int | None = None
    tracked: bool = False
    target: object | None = None

    @property
    def unknown_identifier(self) -> bool:
        return self.identifier is not None and not self.tracked

    @property
    def address(self) -> BdAddr | None:
        if isinstance(self.target, BdAddr):
            return self.target
        if isinstance(self.target, PairingProgress):
            return self.target.bd_addr
        return None


NO_CONTEXT = EventContext()


class SessionState:
    def __init__(self) -> None:
        self.connections: IdRegistry[BdAddr] = IdRegistry("connection channel")
        self.scanners: IdRegistry[None] = IdRegistry("scanner")
        self.listeners: IdRegistry[BdAddr] = IdRegistry("battery status listener")
        self.wizards: IdRegistry[PairingProgress] = IdRegistry("scan wizard")
        self._wizard_order: list[int] = []

    # ------------------------------------------------------------------
    # Outbound commands
    # ------------------------------------------------------------------
    def check_command(self, command: cmd.Command) -> None:
        """Raise if ``command`` would violate identifier lifecycle rules. Never mutates."""
        if isinstance(command, cmd.CreateConnectionChannel):
            self.connections.check_available(command.conn_id)
        elif isinstance(command, cmd.CreateScanner):
            self.scanners.check_available(command.scan_id)
        elif isinstance(command, cmd.CreateBatteryStatusListener):
            self.listeners.check_available(command.listener_id)
        elif isinstance(command, cmd.CreateScanWizard):
            self.wizards.check_available(command.scan_wizard_id)
        elif isinstance(command, (cmd.RemoveConnectionChannel, cmd.ChangeModeParameters)):
            self.connections.check_tracked(command.conn_id)
        elif isinstance(command, cmd.RemoveScanner):
            self.scanners.check_tracked(command.scan_id)
        elif isinstance(command, cmd.RemoveBatteryStatusListener):
            self.listeners.check_tracked(command.listener_id)
        elif isinstance(command, cmd.CancelScanWizard):
            self.wizards.check_tracked(command.scan_wizard_id)

    def apply_command(self, command: cmd.Command) -> None:
        """Record a command that has been written to the server.

        Connection channels and wizards stay allocated until the server
        reports their end; scanners and listeners have no terminal event and
        are released here.
        """
        self.check_command(command)
        if isinstance(command, cmd.CreateConnectionChannel):
            self.connections.allocate(command.conn_id, command.bd_addr)
        elif isinstance(command, cmd.CreateScanner):
            self.scanners.allocate(command.scan_id, None)
        elif isinstance(command, cmd.CreateBatteryStatusListener):
            self.listeners.allocate(command.listener_id, command.bd_addr)
        elif isinstance(command, cmd.CreateScanWizard):
            self.wizards.allocate(command.scan_wizard_id, PairingProgress())
            self._wizard_order.append(command.scan_wizard_id)
        elif isinstance(command, cmd.RemoveScanner):
            self.scanners.release(command.scan_id)
        elif isinstance(command, cmd.RemoveBatteryStatusListener):
            self.listeners.release(command.listener_id)

    @property
    def active_wizard(self) -> int | None:
        """The most recently created scan wizard that has not completed."""
        for ident in reversed(self._wizard_order):
            if ident in self.wizards:
                return ident
        return None

    # ------------------------------------------------------------------
    # Inbound events
    # ------------------------------------------------------------------
    def _registry_for(self, event: evt.Event) -> tuple[IdRegistry, int] | None:
        if isinstance(
            event,
            (
                evt.CreateConnectionChannelResponse,
                evt.ConnectionStatusChanged,
                evt.ConnectionChannelRemoved,
                evt.ButtonEvent,
            ),
        ):
            return self.connections, event.conn_id
        if isinstance(event, evt.AdvertisementPacket):
            return self.scanners, event.scan_id
        if isinstance(event, evt.BatteryStatusUpdate):
            return self.listeners, event.listener_id
        if isinstance(
            event,
            (
                evt.ScanWizardFoundPrivateButton,
                evt.ScanWizardFoundPublicButton,
                evt.ScanWizardButtonConnected,
                evt.ScanWizardCompleted,
            ),
        ):
            return self.wizards, event.scan_wizard_id
        return None

    def resolve_event(self, event: evt.Event) -> EventContext:
        """Look up the target of the identifier embedded in ``event``. Never mutates."""
        found = self._registry_for(event)
        if found is None:
            return NO_CONTEXT
        registry, ident = found
        if ident not in registry:
            return EventContext(kind=registry.kind, identifier=ident, tracked=False)
        return EventContext(kind=registry.kind, identifier=ident, tracked=True, target=registry.resolve(ident))

    def apply_event(self, event: evt.Event) -> EventContext:
        """Resolve ``event`` and then retire or update the identifier it ends or advances."""
        context = self.resolve_event(event)
        if context.unknown_identifier:
            LOGGER.warning(
                "%s refers to untracked %s id %d", type(event).__name__, context.kind, context.identifier
            )
            return context
        if not context.tracked:
            return context

        if isinstance(event, evt.ConnectionChannelRemoved):
            self.connections.release(event.conn_id)
        elif isinstance(event, evt.CreateConnectionChannelResponse):
            if event.error != CreateConnectionChannelError.NO_ERROR:
                self.connections.release(event.conn_id)
        elif isinstance(event, evt.ScanWizardCompleted):
            self.wizards.release(event.scan_wizard_id)
        elif isinstance(event, evt.ScanWizardFoundPrivateButton):
            self._progress(event.scan_wizard_id).stage = WizardStage.FOUND_PRIVATE_BUTTON
        elif isinstance(event, evt.ScanWizardFoundPublicButton):
            progress = self._progress(event.scan_wizard_id)
            progress.stage = WizardStage.FOUND_PUBLIC_BUTTON
            progress.bd_addr = event.bd_addr
            progress.name = event.name
        elif isinstance(event, evt.ScanWizardButtonConnected):
            self._progress(event.scan_wizard_id).stage = WizardStage.BUTTON_CONNECTED
        return context

    def _progress(self, ident: int) -> PairingProgress:
        progress = self.wizards.resolve(ident)
        if progress is None:  # pragma: no cover - guarded by apply_event
            raise UnknownId(f"scan wizard id {ident} is not tracked")
        return progress
