"""Client facade used by the CLI and by third-party tooling."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from flicctl.core.address import BdAddr
from flicctl.core.config import ClientConfig
from flicctl.core.errors import CodecError, ConnectionClosed, FramingError, UnknownId
from flicctl.core.model import LatencyMode
from flicctl.core.session import EventContext, SessionState
from flicctl.protocol import commands as cmd
from flicctl.protocol.events import Event, decode_event
from flicctl.protocol.framing import FrameDecoder, encode_frame
from flicctl.transports.base import Transport
from flicctl.transports.tcp import TCPTransport

LOGGER = logging.getLogger(__name__)

RECEIVE_CHUNK = 4096


@dataclass(frozen=True)
class ReceivedEvent:
    event: Event
    context: EventContext


def _address(value: BdAddr | str) -> BdAddr:
    return value if isinstance(value, BdAddr) else BdAddr.parse(value)


class FlicClient:
    """One session with a button server over one transport.

    Commands are correlated with later events only through the identifiers
    the caller picks; there are no sequence numbers and no timeouts.
    """

    def __init__(
        self,
        transport: Transport,
        *,
        config: ClientConfig | None = None,
        session: SessionState | None = None,
    ) -> None:
        self.config = config or ClientConfig()
        self.transport = transport
        self.session = session or SessionState()
        self._decoder = FrameDecoder(self.config.max_record_size)

    @classmethod
    def connect(cls, config: ClientConfig | None = None) -> FlicClient:
        config = config or ClientConfig()
        transport = TCPTransport.connect(config.host, config.port, timeout_s=config.connect_timeout_s)
        client = cls(transport, config=config)
        if config.request_info_on_connect:
            client.get_info()
        return client

    def close(self) -> None:
        self.transport.close()

    def __enter__(self) -> FlicClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def send_command(self, command: cmd.Command) -> None:
        """Validate identifiers, encode, frame and write ``command``.

        Session state changes only after the whole frame has been written.
        """
        self.session.check_command(command)
        record = cmd.encode_command(command)
        self.transport.send(encode_frame(record))
        self.session.apply_command(command)
        LOGGER.debug("Sent %s (%d bytes)", type(command).__name__, len(record))

    def get_info(self) -> None:
        self.send_command(cmd.GetInfo())

    def create_scanner(self, scan_id: int) -> None:
        self.send_command(cmd.CreateScanner(scan_id=scan_id))

    def remove_scanner(self, scan_id: int) -> None:
        self.send_command(cmd.RemoveScanner(scan_id=scan_id))

    def create_connection_channel(
        self,
        conn_id: int,
        bd_addr: BdAddr | str,
        *,
        latency_mode: LatencyMode | None = None,
        auto_disconnect_time: int | None = None,
    ) -> None:
        self.send_command(
            cmd.CreateConnectionChannel(
                conn_id=conn_id,
                bd_addr=_address(bd_addr),
                latency_mode=latency_mode if latency_mode is not None else self.config.latency_mode,
                auto_disconnect_time=(
                    auto_disconnect_time if auto_disconnect_time is not None else self.config.auto_disconnect_time
                ),
            )
        )

    def remove_connection_channel(self, conn_id: int) -> None:
        """Ask the server to remove a channel. The id stays tracked until the server confirms."""
        self.send_command(cmd.RemoveConnectionChannel(conn_id=conn_id))

    def force_disconnect(self, bd_addr: BdAddr | str) -> None:
        self.send_command(cmd.ForceDisconnect(bd_addr=_address(bd_addr)))

    def change_mode_parameters(
        self,
        conn_id: int,
        *,
        latency_mode: LatencyMode | None = None,
        auto_disconnect_time: int | None = None,
    ) -> None:
        self.send_command(
            cmd.ChangeModeParameters(
                conn_id=conn_id,
                latency_mode=latency_mode if latency_mode is not None else self.config.latency_mode,
                auto_disconnect_time=(
                    auto_disconnect_time if auto_disconnect_time is not None else self.config.auto_disconnect_time
                ),
            )
        )

    def ping(self, ping_id: int) -> None:
        self.send_command(cmd.Ping(ping_id=ping_id))

    def get_button_info(self, bd_addr: BdAddr | str) -> None:
        self.send_command(cmd.GetButtonInfo(bd_addr=_address(bd_addr)))

    def create_scan_wizard(self, scan_wizard_id: int) -> None:
        self.send_command(cmd.CreateScanWizard(scan_wizard_id=scan_wizard_id))

    def cancel_scan_wizard(self, scan_wizard_id: int | None = None) -> None:
        """Cancel a wizard, by default the most recently created one still running."""
        if scan_wizard_id is None:
            scan_wizard_id = self.session.active_wizard
            if scan_wizard_id is None:
                raise UnknownId("No scan wizard is active")
        self.send_command(cmd.CancelScanWizard(scan_wizard_id=scan_wizard_id))

    def delete_button(self, bd_addr: BdAddr | str) -> None:
        self.send_command(cmd.DeleteButton(bd_addr=_address(bd_addr)))

    def create_battery_status_listener(self, listener_id: int, bd_addr: BdAddr | str) -> None:
        self.send_command(cmd.CreateBatteryStatusListener(listener_id=listener_id, bd_addr=_address(bd_addr)))

    def remove_battery_status_listener(self, listener_id: int) -> None:
        self.send_command(cmd.RemoveBatteryStatusListener(listener_id=listener_id))

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def next_event(self) -> ReceivedEvent:
        """Block until one complete event has arrived and decode it.

        Codec and framing errors concern only the current frame; the next
        call resumes at the following frame. ``ConnectionClosed`` signals
        that the server ended the session.
        """
        while True:
            record = self._decoder.next_frame()
            if record is not None:
                event = decode_event(record)
                context = self.session.apply_event(event)
                LOGGER.debug("Received %s", type(event).__name__)
                return ReceivedEvent(event=event, context=context)

            data = self.transport.receive(max(self._decoder.needed, RECEIVE_CHUNK))
            if not data:
                if self._decoder.buffered:
                    LOGGER.warning("Server closed the connection mid-frame (%d bytes pending)", self._decoder.buffered)
                raise ConnectionClosed("Server closed the connection")
            self._decoder.feed(data)

    def events(self, *, skip_invalid: bool = True) -> Iterator[ReceivedEvent]:
        """Yield events until the server closes the connection."""
        while True:
            try:
                yield self.next_event()
            except ConnectionClosed:
                return
            except (CodecError, FramingError) as exc:
                if not skip_invalid:
                    raise
                LOGGER.warning("Skipping invalid frame: %s", exc)
