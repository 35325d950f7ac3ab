"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import typer

from flicctl.core.client import FlicClient, ReceivedEvent
from flicctl.core.config import ClientConfig, load_config
from flicctl.core.errors import FlicctlError
from flicctl.core.model import LatencyMode, ScanWizardResult
from flicctl.core.render import describe_event
from flicctl.protocol import events as evt

app = typer.Typer(help="Talk to a Flic button server over its TCP client protocol")


class LatencyOption(str, Enum):
    normal = "normal"
    low = "low"
    high = "high"


@dataclass
class _Options:
    host: str | None = None
    port: int | None = None
    config_path: Path | None = None


def _load(ctx: typer.Context) -> ClientConfig:
    options: _Options = ctx.obj or _Options()
    config = load_config(options.config_path)
    return config.with_overrides(host=options.host, port=options.port, request_info_on_connect=False)


def _connect(ctx: typer.Context, **overrides) -> FlicClient:
    config = _load(ctx).with_overrides(**overrides)
    return FlicClient.connect(config)


def _stream(
    client: FlicClient,
    accept: Callable[[ReceivedEvent], bool],
    *,
    limit: int | None = None,
    until: Callable[[ReceivedEvent], bool] | None = None,
) -> int:
    """Echo accepted events until ``limit`` is reached, ``until`` matches or the server hangs up."""
    shown = 0
    for received in client.events():
        if not accept(received):
            continue
        typer.echo(describe_event(received))
        shown += 1
        if until is not None and until(received):
            return shown
        if limit is not None and shown >= limit:
            return shown
    typer.echo("Server closed the connection", err=True)
    return shown


def _fail(exc: FlicctlError) -> typer.Exit:
    typer.echo(f"Error: {exc}", err=True)
    return typer.Exit(code=1)


@app.callback()
def main(
    ctx: typer.Context,
    host: str | None = typer.Option(None, "--host", help="Server host (default from config: localhost)"),
    port: int | None = typer.Option(None, "--port", help="Server port (default from config: 5551)"),
    config: Path | None = typer.Option(None, "--config", help="Path to a YAML config file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = _Options(host=host, port=port, config_path=config)


@app.command("info")
def info(ctx: typer.Context) -> None:
    """Show server info and the list of verified buttons."""
    try:
        with _connect(ctx) as client:
            client.get_info()
            _stream(client, lambda r: isinstance(r.event, evt.GetInfoResponse), limit=1)
    except FlicctlError as exc:
        raise _fail(exc) from None


@app.command("ping")
def ping(ctx: typer.Context, ping_id: int = typer.Option(1, "--id", min=0, max=0xFFFFFFFF)) -> None:
    """Ping the server and wait for the matching response."""
    try:
        with _connect(ctx) as client:
            client.ping(ping_id)
            _stream(
                client,
                lambda r: isinstance(r.event, evt.PingResponse) and r.event.ping_id == ping_id,
                limit=1,
            )
    except FlicctlError as exc:
        raise _fail(exc) from None


@app.command("scan")
def scan(
    ctx: typer.Context,
    scan_id: int = typer.Option(1, "--scan-id", min=0, max=0xFFFFFFFF),
    count: int | None = typer.Option(None, "--count", min=1, help="Stop after N advertisements"),
) -> None:
    """Print raw advertisements seen by a scanner."""
    try:
        with _connect(ctx) as client:
            client.create_scanner(scan_id)
            shown = _stream(client, lambda r: isinstance(r.event, evt.AdvertisementPacket), limit=count)
            if count is not None and shown >= count:
                client.remove_scanner(scan_id)
    except FlicctlError as exc:
        raise _fail(exc) from None


@app.command("pair")
def pair(
    ctx: typer.Context,
    wizard_id: int = typer.Option(1, "--wizard-id", min=0, max=0xFFFFFFFF),
) -> None:
    """Run the scan wizard to pair a new button. Press and hold the button to start."""
    try:
        with _connect(ctx) as client:
            client.create_scan_wizard(wizard_id)
            typer.echo("Scan wizard started. Press and hold your button...")
            completed: list[evt.ScanWizardCompleted] = []

            def _done(received: ReceivedEvent) -> bool:
                if isinstance(received.event, evt.ScanWizardCompleted):
                    completed.append(received.event)
                    return True
                return False

            _stream(
                client,
                lambda r: r.context.kind == "scan wizard" and r.context.identifier == wizard_id,
                until=_done,
            )
    except FlicctlError as exc:
        raise _fail(exc) from None

    if not completed or completed[0].result != ScanWizardResult.SUCCESS:
        raise typer.Exit(code=1)


@app.command("listen")
def listen(
    ctx: typer.Context,
    addresses: list[str] = typer.Argument(..., help="Button addresses (xx:xx:xx:xx:xx:xx)"),
    latency: LatencyOption | None = typer.Option(None, "--latency", help="Latency mode for the channels"),
    auto_disconnect_time: int | None = typer.Option(None, "--auto-disconnect-time", min=-32768, max=32767),
    count: int | None = typer.Option(None, "--count", min=1, help="Stop after N button events"),
) -> None:
    """Open a connection channel per button and print its events."""
    latency_mode = LatencyMode[latency.value.upper()] if latency is not None else None
    try:
        with _connect(ctx, latency_mode=latency_mode, auto_disconnect_time=auto_disconnect_time) as client:
            for conn_id, address in enumerate(addresses, start=1):
                client.create_connection_channel(conn_id, address)
                typer.echo(f"Connecting to {address} (channel {conn_id})...")

            button_events = 0

            def _enough(received: ReceivedEvent) -> bool:
                nonlocal button_events
                if isinstance(received.event, evt.ButtonEvent):
                    button_events += 1
                return count is not None and button_events >= count

            _stream(client, lambda r: r.context.kind == "connection channel", until=_enough)
    except FlicctlError as exc:
        raise _fail(exc) from None


@app.command("button-info")
def button_info(ctx: typer.Context, address: str) -> None:
    """Show stored information about a verified button."""
    try:
        with _connect(ctx) as client:
            client.get_button_info(address)
            _stream(client, lambda r: isinstance(r.event, evt.GetButtonInfoResponse), limit=1)
    except FlicctlError as exc:
        raise _fail(exc) from None


@app.command("delete-button")
def delete_button(ctx: typer.Context, address: str) -> None:
    """Delete a verified button from the server."""
    try:
        with _connect(ctx) as client:
            client.delete_button(address)
            _stream(client, lambda r: isinstance(r.event, evt.ButtonDeleted), limit=1)
    except FlicctlError as exc:
        raise _fail(exc) from None


@app.command("force-disconnect")
def force_disconnect(ctx: typer.Context, address: str) -> None:
    """Disconnect a button from every client of the server."""
    try:
        with _connect(ctx) as client:
            client.force_disconnect(address)
            typer.echo(f"Force disconnect sent for {address}")
    except FlicctlError as exc:
        raise _fail(exc) from None


@app.command("battery")
def battery(
    ctx: typer.Context,
    address: str,
    listener_id: int = typer.Option(1, "--listener-id", min=0, max=0xFFFFFFFF),
    count: int = typer.Option(1, "--count", min=1, help="Stop after N battery reports"),
) -> None:
    """Print battery reports for a button."""
    try:
        with _connect(ctx) as client:
            client.create_battery_status_listener(listener_id, address)
            shown = _stream(client, lambda r: isinstance(r.event, evt.BatteryStatusUpdate), limit=count)
            if shown >= count:
                client.remove_battery_status_listener(listener_id)
    except FlicctlError as exc:
        raise _fail(exc) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
