"""CLI commands for talking to and listening for NeuroGuide hardware."""

from __future__ import annotations

import logging
import socket
import time
from enum import Enum
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from neuroguide.hardware.codec import encode
from neuroguide.hardware.config import (
    DEFAULT_CONFIG_PATH,
    ConfigurationError,
    ConfigurationManager,
)
from neuroguide.hardware.exceptions import BindError
from neuroguide.hardware.state_machine import ConnectionState
from neuroguide.hardware.system import NeuroGuideSystem

console = Console()
device_app = typer.Typer(help="NeuroGuide hardware commands")


class Signal(str, Enum):
    """Reward signal values accepted by ``send``."""

    REWARD = "reward"
    NON_REWARD = "non-reward"


class ConsoleSubscriber:
    """Prints experience events to the console as they fire."""

    def __init__(self, out: Console) -> None:
        self._out = out

    def on_state_changed(self, state: ConnectionState) -> None:
        self._out.print(f"[bold cyan]State[/bold cyan] → {state.value}")

    def on_above_threshold(self) -> None:
        self._out.print("[bold green]Above threshold[/bold green]")

    def on_below_threshold(self) -> None:
        self._out.print("[bold yellow]Below threshold[/bold yellow]")

    def on_reward_changed(self, is_reward: bool) -> None:
        label = "reward" if is_reward else "non-reward"
        self._out.print(f"[magenta]Reward changed[/magenta] → {label}")

    def on_data_update(self, score: float) -> None:
        self._out.print(f"Score {score:.3f}")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@device_app.command("send")
def send(
    signal: Signal = typer.Argument(..., help="Signal to send"),
    host: str = typer.Option("127.0.0.1", "--host", help="Destination address"),
    port: int = typer.Option(50000, "--port", help="Destination UDP port"),
    count: int = typer.Option(1, "--count", min=1, help="Number of datagrams to send"),
    interval: float = typer.Option(
        0.1, "--interval", min=0.0, help="Seconds between datagrams"
    ),
) -> None:
    """Send reward/non-reward datagrams, as the hardware would."""
    payload = encode(signal == Signal.REWARD)
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        for i in range(count):
            try:
                sock.sendto(payload, (host, port))
            except OSError as exc:
                console.print(f"[red]❌ Error sending UDP data: {exc}[/red]")
                raise typer.Exit(code=1)
            if i < count - 1 and interval > 0:
                time.sleep(interval)
    finally:
        sock.close()

    console.print(f"✅ Sent {count} × {signal.value} ({payload[0]}) to {host}:{port}")


@device_app.command("listen")
def listen(
    config_path: Path = typer.Option(
        DEFAULT_CONFIG_PATH,
        "--config",
        help="Path to configuration file"
    ),
    port: Optional[int] = typer.Option(
        None, "--port", help="Override the configured UDP port"
    ),
    rate: float = typer.Option(
        30.0, "--rate", min=1.0, help="Ticks per second"
    ),
    duration: Optional[float] = typer.Option(
        None, "--duration", help="Stop after this many seconds (default: until Ctrl-C)"
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging"),
) -> None:
    """Listen for the hardware and print focus meter events."""
    _configure_logging(verbose)

    try:
        config = ConfigurationManager(config_path=config_path).load()
    except ConfigurationError as exc:
        console.print(f"[red]❌ Failed to load configuration: {exc}[/red]")
        raise typer.Exit(code=1)

    if port is not None:
        config = config.model_copy(
            update={"listener": config.listener.model_copy(update={"port": port})}
        )

    system = NeuroGuideSystem(config)
    system.subscribe(ConsoleSubscriber(console))

    try:
        handle = system.start()
    except BindError as exc:
        console.print(f"[red]❌ {exc}[/red]")
        raise typer.Exit(code=1)

    console.print(f"Listening on {handle.address}:{handle.port} (Ctrl-C to stop)")

    period = 1.0 / rate
    started = time.monotonic()
    last = started
    try:
        while duration is None or time.monotonic() - started < duration:
            now = time.monotonic()
            system.tick(now - last)
            last = now
            time.sleep(max(0.0, period - (time.monotonic() - now)))
    except KeyboardInterrupt:
        console.print("Interrupted")
    finally:
        snapshot = system.snapshot()
        stats = system.receiver_stats()
        system.stop()

    table = Table(title="NeuroGuide session")
    table.add_column("Metric")
    table.add_column("Value")
    table.add_row("Final state", snapshot.state.value)
    table.add_row("Score", f"{snapshot.current_score:.3f}")
    table.add_row("Progress", f"{snapshot.current_progress_seconds:.2f}s")
    table.add_row("Datagrams", str(stats.datagrams_received))
    table.add_row("Decode errors", str(stats.decode_errors))
    table.add_row("Receive errors", str(stats.receive_errors))
    console.print(table)


__all__ = ["device_app", "ConsoleSubscriber", "Signal"]
