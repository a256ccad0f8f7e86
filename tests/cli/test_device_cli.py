"""Tests for the NeuroGuide device CLI commands."""

from __future__ import annotations

import socket
from pathlib import Path
from typing import Iterator

import pytest
from typer.testing import CliRunner

from neuroguide.cli import cli
from neuroguide.cli.device import ConsoleSubscriber
from neuroguide.hardware.state_machine import ConnectionState


runner = CliRunner()


@pytest.fixture
def listening_socket() -> Iterator[socket.socket]:
    """Loopback UDP socket standing in for the experience host."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(2.0)
    yield sock
    sock.close()


def test_send_reward(listening_socket: socket.socket):
    """Test send reward emits one-byte reward datagrams."""
    port = listening_socket.getsockname()[1]

    result = runner.invoke(
        cli,
        ["device", "send", "reward", "--port", str(port), "--count", "2", "--interval", "0"],
    )

    assert result.exit_code == 0, result.output
    assert "Sent 2" in result.output
    assert listening_socket.recvfrom(16)[0] == b"\x01"
    assert listening_socket.recvfrom(16)[0] == b"\x01"


def test_send_non_reward(listening_socket: socket.socket):
    """Test send non-reward emits a zero byte."""
    port = listening_socket.getsockname()[1]

    result = runner.invoke(cli, ["device", "send", "non-reward", "--port", str(port)])

    assert result.exit_code == 0, result.output
    assert listening_socket.recvfrom(16)[0] == b"\x00"


def test_send_rejects_unknown_signal():
    """Test an unknown signal name is a usage error."""
    result = runner.invoke(cli, ["device", "send", "maybe"])
    assert result.exit_code != 0


def test_listen_runs_for_duration(tmp_path: Path):
    """Test listen starts, ticks and prints a session summary."""
    result = runner.invoke(
        cli,
        [
            "device",
            "listen",
            "--config", str(tmp_path / "missing.yaml"),
            "--port", "0",
            "--duration", "0.2",
            "--rate", "50",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Listening on 127.0.0.1:" in result.output
    assert "State" in result.output
    assert "NeuroGuide session" in result.output


def test_listen_reports_bind_failure(tmp_path: Path, listening_socket: socket.socket):
    """Test listen exits with an error when the port is taken."""
    port = listening_socket.getsockname()[1]

    result = runner.invoke(
        cli,
        ["device", "listen", "--config", str(tmp_path / "missing.yaml"), "--port", str(port)],
    )

    assert result.exit_code == 1
    assert "Unable to bind" in result.output


def test_listen_reports_invalid_config(tmp_path: Path):
    """Test listen refuses an invalid configuration file."""
    path = tmp_path / "config.yaml"
    path.write_text("experience:\n  threshold_normalized: 5\n")

    result = runner.invoke(cli, ["device", "listen", "--config", str(path)])

    assert result.exit_code == 1
    assert "Failed to load configuration" in result.output


def test_console_subscriber_prints_events():
    """Test the console subscriber renders each callback."""
    from rich.console import Console

    console = Console(record=True, width=120)
    subscriber = ConsoleSubscriber(console)
    subscriber.on_state_changed(ConnectionState.RECEIVING_DATA)
    subscriber.on_above_threshold()
    subscriber.on_below_threshold()
    subscriber.on_reward_changed(True)
    subscriber.on_data_update(0.4567)

    text = console.export_text()
    assert "receiving_data" in text
    assert "Above threshold" in text
    assert "Below threshold" in text
    assert "Reward changed → reward" in text
    assert "Score 0.457" in text
