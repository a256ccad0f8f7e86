"""Shared test configuration and fixtures."""

from __future__ import annotations

import socket
import time
from typing import Any, Callable, Iterator, List, Tuple

import pytest

from neuroguide.hardware.config import (
    ExperienceOptions,
    ListenerConfig,
    NeuroGuideConfig,
)
from neuroguide.hardware.system import NeuroGuideSystem


class RecordingSubscriber:
    """Subscriber implementing every callback and recording the calls."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, Any]] = []

    def on_state_changed(self, state) -> None:
        self.calls.append(("state_changed", state))

    def on_above_threshold(self) -> None:
        self.calls.append(("above_threshold", None))

    def on_below_threshold(self) -> None:
        self.calls.append(("below_threshold", None))

    def on_reward_changed(self, is_reward: bool) -> None:
        self.calls.append(("reward_changed", is_reward))

    def on_data_update(self, score: float) -> None:
        self.calls.append(("data_update", score))

    def names(self) -> List[str]:
        return [name for name, _ in self.calls]

    def count(self, name: str) -> int:
        return self.names().count(name)


def wait_for(predicate: Callable[[], bool], timeout: float = 2.0, interval: float = 0.01) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` elapses."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def make_config(**experience: float) -> NeuroGuideConfig:
    """Build a config bound to an ephemeral loopback port."""
    return NeuroGuideConfig(
        listener=ListenerConfig(address="127.0.0.1", port=0, poll_interval_seconds=0.05),
        experience=ExperienceOptions(**experience),
    )


@pytest.fixture
def recorder() -> RecordingSubscriber:
    return RecordingSubscriber()


@pytest.fixture
def udp_sender() -> Iterator[socket.socket]:
    """Unbound UDP socket for sending test datagrams."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    yield sock
    sock.close()


@pytest.fixture
def system_factory() -> Iterator[Callable[..., NeuroGuideSystem]]:
    """Create started systems on ephemeral ports and stop them afterwards."""
    created: List[NeuroGuideSystem] = []

    def _factory(**experience: float) -> NeuroGuideSystem:
        system = NeuroGuideSystem(make_config(**experience))
        system.start()
        created.append(system)
        return system

    yield _factory

    for system in created:
        system.stop()


@pytest.fixture
def recorder_factory() -> Callable[[], RecordingSubscriber]:
    return RecordingSubscriber


@pytest.fixture(name="wait_for")
def wait_for_fixture() -> Callable[..., bool]:
    return wait_for
