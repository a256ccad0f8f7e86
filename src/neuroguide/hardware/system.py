"""NeuroGuide system facade.

Wires the UDP receiver, mailbox, connection state machine, progress
integrator and subscriber registry into one explicit instance. The
caller owns the run loop and calls :meth:`NeuroGuideSystem.tick` once
per frame with the elapsed time.

Example:
    system = start("127.0.0.1", 50000, ExperienceOptions(threshold_normalized=0.5))
    system.subscribe(meter)
    while running:
        system.tick(frame_dt)
    stop(system)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .codec import Sample
from .config import ExperienceOptions, ListenerConfig, LoggingConfig, NeuroGuideConfig
from .dispatcher import EventType, ExperienceEvent, SubscriberRegistry
from .exceptions import AlreadyRunningError
from .experience import ProgressIntegrator
from .mailbox import Mailbox
from .receiver import ReceiverHandle, ReceiverStats, UdpReceiver
from .state_machine import ConnectionState, ConnectionStateMachine, StateTransition


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SystemSnapshot:
    """Read-only view of the system after the latest tick."""

    state: ConnectionState
    current_score: float
    current_progress_seconds: float
    is_above_threshold: bool
    running: bool


@dataclass
class TickResult:
    """What happened during one tick, in dispatch order."""

    sample: Optional[Sample] = None
    transition: Optional[StateTransition] = None
    events: List[ExperienceEvent] = field(default_factory=list)

    @property
    def event_types(self) -> List[EventType]:
        return [event.event_type for event in self.events]


class NeuroGuideSystem:
    """One NeuroGuide hardware connection plus its focus meter experience.

    The receiver thread only writes to the mailbox. Everything else,
    including subscriber callbacks, runs on the thread calling ``tick``.
    """

    def __init__(self, config: Optional[NeuroGuideConfig] = None) -> None:
        """Initialize the system without opening any socket.

        Args:
            config: Full configuration (defaults when omitted)
        """
        self._config = config or NeuroGuideConfig()
        self._mailbox = Mailbox()
        self._receiver = UdpReceiver(
            self._mailbox,
            receive_buffer_size=self._config.listener.receive_buffer_size,
            poll_interval_seconds=self._config.listener.poll_interval_seconds,
        )
        self._state_machine = ConnectionStateMachine(
            self._config.experience.no_data_timeout_seconds
        )
        self._integrator = ProgressIntegrator(
            self._config.experience,
            log_samples=self._config.logging.log_samples,
        )
        self._registry = SubscriberRegistry()
        self._handle: Optional[ReceiverHandle] = None

    @property
    def config(self) -> NeuroGuideConfig:
        return self._config

    @property
    def handle(self) -> Optional[ReceiverHandle]:
        return self._handle

    @property
    def mailbox(self) -> Mailbox:
        return self._mailbox

    @property
    def registry(self) -> SubscriberRegistry:
        return self._registry

    @property
    def state(self) -> ConnectionState:
        return self._state_machine.state

    @property
    def is_running(self) -> bool:
        return self._handle is not None

    def start(self) -> ReceiverHandle:
        """Bind the listener and move to INITIALIZED.

        Returns:
            Handle of the bound receiver

        Raises:
            AlreadyRunningError: If this system is already started
            BindError: If the UDP socket cannot be bound
        """
        if self._handle is not None:
            raise AlreadyRunningError(
                f"NeuroGuide system already running on {self._handle.address}:{self._handle.port}"
            )

        listener = self._config.listener
        self._handle = self._receiver.start(listener.address, listener.port)

        transition = self._state_machine.mark_initialized()
        self._registry.dispatch(
            ExperienceEvent(EventType.STATE_CHANGED, transition.to_state)
        )
        logger.info(
            "NeuroGuide system started",
            extra={
                "address": self._handle.address,
                "port": self._handle.port,
                "total_duration_seconds": self._config.experience.total_duration_seconds,
                "threshold_normalized": self._config.experience.threshold_normalized,
            },
        )
        return self._handle

    def stop(self) -> None:
        """Stop listening and reset state. Returns after the receiver exits.

        Subscribers stay registered so a later ``start`` resumes delivery.
        """
        if self._handle is None:
            return

        self._receiver.stop(self._handle)
        self._handle = None
        self._mailbox.clear()
        self._state_machine.reset()
        self._integrator.reset()
        logger.info("NeuroGuide system stopped")

    def subscribe(self, listener: Any) -> None:
        """Register a listener implementing any subset of the callbacks."""
        self._registry.register(listener)

    def unsubscribe(self, listener: Any) -> int:
        """Remove every registration of ``listener``."""
        return self._registry.unregister(listener)

    def tick(self, dt: float) -> TickResult:
        """Advance the system by one frame.

        Args:
            dt: Seconds elapsed since the previous tick

        Returns:
            The sample consumed, the transition performed and the events
            dispatched during this tick
        """
        if self._handle is None:
            return TickResult()

        sample = self._mailbox.take()
        transition = self._state_machine.advance(dt, sample_consumed=sample is not None)

        events: List[ExperienceEvent] = []
        if transition is not None:
            events.append(ExperienceEvent(EventType.STATE_CHANGED, transition.to_state))
        events.extend(self._integrator.integrate(sample, dt))

        self._registry.dispatch_all(events)
        return TickResult(sample=sample, transition=transition, events=events)

    def snapshot(self) -> SystemSnapshot:
        experience = self._integrator.state
        return SystemSnapshot(
            state=self._state_machine.state,
            current_score=experience.current_score,
            current_progress_seconds=experience.current_progress_seconds,
            is_above_threshold=experience.is_above_threshold,
            running=self.is_running,
        )

    def receiver_stats(self) -> ReceiverStats:
        return self._receiver.stats()

    def __enter__(self) -> "NeuroGuideSystem":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()


def start(
    address: str = "127.0.0.1",
    port: int = 50000,
    options: Optional[ExperienceOptions] = None,
    *,
    log_samples: bool = False,
) -> NeuroGuideSystem:
    """Create and start a system listening on ``address:port``.

    Raises:
        BindError: If the UDP socket cannot be bound
    """
    config = NeuroGuideConfig(
        listener=ListenerConfig(address=address, port=port),
        experience=options or ExperienceOptions(),
        logging=LoggingConfig(log_samples=log_samples),
    )
    system = NeuroGuideSystem(config)
    system.start()
    return system


def stop(system: NeuroGuideSystem) -> None:
    """Stop ``system``; returns once its receiver thread has exited."""
    system.stop()


__all__ = [
    "SystemSnapshot",
    "TickResult",
    "NeuroGuideSystem",
    "start",
    "stop",
]
