"""Connection state machine for the NeuroGuide data stream.

This module tracks the health of the incoming reward stream. Transitions
are driven once per tick by whether a sample was consumed and by a
reset-on-arrival countdown that moves the stream into ``NO_DATA`` when
the hardware goes quiet.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Deque, Dict, List, Optional, Set

from .exceptions import InvalidStateTransitionError


logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    """Lifecycle states of the hardware stream."""

    NOT_INITIALIZED = "not_initialized"  # Listener not started
    INITIALIZED = "initialized"  # Listener bound, nothing received yet
    NO_DATA = "no_data"  # Timed out waiting for samples
    RECEIVING_DATA = "receiving_data"  # Samples arriving


# NOT_INITIALIZED is only reachable again through reset()
VALID_TRANSITIONS: Dict[ConnectionState, Set[ConnectionState]] = {
    ConnectionState.NOT_INITIALIZED: {
        ConnectionState.INITIALIZED,  # Listener started
    },
    ConnectionState.INITIALIZED: {
        ConnectionState.RECEIVING_DATA,  # First sample
        ConnectionState.NO_DATA,  # Nothing arrived before the timeout
    },
    ConnectionState.RECEIVING_DATA: {
        ConnectionState.NO_DATA,  # Stream went quiet
    },
    ConnectionState.NO_DATA: {
        ConnectionState.RECEIVING_DATA,  # Stream resumed
    },
}


@dataclass
class StateTransition:
    """Records a connection state change."""

    from_state: ConnectionState
    to_state: ConnectionState
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    reason: Optional[str] = None

    def is_valid(self) -> bool:
        """Check if transition is allowed by VALID_TRANSITIONS."""
        return self.to_state in VALID_TRANSITIONS.get(self.from_state, set())


class ConnectionStateMachine:
    """Owns the current ConnectionState.

    Only the tick thread may call into this class. The no-data countdown
    is armed by ``mark_initialized`` and re-armed on every consumed
    sample; each tick without a sample decrements it by ``dt`` and a
    transition to NO_DATA fires once it reaches zero.
    """

    def __init__(self, no_data_timeout_seconds: float, *, history_size: int = 100) -> None:
        """Initialize the state machine.

        Args:
            no_data_timeout_seconds: Seconds without samples before the
                stream is considered silent
            history_size: Number of transitions retained for inspection
        """
        if no_data_timeout_seconds <= 0:
            raise ValueError("no_data_timeout_seconds must be positive")
        self._timeout = no_data_timeout_seconds
        self._state = ConnectionState.NOT_INITIALIZED
        self._countdown: Optional[float] = None
        self._history: Deque[StateTransition] = deque(maxlen=history_size)

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def seconds_until_no_data(self) -> Optional[float]:
        """Remaining countdown, or None when no timer is armed."""
        return self._countdown

    @property
    def history(self) -> List[StateTransition]:
        return list(self._history)

    def mark_initialized(self) -> StateTransition:
        """Record a successful listener startup."""
        transition = self._transition(ConnectionState.INITIALIZED, reason="listener_started")
        self._countdown = self._timeout
        return transition

    def advance(self, dt: float, sample_consumed: bool) -> Optional[StateTransition]:
        """Drive the machine for one tick.

        Args:
            dt: Seconds elapsed since the previous tick
            sample_consumed: Whether this tick took a sample from the mailbox

        Returns:
            The transition performed this tick, or None
        """
        if self._state == ConnectionState.NOT_INITIALIZED:
            return None

        if sample_consumed:
            self._countdown = self._timeout
            if self._state != ConnectionState.RECEIVING_DATA:
                return self._transition(ConnectionState.RECEIVING_DATA, reason="sample_received")
            return None

        if self._countdown is None:
            return None

        self._countdown -= max(dt, 0.0)
        if self._countdown > 0:
            return None

        # Disarm so the timeout fires exactly once per silence
        self._countdown = None
        if self._state == ConnectionState.NO_DATA:
            return None
        return self._transition(ConnectionState.NO_DATA, reason="no_data_timeout")

    def reset(self) -> None:
        """Return to NOT_INITIALIZED for a stop/restart cycle."""
        self._state = ConnectionState.NOT_INITIALIZED
        self._countdown = None
        self._history.clear()

    def _transition(self, to_state: ConnectionState, *, reason: str) -> StateTransition:
        transition = StateTransition(from_state=self._state, to_state=to_state, reason=reason)
        if not transition.is_valid():
            logger.error(
                "Invalid connection state transition",
                extra={"from_state": self._state.value, "to_state": to_state.value},
            )
            raise InvalidStateTransitionError(
                f"Invalid transition: {self._state.value} → {to_state.value}"
            )

        self._state = to_state
        self._history.append(transition)
        logger.info(
            "Connection state changed",
            extra={
                "from_state": transition.from_state.value,
                "to_state": to_state.value,
                "reason": reason,
            },
        )
        return transition


__all__ = [
    "ConnectionState",
    "VALID_TRANSITIONS",
    "StateTransition",
    "ConnectionStateMachine",
]
