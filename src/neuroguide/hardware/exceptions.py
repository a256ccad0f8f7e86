"""Custom exceptions for the NeuroGuide hardware listener and experience."""

from __future__ import annotations

from typing import Any, Optional


class NeuroGuideError(Exception):
    """Base exception for all NeuroGuide errors."""


class BindError(NeuroGuideError):
    """Raised when the UDP socket cannot be bound to the requested address.

    This is fatal to startup and is surfaced synchronously to the caller
    of ``NeuroGuideSystem.start()``. No retry is attempted.

    Example:
        Another process already listening on port 50000 with an exclusive
        bind would cause this exception.
    """

    def __init__(self, address: str, port: int, reason: str) -> None:
        super().__init__(f"Unable to bind UDP socket to {address}:{port}: {reason}")
        self.address = address
        self.port = port
        self.reason = reason


class DecodeError(NeuroGuideError, ValueError):
    """Raised when a datagram payload cannot be decoded into a sample.

    Only an empty payload triggers this; any non-empty payload decodes.
    The receiver drops the datagram and keeps listening.
    """

    pass


class TransientReceiveError(NeuroGuideError):
    """Wraps a non-fatal socket error raised while receiving a datagram.

    Never propagates out of the receiver thread; it exists so the error
    can be logged and counted uniformly.
    """

    def __init__(self, cause: OSError) -> None:
        super().__init__(f"Transient receive error: {cause}")
        self.cause = cause


class AlreadyRunningError(NeuroGuideError):
    """Raised when starting a system whose listener is already active.

    The running instance is left untouched.
    """


class InvalidStateTransitionError(NeuroGuideError, ValueError):
    """Raised when an invalid connection state transition is attempted.

    This exception indicates a violation of the state machine's
    transition rules defined in VALID_TRANSITIONS.

    Example:
        Attempting to transition from RECEIVING_DATA back to
        NOT_INITIALIZED would raise this exception since only an
        explicit reset may return the machine to its initial state.
    """

    pass


class SubscriberCallbackError(NeuroGuideError):
    """Records a subscriber callback that raised during dispatch.

    Dispatch never raises this; it is kept by the registry so callers
    can inspect isolated failures after a tick.
    """

    def __init__(
        self,
        subscriber: Any,
        event_type: str,
        cause: BaseException,
        payload: Optional[Any] = None,
    ) -> None:
        super().__init__(
            f"Subscriber {subscriber!r} failed handling {event_type}: {cause!r}"
        )
        self.subscriber = subscriber
        self.event_type = event_type
        self.cause = cause
        self.payload = payload


class ConfigurationError(NeuroGuideError):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


__all__ = [
    "NeuroGuideError",
    "BindError",
    "DecodeError",
    "TransientReceiveError",
    "AlreadyRunningError",
    "InvalidStateTransitionError",
    "SubscriberCallbackError",
    "ConfigurationError",
]
