"""NeuroGuide hardware listener and focus meter experience."""

from .codec import Sample, decode, encode
from .config import (
    ConfigurationManager,
    ExperienceOptions,
    ListenerConfig,
    LoggingConfig,
    NeuroGuideConfig,
)
from .dispatcher import (
    CallbackSubscriber,
    EventType,
    ExperienceEvent,
    SubscriberRegistry,
)
from .exceptions import (
    AlreadyRunningError,
    BindError,
    ConfigurationError,
    DecodeError,
    InvalidStateTransitionError,
    NeuroGuideError,
    SubscriberCallbackError,
    TransientReceiveError,
)
from .experience import ExperienceState, ProgressIntegrator
from .mailbox import Mailbox
from .receiver import ReceiverHandle, ReceiverStats, UdpReceiver
from .state_machine import (
    ConnectionState,
    ConnectionStateMachine,
    StateTransition,
    VALID_TRANSITIONS,
)
from .system import NeuroGuideSystem, SystemSnapshot, TickResult, start, stop

__all__ = [
    "Sample",
    "decode",
    "encode",
    "ConfigurationManager",
    "ExperienceOptions",
    "ListenerConfig",
    "LoggingConfig",
    "NeuroGuideConfig",
    "CallbackSubscriber",
    "EventType",
    "ExperienceEvent",
    "SubscriberRegistry",
    "AlreadyRunningError",
    "BindError",
    "ConfigurationError",
    "DecodeError",
    "InvalidStateTransitionError",
    "NeuroGuideError",
    "SubscriberCallbackError",
    "TransientReceiveError",
    "ExperienceState",
    "ProgressIntegrator",
    "Mailbox",
    "ReceiverHandle",
    "ReceiverStats",
    "UdpReceiver",
    "ConnectionState",
    "ConnectionStateMachine",
    "StateTransition",
    "VALID_TRANSITIONS",
    "NeuroGuideSystem",
    "SystemSnapshot",
    "TickResult",
    "start",
    "stop",
]
