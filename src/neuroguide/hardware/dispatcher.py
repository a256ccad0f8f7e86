"""Subscriber registry and event fan-out for the NeuroGuide experience.

Subscribers are plain objects that implement any subset of the callback
methods below. Registration is explicit; nothing is discovered.

Example:
    class FocusMeter:
        def on_data_update(self, score: float) -> None:
            ...

        def on_above_threshold(self) -> None:
            ...

    registry = SubscriberRegistry()
    registry.register(FocusMeter())
    registry.dispatch(ExperienceEvent(EventType.DATA_UPDATE, 0.42))
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Deque, List, Optional

from .exceptions import SubscriberCallbackError
from .state_machine import ConnectionState


logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Events fanned out to subscribers, in per-tick dispatch order."""

    STATE_CHANGED = "state_changed"
    ABOVE_THRESHOLD = "above_threshold"
    BELOW_THRESHOLD = "below_threshold"
    REWARD_CHANGED = "reward_changed"
    DATA_UPDATE = "data_update"


# Subscriber method invoked for each event type
CALLBACK_NAMES = {
    EventType.STATE_CHANGED: "on_state_changed",
    EventType.ABOVE_THRESHOLD: "on_above_threshold",
    EventType.BELOW_THRESHOLD: "on_below_threshold",
    EventType.REWARD_CHANGED: "on_reward_changed",
    EventType.DATA_UPDATE: "on_data_update",
}

# Events whose callbacks take no argument
_NO_PAYLOAD = {EventType.ABOVE_THRESHOLD, EventType.BELOW_THRESHOLD}


@dataclass(frozen=True)
class ExperienceEvent:
    """A single event produced by a tick.

    ``payload`` is the score for DATA_UPDATE, the reward flag for
    REWARD_CHANGED, the new ConnectionState for STATE_CHANGED and None
    for threshold events.
    """

    event_type: EventType
    payload: Any = None


@dataclass
class CallbackSubscriber:
    """Adapts plain callables into a subscriber.

    Any callback left as None is treated as a missing capability.
    """

    on_data_update: Optional[Callable[[float], None]] = None
    on_reward_changed: Optional[Callable[[bool], None]] = None
    on_above_threshold: Optional[Callable[[], None]] = None
    on_below_threshold: Optional[Callable[[], None]] = None
    on_state_changed: Optional[Callable[[ConnectionState], None]] = None


class SubscriberRegistry:
    """Ordered collection of subscribers with isolated dispatch.

    Not thread-safe: register, unregister and dispatch must all happen on
    the tick thread.
    """

    def __init__(self, *, max_failures: int = 100) -> None:
        self._subscribers: List[Any] = []
        self._failures: Deque[SubscriberCallbackError] = deque(maxlen=max_failures)

    def __len__(self) -> int:
        return len(self._subscribers)

    def __contains__(self, subscriber: Any) -> bool:
        return any(existing is subscriber for existing in self._subscribers)

    @property
    def subscribers(self) -> List[Any]:
        return list(self._subscribers)

    @property
    def failures(self) -> List[SubscriberCallbackError]:
        """Callback failures recorded since the last ``clear_failures``."""
        return list(self._failures)

    def clear_failures(self) -> None:
        self._failures.clear()

    def register(self, subscriber: Any) -> None:
        """Append a subscriber. Duplicates are kept."""
        self._subscribers.append(subscriber)
        logger.debug(
            "Subscriber registered",
            extra={"subscriber": type(subscriber).__name__, "count": len(self._subscribers)},
        )

    def unregister(self, subscriber: Any) -> int:
        """Remove every occurrence of ``subscriber``.

        Returns:
            Number of entries removed
        """
        before = len(self._subscribers)
        self._subscribers = [s for s in self._subscribers if s is not subscriber]
        removed = before - len(self._subscribers)
        logger.debug(
            "Subscriber unregistered",
            extra={"subscriber": type(subscriber).__name__, "removed": removed},
        )
        return removed

    def clear(self) -> None:
        self._subscribers.clear()

    def dispatch(self, event: ExperienceEvent) -> int:
        """Deliver ``event`` to every subscriber in registration order.

        A failing callback is logged and recorded; delivery continues with
        the next subscriber.

        Returns:
            Number of callbacks that completed without raising
        """
        name = CALLBACK_NAMES[event.event_type]
        delivered = 0

        # Snapshot so callbacks may (un)register without skipping entries
        for subscriber in list(self._subscribers):
            callback = getattr(subscriber, name, None)
            if not callable(callback):
                continue
            try:
                if event.event_type in _NO_PAYLOAD:
                    callback()
                else:
                    callback(event.payload)
                delivered += 1
            except Exception as exc:
                failure = SubscriberCallbackError(
                    subscriber, event.event_type.value, exc, payload=event.payload
                )
                self._failures.append(failure)
                logger.exception(
                    "Subscriber callback failed",
                    extra={
                        "subscriber": type(subscriber).__name__,
                        "event_type": event.event_type.value,
                    },
                )

        return delivered

    def dispatch_all(self, events: List[ExperienceEvent]) -> None:
        for event in events:
            self.dispatch(event)


__all__ = [
    "EventType",
    "CALLBACK_NAMES",
    "ExperienceEvent",
    "CallbackSubscriber",
    "SubscriberRegistry",
]
