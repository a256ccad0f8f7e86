"""Single-slot latest-sample handoff between the receiver thread and the tick."""

from __future__ import annotations

import threading
from typing import Optional

from .codec import Sample


class Mailbox:
    """Thread-safe single-slot holder for the most recent sample.

    A newer ``put`` silently overwrites an unconsumed sample. ``take``
    returns the stored sample and clears the slot, so a second ``take``
    without an intervening ``put`` yields ``None``. The lock is held only
    for the duration of each read or write.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._sample: Optional[Sample] = None
        self._has_unconsumed = False
        self._writes = 0
        self._overwritten = 0

    def put(self, sample: Sample) -> None:
        """Store ``sample``, replacing any unconsumed one."""
        with self._lock:
            if self._has_unconsumed:
                self._overwritten += 1
            self._sample = sample
            self._has_unconsumed = True
            self._writes += 1

    def take(self) -> Optional[Sample]:
        """Atomically take and clear the stored sample.

        Returns:
            The unconsumed sample, or None if nothing arrived since the
            last take
        """
        with self._lock:
            if not self._has_unconsumed:
                return None
            sample = self._sample
            self._sample = None
            self._has_unconsumed = False
            return sample

    @property
    def has_unconsumed(self) -> bool:
        with self._lock:
            return self._has_unconsumed

    @property
    def writes(self) -> int:
        """Total number of samples stored since creation."""
        with self._lock:
            return self._writes

    @property
    def overwritten(self) -> int:
        """Number of samples dropped because a newer one replaced them."""
        with self._lock:
            return self._overwritten

    def clear(self) -> None:
        """Discard any unconsumed sample."""
        with self._lock:
            self._sample = None
            self._has_unconsumed = False


__all__ = ["Mailbox"]
