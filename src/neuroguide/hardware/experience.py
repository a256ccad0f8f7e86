"""Focus meter experience: integrates the reward signal into a 0..1 score.

Each tick consumes at most one sample. While the subject is in the reward
state the accumulated progress grows by the tick's elapsed time,
otherwise it shrinks by the same amount. Progress is clamped to
``[0, total_duration_seconds]`` and normalized into ``current_score``.

Threshold crossings use strict inequalities with hysteresis: the score
must drop below the threshold before another above-threshold event can
fire, and a score exactly equal to the threshold never produces an edge.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from .codec import Sample
from .config import ExperienceOptions
from .dispatcher import EventType, ExperienceEvent


logger = logging.getLogger(__name__)


@dataclass
class ExperienceState:
    """Mutable experience state, owned by the integrator."""

    current_progress_seconds: float = 0.0
    current_score: float = 0.0
    previous_score: float = 0.0
    is_above_threshold: bool = False
    previous_sample: Optional[Sample] = None


class ProgressIntegrator:
    """Turns consumed samples into score, threshold and reward events."""

    def __init__(self, options: ExperienceOptions, *, log_samples: bool = False) -> None:
        """Initialize the integrator.

        Args:
            options: Experience options (duration, threshold, timeout)
            log_samples: Log every consumed sample at INFO level
        """
        self._options = options
        self._log_samples = log_samples
        self._state = ExperienceState()

    @property
    def options(self) -> ExperienceOptions:
        return self._options

    @property
    def state(self) -> ExperienceState:
        return self._state

    def reset(self) -> None:
        """Return to the zero state used at startup."""
        self._state = ExperienceState()

    def integrate(self, sample: Optional[Sample], dt: float) -> List[ExperienceEvent]:
        """Apply one tick.

        Args:
            sample: Sample taken from the mailbox this tick, if any
            dt: Seconds elapsed since the previous tick

        Returns:
            Events to dispatch, already in threshold → reward → data order
        """
        if sample is None:
            return []

        state = self._state
        total = self._options.total_duration_seconds
        threshold = self._options.threshold_normalized
        step = max(dt, 0.0)

        if self._log_samples:
            logger.info("NeuroGuide sample consumed", extra=sample.to_dict())

        if total > 0:
            if sample.is_reward:
                state.current_progress_seconds += step
            else:
                state.current_progress_seconds -= step
            state.current_progress_seconds = min(max(state.current_progress_seconds, 0.0), total)
            state.current_score = state.current_progress_seconds / total
        else:
            logger.debug(
                "Skipping score update, total duration is not positive",
                extra={"total_duration_seconds": total},
            )

        events: List[ExperienceEvent] = []

        if state.current_score > threshold and not state.is_above_threshold:
            state.is_above_threshold = True
            events.append(ExperienceEvent(EventType.ABOVE_THRESHOLD))
        elif state.current_score < threshold and state.is_above_threshold:
            state.is_above_threshold = False
            events.append(ExperienceEvent(EventType.BELOW_THRESHOLD))

        previous = state.previous_sample
        if previous is None or previous.is_reward != sample.is_reward:
            events.append(ExperienceEvent(EventType.REWARD_CHANGED, sample.is_reward))

        if state.current_score != state.previous_score:
            events.append(ExperienceEvent(EventType.DATA_UPDATE, state.current_score))

        state.previous_score = state.current_score
        state.previous_sample = sample
        return events


__all__ = ["ExperienceState", "ProgressIntegrator"]
