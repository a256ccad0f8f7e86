"""Wire codec for NeuroGuide reward datagrams.

The NeuroGuide hardware sends a single byte per datagram: ``1`` while the
subject is in the reward state, anything else otherwise. There is no
handshake, sequence number, or acknowledgement.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Union

from .exceptions import DecodeError


REWARD_BYTE = 1
NON_REWARD_BYTE = 0
PAYLOAD_SIZE = 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Sample:
    """A decoded reading from the hardware.

    Equality only considers ``is_reward``; ``captured_at`` is derived from
    the local clock at decode time.
    """

    is_reward: bool
    captured_at: datetime = field(default_factory=_utcnow, compare=False)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "is_reward": self.is_reward,
            "captured_at": self.captured_at.isoformat(),
        }


def decode(payload: bytes) -> Sample:
    """Decode a datagram payload into a :class:`Sample`.

    Only the first byte is interpreted. Extra trailing bytes are ignored.

    Args:
        payload: Raw datagram bytes

    Returns:
        Sample stamped with the current UTC time

    Raises:
        DecodeError: If the payload is empty
    """
    if not payload:
        raise DecodeError("Empty datagram payload")
    return Sample(is_reward=payload[0] == REWARD_BYTE)


def encode(sample: Union[Sample, bool]) -> bytes:
    """Encode a sample (or a bare reward flag) into a one-byte payload."""
    is_reward = sample.is_reward if isinstance(sample, Sample) else bool(sample)
    return bytes([REWARD_BYTE if is_reward else NON_REWARD_BYTE])


__all__ = [
    "REWARD_BYTE",
    "NON_REWARD_BYTE",
    "PAYLOAD_SIZE",
    "Sample",
    "decode",
    "encode",
]
