"""Tests for the NeuroGuide datagram codec."""

from datetime import datetime, timezone

import pytest

from neuroguide.hardware.codec import (
    NON_REWARD_BYTE,
    PAYLOAD_SIZE,
    REWARD_BYTE,
    Sample,
    decode,
    encode,
)
from neuroguide.hardware.exceptions import DecodeError, NeuroGuideError


def test_decode_reward_byte():
    """Test that a 1 byte decodes as reward."""
    sample = decode(b"\x01")
    assert sample.is_reward is True


def test_decode_zero_byte():
    """Test that a 0 byte decodes as non-reward."""
    assert decode(b"\x00").is_reward is False


@pytest.mark.parametrize("value", [2, 0x30, 0x31, 255])
def test_decode_other_bytes_are_non_reward(value: int):
    """Test that any value other than 1 is treated as non-reward."""
    assert decode(bytes([value])).is_reward is False


def test_decode_only_reads_first_byte():
    """Test that trailing bytes are ignored."""
    assert decode(b"\x01\x00\x00").is_reward is True
    assert decode(b"\x00\x01").is_reward is False


def test_decode_empty_payload_raises():
    """Test that an empty datagram is a DecodeError."""
    with pytest.raises(DecodeError):
        decode(b"")


def test_decode_error_is_value_error():
    """Test DecodeError fits both the package and builtin hierarchies."""
    assert issubclass(DecodeError, NeuroGuideError)
    assert issubclass(DecodeError, ValueError)


def test_decode_stamps_capture_time():
    """Test that decoded samples carry a UTC capture timestamp."""
    before = datetime.now(timezone.utc)
    sample = decode(b"\x01")
    after = datetime.now(timezone.utc)

    assert before <= sample.captured_at <= after


def test_encode_values():
    """Test encoding of samples and bare flags."""
    assert encode(True) == bytes([REWARD_BYTE])
    assert encode(False) == bytes([NON_REWARD_BYTE])
    assert encode(Sample(is_reward=True)) == b"\x01"
    assert len(encode(False)) == PAYLOAD_SIZE


@pytest.mark.parametrize("is_reward", [True, False])
def test_round_trip_ignores_timestamp(is_reward: bool):
    """Test decode(encode(sample)) == sample regardless of capture time."""
    original = Sample(is_reward=is_reward, captured_at=datetime(2020, 1, 1, tzinfo=timezone.utc))
    assert decode(encode(original)) == original


def test_sample_is_immutable():
    """Test that samples cannot be modified after construction."""
    sample = Sample(is_reward=True)
    with pytest.raises(AttributeError):
        sample.is_reward = False  # type: ignore[misc]


def test_sample_to_dict():
    """Test sample serialization."""
    stamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    assert Sample(is_reward=False, captured_at=stamp).to_dict() == {
        "is_reward": False,
        "captured_at": "2024-05-01T12:00:00+00:00",
    }
