"""Tests for the latest-sample mailbox."""

import threading

from neuroguide.hardware.codec import Sample
from neuroguide.hardware.mailbox import Mailbox


def test_empty_mailbox_yields_nothing():
    """Test that a fresh mailbox has no sample."""
    mailbox = Mailbox()
    assert mailbox.has_unconsumed is False
    assert mailbox.take() is None


def test_take_clears_slot():
    """Test that a second take without a put yields nothing."""
    mailbox = Mailbox()
    sample = Sample(is_reward=True)
    mailbox.put(sample)

    assert mailbox.has_unconsumed is True
    assert mailbox.take() is sample
    assert mailbox.has_unconsumed is False
    assert mailbox.take() is None


def test_latest_sample_wins():
    """Test that a newer put overwrites an unconsumed sample."""
    mailbox = Mailbox()
    first = Sample(is_reward=True)
    second = Sample(is_reward=False)

    mailbox.put(first)
    mailbox.put(second)

    assert mailbox.take() is second
    assert mailbox.take() is None
    assert mailbox.writes == 2
    assert mailbox.overwritten == 1


def test_put_after_take_is_not_counted_as_overwrite():
    """Test overwrite accounting only counts unconsumed replacements."""
    mailbox = Mailbox()
    mailbox.put(Sample(is_reward=True))
    mailbox.take()
    mailbox.put(Sample(is_reward=True))

    assert mailbox.overwritten == 0


def test_clear_discards_sample():
    """Test that clear drops an unconsumed sample."""
    mailbox = Mailbox()
    mailbox.put(Sample(is_reward=True))
    mailbox.clear()
    assert mailbox.take() is None


def test_concurrent_put_and_take_never_duplicates():
    """Test that every taken sample was put exactly once."""
    mailbox = Mailbox()
    produced = [Sample(is_reward=i % 2 == 0) for i in range(2000)]
    taken = []
    done = threading.Event()

    def producer():
        for sample in produced:
            mailbox.put(sample)
        done.set()

    thread = threading.Thread(target=producer)
    thread.start()
    while not done.is_set():
        sample = mailbox.take()
        if sample is not None:
            taken.append(sample)
    thread.join()
    last = mailbox.take()
    if last is not None:
        taken.append(last)

    ids = [id(sample) for sample in taken]
    assert len(ids) == len(set(ids))
    assert all(any(sample is p for p in produced) for sample in taken[:50])
    assert len(taken) + mailbox.overwritten == len(produced)
