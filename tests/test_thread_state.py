"""Tests for the in-memory thread store."""

import threading

import pytest

from models import StateConflict
from thread_state import ThreadStateStore


def test_first_claim_wins():
    store = ThreadStateStore()

    assert store.try_claim("1.1") is True
    assert store.try_claim("1.1") is False
    assert store.try_claim("2.2") is True
    assert len(store) == 2


def test_claim_is_atomic_across_threads():
    store = ThreadStateStore()
    barrier = threading.Barrier(16)
    wins = []

    def claim():
        barrier.wait()
        wins.append(store.try_claim("1.1"))

    threads = [threading.Thread(target=claim) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert wins.count(True) == 1


def test_record_and_lookup():
    store = ThreadStateStore()
    store.try_claim("1.1")

    assert store.lookup_ticket("1.1") is None
    store.record_ticket("1.1", 42)

    assert store.lookup_ticket("1.1") == 42
    assert store.lookup_ticket("9.9") is None
    record = store.get("1.1")
    assert record.claimed and record.ticket_id == 42


def test_ticket_id_is_never_overwritten():
    store = ThreadStateStore()
    store.try_claim("1.1")
    store.record_ticket("1.1", 42)

    store.record_ticket("1.1", 43)

    assert store.lookup_ticket("1.1") == 42


def test_record_on_unclaimed_thread_is_ignored():
    store = ThreadStateStore()

    store.record_ticket("1.1", 42)

    assert store.lookup_ticket("1.1") is None
    assert store.get("1.1") is None


@pytest.mark.parametrize("claim", [False, True])
def test_strict_mode_raises(claim):
    store = ThreadStateStore(strict=True)
    if claim:
        store.try_claim("1.1")
        store.record_ticket("1.1", 1)

    with pytest.raises(StateConflict):
        store.record_ticket("1.1", 2)


def test_release_claim_only_without_ticket():
    store = ThreadStateStore()
    store.try_claim("1.1")

    assert store.release_claim("1.1") is True
    assert store.try_claim("1.1") is True

    store.record_ticket("1.1", 7)
    assert store.release_claim("1.1") is False
    assert store.try_claim("1.1") is False
    assert store.release_claim("unknown") is False


def test_get_returns_a_copy():
    store = ThreadStateStore()
    store.try_claim("1.1")

    store.get("1.1").claimed = False

    assert store.try_claim("1.1") is False
