"""Tests for the shared nonce storage."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

from porthor.cache import NonceCache

from .support.clock import MockClock

LIFETIME = timedelta(minutes=5)
RETENTION = timedelta(hours=1)


def test_consume_once() -> None:
    clock = MockClock()
    cache = NonceCache(LIFETIME, RETENTION, clock=clock)
    record = cache.add("some-nonce")
    assert record.issued_at == clock.now
    assert not record.consumed

    assert cache.consume("some-nonce")
    assert not cache.consume("some-nonce")
    stored = cache.get("some-nonce")
    assert stored
    assert stored.consumed_at == clock.now


def test_consume_unknown() -> None:
    cache = NonceCache(LIFETIME, RETENTION, clock=MockClock())
    assert not cache.consume("unknown")
    assert cache.get("unknown") is None


def test_lifetime() -> None:
    clock = MockClock()
    cache = NonceCache(LIFETIME, RETENTION, clock=clock)
    cache.add("early")
    cache.add("late")

    clock.advance(LIFETIME - timedelta(microseconds=1))
    assert cache.consume("early")

    # A nonce is expired at exactly the end of its lifetime.
    clock.advance(timedelta(microseconds=1))
    assert not cache.consume("late")
    stored = cache.get("late")
    assert stored
    assert not stored.consumed


def test_purge() -> None:
    clock = MockClock()
    cache = NonceCache(LIFETIME, RETENTION, clock=clock)
    cache.add("used")
    cache.add("unused")
    assert cache.consume("used")
    assert cache.purge() == 0

    clock.advance(LIFETIME)
    assert cache.purge() == 1
    assert cache.get("unused") is None
    assert cache.get("used")

    # Consumed nonces are remembered until the retention period passes so
    # that replays are reported correctly.
    assert not cache.consume("used")
    clock.advance(RETENTION)
    assert cache.purge() == 1
    assert cache.get("used") is None
    assert not cache.consume("used")


def test_get_returns_copy() -> None:
    cache = NonceCache(LIFETIME, RETENTION, clock=MockClock())
    cache.add("some-nonce")
    record = cache.get("some-nonce")
    assert record
    record.consumed_at = record.issued_at
    assert cache.consume("some-nonce")


def test_clear() -> None:
    cache = NonceCache(LIFETIME, RETENTION, clock=MockClock())
    cache.add("some-nonce")
    cache.clear()
    assert cache.get("some-nonce") is None
    assert not cache.consume("some-nonce")


def test_maxsize() -> None:
    cache = NonceCache(LIFETIME, RETENTION, maxsize=2, clock=MockClock())
    cache.add("first")
    cache.add("second")
    cache.add("third")
    assert not cache.consume("first")
    assert cache.consume("second")
    assert cache.consume("third")


def test_concurrent_consume() -> None:
    cache = NonceCache(LIFETIME, RETENTION)
    cache.add("contested")
    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(cache.consume, ["contested"] * 200))
    assert results.count(True) == 1
