"""Shared nonce storage.

The nonce cache is process-global, managed by
`~porthor.factory.ProcessContext`.  It is some storage wrapped in a lock and
sits below the service layer; it is only intended for use via
`~porthor.services.nonce.NonceService` and the background purge task.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from functools import partial

from cachetools import TTLCache
from safir.datetime import current_datetime

from .constants import NONCE_CACHE_SIZE
from .models.nonce import NonceRecord

__all__ = ["NonceCache"]


class NonceCache:
    """Storage for issued nonces and their consumption state.

    Parameters
    ----------
    lifetime
        How long an issued nonce may remain unconsumed before it can no longer
        be used.
    retention
        How long after issue a nonce record is kept at all. Must be at least
        as long as ``lifetime``.
    maxsize
        Maximum number of records to hold.
    clock
        Source of the current time, overridable for testing.

    Notes
    -----
    All access is serialized by a `threading.Lock` rather than an
    `asyncio.Lock`. None of the operations await while holding the lock, and
    FastAPI may run synchronous dependencies in a thread pool, so a thread
    lock covers both cases. `consume` is a single check-and-set under that
    lock, which guarantees that of any number of concurrent attempts to use
    the same nonce, exactly one succeeds.

    Records are stored in a `cachetools.TTLCache` whose time-to-live is the
    retention period, so records past retention are dropped lazily on access
    as well as by `purge`. The cache is also bounded in size. A record that
    disappears for either reason can no longer be consumed, so losing a
    record early only ever causes a token to be rejected.
    """

    def __init__(
        self,
        lifetime: timedelta,
        retention: timedelta,
        *,
        maxsize: int = NONCE_CACHE_SIZE,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._lifetime = lifetime
        self._retention = retention
        self._maxsize = maxsize
        self._clock = clock or partial(current_datetime, microseconds=True)
        self._lock = threading.Lock()
        self._cache = self._create_cache()

    @property
    def lifetime(self) -> timedelta:
        """How long an unconsumed nonce remains usable."""
        return self._lifetime

    def add(self, nonce: str) -> NonceRecord:
        """Store a newly-issued, unconsumed nonce.

        Parameters
        ----------
        nonce
            The nonce string.

        Returns
        -------
        NonceRecord
            The stored record.
        """
        record = NonceRecord(nonce=nonce, issued_at=self._clock())
        with self._lock:
            self._cache[nonce] = record
        return record

    def clear(self) -> None:
        """Invalidate the cache.

        Used primarily for testing.
        """
        with self._lock:
            self._cache = self._create_cache()

    def consume(self, nonce: str) -> bool:
        """Mark a nonce as used if it is known, unused, and unexpired.

        Parameters
        ----------
        nonce
            The nonce string from a token.

        Returns
        -------
        bool
            `True` if this call consumed the nonce, `False` if the nonce was
            unknown, expired, or already consumed.
        """
        with self._lock, self._cache.timer as timestamp:
            now = datetime.fromtimestamp(timestamp, tz=UTC)
            record = self._cache.get(nonce)
            if record is None or record.consumed:
                return False
            if now >= record.issued_at + self._lifetime:
                return False
            record.consumed_at = now
            return True

    def get(self, nonce: str) -> NonceRecord | None:
        """Retrieve the record for a nonce, if it is still stored.

        Parameters
        ----------
        nonce
            The nonce string.

        Returns
        -------
        NonceRecord or None
            A copy of the stored record, or `None` if it is not stored.
        """
        with self._lock:
            record = self._cache.get(nonce)
            if record is None:
                return None
            return NonceRecord(
                nonce=record.nonce,
                issued_at=record.issued_at,
                consumed_at=record.consumed_at,
            )

    def purge(self) -> int:
        """Remove stale records.

        Unconsumed records older than the nonce lifetime can never be used
        and are removed. Any record older than the retention period is also
        removed.

        Returns
        -------
        int
            Number of records removed.
        """
        with self._lock, self._cache.timer as timestamp:
            expired = self._cache.expire(timestamp)
            now = datetime.fromtimestamp(timestamp, tz=UTC)
            cutoff = now - self._lifetime
            stale = [
                n
                for n, r in self._cache.items()
                if not r.consumed and r.issued_at <= cutoff
            ]
            for nonce in stale:
                del self._cache[nonce]
            return len(expired) + len(stale)

    def _create_cache(self) -> TTLCache[str, NonceRecord]:
        ttl = self._retention.total_seconds()
        return TTLCache(self._maxsize, ttl, timer=self._timestamp)

    def _timestamp(self) -> float:
        return self._clock().timestamp()
