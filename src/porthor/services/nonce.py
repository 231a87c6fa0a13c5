"""Issuance and consumption of single-use nonces."""

from __future__ import annotations

import asyncio
import secrets
from datetime import timedelta

from structlog.stdlib import BoundLogger

from ..cache import NonceCache
from ..constants import NONCE_BYTES
from ..models.nonce import NonceResponse

__all__ = ["NonceService"]


class NonceService:
    """Issue nonces to clients and consume them during token verification.

    Clients request a nonce, embed it in the ``nonce`` claim of the token
    they sign, and the nonce is consumed when that token is verified. Each
    nonce can be consumed only once, which prevents replay of tokens that
    contain one.

    Parameters
    ----------
    cache
        Process-global nonce storage.
    logger
        Logger to use.
    """

    def __init__(self, cache: NonceCache, logger: BoundLogger) -> None:
        self._cache = cache
        self._logger = logger

    def consume(self, nonce: str) -> bool:
        """Consume a nonce presented in a token.

        Parameters
        ----------
        nonce
            The nonce from the token.

        Returns
        -------
        bool
            `True` if the nonce was valid and is now consumed, `False` if it
            was unknown, expired, or already consumed.
        """
        consumed = self._cache.consume(nonce)
        if not consumed:
            self._logger.debug("Nonce rejected")
        return consumed

    def issue(self) -> NonceResponse:
        """Issue a new nonce.

        Returns
        -------
        NonceResponse
            The nonce and the time after which it can no longer be used.
        """
        nonce = secrets.token_urlsafe(NONCE_BYTES)
        record = self._cache.add(nonce)
        expires = record.issued_at + self._cache.lifetime
        self._logger.debug("Issued nonce", expires=expires.isoformat())
        return NonceResponse(nonce=nonce, expires=expires)

    async def periodic_purge(self, interval: timedelta) -> None:
        """Purge stale nonce records forever at a fixed interval.

        Intended to be run as a background task for the life of the process
        and stopped by cancelling it. A failed purge is logged and retried at
        the next interval.

        Parameters
        ----------
        interval
            How long to wait between purges.
        """
        while True:
            await asyncio.sleep(interval.total_seconds())
            try:
                self.purge()
            except Exception:
                self._logger.exception("Failed to purge stale nonces")

    def purge(self) -> int:
        """Remove stale nonce records.

        Returns
        -------
        int
            Number of records removed.
        """
        count = self._cache.purge()
        if count:
            self._logger.debug("Purged stale nonces", count=count)
        return count
