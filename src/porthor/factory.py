"""Create Porthor components."""

from __future__ import annotations

import asyncio
import contextlib
from dataclasses import dataclass
from typing import Self

import structlog
from structlog.stdlib import BoundLogger

from .cache import NonceCache
from .config import Config
from .services.nonce import NonceService
from .storage.secrets import SecretResolver
from .verify import TokenVerifier

__all__ = ["Factory", "ProcessContext"]


@dataclass(frozen=True, slots=True)
class ProcessContext:
    """Per-process application context.

    This object caches all of the per-process singletons that can be reused
    for every request and only need to be recreated if the application
    configuration changes.  It also owns the background task that purges
    stale nonces.
    """

    config: Config
    """Porthor's configuration."""

    secret_resolver: SecretResolver
    """Shared source of issuer secrets."""

    nonce_cache: NonceCache
    """Shared nonce storage."""

    purge_task: asyncio.Task[None]
    """Background task that periodically purges stale nonces."""

    @classmethod
    async def from_config(cls, config: Config) -> Self:
        """Create a new process context from the Porthor configuration.

        Must be called from within a running event loop, since it starts the
        background purge task.

        Parameters
        ----------
        config
            The Porthor configuration.

        Returns
        -------
        ProcessContext
            Shared context for a Porthor process.

        Raises
        ------
        porthor.exceptions.SecretStoreError
            Raised if the issuer secrets file could not be read.
        """
        logger = structlog.get_logger("porthor")
        secret_resolver = SecretResolver(
            config.issuers, logger, path=config.secrets_path
        )
        nonce_cache = NonceCache(config.nonce_lifetime, config.nonce_retention)
        nonce_service = NonceService(nonce_cache, logger)
        purge_task = asyncio.create_task(
            nonce_service.periodic_purge(config.nonce_purge_interval)
        )
        return cls(
            config=config,
            secret_resolver=secret_resolver,
            nonce_cache=nonce_cache,
            purge_task=purge_task,
        )

    async def aclose(self) -> None:
        """Stop the background purge task.

        The process context should not be used after this method is called.
        """
        self.purge_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self.purge_task


class Factory:
    """Build Porthor components.

    Uses the contents of a `ProcessContext` to construct the components of
    the application on demand.

    Parameters
    ----------
    context
        Shared process context.
    logger
        Logger to use for errors.
    """

    def __init__(self, context: ProcessContext, logger: BoundLogger) -> None:
        self._context = context
        self._logger = logger

    def create_nonce_service(self) -> NonceService:
        """Create a service for issuing and consuming nonces.

        Returns
        -------
        NonceService
            Newly-created nonce service.
        """
        return NonceService(self._context.nonce_cache, self._logger)

    def create_token_verifier(self) -> TokenVerifier:
        """Create a verifier for bearer tokens.

        Returns
        -------
        TokenVerifier
            Newly-created token verifier.
        """
        return TokenVerifier(
            self._context.secret_resolver,
            self.create_nonce_service(),
            self._logger,
        )

    def set_logger(self, logger: BoundLogger) -> None:
        """Replace the internal logger.

        Used by the context dependency to update the logger for all
        newly-created components when it's rebound with additional context.

        Parameters
        ----------
        logger
            New logger.
        """
        self._logger = logger
