"""Storage of the shared secrets used to verify tokens."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import SecretStr, TypeAdapter, ValidationError
from structlog.stdlib import BoundLogger

from ..exceptions import SecretStoreError

__all__ = ["SecretResolver"]

_SECRETS_ADAPTER = TypeAdapter(dict[str, SecretStr])
"""Validator for the contents of a secrets file."""


class SecretResolver:
    """Map issuer names to their shared HMAC secrets.

    Secrets come from the Porthor configuration and, optionally, a separate
    YAML file that maps issuer names to secrets. That file is reread whenever
    its modification time changes, so an administrator can provision new
    issuers without restarting the service.

    Parameters
    ----------
    issuers
        Secrets from the main configuration, keyed by issuer.
    logger
        Logger to use.
    path
        Optional path to a YAML file of additional issuer secrets.

    Notes
    -----
    The merged mapping is only ever replaced as a whole by assigning a new
    dictionary, so concurrent callers of `resolve` see either the old or the
    new set of bindings, never a mixture. Reloads are serialized by a lock.
    """

    def __init__(
        self,
        issuers: Mapping[str, SecretStr],
        logger: BoundLogger,
        *,
        path: Path | None = None,
    ) -> None:
        self._issuers = dict(issuers)
        self._logger = logger
        self._path = path
        self._lock = threading.Lock()
        self._mtime: int | None = None
        self._secrets: dict[str, bytes] = self._merge({})
        if self._path:
            self._reload_if_changed()

    def resolve(self, issuer: str) -> bytes | None:
        """Return the shared secret for an issuer.

        Parameters
        ----------
        issuer
            Value of the ``iss`` claim of a token.

        Returns
        -------
        bytes or None
            The shared secret, or `None` if the issuer is not known.

        Raises
        ------
        SecretStoreError
            Raised if the secrets file changed and could not be reread.
        """
        if self._path:
            self._reload_if_changed()
        return self._secrets.get(issuer)

    def _merge(self, file_secrets: Mapping[str, bytes]) -> dict[str, bytes]:
        secrets = {
            k: v.get_secret_value().encode() for k, v in self._issuers.items()
        }
        for issuer, secret in file_secrets.items():
            if issuer in secrets:
                msg = f"Issuer {issuer} defined more than once"
                raise SecretStoreError(msg)
            secrets[issuer] = secret
        return secrets

    def _read_file(self, path: Path) -> dict[str, bytes]:
        try:
            with path.open("r") as f:
                raw = yaml.safe_load(f)
            parsed = _SECRETS_ADAPTER.validate_python(raw or {})
        except (OSError, yaml.YAMLError, ValidationError) as e:
            msg = f"Cannot read issuer secrets from {path}"
            raise SecretStoreError(msg) from e
        return {k: v.get_secret_value().encode() for k, v in parsed.items()}

    def _reload_if_changed(self) -> None:
        if not self._path:
            return
        try:
            mtime = self._path.stat().st_mtime_ns
        except OSError as e:
            msg = f"Cannot read issuer secrets from {self._path}"
            raise SecretStoreError(msg) from e
        if mtime == self._mtime:
            return
        with self._lock:
            if mtime == self._mtime:
                return
            self._secrets = self._merge(self._read_file(self._path))
            self._mtime = mtime
        self._logger.info(
            "Loaded issuer secrets",
            path=str(self._path),
            count=len(self._secrets),
        )
