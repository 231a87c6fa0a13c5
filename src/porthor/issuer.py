"""Construct bearer tokens the way Porthor clients are expected to."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

import jwt
from pydantic import SecretStr
from safir.datetime import current_datetime

from .constants import ALGORITHM, TOKEN_TYPE

__all__ = ["TokenIssuer"]


class TokenIssuer:
    """Issue HS256 tokens for an issuer holding a shared secret.

    Porthor itself never issues tokens; clients do. This class encodes the
    construction clients should use, and backs the ``generate-token`` command
    and the test suite.

    Parameters
    ----------
    issuer
        Issuer name, placed in the ``iss`` claim.
    secret
        Shared secret provisioned for that issuer.
    """

    def __init__(self, issuer: str, secret: SecretStr) -> None:
        self._issuer = issuer
        self._secret = secret

    def issue_token(
        self,
        *,
        lifetime: timedelta | None = None,
        nonce: str | None = None,
        **claims: Any,
    ) -> str:
        """Issue a signed token.

        Parameters
        ----------
        lifetime
            If given, set ``exp`` this far in the future. Otherwise, the token
            does not expire.
        nonce
            If given, a nonce obtained from the server to put in the
            ``nonce`` claim.
        **claims
            Additional claims to add to the token.

        Returns
        -------
        str
            The encoded token.
        """
        now = current_datetime()
        payload: dict[str, Any] = {
            "iat": int(now.timestamp()),
            "iss": self._issuer,
            **claims,
        }
        if lifetime is not None:
            payload["exp"] = int((now + lifetime).timestamp())
        if nonce is not None:
            payload["nonce"] = nonce
        return jwt.encode(
            payload,
            self._secret.get_secret_value(),
            algorithm=ALGORITHM,
            headers={"typ": TOKEN_TYPE},
        )
