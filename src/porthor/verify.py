"""Verify a bearer token."""

from __future__ import annotations

import jwt
from pydantic import ValidationError
from safir.datetime import current_datetime
from structlog.stdlib import BoundLogger

from .constants import ALGORITHM, TOKEN_TYPE
from .exceptions import (
    InvalidSignatureError,
    MalformedTokenError,
    MissingIssuerError,
    NonceReplayError,
    TokenExpiredError,
    UnknownIssuerError,
    UnsupportedAlgorithmError,
)
from .models.token import AuthenticatedIdentity, TokenClaims, TokenHeader
from .services.nonce import NonceService
from .storage.secrets import SecretResolver

__all__ = ["TokenVerifier"]

_DECODE_OPTIONS = {
    "verify_signature": True,
    "verify_aud": False,
    "verify_exp": False,
    "verify_iat": False,
    "verify_iss": False,
    "verify_jti": False,
    "verify_nbf": False,
    "verify_sub": False,
    "require": [],
}
"""PyJWT options when checking the signature.

Claims are checked separately after the signature has been verified so that
each failure can be reported precisely and in a fixed order.
"""


class TokenVerifier:
    """Verifies the validity of an HS256 JWT.

    Checks are done in a fixed order: structure, then algorithm, then issuer,
    then signature, and only then expiration and nonce. The algorithm is
    checked before any cryptographic work, and nothing about the claims of a
    token is revealed until its signature has been verified.

    Parameters
    ----------
    secret_resolver
        Source of the shared secret for each issuer.
    nonce_service
        Service used to consume the nonce in a token, if any.
    logger
        Logger to use to report status information.
    """

    def __init__(
        self,
        secret_resolver: SecretResolver,
        nonce_service: NonceService,
        logger: BoundLogger,
    ) -> None:
        self._secret_resolver = secret_resolver
        self._nonce_service = nonce_service
        self._logger = logger

    def verify(self, encoded: str) -> AuthenticatedIdentity:
        """Verify a token and return the identity it establishes.

        A nonce in the token is consumed as a side effect, so a given token
        containing a nonce can be successfully verified only once.

        Parameters
        ----------
        encoded
            The compact serialization of the token.

        Returns
        -------
        AuthenticatedIdentity
            The verified identity.

        Raises
        ------
        porthor.exceptions.MalformedTokenError
            Raised if the token could not be decoded or has claims of the
            wrong type.
        porthor.exceptions.UnsupportedAlgorithmError
            Raised if the token is not signed with HS256.
        porthor.exceptions.MissingIssuerError
            Raised if the token has no ``iss`` claim.
        porthor.exceptions.UnknownIssuerError
            Raised if no secret is known for the issuer.
        porthor.exceptions.InvalidSignatureError
            Raised if the signature does not match.
        porthor.exceptions.TokenExpiredError
            Raised if the token has expired.
        porthor.exceptions.NonceReplayError
            Raised if the nonce is unknown, expired, or already used.
        porthor.exceptions.SecretStoreError
            Raised if the issuer secrets could not be loaded.
        """
        if encoded.count(".") != 2:
            raise MalformedTokenError("Token must have three segments")
        header = self._decode_header(encoded)
        issuer = self._get_unverified_issuer(encoded)

        secret = self._secret_resolver.resolve(issuer)
        if secret is None:
            raise UnknownIssuerError(f"Unknown issuer {issuer}")
        try:
            payload = jwt.decode(
                encoded, secret, algorithms=[ALGORITHM], options=_DECODE_OPTIONS
            )
        except jwt.InvalidSignatureError as e:
            msg = f"Invalid signature for issuer {issuer}"
            raise InvalidSignatureError(msg) from e
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError(f"Cannot decode token: {e!s}") from e

        try:
            claims = TokenClaims.model_validate(payload)
        except ValidationError as e:
            msg = f"Invalid claims in token: {e.errors()[0]['msg']}"
            raise MalformedTokenError(msg) from e

        if claims.exp is not None:
            if current_datetime(microseconds=True) >= claims.exp:
                raise TokenExpiredError(f"Token expired at {claims.exp}")
        if claims.nonce is not None:
            if not self._nonce_service.consume(claims.nonce):
                msg = "Nonce is unknown, expired, or already used"
                raise NonceReplayError(msg)

        self._logger.debug(
            "Verified token", issuer=claims.iss, typ=header.typ
        )
        return AuthenticatedIdentity(
            issuer=claims.iss, expires=claims.exp, nonce=claims.nonce
        )

    def _decode_header(self, encoded: str) -> TokenHeader:
        """Decode and check the header of a token.

        Raises
        ------
        porthor.exceptions.MalformedTokenError
            Raised if the header cannot be decoded or has an invalid type.
        porthor.exceptions.UnsupportedAlgorithmError
            Raised if the header specifies an algorithm other than HS256.
        """
        try:
            raw_header = jwt.get_unverified_header(encoded)
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError(f"Cannot decode header: {e!s}") from e
        algorithm = raw_header.get("alg")
        if algorithm != ALGORITHM:
            msg = f"Unsupported algorithm {algorithm}"
            raise UnsupportedAlgorithmError(msg)
        try:
            header = TokenHeader.model_validate(raw_header)
        except ValidationError as e:
            raise MalformedTokenError("Missing or invalid typ in header") from e
        if header.typ.upper() != TOKEN_TYPE:
            raise MalformedTokenError(f"Unsupported token type {header.typ}")
        return header

    def _get_unverified_issuer(self, encoded: str) -> str:
        """Extract the issuer from a token without verifying it.

        Raises
        ------
        porthor.exceptions.MalformedTokenError
            Raised if the payload cannot be decoded.
        porthor.exceptions.MissingIssuerError
            Raised if there is no ``iss`` claim or it is not a string.
        """
        try:
            unverified = jwt.decode(
                encoded,
                algorithms=[ALGORITHM],
                options={"verify_signature": False},
            )
        except jwt.InvalidTokenError as e:
            raise MalformedTokenError(f"Cannot decode token: {e!s}") from e
        issuer = unverified.get("iss")
        if not isinstance(issuer, str) or not issuer:
            raise MissingIssuerError("No iss claim in token")
        return issuer
