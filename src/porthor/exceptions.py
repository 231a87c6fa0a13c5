"""Exceptions for Porthor."""

from __future__ import annotations

from typing import ClassVar

from fastapi import status

__all__ = [
    "InvalidRequestError",
    "InvalidSignatureError",
    "InvalidTokenError",
    "MalformedTokenError",
    "MissingIssuerError",
    "NonceReplayError",
    "OAuthBearerError",
    "SecretStoreError",
    "TokenExpiredError",
    "UnknownIssuerError",
    "UnsupportedAlgorithmError",
    "VerifyTokenError",
]


class OAuthBearerError(Exception):
    """An error that can be returned as a ``WWW-Authenticate`` challenge.

    Represents the subset of OAuth 2.0 errors defined in RFC 6750 as valid
    errors to return in a ``WWW-Authenticate`` header.  The string form of
    this exception is suitable for use as the ``error_description`` attribute
    of a ``WWW-Authenticate`` header unless ``hide_error`` is set.
    """

    error: ClassVar[str] = "invalid_request"
    """The RFC 6750 error code for this exception."""

    message: ClassVar[str] = "Unknown error"
    """The summary message to use when logging this error."""

    hide_error: ClassVar[bool] = False
    """Whether to hide the details of the error from the client."""

    status_code: ClassVar[int] = status.HTTP_400_BAD_REQUEST
    """The status code to use for this HTTP error."""

    @property
    def client_message(self) -> str:
        """Error description safe to return to the client."""
        return self.message if self.hide_error else str(self)


class InvalidRequestError(OAuthBearerError):
    """The provided Authorization header could not be parsed.

    This corresponds to the ``invalid_request`` error in RFC 6749 and 6750:
    "The request is missing a required parameter, includes an unsupported
    parameter or parameter value, repeats the same parameter, uses more than
    one method for including an access token, or is otherwise malformed."
    """

    error = "invalid_request"
    message = "Invalid request"


class InvalidTokenError(OAuthBearerError):
    """The provided token was invalid.

    This corresponds to the ``invalid_token`` error in RFC 6750: "The access
    token provided is expired, revoked, malformed, or invalid for other
    reasons."
    """

    error = "invalid_token"
    message = "Invalid token"
    status_code = status.HTTP_401_UNAUTHORIZED


class VerifyTokenError(InvalidTokenError):
    """Base exception class for failure in verifying a token."""


class MalformedTokenError(VerifyTokenError):
    """The token could not be decoded or its claims have the wrong type."""


class UnsupportedAlgorithmError(VerifyTokenError):
    """The token header requested an algorithm other than HS256."""


class MissingIssuerError(VerifyTokenError):
    """The token has no usable ``iss`` claim."""


class UnknownIssuerError(VerifyTokenError):
    """No secret is configured for the issuer of the token.

    Reported to the client with the same message as a bad signature so that
    the set of configured issuers cannot be enumerated.
    """

    message = "Token verification failed"
    hide_error = True


class InvalidSignatureError(VerifyTokenError):
    """The token signature does not match the secret for its issuer."""

    message = "Token verification failed"
    hide_error = True


class TokenExpiredError(VerifyTokenError):
    """The ``exp`` claim of the token is in the past."""


class NonceReplayError(VerifyTokenError):
    """The nonce in the token is unknown, expired, or already used."""


class SecretStoreError(Exception):
    """The store of issuer secrets could not be read.

    This is an internal fault rather than a credential problem and is
    reported as a server error.
    """
