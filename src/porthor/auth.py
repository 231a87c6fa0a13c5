"""Utility functions for manipulating authentication headers."""

from __future__ import annotations

from fastapi import HTTPException, status

from .dependencies.context import RequestContext
from .exceptions import InvalidRequestError, OAuthBearerError
from .models.auth import BearerChallenge

__all__ = [
    "BEARER_PREFIX",
    "generate_challenge",
    "generate_unauthorized_challenge",
    "parse_authorization",
]

BEARER_PREFIX = "Bearer "
"""Required prefix of the ``Authorization`` header, matched exactly."""


def generate_challenge(
    context: RequestContext, exc: OAuthBearerError
) -> HTTPException:
    """Convert an exception into an HTTP error with ``WWW-Authenticate``.

    The full reason for the failure is logged. The client only sees the
    reason if the exception does not set ``hide_error``.

    Parameters
    ----------
    context
        Context of the incoming request.
    exc
        An exception representing a bearer token error.

    Returns
    -------
    ``fastapi.HTTPException``
        A prepopulated ``fastapi.HTTPException`` object ready for raising. The
        headers will contain a ``WWW-Authenticate`` challenge.
    """
    context.logger.info(exc.message, error=str(exc))
    description = exc.client_message
    challenge = BearerChallenge(
        realm=context.config.realm,
        error=exc.error,
        error_description=description,
    )
    headers = {
        "Cache-Control": "no-cache, no-store",
        "WWW-Authenticate": challenge.to_header(),
    }
    return HTTPException(
        headers=headers,
        status_code=exc.status_code,
        detail=[{"msg": description, "type": exc.error}],
    )


def generate_unauthorized_challenge(context: RequestContext) -> HTTPException:
    """Construct exception for a 401 response when no token was provided.

    This is a special case of :py:func:`generate_challenge` where there is no
    error and thus no ``error_description`` field, since the token was simply
    not present.

    Parameters
    ----------
    context
        The incoming request.

    Returns
    -------
    ``fastapi.HTTPException``
        The exception to raise.
    """
    context.logger.info("No token in request")
    challenge = BearerChallenge(realm=context.config.realm)
    headers = {
        "Cache-Control": "no-cache, no-store",
        "WWW-Authenticate": challenge.to_header(),
    }
    return HTTPException(
        headers=headers,
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=[{"msg": "Authentication required", "type": "no_authorization"}],
    )


def parse_authorization(context: RequestContext) -> str | None:
    """Find a bearer token in the ``Authorization`` header.

    Only the ``Bearer`` authentication scheme is supported. The header must
    be exactly ``Bearer``, one space, and the token, with the scheme name
    matched case-sensitively.

    Parameters
    ----------
    context
        The context of the incoming request.

    Returns
    -------
    str or None
        Token if one was found, or `None` if there was no ``Authorization``
        header.

    Raises
    ------
    InvalidRequestError
        Raised if the ``Authorization`` header is present but does not
        contain a bearer token.
    """
    header = context.request.headers.get("Authorization")
    if header is None:
        return None
    if not header.startswith(BEARER_PREFIX):
        raise InvalidRequestError("Authorization header must be Bearer")
    token = header.removeprefix(BEARER_PREFIX)
    if not token:
        raise InvalidRequestError("No token in Authorization header")
    if any(c.isspace() for c in token):
        msg = "Unexpected whitespace in Authorization header"
        raise InvalidRequestError(msg)
    context.rebind_logger(token_source="bearer")
    return token
