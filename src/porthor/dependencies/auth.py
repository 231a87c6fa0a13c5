"""Authentication dependencies for FastAPI."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from ..auth import (
    generate_challenge,
    generate_unauthorized_challenge,
    parse_authorization,
)
from ..exceptions import InvalidRequestError, InvalidTokenError
from ..models.token import AuthenticatedIdentity
from .context import RequestContext, context_dependency

__all__ = ["Authenticate", "authenticate"]


class Authenticate:
    """Dependency to verify bearer token authentication.

    Every protected route should depend on an instance of this class, either
    as a parameter (to get the identity) or in the route ``dependencies``.
    On success, the identity is returned, stored in ``request.state`` as
    ``identity``, and added to the request logger. On failure, the request is
    rejected with a 400 or 401 error and a ``WWW-Authenticate`` challenge,
    and the route handler is not run.

    Internal failures, such as being unable to read issuer secrets, are not
    caught here and are instead turned into 500 errors by the application.
    """

    async def __call__(
        self,
        *,
        context: Annotated[RequestContext, Depends(context_dependency)],
    ) -> AuthenticatedIdentity:
        return self.authenticate(context)

    def authenticate(self, context: RequestContext) -> AuthenticatedIdentity:
        """Authenticate the request.

        Parameters
        ----------
        context
            The request context.

        Returns
        -------
        AuthenticatedIdentity
            The identity established by the bearer token.

        Raises
        ------
        fastapi.HTTPException
            Raised if authentication is not provided or is not valid.
        """
        try:
            encoded = parse_authorization(context)
        except InvalidRequestError as e:
            raise generate_challenge(context, e) from None
        if not encoded:
            raise generate_unauthorized_challenge(context)

        verifier = context.factory.create_token_verifier()
        try:
            identity = verifier.verify(encoded)
        except InvalidTokenError as e:
            raise generate_challenge(context, e) from None

        context.rebind_logger(issuer=identity.issuer)
        context.request.state.identity = identity
        return identity


authenticate = Authenticate()
"""Shared instance of the authentication dependency."""
