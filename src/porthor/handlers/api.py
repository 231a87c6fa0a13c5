"""Route handlers for the ``/api/v1`` API.

All the route handlers are intentionally defined in a single file to encourage
the implementation to be very short.  The user, group, and account routes
protected by Porthor follow the pattern of `get_whoami`: depend on
`~porthor.dependencies.auth.authenticate` and use the resulting identity.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from safir.models import ErrorModel

from ..dependencies.auth import authenticate
from ..dependencies.context import RequestContext, context_dependency
from ..models.nonce import NonceResponse
from ..models.token import AuthenticatedIdentity

__all__ = ["router"]

router = APIRouter(prefix="/api/v1")


@router.post(
    "/nonce",
    description=(
        "Issue a single-use nonce. Put it in the ``nonce`` claim of the next"
        " token to protect that token against replay. Each nonce may be used"
        " in only one successfully-verified request and expires if unused."
    ),
    response_model=NonceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Issue nonce",
    tags=["auth"],
)
async def post_nonce(
    context: Annotated[RequestContext, Depends(context_dependency)],
) -> NonceResponse:
    nonce_service = context.factory.create_nonce_service()
    response = nonce_service.issue()
    context.logger.info("Issued nonce")
    return response


@router.get(
    "/whoami",
    description="Return the identity established by the bearer token",
    response_model=AuthenticatedIdentity,
    responses={
        400: {"description": "Malformed request", "model": ErrorModel},
        401: {"description": "Unauthenticated", "model": ErrorModel},
    },
    summary="Authenticated identity",
    tags=["auth"],
)
async def get_whoami(
    identity: Annotated[AuthenticatedIdentity, Depends(authenticate)],
    context: Annotated[RequestContext, Depends(context_dependency)],
) -> AuthenticatedIdentity:
    context.logger.info("Returned identity")
    return identity
