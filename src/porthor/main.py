"""Application definition for Porthor."""

from __future__ import annotations

import json
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version

import structlog
from fastapi import FastAPI, Request, status
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from safir.logging import configure_uvicorn_logging
from safir.middleware.x_forwarded import XForwardedMiddleware

from .dependencies.config import config_dependency
from .dependencies.context import context_dependency
from .exceptions import SecretStoreError
from .handlers import api, internal

__all__ = ["create_app", "create_openapi"]


async def secret_store_error_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Turn a failure to load issuer secrets into a 500 error.

    This is an internal fault, not a problem with the client's credentials,
    so it is logged with a traceback and reported without details.
    """
    logger = structlog.get_logger("porthor")
    logger.error(
        "Cannot load issuer secrets",
        error=str(exc),
        path=request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": [
                {
                    "msg": "Internal authentication error",
                    "type": "internal_error",
                }
            ]
        },
    )


def create_app(*, load_config: bool = True) -> FastAPI:
    """Create the FastAPI application.

    This is in a function rather than using a global variable (as is more
    typical for FastAPI) because some middleware depends on configuration
    settings and we therefore want to recreate the application between tests.

    Parameters
    ----------
    load_config
        If set to `False`, do not try to load the configuration. This is used
        primarily for OpenAPI schema generation, where constructing the app is
        required but the configuration won't matter.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        config = config_dependency.config()
        await context_dependency.initialize(config)

        yield

        await context_dependency.aclose()

    app = FastAPI(
        title="Porthor",
        description=(
            "Porthor guards an API with HS256 bearer tokens signed by"
            " per-issuer shared secrets, with single-use nonces for replay"
            " protection."
        ),
        version=version("porthor"),
        openapi_tags=[
            {
                "name": "auth",
                "description": "Nonce issuance and authenticated identity.",
            },
            {
                "name": "internal",
                "description": "Internal routes used for health checks.",
            },
        ],
        lifespan=lifespan,
    )

    # Add all of the routes.
    app.include_router(api.router)
    app.include_router(internal.router)

    # Load configuration if it is available to us and configure Uvicorn
    # logging.
    config = None
    if load_config:
        config = config_dependency.config()
        configure_uvicorn_logging()

    # Install the middleware.
    if config:
        app.add_middleware(XForwardedMiddleware, proxies=config.proxies)

    app.exception_handler(SecretStoreError)(secret_store_error_handler)

    return app


def create_openapi() -> str:
    """Generate the OpenAPI schema.

    Returns
    -------
    str
        OpenAPI schema as serialized JSON.
    """
    app = create_app(load_config=False)
    schema = get_openapi(
        title=app.title,
        description=app.description,
        version=app.version,
        routes=app.routes,
    )
    return json.dumps(schema)
