"""Test fixtures."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
import structlog
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from porthor.config import Config
from porthor.dependencies.context import context_dependency
from porthor.factory import Factory
from porthor.main import create_app

from .support.config import configure
from .support.constants import TEST_HOSTNAME


@pytest.fixture(autouse=True)
def environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Clear any environment settings that would override test files."""
    for variable in (
        "PORTHOR_ISSUERS",
        "PORTHOR_LOG_LEVEL",
        "PORTHOR_LOG_PROFILE",
        "PORTHOR_SECRETS_PATH",
        "PORTHOR_SECRET",
    ):
        monkeypatch.delenv(variable, raising=False)


@pytest.fixture
def config(environment: None) -> Config:
    """Set up and return the default test configuration.

    Notes
    -----
    This fixture must not be async so that it can be used by the cli tests,
    which must not be async because the Click support starts its own asyncio
    loop.
    """
    return configure("base")


@pytest_asyncio.fixture
async def app(config: Config) -> AsyncIterator[FastAPI]:
    """Return a configured test application.

    Wraps the application in a lifespan manager so that startup and shutdown
    events are sent during test execution.
    """
    app = create_app()
    async with LifespanManager(app):
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Return an ``httpx.AsyncClient`` configured to talk to the test app."""
    async with AsyncClient(
        base_url=f"https://{TEST_HOSTNAME}",
        transport=ASGITransport(app=app),
    ) as client:
        yield client


@pytest_asyncio.fixture
async def factory(app: FastAPI) -> Factory:
    """Return a component factory sharing the running app's state."""
    logger = structlog.get_logger("porthor")
    return Factory(context_dependency.process_context, logger)
