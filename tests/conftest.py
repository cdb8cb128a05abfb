"""Shared fixtures for hub-empresas tests."""

from collections.abc import AsyncGenerator
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from hub_empresas.core.templates import Template, template_from_record
from hub_empresas.main import app
from tests.factories import make_template_record


@pytest.fixture()
def template_record() -> MagicMock:
    """Default 0.6/0.4 template row."""
    return make_template_record()


@pytest.fixture()
def template(template_record: MagicMock) -> Template:
    """Default 0.6/0.4 template as a value object."""
    return template_from_record(template_record)


@pytest_asyncio.fixture()
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Async test client; tests install their own dependency overrides."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as test_client:
        yield test_client

    app.dependency_overrides.clear()
