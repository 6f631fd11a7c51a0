"""
Tutorials API: Test Configuration (conftest.py)
===============================================

What:  Shared pytest fixtures for the whole test suite.
How:   Tests run against create_app() with an in-memory fake connector, so no
       MongoDB server is needed. HTTP calls go through httpx.AsyncClient over
       ASGITransport (no real socket).

Fixture Hierarchy:
    ├── test_settings:     Settings with test-friendly values
    ├── fake_collection:   In-memory stand-in for a Motor collection
    ├── fake_connector:    Connector exposing fake_collection, state CONNECTED
    ├── test_app:          FastAPI app built around fake_connector
    ├── test_client:       AsyncClient; app exceptions propagate to the test
    └── safe_client:       AsyncClient that returns 500 responses instead of raising
"""

import os
from typing import Any, Dict

# Before any application import: the settings singleton reads the environment once
os.environ["MONGODB_URL"] = "mongodb://localhost:27017/tutorials_test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["CORS_ORIGIN"] = "http://localhost:4200"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from fakes import FakeCollection, FakeConnector
from tutorials_api.config import Settings
from tutorials_api.main import create_app


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        mongodb_url="mongodb://localhost:27017/tutorials_test",
        cors_origin="http://localhost:4200, https://tutorials.example.com",
        log_level="WARNING",
    )


@pytest.fixture
def fake_collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def fake_connector(fake_collection) -> FakeConnector:
    return FakeConnector(fake_collection)


@pytest.fixture
def test_app(test_settings, fake_connector):
    return create_app(test_settings, connector=fake_connector)


@pytest_asyncio.fixture
async def test_client(test_app):
    """
    HTTPX AsyncClient routed straight to the app.

    Usage:
        async def test_root(test_client):
            response = await test_client.get("/")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def safe_client(test_app):
    """Like test_client, but unhandled app errors come back as the 500 response."""
    transport = ASGITransport(app=test_app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def tutorial_payload() -> Dict[str, Any]:
    return {"title": "Learn Go", "description": "basics"}
