# tests/api_server/conftest.py
"""
Pytest configuration and fixtures for Data API tests.
"""

import pytest
from fastapi.testclient import TestClient

from datastash.api_server.main import create_app


@pytest.fixture
def app(app_config):
    """A Data API application backed by the temporary data directory."""
    return create_app(app_config)


@pytest.fixture
def api_client(app):
    """
    Create a FastAPI test client with the lifespan running.

    Entering the client runs startup reconciliation, so files placed in
    the data directory beforehand are visible to the tests.
    """
    with TestClient(app) as client:
        yield client


@pytest.fixture
def sample_payload():
    """A small JSON payload in the shape clients usually post."""
    return {"Title": "Quarterly report", "S": "test", "items": [1, 2, 3]}
