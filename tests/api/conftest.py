"""
API test fixtures.

The app is created with a placeholder container so the lifespan does not
build real services; route dependencies are overridden per test.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from trailer_backend.api.deps import get_generation_service, get_status_service
from trailer_backend.api.main import create_app
from trailer_backend.configs import Settings


@pytest.fixture
def app():
    app = create_app(settings=Settings(), container=MagicMock())
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def mock_generation_service(app):
    service = AsyncMock()
    app.dependency_overrides[get_generation_service] = lambda: service
    return service


@pytest.fixture
def mock_status_service(app):
    service = AsyncMock()
    app.dependency_overrides[get_status_service] = lambda: service
    return service
