"""
Tests for health check endpoints.
"""

from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from trailer_backend.api.deps import get_container


class TestHealth:
    """Test GET /api/v1/health and /api/v1/health/db."""

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_database_unreachable(self, app, client):
        container = MagicMock()
        container.engine.connect.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))
        app.dependency_overrides[get_container] = lambda: container

        response = client.get("/api/v1/health/db")

        assert response.status_code == 503
        assert response.json()["detail"] == "Database unreachable"

    def test_correlation_id_is_echoed(self, client):
        response = client.get("/api/v1/health", headers={"X-Correlation-ID": "req-123"})

        assert response.headers.get("X-Correlation-ID") == "req-123"
