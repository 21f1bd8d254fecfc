"""Tests for health check endpoints."""

from datetime import datetime

from tests.consts import API_BASE


class TestHealthEndpointsNoAuthRequired:
    """Tests verifying health endpoints work without authentication."""

    def test_health_check_no_auth_required(self, unauthenticated_client):
        """Test that /api/health works without authentication headers."""
        response = unauthenticated_client.get(f"{API_BASE}/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_openapi_no_auth_required(self, unauthenticated_client):
        """Test that /openapi.json works without authentication headers."""
        response = unauthenticated_client.get("/openapi.json")

        assert response.status_code == 200


def test_health_check(client):
    """Test basic health check endpoint."""
    response = client.get(f"{API_BASE}/health")

    assert response.status_code == 200
    data = response.json()

    assert data["status"] == "healthy"
    assert data["service"] == "Lucky Drop API"
    assert data["version"] == "v1"
    assert data["store_backend"] == "memory"

    # Verify timestamp is a valid ISO format
    datetime.fromisoformat(data["timestamp"])


def test_operation_ids_prefixed_with_tag(client):
    """Generated client SDK names carry the router tag."""
    paths = client.get("/openapi.json").json()["paths"]

    assert paths["/api/health"]["get"]["operationId"] == "Health-health_check"
    assert paths["/api/drops"]["post"]["operationId"] == "Drops-create_drop"
