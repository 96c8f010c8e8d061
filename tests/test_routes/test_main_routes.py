"""
Smoke tests for the main blueprint routes.

These verify that the application starts up correctly and the health
check endpoint responds.
"""


class TestHealthCheck:
    """Tests for the health check endpoint."""

    def test_health_check_returns_up(self, client):
        """The health check should return HTTP 200 with status UP."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.get_json()["status"] == "UP"

    def test_health_check_is_not_under_api_prefix(self, client):
        response = client.get("/api/v1/health")
        assert response.status_code == 404


class TestErrorEnvelope:
    """Unknown routes still answer with the JSON error envelope."""

    def test_unknown_route_returns_json_404(self, client):
        response = client.get("/api/v1/does-not-exist")
        assert response.status_code == 404
        body = response.get_json()
        assert body["status"] == "error"
        assert body["kind"] == "not_found"
