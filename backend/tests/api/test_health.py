"""
Tests for health endpoints and request-id propagation.
"""


class TestHealthEndpoints:
    def test_health(self, client):
        response = client.get("/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "Competency Assessment Engine"
        assert isinstance(data["psychometrics_enabled"], bool)
        assert data["goals"] == ["overview", "job_fit", "team_fit"]
        assert "timestamp" in data

    def test_ping(self, client):
        response = client.get("/v1/ping")
        assert response.status_code == 200
        assert response.json() == {"message": "pong"}

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["docs"] == "/v1/docs"


class TestRequestIdHeader:
    """RequestLoggingMiddleware echoes or generates X-Request-ID."""

    def test_generated_when_missing(self, client):
        response = client.get("/v1/ping")
        assert response.headers.get("X-Request-ID")

    def test_echoed_when_provided(self, client):
        response = client.get("/v1/ping", headers={"X-Request-ID": "trace-abc"})
        assert response.headers["X-Request-ID"] == "trace-abc"
