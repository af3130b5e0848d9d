"""Integration tests for health endpoints.

This module contains integration tests for the health check endpoints,
including store connectivity checks and their failure reasons.
"""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from user_directory.repositories.user_repository import ProbeResult, UserRepository


class TestHealthEndpoints:
    """Integration tests for health endpoints."""

    def test_health_check(self, client: TestClient):
        """Test basic health check."""
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "UP"
        assert data["service"] == "user-directory"
        assert data["environment"] == "testing"
        assert data["timestamp"].endswith("Z")

    def test_liveness_probe(self, client: TestClient):
        response = client.get("/api/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "UP"

    def test_readiness_probe_up(self, client: TestClient):
        """Test readiness when the store answers."""
        response = client.get("/api/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "UP"
        check = data["checks"][0]
        assert check["name"] == "database"
        assert check["status"] == "UP"
        assert "details" in check

    def test_readiness_probe_timeout(self, client: TestClient):
        """Test readiness when the store does not answer in time."""
        result = ProbeResult(
            healthy=False,
            duration_ms=1000.0,
            reason="timeout",
            error_type="TimeoutError",
            detail="No response within 1.0s",
        )
        with patch.object(
            UserRepository, "connectivity_probe", new_callable=AsyncMock, return_value=result
        ):
            response = client.get("/api/health/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "DOWN"
        assert data["checks"] == [
            {
                "name": "database",
                "status": "DOWN",
                "duration_ms": 1000.0,
                "reason": "timeout",
                "error_type": "TimeoutError",
            }
        ]

    def test_readiness_probe_connection_failed(self, client: TestClient):
        result = ProbeResult(
            healthy=False,
            duration_ms=3.2,
            reason="connection_failed",
            error_type="OperationalError",
            detail="could not connect to server",
        )
        with patch.object(
            UserRepository, "connectivity_probe", new_callable=AsyncMock, return_value=result
        ):
            response = client.get("/api/health/ready")

        assert response.status_code == 503
        check = response.json()["checks"][0]
        assert check["reason"] == "connection_failed"
        # Driver detail is for operators only
        assert "could not connect" not in response.text

    def test_readiness_uses_configured_timeout(self, client: TestClient, test_settings):
        with patch.object(
            UserRepository,
            "connectivity_probe",
            new_callable=AsyncMock,
            return_value=ProbeResult(healthy=True, duration_ms=0.5),
        ) as mock_probe:
            client.get("/api/health/ready")

        mock_probe.assert_awaited_once_with(test_settings.probe_timeout_seconds)


class TestRootEndpoints:
    """Test cases for root and version endpoints."""

    def test_root(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["endpoints"]["users"] == "/api/users"

    def test_version(self, client: TestClient):
        response = client.get("/version")

        assert response.status_code == 200
        assert response.json()["version"] == "1.0.0"
