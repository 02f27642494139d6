"""Integration tests for /healthz and /metrics endpoints."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from backend.app.main import app


@pytest.fixture
def client() -> TestClient:
    """Create test client."""
    return TestClient(app)


class TestHealthEndpoint:
    """Test /healthz endpoint."""

    def test_health_always_ok(self, client: TestClient) -> None:
        """Test /health answers without touching dependencies."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @patch("backend.app.api.routes.health.check_db")
    @patch("backend.app.api.routes.health.check_redis")
    def test_healthz_returns_200_when_all_ok(
        self,
        mock_check_redis: MagicMock,
        mock_check_db: MagicMock,
        client: TestClient,
    ) -> None:
        """Test /healthz returns 200 when DB and Redis are healthy."""
        mock_check_db.return_value = (True, "ok")
        mock_check_redis.return_value = (True, "ok")

        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["components"]["db"] == "ok"
        assert data["components"]["redis"] == "ok"
        assert data["components"]["weather"] in ("configured", "not_configured")

    @patch("backend.app.api.routes.health.check_db")
    @patch("backend.app.api.routes.health.check_redis")
    def test_healthz_returns_503_when_db_fails(
        self,
        mock_check_redis: MagicMock,
        mock_check_db: MagicMock,
        client: TestClient,
    ) -> None:
        """Test /healthz returns 503 when DB check fails."""
        mock_check_db.return_value = (False, "connection refused")
        mock_check_redis.return_value = (True, "ok")

        response = client.get("/healthz")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["db"] == "connection refused"
        assert data["components"]["redis"] == "ok"

    @patch("backend.app.api.routes.health.check_db")
    @patch("backend.app.api.routes.health.check_redis")
    def test_healthz_returns_503_when_redis_fails(
        self,
        mock_check_redis: MagicMock,
        mock_check_db: MagicMock,
        client: TestClient,
    ) -> None:
        """Test /healthz returns 503 when Redis check fails."""
        mock_check_db.return_value = (True, "ok")
        mock_check_redis.return_value = (False, "timeout")

        response = client.get("/healthz")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["db"] == "ok"
        assert data["components"]["redis"] == "timeout"

    @patch("backend.app.api.routes.health.check_db")
    @patch("backend.app.api.routes.health.check_redis")
    @patch("backend.app.api.routes.health.check_weather")
    def test_healthz_ok_without_weather_key(
        self,
        mock_check_weather: MagicMock,
        mock_check_redis: MagicMock,
        mock_check_db: MagicMock,
        client: TestClient,
    ) -> None:
        """Test a missing weather key does not make the service unhealthy."""
        mock_check_db.return_value = (True, "ok")
        mock_check_redis.return_value = (True, "not_configured")
        mock_check_weather.return_value = "not_configured"

        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["components"]["weather"] == "not_configured"


class TestMetricsEndpoint:
    """Test /metrics endpoint."""

    def test_metrics_returns_prometheus_format(self, client: TestClient) -> None:
        """Test /metrics returns Prometheus text format."""
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]

        text = response.text
        assert "# TYPE weather_provider_latency_ms histogram" in text

    def test_metrics_includes_weather_metrics(self, client: TestClient) -> None:
        """Test /metrics includes weather path metrics."""
        from backend.app.utils.metrics import PrometheusWeatherMetrics

        metrics = PrometheusWeatherMetrics()
        metrics.record_latency("forecast", "success", 120)
        metrics.inc_error("geocode", "upstream_unavailable")
        metrics.inc_admission_rejected("user")
        metrics.inc_degraded("misconfigured")

        response = client.get("/metrics")

        assert response.status_code == 200
        text = response.text

        assert "weather_provider_latency_ms" in text
        assert "weather_provider_errors_total" in text
        assert "weather_admission_rejections_total" in text
        assert "itinerary_weather_degraded_total" in text


class TestRootEndpoint:
    """Test root endpoint."""

    def test_root_returns_api_info(self, client: TestClient) -> None:
        """Test root endpoint returns API information."""
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Trip Planner API"
        assert data["version"] == "0.1.0"
