"""Integration tests for health check endpoints."""

from typing import Any
from unittest.mock import patch

from fastapi.testclient import TestClient

from dokkani_api.core.order_store import OrderStoreError


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_healthy_status(self, client: TestClient) -> None:
        """Test that /health returns 200 with status, timestamp and version."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["timestamp"] is not None
        assert data["version"] == "0.1.0"


class TestReadinessEndpoint:
    """Tests for /health/ready endpoint."""

    def test_readiness_returns_200_when_healthy(self, client: TestClient, order_store: Any) -> None:
        """Test that /health/ready returns 200 when Stripe and the store are fine."""
        with patch("dokkani_api.core.order_store.get_order_store", return_value=order_store):
            response = client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert [check["name"] for check in data["checks"]] == ["stripe", "order_store"]

    def test_readiness_store_check_includes_latency(self, client: TestClient, order_store: Any) -> None:
        """Test that the order store check carries a latency measurement."""
        with patch("dokkani_api.core.order_store.get_order_store", return_value=order_store):
            response = client.get("/health/ready")

        store_check = next(c for c in response.json()["checks"] if c["name"] == "order_store")
        assert store_check["latency_ms"] is not None

    def test_readiness_returns_503_when_store_unhealthy(self, client: TestClient, order_store: Any) -> None:
        """Test that a failing store makes /health/ready return 503 with the error."""
        order_store.fail_with = OrderStoreError("Sanity request failed: connection refused")

        with patch("dokkani_api.core.order_store.get_order_store", return_value=order_store):
            response = client.get("/health/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        store_check = next(c for c in data["checks"] if c["name"] == "order_store")
        assert store_check["healthy"] is False
        assert store_check["error"] == "Sanity request failed: connection refused"

    def test_readiness_returns_503_when_stripe_unconfigured(self, client: TestClient, order_store: Any) -> None:
        """Test that missing Stripe keys are reported by name."""
        with (
            patch("dokkani_api.core.order_store.get_order_store", return_value=order_store),
            patch(
                "dokkani_api.api.routes.health.check_stripe_configuration",
                return_value={"healthy": False, "error": "Missing STRIPE_WEBHOOK_SECRET"},
            ),
        ):
            response = client.get("/health/ready")

        assert response.status_code == 503
        stripe_check = next(c for c in response.json()["checks"] if c["name"] == "stripe")
        assert stripe_check["error"] == "Missing STRIPE_WEBHOOK_SECRET"


class TestLatencyEndpoint:
    """Tests for /health/latency endpoint."""

    def test_latency_reports_api_requests(self, client: TestClient) -> None:
        """Test that API requests show up in the per-path statistics."""
        client.get("/api/orders", params={"userId": "u1"})

        response = client.get("/health/latency")

        assert response.status_code == 200
        data = response.json()
        assert "overall" in data
        assert "/api/orders" in data["by_path"]


class TestErrorResponseSchema:
    """Tests for error response schema compliance."""

    def test_unknown_path_returns_404(self, client: TestClient) -> None:
        """Test that unknown paths keep FastAPI's 404 format."""
        response = client.get("/nonexistent-endpoint")

        assert response.status_code == 404
        assert "detail" in response.json()
