"""Integration tests for /health, /healthz and /metrics endpoints."""

import uuid
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient

from backend.app.api.routes.health import check_redis
from backend.app.config import Settings
from backend.app.main import app
from tests.tenants import Tenants


@pytest.fixture
def http() -> TestClient:
    """Create test client."""
    return TestClient(app)


class TestHealthEndpoint:
    """Test /health and /healthz endpoints."""

    def test_health_always_ok(self, http: TestClient) -> None:
        response = http.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    @patch("backend.app.api.routes.health.check_db", new_callable=AsyncMock)
    @patch("backend.app.api.routes.health.check_redis", new_callable=AsyncMock)
    def test_healthz_returns_200_when_all_ok(
        self,
        mock_check_redis: AsyncMock,
        mock_check_db: AsyncMock,
        http: TestClient,
    ) -> None:
        """Test /healthz returns 200 when DB and Redis are healthy."""
        mock_check_db.return_value = (True, "ok")
        mock_check_redis.return_value = (True, "not_configured")

        response = http.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["components"] == {"db": "ok", "redis": "not_configured"}

    @patch("backend.app.api.routes.health.check_db", new_callable=AsyncMock)
    @patch("backend.app.api.routes.health.check_redis", new_callable=AsyncMock)
    def test_healthz_returns_503_when_db_fails(
        self,
        mock_check_redis: AsyncMock,
        mock_check_db: AsyncMock,
        http: TestClient,
    ) -> None:
        """Test /healthz returns 503 when DB check fails."""
        mock_check_db.return_value = (False, "error: OperationalError")
        mock_check_redis.return_value = (True, "ok")

        response = http.get("/healthz")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["components"]["db"] == "error: OperationalError"

    @patch("backend.app.api.routes.health.check_db", new_callable=AsyncMock)
    @patch("backend.app.api.routes.health.check_redis", new_callable=AsyncMock)
    def test_healthz_returns_503_when_redis_fails(
        self,
        mock_check_redis: AsyncMock,
        mock_check_db: AsyncMock,
        http: TestClient,
    ) -> None:
        """Test /healthz returns 503 when Redis check fails."""
        mock_check_db.return_value = (True, "ok")
        mock_check_redis.return_value = (False, "error: ConnectionError")

        response = http.get("/healthz")

        assert response.status_code == 503
        assert response.json()["components"]["redis"] == "error: ConnectionError"


class TestMetricsEndpoint:
    """Test /metrics endpoint."""

    def test_metrics_returns_prometheus_format(self, http: TestClient) -> None:
        """Test /metrics returns Prometheus text format."""
        response = http.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert "# HELP" in response.text

    @pytest.mark.asyncio
    async def test_metrics_include_tenancy_and_audit_series(
        self, client: AsyncClient, tenants: Tenants
    ) -> None:
        """Resolutions and audit writes show up after real traffic."""
        await client.post("/companies", json={"name": "Acme"}, headers=tenants.bearer(tenants.user_a))
        await client.get("/companies", headers=tenants.bearer(uuid.uuid4()))

        response = await client.get("/metrics")

        # Writes settle when the client fixture drains; resolution counters are synchronous
        text = response.text
        assert 'tenant_resolutions_total{outcome="profile"}' in text
        assert 'tenant_resolutions_total{outcome="denied"}' in text
        assert "audit_writes_total" in text


class TestRootEndpoint:
    """Test root endpoint."""

    def test_root_returns_api_info(self, http: TestClient) -> None:
        """Test root endpoint returns API information."""
        response = http.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "ABM Platform API"
        assert data["version"] == "0.1.0"


class TestCheckRedis:
    """check_redis against the asyncio Redis client."""

    @pytest.mark.asyncio
    async def test_not_configured(self) -> None:
        assert await check_redis(Settings(redis_url=None)) == (True, "not_configured")

    @pytest.mark.asyncio
    async def test_ping_is_awaited_and_client_closed(self) -> None:
        client = AsyncMock()

        with patch("backend.app.api.routes.health.redis.from_url", return_value=client):
            result = await check_redis(Settings(redis_url="redis://localhost:6379/0"))

        assert result == (True, "ok")
        client.ping.assert_awaited_once()
        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_ping_failure_is_reported(self) -> None:
        client = AsyncMock()
        client.ping.side_effect = ConnectionError("refused")

        with patch("backend.app.api.routes.health.redis.from_url", return_value=client):
            result = await check_redis(Settings(redis_url="redis://localhost:6379/0"))

        assert result == (False, "error: ConnectionError")
        client.aclose.assert_awaited_once()
