"""
Tests for catchhook/api/health.py — liveness and readiness.
"""
from datetime import datetime
from unittest.mock import AsyncMock

from catchhook import __version__
from catchhook.api.health import health_check, readiness_check


class TestHealthCheck:
    async def test_returns_healthy(self):
        """Liveness check always returns healthy with timestamp and version."""
        result = await health_check()
        assert result["status"] == "healthy"
        assert result["version"] == __version__
        assert datetime.fromisoformat(result["timestamp"]).tzinfo is not None

    async def test_over_http(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"


class TestReadinessCheck:
    async def test_ready_with_database(self, client):
        resp = await client.get("/health/ready")
        assert resp.status_code == 200
        assert resp.json()["checks"] == {"database": True}

    async def test_database_failure_is_503(self):
        mock_db = AsyncMock()
        mock_db.execute = AsyncMock(side_effect=Exception("connection refused"))

        resp = await readiness_check(db=mock_db)

        assert resp.status_code == 503
        assert b'"unavailable"' in resp.body
        mock_db.rollback.assert_awaited_once()
