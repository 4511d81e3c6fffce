"""Tests for rate limiting on the device link endpoints."""

from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.requests import Request

from src.main import app
from src.middleware.rate_limit import get_client_ip, limiter


@pytest.fixture(autouse=True)
def _enable_rate_limiting():
    """Temporarily enable rate limiting for these tests."""
    limiter.enabled = True
    limiter.reset()
    yield
    limiter.enabled = False


class TestRateLimiting:
    async def test_code_exchange_limited_to_ten_per_minute(self):
        """Guessing pairing codes is capped per client IP."""
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as c:
            responses = []
            for _ in range(11):
                resp = await c.post(
                    "/api/auth/device/verify",
                    json={"code": "bad"},
                )
                responses.append(resp.status_code)

        assert responses[:10] == [400] * 10
        assert responses[10] == 429

    async def test_rate_limit_returns_json_detail(self):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as c:
            for _ in range(11):
                resp = await c.post("/api/auth/device/verify", json={"code": "bad"})

        assert resp.status_code == 429
        assert "Rate limit" in resp.json()["detail"]

    async def test_limit_is_per_forwarded_client(self):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as c:
            for _ in range(10):
                await c.post(
                    "/api/auth/device/verify",
                    json={"code": "bad"},
                    headers={"X-Forwarded-For": "203.0.113.7"},
                )
            other = await c.post(
                "/api/auth/device/verify",
                json={"code": "bad"},
                headers={"X-Forwarded-For": "203.0.113.8"},
            )

        assert other.status_code == 400

    async def test_health_endpoint_not_limited_at_low_rate(self, monkeypatch):
        monkeypatch.setattr(
            "src.routers.health.check_database_connection",
            AsyncMock(return_value=True),
        )
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as c:
            for _ in range(15):
                resp = await c.get("/health")
                assert resp.status_code == 200


class TestClientIp:
    def _request(self, headers, client=("10.0.0.5", 1234)):
        scope = {
            "type": "http",
            "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
            "client": client,
        }
        return Request(scope)

    def test_prefers_leftmost_forwarded_for(self):
        request = self._request({"X-Forwarded-For": "198.51.100.1, 10.0.0.1"})

        assert get_client_ip(request) == "198.51.100.1"

    def test_falls_back_to_real_ip_then_peer(self):
        assert get_client_ip(self._request({"X-Real-IP": "198.51.100.2"})) == (
            "198.51.100.2"
        )
        assert get_client_ip(self._request({})) == "10.0.0.5"
