"""
Unit Tests - Dashboard API Client
"""
import json

import httpx
import pytest

from seller_analytics.core import UpstreamError
from seller_analytics.services import client as client_module
from seller_analytics.services.client import DashboardApiClient, DashboardMetric

PAYLOAD = {"store_id": 1, "marketplace_id": 1, "date_from": "2024-01-01", "date_to": "2024-01-31"}


def make_client(handler, **kwargs) -> DashboardApiClient:
    return DashboardApiClient(
        base_url="http://dashboard.test",
        api_token="secret-token",
        retry_backoff=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestDashboardApiClient:
    """Tests for DashboardApiClient"""

    @pytest.mark.asyncio
    async def test_fetch_metric(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": {"total": 10}})

        async with make_client(handler) as client:
            body = await client.fetch_metric(DashboardMetric.SALES, PAYLOAD)

        assert body == {"data": {"total": 10}}
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/admin/dashboard-tinjauan/total-penjualan"
        assert request.headers["Authorization"] == "Bearer secret-token"
        assert json.loads(request.content) == PAYLOAD

    @pytest.mark.asyncio
    async def test_retries_rate_limit(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) < 3:
                return httpx.Response(429)
            return httpx.Response(200, json={"data": {}})

        async with make_client(handler, max_retries=3) as client:
            body = await client.post("/admin/dashboard-tinjauan/total-pesanan", PAYLOAD)

        assert body == {"data": {}}
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            return httpx.Response(401)

        async with make_client(handler, max_retries=3) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.post("/x", PAYLOAD)

        assert exc_info.value.status_code == 401
        assert len(attempts) == 1

    @pytest.mark.asyncio
    async def test_exhausted_retries(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503)

        async with make_client(handler, max_retries=2) as client:
            with pytest.raises(UpstreamError, match="503"):
                await client.post("/x", PAYLOAD)

    @pytest.mark.asyncio
    async def test_no_backoff_after_last_attempt(self, monkeypatch):
        """Backoff only runs between attempts, not before giving up"""
        delays = []

        async def fake_sleep(seconds):
            delays.append(seconds)

        monkeypatch.setattr(client_module.asyncio, "sleep", fake_sleep)

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429)

        async with make_client(handler, max_retries=3) as client:
            client.retry_backoff = 0.5
            with pytest.raises(UpstreamError, match="429"):
                await client.post("/x", PAYLOAD)

        assert delays == [0.5, 1.0]

    @pytest.mark.asyncio
    async def test_network_error_is_retried(self):
        attempts = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"data": {"total": 1}})

        async with make_client(handler, max_retries=2) as client:
            body = await client.post("/x", PAYLOAD)

        assert body["data"]["total"] == 1

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>oops</html>")

        async with make_client(handler) as client:
            with pytest.raises(UpstreamError, match="Invalid JSON"):
                await client.post("/x", PAYLOAD)

    @pytest.mark.asyncio
    async def test_non_object_body(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[1, 2, 3])

        async with make_client(handler) as client:
            assert await client.post("/x", PAYLOAD) == {}
