"""
Dashboard API client for the marketplace analytics backend.
Handles authentication, retries on transient failures and rate limiting.
"""

import asyncio
from enum import Enum
from typing import Any, Dict, Optional

import httpx
import structlog

from seller_analytics.config import get_settings
from seller_analytics.core.exceptions import UpstreamError

logger = structlog.get_logger(__name__)


class DashboardMetric(str, Enum):
    """Upstream metric endpoints, each answering ``{"data": {...}}``"""
    SALES = "/admin/dashboard-tinjauan/total-penjualan"
    ORDERS = "/admin/dashboard-tinjauan/total-pesanan"
    VISITORS = "/admin/dashboard-tinjauan/total-pengunjung"
    CONVERSION_RATE = "/admin/dashboard-tinjauan/convertion-rate"
    BASKET_SIZE = "/admin/dashboard-tinjauan/basket-size"
    ADS_SALES = "/admin/dashboard-iklan/penjualan-iklan"
    ADS_COST = "/admin/dashboard-iklan/biaya-iklan"
    ADS_ROAS = "/admin/dashboard-iklan/total-roas"
    ADS_IMPRESSIONS = "/admin/dashboard-iklan/dilihat"
    ADS_CTR = "/admin/dashboard-iklan/presentase-klik"
    ADS_CONVERSION_RATE = "/admin/dashboard-iklan/convertion-rate"


class DashboardApiClient:
    """
    Async client for the dashboard REST API.

    Features:
    - Bearer token authentication
    - Retries request errors and HTTP 429 with exponential backoff
    - Other HTTP errors surface as UpstreamError

    Example:
        async with DashboardApiClient() as client:
            raw = await client.fetch_metric(DashboardMetric.SALES, payload)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_token: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_backoff: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = get_settings().upstream
        if api_token is None and settings.api_token is not None:
            api_token = settings.api_token.get_secret_value()

        self.max_retries = max(1, max_retries if max_retries is not None else settings.max_retries)
        self.retry_backoff = retry_backoff

        headers = {"Content-Type": "application/json"}
        if api_token:
            headers["Authorization"] = f"Bearer {api_token}"

        self._client = httpx.AsyncClient(
            base_url=base_url or settings.base_url,
            headers=headers,
            timeout=timeout if timeout is not None else settings.timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "DashboardApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST ``payload`` to ``path`` and return the decoded JSON body.

        Raises:
            UpstreamError: On non-retryable HTTP errors or exhausted retries
        """
        last_error: Optional[str] = None

        for attempt in range(self.max_retries):
            try:
                response = await self._client.post(path, json=payload)
                response.raise_for_status()
                body = response.json()
                return body if isinstance(body, dict) else {}

            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                if status_code == 429 or status_code >= 500:
                    last_error = f"HTTP error: {status_code}"
                    logger.warning(
                        "Dashboard API transient error",
                        path=path,
                        status_code=status_code,
                        attempt=attempt + 1,
                    )
                    if attempt < self.max_retries - 1:
                        await asyncio.sleep(self.retry_backoff * 2 ** attempt)
                    continue
                raise UpstreamError(f"HTTP error: {status_code}", status_code=status_code)

            except httpx.RequestError as e:
                last_error = f"Request failed: {e}"
                logger.warning("Dashboard API request failed", path=path, error=str(e), attempt=attempt + 1)
                if attempt < self.max_retries - 1:
                    await asyncio.sleep(self.retry_backoff * 2 ** attempt)

            except ValueError as e:
                raise UpstreamError(f"Invalid JSON from {path}: {e}")

        raise UpstreamError(last_error or "Max retries exceeded")

    async def fetch_metric(self, metric: DashboardMetric, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Raw response of one metric endpoint for one store"""
        logger.debug("Fetching dashboard metric", metric=metric.name, store_id=payload.get("store_id"))
        return await self.post(metric.value, payload)
