"""
Test Suite Configuration
"""
import fnmatch
import pytest
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional

from seller_analytics.config import Settings
from seller_analytics.core import MetricSnapshot, TimeSeriesPoint, TrendDirection
from seller_analytics.core.exceptions import UpstreamError


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        APP_ENV="testing",
        DEBUG=True,
    )


def make_series(start: date, values: List[float]) -> List[TimeSeriesPoint]:
    """Consecutive daily points starting at ``start``"""
    return [
        TimeSeriesPoint(date=start + timedelta(days=offset), total=float(value))
        for offset, value in enumerate(values)
    ]


def raw_metric(
    total: Any = 0,
    previous_total: Any = 0,
    percent: Any = 0,
    trend: Optional[str] = None,
    sparkline: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Dashboard API metric response body"""
    data: Dict[str, Any] = {
        "total": total,
        "previous_total": previous_total,
        "percent": percent,
        "sparkline": sparkline or [],
    }
    if trend is not None:
        data["trend"] = trend
    return {"data": data}


@pytest.fixture
def january_sales() -> List[TimeSeriesPoint]:
    """Sparse January 2024 daily sales"""
    return [
        TimeSeriesPoint(date(2024, 1, 3), 120.0),
        TimeSeriesPoint(date(2024, 1, 10), 80.0),
        TimeSeriesPoint(date(2024, 1, 24), 200.0),
    ]


@pytest.fixture
def store_a_visitors() -> MetricSnapshot:
    return MetricSnapshot(
        current=100.0,
        previous=100.0,
        trend_direction=TrendDirection.EQUAL,
        sparkline=(TimeSeriesPoint(date(2024, 1, 1), 100.0),),
    )


@pytest.fixture
def store_b_visitors() -> MetricSnapshot:
    return MetricSnapshot(
        current=300.0,
        previous=100.0,
        trend_direction=TrendDirection.UP,
        sparkline=(TimeSeriesPoint(date(2024, 1, 1), 300.0),),
    )


class FakeDashboardClient:
    """Stands in for DashboardApiClient; answers through ``handler(metric, payload)``"""

    def __init__(
        self,
        handler: Callable[[Any, Dict[str, Any]], Dict[str, Any]],
        failing_store_ids: tuple = (),
    ):
        self.handler = handler
        self.failing_store_ids = set(failing_store_ids)
        self.calls: List[tuple] = []

    async def fetch_metric(self, metric, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append((metric, payload))
        if payload["store_id"] in self.failing_store_ids:
            raise UpstreamError("HTTP error: 502", status_code=502)
        return self.handler(metric, payload)


class InMemoryCache:
    """Async get/set cache with the CacheManager surface"""

    def __init__(self):
        self.store: Dict[str, Any] = {}

    async def get(self, key: str) -> Optional[Any]:
        return self.store.get(key)

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        self.store[key] = value
        return True


class FakeRedis:
    """Minimal async Redis used by CacheManager tests"""

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}

    async def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        self.data[key] = value
        self.ttls[key] = ex
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def scan_iter(self, match: str = "*"):
        for key in list(self.data):
            if fnmatch.fnmatch(key, match):
                yield key


@pytest.fixture
def in_memory_cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()
