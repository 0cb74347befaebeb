"""
Dashboard Service

Orchestrates one dashboard query end to end:

1. Resolve target stores from the query
2. Fan out one fetch per store (partial failures tolerated)
3. Extract snapshots from the raw responses
4. Reconcile multi-store results
5. Re-bucket, roll up or derive growth for presentation

Results are memoized per query when a cache is configured and every store
answered.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Type, TypeVar

import structlog
from pydantic import TypeAdapter
from redis.exceptions import RedisError

from seller_analytics.aggregation.bucketing import auto_granularity, bucket, bucket_values
from seller_analytics.aggregation.extractor import extract_metric
from seller_analytics.aggregation.growth import growth_series
from seller_analytics.aggregation.insights import SmartInsight, generate_insight
from seller_analytics.aggregation.quarters import MonthlyTotal, aggregate_quarters, monthly_totals
from seller_analytics.aggregation.reconciler import (
    AdsMetrics,
    StoreMetrics,
    merge_sparklines,
    reconcile_ads_metrics,
    reconcile_store_metrics,
)
from seller_analytics.aggregation.weekday import aggregate_by_weekday, clip_series
from seller_analytics.aggregation.yoy import YoYGrowth, yoy_growth
from seller_analytics.config import get_settings, log_context
from seller_analytics.core.models import (
    AggregatedBucket,
    AggregationType,
    Granularity,
    MetricSnapshot,
    QuarterRollup,
    TimeSeriesPoint,
    WeekdayBucket,
)
from seller_analytics.services.client import DashboardApiClient, DashboardMetric
from seller_analytics.services.fanout import FanOutResult, fan_out
from seller_analytics.services.query import DashboardQuery, StoreRef, build_payload

logger = structlog.get_logger(__name__)

ResultT = TypeVar("ResultT")

OVERVIEW_METRICS = (
    DashboardMetric.SALES,
    DashboardMetric.ORDERS,
    DashboardMetric.VISITORS,
    DashboardMetric.CONVERSION_RATE,
    DashboardMetric.BASKET_SIZE,
)

ADS_METRICS = (
    DashboardMetric.ADS_SALES,
    DashboardMetric.ADS_COST,
    DashboardMetric.ADS_ROAS,
    DashboardMetric.ADS_IMPRESSIONS,
    DashboardMetric.ADS_CTR,
    DashboardMetric.ADS_CONVERSION_RATE,
)

# Rate indicators are averaged per bucket so busy periods do not inflate them
TREND_AGGREGATION: Dict[str, AggregationType] = {
    "sales": AggregationType.SUM,
    "orders": AggregationType.SUM,
    "visitors": AggregationType.SUM,
    "conversion_rate": AggregationType.AVERAGE,
    "basket_size": AggregationType.AVERAGE,
}


@dataclass
class OverviewResult:
    metrics: StoreMetrics = field(default_factory=StoreMetrics)
    failed_store_ids: List[str] = field(default_factory=list)


@dataclass
class TrendResult:
    granularity: Granularity
    series: Dict[str, List[AggregatedBucket]] = field(default_factory=dict)
    failed_store_ids: List[str] = field(default_factory=list)


@dataclass
class OperationalResult:
    buckets: List[WeekdayBucket] = field(default_factory=list)
    failed_store_ids: List[str] = field(default_factory=list)


@dataclass
class YearlyChart:
    """Twelve months with MoM growth plus the quarter roll-up"""
    year: int
    months: List[MonthlyTotal] = field(default_factory=list)
    sales_growth: List[Optional[float]] = field(default_factory=list)
    orders_growth: List[Optional[float]] = field(default_factory=list)
    basket_size_growth: List[Optional[float]] = field(default_factory=list)
    quarters: List[QuarterRollup] = field(default_factory=list)
    failed_store_ids: List[str] = field(default_factory=list)


@dataclass
class AdsResult:
    metrics: AdsMetrics = field(default_factory=AdsMetrics)
    failed_store_ids: List[str] = field(default_factory=list)


def _failed_ids(result: FanOutResult) -> List[str]:
    return [str(store.id) for store in result.failed_items]


class DashboardService:
    """
    Dashboard use cases over the upstream API.

    Example:
        async with DashboardApiClient() as client:
            service = DashboardService(client, cache=CacheManager("dashboard"))
            overview = await service.overview_metrics(query)
    """

    def __init__(
        self,
        client: DashboardApiClient,
        cache: Optional[Any] = None,
        max_concurrency: Optional[int] = None,
        store_timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.client = client
        self.cache = cache
        self.max_concurrency = max_concurrency or settings.aggregation.max_concurrency
        self.store_timeout = store_timeout or settings.aggregation.store_timeout_seconds
        self.default_marketplace_id = settings.upstream.default_marketplace_id
        self.strict_weekday_range = settings.aggregation.strict_weekday_range

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------

    async def _fetch_snapshots(
        self,
        store: StoreRef,
        metrics: Sequence[DashboardMetric],
        date_from: date,
        date_to: date,
    ) -> List[MetricSnapshot]:
        payload = build_payload(store, date_from, date_to, self.default_marketplace_id)
        responses = await asyncio.gather(
            *(self.client.fetch_metric(metric, payload) for metric in metrics)
        )
        return [extract_metric(response) for response in responses]

    async def _fan_out_stores(
        self,
        query: DashboardQuery,
        metrics: Sequence[DashboardMetric],
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> FanOutResult:
        date_from = date_from or query.date_from
        date_to = date_to or query.date_to

        async def fetch(store: StoreRef) -> List[MetricSnapshot]:
            return await self._fetch_snapshots(store, metrics, date_from, date_to)

        return await fan_out(
            query.targets,
            fetch,
            max_concurrency=self.max_concurrency,
            timeout=self.store_timeout,
        )

    async def _memoized(
        self,
        key: str,
        result_type: Type[ResultT],
        compute: Callable[[], Awaitable[ResultT]],
    ) -> ResultT:
        with log_context(dashboard_query=key):
            return await self._cached_compute(key, result_type, compute)

    async def _cached_compute(
        self,
        key: str,
        result_type: Type[ResultT],
        compute: Callable[[], Awaitable[ResultT]],
    ) -> ResultT:
        if self.cache is None:
            return await compute()

        adapter = TypeAdapter(result_type)
        try:
            cached = await self.cache.get(key)
        except RedisError as e:
            logger.warning("Cache read failed", key=key, error=str(e))
            cached = None
        if cached is not None:
            logger.debug("Returning memoized result", key=key)
            return adapter.validate_python(cached)

        result = await compute()
        # Partial results are never memoized
        if not getattr(result, "failed_store_ids", None):
            try:
                await self.cache.set(key, adapter.dump_python(result, mode="json"))
            except RedisError as e:
                logger.warning("Cache write failed", key=key, error=str(e))
        return result

    async def _store_metrics(self, query: DashboardQuery) -> OverviewResult:
        if not query.targets or not query.is_valid_range:
            return OverviewResult()

        fetched = await self._fan_out_stores(query, OVERVIEW_METRICS)
        bundles = [StoreMetrics(*snapshots) for snapshots in fetched.results]
        return OverviewResult(
            metrics=reconcile_store_metrics(bundles),
            failed_store_ids=_failed_ids(fetched),
        )

    # ------------------------------------------------------------------
    # Use cases
    # ------------------------------------------------------------------

    async def overview_metrics(self, query: DashboardQuery) -> OverviewResult:
        """Reconciled overview metric cards for the selected stores"""
        logger.info(
            "Computing overview metrics",
            stores=len(query.targets),
            date_from=query.date_from.isoformat(),
            date_to=query.date_to.isoformat(),
        )
        return await self._memoized(
            query.cache_key("overview"),
            OverviewResult,
            lambda: self._store_metrics(query),
        )

    async def trend_series(
        self,
        query: DashboardQuery,
        granularity: Optional[Granularity] = None,
    ) -> TrendResult:
        """Every overview indicator bucketed to ``granularity`` (auto by default)"""
        granularity = granularity or auto_granularity(query.date_from, query.date_to)

        async def compute() -> TrendResult:
            overview = await self._store_metrics(query)
            metrics = overview.metrics
            series = {
                name: bucket(
                    getattr(metrics, name).sparkline,
                    granularity,
                    query.date_from,
                    query.date_to,
                    aggregation,
                )
                for name, aggregation in TREND_AGGREGATION.items()
            }
            return TrendResult(
                granularity=granularity,
                series=series,
                failed_store_ids=overview.failed_store_ids,
            )

        return await self._memoized(
            query.cache_key(f"trend:{granularity.value}"),
            TrendResult,
            compute,
        )

    async def operational_chart(self, query: DashboardQuery) -> OperationalResult:
        """Orders by day of week, averaged over the calendar occurrences in range"""

        async def compute() -> OperationalResult:
            if not query.targets or not query.is_valid_range:
                return OperationalResult(
                    buckets=aggregate_by_weekday([], query.date_from, query.date_to)
                )

            fetched = await self._fan_out_stores(query, (DashboardMetric.ORDERS,))
            daily_orders: List[TimeSeriesPoint] = []
            for (orders,) in fetched.results:
                daily_orders.extend(orders.sparkline)

            if self.strict_weekday_range:
                daily_orders = clip_series(daily_orders, query.date_from, query.date_to)

            return OperationalResult(
                buckets=aggregate_by_weekday(
                    daily_orders,
                    query.date_from,
                    query.date_to,
                    strict=self.strict_weekday_range,
                ),
                failed_store_ids=_failed_ids(fetched),
            )

        return await self._memoized(query.cache_key("operational"), OperationalResult, compute)

    async def _year_series(self, query: DashboardQuery, year: int):
        fetched = await self._fan_out_stores(
            query,
            (DashboardMetric.SALES, DashboardMetric.ORDERS),
            date_from=date(year, 1, 1),
            date_to=date(year, 12, 31),
        )
        sales = merge_sparklines([sales.sparkline for sales, _ in fetched.results])
        orders = merge_sparklines([orders.sparkline for _, orders in fetched.results])
        return fetched, sales, orders

    async def yearly_chart(self, query: DashboardQuery) -> YearlyChart:
        """Monthly sales/orders of the year ``date_to`` falls in, with quarters"""
        year = query.date_to.year

        async def compute() -> YearlyChart:
            failed: List[str] = []
            sales: Sequence[TimeSeriesPoint] = ()
            orders: Sequence[TimeSeriesPoint] = ()
            if query.targets:
                fetched, sales, orders = await self._year_series(query, year)
                failed = _failed_ids(fetched)

            months = monthly_totals(sales, orders, year)
            return YearlyChart(
                year=year,
                months=months,
                sales_growth=growth_series([m.sales for m in months]),
                orders_growth=growth_series([m.orders for m in months]),
                basket_size_growth=growth_series([m.basket_size for m in months]),
                quarters=aggregate_quarters(
                    [{"sales": m.sales, "orders": m.orders} for m in months],
                    year=year,
                ),
                failed_store_ids=failed,
            )

        return await self._memoized(query.cache_key(f"yearly:{year}"), YearlyChart, compute)

    async def yoy_chart(self, query: DashboardQuery) -> YoYGrowth:
        """Monthly sales of the year ``date_to`` falls in against the year before"""
        year = query.date_to.year
        if not query.targets:
            return yoy_growth([], None, year)

        with log_context(dashboard_query=query.cache_key(f"yoy:{year}")):
            (_, current_sales, _), (previous, previous_sales, _) = await asyncio.gather(
                self._year_series(query, year),
                self._year_series(query, year - 1),
            )
        current_values = bucket_values(
            bucket(current_sales, Granularity.MONTHLY, date(year, 1, 1), date(year, 12, 31))
        )
        previous_values = None
        if previous.successes:
            previous_values = bucket_values(
                bucket(previous_sales, Granularity.MONTHLY, date(year - 1, 1, 1), date(year - 1, 12, 31))
            )
        return yoy_growth(current_values, previous_values, year)

    async def ads_metrics(self, query: DashboardQuery) -> AdsResult:
        """Reconciled advertising metrics for the selected stores"""

        async def compute() -> AdsResult:
            if not query.targets or not query.is_valid_range:
                return AdsResult()
            fetched = await self._fan_out_stores(query, ADS_METRICS)
            bundles = [AdsMetrics(*snapshots) for snapshots in fetched.results]
            return AdsResult(
                metrics=reconcile_ads_metrics(bundles),
                failed_store_ids=_failed_ids(fetched),
            )

        return await self._memoized(query.cache_key("ads"), AdsResult, compute)

    async def insight(self, query: DashboardQuery) -> SmartInsight:
        """Prioritized insight over the overview metrics"""
        overview = await self.overview_metrics(query)
        return generate_insight(overview.metrics)
