"""
Multi-Store Reconciler

Combines per-store metric snapshots into one aggregate:

- additive metrics (sales, orders, visitors) are summed
- rate metrics (conversion rate, basket size) are weighted averages, weighted
  by each store's visitors or orders, never a plain mean of per-store rates

Period-over-period percent is not carried over for multi-store aggregates;
callers recompute growth from the merged absolute series.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import polars as pl
import structlog

from seller_analytics.aggregation.bucketing import points_frame
from seller_analytics.core.models import (
    AggregationType,
    MetricKind,
    MetricSnapshot,
    TimeSeriesPoint,
    TrendDirection,
)

logger = structlog.get_logger(__name__)


def _to_points(frame: pl.DataFrame) -> Tuple[TimeSeriesPoint, ...]:
    return tuple(
        TimeSeriesPoint(date=row["date"], total=float(row["total"]))
        for row in frame.sort("date").iter_rows(named=True)
    )


def merge_sparklines(
    series_list: Sequence[Sequence[TimeSeriesPoint]],
    aggregation: AggregationType = AggregationType.SUM,
) -> Tuple[TimeSeriesPoint, ...]:
    """
    Merge per-store series by date.

    With SUM a store missing a date contributes 0 for it; with AVERAGE the
    mean is taken over the stores that reported the date.
    """
    frames = [points_frame(series) for series in series_list]
    if not frames:
        return ()

    combined = pl.concat(frames)
    if aggregation == AggregationType.AVERAGE:
        value_expr = pl.col("total").mean()
    else:
        value_expr = pl.col("total").sum()

    return _to_points(combined.group_by("date").agg(value_expr.alias("total")))


def weighted_sparkline(
    rate_series: Sequence[Sequence[TimeSeriesPoint]],
    weight_series: Sequence[Optional[Sequence[TimeSeriesPoint]]],
) -> Tuple[TimeSeriesPoint, ...]:
    """
    Per-date weighted average of rate series.

    Each store's rate on a date is weighted by that store's companion value
    on the same date; a date absent from the companion series weighs 1.
    """
    weighted_frames = []
    for index, rates in enumerate(rate_series):
        weights = weight_series[index] if index < len(weight_series) else None
        weight_frame = points_frame(weights or []).rename({"total": "weight"})
        weighted_frames.append(
            points_frame(rates)
            .join(weight_frame, on="date", how="left")
            .with_columns(pl.col("weight").fill_null(1.0).clip(lower_bound=0.0))
            .select(
                "date",
                (pl.col("total") * pl.col("weight")).alias("weighted"),
                "weight",
            )
        )

    if not weighted_frames:
        return ()

    merged = (
        pl.concat(weighted_frames)
        .group_by("date")
        .agg(pl.col("weighted").sum(), pl.col("weight").sum())
        .select(
            "date",
            pl.when(pl.col("weight") > 0)
            .then(pl.col("weighted") / pl.col("weight"))
            .otherwise(0.0)
            .alias("total"),
        )
    )
    return _to_points(merged)


def weighted_average(values: Sequence[float], weights: Sequence[float]) -> float:
    """Weighted mean of ``values``; 0 when the weights sum to 0"""
    values_arr = np.asarray(values, dtype=float)
    weights_arr = np.clip(np.asarray(weights, dtype=float), 0.0, None)
    total_weight = weights_arr.sum()
    if values_arr.size == 0 or total_weight <= 0:
        return 0.0
    return float(np.dot(values_arr, weights_arr) / total_weight)


def _aggregate_snapshot(current: float, previous: float, sparkline: Tuple[TimeSeriesPoint, ...]) -> MetricSnapshot:
    return MetricSnapshot(
        current=current,
        previous=previous,
        percent_change=0.0,
        trend_direction=TrendDirection.from_values(current, previous),
        sparkline=sparkline,
    )


def reconcile(
    snapshots: Sequence[MetricSnapshot],
    metric_kind: MetricKind,
    weights: Optional[Sequence[MetricSnapshot]] = None,
) -> MetricSnapshot:
    """
    Combine N single-store snapshots of one metric.

    Args:
        snapshots: One snapshot per store that was fetched successfully
        metric_kind: How the metric combines across stores
        weights: For rate metrics, the companion snapshot per store (visitors
            for conversion rate, orders for basket size), index-aligned with
            ``snapshots``. Without it every store weighs 1.

    Returns:
        A zero snapshot for no stores, the snapshot itself for one store,
        otherwise the reconciled aggregate with ``percent_change`` 0.
    """
    if not snapshots:
        return MetricSnapshot.zero()
    if len(snapshots) == 1:
        return snapshots[0]

    if metric_kind == MetricKind.ADDITIVE:
        return _aggregate_snapshot(
            current=float(sum(s.current for s in snapshots)),
            previous=float(sum(s.previous for s in snapshots)),
            sparkline=merge_sparklines([s.sparkline for s in snapshots]),
        )

    if weights is not None and len(weights) != len(snapshots):
        logger.warning(
            "Weight snapshots do not line up with rate snapshots, weighting stores equally",
            metric_kind=metric_kind.value,
            snapshots=len(snapshots),
            weights=len(weights),
        )
        weights = None

    if weights is None:
        current_weights = [1.0] * len(snapshots)
        previous_weights = [1.0] * len(snapshots)
        weight_series: List[Optional[Sequence[TimeSeriesPoint]]] = [None] * len(snapshots)
    else:
        current_weights = [w.current for w in weights]
        previous_weights = [w.previous for w in weights]
        weight_series = [w.sparkline for w in weights]

    return _aggregate_snapshot(
        current=weighted_average([s.current for s in snapshots], current_weights),
        previous=weighted_average([s.previous for s in snapshots], previous_weights),
        sparkline=weighted_sparkline([s.sparkline for s in snapshots], weight_series),
    )


@dataclass(frozen=True)
class StoreMetrics:
    """Overview metrics of one store, or of a reconciled set of stores"""
    sales: MetricSnapshot = field(default_factory=MetricSnapshot.zero)
    orders: MetricSnapshot = field(default_factory=MetricSnapshot.zero)
    visitors: MetricSnapshot = field(default_factory=MetricSnapshot.zero)
    conversion_rate: MetricSnapshot = field(default_factory=MetricSnapshot.zero)
    basket_size: MetricSnapshot = field(default_factory=MetricSnapshot.zero)


def reconcile_store_metrics(bundles: Sequence[StoreMetrics]) -> StoreMetrics:
    """Reconcile overview metrics of several stores, each with its proper kind"""
    if not bundles:
        return StoreMetrics()
    if len(bundles) == 1:
        return bundles[0]

    visitors = [b.visitors for b in bundles]
    orders = [b.orders for b in bundles]

    return StoreMetrics(
        sales=reconcile([b.sales for b in bundles], MetricKind.ADDITIVE),
        orders=reconcile(orders, MetricKind.ADDITIVE),
        visitors=reconcile(visitors, MetricKind.ADDITIVE),
        conversion_rate=reconcile(
            [b.conversion_rate for b in bundles],
            MetricKind.RATE_WEIGHTED_BY_VISITORS,
            weights=visitors,
        ),
        basket_size=reconcile(
            [b.basket_size for b in bundles],
            MetricKind.RATE_WEIGHTED_BY_ORDERS,
            weights=orders,
        ),
    )


@dataclass(frozen=True)
class AdsMetrics:
    """Advertising metrics of one store, or of a reconciled set of stores"""
    sales: MetricSnapshot = field(default_factory=MetricSnapshot.zero)
    cost: MetricSnapshot = field(default_factory=MetricSnapshot.zero)
    roas: MetricSnapshot = field(default_factory=MetricSnapshot.zero)
    impressions: MetricSnapshot = field(default_factory=MetricSnapshot.zero)
    ctr: MetricSnapshot = field(default_factory=MetricSnapshot.zero)
    conversion_rate: MetricSnapshot = field(default_factory=MetricSnapshot.zero)


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator > 0 else 0.0


def _ratio_sparkline(
    numerators: Sequence[TimeSeriesPoint],
    denominators: Sequence[TimeSeriesPoint],
) -> Tuple[TimeSeriesPoint, ...]:
    by_date: Dict = {p.date: [p.total, 0.0] for p in numerators}
    for point in denominators:
        by_date.setdefault(point.date, [0.0, 0.0])[1] = point.total
    return tuple(
        TimeSeriesPoint(date=day, total=_ratio(num, den))
        for day, (num, den) in sorted(by_date.items())
    )


def _clicks(ctr: MetricSnapshot, impressions: MetricSnapshot) -> MetricSnapshot:
    """Estimated clicks (CTR% x impressions) used to weight ad conversion rate"""
    impressions_by_date = {p.date: p.total for p in impressions.sparkline}
    return MetricSnapshot(
        current=ctr.current * impressions.current / 100,
        previous=ctr.previous * impressions.previous / 100,
        sparkline=tuple(
            TimeSeriesPoint(date=p.date, total=p.total * impressions_by_date[p.date] / 100)
            for p in ctr.sparkline
            if p.date in impressions_by_date
        ),
    )


def reconcile_ads_metrics(bundles: Sequence[AdsMetrics]) -> AdsMetrics:
    """
    Reconcile advertising metrics of several stores.

    ROAS is re-derived from summed sales and cost; CTR is weighted by
    impressions and conversion rate by estimated clicks.
    """
    if not bundles:
        return AdsMetrics()
    if len(bundles) == 1:
        return bundles[0]

    sales = reconcile([b.sales for b in bundles], MetricKind.ADDITIVE)
    cost = reconcile([b.cost for b in bundles], MetricKind.ADDITIVE)
    impressions = [b.impressions for b in bundles]
    clicks = [_clicks(b.ctr, b.impressions) for b in bundles]

    return AdsMetrics(
        sales=sales,
        cost=cost,
        roas=_aggregate_snapshot(
            current=_ratio(sales.current, cost.current),
            previous=_ratio(sales.previous, cost.previous),
            sparkline=_ratio_sparkline(sales.sparkline, cost.sparkline),
        ),
        impressions=reconcile(impressions, MetricKind.ADDITIVE),
        ctr=reconcile([b.ctr for b in bundles], MetricKind.RATE_WEIGHTED_BY_VISITORS, weights=impressions),
        conversion_rate=reconcile(
            [b.conversion_rate for b in bundles],
            MetricKind.RATE_WEIGHTED_BY_VISITORS,
            weights=clicks,
        ),
    )
