"""
Calendar Bucketing Engine

Re-buckets an irregular daily series into zero-filled daily, weekly,
monthly or quarterly periods aligned to a caller-supplied date range.

Weeks start on Monday. Every period overlapping the range gets a bucket,
including periods no point falls into. Daily output stops at the latest
date present in the series so charts do not trail off into zeros.
"""

from datetime import date, timedelta
from typing import Dict, Iterable, List, Sequence

import polars as pl
import structlog

from seller_analytics.core.models import (
    AggregatedBucket,
    AggregationType,
    Granularity,
    TimeSeriesPoint,
)

logger = structlog.get_logger(__name__)


_RANGE_INTERVALS: Dict[Granularity, str] = {
    Granularity.DAILY: "1d",
    Granularity.WEEKLY: "1w",
    Granularity.MONTHLY: "1mo",
    Granularity.QUARTERLY: "3mo",
}


def period_start(day: date, granularity: Granularity) -> date:
    """First day of the calendar period containing ``day``"""
    if granularity == Granularity.WEEKLY:
        return day - timedelta(days=day.weekday())
    if granularity == Granularity.MONTHLY:
        return day.replace(day=1)
    if granularity == Granularity.QUARTERLY:
        return date(day.year, 3 * ((day.month - 1) // 3) + 1, 1)
    return day


def period_label(start: date, granularity: Granularity) -> str:
    """Human-readable label for the period anchored at ``start``"""
    if granularity == Granularity.MONTHLY:
        return start.strftime("%b %Y")
    if granularity == Granularity.QUARTERLY:
        return f"Q{(start.month - 1) // 3 + 1} {start.year}"
    return start.strftime("%d %b")


def _period_expr(granularity: Granularity) -> pl.Expr:
    """Polars expression mapping the ``date`` column to its period start"""
    column = pl.col("date")
    if granularity == Granularity.WEEKLY:
        return column.dt.truncate("1w")
    if granularity == Granularity.MONTHLY:
        return pl.date(column.dt.year(), column.dt.month(), 1)
    if granularity == Granularity.QUARTERLY:
        return pl.date(column.dt.year(), (column.dt.quarter() - 1) * 3 + 1, 1)
    return column


def points_frame(series: Iterable[TimeSeriesPoint]) -> pl.DataFrame:
    """Build a ``date``/``total`` frame from series points"""
    points = list(series)
    return pl.DataFrame(
        {
            "date": [p.date for p in points],
            "total": [float(p.total) for p in points],
        },
        schema={"date": pl.Date, "total": pl.Float64},
    )


def bucket(
    series: Sequence[TimeSeriesPoint],
    granularity: Granularity,
    range_start: date,
    range_end: date,
    aggregation: AggregationType = AggregationType.SUM,
) -> List[AggregatedBucket]:
    """
    Bucket a daily series into calendar periods over ``[range_start, range_end]``.

    Args:
        series: Daily points, in any order, possibly outside the range
        granularity: Period size of the output
        range_start: First day of the requested range (inclusive)
        range_end: Last day of the requested range (inclusive)
        aggregation: SUM for additive metrics, AVERAGE for rate-like ones

    Returns:
        Chronological, gap-free buckets. Empty when the range is inverted,
        or for DAILY granularity when the series is empty.
    """
    if range_start > range_end:
        logger.debug(
            "Inverted bucketing range",
            range_start=range_start.isoformat(),
            range_end=range_end.isoformat(),
        )
        return []

    frame = points_frame(series)
    effective_end = range_end

    if granularity == Granularity.DAILY:
        if frame.is_empty():
            return []
        latest = frame["date"].max()
        if latest < effective_end:
            effective_end = latest
        if effective_end < range_start:
            return []

    anchors = (
        pl.date_range(
            period_start(range_start, granularity),
            effective_end,
            interval=_RANGE_INTERVALS[granularity],
            eager=True,
        )
        .alias("period_start")
        .to_frame()
    )

    if aggregation == AggregationType.AVERAGE:
        value_expr = pl.col("total").mean()
    else:
        value_expr = pl.col("total").sum()

    grouped = (
        frame.filter(pl.col("date").is_between(range_start, effective_end))
        .with_columns(_period_expr(granularity).alias("period_start"))
        .group_by("period_start")
        .agg(value_expr.alias("value"))
    )

    result = (
        anchors.join(grouped, on="period_start", how="left")
        .with_columns(pl.col("value").fill_null(0.0))
        .sort("period_start")
    )

    return [
        AggregatedBucket(
            label=period_label(row["period_start"], granularity),
            period_start=row["period_start"],
            value=float(row["value"]),
        )
        for row in result.iter_rows(named=True)
    ]


def bucket_values(buckets: Sequence[AggregatedBucket]) -> List[float]:
    """Values of a bucket sequence, in order"""
    return [b.value for b in buckets]


def auto_granularity(range_start: date, range_end: date) -> Granularity:
    """Pick a granularity that keeps a chart readable for the range length"""
    days = (range_end - range_start).days

    if days <= 31:
        return Granularity.DAILY
    if days <= 90:
        return Granularity.WEEKLY
    if days <= 365:
        return Granularity.MONTHLY
    return Granularity.QUARTERLY


def available_granularities(range_start: date, range_end: date) -> List[Granularity]:
    """
    Granularities that produce a meaningful line for the range.

    Weekly needs more than two weeks, monthly more than a month and
    quarterly more than half a year; daily stops at three months.
    """
    days = (range_end - range_start).days
    options: List[Granularity] = []

    if days <= 90:
        options.append(Granularity.DAILY)
    if 14 < days <= 365:
        options.append(Granularity.WEEKLY)
    if days > 31:
        options.append(Granularity.MONTHLY)
    if days > 180:
        options.append(Granularity.QUARTERLY)

    return options
