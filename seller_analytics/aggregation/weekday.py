"""
Day-of-Week Operational Aggregator

Buckets a daily series by weekday and reports both the total and the
calendar average per weekday. The average divides by how many times the
weekday occurs in the range, not by how many days happened to report data.
"""

from datetime import date
from typing import List, Sequence

import polars as pl
import structlog

from seller_analytics.aggregation.bucketing import points_frame
from seller_analytics.core.exceptions import SeriesOutOfRangeError
from seller_analytics.core.models import TimeSeriesPoint, Weekday, WeekdayBucket

logger = structlog.get_logger(__name__)


def weekday_occurrences(range_start: date, range_end: date) -> List[int]:
    """Number of dates of each weekday (Monday first) in the inclusive range"""
    if range_start > range_end:
        return [0] * 7

    days = (range_end - range_start).days + 1
    full_weeks, remainder = divmod(days, 7)
    counts = [full_weeks] * 7
    first = range_start.weekday()
    for offset in range(remainder):
        counts[(first + offset) % 7] += 1
    return counts


def clip_series(
    series: Sequence[TimeSeriesPoint],
    range_start: date,
    range_end: date,
) -> List[TimeSeriesPoint]:
    """Points of ``series`` whose date lies in the inclusive range"""
    return [p for p in series if range_start <= p.date <= range_end]


def aggregate_by_weekday(
    series: Sequence[TimeSeriesPoint],
    range_start: date,
    range_end: date,
    strict: bool = True,
) -> List[WeekdayBucket]:
    """
    Total and calendar-average value per weekday.

    ``series`` must already be clipped to ``[range_start, range_end]``
    (see ``clip_series``). With ``strict`` a point outside the range raises
    ``SeriesOutOfRangeError``; without it the point is still summed into its
    weekday while the occurrence count only reflects the range.

    Returns:
        Exactly seven buckets, Monday to Sunday; all zero for an inverted range
    """
    if range_start > range_end:
        return [WeekdayBucket(weekday=day, total_value=0.0, occurrence_count=0) for day in Weekday]

    outside = [p for p in series if not range_start <= p.date <= range_end]
    if outside:
        if strict:
            raise SeriesOutOfRangeError(outside[0].date, range_start, range_end)
        logger.warning(
            "Weekday series holds points outside the range",
            outside_points=len(outside),
            range_start=range_start.isoformat(),
            range_end=range_end.isoformat(),
        )

    # polars weekday() is 1 (Monday) .. 7 (Sunday)
    totals = {
        row["weekday"] - 1: row["total"]
        for row in points_frame(series)
        .group_by(pl.col("date").dt.weekday().alias("weekday"))
        .agg(pl.col("total").sum())
        .iter_rows(named=True)
    }
    occurrences = weekday_occurrences(range_start, range_end)

    return [
        WeekdayBucket(
            weekday=day,
            total_value=float(totals.get(day.value, 0.0)),
            occurrence_count=occurrences[day.value],
        )
        for day in Weekday
    ]
