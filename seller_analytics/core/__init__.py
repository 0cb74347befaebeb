"""
Core Types Module
"""
from .exceptions import SellerAnalyticsError, SeriesOutOfRangeError, UpstreamError
from .models import (
    AggregatedBucket,
    AggregationType,
    Granularity,
    MetricKind,
    MetricSnapshot,
    QuarterRollup,
    TimeSeriesPoint,
    TrendDirection,
    Weekday,
    WeekdayBucket,
)

__all__ = [
    "AggregatedBucket",
    "AggregationType",
    "Granularity",
    "MetricKind",
    "MetricSnapshot",
    "QuarterRollup",
    "TimeSeriesPoint",
    "TrendDirection",
    "Weekday",
    "WeekdayBucket",
    "SellerAnalyticsError",
    "SeriesOutOfRangeError",
    "UpstreamError",
]
