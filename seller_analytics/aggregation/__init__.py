"""
Aggregation Module

Pure, synchronous transformations from per-store daily series to the
series and scalars a seller dashboard renders.
"""
from .bucketing import auto_granularity, available_granularities, bucket, bucket_values
from .extractor import extract_metric, extract_series
from .growth import basket_size, growth_series, percent_change, with_growth
from .insights import SmartInsight, generate_insight
from .quarters import MonthlyTotal, aggregate_quarters, monthly_totals
from .reconciler import (
    AdsMetrics,
    StoreMetrics,
    merge_sparklines,
    reconcile,
    reconcile_ads_metrics,
    reconcile_store_metrics,
)
from .weekday import aggregate_by_weekday, clip_series, weekday_occurrences
from .yoy import YoYGrowth, yoy_growth

__all__ = [
    "auto_granularity",
    "available_granularities",
    "bucket",
    "bucket_values",
    "extract_metric",
    "extract_series",
    "basket_size",
    "growth_series",
    "percent_change",
    "with_growth",
    "SmartInsight",
    "generate_insight",
    "MonthlyTotal",
    "aggregate_quarters",
    "monthly_totals",
    "AdsMetrics",
    "StoreMetrics",
    "merge_sparklines",
    "reconcile",
    "reconcile_ads_metrics",
    "reconcile_store_metrics",
    "aggregate_by_weekday",
    "clip_series",
    "weekday_occurrences",
    "YoYGrowth",
    "yoy_growth",
]
