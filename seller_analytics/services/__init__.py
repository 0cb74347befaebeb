"""
Services Module

Upstream client, concurrent per-store fan-out, result cache and the
dashboard use cases built on the aggregation engine.
"""
from .client import DashboardApiClient, DashboardMetric
from .dashboard import DashboardService
from .fanout import FanOutFailure, FanOutResult, fan_out
from .query import DashboardQuery, StoreRef, build_payload, target_stores

__all__ = [
    "DashboardApiClient",
    "DashboardMetric",
    "DashboardService",
    "FanOutFailure",
    "FanOutResult",
    "fan_out",
    "DashboardQuery",
    "StoreRef",
    "build_payload",
    "target_stores",
]
