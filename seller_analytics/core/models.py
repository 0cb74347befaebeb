"""
Core Data Model

Immutable value types shared by the aggregation engine. Every value is
computed fresh per query and owned by the request that produced it.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Tuple


class TrendDirection(str, Enum):
    """Direction of a metric against its previous period"""
    UP = "Up"
    DOWN = "Down"
    EQUAL = "Equal"

    @classmethod
    def from_values(cls, current: float, previous: float) -> "TrendDirection":
        """Derive the direction from the sign of current - previous"""
        if current > previous:
            return cls.UP
        if current < previous:
            return cls.DOWN
        return cls.EQUAL


class Granularity(str, Enum):
    """Calendar period size a series is bucketed to"""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"


class AggregationType(str, Enum):
    """How points falling in one bucket are combined"""
    SUM = "sum"
    AVERAGE = "average"


class MetricKind(str, Enum):
    """How one metric is combined across stores"""
    ADDITIVE = "additive"  # sales, orders, visitors
    RATE_WEIGHTED_BY_VISITORS = "rate_weighted_by_visitors"  # conversion rate
    RATE_WEIGHTED_BY_ORDERS = "rate_weighted_by_orders"  # basket size


class Weekday(int, Enum):
    """ISO weekday, Monday first (matches date.weekday())"""
    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def short_name(self) -> str:
        return self.name[:3].title()


@dataclass(frozen=True)
class TimeSeriesPoint:
    """One day's value of one metric for one store"""
    date: date
    total: float


@dataclass(frozen=True)
class MetricSnapshot:
    """Normalized metric for one store (or a reconciled set of stores)"""
    current: float = 0.0
    previous: float = 0.0
    percent_change: float = 0.0
    trend_direction: TrendDirection = TrendDirection.EQUAL
    sparkline: Tuple[TimeSeriesPoint, ...] = ()

    @classmethod
    def zero(cls) -> "MetricSnapshot":
        """Snapshot representing "no data available" """
        return cls()


@dataclass(frozen=True)
class AggregatedBucket:
    """One calendar period of a bucketed series"""
    label: str
    period_start: date
    value: float


@dataclass(frozen=True)
class QuarterRollup:
    """One quarter of a yearly sales/orders roll-up"""
    label: str
    period_start: Optional[date]
    value: float
    sales_total: float
    orders_total: float
    basket_size: float
    growth_vs_previous_quarter: Optional[float] = None
    orders_growth: Optional[float] = None
    basket_size_growth: Optional[float] = None


@dataclass(frozen=True)
class WeekdayBucket:
    """Totals and calendar average of one weekday over a date range"""
    weekday: Weekday
    total_value: float
    occurrence_count: int

    @property
    def average_value(self) -> float:
        if self.occurrence_count <= 0:
            return 0.0
        return self.total_value / self.occurrence_count

    @property
    def label(self) -> str:
        return self.weekday.short_name
