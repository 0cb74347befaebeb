"""
Year-over-Year Growth

Compares each month of a year against the same month of the year before.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Sequence

from seller_analytics.aggregation.growth import percent_change


@dataclass(frozen=True)
class YoYMetric:
    """One month compared with the same month a year earlier"""
    month: str
    month_num: int
    current_value: float
    previous_value: float
    growth_percent: Optional[float]


@dataclass(frozen=True)
class YoYSummary:
    total_current: float
    total_previous: float
    overall_growth_percent: Optional[float]


@dataclass(frozen=True)
class YoYGrowth:
    """Year-over-year comparison of twelve monthly totals"""
    current_year: int
    previous_year: int
    has_previous_year_data: bool
    summary: YoYSummary
    metrics: List[YoYMetric] = field(default_factory=list)


def _month_value(values: Optional[Sequence[float]], index: int) -> float:
    if values is None or index >= len(values):
        return 0.0
    return float(values[index] or 0)


def yoy_growth(
    current_year_values: Sequence[float],
    previous_year_values: Optional[Sequence[float]],
    current_year: int,
) -> YoYGrowth:
    """
    Month-by-month YoY growth.

    Args:
        current_year_values: Monthly totals of ``current_year``, January first
        previous_year_values: Monthly totals of the year before, or ``None``
            when that year has not been loaded
        current_year: Calendar year of ``current_year_values``

    Returns:
        Twelve ``YoYMetric`` rows and the yearly summary. Growth is ``None``
        wherever the previous year's month (or total) is 0.
    """
    metrics = []
    for index in range(12):
        current = _month_value(current_year_values, index)
        previous = _month_value(previous_year_values, index)
        metrics.append(
            YoYMetric(
                month=date(current_year, index + 1, 1).strftime("%b"),
                month_num=index + 1,
                current_value=current,
                previous_value=previous,
                growth_percent=percent_change(current, previous),
            )
        )

    total_current = sum(m.current_value for m in metrics)
    total_previous = sum(m.previous_value for m in metrics)

    return YoYGrowth(
        current_year=current_year,
        previous_year=current_year - 1,
        has_previous_year_data=previous_year_values is not None and total_previous > 0,
        summary=YoYSummary(
            total_current=total_current,
            total_previous=total_previous,
            overall_growth_percent=percent_change(total_current, total_previous),
        ),
        metrics=metrics,
    )
