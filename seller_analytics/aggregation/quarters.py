"""
Quarter Aggregator

Rolls a year of monthly sales/orders totals into quarters and chains the
growth calculator across them. Also builds that twelve-month skeleton from
daily series.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, List, Mapping, Optional, Sequence

from seller_analytics.aggregation.bucketing import bucket, bucket_values
from seller_analytics.aggregation.extractor import coerce_number
from seller_analytics.aggregation.growth import basket_size, growth_series
from seller_analytics.core.models import Granularity, QuarterRollup, TimeSeriesPoint

QUARTER_MONTHS = ((0, 1, 2), (3, 4, 5), (6, 7, 8), (9, 10, 11))


@dataclass(frozen=True)
class MonthlyTotal:
    """One month of the yearly sales/orders skeleton"""
    label: str
    month_start: date
    sales: float
    orders: float
    basket_size: float


def _field(entry: Any, name: str) -> float:
    if entry is None:
        return 0.0
    if isinstance(entry, Mapping):
        value = entry.get(name)
    else:
        value = getattr(entry, name, None)
    return coerce_number(value)


def aggregate_quarters(
    monthly: Sequence[Any],
    year: Optional[int] = None,
) -> List[QuarterRollup]:
    """
    Roll twelve monthly ``{sales, orders}`` entries into Q1..Q4.

    Args:
        monthly: Entries indexed January=0; absent months or fields count as 0.
            Mappings and objects with ``sales``/``orders`` attributes both work.
        year: Calendar year, used for each quarter's ``period_start``

    Returns:
        Four roll-ups with QoQ growth for sales, orders and basket size
    """
    sales_totals = []
    orders_totals = []
    for months in QUARTER_MONTHS:
        entries = [monthly[i] if i < len(monthly) else None for i in months]
        sales_totals.append(sum(_field(e, "sales") for e in entries))
        orders_totals.append(sum(_field(e, "orders") for e in entries))

    basket_sizes = [basket_size(s, o) for s, o in zip(sales_totals, orders_totals)]
    sales_growth = growth_series(sales_totals)
    orders_growth = growth_series(orders_totals)
    basket_growth = growth_series(basket_sizes)

    rollups = []
    for index, months in enumerate(QUARTER_MONTHS):
        rollups.append(
            QuarterRollup(
                label=f"Q{index + 1}",
                period_start=date(year, months[0] + 1, 1) if year is not None else None,
                value=sales_totals[index],
                sales_total=sales_totals[index],
                orders_total=orders_totals[index],
                basket_size=basket_sizes[index],
                growth_vs_previous_quarter=sales_growth[index],
                orders_growth=orders_growth[index],
                basket_size_growth=basket_growth[index],
            )
        )
    return rollups


def monthly_totals(
    sales: Sequence[TimeSeriesPoint],
    orders: Sequence[TimeSeriesPoint],
    year: int,
) -> List[MonthlyTotal]:
    """Twelve zero-filled months of sales, orders and basket size for ``year``"""
    year_start = date(year, 1, 1)
    year_end = date(year, 12, 31)

    sales_buckets = bucket(sales, Granularity.MONTHLY, year_start, year_end)
    orders_values = bucket_values(bucket(orders, Granularity.MONTHLY, year_start, year_end))

    return [
        MonthlyTotal(
            label=month.period_start.strftime("%b"),
            month_start=month.period_start,
            sales=month.value,
            orders=month_orders,
            basket_size=basket_size(month.value, month_orders),
        )
        for month, month_orders in zip(sales_buckets, orders_values)
    ]
