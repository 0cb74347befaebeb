"""
Growth Calculator

Period-over-period percentage change. A zero or missing base never yields
a finite number: 0 -> N is reported as ``None`` rather than infinity.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence


def percent_change(current: float, previous: Optional[float]) -> Optional[float]:
    """Percent change from ``previous`` to ``current``, ``None`` without a positive base"""
    if previous is None or previous <= 0:
        return None
    return (current - previous) / previous * 100


def growth_series(values: Sequence[float]) -> List[Optional[float]]:
    """
    Percent change of each value against the one before it.

    >>> growth_series([0, 0, 5, 0])
    [None, None, None, -100.0]
    """
    growth: List[Optional[float]] = []
    for index, value in enumerate(values):
        if index == 0:
            growth.append(None)
        else:
            growth.append(percent_change(value, values[index - 1]))
    return growth


def with_growth(rows: Sequence[Mapping[str, Any]], keys: Sequence[str]) -> List[Dict[str, Any]]:
    """
    Copy ``rows`` and append a ``<key>_growth`` field for every key.

    Missing or null values count as 0.
    """
    result = [dict(row) for row in rows]
    for key in keys:
        values = [float(row.get(key) or 0) for row in rows]
        for row, growth in zip(result, growth_series(values)):
            row[f"{key}_growth"] = growth
    return result


def basket_size(sales: float, orders: float) -> float:
    """Average order value; 0 when there are no orders"""
    if not orders or orders <= 0:
        return 0.0
    return sales / orders
