"""
Smart Insight

Picks the single most important message for the overview metric cards.

Priority:
1. Hazard: sales down more than 15%
2. Traffic waste: visitors up more than 10% while conversion drops over 5%
3. Low value orders: orders up more than 10% while basket size drops over 5%
4. Achievement: sales up more than 15%
5. Efficiency: sales roughly flat (-5%..15%) while conversion rises over 5%
6. Standard: plain sales trend
"""

from dataclasses import dataclass
from enum import Enum

from seller_analytics.aggregation.growth import percent_change
from seller_analytics.aggregation.reconciler import StoreMetrics
from seller_analytics.core.models import MetricSnapshot, TrendDirection


class InsightType(str, Enum):
    HAZARD = "hazard"
    ACHIEVEMENT = "achievement"
    EFFICIENCY = "efficiency"
    NEUTRAL = "neutral"
    STANDARD = "standard"


@dataclass(frozen=True)
class SmartInsight:
    type: InsightType
    title: str
    message: str


def signed_growth(snapshot: MetricSnapshot) -> float:
    """
    Signed period-over-period growth of a snapshot.

    Computed from current/previous when there is a base; otherwise the
    upstream percent, signed by the trend direction.
    """
    growth = percent_change(snapshot.current, snapshot.previous)
    if growth is not None:
        return growth
    magnitude = abs(snapshot.percent_change)
    return -magnitude if snapshot.trend_direction == TrendDirection.DOWN else magnitude


def _pct(value: float) -> str:
    return f"{value:+.1f}%"


def generate_insight(metrics: StoreMetrics) -> SmartInsight:
    """Classify overview metrics into one prioritized insight"""
    if metrics.sales.current == 0:
        return SmartInsight(
            type=InsightType.NEUTRAL,
            title="No data yet",
            message="Upload sales data to see how your stores are performing.",
        )

    sales = signed_growth(metrics.sales)
    visitors = signed_growth(metrics.visitors)
    orders = signed_growth(metrics.orders)
    conversion = signed_growth(metrics.conversion_rate)
    basket = signed_growth(metrics.basket_size)

    if sales < -15:
        return SmartInsight(
            type=InsightType.HAZARD,
            title="Attention needed",
            message=f"Sales fell sharply ({_pct(sales)}) this period. Review pricing and stock.",
        )

    if visitors > 10 and conversion < -5:
        return SmartInsight(
            type=InsightType.HAZARD,
            title="Traffic waste detected",
            message=(
                f"Visitors rose {_pct(visitors)} but conversion rate moved {_pct(conversion)}. "
                "Check pricing and page speed."
            ),
        )

    if orders > 10 and basket < -5:
        return SmartInsight(
            type=InsightType.NEUTRAL,
            title="Optimize order value",
            message=(
                f"Orders rose {_pct(orders)} but basket size moved {_pct(basket)}. "
                "Consider product bundles."
            ),
        )

    if sales > 15:
        return SmartInsight(
            type=InsightType.ACHIEVEMENT,
            title="Outstanding performance",
            message=f"Sales grew aggressively ({_pct(sales)}). Keep the momentum going.",
        )

    if -5 < sales <= 15 and conversion > 5:
        return SmartInsight(
            type=InsightType.EFFICIENCY,
            title="Efficiency improving",
            message=f"Sales are steady while conversion rate rose {_pct(conversion)}.",
        )

    if sales >= 0:
        return SmartInsight(
            type=InsightType.STANDARD,
            title="Steady growth",
            message=f"Sales are up {_pct(sales)} against the previous period.",
        )
    return SmartInsight(
        type=InsightType.STANDARD,
        title="Normal correction",
        message=f"Sales eased {_pct(sales)} against the previous period.",
    )
