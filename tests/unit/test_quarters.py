"""
Unit Tests - Quarter Roll-up, Year-over-Year and Insights
"""
from datetime import date

import pytest

from seller_analytics.aggregation.insights import InsightType, generate_insight, signed_growth
from seller_analytics.aggregation.quarters import MonthlyTotal, aggregate_quarters, monthly_totals
from seller_analytics.aggregation.reconciler import StoreMetrics
from seller_analytics.aggregation.yoy import yoy_growth
from seller_analytics.core import MetricSnapshot, TimeSeriesPoint, TrendDirection


class TestAggregateQuarters:
    """Tests for aggregate_quarters()"""

    def test_rolls_up_months(self):
        monthly = [{"sales": 100, "orders": 10} for _ in range(12)]
        monthly[3] = {"sales": 400, "orders": 20}

        quarters = aggregate_quarters(monthly, year=2024)

        assert [q.label for q in quarters] == ["Q1", "Q2", "Q3", "Q4"]
        assert [q.period_start for q in quarters] == [
            date(2024, 1, 1),
            date(2024, 4, 1),
            date(2024, 7, 1),
            date(2024, 10, 1),
        ]
        assert [q.sales_total for q in quarters] == [300.0, 600.0, 300.0, 300.0]
        assert [q.orders_total for q in quarters] == [30.0, 40.0, 30.0, 30.0]
        assert quarters[1].value == quarters[1].sales_total
        assert quarters[1].basket_size == pytest.approx(15.0)

    def test_growth_chain(self):
        monthly = [{"sales": 100, "orders": 10} for _ in range(12)]
        monthly[3] = {"sales": 400, "orders": 20}

        quarters = aggregate_quarters(monthly)

        assert quarters[0].growth_vs_previous_quarter is None
        assert quarters[1].growth_vs_previous_quarter == pytest.approx(100.0)
        assert quarters[2].growth_vs_previous_quarter == pytest.approx(-50.0)
        assert quarters[1].orders_growth == pytest.approx(100 / 3)
        assert quarters[1].basket_size_growth == pytest.approx(50.0)

    def test_zero_quarter_has_no_growth(self):
        """Test growth out of an empty quarter is None"""
        monthly = [{"sales": 0, "orders": 0}] * 3 + [{"sales": 50, "orders": 5}] * 9

        quarters = aggregate_quarters(monthly)

        assert quarters[0].basket_size == 0.0
        assert quarters[1].growth_vs_previous_quarter is None
        assert quarters[1].basket_size_growth is None

    def test_short_and_sparse_input(self):
        """Test missing months and fields count as zero"""
        quarters = aggregate_quarters([{"sales": 10}, None, {"orders": 2}])

        assert quarters[0].sales_total == 10.0
        assert quarters[0].orders_total == 2.0
        assert [q.sales_total for q in quarters[1:]] == [0.0, 0.0, 0.0]
        assert all(q.period_start is None for q in quarters)

    def test_non_numeric_fields_count_as_zero(self):
        months = [{"sales": float("nan"), "orders": 1}, {"sales": "n/a", "orders": "2"}] + [None] * 10

        quarters = aggregate_quarters(months)

        assert quarters[0].sales_total == 0.0
        assert quarters[0].orders_total == 3.0
        assert quarters[0].basket_size == 0.0

    def test_accepts_monthly_totals(self):
        months = monthly_totals(
            [TimeSeriesPoint(date(2024, 1, 15), 100.0), TimeSeriesPoint(date(2024, 4, 10), 300.0)],
            [TimeSeriesPoint(date(2024, 1, 15), 10.0), TimeSeriesPoint(date(2024, 4, 10), 20.0)],
            2024,
        )

        quarters = aggregate_quarters(months, year=2024)

        assert [q.sales_total for q in quarters] == [100.0, 300.0, 0.0, 0.0]
        assert quarters[1].growth_vs_previous_quarter == pytest.approx(200.0)


class TestMonthlyTotals:
    """Tests for monthly_totals()"""

    def test_twelve_zero_filled_months(self):
        months = monthly_totals(
            [TimeSeriesPoint(date(2024, 2, 3), 90.0), TimeSeriesPoint(date(2023, 12, 31), 999.0)],
            [TimeSeriesPoint(date(2024, 2, 3), 3.0)],
            2024,
        )

        assert len(months) == 12
        assert isinstance(months[0], MonthlyTotal)
        assert [m.label for m in months][:3] == ["Jan", "Feb", "Mar"]
        assert months[0].sales == 0.0
        assert months[1].sales == 90.0
        assert months[1].basket_size == pytest.approx(30.0)
        assert months[11].month_start == date(2024, 12, 1)


class TestYoYGrowth:
    """Tests for yoy_growth()"""

    def test_month_by_month(self):
        current = [200.0, 50.0] + [0.0] * 10
        previous = [100.0, 0.0] + [0.0] * 10

        result = yoy_growth(current, previous, 2024)

        assert result.previous_year == 2023
        assert result.has_previous_year_data is True
        assert result.metrics[0].month == "Jan"
        assert result.metrics[0].growth_percent == pytest.approx(100.0)
        assert result.metrics[1].growth_percent is None
        assert result.summary.total_current == 250.0
        assert result.summary.overall_growth_percent == pytest.approx(150.0)

    def test_previous_year_not_loaded(self):
        result = yoy_growth([10.0] * 12, None, 2024)

        assert result.has_previous_year_data is False
        assert len(result.metrics) == 12
        assert all(m.previous_value == 0.0 for m in result.metrics)
        assert result.summary.overall_growth_percent is None

    def test_previous_year_all_zero(self):
        assert yoy_growth([1.0], [0.0] * 12, 2024).has_previous_year_data is False


def metric(current, previous, percent=0.0, trend=None):
    return MetricSnapshot(
        current=current,
        previous=previous,
        percent_change=percent,
        trend_direction=trend or TrendDirection.from_values(current, previous),
    )


class TestInsights:
    """Tests for generate_insight()"""

    def test_no_sales(self):
        assert generate_insight(StoreMetrics()).type == InsightType.NEUTRAL

    def test_sales_drop_is_hazard(self):
        insight = generate_insight(StoreMetrics(sales=metric(80, 100)))

        assert insight.type == InsightType.HAZARD
        assert "-20.0%" in insight.message

    def test_traffic_waste(self):
        insight = generate_insight(
            StoreMetrics(
                sales=metric(100, 100),
                visitors=metric(120, 100),
                conversion_rate=metric(1.5, 2.0),
            )
        )

        assert insight.type == InsightType.HAZARD
        assert insight.title == "Traffic waste detected"

    def test_low_value_orders(self):
        insight = generate_insight(
            StoreMetrics(
                sales=metric(100, 100),
                orders=metric(12, 10),
                basket_size=metric(8, 10),
            )
        )

        assert insight.title == "Optimize order value"

    def test_achievement(self):
        assert generate_insight(StoreMetrics(sales=metric(120, 100))).type == InsightType.ACHIEVEMENT

    def test_efficiency(self):
        insight = generate_insight(
            StoreMetrics(sales=metric(105, 100), conversion_rate=metric(2.2, 2.0))
        )

        assert insight.type == InsightType.EFFICIENCY

    def test_standard(self):
        assert generate_insight(StoreMetrics(sales=metric(103, 100))).title == "Steady growth"
        assert generate_insight(StoreMetrics(sales=metric(97, 100))).title == "Normal correction"

    def test_signed_growth_falls_back_to_upstream_percent(self):
        """Test a zero base uses the upstream percent signed by trend"""
        assert signed_growth(metric(50, 0, percent=30, trend=TrendDirection.DOWN)) == -30
        assert signed_growth(metric(50, 0, percent=30, trend=TrendDirection.UP)) == 30


class TestFlatYear:
    def test_flat_months_roll_into_flat_quarters(self):
        quarters = aggregate_quarters([{"sales": 1_000_000, "orders": 10}] * 12)

        assert [q.sales_total for q in quarters] == [3_000_000.0] * 4
        assert [q.orders_total for q in quarters] == [30.0] * 4
        assert [q.basket_size for q in quarters] == [100_000.0] * 4
        assert [q.growth_vs_previous_quarter for q in quarters] == [None, 0.0, 0.0, 0.0]
        assert [q.orders_growth for q in quarters] == [None, 0.0, 0.0, 0.0]
        assert [q.basket_size_growth for q in quarters] == [None, 0.0, 0.0, 0.0]
