"""
Unit Tests - Growth Calculator
"""
import pytest

from seller_analytics.aggregation.growth import basket_size, growth_series, percent_change, with_growth


class TestPercentChange:
    """Tests for percent_change()"""

    def test_increase_and_decrease(self):
        assert percent_change(150, 100) == pytest.approx(50.0)
        assert percent_change(75, 100) == pytest.approx(-25.0)

    def test_zero_base_is_undefined(self):
        """Test growth from zero is None, not infinity"""
        assert percent_change(5, 0) is None
        assert percent_change(0, 0) is None

    def test_missing_or_negative_base(self):
        assert percent_change(5, None) is None
        assert percent_change(5, -10) is None

    def test_drop_to_zero(self):
        assert percent_change(0, 40) == pytest.approx(-100.0)


class TestGrowthSeries:
    """Tests for growth_series()"""

    def test_first_entry_has_no_growth(self):
        assert growth_series([100, 150, 75]) == [None, pytest.approx(50.0), pytest.approx(-50.0)]

    def test_zero_runs(self):
        assert growth_series([0, 0, 5, 0]) == [None, None, None, -100.0]

    def test_empty(self):
        assert growth_series([]) == []


class TestWithGrowth:
    """Tests for with_growth()"""

    def test_adds_growth_fields(self):
        rows = [
            {"month": "Jan", "sales": 100, "orders": 10},
            {"month": "Feb", "sales": 200, "orders": None},
        ]

        result = with_growth(rows, ["sales", "orders"])

        assert result[0]["sales_growth"] is None
        assert result[1]["sales_growth"] == pytest.approx(100.0)
        assert result[1]["orders_growth"] == pytest.approx(-100.0)
        # input rows are untouched
        assert "sales_growth" not in rows[0]


class TestBasketSize:
    def test_basket_size(self):
        assert basket_size(300, 4) == pytest.approx(75.0)
        assert basket_size(300, 0) == 0.0
