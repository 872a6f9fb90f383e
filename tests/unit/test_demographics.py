"""
Unit Tests - Demographic Reports
"""
from datetime import date

import polars as pl

from retail_analytics.analytics.demographics import (
    age_expr,
    age_group_behavior,
    demographic_order_frequency,
)


class TestDemographicOrderFrequency:
    """Tests for order frequency by demographic profile"""

    def test_top_five(self, snapshot):
        """Ties on order count are ordered by profile"""
        result = demographic_order_frequency(snapshot)

        assert result.height == 5
        assert result.row(0) == ("F", "Married", "Electronics", 4, 1)
        assert result.select(["gender", "marital_status", "category"]).rows()[1:] == [
            ("F", "Divorced", "Office"),
            ("F", "Single", "Electronics"),
            ("F", "Single", "Office"),
            ("M", "Married", "Furniture"),
        ]


class TestAgeGroups:
    """Tests for age group behavior"""

    def test_age_on_birthday(self):
        """Age increments on the birthday itself"""
        df = pl.DataFrame({"birth_date": [date(1985, 6, 30), date(1985, 7, 1), date(2000, 2, 29)]})

        ages = df.select(age_expr(date(2024, 6, 30)))["age"].to_list()

        assert ages == [39, 38, 24]

    def test_age_group_behavior(self, snapshot, as_of):
        """Test groups in age order, then category"""
        result = age_group_behavior(snapshot, as_of)

        assert result.rows() == [
            ("Under 30", "Electronics", 1, 500.0),
            ("Under 30", "Office", 1, 20.0),
            ("30-50", "Electronics", 4, 875.0),
            ("30-50", "Furniture", 1, 200.0),
            ("30-50", "Office", 1, 10.0),
            ("Over 50", "Furniture", 1, 600.0),
            ("Over 50", "Office", 1, 100.0),
        ]
