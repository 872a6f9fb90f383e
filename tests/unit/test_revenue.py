"""
Unit Tests - Revenue & Geography Reports
"""
from datetime import date

import pytest

from retail_analytics.analytics import Customer, Product, Sale, Snapshot
from retail_analytics.analytics.revenue import (
    acquisition_rate_by_country,
    lapsed_countries,
    revenue_by_country,
    revenue_by_month,
)


class TestRevenue:
    """Tests for revenue aggregates"""

    def test_revenue_by_country(self, snapshot):
        """Sales with unknown customers or products are excluded"""
        result = revenue_by_country(snapshot)

        assert result.to_dicts() == [
            {"country": "US", "revenue": 4200.0},
            {"country": "UK", "revenue": 720.0},
            {"country": "FR", "revenue": 10.0},
        ]

    def test_revenue_by_month(self, snapshot):
        """Growth is null for the first month"""
        result = revenue_by_month(snapshot)

        assert result["month"].to_list() == ["2024-01", "2024-02", "2024-03", "2024-04", "2024-05", "2024-06"]
        assert result["revenue"].to_list() == [2500.0, 1600.0, 600.0, 200.0, 510.0, 20.0]
        growth = result["growth_rate"].to_list()
        assert growth[0] is None
        assert growth[1:] == pytest.approx([-36.0, -62.5, -66.67, 155.0, -96.08])

    def test_growth_matches_formula(self, snapshot):
        """growth = (curr - prev) / prev * 100 for every later month"""
        rows = revenue_by_month(snapshot).to_dicts()

        for prev, curr in zip(rows, rows[1:]):
            expected = (curr["revenue"] - prev["revenue"]) / prev["revenue"] * 100
            assert curr["previous_revenue"] == prev["revenue"]
            assert curr["growth_rate"] == pytest.approx(round(expected, 2))

    def test_growth_after_zero_revenue_month_is_null(self):
        """Division by a zero month is undefined"""
        snap = Snapshot.from_records(
            [],
            [Product("P0", "free", "c", 0.0, 0.0, 1), Product("P1", "x", "c", 10.0, 1.0, 1)],
            [
                Sale("S1", None, "P0", date(2024, 1, 5), 1),
                Sale("S2", None, "P1", date(2024, 2, 5), 1),
            ],
        )

        assert revenue_by_month(snap)["growth_rate"].to_list() == [None, None]

    def test_half_cent_rounds_away_from_zero(self):
        """0.125 is reported as 0.13, not rounded to even"""
        snap = Snapshot.from_records(
            [Customer("C1", country="US")],
            [Product("P1", "x", "c", 0.125, 0.1, 10)],
            [Sale("S1", "C1", "P1", date(2024, 1, 1), 1)],
        )

        assert revenue_by_country(snap)["revenue"].to_list() == [0.13]


class TestAcquisition:
    """Tests for acquisition rate"""

    def test_fixture_countries(self, snapshot):
        """Two customers each out of six"""
        result = acquisition_rate_by_country(snapshot)

        assert result["country"].to_list() == ["FR", "UK", "US"]
        assert result["acquisition_rate"].to_list() == pytest.approx([33.33, 33.33, 33.33])

    def test_three_of_ten(self):
        """Denominator is every customer, buyers or not"""
        countries = ["DE"] * 3 + ["US"] * 7
        snap = Snapshot.from_records(
            [Customer(f"C{i}", country=c) for i, c in enumerate(countries)], [], []
        )

        result = acquisition_rate_by_country(snap)

        rates = dict(zip(result["country"], result["acquisition_rate"]))
        assert rates["DE"] == 30.0
        assert rates["US"] == 70.0


class TestLapsedCountries:
    """Tests for lapsed-country detection"""

    def test_lapsed_countries(self, snapshot, as_of):
        """C1 last bought in February, C6 never bought"""
        result = lapsed_countries(snapshot, as_of)

        assert result.to_dicts() == [
            {"country": "FR", "lapsed_customers": 1},
            {"country": "US", "lapsed_customers": 1},
        ]

    def test_lapse_window(self, snapshot, as_of):
        """A shorter window lapses more customers"""
        result = lapsed_countries(snapshot, as_of, lapse_days=30)

        lapsed = dict(result.iter_rows())
        assert lapsed == {"FR": 2, "UK": 1, "US": 1}
