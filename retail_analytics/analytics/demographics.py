"""
Demographic Reports

Order frequency by demographic profile and purchasing by age group.
"""

from datetime import date
from typing import Optional

import polars as pl

from retail_analytics.config import get_settings
from .snapshot import Snapshot
from .windows import ROUNDING

UNDER_30 = "Under 30"
FROM_30_TO_50 = "30-50"
OVER_50 = "Over 50"
AGE_GROUPS = [UNDER_30, FROM_30_TO_50, OVER_50]

DEMOGRAPHIC_KEYS = ["gender", "marital_status", "category"]


def age_expr(as_of: date) -> pl.Expr:
    """Age in completed years at as_of"""
    birth = pl.col("birth_date")
    had_birthday = (birth.dt.month() < as_of.month) | (
        (birth.dt.month() == as_of.month) & (birth.dt.day() <= as_of.day)
    )
    return (
        pl.lit(as_of.year) - birth.dt.year() - pl.when(had_birthday).then(0).otherwise(1)
    ).alias("age")


def demographic_order_frequency(snapshot: Snapshot, limit: Optional[int] = None) -> pl.DataFrame:
    """Most frequent (gender, marital status, category) combinations by order count"""
    limit = get_settings().segmentation.top_n if limit is None else limit

    df = snapshot.resolved_sales.group_by(DEMOGRAPHIC_KEYS).agg([
        pl.len().alias("order_count"),
        pl.col("customer_id").n_unique().alias("customer_count"),
    ])
    return df.sort(
        ["order_count"] + DEMOGRAPHIC_KEYS,
        descending=[True, False, False, False],
        nulls_last=True,
    ).head(limit)


def age_group_behavior(snapshot: Snapshot, as_of: date) -> pl.DataFrame:
    """
    Purchase count and mean purchase value per age group and category.

    Customers without a birth date are left out.
    """
    age = pl.col("age")
    group = (
        pl.when(age < 30)
        .then(pl.lit(UNDER_30))
        .when(age <= 50)
        .then(pl.lit(FROM_30_TO_50))
        .otherwise(pl.lit(OVER_50))
        .alias("age_group")
    )
    group_order = pl.col("age_group").replace_strict(
        {name: i for i, name in enumerate(AGE_GROUPS)}, return_dtype=pl.Int64
    )

    return (
        snapshot.resolved_sales
        .filter(pl.col("birth_date").is_not_null())
        .with_columns(age_expr(as_of))
        .with_columns(group)
        .group_by(["age_group", "category"])
        .agg([
            pl.len().alias("purchase_count"),
            pl.col("line_amount").mean().round(2, mode=ROUNDING).alias("avg_purchase_value"),
        ])
        .sort([group_order, pl.col("category")], nulls_last=True)
    )
