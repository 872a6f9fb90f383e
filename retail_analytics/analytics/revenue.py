"""
Revenue & Geography Reports
"""

from datetime import date, timedelta
from typing import Optional

import polars as pl
import structlog

from retail_analytics.config import get_settings
from .snapshot import Snapshot
from .windows import ROUNDING, ranked

logger = structlog.get_logger(__name__)


def revenue_by_country(snapshot: Snapshot) -> pl.DataFrame:
    """Revenue (price x quantity) per customer country"""
    df = snapshot.resolved_sales.group_by("country").agg(
        pl.col("line_amount").sum().alias("revenue")
    )
    return ranked(df, "revenue", descending=True, tie_break="country").with_columns(
        pl.col("revenue").round(2, mode=ROUNDING)
    )


def revenue_by_month(snapshot: Snapshot) -> pl.DataFrame:
    """
    Monthly revenue with month-over-month growth.

    growth_rate = (revenue - previous_revenue) / previous_revenue * 100. It is
    null for the first month and wherever the previous month had no revenue.
    """
    df = (
        snapshot.product_sales
        .with_columns(pl.col("order_date").dt.strftime("%Y-%m").alias("month"))
        .group_by("month")
        .agg(pl.col("line_amount").sum().alias("revenue"))
        .sort("month")
        .with_columns(pl.col("revenue").shift(1).alias("previous_revenue"))
    )
    prev = pl.col("previous_revenue")
    return df.with_columns([
        pl.when(prev.is_not_null() & (prev != 0))
        .then((pl.col("revenue") - prev) / prev * 100)
        .otherwise(None)
        .round(2, mode=ROUNDING)
        .alias("growth_rate"),
        pl.col("revenue").round(2, mode=ROUNDING),
        prev.round(2, mode=ROUNDING),
    ])


def acquisition_rate_by_country(snapshot: Snapshot) -> pl.DataFrame:
    """Share of all customers that each country accounts for, as a percentage"""
    total = snapshot.customers.height
    df = snapshot.customers.group_by("country").agg(pl.len().alias("customer_count"))
    df = df.with_columns(
        (pl.col("customer_count") / total * 100).round(2, mode=ROUNDING).alias("acquisition_rate")
    )
    return ranked(df, "customer_count", descending=True, tie_break="country")


def lapsed_countries(
    snapshot: Snapshot,
    as_of: date,
    lapse_days: Optional[int] = None,
) -> pl.DataFrame:
    """
    Countries with at least one lapsed customer.

    A customer is lapsed when they never purchased or their latest purchase
    is older than `lapse_days` before `as_of`.
    """
    lapse_days = get_settings().segmentation.country_lapse_days if lapse_days is None else lapse_days
    cutoff = as_of - timedelta(days=lapse_days)

    last_purchase = snapshot.customer_sales.group_by("customer_id").agg(
        pl.col("order_date").max().alias("last_purchase_date")
    )
    last = pl.col("last_purchase_date")

    df = (
        snapshot.customers.select(["customer_id", "country"])
        .join(last_purchase, on="customer_id", how="left")
        .filter(last.is_null() | (last < cutoff))
        .group_by("country")
        .agg(pl.len().alias("lapsed_customers"))
        .sort("country", nulls_last=True)
    )
    logger.debug("Lapsed countries computed", cutoff=str(cutoff), countries=df.height)
    return df
