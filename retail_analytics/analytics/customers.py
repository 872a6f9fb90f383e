"""
Customer Reports

Spending ranks and segments, purchase cadence, recency and churn.

Customer spend is the sum of each sale's monetary amount: the amount
recorded on the sale when present, otherwise price x quantity.
"""

from datetime import date
from typing import Optional

import polars as pl
import structlog

from retail_analytics.config import get_settings
from .snapshot import Snapshot
from .windows import ROUNDING, ranked, with_ntile

logger = structlog.get_logger(__name__)

HIGH = "High"
MEDIUM = "Medium"
LOW = "Low"
SPENDING_SEGMENTS = [HIGH, MEDIUM, LOW]

ACTIVE = "Active"
RECENT = "Recent"
LAPSED = "Lapsed"
INACTIVE = "Inactive"
RECENCY_SEGMENTS = [ACTIVE, RECENT, LAPSED, INACTIVE]

NAME_COLUMNS = ["customer_id", "first_name", "last_name"]


def customer_spend(snapshot: Snapshot) -> pl.DataFrame:
    """Total spend of every customer with at least one priced sale"""
    return (
        snapshot.customer_sales
        .filter(pl.col("sale_amount").is_not_null())
        .group_by("customer_id")
        .agg([
            pl.col("sale_amount").sum().alias("total_spend"),
            pl.len().alias("sale_count"),
        ])
    )


def _spend_ranked(snapshot: Snapshot) -> pl.DataFrame:
    return ranked(customer_spend(snapshot), "total_spend", descending=True, tie_break="customer_id")


def inactive_customers(snapshot: Snapshot) -> pl.DataFrame:
    """Customers without a single sale"""
    buyers = snapshot.sales.select("customer_id").drop_nulls().unique()
    return (
        snapshot.customers
        .join(buyers, on="customer_id", how="anti")
        .select(NAME_COLUMNS + ["email", "country", "join_date"])
        .sort("customer_id")
    )


def repeat_purchase_customers(snapshot: Snapshot) -> pl.DataFrame:
    """
    Customers who bought more than one product repeatedly.

    A product is repeated for a customer when it appears in two or more of
    their sales. Only customers with more than one repeated product are
    reported, with their total spend over all sales.
    """
    repeated = (
        snapshot.customer_sales
        .filter(pl.col("product_id").is_not_null())
        .group_by(["customer_id", "product_id"])
        .agg(pl.col("sale_id").n_unique().alias("times_bought"))
        .filter(pl.col("times_bought") >= 2)
        .group_by("customer_id")
        .agg(pl.len().alias("repeated_products"))
        .filter(pl.col("repeated_products") > 1)
    )

    df = (
        repeated
        .join(snapshot.customers.select(NAME_COLUMNS), on="customer_id", how="inner")
        .join(customer_spend(snapshot).select(["customer_id", "total_spend"]), on="customer_id", how="left")
        .with_columns(pl.col("total_spend").fill_null(0.0))
        .select(NAME_COLUMNS + ["repeated_products", "total_spend"])
    )
    return ranked(
        df,
        ["repeated_products", "total_spend"],
        descending=True,
        tie_break="customer_id",
    ).with_columns(pl.col("total_spend").round(2, mode=ROUNDING))


def top_decile_customers(snapshot: Snapshot) -> pl.DataFrame:
    """Decile 1 of customers ranked by total spend"""
    df = with_ntile(_spend_ranked(snapshot), 10, name="decile")
    return (
        df.filter(pl.col("decile") == 1)
        .join(snapshot.customers.select(NAME_COLUMNS), on="customer_id", how="left")
        .select(NAME_COLUMNS + [pl.col("total_spend").round(2, mode=ROUNDING), "decile"])
    )


def average_purchase_interval(snapshot: Snapshot) -> pl.DataFrame:
    """
    Mean number of days between consecutive purchases per customer.

    Customers with a single purchase have no interval and are left out.
    """
    gaps = (
        snapshot.customer_sales
        .sort(["customer_id", "order_date", "sale_id"])
        .with_columns(
            pl.col("order_date").diff().over("customer_id").dt.total_days().alias("gap_days")
        )
    )
    df = (
        gaps.group_by("customer_id")
        .agg([
            pl.len().alias("purchase_count"),
            pl.col("gap_days").mean().round(2, mode=ROUNDING).alias("avg_days_between_purchases"),
        ])
        .filter(pl.col("purchase_count") >= 2)
    )
    return df.sort("customer_id")


def average_sale_amount(snapshot: Snapshot) -> pl.DataFrame:
    """Mean monetary amount of a customer's sales"""
    df = (
        snapshot.customer_sales
        .filter(pl.col("sale_amount").is_not_null())
        .group_by("customer_id")
        .agg([
            pl.len().alias("sale_count"),
            pl.col("sale_amount").mean().alias("avg_sale_amount"),
        ])
    )
    return ranked(df, "avg_sale_amount", descending=True, tie_break="customer_id").with_columns(
        pl.col("avg_sale_amount").round(2, mode=ROUNDING)
    )


def spending_segments(
    snapshot: Snapshot,
    high_threshold: Optional[float] = None,
    medium_threshold: Optional[float] = None,
) -> pl.DataFrame:
    """
    High / Medium / Low spending segment for every customer.

    Customers without sales have a spend of 0. Thresholds default to the
    configured preset.
    """
    default_high, default_medium = get_settings().segmentation.spending_thresholds
    high = default_high if high_threshold is None else high_threshold
    medium = default_medium if medium_threshold is None else medium_threshold
    if medium > high:
        raise ValueError("medium_threshold must not exceed high_threshold")

    df = (
        snapshot.customers.select("customer_id")
        .join(customer_spend(snapshot).select(["customer_id", "total_spend"]), on="customer_id", how="left")
        .with_columns(pl.col("total_spend").fill_null(0.0))
        .with_columns(
            pl.when(pl.col("total_spend") >= high)
            .then(pl.lit(HIGH))
            .when(pl.col("total_spend") >= medium)
            .then(pl.lit(MEDIUM))
            .otherwise(pl.lit(LOW))
            .alias("spending_segment")
        )
    )
    return ranked(df, "total_spend", descending=True, tie_break="customer_id").with_columns(
        pl.col("total_spend").round(2, mode=ROUNDING)
    )


def spending_segment_summary(snapshot: Snapshot, **thresholds) -> pl.DataFrame:
    """Customer count and mean spend per spending segment"""
    grouped = {
        row["spending_segment"]: row
        for row in spending_segments(snapshot, **thresholds)
        .group_by("spending_segment")
        .agg([
            pl.len().alias("customer_count"),
            pl.col("total_spend").mean().alias("avg_spend"),
        ])
        .iter_rows(named=True)
    }
    return pl.DataFrame(
        {
            "spending_segment": SPENDING_SEGMENTS,
            "customer_count": [grouped[s]["customer_count"] if s in grouped else 0 for s in SPENDING_SEGMENTS],
            "avg_spend": [grouped[s]["avg_spend"] if s in grouped else None for s in SPENDING_SEGMENTS],
        },
        schema={"spending_segment": pl.Utf8, "customer_count": pl.Int64, "avg_spend": pl.Float64},
    ).with_columns(pl.col("avg_spend").round(2, mode=ROUNDING))


def recency_segments(
    snapshot: Snapshot,
    as_of: date,
    active_days: Optional[int] = None,
    recent_days: Optional[int] = None,
    lapsed_days: Optional[int] = None,
) -> pl.DataFrame:
    """
    Classify customers by days since their last purchase.

    Customers who never purchased are Inactive. Band limits default to the
    configured segmentation settings.
    """
    bands = get_settings().segmentation
    active_days = bands.active_days if active_days is None else active_days
    recent_days = bands.recent_days if recent_days is None else recent_days
    lapsed_days = bands.lapsed_days if lapsed_days is None else lapsed_days

    last_purchase = snapshot.customer_sales.group_by("customer_id").agg(
        pl.col("order_date").max().alias("last_purchase_date")
    )
    days = pl.col("days_since_last_purchase")

    return (
        snapshot.customers.select("customer_id")
        .join(last_purchase, on="customer_id", how="left")
        .with_columns(
            (pl.lit(as_of) - pl.col("last_purchase_date")).dt.total_days().alias("days_since_last_purchase")
        )
        .with_columns(
            pl.when(days.is_null())
            .then(pl.lit(INACTIVE))
            .when(days <= active_days)
            .then(pl.lit(ACTIVE))
            .when(days <= recent_days)
            .then(pl.lit(RECENT))
            .when(days <= lapsed_days)
            .then(pl.lit(LAPSED))
            .otherwise(pl.lit(INACTIVE))
            .alias("recency_segment")
        )
        .sort("customer_id")
    )


def churn_rate(
    snapshot: Snapshot,
    cohort_start: date,
    cohort_end: date,
    window: Optional[str] = None,
) -> pl.DataFrame:
    """
    Churn rate of the cohort of customers who joined in [cohort_start, cohort_end].

    A cohort member is retained when they purchase again more than `window`
    (a polars duration, one calendar month by default) after their first
    purchase; everyone else, including members who never purchased, churned.

    Returns:
        Single-row DataFrame with cohort_size, churned_customers and churn_rate
        (a percentage, null for an empty cohort)
    """
    window = get_settings().segmentation.churn_window if window is None else window

    cohort = snapshot.customers.filter(
        pl.col("join_date").is_between(cohort_start, cohort_end, closed="both")
    ).select("customer_id")

    purchases = snapshot.customer_sales.join(cohort, on="customer_id", how="semi").select(
        ["customer_id", "order_date"]
    )
    retained = (
        purchases
        .with_columns(
            pl.col("order_date").min().over("customer_id").dt.offset_by(window).alias("cutoff")
        )
        .filter(pl.col("order_date") > pl.col("cutoff"))
        .select("customer_id")
        .n_unique()
    )

    cohort_size = cohort.height
    churned = cohort_size - retained
    rate = churned / cohort_size * 100 if cohort_size else None

    logger.debug(
        "Churn rate computed",
        cohort_start=str(cohort_start),
        cohort_end=str(cohort_end),
        cohort_size=cohort_size,
        churned=churned,
    )

    return pl.DataFrame(
        {
            "cohort_size": [cohort_size],
            "churned_customers": [churned],
            "churn_rate": [rate],
        },
        schema={"cohort_size": pl.Int64, "churned_customers": pl.Int64, "churn_rate": pl.Float64},
    ).with_columns(pl.col("churn_rate").round(2, mode=ROUNDING))


def top_quartile_marital_distribution(snapshot: Snapshot) -> pl.DataFrame:
    """Marital status mix of the top spending quartile"""
    quartile = with_ntile(_spend_ranked(snapshot), 4, name="quartile").filter(pl.col("quartile") == 1)
    df = (
        quartile
        .join(snapshot.customers.select(["customer_id", "marital_status"]), on="customer_id", how="left")
        .group_by("marital_status")
        .agg([
            pl.len().alias("customer_count"),
            pl.col("total_spend").mean().round(2, mode=ROUNDING).alias("avg_spend"),
        ])
    )
    return ranked(df, "customer_count", descending=True, tie_break="marital_status")
