"""
Inventory Reports

Stock status, stock value and sell-through based depletion metrics.
"""

from typing import Optional

import polars as pl
import structlog

from retail_analytics.config import get_settings
from .snapshot import Snapshot
from .windows import ROUNDING, ranked

logger = structlog.get_logger(__name__)

OUT_OF_STOCK = "Out_Of_Stock"
AT_RISK = "At_Risk"
NORMAL = "Normal"
OVERSTOCKED = "Overstocked"

STOCK_BANDS = [OUT_OF_STOCK, AT_RISK, NORMAL, OVERSTOCKED]


def stock_status_expr(at_risk_max: int, normal_max: int) -> pl.Expr:
    """
    Stock band expression.

    Branches are evaluated in order and the first match wins: zero stock
    also satisfies the At_Risk range but is reported as Out_Of_Stock.
    """
    stock = pl.col("stock")
    return (
        pl.when(stock == 0)
        .then(pl.lit(OUT_OF_STOCK))
        .when((stock >= 0) & (stock <= at_risk_max))
        .then(pl.lit(AT_RISK))
        .when((stock > at_risk_max) & (stock <= normal_max))
        .then(pl.lit(NORMAL))
        .otherwise(pl.lit(OVERSTOCKED))
        .alias("stock_status")
    )


def _product_totals(snapshot: Snapshot) -> pl.DataFrame:
    return snapshot.product_sales.group_by("product_id").agg([
        pl.col("quantity").sum().alias("total_sold"),
        pl.col("order_date").min().alias("first_sale_date"),
        pl.col("order_date").max().alias("last_sale_date"),
    ])


def stock_segmentation(
    snapshot: Snapshot,
    at_risk_max: Optional[int] = None,
    normal_max: Optional[int] = None,
) -> pl.DataFrame:
    """Classify every product into a stock band"""
    bands = get_settings().inventory
    at_risk_max = bands.at_risk_max if at_risk_max is None else at_risk_max
    normal_max = bands.normal_max if normal_max is None else normal_max

    return (
        snapshot.products
        .select(["product_id", "product_name", "stock"])
        .with_columns(stock_status_expr(at_risk_max, normal_max))
        .sort("product_id")
    )


def stock_status_summary(
    snapshot: Snapshot,
    at_risk_max: Optional[int] = None,
    normal_max: Optional[int] = None,
) -> pl.DataFrame:
    """Number of products per stock band, in band order"""
    counts = dict(
        stock_segmentation(snapshot, at_risk_max, normal_max)
        .group_by("stock_status")
        .agg(pl.len().alias("product_count"))
        .iter_rows()
    )
    return pl.DataFrame(
        {
            "stock_status": STOCK_BANDS,
            "product_count": [counts.get(band, 0) for band in STOCK_BANDS],
        },
        schema={"stock_status": pl.Utf8, "product_count": pl.Int64},
    )


def stock_value_by_category(snapshot: Snapshot) -> pl.DataFrame:
    """Sum of price x stock per category, highest first"""
    df = (
        snapshot.products
        .group_by("category")
        .agg((pl.col("price") * pl.col("stock")).sum().round(2, mode=ROUNDING).alias("stock_value"))
    )
    return ranked(df, "stock_value", descending=True, tie_break="category")


def stock_to_sales_ratio(snapshot: Snapshot) -> pl.DataFrame:
    """
    Stock on hand relative to units sold.

    Products that never sold have no defined ratio and are left out.
    """
    df = (
        snapshot.products
        .join(_product_totals(snapshot), on="product_id", how="left")
        .with_columns(pl.col("total_sold").fill_null(0))
        .filter(pl.col("total_sold") > 0)
        .select([
            "product_id",
            "product_name",
            "stock",
            "total_sold",
            (pl.col("stock") / pl.col("total_sold")).round(2, mode=ROUNDING).alias("stock_to_sales_ratio"),
        ])
    )
    result = ranked(df, "stock_to_sales_ratio", descending=True, tie_break="product_id")
    logger.debug("Stock to sales ratio computed", rows=result.height)
    return result


def depletion_forecast(snapshot: Snapshot) -> pl.DataFrame:
    """
    Estimated days until stock runs out at the historical selling rate.

    The selling rate is total units over the inclusive span of days between a
    product's first and last sale. Only products with a positive rate and
    stock left are forecast.
    """
    totals = _product_totals(snapshot).with_columns(
        (
            pl.col("total_sold")
            / ((pl.col("last_sale_date") - pl.col("first_sale_date")).dt.total_days() + 1)
        ).alias("avg_daily_quantity")
    )

    df = (
        snapshot.products
        .join(totals, on="product_id", how="inner")
        .filter((pl.col("avg_daily_quantity") > 0) & (pl.col("stock") > 0))
        .select([
            "product_id",
            "product_name",
            "stock",
            "total_sold",
            pl.col("avg_daily_quantity").round(2, mode=ROUNDING),
            (pl.col("stock") / pl.col("avg_daily_quantity"))
            .round(0, mode=ROUNDING)
            .cast(pl.Int64)
            .alias("days_until_depletion"),
        ])
    )
    return ranked(df, "days_until_depletion", descending=True, tie_break="product_id")
